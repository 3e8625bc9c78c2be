from __future__ import annotations

import dataclasses

import pytest

from spineml_codegen.config import DEFAULT_OPTIONS, TranslationOptions
from spineml_codegen.errors import (
    ConfigurationError,
    ModelReferenceError,
    SpineMLError,
    UnsupportedFeatureError,
)


def test_with_overrides_ignores_unset_values() -> None:
    options = DEFAULT_OPTIONS.with_overrides(dt=0.25, weight_update_port_suffix=None)
    assert options.dt == pytest.approx(0.25)
    assert options.weight_update_port_suffix == "_post"
    assert DEFAULT_OPTIONS.dt == pytest.approx(0.1)


def test_options_are_frozen_and_hashable() -> None:
    with pytest.raises(dataclasses.FrozenInstanceError):
        DEFAULT_OPTIONS.dt = 1.0  # type: ignore[misc]
    assert hash(TranslationOptions()) == hash(DEFAULT_OPTIONS)


@pytest.mark.parametrize("error", [ConfigurationError, ModelReferenceError, UnsupportedFeatureError])
def test_errors_share_base_class(error) -> None:
    assert issubclass(error, SpineMLError)
    assert issubclass(error, RuntimeError)


@pytest.mark.parametrize("dt", [0.0, -0.1, float("nan"), float("inf")])
def test_options_reject_invalid_timestep(dt) -> None:
    with pytest.raises(ConfigurationError, match="timestep dt must be a positive finite number"):
        TranslationOptions(dt=dt)
    with pytest.raises(ConfigurationError):
        DEFAULT_OPTIONS.with_overrides(dt=dt)
