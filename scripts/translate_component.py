#!/usr/bin/env python3
"""Translate a single SpineML component and print or dump the generated code.

Typical usage::

    python -m scripts.translate_component models/LIF.xml --variable V --verbose
    python -m scripts.translate_component models/LIF.xml --output artifacts/LIF.json
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Iterable, Sequence

from spineml_codegen import SpineMLError, SpineMLModel, create_model, load_component_class

LOGGER = logging.getLogger("translate_component")


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Translate a SpineML component into GeNN model code")
    parser.add_argument("component", type=Path, help="SpineML component XML file")
    parser.add_argument(
        "--variable",
        action="append",
        default=[],
        help="Parameter that varies per neuron/synapse and must become a model variable. Repeat to add more",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the translated model as JSON instead of printing it",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Emit debug logging, including every substitution",
    )
    return parser.parse_args(argv)


def _print_section(title: str, rows: Sequence[str]) -> None:
    print(f"=== {title} ===")
    if not rows:
        print("<none>")
    for row in rows:
        print(row)
    print()


def print_model(model: SpineMLModel) -> None:
    print(f"{model.kind} '{model.name}' ({model.url})")
    print()
    _print_section("Parameters", list(model.param_names))
    _print_section("Variables", [f"{name}:{var_type}" for name, var_type in model.vars])
    _print_section("Regimes", [f"{name} = {regime_id}" for name, regime_id in model.regime_ids.items()])
    for name, code in model.code.items():
        _print_section(name, code.splitlines())


def translate_component(path: Path, variable_params: Sequence[str]) -> SpineMLModel:
    component = load_component_class(path)
    return create_model(component, variable_params)


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_args(argv)
    _configure_logging(args.verbose)

    try:
        model = translate_component(args.component, args.variable)
    except SpineMLError as exc:
        raise SystemExit(str(exc)) from exc

    if args.output is None:
        print_model(model)
        return 0

    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(json.dumps(model.to_dict(), indent=2, sort_keys=True), encoding="utf8")
    LOGGER.info("Wrote %s model '%s' to %s", model.kind, model.name, args.output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
