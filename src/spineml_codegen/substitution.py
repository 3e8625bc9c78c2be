"""Rewriting bare identifiers into ``$(name)`` placeholder tokens."""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

LOGGER = logging.getLogger(__name__)

TOKEN_FORMAT = "$({})"


@lru_cache(maxsize=None)
def _identifier_pattern(name: str) -> "re.Pattern[str]":
    # Standalone occurrences only: not part of a longer identifier and not
    # already wrapped in a token.
    return re.compile(r"(?<![A-Za-z0-9_])(?<!\$\()" + re.escape(name) + r"(?![A-Za-z0-9_])")


def wrap_and_replace_variable_names(code: str, variable_name: str, replace_variable_name: str) -> str:
    """Replace standalone ``variable_name`` in ``code`` with ``$(replace_variable_name)``."""

    token = TOKEN_FORMAT.format(replace_variable_name)
    return _identifier_pattern(variable_name).sub(lambda _: token, code)


def wrap_variable_names(code: str, variable_name: str) -> str:
    """Wrap standalone ``variable_name`` in ``code`` as ``$(variable_name)``."""

    return wrap_and_replace_variable_names(code, variable_name, variable_name)


def substitute_model_variables(
    param_names: Iterable[str],
    vars: Iterable[Tuple[str, str]],
    code: Mapping[str, str],
    port_names: Optional[Mapping[str, str]] = None,
    *,
    logger: Optional[logging.Logger] = None,
) -> Dict[str, str]:
    """Tokenise parameters, variables and renamed ports in every code block.

    ``port_names`` maps a bare port name to the name its token should carry
    (for instance ``{"V": "V_post"}``).
    """

    log = logger or LOGGER
    substituted = dict(code)

    def apply(name: str, replacement: str) -> None:
        for key, text in substituted.items():
            substituted[key] = wrap_and_replace_variable_names(text, name, replacement)

    for name in param_names:
        log.debug("parameter %s", name)
        apply(name, name)

    for name, var_type in vars:
        log.debug("variable %s:%s", name, var_type)
        apply(name, name)

    for name, replacement in (port_names or {}).items():
        log.debug("analogue receive port %s -> %s", name, replacement)
        apply(name, replacement)

    return substituted


def find_tokens(code: str) -> Sequence[str]:
    """Return the distinct token names in ``code`` in order of first use."""

    seen: Dict[str, None] = {}
    for match in re.finditer(r"\$\(([A-Za-z_][A-Za-z0-9_]*)\)", code):
        seen.setdefault(match.group(1), None)
    return list(seen)


__all__ = [
    "TOKEN_FORMAT",
    "find_tokens",
    "substitute_model_variables",
    "wrap_and_replace_variable_names",
    "wrap_variable_names",
]
