"""
Key casing policies.

A policy is declared by a payload or response type and passed explicitly to
every codec call, so heterogeneous payload shapes can share one client.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class KeyCasing(Enum):
    """How object keys are written on the wire."""

    DECLARED = "declared"
    """Use keys exactly as declared."""

    CAMEL_CASE = "camel_case"
    """Write `camelCase` keys; read them back as `snake_case`."""

    SNAKE_CASE = "snake_case"
    """Write `snake_case` keys; read them back as `camelCase`."""


def key_casing_for(tp: Any, override: KeyCasing | None = None) -> KeyCasing:
    """
    Resolve the key casing for a type.

    An explicit `override` wins; otherwise the type's `key_casing` class
    attribute is used, falling back to `KeyCasing.DECLARED`.
    """
    if override is not None:
        return override
    declared = getattr(tp, "key_casing", None)
    return declared if isinstance(declared, KeyCasing) else KeyCasing.DECLARED
