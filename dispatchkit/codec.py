"""
Payload codecs.

A codec turns outgoing payloads into bytes and response bytes into typed
values. The key casing policy is always passed in explicitly; codecs never
look it up themselves.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from typing import Any, ClassVar, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict, TypeAdapter
from pydantic.alias_generators import to_camel, to_snake

from .policies import KeyCasing

T = TypeVar("T")


class Codec(Protocol):
    """Encode/decode boundary. Failures may raise any exception; callers wrap them."""

    content_type: str

    def encode(self, payload: Any, key_casing: KeyCasing) -> bytes: ...

    def decode(self, content: bytes, target: type[T], key_casing: KeyCasing) -> T: ...


class Payload(BaseModel):
    """
    Base model for request payloads and response bodies.

    Subclasses declare their wire key casing via the `key_casing` class
    attribute.

    Example:
        ```python
        class CreateUser(Payload):
            key_casing = KeyCasing.CAMEL_CASE

            first_name: str
            last_name: str
        ```
    """

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
    )

    key_casing: ClassVar[KeyCasing] = KeyCasing.DECLARED


def _rekey(value: Any, convert: Callable[[str], str]) -> Any:
    if isinstance(value, Mapping):
        return {
            (convert(k) if isinstance(k, str) else k): _rekey(v, convert) for k, v in value.items()
        }
    if isinstance(value, list):
        return [_rekey(v, convert) for v in value]
    return value


_ENCODE_KEYS: dict[KeyCasing, Callable[[str], str]] = {
    KeyCasing.CAMEL_CASE: to_camel,
    KeyCasing.SNAKE_CASE: to_snake,
}

_DECODE_KEYS: dict[KeyCasing, Callable[[str], str]] = {
    KeyCasing.CAMEL_CASE: to_snake,
    KeyCasing.SNAKE_CASE: to_camel,
}


class JSONCodec:
    """JSON codec backed by pydantic validation and serialization."""

    content_type = "application/json"

    def encode(self, payload: Any, key_casing: KeyCasing) -> bytes:
        if isinstance(payload, BaseModel):
            data = payload.model_dump(mode="json", by_alias=True)
        else:
            data = TypeAdapter(type(payload)).dump_python(payload, mode="json")
        convert = _ENCODE_KEYS.get(key_casing)
        if convert is not None:
            data = _rekey(data, convert)
        return json.dumps(data, separators=(",", ":"), allow_nan=False).encode("utf-8")

    def decode(self, content: bytes, target: type[T], key_casing: KeyCasing) -> T:
        data = json.loads(content)
        convert = _DECODE_KEYS.get(key_casing)
        if convert is not None:
            data = _rekey(data, convert)
        return TypeAdapter(target).validate_python(data)
