"""JSON encoding and decoding backed by msgspec."""

from typing import Any, Literal, Optional, overload

import msgspec

__all__ = ("decode_json", "encode_json")

_encoder = msgspec.json.Encoder()
_decoder = msgspec.json.Decoder()


@overload
def encode_json(data: Any, *, as_bytes: Literal[False] = ...) -> str: ...


@overload
def encode_json(data: Any, *, as_bytes: Literal[True]) -> bytes: ...


def encode_json(data: Any, *, as_bytes: bool = False) -> "str | bytes":
    """Encode data to JSON.

    ``Decimal`` values are encoded as strings and dates as ISO-8601 strings.

    Args:
        data: Data to encode.
        as_bytes: Return bytes instead of str.

    Returns:
        The JSON document.
    """
    encoded = _encoder.encode(data)
    if as_bytes:
        return encoded
    return encoded.decode("utf-8")


def decode_json(data: "str | bytes", *, type: Optional[Any] = None) -> Any:  # noqa: A002
    """Decode a JSON document.

    Args:
        data: JSON text or bytes.
        type: Optional target type; when given, msgspec validates and converts while decoding.

    Returns:
        The decoded object.
    """
    if type is None:
        return _decoder.decode(data)
    return msgspec.json.decode(data, type=type)
