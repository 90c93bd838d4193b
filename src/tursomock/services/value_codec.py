"""Conversion between wire values and native SQLite values.

SQLite hands back ``None``, ``int``, ``float``, ``str`` and ``bytes``; the
wire format tags each of them. Integers travel as decimal text so clients
never lose 64-bit precision to JSON floating point.
"""

from __future__ import annotations

import base64
import binascii
import math
import re
from typing import Any

from tursomock.application.exceptions import DecodeError
from tursomock.domain.models import (
    BlobValue,
    FloatValue,
    IntegerValue,
    NullValue,
    TextValue,
    WireValue,
)

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_INTEGER_TEXT = re.compile(r"[+-]?[0-9]+")


def decode_value(value: WireValue) -> Any:
    """Return the native value a wire value stands for.

    Raises:
        DecodeError: integer text is not a whole number, is outside the
            signed 64-bit range, or blob text is not valid base64.
    """
    if isinstance(value, NullValue):
        return None
    if isinstance(value, IntegerValue):
        return _decode_integer(value.value)
    if isinstance(value, FloatValue):
        return float(value.value)
    if isinstance(value, TextValue):
        return value.value
    if isinstance(value, BlobValue):
        try:
            return base64.b64decode(value.value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise DecodeError(f"Invalid base64 in blob value: {exc}") from exc
    raise DecodeError(f"Unsupported wire value: {value!r}")


def _decode_integer(raw: str | int) -> int:
    if isinstance(raw, int):
        number = raw
    else:
        text = raw.strip()
        if not _INTEGER_TEXT.fullmatch(text):
            raise DecodeError(f"Invalid integer value: {raw!r}")
        number = int(text)
    if not _INT64_MIN <= number <= _INT64_MAX:
        raise DecodeError(f"Integer value out of 64-bit range: {raw!r}")
    return number


def encode_value(value: Any) -> WireValue:
    """Tag a native value for the wire.

    Whole-valued floats inside the 64-bit range are reported as integers,
    mirroring how SQLite exposes untyped numeric columns. Values of
    unexpected types fall back to their ``str()`` form.
    """
    if value is None:
        return NullValue()
    if isinstance(value, bool):
        return IntegerValue(value=str(int(value)))
    if isinstance(value, int):
        return IntegerValue(value=str(value))
    if isinstance(value, float):
        # JSON has no representation for inf/nan
        if not math.isfinite(value):
            return TextValue(value=str(value))
        if value.is_integer() and _INT64_MIN <= value <= _INT64_MAX:
            return IntegerValue(value=str(int(value)))
        return FloatValue(value=value)
    if isinstance(value, str):
        return TextValue(value=value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return BlobValue(value=base64.b64encode(bytes(value)).decode("ascii"))
    return TextValue(value=str(value))


def decode_args(values: list[WireValue]) -> list[Any]:
    """Decode a positional argument list."""
    return [decode_value(v) for v in values]


def encode_row(row: tuple | list) -> list[WireValue]:
    """Encode one result row, preserving column order."""
    return [encode_value(cell) for cell in row]
