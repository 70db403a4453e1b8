"""
Key formats and conversion between them.

Formats:

    number  canonical decimal digit string (an int is also accepted on input)
    binary  base-2 digit string, no fixed width
    btwoc   "big two's-complement"

btwoc has two renderings. By default it is spelled exactly like `binary`,
which is what existing peers of this library expect. With
btwoc_octets=True it becomes a real big-endian two's-complement octet
string (bytes) as used by OpenID / PHP implementations.
"""

from __future__ import annotations

from enum import Enum
from typing import Union

from diffiehellman.common.errors import InvalidParameter
from diffiehellman.common.utils import btwoc_to_int, int_to_btwoc
from diffiehellman.crypto.bigint import BINARY, DECIMAL, parse_numeral, to_numeral

KeyValue = Union[str, int, bytes]


class KeyFormat(str, Enum):
    NUMBER = "number"
    BINARY = "binary"
    BTWOC = "btwoc"


def as_format(fmt: Union[str, KeyFormat]) -> KeyFormat:
    """Accept either a KeyFormat or its string value."""
    try:
        return KeyFormat(fmt)
    except ValueError as exc:
        raise InvalidParameter(f"Unknown key format: {fmt!r}") from exc


def parse_key(value: KeyValue, fmt: Union[str, KeyFormat] = KeyFormat.NUMBER, *, btwoc_octets: bool = False) -> int:
    """
    Normalize `value`, given in `fmt`, to a natural number.

    Raises:
        InvalidNumeral: malformed input for the declared format.
        InvalidParameter: a negative int, or a negative btwoc octet string.
    """
    fmt = as_format(fmt)

    if fmt is KeyFormat.NUMBER:
        if isinstance(value, int) and not isinstance(value, bool):
            if value < 0:
                raise InvalidParameter("Invalid parameter; not a positive natural number")
            return value
        return parse_numeral(value, DECIMAL)

    if fmt is KeyFormat.BTWOC and btwoc_octets:
        return btwoc_to_int(value)

    return parse_numeral(value, BINARY)


def render_key(value: int, fmt: Union[str, KeyFormat] = KeyFormat.NUMBER, *, btwoc_octets: bool = False) -> KeyValue:
    """Render a natural number in `fmt`."""
    fmt = as_format(fmt)

    if fmt is KeyFormat.NUMBER:
        return to_numeral(value, DECIMAL)
    if fmt is KeyFormat.BTWOC and btwoc_octets:
        return int_to_btwoc(value)
    return to_numeral(value, BINARY)


def convert(
    value: KeyValue,
    input_format: Union[str, KeyFormat] = KeyFormat.NUMBER,
    output_format: Union[str, KeyFormat] = KeyFormat.BINARY,
    *,
    btwoc_octets: bool = False,
) -> KeyValue:
    """
    Convert `value` between key formats.

    Equal formats return the input untouched (no validation). Otherwise the
    value goes through its natural-number form and is re-rendered.
    """
    if as_format(input_format) is as_format(output_format):
        return value
    number = parse_key(value, input_format, btwoc_octets=btwoc_octets)
    return render_key(number, output_format, btwoc_octets=btwoc_octets)
