"""
Common helpers: big-endian integer <-> octet string encodings.

Used by:
  - crypto/formats.py (btwoc octet mode)
  - crypto/dh.py (shared key derivation)
"""

from typing import Union

from diffiehellman.common.errors import InvalidNumeral, InvalidParameter


def int_to_big_endian(value: int) -> bytes:
    """
    Convert a natural number to its minimal big-endian byte string.

    Zero encodes as a single 0x00 byte so the result is never empty.
    """
    if value < 0:
        raise InvalidParameter("Value must be a natural number")
    length = max(1, (value.bit_length() + 7) // 8)
    return value.to_bytes(length, byteorder="big")


def int_to_btwoc(value: int) -> bytes:
    """
    Big-endian two's-complement encoding of a natural number.

    Minimal length, with a leading 0x00 whenever the top bit of the first
    byte would otherwise be set (so the value never reads as negative).

        0    -> b"\\x00"
        127  -> b"\\x7f"
        128  -> b"\\x00\\x80"
    """
    if value < 0:
        raise InvalidParameter("Value must be a natural number")
    length = value.bit_length() // 8 + 1
    return value.to_bytes(length, byteorder="big")


def btwoc_to_int(data: Union[bytes, bytearray]) -> int:
    """
    Decode a big-endian two's-complement octet string.

    Raises:
        InvalidNumeral: on empty input.
        InvalidParameter: if the encoded value is negative.
    """
    if not isinstance(data, (bytes, bytearray)):
        raise InvalidNumeral("btwoc octet input must be bytes")
    if len(data) == 0:
        raise InvalidNumeral("btwoc octet input must not be empty")
    if data[0] & 0x80:
        raise InvalidParameter("Invalid parameter; btwoc value is negative")
    return int.from_bytes(bytes(data), byteorder="big")
