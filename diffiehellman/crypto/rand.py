"""
Random natural-number sources for private-key generation.

A source is any callable `(bit_length: int) -> int`. The session only
depends on that shape, so callers can plug in an HSM, a KMS, or a fixed
value in tests.

- secure_random_natural : secrets-backed, uniform in [2, 2**bit_length)
- legacy_digit_chunks   : the historic digit-length heuristic; its chunk count
                          follows the prime's decimal length. Do not use it
                          for new keys.
- legacy_source         : binds legacy_digit_chunks to a prime
"""

from __future__ import annotations

import secrets
from typing import Callable

from diffiehellman.common.errors import InvalidParameter
from diffiehellman.crypto.bigint import parse_numeral, to_decimal_string

RandomNaturalNumber = Callable[[int], int]

# legacy chunks are 14 random decimal digits each
_CHUNK_DIGITS = 14
_CHUNK_LOW = 10 ** (_CHUNK_DIGITS - 1)
_CHUNK_HIGH = 10 ** _CHUNK_DIGITS


def _check_bit_length(bit_length: int) -> None:
    if isinstance(bit_length, bool) or not isinstance(bit_length, int) or bit_length < 2:
        raise InvalidParameter("bit_length must be an int >= 2")


def secure_random_natural(bit_length: int) -> int:
    """
    Draw a private exponent from the OS CSPRNG.

    Returns a uniform integer in [2, 2**bit_length); 0 and 1 are excluded
    because they give a trivial public key.
    """
    _check_bit_length(bit_length)
    return secrets.randbelow((1 << bit_length) - 2) + 2


def _check_digit_count(digits: int) -> None:
    if isinstance(digits, bool) or not isinstance(digits, int) or digits < 1:
        raise InvalidParameter("digit count must be an int >= 1")


def legacy_digit_chunks(digits: int) -> int:
    """
    Size the key by the prime's decimal digit count, not its bit length.

    The count is split into digits / 14 chunks, rounded half up, and each
    chunk is drawn from (10^13, 10^14]; the chunks' decimal spellings are
    concatenated. Primes under 7 digits would round to zero chunks, so at
    least one is drawn. The result is accepted as-is: no range or residue check.
    """
    _check_digit_count(digits)
    chunks = max(1, (digits + _CHUNK_DIGITS // 2) // _CHUNK_DIGITS)
    rng = secrets.SystemRandom()
    return parse_numeral("".join(str(rng.randint(_CHUNK_LOW + 1, _CHUNK_HIGH)) for _ in range(chunks)))


def legacy_source(prime: int) -> RandomNaturalNumber:
    """Bind legacy_digit_chunks to `prime` so a session can use it as its source."""
    digits = len(to_decimal_string(prime))
    return lambda bit_length: legacy_digit_chunks(digits)
