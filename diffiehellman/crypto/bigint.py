"""
Arbitrary-precision integer engine.

Python ints are already unbounded, so this module is the thin, strict layer
around them that the rest of the package relies on:

- NumeralConfig            : radix + digit alphabet + case sensitivity
- parse_numeral()          : text -> int, strict (no sign/space/underscore)
- to_numeral()             : int -> text in a given NumeralConfig
- to_decimal_string()      : int -> base-10 digits
- to_binary_string()       : int -> base-2 digits (no fixed width)
- powmod()                 : base^exp mod m via square-and-multiply

DECIMAL and BINARY are the two configs used by the key formats; pass them
explicitly wherever a numeral is read or written.
"""

from __future__ import annotations

from typing import Final

from pydantic import BaseModel, ConfigDict, model_validator

from diffiehellman.common.errors import DivisionByZero, InvalidNumeral, InvalidParameter

DEFAULT_ALPHABET: Final[str] = (
    "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
)


def _fold(text: str) -> str:
    # ASCII only: str.lower() would map e.g. KELVIN SIGN onto "k"
    return "".join(ch.lower() if ch.isascii() else ch for ch in text)


class NumeralConfig(BaseModel):
    """How a natural number is spelled in a given radix."""

    model_config = ConfigDict(frozen=True)

    radix: int = 10
    alphabet: str = DEFAULT_ALPHABET
    case_sensitive: bool = True

    @model_validator(mode="after")
    def _check_alphabet(self) -> "NumeralConfig":
        if len(set(self.alphabet)) != len(self.alphabet):
            raise ValueError("alphabet must not contain duplicate symbols")
        if not 2 <= self.radix <= len(self.alphabet):
            raise ValueError(
                f"radix must be between 2 and {len(self.alphabet)} for this alphabet"
            )
        if not self.case_sensitive:
            folded = _fold(self.digits)
            if len(set(folded)) != len(folded):
                raise ValueError(
                    "case-insensitive alphabet has symbols that collide when folded"
                )
        return self

    @property
    def digits(self) -> str:
        """The symbols actually in use: alphabet[:radix]."""
        return self.alphabet[: self.radix]

    def _lookup(self) -> dict:
        if self.case_sensitive:
            return {ch: i for i, ch in enumerate(self.digits)}
        return {_fold(ch): i for i, ch in enumerate(self.digits)}


DECIMAL: Final[NumeralConfig] = NumeralConfig(radix=10)
BINARY: Final[NumeralConfig] = NumeralConfig(radix=2)


def _is_native(config: NumeralConfig) -> bool:
    # int() understands these spellings directly (digits then lowercase letters)
    return config.radix <= 36 and config.alphabet[: config.radix] == DEFAULT_ALPHABET[: config.radix]


# CPython refuses int <-> str conversions beyond ~4300 digits in bases that are
# not powers of two; anything larger is split in halves and recombined.
_SAFE_DIGITS: Final[int] = 4000
_SAFE_BITS: Final[int] = 13000  # < 4000 decimal digits


def _native_int(text: str, radix: int) -> int:
    if len(text) <= _SAFE_DIGITS or radix & (radix - 1) == 0:
        return int(text, radix)
    split = len(text) // 2
    return _native_int(text[:-split], radix) * radix**split + _native_int(text[-split:], radix)


def _decimal_str(value: int) -> str:
    if value.bit_length() <= _SAFE_BITS:
        return str(value)
    split = value.bit_length() * 3 // 20  # about half the decimal digits
    high, low = divmod(value, 10**split)
    return _decimal_str(high) + _decimal_str(low).zfill(split)


def parse_numeral(text: str, config: NumeralConfig = DECIMAL) -> int:
    """
    Parse `text` as a natural number written in `config`.

    Raises:
        InvalidNumeral: empty input, non-string input, or any symbol that is
            not one of config.digits (signs, whitespace and '_' included).
    """
    if not isinstance(text, str):
        raise InvalidNumeral(f"Expected a numeral string, got {type(text).__name__}")
    if not text:
        raise InvalidNumeral("Empty numeral")

    lookup = config._lookup()
    folded = text if config.case_sensitive else _fold(text)
    for ch in folded:
        if ch not in lookup:
            raise InvalidNumeral(f"Invalid symbol {ch!r} for radix {config.radix}")

    if _is_native(config):
        # validated above, so int() only ever sees ASCII symbols of this radix
        return _native_int(folded, config.radix)

    value = 0
    for ch in folded:
        value = value * config.radix + lookup[ch]
    return value


def to_numeral(value: int, config: NumeralConfig = DECIMAL) -> str:
    """Render a natural number in `config`."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameter(f"Expected an int, got {type(value).__name__}")
    if value < 0:
        raise InvalidParameter("Value must be a natural number")

    if config.radix == 10 and config.digits == "0123456789":
        return _decimal_str(value)
    if config.radix == 2 and config.digits == "01":
        return format(value, "b")

    if value == 0:
        return config.digits[0]
    out = []
    while value:
        value, rem = divmod(value, config.radix)
        out.append(config.digits[rem])
    return "".join(reversed(out))


def to_decimal_string(value: int) -> str:
    return to_numeral(value, DECIMAL)


def to_binary_string(value: int) -> str:
    return to_numeral(value, BINARY)


def powmod(base: int, exponent: int, modulus: int) -> int:
    """
    Compute (base^exponent) mod modulus without building the full power.

    Three-argument pow() is left-to-right binary square-and-multiply, so the
    cost is O(log exponent) multiplications of modulus-sized numbers.

    Raises:
        DivisionByZero: if modulus is 0.
        InvalidParameter: if any operand is negative or not an int.
    """
    for name, operand in (("base", base), ("exponent", exponent), ("modulus", modulus)):
        if isinstance(operand, bool) or not isinstance(operand, int):
            raise InvalidParameter(f"{name} must be an int")
        if operand < 0:
            raise InvalidParameter(f"{name} must be a natural number")
    if modulus == 0:
        raise DivisionByZero("Modulus must not be zero")
    return pow(base, exponent, modulus)
