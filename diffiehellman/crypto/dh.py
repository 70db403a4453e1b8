"""
Classic DH session + Trunc(SHA256(s)) derivation.

One `DiffieHellman` instance holds one party's view of one exchange:

    prime p, generator g      : public parameters, validated on set
    private key a             : set by caller, or drawn lazily from the
                                injected random source on first use
    public key  A = g^a mod p : produced by generate_keys()
    secret      s = B^a mod p : produced by compute_secret_key(B)

Typical usage:

    alice = DiffieHellman.from_group()
    A = alice.generate_keys().get_public_key()
    # ... send A, receive B ...
    s = alice.compute_secret_key(B)
    key = alice.derive_key(16)

Every setter validates before storing, so a failed call leaves the previous
value untouched. Mutators return the session for chaining.

This is raw, unauthenticated Diffie-Hellman: authenticating the peer's
public key is the caller's job.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Final, Optional, Union

from diffiehellman.common.config import Settings
from diffiehellman.common.errors import (
    InvalidParameter,
    NotComputed,
    NotGenerated,
    NotSet,
)
from diffiehellman.common.utils import int_to_big_endian
from diffiehellman.crypto.bigint import powmod
from diffiehellman.crypto.formats import KeyFormat, KeyValue, convert, parse_key, render_key
from diffiehellman.crypto.groups import GROUPS
from diffiehellman.crypto.rand import RandomNaturalNumber, secure_random_natural

logger = logging.getLogger(__name__)

MIN_PRIME: Final[int] = 11
MIN_GENERATOR: Final[int] = 2

FormatArg = Union[str, KeyFormat]


class DiffieHellman:
    """
    One party's state for a single Diffie-Hellman exchange.

    Not thread-safe; create one session per exchange.
    """

    _prime: Optional[int] = None
    _generator: Optional[int] = None
    _private_key: Optional[int] = None
    _public_key: Optional[int] = None
    _secret_key: Optional[int] = None

    def __init__(
        self,
        prime: KeyValue,
        generator: KeyValue,
        private_key: Optional[KeyValue] = None,
        private_key_format: FormatArg = KeyFormat.NUMBER,
        *,
        random_source: Optional[RandomNaturalNumber] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Args:
            prime: Prime modulus (>= 11), decimal string or int.
            generator: Generator (>= 2), decimal string or int.
            private_key: Optional private exponent; generated lazily if None.
            private_key_format: Format of `private_key`.
            random_source: `(bit_length) -> int` used for lazy generation.
            settings: Behaviour switches; defaults to `Settings()`.

        Raises:
            InvalidParameter: if any supplied value is rejected.
        """
        self.settings = settings if settings is not None else Settings()
        self.random_source = random_source if random_source is not None else secure_random_natural

        self.set_prime(prime)
        self.set_generator(generator)
        if private_key is not None:
            self.set_private_key(private_key, private_key_format)

    @classmethod
    def from_group(
        cls,
        name: Optional[str] = None,
        private_key: Optional[KeyValue] = None,
        private_key_format: FormatArg = KeyFormat.NUMBER,
        *,
        random_source: Optional[RandomNaturalNumber] = None,
        settings: Optional[Settings] = None,
    ) -> "DiffieHellman":
        """Session over a published group; `name` defaults to settings.default_group."""
        settings = settings if settings is not None else Settings()
        name = name if name is not None else settings.default_group
        try:
            group = GROUPS[name]
        except KeyError as exc:
            raise InvalidParameter(f"Unknown group: {name!r}") from exc

        return cls(
            group.prime,
            group.generator,
            private_key,
            private_key_format,
            random_source=random_source,
            settings=settings,
        )

    # ------------------------------------------------------------------
    # Format helpers
    # ------------------------------------------------------------------

    def _parse(self, value: KeyValue, fmt: FormatArg) -> int:
        return parse_key(value, fmt, btwoc_octets=self.settings.btwoc_octets)

    def _render(self, value: int, fmt: FormatArg) -> KeyValue:
        return render_key(value, fmt, btwoc_octets=self.settings.btwoc_octets)

    def convert(
        self,
        number: KeyValue,
        input_format: FormatArg = KeyFormat.NUMBER,
        output_format: FormatArg = KeyFormat.BINARY,
    ) -> KeyValue:
        """Convert between key formats using this session's btwoc mode."""
        return convert(number, input_format, output_format, btwoc_octets=self.settings.btwoc_octets)

    def _has_derived_keys(self) -> bool:
        return self._public_key is not None or self._secret_key is not None

    # ------------------------------------------------------------------
    # Prime / generator
    # ------------------------------------------------------------------

    def set_prime(self, number: KeyValue) -> "DiffieHellman":
        """
        Set the prime modulus. Primality itself is not checked.

        Replacing the prime after keys were derived makes those keys
        meaningless; this is logged, not prevented.

        Raises:
            InvalidParameter: not a natural number, or smaller than 11.
        """
        value = self._parse(number, KeyFormat.NUMBER)
        if value < MIN_PRIME:
            raise InvalidParameter(
                "Invalid parameter; not a positive natural number or too small: "
                "should be a large natural number prime"
            )
        if self._prime is not None and value != self._prime and self._has_derived_keys():
            logger.warning("Prime replaced after keys were derived; existing keys are stale")

        self._prime = value
        logger.debug("Prime set (%d bits)", value.bit_length())
        return self

    def get_prime(self, format: FormatArg = KeyFormat.NUMBER) -> KeyValue:
        return self._render(self._require_prime(), format)

    def set_generator(self, number: KeyValue) -> "DiffieHellman":
        """
        Raises:
            InvalidParameter: not a natural number, or smaller than 2.
        """
        value = self._parse(number, KeyFormat.NUMBER)
        if value < MIN_GENERATOR:
            raise InvalidParameter("Invalid parameter; not a positive natural number greater than 1")
        if self._generator is not None and value != self._generator and self._has_derived_keys():
            logger.warning("Generator replaced after keys were derived; existing keys are stale")

        self._generator = value
        return self

    def get_generator(self, format: FormatArg = KeyFormat.NUMBER) -> KeyValue:
        return self._render(self._require_generator(), format)

    # ------------------------------------------------------------------
    # Private key
    # ------------------------------------------------------------------

    def set_private_key(self, number: KeyValue, format: FormatArg = KeyFormat.NUMBER) -> "DiffieHellman":
        """
        Set the private exponent, given in any key format.

        Raises:
            InvalidParameter: if the value is not a natural number.
        """
        self._private_key = self._parse(number, format)
        return self

    def get_private_key(self, format: FormatArg = KeyFormat.NUMBER) -> KeyValue:
        """Return the private key, generating (and caching) one if unset."""
        return self._render(self._require_private_key(), format)

    def has_private_key(self) -> bool:
        return self._private_key is not None

    def generate_private_key(self) -> str:
        """
        Draw a fresh private exponent from the random source, sized to the
        prime's bit length. The result is not stored.

        Returns:
            The candidate as a decimal string.
        """
        bits = self._require_prime().bit_length()
        candidate = self.random_source(bits)
        if isinstance(candidate, bool) or not isinstance(candidate, int):
            raise InvalidParameter("Random source must return an int")
        logger.debug("Generated private key candidate for %d-bit prime", bits)
        return self._render(candidate, KeyFormat.NUMBER)

    def _require_private_key(self) -> int:
        if self._private_key is None:
            self.set_private_key(self.generate_private_key())
        return self._private_key

    def _require_prime(self) -> int:
        if self._prime is None:
            raise NotSet("No prime number has been set")
        return self._prime

    def _require_generator(self) -> int:
        if self._generator is None:
            raise NotSet("No generator number has been set")
        return self._generator

    # ------------------------------------------------------------------
    # Public key
    # ------------------------------------------------------------------

    def generate_keys(self) -> "DiffieHellman":
        """
        Compute our public key A = g^a mod p, generating a private key first
        if none is set.

        Returns:
            self, for chaining.
        """
        prime = self._require_prime()
        generator = self._require_generator()
        self._public_key = powmod(generator, self._require_private_key(), prime)
        logger.debug("Public key generated (%d-bit prime)", prime.bit_length())
        return self

    def set_public_key(self, number: KeyValue, format: FormatArg = KeyFormat.NUMBER) -> "DiffieHellman":
        """
        Raises:
            InvalidParameter: not a natural number, or (strict mode) outside 1 < A < p-1.
        """
        value = self._parse(number, format)
        self._check_public_value(value)
        self._public_key = value
        return self

    def get_public_key(self, format: FormatArg = KeyFormat.NUMBER) -> KeyValue:
        """Our public key, for sending to the other party."""
        if self._public_key is None:
            raise NotGenerated(
                "A public key has not yet been generated using a prior call to generate_keys()"
            )
        return self._render(self._public_key, format)

    def _check_public_value(self, value: int) -> None:
        prime = self._require_prime()
        if 1 < value < prime - 1:
            return
        if self.settings.strict_public_key:
            raise InvalidParameter("Invalid public key; must satisfy 1 < key < prime - 1")
        logger.warning("Public key outside (1, p-1); the derived secret is not secure")

    # ------------------------------------------------------------------
    # Shared secret
    # ------------------------------------------------------------------

    def compute_secret_key(
        self,
        public_key: KeyValue,
        public_key_format: FormatArg = KeyFormat.NUMBER,
        secret_key_format: FormatArg = KeyFormat.NUMBER,
    ) -> KeyValue:
        """
        Compute s = B^a mod p from the other party's public key B.

        Both parties end up with the same value. Without strict_public_key
        the range of B is not enforced (a warning is logged instead).

        Args:
            public_key: Remote public key B.
            public_key_format: Format of `public_key`.
            secret_key_format: Format of the returned secret.

        Returns:
            The shared secret in `secret_key_format`.

        Raises:
            InvalidParameter: if B is not a natural number (or out of range
                in strict mode).
        """
        remote = self._parse(public_key, public_key_format)
        self._check_public_value(remote)

        prime = self._require_prime()
        self._secret_key = powmod(remote, self._require_private_key(), prime)
        logger.debug("Shared secret computed (%d-bit prime)", prime.bit_length())
        return self.get_shared_secret_key(secret_key_format)

    def get_shared_secret_key(self, format: FormatArg = KeyFormat.NUMBER) -> KeyValue:
        if self._secret_key is None:
            raise NotComputed("A secret key has not yet been computed; call compute_secret_key() first")
        return self._render(self._secret_key, format)

    def derive_key(self, length: int = 16) -> bytes:
        """
        Derive a symmetric key from the shared secret:

            K = Trunc_length(SHA256(big-endian(s)))

        Args:
            length: Output size in bytes, 1..32 (16 for AES-128).

        Raises:
            NotComputed: before compute_secret_key().
            InvalidParameter: on a bad length.
        """
        if not 1 <= length <= hashlib.sha256().digest_size:
            raise InvalidParameter("length must be between 1 and 32 bytes")
        if self._secret_key is None:
            raise NotComputed("A secret key has not yet been computed; call compute_secret_key() first")

        digest = hashlib.sha256(int_to_big_endian(self._secret_key)).digest()
        return digest[:length]
