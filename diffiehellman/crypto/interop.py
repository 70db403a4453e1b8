"""
Bridge between DiffieHellman sessions and PyCA `cryptography` DH keys.

Lets a session hand its key pair to code that expects
`cryptography.hazmat.primitives.asymmetric.dh` objects, or adopt a key
pair generated by OpenSSL.

Note that OpenSSL refuses primes below 512 bits, so toy parameters such as
p = 563 cannot cross this bridge.

Recent `cryptography` releases emit CryptographyDeprecationWarning for the
finite-field DH API used here, and a future release may drop it. The rest of
the package does not import `cryptography`, so only this bridge is affected.
"""

from __future__ import annotations

from typing import Optional

from cryptography.hazmat.primitives.asymmetric import dh

from diffiehellman.common.config import Settings
from diffiehellman.common.errors import InvalidParameter, NotGenerated
from diffiehellman.crypto.bigint import parse_numeral
from diffiehellman.crypto.dh import DiffieHellman
from diffiehellman.crypto.formats import KeyFormat


def _parameter_numbers(session: DiffieHellman) -> dh.DHParameterNumbers:
    return dh.DHParameterNumbers(
        parse_numeral(session.get_prime(KeyFormat.NUMBER)),
        parse_numeral(session.get_generator(KeyFormat.NUMBER)),
    )


def to_private_key(session: DiffieHellman) -> dh.DHPrivateKey:
    """
    Export the session's key pair. Runs generate_keys() first if the
    session has no public key yet.

    Raises:
        InvalidParameter: if cryptography rejects the parameters.
    """
    try:
        y = parse_numeral(session.get_public_key(KeyFormat.NUMBER))
    except NotGenerated:
        session.generate_keys()
        y = parse_numeral(session.get_public_key(KeyFormat.NUMBER))
    x = parse_numeral(session.get_private_key(KeyFormat.NUMBER))

    try:
        numbers = dh.DHPrivateNumbers(x, dh.DHPublicNumbers(y, _parameter_numbers(session)))
        return numbers.private_key()
    except ValueError as exc:
        raise InvalidParameter(f"cryptography rejected the DH parameters: {exc}") from exc


def to_public_key(session: DiffieHellman) -> dh.DHPublicKey:
    """Export only the public half (generate_keys() must have run)."""
    y = parse_numeral(session.get_public_key(KeyFormat.NUMBER))
    try:
        return dh.DHPublicNumbers(y, _parameter_numbers(session)).public_key()
    except ValueError as exc:
        raise InvalidParameter(f"cryptography rejected the DH public key: {exc}") from exc


def session_from_private_key(
    key: dh.DHPrivateKey,
    *,
    settings: Optional[Settings] = None,
) -> DiffieHellman:
    """Adopt a PyCA private key; the returned session has its public key ready."""
    numbers = key.private_numbers()
    pn = numbers.public_numbers.parameter_numbers
    session = DiffieHellman(pn.p, pn.g, numbers.x, settings=settings)
    return session.generate_keys()


def peer_public_value(public_key: dh.DHPublicKey) -> int:
    """The integer y of a peer's PyCA public key, ready for compute_secret_key()."""
    return public_key.public_numbers().y
