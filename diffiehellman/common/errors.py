"""
Exception hierarchy for the Diffie-Hellman library.

Two families matter to callers:

- InvalidParameter   : the caller handed us a value we refuse to store
                       (not a natural number, prime < 11, generator < 2, ...).
- PreconditionNotMet : the caller read something before producing it
                       (public key before generate_keys(), etc.).

Both subclass the matching builtin (ValueError / RuntimeError) so existing
`except ValueError` handlers keep working.
"""


class DiffieHellmanError(Exception):
    """Base class for every error raised by this package."""


class InvalidParameter(DiffieHellmanError, ValueError):
    """A supplied value is not acceptable for the requested field."""


class InvalidNumeral(InvalidParameter):
    """A numeral string contains symbols outside its declared radix."""


class PreconditionNotMet(DiffieHellmanError, RuntimeError):
    """An operation was called out of order."""


class NotSet(PreconditionNotMet):
    """Prime or generator read before being assigned."""


class NotGenerated(PreconditionNotMet):
    """Public key read before generate_keys()."""


class NotComputed(PreconditionNotMet):
    """Shared secret read before compute_secret_key()."""


class DivisionByZero(DiffieHellmanError, ZeroDivisionError):
    """Modular reduction by zero."""
