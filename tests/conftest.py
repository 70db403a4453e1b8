import pytest

from diffiehellman.crypto.groups import MODP_2048


class CountingSource:
    """Deterministic random source that records every bit length it was asked for."""

    def __init__(self, *values):
        self._values = list(values)
        self.calls = []

    def __call__(self, bit_length):
        self.calls.append(bit_length)
        return self._values.pop(0)


def square_and_multiply(base, exponent, modulus):
    # independent reference for pow(base, exponent, modulus)
    result = 1
    base %= modulus
    while exponent:
        if exponent & 1:
            result = result * base % modulus
        base = base * base % modulus
        exponent >>= 1
    return result % modulus


@pytest.fixture
def counting_source():
    return CountingSource


@pytest.fixture
def modp():
    return MODP_2048


@pytest.fixture
def reference_powmod():
    return square_and_multiply
