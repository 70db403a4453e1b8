import hashlib
import logging

import pytest

from diffiehellman.common.config import Settings
from diffiehellman.common.errors import (
    InvalidNumeral,
    InvalidParameter,
    NotComputed,
    NotGenerated,
    NotSet,
    PreconditionNotMet,
)
from diffiehellman.crypto.dh import DiffieHellman
from diffiehellman.crypto.groups import MODP_2048, RFC5114_2048_256
from diffiehellman.crypto.rand import legacy_source


@pytest.fixture
def alice():
    return DiffieHellman("563", "5", "9")


@pytest.fixture
def bob():
    return DiffieHellman("563", "5", "14")


# ---------------------------------------------------------------------------
# Exchange
# ---------------------------------------------------------------------------


def test_should_generate_shared_keys(alice, bob):
    alice.generate_keys()
    bob.generate_keys()

    assert alice.get_public_key() == "78"
    assert bob.get_public_key() == "534"

    alice_secret = alice.compute_secret_key(bob.get_public_key())
    bob_secret = bob.compute_secret_key(alice.get_public_key())

    assert alice_secret == "117"
    assert bob_secret == "117"
    assert alice.get_shared_secret_key() == "117"


def test_exchange_in_binary_format(alice, bob):
    alice.generate_keys()
    bob.generate_keys()

    assert alice.get_public_key("binary") == "1001110"
    assert bob.compute_secret_key(alice.get_public_key("binary"), "binary") == "117"
    assert alice.compute_secret_key(bob.get_public_key("binary"), "binary", "binary") == "1110101"


def test_generate_keys_is_chainable(alice):
    assert alice.generate_keys() is alice
    assert alice.set_prime("563").set_generator("5").set_private_key("9") is alice


def test_int_inputs_are_accepted():
    session = DiffieHellman(563, 5, 9).generate_keys()
    assert session.get_public_key() == "78"
    assert session.compute_secret_key(534) == "117"


def test_primes_beyond_interpreter_digit_limit():
    prime = (1 << 16384) + 1
    session = DiffieHellman(prime, 2, 3)
    decimal = session.get_prime()

    assert DiffieHellman(decimal, "2", "3").get_prime() == decimal
    assert session.convert(decimal, "number", "binary") == "1" + "0" * 16383 + "1"
    assert session.generate_keys().get_public_key() == "8"

    wide = DiffieHellman("9" * 5000, "2")
    assert wide.get_prime() == "9" * 5000


def test_public_key_matches_independent_modexp_on_2048_bit_prime(modp, reference_powmod):
    private_key = (1 << 2000) + 0xC0FFEE
    session = DiffieHellman(str(modp.prime), str(modp.generator), str(private_key))

    session.generate_keys()

    expected = reference_powmod(modp.generator, private_key, modp.prime)
    assert session.get_public_key() == str(expected)


def test_secrets_agree_on_2048_bit_group():
    alice = DiffieHellman.from_group().generate_keys()
    bob = DiffieHellman.from_group().generate_keys()

    assert alice.compute_secret_key(bob.get_public_key()) == bob.compute_secret_key(alice.get_public_key())
    assert alice.get_private_key() != bob.get_private_key()


def test_secrets_agree_on_subgroup_parameters():
    alice = DiffieHellman.from_group("rfc5114-2048").generate_keys()
    bob = DiffieHellman.from_group("rfc5114-2048").generate_keys()

    assert alice.get_generator() == str(RFC5114_2048_256.generator)
    assert alice.compute_secret_key(bob.get_public_key()) == bob.compute_secret_key(alice.get_public_key())


def test_recompute_overwrites_secret(alice):
    alice.generate_keys()
    alice.compute_secret_key("534")
    assert alice.compute_secret_key("78") == str(pow(78, 9, 563))
    assert alice.get_shared_secret_key() == str(pow(78, 9, 563))


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "prime, generator, private_key",
    [
        ("abc", "5", None),
        ("-563", "5", None),
        ("10", "5", None),
        (10, "5", None),
        (-563, "5", None),
        ("", "5", None),
        ("563", "1", None),
        ("563", "0", None),
        ("563", "x", None),
        ("563", "-5", None),
        ("563", "5", "12a"),
        ("563", "5", "-9"),
        ("563", "5", -9),
    ],
)
def test_construct_rejects_invalid_input(prime, generator, private_key):
    with pytest.raises(InvalidParameter):
        DiffieHellman(prime, generator, private_key)


def test_smallest_accepted_values():
    session = DiffieHellman("11", "2", "0")
    assert session.get_prime() == "11"
    assert session.get_generator() == "2"
    assert session.get_private_key() == "0"


def test_private_key_in_binary_format():
    session = DiffieHellman("563", "5", "1001", "binary")
    assert session.get_private_key() == "9"
    assert session.get_private_key("binary") == "1001"

    with pytest.raises(InvalidNumeral):
        session.set_private_key("1021", "binary")


@pytest.mark.parametrize("bad", ["abc", "-5", "1.5", ""])
def test_compute_secret_key_rejects_non_natural(alice, bad):
    with pytest.raises(InvalidParameter):
        alice.compute_secret_key(bad)
    with pytest.raises(NotComputed):
        alice.get_shared_secret_key()


@pytest.mark.parametrize("bad", ["abc", "-5", -5])
def test_set_public_key_rejects_non_natural(alice, bad):
    with pytest.raises(InvalidParameter):
        alice.set_public_key(bad)


def test_failed_setters_keep_previous_values(alice):
    with pytest.raises(InvalidParameter):
        alice.set_prime("7")
    with pytest.raises(InvalidParameter):
        alice.set_generator("1")
    with pytest.raises(InvalidParameter):
        alice.set_private_key("nine")

    assert alice.get_prime() == "563"
    assert alice.get_generator() == "5"
    assert alice.get_private_key() == "9"


def test_unknown_format_is_rejected(alice):
    with pytest.raises(InvalidParameter):
        alice.get_prime("hex")


def test_set_public_key(alice):
    alice.set_public_key("1001110", "binary")
    assert alice.get_public_key() == "78"


# ---------------------------------------------------------------------------
# Preconditions
# ---------------------------------------------------------------------------


def test_public_key_before_generate_keys(alice):
    with pytest.raises(NotGenerated):
        alice.get_public_key()
    with pytest.raises(PreconditionNotMet):
        alice.get_public_key()


def test_secret_before_compute(alice):
    alice.generate_keys()
    with pytest.raises(NotComputed):
        alice.get_shared_secret_key()
    with pytest.raises(PreconditionNotMet):
        alice.derive_key()


def test_prime_and_generator_not_set():
    # the constructor always sets both; only a bare instance reaches this state
    blank = DiffieHellman.__new__(DiffieHellman)
    with pytest.raises(NotSet):
        blank._require_prime()
    with pytest.raises(NotSet):
        blank._require_generator()
    with pytest.raises(NotSet):
        blank.get_prime()
    with pytest.raises(NotSet):
        blank.get_generator()


# ---------------------------------------------------------------------------
# Lazy private key generation
# ---------------------------------------------------------------------------


def test_lazy_private_key_is_generated_once(counting_source):
    source = counting_source(9, 14)
    session = DiffieHellman("563", "5", random_source=source)
    assert not session.has_private_key()

    first = session.generate_keys().get_public_key()
    second = session.generate_keys().get_public_key()

    assert first == second == "78"
    assert session.has_private_key()
    assert source.calls == [10]  # 563 is a 10-bit number


def test_get_private_key_triggers_generation(counting_source):
    source = counting_source(14)
    session = DiffieHellman("563", "5", random_source=source)

    assert session.get_private_key() == "14"
    assert session.get_private_key() == "14"
    assert len(source.calls) == 1


def test_explicit_private_key_replaces_generated_one(counting_source):
    session = DiffieHellman("563", "5", random_source=counting_source(9))
    assert session.generate_keys().get_public_key() == "78"

    session.set_private_key("14")
    assert session.generate_keys().get_public_key() == "534"


def test_generate_private_key_does_not_store(counting_source):
    session = DiffieHellman("563", "5", random_source=counting_source(42))
    assert session.generate_private_key() == "42"
    assert not session.has_private_key()


def test_default_source_sizes_key_to_prime(modp):
    session = DiffieHellman(modp.prime, modp.generator)
    key = int(session.get_private_key())
    assert 2 <= key < 1 << modp.prime.bit_length()


def test_legacy_source_is_accepted_unconditionally(modp):
    session = DiffieHellman(modp.prime, modp.generator, random_source=legacy_source(modp.prime))
    session.generate_keys()
    # 617 digits -> 44 chunks of 14 or 15 digits
    assert 44 * 14 <= len(session.get_private_key()) <= 44 * 15


@pytest.mark.parametrize("value", [-1, "9", 9.0])
def test_bad_random_source_output(counting_source, value):
    session = DiffieHellman("563", "5", random_source=counting_source(value))
    with pytest.raises(InvalidParameter):
        session.generate_keys()
    assert not session.has_private_key()


# ---------------------------------------------------------------------------
# Public key range
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("remote, expected", [("0", "0"), ("1", "1"), ("600", str(pow(600, 9, 563)))])
def test_out_of_range_public_key_is_permitted_by_default(alice, caplog, remote, expected):
    with caplog.at_level(logging.WARNING, logger="diffiehellman.crypto.dh"):
        assert alice.compute_secret_key(remote) == expected
    assert any("outside" in m for m in caplog.messages)


@pytest.mark.parametrize("remote", ["0", "1", "562", "563", "1000"])
def test_strict_mode_rejects_out_of_range_public_key(remote):
    session = DiffieHellman("563", "5", "9", settings=Settings(strict_public_key=True))
    with pytest.raises(InvalidParameter):
        session.compute_secret_key(remote)
    with pytest.raises(InvalidParameter):
        session.set_public_key(remote)


def test_strict_mode_accepts_in_range_public_key():
    session = DiffieHellman("563", "5", "9", settings=Settings(strict_public_key=True))
    assert session.compute_secret_key("534") == "117"


# ---------------------------------------------------------------------------
# Parameter changes after derivation
# ---------------------------------------------------------------------------


def test_replacing_prime_after_derivation_warns(alice, caplog):
    alice.generate_keys()
    with caplog.at_level(logging.WARNING, logger="diffiehellman.crypto.dh"):
        alice.set_prime("569")
    assert any("stale" in m for m in caplog.messages)
    # the stale public key is still readable; the hazard is documented, not enforced
    assert alice.get_public_key() == "78"


def test_setting_same_prime_does_not_warn(alice, caplog):
    alice.generate_keys()
    with caplog.at_level(logging.WARNING, logger="diffiehellman.crypto.dh"):
        alice.set_prime("563")
    assert [r for r in caplog.records if r.levelno >= logging.WARNING] == []


def test_key_material_is_not_logged(caplog):
    with caplog.at_level(logging.DEBUG, logger="diffiehellman.crypto.dh"):
        session = DiffieHellman("563", "5", "9").generate_keys()
        session.compute_secret_key("534")
    messages = " ".join(caplog.messages)
    assert messages
    assert "117" not in messages
    assert "78" not in messages


# ---------------------------------------------------------------------------
# btwoc octets
# ---------------------------------------------------------------------------


def test_btwoc_defaults_to_binary_digits(alice):
    alice.generate_keys()
    assert alice.get_public_key("btwoc") == "1001110"
    assert alice.convert("78", "number", "btwoc") == "1001110"


def test_btwoc_octets_setting():
    settings = Settings(btwoc_octets=True)
    alice = DiffieHellman("563", "5", "9", settings=settings).generate_keys()
    bob = DiffieHellman("563", "5", "14", settings=settings).generate_keys()

    assert alice.get_public_key("btwoc") == b"\x4e"
    assert bob.get_public_key("btwoc") == b"\x02\x16"
    assert alice.compute_secret_key(bob.get_public_key("btwoc"), "btwoc", "btwoc") == b"\x75"
    assert bob.convert(b"\x00\x80", "btwoc", "number") == "128"


# ---------------------------------------------------------------------------
# Groups and key derivation
# ---------------------------------------------------------------------------


def test_from_group_defaults(modp):
    session = DiffieHellman.from_group()
    assert session.get_prime() == str(modp.prime)
    assert session.get_generator() == "2"


def test_from_group_uses_settings_default():
    session = DiffieHellman.from_group(settings=Settings(default_group="rfc5114-2048"))
    assert session.get_prime() == str(RFC5114_2048_256.prime)


def test_from_group_with_private_key():
    session = DiffieHellman.from_group("modp2048", "12345").generate_keys()
    assert session.get_public_key() == str(pow(2, 12345, MODP_2048.prime))


def test_from_group_unknown_name():
    with pytest.raises(InvalidParameter):
        DiffieHellman.from_group("modp1024")


def test_derive_key(alice):
    alice.compute_secret_key("534")
    assert alice.derive_key() == hashlib.sha256(b"\x75").digest()[:16]
    assert alice.derive_key(32) == hashlib.sha256(b"\x75").digest()


def test_derive_key_both_sides_agree():
    alice = DiffieHellman.from_group().generate_keys()
    bob = DiffieHellman.from_group().generate_keys()
    alice.compute_secret_key(bob.get_public_key())
    bob.compute_secret_key(alice.get_public_key())
    assert alice.derive_key() == bob.derive_key()


@pytest.mark.parametrize("length", [0, 33, -1])
def test_derive_key_length_bounds(alice, length):
    alice.compute_secret_key("534")
    with pytest.raises(InvalidParameter):
        alice.derive_key(length)
