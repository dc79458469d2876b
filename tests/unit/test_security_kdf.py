"""Unit tests for the Key Derivation Function (KDF) module."""

from unittest.mock import patch

import pytest
from argon2.low_level import Type, ffi, hash_secret_raw, lib

from gemini_keystore.core.exceptions import DerivationResourceExhaustedError
from gemini_keystore.security.kdf import (
    INTERACTIVE,
    KdfProfile,
    derive_key,
    generate_salt,
)
from gemini_keystore.security.secure_bytes import SecureBytes

FAST = KdfProfile(time_cost=1, memory_cost=8, parallelism=1)


def test_generate_salt_defaults():
    """Salt generation returns 16 random bytes."""
    salt = generate_salt()
    assert isinstance(salt, bytes)
    assert len(salt) == 16
    assert generate_salt() != salt


def test_interactive_profile_matches_libsodium_preset():
    # crypto_pwhash_OPSLIMIT_INTERACTIVE / MEMLIMIT_INTERACTIVE (64 MiB)
    assert INTERACTIVE.time_cost == 2
    assert INTERACTIVE.memory_cost == 64 * 1024
    assert INTERACTIVE.parallelism == 1
    assert INTERACTIVE.key_len == 32


def test_derive_key_returns_32_byte_secure_bytes():
    key = derive_key(b"hunter2", generate_salt(), FAST)
    assert isinstance(key, SecureBytes)
    assert len(key) == 32


def test_derive_key_deterministic():
    salt = generate_salt()
    k1 = derive_key(b"hunter2", salt, FAST)
    k2 = derive_key(b"hunter2", salt, FAST)
    assert bytes(k1.view()) == bytes(k2.view())


def test_derive_key_input_kinds_agree():
    """str, bytes and SecureBytes passphrases derive the same key."""
    salt = generate_salt()
    from_str = derive_key("hunter2", salt, FAST)
    from_bytes = derive_key(b"hunter2", salt, FAST)
    from_secure = derive_key(SecureBytes(b"hunter2"), salt, FAST)
    assert bytes(from_str.view()) == bytes(from_bytes.view()) == bytes(from_secure.view())


def test_derive_key_depends_on_salt_and_passphrase():
    salt = generate_salt()
    base = bytes(derive_key(b"hunter2", salt, FAST).view())
    assert bytes(derive_key(b"hunter3", salt, FAST).view()) != base
    assert bytes(derive_key(b"hunter2", generate_salt(), FAST).view()) != base


def test_derive_key_depends_on_profile():
    salt = generate_salt()
    a = derive_key(b"pw", salt, FAST)
    b = derive_key(b"pw", salt, KdfProfile(time_cost=2, memory_cost=8, parallelism=1))
    assert bytes(a.view()) != bytes(b.view())


def test_derive_key_rejects_bad_salt_length():
    with pytest.raises(ValueError, match="salt"):
        derive_key(b"pw", b"short", FAST)


def test_derive_key_matches_hash_secret_raw():
    """The in-place binding produces the same key as argon2-cffi's high-level call."""
    salt = generate_salt()
    key = derive_key(b"hunter2", salt, FAST)
    expected = hash_secret_raw(
        secret=b"hunter2",
        salt=salt,
        time_cost=1,
        memory_cost=8,
        parallelism=1,
        hash_len=32,
        type=Type.ID,
    )
    assert bytes(key.view()) == expected


def test_allocation_failure_maps_to_resource_exhausted():
    with patch("gemini_keystore.security.kdf.core", return_value=lib.ARGON2_MEMORY_ALLOCATION_ERROR):
        with pytest.raises(DerivationResourceExhaustedError, match="Memory allocation"):
            derive_key(b"pw", generate_salt(), FAST)


def test_derive_key_passes_argon2id_parameters():
    seen = {}

    def fake_core(ctx, type_):
        seen.update(
            type=type_,
            t_cost=ctx.t_cost,
            m_cost=ctx.m_cost,
            lanes=ctx.lanes,
            outlen=ctx.outlen,
            salt=bytes(ffi.buffer(ctx.salt, ctx.saltlen)),
        )
        return lib.ARGON2_OK

    salt = b"\xaa" * 16
    with patch("gemini_keystore.security.kdf.core", side_effect=fake_core):
        derive_key(b"pw", salt)

    assert seen["type"] == Type.ID.value
    assert seen["t_cost"] == 2
    assert seen["m_cost"] == 65536
    assert seen["lanes"] == 1
    assert seen["outlen"] == 32
    assert seen["salt"] == salt


def test_derive_key_reads_passphrase_in_place():
    """Argon2 is handed the SecureBytes storage itself, not a copy."""
    passphrase = SecureBytes(b"hunter2")
    seen = {}

    def fake_core(ctx, type_):
        seen["pwd"] = int(ffi.cast("uintptr_t", ctx.pwd))
        return lib.ARGON2_OK

    with patch("gemini_keystore.security.kdf.core", side_effect=fake_core):
        derive_key(passphrase, generate_salt(), FAST)

    storage = ffi.cast("uint8_t *", ffi.from_buffer(passphrase.view()))
    assert seen["pwd"] == int(ffi.cast("uintptr_t", storage))
    assert not passphrase.wiped
