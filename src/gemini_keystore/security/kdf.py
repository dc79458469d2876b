"""Argon2id key derivation for the credential store."""
import os
from dataclasses import dataclass

from argon2.low_level import ARGON2_VERSION, Type, core, error_to_str, ffi, lib

from gemini_keystore.core.exceptions import DerivationResourceExhaustedError
from .secure_bytes import SecureBytes, BytesLike, zeroize

SALT_SIZE = 16
KEY_SIZE = 32


@dataclass(frozen=True)
class KdfProfile:
    """Argon2id cost parameters. ``memory_cost`` is in KiB."""

    time_cost: int
    memory_cost: int
    parallelism: int = 1
    key_len: int = KEY_SIZE


# libsodium's crypto_pwhash OPSLIMIT/MEMLIMIT_INTERACTIVE for Argon2id v1.3.
# Not stored in the container: changing it requires a new magic tag.
INTERACTIVE = KdfProfile(time_cost=2, memory_cost=65536, parallelism=1)


def generate_salt(length: int = SALT_SIZE) -> bytes:
    """Return a cryptographically secure random salt."""
    return os.urandom(length)


def derive_key(
    passphrase: SecureBytes | BytesLike | str,
    salt: bytes,
    profile: KdfProfile = INTERACTIVE,
) -> SecureBytes:
    """
    Derive a symmetric key from ``passphrase`` and ``salt`` using Argon2id.

    Deterministic for the same inputs and profile, and identical to
    ``argon2.low_level.hash_secret_raw`` with ``Type.ID``. The key comes back
    as a :class:`SecureBytes` owned by the caller.

    Argon2 runs through the low-level ``argon2_ctx`` binding so it reads the
    passphrase from its own buffer and writes the key into one we wipe;
    ``hash_secret_raw`` would leave copies of both in memory we cannot reach.

    Raises:
        DerivationResourceExhaustedError: Argon2 could not run with the
            requested limits (typically a failed memory allocation).
    """
    if len(salt) != SALT_SIZE:
        raise ValueError(f"salt must be {SALT_SIZE} bytes, got {len(salt)}")

    owned = None if isinstance(passphrase, SecureBytes) else SecureBytes(passphrase)
    secret = passphrase if owned is None else owned
    out = bytearray(profile.key_len)
    try:
        pwd = secret.view()
        salt = bytes(salt)
        # keep every cdata referenced until core() has returned
        c_out = ffi.from_buffer("uint8_t[]", out, require_writable=True)
        c_pwd = ffi.from_buffer("uint8_t[]", pwd)
        c_salt = ffi.from_buffer("uint8_t[]", salt)
        ctx = ffi.new(
            "argon2_context *",
            dict(
                version=ARGON2_VERSION,
                out=c_out,
                outlen=profile.key_len,
                pwd=c_pwd,
                pwdlen=len(pwd),
                salt=c_salt,
                saltlen=len(salt),
                secret=ffi.NULL,
                secretlen=0,
                ad=ffi.NULL,
                adlen=0,
                t_cost=profile.time_cost,
                m_cost=profile.memory_cost,
                lanes=profile.parallelism,
                threads=profile.parallelism,
                allocate_cbk=ffi.NULL,
                free_cbk=ffi.NULL,
                flags=lib.ARGON2_DEFAULT_FLAGS,
            ),
        )
        rv = core(ctx, Type.ID.value)
        if rv != lib.ARGON2_OK:
            raise DerivationResourceExhaustedError(f"key derivation failed: {error_to_str(rv)}")
        return SecureBytes(out)
    finally:
        zeroize(out)
        if owned is not None:
            owned.wipe()
