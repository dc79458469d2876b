"""Binary container format for the encrypted API key.

Layout (fixed offsets, no length fields):
- 10 bytes: magic b'GEMINIENC1'
- 16 bytes: Argon2id salt
- 24 bytes: XChaCha20-Poly1305 nonce
- n bytes:  ciphertext followed by the 16-byte Poly1305 tag (n >= 16)

KDF cost parameters are not stored; they are implied by the magic tag.
Pure functions only: no crypto, no I/O.
"""
from dataclasses import dataclass

from .exceptions import NotAContainerError, TruncatedContainerError

MAGIC = b"GEMINIENC1"
MAGIC_SIZE = len(MAGIC)
SALT_SIZE = 16
NONCE_SIZE = 24
TAG_SIZE = 16
HEADER_SIZE = MAGIC_SIZE + SALT_SIZE + NONCE_SIZE  # 50

_SALT_OFFSET = MAGIC_SIZE
_NONCE_OFFSET = _SALT_OFFSET + SALT_SIZE


@dataclass(frozen=True)
class Container:
    salt: bytes
    nonce: bytes
    ciphertext: bytes


def is_container(blob: bytes) -> bool:
    return bytes(blob[:MAGIC_SIZE]) == MAGIC


def encode(salt: bytes, nonce: bytes, ciphertext: bytes) -> bytes:
    if len(salt) != SALT_SIZE:
        raise ValueError(f"salt must be {SALT_SIZE} bytes, got {len(salt)}")
    if len(nonce) != NONCE_SIZE:
        raise ValueError(f"nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")
    if len(ciphertext) < TAG_SIZE:
        raise ValueError("ciphertext must include the 16-byte authentication tag")

    return MAGIC + bytes(salt) + bytes(nonce) + bytes(ciphertext)


def decode(blob: bytes) -> Container:
    """
    Split a container into its fields.

    Raises:
        TruncatedContainerError: shorter than the magic, or magic present but
            shorter than header + tag.
        NotAContainerError: the magic tag is absent; the caller may treat the
            bytes as a legacy plaintext key.
    """
    if len(blob) < MAGIC_SIZE:
        raise TruncatedContainerError(f"file too short: {len(blob)} bytes")
    if not is_container(blob):
        raise NotAContainerError("magic tag not found")
    if len(blob) < HEADER_SIZE + TAG_SIZE:
        raise TruncatedContainerError(
            f"container too short: {len(blob)} bytes (minimum {HEADER_SIZE + TAG_SIZE})"
        )

    return Container(
        salt=bytes(blob[_SALT_OFFSET:_NONCE_OFFSET]),
        nonce=bytes(blob[_NONCE_OFFSET:HEADER_SIZE]),
        ciphertext=bytes(blob[HEADER_SIZE:]),
    )
