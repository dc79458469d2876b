"""XChaCha20-Poly1305 (IETF) on top of ``cryptography``.

``cryptography`` ships ChaCha20 and ChaCha20-Poly1305 but not the extended
nonce variant, so it is assembled here the standard way:

- subkey = HChaCha20(key, nonce[0:16])
- ciphertext = ChaCha20-Poly1305(subkey).encrypt(b"\\x00" * 4 + nonce[16:24])

HChaCha20 is the ChaCha20 block function without the final feed-forward
addition. A ChaCha20 keystream block whose 16-byte IV equals the HChaCha20
input therefore yields the HChaCha20 output once the initial state words are
subtracted again.

Output is byte-compatible with libsodium's
``crypto_aead_xchacha20poly1305_ietf_*``. No associated data is used.
"""
import os
import struct

from cryptography.exceptions import InvalidTag, UnsupportedAlgorithm
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305

from .secure_bytes import SecureBytes, BytesLike, zeroize

KEY_SIZE = 32
NONCE_SIZE = 24
TAG_SIZE = 16

_HCHACHA_INPUT_SIZE = 16
_SIGMA = (0x61707865, 0x3320646E, 0x79622D32, 0x6B206574)  # "expand 32-byte k"


class AuthenticationError(Exception):
    # raised when the Poly1305 tag does not verify
    pass


def backend_ready() -> bool:
    """Return True if the installed crypto backend provides ChaCha20-Poly1305."""
    try:
        ChaCha20Poly1305(bytes(KEY_SIZE))
    except UnsupportedAlgorithm:
        return False
    return True


def generate_nonce() -> bytes:
    return os.urandom(NONCE_SIZE)


def _key_bytes(key: SecureBytes | BytesLike) -> memoryview:
    view = key.view() if isinstance(key, SecureBytes) else memoryview(key)
    if view.nbytes != KEY_SIZE:
        raise ValueError(f"key must be {KEY_SIZE} bytes, got {view.nbytes}")
    return view


def hchacha20(key: SecureBytes | BytesLike, data: bytes) -> bytearray:
    """Compute HChaCha20(key, data) for a 32-byte key and 16-byte input."""
    if len(data) != _HCHACHA_INPUT_SIZE:
        raise ValueError(f"HChaCha20 input must be {_HCHACHA_INPUT_SIZE} bytes")

    encryptor = Cipher(algorithms.ChaCha20(_key_bytes(key), bytes(data)), mode=None).encryptor()
    block = bytearray(encryptor.update(bytes(64)))
    try:
        words = struct.unpack("<16I", block)
        initial = _SIGMA + struct.unpack("<4I", data)
        # rows 0 and 3 of the permuted state, feed-forward removed
        out = [(words[i] - initial[i]) & 0xFFFFFFFF for i in range(4)]
        out += [(words[12 + i] - initial[4 + i]) & 0xFFFFFFFF for i in range(4)]
        return bytearray(struct.pack("<8I", *out))
    finally:
        zeroize(block)


def _split_nonce(key, nonce: bytes):
    if len(nonce) != NONCE_SIZE:
        raise ValueError(f"nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")
    subkey = hchacha20(key, nonce[:_HCHACHA_INPUT_SIZE])
    return subkey, b"\x00" * 4 + bytes(nonce[_HCHACHA_INPUT_SIZE:])


def seal(key: SecureBytes | BytesLike, nonce: bytes, plaintext: SecureBytes | BytesLike) -> bytes:
    """Encrypt ``plaintext`` and return ``ciphertext || tag``."""
    subkey, inner_nonce = _split_nonce(key, nonce)
    data = plaintext.view() if isinstance(plaintext, SecureBytes) else plaintext
    try:
        return ChaCha20Poly1305(subkey).encrypt(inner_nonce, data, None)
    finally:
        zeroize(subkey)


def open_sealed(key: SecureBytes | BytesLike, nonce: bytes, ciphertext: bytes) -> SecureBytes:
    """
    Authenticate and decrypt ``ciphertext || tag``.

    Raises:
        AuthenticationError: the tag does not match; nothing is returned.
    """
    if len(ciphertext) < TAG_SIZE:
        raise AuthenticationError("ciphertext shorter than the authentication tag")
    subkey, inner_nonce = _split_nonce(key, nonce)
    try:
        plaintext = ChaCha20Poly1305(subkey).decrypt(inner_nonce, ciphertext, None)
    except InvalidTag as e:
        raise AuthenticationError("authentication failed") from e
    finally:
        zeroize(subkey)
    return SecureBytes(plaintext)
