"""Security helpers: wipeable buffers, KDF and AEAD primitives for the key store.

This package provides:
- SecureBytes, a byte buffer zeroed before release
- Argon2id key derivation at libsodium's interactive cost
- XChaCha20-Poly1305 sealing built on ``cryptography``
"""

from .secure_bytes import SecureBytes, zeroize
from .kdf import INTERACTIVE, KdfProfile, derive_key, generate_salt
from .aead import AuthenticationError, backend_ready, generate_nonce, hchacha20, open_sealed, seal

__all__ = [
    "SecureBytes",
    "zeroize",
    "INTERACTIVE",
    "KdfProfile",
    "derive_key",
    "generate_salt",
    "AuthenticationError",
    "backend_ready",
    "generate_nonce",
    "hchacha20",
    "open_sealed",
    "seal",
]
