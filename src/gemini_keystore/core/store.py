"""
Passphrase-protected on-disk store for a single secret (the Gemini API key).

``put`` derives a key with Argon2id, seals the secret with
XChaCha20-Poly1305 and atomically replaces ``api_key.enc``. ``get`` reads it
back, or passes through a file without the magic tag as a legacy plaintext
key written by earlier versions of the client.

Security Note:
    Never log plaintext, passphrases or ciphertext. Paths and outcomes only.
"""

from __future__ import annotations

import errno
import logging
import os
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from gemini_keystore.security.aead import (
    AuthenticationError,
    backend_ready,
    generate_nonce,
    open_sealed,
    seal,
)
from gemini_keystore.security.kdf import INTERACTIVE, KdfProfile, derive_key, generate_salt
from gemini_keystore.security.secure_bytes import SecureBytes

from . import codec
from .exceptions import (
    BadPassphraseOrCorruptError,
    CorruptContainerError,
    InitializationError,
    NotAContainerError,
    StorageError,
    TruncatedContainerError,
)
from .passphrase import PassphraseMode, PassphraseProvider
from .paths import TEMP_SUFFIX, PathResolver

logger = logging.getLogger(__name__)

MAX_SECRET_SIZE = 64 * 1024

SOURCE_ENCRYPTED = "encrypted"
SOURCE_LEGACY_AT_ENCRYPTED = "legacy_at_encrypted_path"
SOURCE_LEGACY_PLAIN = "legacy_plain"

Plaintext = Union[bytes, bytearray, memoryview, str, SecureBytes]


class PutStatus(Enum):
    STORED = "stored"
    CANCELLED = "cancelled"


class LookupStatus(Enum):
    FOUND = "found"
    NOT_PRESENT = "not_present"
    CANCELLED = "cancelled"
    NOT_AVAILABLE = "not_available"


@dataclass
class Lookup:
    """Outcome of a read. ``secret`` is set only when ``status`` is FOUND and
    is owned by the caller from then on."""

    status: LookupStatus
    secret: Optional[SecureBytes] = None
    source: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND

    @classmethod
    def found_in(cls, secret: SecureBytes, source: str) -> "Lookup":
        return cls(LookupStatus.FOUND, secret=secret, source=source)


class CredentialStore:
    """
    Orchestrates path resolution, key derivation, AEAD and the container codec.

    The store exclusively owns ``api_key.enc``. It keeps no copy of anything it
    returns, and every passphrase and derived key it handles is wiped before
    the call returns, on success, cancel and error alike.
    """

    def __init__(
        self,
        provider: PassphraseProvider,
        paths: Optional[PathResolver] = None,
        profile: KdfProfile = INTERACTIVE,
    ):
        if not backend_ready():
            raise InitializationError("crypto backend does not provide ChaCha20-Poly1305")
        self.provider = provider
        self.paths = paths if paths is not None else PathResolver()
        self.profile = profile

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def put(self, plaintext: Plaintext) -> PutStatus:
        """
        Encrypt ``plaintext`` under a confirmed passphrase and store it.

        Returns ``PutStatus.CANCELLED`` without touching the disk when the
        provider reports a cancel.

        Raises:
            ValueError: plaintext larger than 64 KiB.
            DerivationResourceExhaustedError: Argon2 could not run.
            StorageError: the directory or file could not be written.
        """
        owned = SecureBytes(plaintext) if isinstance(plaintext, str) else None
        data = owned if owned is not None else plaintext
        try:
            if len(data) > MAX_SECRET_SIZE:
                raise ValueError(f"secret too large: {len(data)} bytes (maximum {MAX_SECRET_SIZE})")

            passphrase = self._request(PassphraseMode.ENCRYPT_CONFIRM)
            if passphrase is None:
                logger.info("Passphrase entry cancelled; nothing written")
                return PutStatus.CANCELLED

            key = None
            try:
                salt = generate_salt()
                nonce = generate_nonce()
                key = derive_key(passphrase, salt, self.profile)
                blob = codec.encode(salt, nonce, seal(key, nonce, data))
            finally:
                passphrase.wipe()
                if key is not None:
                    key.wipe()

            self._ensure_app_dir()
            self._write_atomic(blob)
        finally:
            if owned is not None:
                owned.wipe()

        logger.info("Stored encrypted API key at %s", self.paths.encrypted_path())
        return PutStatus.STORED

    def _ensure_app_dir(self) -> Path:
        app_dir = self.paths.app_dir()
        if app_dir.is_dir():
            return app_dir
        try:
            app_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
            if os.name == "posix":
                # mkdir's mode is filtered by the umask
                os.chmod(app_dir, 0o700)
        except OSError as e:
            raise StorageError(f"cannot create {app_dir}: {e}") from e
        logger.debug("Created config directory %s", app_dir)
        return app_dir

    def _write_atomic(self, blob: bytes) -> None:
        target = self.paths.encrypted_path()
        tmp = None
        try:
            # mkstemp: O_EXCL, mode 0600, unique per writer
            fd, name = tempfile.mkstemp(dir=target.parent, prefix=self.paths.temp_prefix(), suffix=TEMP_SUFFIX)
            tmp = Path(name)
            with os.fdopen(fd, "wb") as f:
                f.write(blob)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, target)
        except OSError as e:
            if tmp is not None:
                self._discard_temp(tmp)
            if e.errno == errno.EXDEV:
                raise StorageError(f"cannot rename {tmp} over {target}: cross-device rename") from e
            raise StorageError(f"failed to write {target}: {e}") from e

    @staticmethod
    def _discard_temp(tmp: Path) -> None:
        try:
            tmp.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not remove temporary file %s: %s", tmp, e)

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def get(self) -> Lookup:
        """
        Read, authenticate and decrypt the stored secret.

        ReadFile -> ClassifyPrefix -> (legacy passthrough | Decode ->
        PromptPass -> Derive -> Open -> found).

        Raises:
            CorruptContainerError: the file carries the magic but is too short.
            BadPassphraseOrCorruptError: authentication failed.
            DerivationResourceExhaustedError: Argon2 could not run.
            StorageError: the file exists but cannot be read.
        """
        path = self.paths.encrypted_path()
        try:
            blob = path.read_bytes()
        except FileNotFoundError:
            logger.debug("No encrypted key at %s", path)
            return Lookup(LookupStatus.NOT_PRESENT)
        except OSError as e:
            raise StorageError(f"cannot read {path}: {e}") from e

        try:
            container = codec.decode(blob)
        except NotAContainerError:
            logger.warning("%s has no container header; reading it as a plaintext key", path)
            return Lookup.found_in(SecureBytes(blob), SOURCE_LEGACY_AT_ENCRYPTED)
        except TruncatedContainerError as e:
            raise CorruptContainerError(f"{path}: {e}") from e

        if len(container.ciphertext) > MAX_SECRET_SIZE + codec.TAG_SIZE:
            raise CorruptContainerError(f"{path}: ciphertext larger than any stored secret")

        passphrase = self._request(PassphraseMode.DECRYPT)
        if passphrase is None:
            logger.info("Passphrase entry cancelled; key left locked")
            return Lookup(LookupStatus.CANCELLED)

        key = None
        try:
            key = derive_key(passphrase, container.salt, self.profile)
            try:
                secret = open_sealed(key, container.nonce, container.ciphertext)
            except AuthenticationError as e:
                raise BadPassphraseOrCorruptError("incorrect passphrase or corrupted file") from e
        finally:
            passphrase.wipe()
            if key is not None:
                key.wipe()

        logger.debug("Decrypted API key from %s", path)
        return Lookup.found_in(secret, SOURCE_ENCRYPTED)

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def exists(self) -> bool:
        return self.paths.encrypted_path().exists()

    def remove(self) -> bool:
        """Delete the encrypted container. Returns False if there was none."""
        path = self.paths.encrypted_path()
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"cannot remove {path}: {e}") from e
        logger.info("Removed %s", path)
        return True

    def _request(self, mode: PassphraseMode) -> Optional[SecureBytes]:
        passphrase = self.provider.request(mode)
        if passphrase is not None and len(passphrase) == 0:
            # an empty entry is a cancel, whatever the provider thinks
            passphrase.wipe()
            return None
        return passphrase
