"""Resolution policy for "give me the current API key".

Order: encrypted store, then the legacy ``api_key.txt``, then nothing. A
cancel at the passphrase prompt is final; it never falls through to the
legacy file.
"""

from __future__ import annotations

import logging
from typing import Optional

from gemini_keystore.security.secure_bytes import SecureBytes

from .exceptions import StorageError
from .paths import PathResolver
from .store import SOURCE_LEGACY_PLAIN, CredentialStore, Lookup, LookupStatus

logger = logging.getLogger(__name__)


class SecretSelector:
    def __init__(self, store: CredentialStore, paths: Optional[PathResolver] = None):
        self.store = store
        self.paths = paths if paths is not None else store.paths

    def resolve(self) -> Lookup:
        """
        Return the current secret.

        FOUND and CANCELLED from the store are returned as-is; NOT_PRESENT
        moves on to the legacy plaintext file, and NOT_AVAILABLE is returned
        when that is missing or empty. Store errors propagate unchanged.
        """
        lookup = self.store.get()
        if lookup.status is not LookupStatus.NOT_PRESENT:
            return lookup

        legacy = self._read_legacy()
        if legacy is not None:
            return Lookup.found_in(legacy, SOURCE_LEGACY_PLAIN)

        logger.debug("No API key available")
        return Lookup(LookupStatus.NOT_AVAILABLE)

    def legacy_present(self) -> bool:
        return self.paths.legacy_plain_path().exists()

    def _read_legacy(self) -> Optional[SecureBytes]:
        path = self.paths.legacy_plain_path()
        try:
            content = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"cannot read {path}: {e}") from e
        if not content:
            return None
        logger.info("Using legacy plaintext API key from %s", path)
        return SecureBytes(content)
