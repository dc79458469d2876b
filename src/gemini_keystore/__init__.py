"""Encrypted on-disk store for a Gemini API key.

Typical use::

    store = CredentialStore(TerminalPassphraseProvider())
    lookup = SecretSelector(store).resolve()
    if lookup.found:
        with lookup.secret as secret:
            ...
"""

from .core.exceptions import (
    KeystoreError,
    BadPassphraseOrCorruptError,
    ConfigRootMissingError,
    CorruptContainerError,
    DerivationResourceExhaustedError,
    InitializationError,
    StorageError,
)
from .core.passphrase import PassphraseMode, PassphraseProvider, ScriptedPassphraseProvider
from .core.paths import PathResolver
from .core.selector import SecretSelector
from .core.store import CredentialStore, Lookup, LookupStatus, PutStatus
from .security.secure_bytes import SecureBytes

__version__ = "0.2.0"

__all__ = [
    "KeystoreError",
    "BadPassphraseOrCorruptError",
    "ConfigRootMissingError",
    "CorruptContainerError",
    "DerivationResourceExhaustedError",
    "InitializationError",
    "StorageError",
    "PassphraseMode",
    "PassphraseProvider",
    "ScriptedPassphraseProvider",
    "PathResolver",
    "SecretSelector",
    "CredentialStore",
    "Lookup",
    "LookupStatus",
    "PutStatus",
    "SecureBytes",
]
