"""
Exceptions for the gemini_keystore core.
Everything surfaced to callers derives from KeystoreError so a frontend can
catch the whole family in one place.
"""


class KeystoreError(Exception):
    # general container for errors
    pass


class InitializationError(KeystoreError):
    # raised when the crypto backend lacks a required primitive
    pass


class ConfigRootMissingError(KeystoreError):
    # raised when no user home / config directory can be resolved
    pass


class StorageError(KeystoreError):
    # raised when reading or writing the key files fails; the OSError is chained
    pass


class CorruptContainerError(KeystoreError):
    # raised when a file carries the magic tag but cannot be a valid container
    pass


class TruncatedContainerError(CorruptContainerError):
    # raised by the codec when the blob is shorter than the fixed layout
    pass


class NotAContainerError(KeystoreError):
    # raised by the codec when the magic tag is absent (legacy plaintext)
    pass


class BadPassphraseOrCorruptError(KeystoreError):
    # raised when authentication fails; a wrong passphrase and a tampered
    # container are deliberately the same error
    pass


class DerivationResourceExhaustedError(KeystoreError):
    # raised when Argon2 cannot honour its memory limit
    pass
