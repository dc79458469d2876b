"""User-facing frontends for the key store."""
