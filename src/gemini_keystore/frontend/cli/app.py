"""``gemini-keystore``: save, show and migrate the Gemini API key.

Exit codes: 0 success, 1 cancelled, 2 nothing stored, 3 error.
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from typing import Callable, Optional

from gemini_keystore.config import Settings
from gemini_keystore.core import codec
from gemini_keystore.core.exceptions import KeystoreError, StorageError
from gemini_keystore.core.passphrase import PassphraseProvider
from gemini_keystore.core.selector import SecretSelector
from gemini_keystore.core.store import (
    SOURCE_ENCRYPTED,
    SOURCE_LEGACY_PLAIN,
    CredentialStore,
    LookupStatus,
    PutStatus,
)
from .logging_config import configure_logging
from .prompt import TerminalPassphraseProvider

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CANCELLED = 1
EXIT_NOT_AVAILABLE = 2
EXIT_ERROR = 3


def mask_secret(text: str) -> str:
    """Show the first and last four characters only."""
    if len(text) <= 8:
        return "*" * len(text)
    return f"{text[:4]}...{text[-4:]}"


def _read_api_key(args: argparse.Namespace, stdin) -> str:
    if args.stdin:
        return stdin.readline().rstrip("\r\n")
    return getpass.getpass("Gemini API key: ")


def _holds_container(path) -> Optional[bool]:
    """None if the file is missing, else whether it starts with the magic tag."""
    try:
        with open(path, "rb") as f:
            head = f.read(codec.MAGIC_SIZE)
    except FileNotFoundError:
        return None
    except OSError as e:
        raise StorageError(f"cannot read {path}: {e}") from e
    return codec.is_container(head)


# ----------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------

def cmd_save(args, store: CredentialStore, selector: SecretSelector, out, stdin) -> int:
    api_key = _read_api_key(args, stdin)
    if not api_key:
        print("No API key given; nothing saved.", file=out)
        return EXIT_CANCELLED

    if store.put(api_key) is PutStatus.CANCELLED:
        print("Cancelled; nothing saved.", file=out)
        return EXIT_CANCELLED

    print(f"API key saved to {store.paths.encrypted_path()}", file=out)
    return EXIT_OK


def cmd_show(args, store: CredentialStore, selector: SecretSelector, out, stdin) -> int:
    lookup = selector.resolve()
    if lookup.status is LookupStatus.CANCELLED:
        print("Cancelled.", file=out)
        return EXIT_CANCELLED
    if not lookup.found:
        print("No API key stored.", file=out)
        return EXIT_NOT_AVAILABLE

    with lookup.secret as secret:
        text = bytes(secret.view()).decode("utf-8", errors="replace")
    print(text if args.reveal else mask_secret(text), file=out)
    if lookup.source != SOURCE_ENCRYPTED:
        print("note: key is stored unencrypted; run 'gemini-keystore migrate'", file=out)
    return EXIT_OK


def cmd_status(args, store: CredentialStore, selector: SecretSelector, out, stdin) -> int:
    paths = store.paths
    enc = paths.encrypted_path()
    legacy = paths.legacy_plain_path()

    kind = {None: "missing", True: "encrypted container", False: "plaintext (legacy format)"}[
        _holds_container(enc)
    ]

    print(f"config dir: {paths.app_dir()}", file=out)
    print(f"{enc.name}: {kind}", file=out)
    print(f"{legacy.name}: {'present' if legacy.exists() else 'missing'}", file=out)
    return EXIT_OK


def cmd_migrate(args, store: CredentialStore, selector: SecretSelector, out, stdin) -> int:
    enc = store.paths.encrypted_path()
    if _holds_container(enc):
        print("API key is already encrypted.", file=out)
        return EXIT_OK

    lookup = selector.resolve()
    if not lookup.found:
        print("No plaintext API key to migrate.", file=out)
        return EXIT_NOT_AVAILABLE

    with lookup.secret as secret:
        status = store.put(secret)
    if status is PutStatus.CANCELLED:
        print("Cancelled; nothing migrated.", file=out)
        return EXIT_CANCELLED

    print(f"API key encrypted into {enc}", file=out)
    if lookup.source == SOURCE_LEGACY_PLAIN and not args.keep_legacy:
        legacy = store.paths.legacy_plain_path()
        try:
            legacy.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"cannot remove {legacy}: {e}") from e
        print(f"Removed {legacy}", file=out)
    return EXIT_OK


def cmd_forget(args, store: CredentialStore, selector: SecretSelector, out, stdin) -> int:
    if store.remove():
        print(f"Removed {store.paths.encrypted_path()}", file=out)
    else:
        print("No encrypted API key to remove.", file=out)
    return EXIT_OK


# ----------------------------------------------------------------------
# Entry point
# ----------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gemini-keystore",
        description="Store the Gemini API key encrypted under a passphrase",
    )
    parser.add_argument("--config-dir", default=None, help="override the user config directory")
    parser.add_argument("-v", "--verbose", action="count", default=0)

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("save", help="encrypt and store an API key")
    p.add_argument("--stdin", action="store_true", help="read the key from stdin instead of prompting")
    p.set_defaults(func=cmd_save)

    p = sub.add_parser("show", help="print the current API key (masked)")
    p.add_argument("--reveal", action="store_true", help="print the full key")
    p.set_defaults(func=cmd_show)

    p = sub.add_parser("status", help="report which key files exist")
    p.set_defaults(func=cmd_status)

    p = sub.add_parser("migrate", help="encrypt a plaintext API key")
    p.add_argument("--keep-legacy", action="store_true", help="do not delete the plaintext file")
    p.set_defaults(func=cmd_migrate)

    p = sub.add_parser("forget", help="delete the encrypted API key")
    p.set_defaults(func=cmd_forget)

    return parser


def main(
    argv: Optional[list] = None,
    provider: Optional[PassphraseProvider] = None,
    out=None,
    stdin=None,
    store_factory: Callable[..., CredentialStore] = CredentialStore,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = Settings.from_args(args)
    configure_logging(settings.log_level)

    out = out if out is not None else sys.stdout
    stdin = stdin if stdin is not None else sys.stdin

    try:
        store = store_factory(
            provider if provider is not None else TerminalPassphraseProvider(),
            paths=settings.path_resolver(),
        )
        selector = SecretSelector(store)
        return args.func(args, store, selector, out, stdin)
    except (KeystoreError, ValueError) as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
