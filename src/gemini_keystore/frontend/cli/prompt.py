"""Terminal passphrase prompts built on getpass."""

from __future__ import annotations

import getpass
import sys
from typing import Callable, Optional

from gemini_keystore.core.passphrase import PassphraseMode, PassphraseProvider, confirm_entries
from gemini_keystore.security.secure_bytes import SecureBytes

DECRYPT_PROMPT = "Passphrase to decrypt the API key: "
ENCRYPT_PROMPT = "Passphrase (will be used to encrypt the API key): "
CONFIRM_PROMPT = "Repeat passphrase to confirm: "


class TerminalPassphraseProvider(PassphraseProvider):
    """Ask for passphrases on the controlling terminal without echo.

    Ctrl-C and Ctrl-D at the prompt count as a cancel.
    """

    def __init__(self, prompt: Callable[[str], str] = getpass.getpass, stream=None):
        self._prompt = prompt
        self._stream = stream if stream is not None else sys.stderr

    def request(self, mode: PassphraseMode) -> Optional[SecureBytes]:
        first = None
        try:
            if mode is PassphraseMode.DECRYPT:
                entry = self._ask(DECRYPT_PROMPT)
                if len(entry) == 0:
                    entry.wipe()
                    return None
                return entry

            first = self._ask(ENCRYPT_PROMPT)
            second = self._ask(CONFIRM_PROMPT)
        except (EOFError, KeyboardInterrupt):
            if first is not None:
                first.wipe()
            print(file=self._stream)
            return None

        result = confirm_entries(first, second)
        if result is None:
            print("Passphrases were empty or did not match.", file=self._stream)
        return result

    def _ask(self, text: str) -> SecureBytes:
        return SecureBytes(self._prompt(text))
