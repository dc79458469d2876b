"""Passphrase sources.

The store only knows the :class:`PassphraseProvider` contract. Concrete
providers (terminal prompt, GUI dialog) live in the frontends; the scripted
provider below is what the tests inject.
"""

from __future__ import annotations

import hmac
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional

from gemini_keystore.security.secure_bytes import SecureBytes


class PassphraseMode(Enum):
    # asked once, to unlock an existing container
    DECRYPT = "decrypt"
    # asked twice, to protect a new container
    ENCRYPT_CONFIRM = "encrypt_confirm"


class PassphraseProvider(ABC):
    """
    Source of passphrases for the credential store.

    ``request`` returns a :class:`SecureBytes` holding a non-empty passphrase,
    or ``None`` when the user cancelled. Rules every provider must follow:

    - ``ENCRYPT_CONFIRM``: collect two entries; return them only if they are
      byte-identical and non-empty, otherwise ``None``.
    - ``DECRYPT``: return any non-empty entry; an empty entry is a cancel.

    Ownership of the returned buffer passes to the caller, which wipes it.
    """

    @abstractmethod
    def request(self, mode: PassphraseMode) -> Optional[SecureBytes]:
        raise NotImplementedError


def confirm_entries(first: SecureBytes, second: SecureBytes) -> Optional[SecureBytes]:
    """Apply the confirm rule to two entries, wiping whichever is not returned."""
    match = len(first) > 0 and hmac.compare_digest(first.view(), second.view())
    second.wipe()
    if not match:
        first.wipe()
        return None
    return first


class ScriptedPassphraseProvider(PassphraseProvider):
    """
    Provider that replays fixed answers, for tests and automation.

    Each answer is a ``str``/``bytes`` passphrase or ``None`` for a cancel.
    Empty answers are reported as cancels, like any provider must. Every
    buffer handed out is kept in ``issued`` so callers can check it was wiped.
    """

    def __init__(self, *answers):
        self._answers = list(answers)
        self.calls: List[PassphraseMode] = []
        self.issued: List[SecureBytes] = []

    def request(self, mode: PassphraseMode) -> Optional[SecureBytes]:
        self.calls.append(mode)
        if not self._answers:
            raise AssertionError(f"no scripted passphrase left for {mode.value}")
        answer = self._answers.pop(0)
        if answer is None or len(answer) == 0:
            return None
        secret = SecureBytes(answer)
        self.issued.append(secret)
        return secret
