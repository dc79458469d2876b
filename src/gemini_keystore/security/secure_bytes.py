"""Wipeable byte buffers for passphrases, derived keys and decrypted secrets.

``SecureBytes`` owns a ``bytearray`` and overwrites it with zeros when it is
released. Python cannot reach into immutable ``bytes`` objects handed back by
third-party libraries, so the rule is simple: every buffer we own is wiped,
and immutable temporaries are kept as short-lived as possible.
"""

from __future__ import annotations

import ctypes
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]


def zeroize(buf: bytearray | memoryview) -> None:
    """Overwrite a writable buffer with zeros in place."""
    if isinstance(buf, memoryview):
        if buf.readonly:
            raise TypeError("cannot zeroize a read-only buffer")
        n = buf.nbytes
    else:
        n = len(buf)
    if not n:
        return
    # memset through ctypes writes the real storage; nothing can skip it
    arr = (ctypes.c_char * n).from_buffer(buf)
    ctypes.memset(ctypes.addressof(arr), 0, n)
    del arr


class _WipingBuffer(bytearray):
    """bytearray that zeroes itself when its last reference goes away.

    Memoryviews hold a reference to the buffer they were taken from, so a
    view keeps the contents alive after its ``SecureBytes`` is gone.
    """

    __slots__ = ()

    def __del__(self):
        zeroize(self)


class SecureBytes:
    """
    A byte buffer that is zeroed before release.

    Access is explicit and scoped: :meth:`view` returns a read-only
    ``memoryview`` over the live buffer. There is no content-based equality,
    no content in ``repr()`` and no implicit copying (``copy``, ``deepcopy``
    and pickling are refused).

    Use it as a context manager to wipe on scope exit::

        with store.get().secret as secret:
            send(bytes(secret.view()))

    Without an explicit :meth:`wipe` the buffer is zeroed once neither the
    ``SecureBytes`` nor any view taken from it is referenced.
    """

    __slots__ = ("_buf", "_wiped", "__weakref__")

    def __init__(self, data: BytesLike | str = b""):
        if isinstance(data, str):
            data = data.encode("utf-8")
        # always copy: the caller keeps ownership of whatever it passed in
        self._buf = _WipingBuffer(data)
        self._wiped = False

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def view(self) -> memoryview:
        """Borrow the contents as a read-only memoryview."""
        if self._wiped:
            raise ValueError("SecureBytes has been wiped")
        return memoryview(self._buf).toreadonly()

    def __len__(self) -> int:
        return len(self._buf)

    @property
    def wiped(self) -> bool:
        return self._wiped

    # ------------------------------------------------------------------
    # Release
    # ------------------------------------------------------------------

    def wipe(self) -> None:
        """Zero the buffer now, outstanding views included. Safe to call more than once."""
        if not self._wiped:
            zeroize(self._buf)
            self._wiped = True

    def __enter__(self) -> "SecureBytes":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()

    # ------------------------------------------------------------------
    # Things a secret container must not do
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        state = "wiped" if self._wiped else f"len={len(self._buf)}"
        return f"<SecureBytes {state}>"

    __str__ = __repr__

    def __eq__(self, other):
        return self is other

    __hash__ = object.__hash__

    def __copy__(self):
        raise TypeError("SecureBytes cannot be copied implicitly")

    def __deepcopy__(self, memo):
        raise TypeError("SecureBytes cannot be copied implicitly")

    def __reduce__(self):
        raise TypeError("SecureBytes cannot be pickled")
