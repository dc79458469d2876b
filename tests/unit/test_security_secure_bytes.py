"""
Unit tests for SecureBytes and zeroize.
"""

import copy
import gc
import pickle
from unittest.mock import patch

import pytest

from gemini_keystore.security.secure_bytes import SecureBytes, zeroize


def test_construct_copies_input():
    source = bytearray(b"secret")
    sb = SecureBytes(source)
    source[0] = ord("X")
    assert bytes(sb.view()) == b"secret"
    assert len(sb) == 6


def test_construct_from_str_encodes_utf8():
    sb = SecureBytes("pässword")
    assert bytes(sb.view()) == "pässword".encode("utf-8")


def test_view_is_read_only():
    sb = SecureBytes(b"abc")
    view = sb.view()
    assert view.readonly
    with pytest.raises(TypeError):
        view[0] = 0


def test_view_outlives_its_owner():
    view = SecureBytes(b"borrowed").view()
    gc.collect()
    assert bytes(view) == b"borrowed"


def test_buffer_wiped_once_last_view_is_released():
    wiped = []
    with patch("gemini_keystore.security.secure_bytes.zeroize", side_effect=wiped.append):
        sb = SecureBytes(b"dropped")
        buf_id = id(sb._buf)
        view = sb.view()
        del sb
        assert buf_id not in [id(buf) for buf in wiped]

        del view
        assert buf_id in [id(buf) for buf in wiped]


def test_buffer_finalizer_zeroes_contents():
    sb = SecureBytes(b"dropped")
    buf = sb._buf
    del sb
    # still referenced here, so nothing has been wiped yet
    assert bytes(buf) == b"dropped"
    buf.__del__()
    assert bytes(buf) == b"\x00" * 7


def test_wipe_zeroes_storage_and_blocks_reads():
    sb = SecureBytes(b"hunter2")
    buf = sb._buf
    sb.wipe()
    assert sb.wiped
    assert bytes(buf) == b"\x00" * 7
    with pytest.raises(ValueError, match="wiped"):
        sb.view()


def test_wipe_is_idempotent():
    sb = SecureBytes(b"x")
    sb.wipe()
    sb.wipe()
    assert sb.wiped


def test_wipe_with_outstanding_view():
    """A borrowed view does not prevent wiping; it sees the zeros."""
    sb = SecureBytes(b"abcd")
    view = sb.view()
    sb.wipe()
    assert bytes(view) == b"\x00" * 4


def test_context_manager_wipes_on_exit():
    with SecureBytes(b"scoped") as sb:
        assert bytes(sb.view()) == b"scoped"
    assert sb.wiped


def test_context_manager_wipes_on_error():
    with pytest.raises(RuntimeError):
        with SecureBytes(b"scoped") as sb:
            raise RuntimeError("boom")
    assert sb.wiped


def test_repr_hides_contents():
    sb = SecureBytes(b"AIzaSecretValue")
    assert "AIza" not in repr(sb)
    assert "AIza" not in str(sb)
    assert "len=15" in repr(sb)
    sb.wipe()
    assert "wiped" in repr(sb)


def test_equality_is_identity():
    a = SecureBytes(b"same")
    b = SecureBytes(b"same")
    assert a != b
    assert a == a


def test_no_implicit_copies():
    sb = SecureBytes(b"secret")
    with pytest.raises(TypeError):
        copy.copy(sb)
    with pytest.raises(TypeError):
        copy.deepcopy(sb)
    with pytest.raises(TypeError):
        pickle.dumps(sb)


def test_empty_buffer():
    sb = SecureBytes()
    assert len(sb) == 0
    sb.wipe()
    assert sb.wiped


def test_zeroize_bytearray_and_memoryview():
    buf = bytearray(b"\xff" * 32)
    zeroize(buf)
    assert buf == bytearray(32)

    buf = bytearray(b"\xff" * 8)
    zeroize(memoryview(buf))
    assert buf == bytearray(8)


def test_zeroize_rejects_read_only_view():
    with pytest.raises(TypeError):
        zeroize(memoryview(b"readonly"))
