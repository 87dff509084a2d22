import io
import shutil
import threading

import pytest

from datahd_archive.view import BoundedView, SharedSession
from datahd_core.errors import SessionMisuse, UnsupportedOperation, WindowOutOfRange

DATA = bytes(range(256)) * 16  # 4096 bytes


def test_read_is_clamped_to_window():
    v = BoundedView(io.BytesIO(DATA), 0, 2048)
    v.seek(2040)
    got = v.read(16)
    assert got == DATA[2040:2048]
    assert v.read(16) == b""


def test_read_all_stays_inside_window():
    v = BoundedView(io.BytesIO(DATA), 100, 50)
    assert v.read() == DATA[100:150]
    assert v.tell() == 50


def test_read_past_end_returns_nothing():
    v = BoundedView(io.BytesIO(DATA), 10, 20)
    v.seek(500)
    assert v.read(4) == b""
    assert v.readinto(bytearray(4)) == 0


def test_seek_is_relative_to_window():
    v = BoundedView(io.BytesIO(DATA), 1000, 100)
    assert v.seek(-10, io.SEEK_END) == 90
    assert v.read(1) == DATA[1090:1091]
    assert v.seek(-5, io.SEEK_CUR) == 86
    assert v.read(2) == DATA[1086:1088]
    assert v.seek(3) == 3


def test_negative_seek():
    v = BoundedView(io.BytesIO(DATA), 1000, 100)
    with pytest.raises(WindowOutOfRange):
        v.seek(-1)
    with pytest.raises(WindowOutOfRange):
        v.seek(-101, io.SEEK_END)
    assert v.tell() == 0


def test_fixed_size():
    v = BoundedView(io.BytesIO(DATA), 0, 10)
    with pytest.raises(UnsupportedOperation):
        v.truncate(5)
    with pytest.raises(io.UnsupportedOperation):
        v.truncate()
    assert v.length == 10
    assert v.offset == 0


def test_write_is_clamped():
    buf = io.BytesIO(bytes(32))
    v = BoundedView(buf, 10, 5)
    assert v.write(b"abcdefgh") == 5
    assert buf.getvalue()[10:16] == b"abcde\x00"
    assert v.write(b"z") == 0
    assert buf.getvalue()[15] == 0


def test_write_on_read_only_stream(tmp_path):
    p = tmp_path / "blob"
    p.write_bytes(bytes(16))
    with open(p, "rb") as f:
        v = BoundedView(f, 0, 16)
        assert not v.writable()
        with pytest.raises(UnsupportedOperation):
            v.write(b"x")


def test_views_keep_their_own_position():
    shared = io.BytesIO(DATA)
    a = BoundedView(shared, 0, 100)
    b = BoundedView(shared, 2048, 100)
    assert a.read(10) == DATA[0:10]
    assert b.read(10) == DATA[2048:2058]
    assert a.read(10) == DATA[10:20]


def test_ownership_of_underlying_stream():
    owned = io.BytesIO(DATA)
    with BoundedView(owned, 0, 1, owns_stream=True):
        pass
    assert owned.closed

    borrowed = io.BytesIO(DATA)
    with BoundedView(borrowed, 0, 1):
        pass
    assert not borrowed.closed


def test_closed_view():
    v = BoundedView(io.BytesIO(DATA), 0, 10)
    v.close()
    with pytest.raises(ValueError):
        v.read(1)


def test_copyfileobj_and_buffering():
    v = BoundedView(io.BytesIO(DATA), 300, 3000)
    out = io.BytesIO()
    shutil.copyfileobj(v, out, 1024)
    assert out.getvalue() == DATA[300:3300]

    v.seek(0)
    assert io.BufferedReader(v).read(7) == DATA[300:307]


def test_negative_window():
    with pytest.raises(WindowOutOfRange):
        BoundedView(io.BytesIO(DATA), -1, 10)


def test_session_one_view_at_a_time():
    s = SharedSession(io.BytesIO(DATA))
    first = s.view(0, 10)
    with pytest.raises(SessionMisuse):
        s.view(10, 10)
    first.close()
    second = s.view(10, 10)
    assert second.read() == DATA[10:20]
    assert s.views_opened == 2


def test_session_is_bound_to_its_thread():
    s = SharedSession(io.BytesIO(DATA))
    v = s.view(0, 10)
    errors = []

    def worker():
        try:
            v.read(1)
        except SessionMisuse as e:
            errors.append(e)
        try:
            s.view(0, 1)
        except SessionMisuse as e:
            errors.append(e)

    t = threading.Thread(target=worker)
    t.start()
    t.join()
    assert len(errors) == 2


def test_session_close():
    f = io.BytesIO(DATA)
    with SharedSession(f) as s:
        v = s.view(0, 4)
    assert v.closed
    assert f.closed
    with pytest.raises(SessionMisuse):
        s.view(0, 1)


def test_session_borrowing_leaves_stream_open():
    f = io.BytesIO(DATA)
    with SharedSession(f, owns_stream=False) as s:
        with s.view(0, 4) as v:
            assert v.read() == DATA[:4]
    assert not f.closed
