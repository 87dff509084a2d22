"""Bounded windows over the flat data store.

A BoundedView exposes ``[offset, offset + length)`` of a larger stream as
a stream of its own. Its position is kept by the view, not the underlying
stream, and every read or write is clamped to the window.

Two ways to hand out views:
  - one underlying handle per view (``owns_stream=True``), safe for any
    access order;
  - a SharedSession: one handle, one live view at a time, owner thread
    only. Interleaved use would have both views fighting over a single
    seek position, so the session refuses it.
"""
from __future__ import annotations

import io
import os
import threading
from typing import BinaryIO, Callable

from datahd_core.errors import SessionMisuse, UnsupportedOperation, WindowOutOfRange


class BoundedView(io.RawIOBase):
    def __init__(
        self,
        stream: BinaryIO,
        offset: int,
        length: int,
        owns_stream: bool = False,
        guard: Callable[[], None] | None = None,
    ):
        super().__init__()
        if offset < 0 or length < 0:
            raise WindowOutOfRange(f"offset={offset} length={length}")
        self._stream = stream
        self._offset = offset
        self._length = length
        self._owns_stream = owns_stream
        self._guard = guard
        self._pos = 0

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def length(self) -> int:
        return self._length

    def _check(self) -> None:
        if self.closed:
            raise ValueError("I/O operation on closed view")
        if self._guard is not None:
            self._guard()

    def readable(self) -> bool:
        return self._stream.readable()

    def writable(self) -> bool:
        return self._stream.writable()

    def seekable(self) -> bool:
        return True

    def tell(self) -> int:
        self._check()
        return self._pos

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        self._check()
        if whence == os.SEEK_SET:
            target = offset
        elif whence == os.SEEK_CUR:
            target = self._pos + offset
        elif whence == os.SEEK_END:
            target = self._length + offset
        else:
            raise ValueError(f"invalid whence ({whence})")

        if target < 0:
            raise WindowOutOfRange(f"seek to {target}")
        self._pos = target
        return target

    def _remaining(self, count: int) -> int:
        if self._pos >= self._length:
            return 0
        return min(count, self._length - self._pos)

    def readinto(self, b) -> int:
        self._check()
        n = self._remaining(len(b))
        if n == 0:
            return 0
        self._stream.seek(self._offset + self._pos)
        data = self._stream.read(n)
        got = len(data)
        b[:got] = data
        self._pos += got
        return got

    def write(self, b) -> int:
        self._check()
        if not self.writable():
            raise UnsupportedOperation("underlying stream is read-only")
        with memoryview(b) as mv:
            n = self._remaining(len(mv))
            if n == 0:
                return 0
            self._stream.seek(self._offset + self._pos)
            written = self._stream.write(mv[:n].tobytes())
        if written is None:
            written = n
        self._pos += written
        return written

    def truncate(self, size=None):
        raise UnsupportedOperation("a view has a fixed size")

    def flush(self) -> None:
        if not self.closed and not self._stream.closed and self._stream.writable():
            self._stream.flush()

    def close(self) -> None:
        if self.closed:
            return
        try:
            super().close()
        finally:
            if self._owns_stream:
                self._stream.close()

    def __repr__(self) -> str:
        return f"<BoundedView offset={self._offset} length={self._length} pos={self._pos}>"


class SharedSession:
    """Hand out sequential BoundedViews over one borrowed or owned handle.

    Only the thread that created the session may use it, and a new view
    can only be opened once the previous one is closed.
    """

    def __init__(self, stream: BinaryIO, owns_stream: bool = True):
        self._stream = stream
        self._owns_stream = owns_stream
        self._owner = threading.get_ident()
        self._active: BoundedView | None = None
        self._closed = False
        self.views_opened = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_thread(self) -> None:
        if threading.get_ident() != self._owner:
            raise SessionMisuse("shared session used from a thread other than its owner")

    def _check(self) -> None:
        if self._closed:
            raise SessionMisuse("session is closed")
        self._check_thread()

    def view(self, offset: int, length: int) -> BoundedView:
        self._check()
        if self._active is not None and not self._active.closed:
            raise SessionMisuse("previous view is still open")
        v = BoundedView(self._stream, offset, length, owns_stream=False, guard=self._check)
        self._active = v
        self.views_opened += 1
        return v

    def open(self, entry) -> BoundedView:
        return self.view(entry.byte_offset, entry.byte_length)

    def close(self) -> None:
        if self._closed:
            return
        self._check_thread()
        if self._active is not None:
            self._active.close()
            self._active = None
        self._closed = True
        if self._owns_stream:
            self._stream.close()

    def __enter__(self) -> "SharedSession":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
