# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""In-memory streams handed out by ``MemoryFileSystem``.

Provides MemoryInputStream and MemoryOutputStream backed by io.BytesIO.
Each stream holds its file's open flag from creation until ``close()``;
closing is idempotent and gives the flag back exactly once.

- ``MemoryInputStream`` reads a snapshot taken when the file was opened.
- ``MemoryOutputStream`` collects bytes and commits the whole buffer to the
  file on close. Append streams start with the existing content.
"""

from __future__ import annotations

import io
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Final, Self

from ..errors import ClosedStreamError, InvalidArgumentError
from ._path import FsPath

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "EOF",
    "MemoryInputStream",
    "MemoryOutputStream",
]

DEFAULT_CHUNK_SIZE: Final[int] = 64 * 1024

#: Returned by ``read_byte()`` at end of stream.
EOF: Final[int] = -1


def _noop() -> None:
    return None


@dataclass(slots=True)
class MemoryInputStream:
    """Seekable reader over an immutable byte snapshot.

    Writes committed to the file after the stream was opened are not
    visible through it. Seeking past the end is allowed; reads there
    return end-of-stream rather than failing.
    """

    _path: FsPath
    _buffer: io.BytesIO
    _size: int
    _on_close: Callable[[], None] = _noop
    _closed: bool = field(default=False, init=False)

    @classmethod
    def from_bytes(
        cls,
        path: FsPath,
        content: bytes,
        *,
        on_close: Callable[[], None] | None = None,
    ) -> MemoryInputStream:
        """Create a reader over a copy of ``content``.

        Args:
            path: Path of the file, used in error messages.
            content: Bytes to read from.
            on_close: Called once when the stream is first closed.
        """
        return cls(
            _path=path,
            _buffer=io.BytesIO(bytes(content)),
            _size=len(content),
            _on_close=on_close if on_close is not None else _noop,
        )

    @property
    def path(self) -> FsPath:
        return self._path

    @property
    def size(self) -> int:
        """Length of the snapshot in bytes."""
        return self._size

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def position(self) -> int:
        """Current read position."""
        self._check_closed()
        return self._buffer.tell()

    def get_pos(self) -> int:
        return self.position

    def _check_closed(self) -> None:
        if self._closed:
            msg = f"File is closed: {self._path}"
            raise ClosedStreamError(msg)

    def seek(self, position: int) -> int:
        """Move to the absolute ``position``; past-the-end is allowed.

        Raises:
            InvalidArgumentError: If ``position`` is negative.
        """
        self._check_closed()
        if position < 0:
            msg = f"Cannot seek to a negative position: {position}"
            raise InvalidArgumentError(msg)
        return self._buffer.seek(position)

    def seek_to_new_source(self, target_position: int) -> bool:
        """Always False: there is only ever one copy of the data."""
        del target_position
        self._check_closed()
        return False

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes (all remaining when negative)."""
        self._check_closed()
        return self._buffer.read(size)

    def read_byte(self) -> int:
        """Read one byte as an int, or :data:`EOF` at end of stream."""
        self._check_closed()
        data = self._buffer.read(1)
        return data[0] if data else EOF

    def readinto(self, buffer: bytearray | memoryview) -> int:
        """Fill ``buffer`` from the stream; returns the byte count (0 at EOF)."""
        self._check_closed()
        return self._buffer.readinto(buffer)

    def chunks(self, size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        """Iterate over the remaining bytes in chunks of ``size``."""
        self._check_closed()
        return self._iter_chunks(size)

    def _iter_chunks(self, size: int) -> Iterator[bytes]:
        while True:
            chunk = self.read(size)
            if not chunk:
                break
            yield chunk

    def __iter__(self) -> Iterator[bytes]:
        return self.chunks(DEFAULT_CHUNK_SIZE)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the reader and release the file's open flag."""
        if self._closed:
            return
        self._closed = True
        self._buffer.close()
        self._on_close()


@dataclass(slots=True)
class MemoryOutputStream:
    """Write stream that buffers in memory and commits on close.

    ``on_commit`` receives the complete buffer (seed content included) the
    first time the stream is closed.
    """

    _path: FsPath
    _on_commit: Callable[[bytes], None]
    _buffer: io.BytesIO = field(default_factory=io.BytesIO)
    _bytes_written: int = field(default=0, init=False)
    _closed: bool = field(default=False, init=False)

    @classmethod
    def create(
        cls,
        path: FsPath,
        *,
        on_commit: Callable[[bytes], None],
        existing_content: bytes | None = None,
    ) -> MemoryOutputStream:
        """Create a writer, pre-seeded with ``existing_content`` for appends."""
        buffer = io.BytesIO()
        if existing_content:
            _ = buffer.write(existing_content)
        return cls(_path=path, _on_commit=on_commit, _buffer=buffer)

    @property
    def path(self) -> FsPath:
        return self._path

    @property
    def bytes_written(self) -> int:
        """Total bytes written through this stream (seed content excluded)."""
        return self._bytes_written

    @property
    def size(self) -> int:
        """Length the file will have once this stream is closed."""
        self._check_closed()
        return self._buffer.getbuffer().nbytes

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_closed(self) -> None:
        if self._closed:
            raise ClosedStreamError("File closed!")

    def write(self, data: bytes | bytearray | memoryview) -> int:
        """Append ``data`` to the buffer."""
        self._check_closed()
        written = self._buffer.write(data)
        self._bytes_written += written
        return written

    def write_byte(self, value: int) -> None:
        """Append a single byte given as an int in ``range(256)``."""
        if not 0 <= value <= 0xFF:
            msg = f"Byte value out of range: {value}"
            raise InvalidArgumentError(msg)
        _ = self.write(bytes((value,)))

    def write_all(self, chunks: Iterable[bytes]) -> int:
        """Write every chunk from ``chunks``; returns the total written."""
        self._check_closed()
        return sum(self.write(chunk) for chunk in chunks)

    def flush(self) -> None:
        """No-op; content becomes visible only on close."""
        self._check_closed()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Commit the buffer to the file and release its open flag."""
        if self._closed:
            return
        self._closed = True
        content = self._buffer.getvalue()
        self._buffer.close()
        self._on_commit(content)
