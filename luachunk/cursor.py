"""Incremental little-endian reader over an in-memory chunk buffer."""

from __future__ import annotations

import struct
from typing import Optional, Union

from .exceptions import InvalidTextError, TruncatedInputError

BytesLike = Union[bytes, bytearray, memoryview]

_LONG_STRING_MARKER = 0xFF


class ByteCursor:
    """Read primitives from ``data`` while tracking the current offset.

    Every read either consumes exactly the bytes it needs or raises
    :class:`TruncatedInputError` without moving the position.
    """

    __slots__ = ("_data", "_position")

    def __init__(self, data: BytesLike) -> None:
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError("data must provide the buffer protocol")
        self._data = bytes(data)
        self._position = 0

    @property
    def position(self) -> int:
        return self._position

    @property
    def remaining(self) -> int:
        return len(self._data) - self._position

    @property
    def at_end(self) -> bool:
        return self._position >= len(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def read_bytes(self, size: int) -> bytes:
        if size < 0:
            raise ValueError("attempted to read negative length")
        start = self._position
        end = start + size
        if end > len(self._data):
            raise TruncatedInputError(offset=start, needed=size, available=self.remaining)
        self._position = end
        return self._data[start:end]

    def read_byte(self) -> int:
        return self.read_bytes(1)[0]

    def read_u32(self) -> int:
        return int.from_bytes(self.read_bytes(4), "little", signed=False)

    def read_u64(self) -> int:
        return int.from_bytes(self.read_bytes(8), "little", signed=False)

    def read_i64(self) -> int:
        return int.from_bytes(self.read_bytes(8), "little", signed=True)

    def read_f64(self) -> float:
        """Reinterpret the next 8 bytes as a little-endian IEEE-754 double."""

        return struct.unpack("<d", self.read_bytes(8))[0]

    def read_cstring(self) -> str:
        """Read a zero-terminated UTF-8 string; the terminator is consumed."""

        start = self._position
        end = self._data.find(b"\x00", start)
        if end < 0:
            raise TruncatedInputError(
                offset=start, needed=self.remaining + 1, available=self.remaining
            )
        raw = self._data[start:end]
        self._position = end + 1
        return _decode_text(raw, offset=start)

    def read_sized_string(self) -> Optional[str]:
        """Read a size-prefixed string as written by the reference ``luac``.

        The size byte counts the implicit terminator, so ``0`` marks an absent
        string (returned as ``None``) and ``n`` is followed by ``n - 1`` payload
        bytes.  Sizes that do not fit in a byte use the ``0xFF`` marker followed
        by a 64-bit size.
        """

        start = self._position
        try:
            size = self.read_byte()
            if size == _LONG_STRING_MARKER:
                size = self.read_u64()
            if size == 0:
                return None
            raw = self.read_bytes(size - 1)
        except TruncatedInputError:
            self._position = start
            raise
        return _decode_text(raw, offset=start)


def _decode_text(raw: bytes, *, offset: int) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidTextError(
            f"string is not valid UTF-8 ({exc.reason} at byte {exc.start})",
            offset=offset,
        ) from exc


__all__ = ["ByteCursor", "BytesLike"]
