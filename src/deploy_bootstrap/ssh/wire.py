"""SSH wire format primitives (RFC 4251 section 5).

- uint32: 4 bytes, big-endian
- string: uint32 length + raw bytes
- mpint: string holding a two's-complement big-endian integer
"""

from __future__ import annotations

import struct

from .errors import UnexpectedEndOfDataError


def write_uint32(value: int) -> bytes:
    return struct.pack(">I", value)


def write_bytes(data: bytes) -> bytes:
    return write_uint32(len(data)) + data


def write_string(text: str) -> bytes:
    return write_bytes(text.encode("ascii"))


def write_mpint(data: bytes) -> bytes:
    """Length-prefix unsigned big-endian bytes as an mpint.

    A 0x00 byte is prepended when the high bit is set so the value stays
    non-negative. Leading zeros supplied by the caller are kept.
    """
    if not data:
        return write_uint32(0)
    if data[0] & 0x80:
        data = b"\x00" + data
    return write_bytes(data)


def int_to_bytes(value: int) -> bytes:
    """Minimal unsigned big-endian encoding; zero encodes to ``b""``."""
    if value < 0:
        raise ValueError("mpint values must be non-negative")
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


def write_mpint_int(value: int) -> bytes:
    return write_mpint(int_to_bytes(value))


class WireReader:
    """Sequential reader over a byte buffer."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def read_bytes(self, length: int) -> bytes:
        if length > self.remaining:
            raise UnexpectedEndOfDataError(length, self.remaining)
        chunk = self.data[self.offset : self.offset + length]
        self.offset += length
        return chunk

    def read_uint32(self) -> int:
        return struct.unpack(">I", self.read_bytes(4))[0]

    def read_string_bytes(self) -> bytes:
        return self.read_bytes(self.read_uint32())

    def read_string(self) -> str:
        return self.read_string_bytes().decode("ascii", errors="replace")

    def read_mpint(self) -> int:
        return int.from_bytes(self.read_string_bytes(), "big", signed=False)
