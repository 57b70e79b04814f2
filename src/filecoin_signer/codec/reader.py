"""
Binary Reader

Strict counterpart of BinaryWriter: varints must be minimal and fit in
64 bits, reads past the end of the buffer fail.
"""

import builtins


class VarintError(ValueError):
    """Varint is truncated, too long or not minimally encoded."""
    pass


class BinaryReader:
    """Cursor over an immutable byte buffer."""

    def __init__(self, buf: builtins.bytes):
        self._buf = builtins.bytes(buf)
        self._pos = 0

    @property
    def eof(self) -> bool:
        """True when every byte has been consumed."""
        return self._pos >= len(self._buf)

    @property
    def remaining(self) -> int:
        return len(self._buf) - self._pos

    def u8(self) -> int:
        if self.eof:
            raise VarintError(f"Unexpected end of data at offset {self._pos}")
        val = self._buf[self._pos]
        self._pos += 1
        return val

    def uvarint(self) -> int:
        """
        Read an unsigned LEB128 varint.

        Returns:
            Decoded value below 2^64

        Raises:
            VarintError: On truncation, overflow past 64 bits or a
                non-minimal encoding
        """
        x = 0
        shift = 0
        for i in range(10):
            b = self.u8()
            if b < 0x80:
                if i > 0 and b == 0:
                    raise VarintError("Varint is not minimally encoded")
                # the tenth byte may only carry bit 63
                if i == 9 and b > 1:
                    raise VarintError("Varint overflows 64 bits")
                return x | (b << shift)
            x |= (b & 0x7F) << shift
            shift += 7
        raise VarintError("Varint overflows 64 bits")

    def bytes(self, n: int) -> builtins.bytes:
        """Read exactly ``n`` bytes."""
        if n < 0 or n > self.remaining:
            raise VarintError(f"Cannot read {n} bytes, {self.remaining} left")
        out = self._buf[self._pos:self._pos + n]
        self._pos += n
        return out

    def rest(self) -> builtins.bytes:
        """Read every remaining byte."""
        return self.bytes(self.remaining)


def decode_uvarint(data: builtins.bytes) -> int:
    """
    Decode a buffer holding exactly one varint.

    Raises:
        VarintError: If the varint is invalid or trailing bytes remain
    """
    reader = BinaryReader(data)
    value = reader.uvarint()
    if not reader.eof:
        raise VarintError("Trailing bytes after varint")
    return value
