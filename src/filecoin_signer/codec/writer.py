"""
Binary Writer

Unsigned LEB128 varints and raw bytes, as used by ID and delegated address
payloads and by CID prefixes.
"""

MAX_UINT64 = 0xFFFFFFFFFFFFFFFF


class BinaryWriter:
    """
    Append-only byte buffer for address payloads.

    Only unsigned varints are supported; there is no signed or zigzag form
    anywhere in the address or CID formats.
    """

    def __init__(self):
        self._buf = bytearray()

    def u8(self, v: int) -> None:
        """Append one byte (the value is masked to 8 bits)."""
        self._buf.append(v & 0xFF)

    def bytes(self, v: bytes) -> None:
        """Append raw bytes with no length prefix."""
        self._buf += v

    def uvarint(self, v: int) -> None:
        """
        Append ``v`` as an unsigned LEB128 varint.

        Seven bits per byte, least significant group first, high bit set on
        every byte except the last. Output is always minimal.

        Args:
            v: Value in ``[0, 2^64)``

        Raises:
            ValueError: If the value does not fit in 64 bits
        """
        if isinstance(v, bool) or not 0 <= v <= MAX_UINT64:
            raise ValueError(f"uvarint out of range: {v}")
        while v >= 0x80:
            self.u8((v & 0x7F) | 0x80)
            v >>= 7
        self.u8(v)

    def to_bytes(self) -> bytes:
        return bytes(self._buf)

    def __len__(self) -> int:
        return len(self._buf)


def encode_uvarint(v: int) -> bytes:
    """Encode a single unsigned varint."""
    writer = BinaryWriter()
    writer.uvarint(v)
    return writer.to_bytes()
