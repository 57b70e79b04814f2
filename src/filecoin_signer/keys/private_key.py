"""
Private key container with explicit zeroing.
"""

from __future__ import annotations
import hmac
from typing import Union


class PrivateKey:
    """
    Holds a private scalar in a mutable buffer that can be wiped.

    The buffer is zeroed by ``wipe()``, on leaving a ``with`` block and when
    the object is garbage collected. Copies handed out by ``to_bytes`` are
    the caller's responsibility.
    """

    __slots__ = ("_buf", "_wiped")

    def __init__(self, data: Union[bytes, bytearray]):
        self._buf = bytearray(data)
        self._wiped = False

    def to_bytes(self) -> bytes:
        if self._wiped:
            raise ValueError("Private key has been wiped")
        return bytes(self._buf)

    @property
    def wiped(self) -> bool:
        return self._wiped

    def wipe(self) -> None:
        """Overwrite the key buffer with zeros."""
        for i in range(len(self._buf)):
            self._buf[i] = 0
        self._wiped = True

    def __len__(self) -> int:
        return len(self._buf)

    def __enter__(self) -> PrivateKey:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.wipe()

    def __del__(self):
        # interpreter shutdown may have torn down the buffer already
        buf = getattr(self, "_buf", None)
        if buf is not None:
            for i in range(len(buf)):
                buf[i] = 0

    def __eq__(self, other) -> bool:
        if not isinstance(other, PrivateKey):
            return NotImplemented
        return hmac.compare_digest(bytes(self._buf), bytes(other._buf))

    __hash__ = None

    def __repr__(self) -> str:
        return "PrivateKey(<wiped>)" if self._wiped else "PrivateKey(<redacted>)"


def wipe_buffer(buf: bytearray) -> None:
    """Zero a scratch buffer in place."""
    for i in range(len(buf)):
        buf[i] = 0
