"""
Signature value type shared by both signing schemes.
"""

from __future__ import annotations
import base64
import binascii
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict

from ..runtime.errors import SignatureFormatError


SECP256K1_SIGNATURE_LEN = 65
BLS_SIGNATURE_LEN = 96


class SignatureType(IntEnum):
    """
    Signing scheme. The values are the type byte that prefixes a
    signature in its CBOR form.
    """
    SECP256K1 = 1
    BLS = 2

    @property
    def signature_length(self) -> int:
        return SECP256K1_SIGNATURE_LEN if self == SignatureType.SECP256K1 else BLS_SIGNATURE_LEN

    @property
    def wire_type(self) -> int:
        """Type number in the JSON wire schema (0 = secp256k1, 1 = BLS)."""
        return self.value - 1

    @classmethod
    def from_wire_type(cls, value: int) -> SignatureType:
        if isinstance(value, bool) or value not in (0, 1):
            raise SignatureFormatError(f"Unknown signature type: {value!r}")
        return cls(value + 1)


# Key curves map one-to-one onto signature schemes.
Curve = SignatureType


@dataclass(frozen=True)
class Signature:
    """
    Signature bytes tagged with their scheme.

    secp256k1 data is ``r || s || recovery_id`` (65 bytes); BLS data is a
    compressed G2 point (96 bytes).
    """
    scheme: SignatureType
    data: bytes

    def __post_init__(self):
        try:
            scheme = SignatureType(self.scheme)
        except ValueError:
            raise SignatureFormatError(f"Unknown signature scheme: {self.scheme!r}")
        if not isinstance(self.data, (bytes, bytearray)):
            raise SignatureFormatError(f"Signature data must be bytes, got {type(self.data).__name__}")
        data = bytes(self.data)
        if len(data) != scheme.signature_length:
            raise SignatureFormatError(
                f"{scheme.name} signature must be {scheme.signature_length} bytes, got {len(data)}",
                details={"scheme": scheme.name, "length": len(data)}
            )
        object.__setattr__(self, "scheme", scheme)
        object.__setattr__(self, "data", data)

    def to_bytes(self) -> bytes:
        """CBOR byte-string content: type byte followed by the signature."""
        return bytes([int(self.scheme)]) + self.data

    @classmethod
    def from_bytes(cls, raw: bytes) -> Signature:
        """
        Parse the type-prefixed form.

        Raises:
            SignatureFormatError: On an empty buffer, unknown type or bad length
        """
        if not isinstance(raw, (bytes, bytearray)) or len(raw) < 1:
            raise SignatureFormatError("Signature bytes are empty")
        return cls(raw[0], bytes(raw[1:]))

    def to_dict(self) -> Dict[str, Any]:
        """JSON wire form: ``{"Type": 0|1, "Data": base64}``."""
        return {
            "Type": self.scheme.wire_type,
            "Data": base64.b64encode(self.data).decode("ascii"),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Signature:
        if not isinstance(data, dict) or "Type" not in data or "Data" not in data:
            raise SignatureFormatError("Signature object needs Type and Data")
        scheme = SignatureType.from_wire_type(data["Type"])
        try:
            raw = base64.b64decode(data["Data"], validate=True)
        except (binascii.Error, ValueError, TypeError) as e:
            raise SignatureFormatError("Signature data is not base64", cause=e)
        return cls(scheme, raw)

    def __str__(self) -> str:
        return f"Signature({self.scheme.name}, {self.data.hex()[:16]}...)"


__all__ = [
    "Curve",
    "Signature",
    "SignatureType",
    "SECP256K1_SIGNATURE_LEN",
    "BLS_SIGNATURE_LEN",
]
