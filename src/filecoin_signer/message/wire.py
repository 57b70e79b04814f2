"""
JSON wire models for messages and signed messages.

Matches the Lotus JSON-RPC shape: capitalized field names, token amounts
as decimal strings, params and signature data as base64.
"""

from __future__ import annotations
import base64
import binascii
from typing import Any, Dict

from pydantic import BaseModel, Field, field_serializer, field_validator

from ..address import Address
from ..crypto.signature import Signature, SignatureType
from .codec import Message, SignedMessage, MAX_INT64, MAX_UINT64, MIN_INT64


def _parse_amount(v: Any) -> int:
    if isinstance(v, bool):
        raise ValueError("Token amount must be a decimal string")
    if isinstance(v, int):
        return v
    if isinstance(v, str) and v.isascii() and v.isdigit():
        if len(v) > 1 and v[0] == "0":
            raise ValueError(f"Token amount has leading zeros: {v!r}")
        return int(v)
    raise ValueError(f"Token amount must be a decimal string, got {v!r}")


class MessageAPI(BaseModel):
    """
    Unsigned message in JSON form.

    Example:
        {"To": "f1...", "From": "f1...", "Nonce": 1, "Value": "100000",
         "GasLimit": 25000, "GasFeeCap": "2500", "GasPremium": "2500",
         "Method": 0, "Params": ""}
    """
    to: Address = Field(alias="To")
    from_: Address = Field(alias="From")
    nonce: int = Field(alias="Nonce", ge=0, le=MAX_UINT64)
    value: int = Field(alias="Value", ge=0)
    gas_limit: int = Field(alias="GasLimit", ge=MIN_INT64, le=MAX_INT64)
    gas_fee_cap: int = Field(alias="GasFeeCap", ge=0)
    gas_premium: int = Field(alias="GasPremium", ge=0)
    method: int = Field(alias="Method", ge=0, le=MAX_UINT64)
    params: bytes = Field(default=b"", alias="Params")

    model_config = {"populate_by_name": True}

    @field_validator("value", "gas_fee_cap", "gas_premium", mode="before")
    @classmethod
    def parse_amount(cls, v: Any) -> int:
        return _parse_amount(v)

    @field_validator("params", mode="before")
    @classmethod
    def parse_params(cls, v: Any) -> bytes:
        """Params arrive base64 encoded; raw bytes pass through."""
        if v is None:
            return b""
        if isinstance(v, (bytes, bytearray)):
            return bytes(v)
        if isinstance(v, str):
            try:
                return base64.b64decode(v, validate=True)
            except binascii.Error as e:
                raise ValueError(f"Params are not valid base64: {e}")
        raise ValueError(f"Params must be base64 text, got {type(v).__name__}")

    @field_serializer("value", "gas_fee_cap", "gas_premium")
    def serialize_amount(self, v: int) -> str:
        return str(v)

    @field_serializer("params")
    def serialize_params(self, v: bytes) -> str:
        return base64.b64encode(v).decode("ascii")

    def to_message(self) -> Message:
        return Message(
            to=self.to,
            from_=self.from_,
            nonce=self.nonce,
            value=self.value,
            gas_limit=self.gas_limit,
            gas_fee_cap=self.gas_fee_cap,
            gas_premium=self.gas_premium,
            method=self.method,
            params=self.params,
        )

    @classmethod
    def from_message(cls, message: Message) -> MessageAPI:
        return cls(
            to=message.to,
            from_=message.from_,
            nonce=message.nonce,
            value=message.value,
            gas_limit=message.gas_limit,
            gas_fee_cap=message.gas_fee_cap,
            gas_premium=message.gas_premium,
            method=message.method,
            params=message.params,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return self.model_dump(by_alias=True, mode="json")


class SignatureAPI(BaseModel):
    """Signature in JSON form: Type 0 is secp256k1, 1 is BLS."""
    type: int = Field(alias="Type", ge=0, le=1)
    data: bytes = Field(alias="Data")

    model_config = {"populate_by_name": True}

    @field_validator("data", mode="before")
    @classmethod
    def parse_data(cls, v: Any) -> bytes:
        if isinstance(v, (bytes, bytearray)):
            return bytes(v)
        if isinstance(v, str):
            try:
                return base64.b64decode(v, validate=True)
            except binascii.Error as e:
                raise ValueError(f"Signature data is not valid base64: {e}")
        raise ValueError(f"Signature data must be base64 text, got {type(v).__name__}")

    @field_serializer("data")
    def serialize_data(self, v: bytes) -> str:
        return base64.b64encode(v).decode("ascii")

    def to_signature(self) -> Signature:
        return Signature(SignatureType.from_wire_type(self.type), self.data)

    @classmethod
    def from_signature(cls, signature: Signature) -> SignatureAPI:
        return cls(type=signature.scheme.wire_type, data=signature.data)


class SignedMessageAPI(BaseModel):
    """Signed message in JSON form: ``{"Message": {...}, "Signature": {...}}``."""
    message: MessageAPI = Field(alias="Message")
    signature: SignatureAPI = Field(alias="Signature")

    model_config = {"populate_by_name": True}

    def to_signed_message(self) -> SignedMessage:
        return SignedMessage(self.message.to_message(), self.signature.to_signature())

    @classmethod
    def from_signed_message(cls, signed: SignedMessage) -> SignedMessageAPI:
        return cls(
            message=MessageAPI.from_message(signed.message),
            signature=SignatureAPI.from_signature(signed.signature),
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


__all__ = [
    "MessageAPI",
    "SignatureAPI",
    "SignedMessageAPI",
]
