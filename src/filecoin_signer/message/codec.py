"""
Canonical DAG-CBOR encoding of chain messages.

A message encodes as the 10-element array
``[version, to, from, nonce, value, gas_limit, gas_fee_cap, gas_premium, method, params]``
with addresses in their binary form and token amounts as big-integer bytes.
A signed message encodes as ``[message, signature]``.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from ..address import Address, Network
from ..codec import cbor
from ..codec.bigint import MAX_UNSIGNED_BIGINT, decode_bigint, encode_bigint
from ..codec.hashes import cid_bytes, cid_string, signing_digest
from ..crypto.signature import Signature, SignatureType
from ..runtime.errors import SerializationError, TypeMismatchError, WrongArityError
from .params import Schema, deserialize_params, serialize_params

logger = logging.getLogger(__name__)

MESSAGE_VERSION = 0
MESSAGE_FIELDS = 10
SIGNED_MESSAGE_FIELDS = 2

MAX_UINT64 = (1 << 64) - 1
MIN_INT64 = -(1 << 63)
MAX_INT64 = (1 << 63) - 1


def check_uint64(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_UINT64:
        raise TypeMismatchError(f"{field} must be an unsigned 64-bit integer, got {value!r}",
                                details={"field": field})
    return value


def check_int64(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not MIN_INT64 <= value <= MAX_INT64:
        raise TypeMismatchError(f"{field} must be a signed 64-bit integer, got {value!r}",
                                details={"field": field})
    return value


def check_token_amount(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_UNSIGNED_BIGINT:
        raise TypeMismatchError(f"{field} must be a non-negative big integer",
                                details={"field": field})
    return value


def check_bytes(value: Any, field: str) -> bytes:
    if not isinstance(value, (bytes, bytearray)):
        raise TypeMismatchError(f"{field} must be bytes, got {type(value).__name__}",
                                details={"field": field})
    return bytes(value)


def address_from_cbor(value: Any, field: str, network: Network) -> Address:
    return Address.from_bytes(check_bytes(value, field), network)


@dataclass(frozen=True)
class Message:
    """
    Unsigned chain message.

    Value and gas prices are attoFIL amounts (non-negative integers of any
    size up to the big-integer limit).
    """
    to: Address
    from_: Address
    nonce: int
    value: int
    gas_limit: int
    gas_fee_cap: int
    gas_premium: int
    method: int
    params: bytes = b""
    version: int = MESSAGE_VERSION

    def __post_init__(self):
        for name in ("to", "from_"):
            if not isinstance(getattr(self, name), Address):
                raise TypeMismatchError(f"{name} must be an Address", details={"field": name})
        if self.version != MESSAGE_VERSION or isinstance(self.version, bool):
            raise TypeMismatchError(f"Unsupported message version: {self.version!r}",
                                    details={"field": "version"})
        check_uint64(self.nonce, "nonce")
        check_token_amount(self.value, "value")
        check_int64(self.gas_limit, "gas_limit")
        check_token_amount(self.gas_fee_cap, "gas_fee_cap")
        check_token_amount(self.gas_premium, "gas_premium")
        check_uint64(self.method, "method")
        object.__setattr__(self, "params", check_bytes(self.params, "params"))

    def to_cbor_value(self) -> List[Any]:
        return [
            self.version,
            self.to.to_bytes(),
            self.from_.to_bytes(),
            self.nonce,
            encode_bigint(self.value),
            self.gas_limit,
            encode_bigint(self.gas_fee_cap),
            encode_bigint(self.gas_premium),
            self.method,
            self.params,
        ]

    @classmethod
    def from_cbor_value(cls, value: Any, network: Network = Network.MAIN) -> Message:
        """
        Build a message from its decoded CBOR array.

        Raises:
            WrongArityError: If the array does not have 10 elements
            TypeMismatchError: If a field has the wrong type or range
        """
        if not isinstance(value, list):
            raise TypeMismatchError(f"Message must be a CBOR array, got {type(value).__name__}")
        if len(value) != MESSAGE_FIELDS:
            raise WrongArityError(f"Message must have {MESSAGE_FIELDS} fields, got {len(value)}",
                                  details={"expected": MESSAGE_FIELDS, "actual": len(value)})
        (version, to, from_, nonce, amount, gas_limit,
         gas_fee_cap, gas_premium, method, params) = value
        if isinstance(version, bool) or version != MESSAGE_VERSION:
            raise TypeMismatchError(f"Unsupported message version: {version!r}",
                                    details={"field": "version"})
        return cls(
            to=address_from_cbor(to, "to", network),
            from_=address_from_cbor(from_, "from", network),
            nonce=check_uint64(nonce, "nonce"),
            value=decode_bigint(amount, field="value"),
            gas_limit=check_int64(gas_limit, "gas_limit"),
            gas_fee_cap=decode_bigint(gas_fee_cap, field="gas_fee_cap"),
            gas_premium=decode_bigint(gas_premium, field="gas_premium"),
            method=check_uint64(method, "method"),
            params=check_bytes(params, "params"),
        )


@dataclass(frozen=True)
class SignedMessage:
    """A message together with the signature of its sender."""
    message: Message
    signature: Signature

    def __post_init__(self):
        if not isinstance(self.message, Message):
            raise TypeMismatchError("message must be a Message")
        if not isinstance(self.signature, Signature):
            raise TypeMismatchError("signature must be a Signature")


class MessageCodec:
    """
    Encoder and strict decoder for messages and signed messages.

    Args:
        logger: Logger to use instead of the module logger
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def encode(self, message: Message) -> bytes:
        """
        Canonical CBOR bytes of an unsigned message.

        Raises:
            TypeMismatchError: If a field cannot be encoded
        """
        if not isinstance(message, Message):
            raise TypeMismatchError(f"Message expected, got {type(message).__name__}")
        return cbor.dumps(message.to_cbor_value())

    def decode(self, data: bytes, network: Network = Network.MAIN) -> Message:
        """
        Decode canonical message bytes.

        Args:
            data: CBOR bytes
            network: Network assigned to the decoded addresses

        Raises:
            WrongArityError, TypeMismatchError, NonCanonicalIntegerError,
            MalformedCborError: On malformed input
        """
        try:
            return Message.from_cbor_value(cbor.loads(data), network)
        except SerializationError as e:
            self.logger.debug(f"Rejected message bytes: {e.message}")
            raise

    def encode_signed(self, signed: SignedMessage) -> bytes:
        """Canonical CBOR bytes of ``[message, signature]``."""
        return cbor.dumps([signed.message.to_cbor_value(), signed.signature.to_bytes()])

    def decode_signed(self, data: bytes, network: Network = Network.MAIN) -> SignedMessage:
        value = cbor.loads(data)
        if not isinstance(value, list):
            raise TypeMismatchError("Signed message must be a CBOR array")
        if len(value) != SIGNED_MESSAGE_FIELDS:
            raise WrongArityError(
                f"Signed message must have {SIGNED_MESSAGE_FIELDS} fields, got {len(value)}",
                details={"expected": SIGNED_MESSAGE_FIELDS, "actual": len(value)}
            )
        message = Message.from_cbor_value(value[0], network)
        signature = Signature.from_bytes(check_bytes(value[1], "signature"))
        return SignedMessage(message, signature)

    def cid_bytes(self, message: Message) -> bytes:
        return cid_bytes(self.encode(message))

    def cid(self, message: Message) -> str:
        """CIDv1 (dag-cbor, blake2b-256) of the message, base32 multibase."""
        return cid_string(self.encode(message))

    def signed_cid(self, signed: SignedMessage) -> str:
        """
        CID under which a signed message lands on chain.

        BLS messages are aggregated into blocks without their signatures,
        so they are identified by the unsigned message CID.
        """
        if signed.signature.scheme == SignatureType.BLS:
            return self.cid(signed.message)
        return cid_string(self.encode_signed(signed))

    def signing_digest(self, message: Message) -> bytes:
        """blake2b-256 of the message CID bytes."""
        return signing_digest(self.encode(message))

    @staticmethod
    def serialize_params(value: Any, schema: Optional[Schema] = None) -> bytes:
        """Canonical CBOR of method parameters, optionally shaped by a schema."""
        return serialize_params(value, schema)

    @staticmethod
    def deserialize_params(data: bytes, schema: Optional[Schema] = None,
                           network: Network = Network.MAIN) -> Any:
        return deserialize_params(data, schema, network)


__all__ = [
    "Message",
    "SignedMessage",
    "MessageCodec",
    "MESSAGE_VERSION",
    "check_uint64",
    "check_int64",
    "check_token_amount",
    "check_bytes",
]
