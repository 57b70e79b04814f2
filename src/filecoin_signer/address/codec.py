"""
Filecoin address types and codec.

An address is a protocol tag plus a payload, rendered for a network. The
binary form is ``protocol_byte || payload``; the text form is
``<network><protocol digit><body>`` where the body is the decimal actor ID
for ID addresses and lowercase unpadded base32 of ``payload || checksum``
for everything else.
"""

from __future__ import annotations
import base64
import binascii
import dataclasses
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Optional

from pydantic import GetCoreSchemaHandler
from pydantic_core import CoreSchema, core_schema

from ..codec.hashes import address_checksum, blake2b_160
from ..codec.reader import BinaryReader, VarintError, decode_uvarint
from ..codec.writer import encode_uvarint
from ..runtime.errors import (
    AddressError,
    InvalidChecksumError,
    InvalidLengthError,
    MalformedEncodingError,
    UnknownNetworkError,
    UnknownProtocolError,
)


PAYLOAD_HASH_LEN = 20
BLS_PUBLIC_KEY_LEN = 48
SECP256K1_PUBLIC_KEY_LEN = 65
CHECKSUM_LEN = 4
MAX_SUBADDRESS_LEN = 54
MAX_ID_DIGITS = 19
# actor IDs and namespaces are signed 64-bit on chain
MAX_ACTOR_ID = (1 << 63) - 1
MAX_ADDRESS_TEXT_LEN = 86

BASE32_ALPHABET = frozenset("abcdefghijklmnopqrstuvwxyz234567")


class Protocol(IntEnum):
    """Address protocol tags (the first byte of the binary form)."""
    ID = 0
    SECP256K1 = 1
    ACTOR = 2
    BLS = 3
    DELEGATED = 4


class Network(str, Enum):
    """Network prefix character."""
    MAIN = "f"
    TEST = "t"


_FIXED_PAYLOAD_LEN = {
    Protocol.SECP256K1: PAYLOAD_HASH_LEN,
    Protocol.ACTOR: PAYLOAD_HASH_LEN,
    Protocol.BLS: BLS_PUBLIC_KEY_LEN,
}


def _b32encode(data: bytes) -> str:
    return base64.b32encode(data).decode("ascii").lower().rstrip("=")


def _b32decode(text: str) -> bytes:
    if not text or any(c not in BASE32_ALPHABET for c in text):
        raise MalformedEncodingError("Address body is not lowercase base32",
                                     details={"body": text})
    padded = text.upper() + "=" * (-len(text) % 8)
    try:
        data = base64.b32decode(padded)
    except (binascii.Error, ValueError) as e:
        raise MalformedEncodingError("Address body is not valid base32", cause=e)
    # reject bodies with non-zero trailing bits so every address has one text form
    if _b32encode(data) != text:
        raise MalformedEncodingError("Address body is not canonical base32",
                                     details={"body": text})
    return data


def _parse_decimal(text: str, what: str) -> int:
    if not text or not text.isascii() or not text.isdigit():
        raise MalformedEncodingError(f"{what} is not a decimal number", details={"value": text})
    if len(text) > 1 and text[0] == "0":
        raise MalformedEncodingError(f"{what} has leading zeros", details={"value": text})
    if len(text) > MAX_ID_DIGITS:
        raise InvalidLengthError(f"{what} is too long", details={"value": text})
    value = int(text)
    if value > MAX_ACTOR_ID:
        raise InvalidLengthError(f"{what} does not fit in 63 bits", details={"value": text})
    return value


def _check_payload(protocol: Protocol, payload: bytes) -> None:
    expected = _FIXED_PAYLOAD_LEN.get(protocol)
    if expected is not None:
        if len(payload) != expected:
            raise InvalidLengthError(
                f"{protocol.name} payload must be {expected} bytes, got {len(payload)}",
                details={"protocol": protocol.name, "length": len(payload)}
            )
        return

    reader = BinaryReader(payload)
    try:
        value = reader.uvarint()
    except VarintError as e:
        raise InvalidLengthError(f"{protocol.name} payload has an invalid varint", cause=e)
    if value > MAX_ACTOR_ID:
        raise InvalidLengthError(f"{protocol.name} actor ID does not fit in 63 bits")
    if protocol == Protocol.ID:
        if not reader.eof:
            raise InvalidLengthError("ID payload has trailing bytes")
    elif reader.remaining > MAX_SUBADDRESS_LEN:
        raise InvalidLengthError(
            f"Delegated sub-address must be at most {MAX_SUBADDRESS_LEN} bytes, got {reader.remaining}"
        )


@dataclass(frozen=True)
class Address:
    """
    Immutable Filecoin address.

    Equality covers protocol, payload and network. Use ``same_account`` to
    compare while ignoring the network.
    """
    protocol: Protocol
    payload: bytes
    network: Network = Network.MAIN

    def __post_init__(self):
        try:
            protocol = Protocol(self.protocol)
        except ValueError:
            raise UnknownProtocolError(f"Unknown address protocol: {self.protocol!r}")
        try:
            network = Network(self.network)
        except ValueError:
            raise UnknownNetworkError(f"Unknown network: {self.network!r}")
        object.__setattr__(self, "protocol", protocol)
        object.__setattr__(self, "network", network)
        object.__setattr__(self, "payload", bytes(self.payload))
        _check_payload(protocol, self.payload)

    # -- constructors --------------------------------------------------------

    @classmethod
    def new_id(cls, actor_id: int, network: Network = Network.MAIN) -> Address:
        """Create an ID address."""
        if actor_id < 0 or actor_id > MAX_ACTOR_ID:
            raise InvalidLengthError(f"Actor ID out of range: {actor_id}")
        return cls(Protocol.ID, encode_uvarint(actor_id), network)

    @classmethod
    def new_secp256k1(cls, public_key: bytes, network: Network = Network.MAIN) -> Address:
        """Create a secp256k1 address from a 65-byte uncompressed public key."""
        if len(public_key) != SECP256K1_PUBLIC_KEY_LEN:
            raise InvalidLengthError(
                f"secp256k1 public key must be {SECP256K1_PUBLIC_KEY_LEN} bytes, got {len(public_key)}"
            )
        return cls(Protocol.SECP256K1, blake2b_160(public_key), network)

    @classmethod
    def new_actor(cls, data: bytes, network: Network = Network.MAIN) -> Address:
        """Create an actor address by hashing arbitrary data."""
        return cls(Protocol.ACTOR, blake2b_160(data), network)

    @classmethod
    def new_bls(cls, public_key: bytes, network: Network = Network.MAIN) -> Address:
        """Create a BLS address; the payload is the public key itself."""
        return cls(Protocol.BLS, public_key, network)

    @classmethod
    def new_delegated(cls, namespace: int, subaddress: bytes,
                      network: Network = Network.MAIN) -> Address:
        """Create a delegated address under an actor namespace."""
        if namespace < 0 or namespace > MAX_ACTOR_ID:
            raise InvalidLengthError(f"Namespace out of range: {namespace}")
        if len(subaddress) > MAX_SUBADDRESS_LEN:
            raise InvalidLengthError(
                f"Delegated sub-address must be at most {MAX_SUBADDRESS_LEN} bytes"
            )
        return cls(Protocol.DELEGATED, encode_uvarint(namespace) + bytes(subaddress), network)

    @classmethod
    def from_string(cls, text: str) -> Address:
        """Parse the text form."""
        return AddressCodec.decode(text)

    @classmethod
    def from_bytes(cls, data: bytes, network: Network = Network.MAIN) -> Address:
        """Parse the binary form."""
        return AddressCodec.from_bytes(data, network)

    # -- accessors -----------------------------------------------------------

    @property
    def id(self) -> int:
        """Actor ID of an ID address."""
        if self.protocol != Protocol.ID:
            raise AttributeError("Only ID addresses carry an actor ID")
        return decode_uvarint(self.payload)

    @property
    def namespace(self) -> int:
        """Namespace actor ID of a delegated address."""
        if self.protocol != Protocol.DELEGATED:
            raise AttributeError("Only delegated addresses carry a namespace")
        return BinaryReader(self.payload).uvarint()

    @property
    def subaddress(self) -> bytes:
        """Sub-address of a delegated address."""
        if self.protocol != Protocol.DELEGATED:
            raise AttributeError("Only delegated addresses carry a sub-address")
        reader = BinaryReader(self.payload)
        reader.uvarint()
        return reader.rest()

    def with_network(self, network: Network) -> Address:
        return dataclasses.replace(self, network=Network(network))

    def same_account(self, other: Address) -> bool:
        """Compare protocol and payload, ignoring the network."""
        return self.protocol == other.protocol and self.payload == other.payload

    def checksum(self) -> bytes:
        """4-byte checksum over the binary form."""
        return address_checksum(self.to_bytes())

    def to_bytes(self) -> bytes:
        """Binary form: protocol byte followed by the payload."""
        return bytes([int(self.protocol)]) + self.payload

    def __str__(self) -> str:
        return AddressCodec.encode(self.protocol, self.payload, self.network)

    def __repr__(self) -> str:
        return f"Address('{self}')"

    # -- pydantic integration -----------------------------------------------

    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        source_type: Any,
        handler: GetCoreSchemaHandler,
    ) -> CoreSchema:
        """Validate addresses from their text form and serialize them back to text."""
        return core_schema.no_info_before_validator_function(
            cls._validate,
            core_schema.is_instance_schema(cls),
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )

    @classmethod
    def _validate(cls, value: Any) -> Address:
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls.from_string(value)
            except AddressError as e:
                raise ValueError(e.message) from e
        raise ValueError(f"Invalid address: {value!r}")


class AddressCodec:
    """
    Conversions between addresses and their text and binary forms.
    """

    @staticmethod
    def encode(protocol: Protocol, payload: bytes, network: Network = Network.MAIN) -> str:
        """
        Render an address as text.

        Args:
            protocol: Address protocol
            payload: Protocol payload
            network: Network prefix

        Returns:
            Address text, e.g. ``f0100`` or ``f1...``

        Raises:
            AddressError: If the payload is invalid for the protocol
        """
        protocol = Protocol(protocol)
        payload = bytes(payload)
        _check_payload(protocol, payload)
        prefix = f"{Network(network).value}{int(protocol)}"

        if protocol == Protocol.ID:
            return prefix + str(decode_uvarint(payload))

        checksum = address_checksum(bytes([int(protocol)]) + payload)
        if protocol == Protocol.DELEGATED:
            reader = BinaryReader(payload)
            namespace = reader.uvarint()
            return f"{prefix}{namespace}f{_b32encode(reader.rest() + checksum)}"
        return prefix + _b32encode(payload + checksum)

    @staticmethod
    def decode(text: str) -> Address:
        """
        Parse address text.

        Args:
            text: Address text

        Returns:
            Address

        Raises:
            UnknownNetworkError: Unknown network character
            UnknownProtocolError: Unknown protocol digit
            MalformedEncodingError: Invalid base32 or decimal body
            InvalidLengthError: Wrong payload length for the protocol
            InvalidChecksumError: Checksum mismatch
        """
        if not isinstance(text, str):
            raise MalformedEncodingError(f"Address must be a string, got {type(text).__name__}")
        if len(text) < 3:
            raise InvalidLengthError("Address text is too short", details={"address": text})
        if len(text) > MAX_ADDRESS_TEXT_LEN:
            raise InvalidLengthError("Address text is too long", details={"length": len(text)})

        try:
            network = Network(text[0])
        except ValueError:
            raise UnknownNetworkError(f"Unknown network prefix: {text[0]!r}")

        if text[1] not in "01234":
            raise UnknownProtocolError(f"Unknown address protocol: {text[1]!r}")
        protocol = Protocol(int(text[1]))
        body = text[2:]

        if protocol == Protocol.ID:
            return Address(protocol, encode_uvarint(_parse_decimal(body, "Actor ID")), network)

        if protocol == Protocol.DELEGATED:
            namespace_text, sep, body = body.partition("f")
            if not sep:
                raise MalformedEncodingError("Delegated address is missing its namespace separator")
            prefix = encode_uvarint(_parse_decimal(namespace_text, "Namespace"))
        else:
            prefix = b""

        data = _b32decode(body)
        if len(data) < CHECKSUM_LEN:
            raise InvalidLengthError("Address body is shorter than its checksum")
        payload = prefix + data[:-CHECKSUM_LEN]
        checksum = data[-CHECKSUM_LEN:]

        _check_payload(protocol, payload)
        if address_checksum(bytes([int(protocol)]) + payload) != checksum:
            raise InvalidChecksumError(details={"address": text})
        return Address(protocol, payload, network)

    @staticmethod
    def to_bytes(address: Address) -> bytes:
        """Binary form of an address."""
        return address.to_bytes()

    @staticmethod
    def from_bytes(data: bytes, network: Network = Network.MAIN) -> Address:
        """
        Parse the binary form of an address.

        Args:
            data: ``protocol_byte || payload``
            network: Network to attach (the binary form carries none)

        Returns:
            Address

        Raises:
            AddressError: On unknown protocols or invalid payloads
        """
        if not isinstance(data, (bytes, bytearray)):
            raise MalformedEncodingError(f"Address bytes expected, got {type(data).__name__}")
        if len(data) < 2:
            raise InvalidLengthError("Address bytes are too short")
        if data[0] > max(Protocol):
            raise UnknownProtocolError(f"Unknown address protocol: {data[0]}")
        return Address(Protocol(data[0]), bytes(data[1:]), network)


def parse_address(value: Any, network: Optional[Network] = None) -> Address:
    """
    Coerce text, bytes or an Address into an Address.

    Args:
        value: Address, address text, or binary form
        network: Network to attach to binary forms, or to override

    Returns:
        Address
    """
    if isinstance(value, Address):
        address = value
    elif isinstance(value, str):
        address = AddressCodec.decode(value)
    elif isinstance(value, (bytes, bytearray)):
        address = AddressCodec.from_bytes(bytes(value), network or Network.MAIN)
    else:
        raise MalformedEncodingError(f"Cannot interpret {type(value).__name__} as an address")
    if network is not None and address.network != network:
        address = address.with_network(network)
    return address


__all__ = [
    "Address",
    "AddressCodec",
    "Network",
    "Protocol",
    "parse_address",
    "PAYLOAD_HASH_LEN",
    "BLS_PUBLIC_KEY_LEN",
    "SECP256K1_PUBLIC_KEY_LEN",
    "CHECKSUM_LEN",
    "MAX_SUBADDRESS_LEN",
]
