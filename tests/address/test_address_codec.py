"""
Address codec tests.

Covers text and binary round trips for every protocol, checksum
detection, and rejection of malformed text and bytes.
"""

import base64

import pytest
from pydantic import BaseModel, ValidationError

from filecoin_signer.address import Address, AddressCodec, Network, Protocol, parse_address
from filecoin_signer.runtime.errors import (
    AddressError,
    InvalidChecksumError,
    InvalidLengthError,
    MalformedEncodingError,
    UnknownNetworkError,
    UnknownProtocolError,
)


def _b32(data: bytes) -> str:
    return base64.b32encode(data).decode("ascii").lower().rstrip("=")


SAMPLE_ADDRESSES = [
    Address.new_id(0),
    Address.new_id(100),
    Address.new_id(2 ** 63 - 1),
    Address.new_secp256k1(b"\x04" + bytes(range(64))),
    Address.new_actor(b"actor seed"),
    Address.new_bls(bytes(range(48))),
    Address.new_delegated(10, bytes(range(20))),
    Address.new_delegated(32, b""),
    Address.new_id(7, Network.TEST),
]


class TestIdAddresses:
    """ID addresses use the decimal actor ID."""

    def test_id_text_form(self):
        """Test ID addresses render as f0<id>."""
        assert str(Address.new_id(100)) == "f0100"
        assert str(Address.new_id(0)) == "f00"
        assert str(Address.new_id(5, Network.TEST)) == "t05"

    def test_id_payload_is_varint(self):
        """Test the ID payload is the LEB128 varint of the ID."""
        assert Address.new_id(100).payload == b"\x64"
        assert Address.from_string("f01024").to_bytes() == bytes([0x00, 0x80, 0x08])

    def test_id_accessor(self):
        assert Address.from_string("f01024").id == 1024

    def test_id_rejects_leading_zero(self):
        with pytest.raises(MalformedEncodingError):
            AddressCodec.decode("f00100")

    def test_id_rejects_non_decimal(self):
        with pytest.raises(MalformedEncodingError):
            AddressCodec.decode("f0abc")

    def test_id_rejects_out_of_range(self):
        """Test IDs must fit in 63 bits."""
        with pytest.raises(InvalidLengthError):
            AddressCodec.decode("f0" + "9" * 19)
        with pytest.raises(InvalidLengthError):
            AddressCodec.decode("f0" + "1" * 20)
        with pytest.raises(InvalidLengthError):
            Address.new_id(2 ** 63)


class TestRoundTrips:
    """Text and binary forms round-trip exactly."""

    @pytest.mark.parametrize("address", SAMPLE_ADDRESSES, ids=str)
    def test_text_round_trip(self, address):
        text = str(address)
        decoded = AddressCodec.decode(text)
        assert decoded == address
        assert str(decoded) == text

    @pytest.mark.parametrize("address", SAMPLE_ADDRESSES, ids=str)
    def test_binary_round_trip(self, address):
        data = AddressCodec.to_bytes(address)
        assert data[0] == int(address.protocol)
        assert AddressCodec.from_bytes(data, address.network) == address

    def test_encode_static_matches_str(self):
        address = Address.new_actor(b"x")
        assert AddressCodec.encode(address.protocol, address.payload, address.network) == str(address)

    def test_prefixes(self):
        assert str(Address.new_secp256k1(b"\x04" + bytes(64))).startswith("f1")
        assert str(Address.new_actor(b"x")).startswith("f2")
        assert str(Address.new_bls(bytes(48))).startswith("f3")
        assert str(Address.new_delegated(10, bytes(20))).startswith("f410f")


class TestDelegated:
    """Delegated addresses carry a namespace and sub-address."""

    def test_accessors(self):
        address = Address.new_delegated(10, b"\xaa" * 20)
        assert address.namespace == 10
        assert address.subaddress == b"\xaa" * 20

    def test_subaddress_limit(self):
        Address.new_delegated(10, bytes(54))
        with pytest.raises(InvalidLengthError):
            Address.new_delegated(10, bytes(55))

    def test_missing_separator(self):
        with pytest.raises(MalformedEncodingError):
            AddressCodec.decode("f410")


class TestChecksum:
    """Checksums catch corrupted text."""

    def test_checksum_value(self):
        address = Address.new_actor(b"checksum")
        text = str(address)
        raw = base64.b32decode(text[2:].upper() + "=" * (-len(text[2:]) % 8))
        assert raw[-4:] == address.checksum()

    @pytest.mark.parametrize("address", [
        Address.new_secp256k1(b"\x04" + bytes(range(64))),
        Address.new_bls(bytes(range(48))),
        Address.new_delegated(10, bytes(range(20))),
    ], ids=str)
    def test_single_character_changes_detected(self, address):
        """Test every single-character substitution in the body is rejected."""
        text = str(address)
        start = text.index("f", 2) + 1 if address.protocol == Protocol.DELEGATED else 2
        for i in range(start, len(text)):
            replacement = "a" if text[i] != "a" else "b"
            mutated = text[:i] + replacement + text[i + 1:]
            with pytest.raises(AddressError):
                AddressCodec.decode(mutated)

    def test_checksum_error_type(self):
        address = Address.new_actor(b"y")
        text = str(address)[2:]
        body = base64.b32decode(text.upper() + "=" * (-len(text) % 8))
        corrupted = body[:-4] + bytes(b ^ 0xFF for b in body[-4:])
        with pytest.raises(InvalidChecksumError):
            AddressCodec.decode("f2" + _b32(corrupted))


class TestMalformedText:
    """Decoding rejects malformed text with typed errors."""

    def test_unknown_network(self):
        with pytest.raises(UnknownNetworkError):
            AddressCodec.decode("x0100")

    def test_unknown_protocol(self):
        with pytest.raises(UnknownProtocolError):
            AddressCodec.decode("f5aaaaaaaa")

    def test_uppercase_body(self):
        text = str(Address.new_actor(b"z"))
        with pytest.raises(MalformedEncodingError):
            AddressCodec.decode(text[:2] + text[2:].upper())

    def test_wrong_payload_length(self):
        with pytest.raises(InvalidLengthError):
            AddressCodec.decode("f1" + _b32(bytes(25)))

    def test_too_short_and_too_long(self):
        with pytest.raises(InvalidLengthError):
            AddressCodec.decode("f1")
        with pytest.raises(InvalidLengthError):
            AddressCodec.decode("f1" + "a" * 100)

    def test_non_string(self):
        with pytest.raises(MalformedEncodingError):
            AddressCodec.decode(b"f0100")


class TestMalformedBytes:
    """Binary decoding rejects malformed payloads."""

    def test_unknown_protocol_byte(self):
        with pytest.raises(UnknownProtocolError):
            AddressCodec.from_bytes(b"\x05" + bytes(20))

    def test_truncated_varint(self):
        with pytest.raises(InvalidLengthError):
            AddressCodec.from_bytes(b"\x00\x80")

    def test_non_minimal_varint(self):
        with pytest.raises(InvalidLengthError):
            AddressCodec.from_bytes(b"\x00\x80\x00")

    def test_trailing_id_bytes(self):
        with pytest.raises(InvalidLengthError):
            AddressCodec.from_bytes(b"\x00\x64\x00")

    def test_secp256k1_length(self):
        with pytest.raises(InvalidLengthError):
            AddressCodec.from_bytes(b"\x01" + bytes(21))

    def test_too_short(self):
        with pytest.raises(InvalidLengthError):
            AddressCodec.from_bytes(b"\x01")


class TestHelpers:
    """Network handling, parsing helper and pydantic integration."""

    def test_network_in_equality(self):
        main = Address.new_id(1)
        test = main.with_network(Network.TEST)
        assert main != test
        assert main.same_account(test)
        assert str(test) == "t01"

    def test_parse_address(self):
        address = Address.new_actor(b"p")
        assert parse_address(str(address)) == address
        assert parse_address(address.to_bytes()) == address
        assert parse_address(address, Network.TEST).network == Network.TEST
        with pytest.raises(MalformedEncodingError):
            parse_address(12)

    def test_pydantic_field(self):
        class Holder(BaseModel):
            address: Address

        holder = Holder(address="f0100")
        assert holder.address == Address.new_id(100)
        assert holder.model_dump(mode="json") == {"address": "f0100"}
        with pytest.raises(ValidationError):
            Holder(address="f0abc")
