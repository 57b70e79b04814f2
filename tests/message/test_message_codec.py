"""
Message codec tests.

Canonical 10-field encoding, strict decoding, signed messages and CIDs.
"""

import cbor2
import pytest

from filecoin_signer.address import Address, Network
from filecoin_signer.codec.bigint import encode_bigint
from filecoin_signer.codec.hashes import cid_bytes
from filecoin_signer.crypto.signature import Signature, SignatureType
from filecoin_signer.message import SignedMessage
from filecoin_signer.runtime.errors import (
    MalformedCborError,
    NonCanonicalIntegerError,
    SignerError,
    TypeMismatchError,
    WrongArityError,
)

from conftest import make_message


SENDER = Address.new_actor(b"sender")


def _fields(message):
    """CBOR item encodings of each message field, in order."""
    return [cbor2.dumps(v, canonical=True) for v in message.to_cbor_value()]


def _array(items):
    return bytes([0x80 | len(items)]) + b"".join(items)


class TestEncode:
    """Encoding produces the canonical 10-element array."""

    def test_layout(self, codec):
        message = make_message(SENDER)
        data = codec.encode(message)
        assert data[0] == 0x8A
        assert data[1] == 0x00
        assert cbor2.loads(data) == [
            0,
            message.to.to_bytes(),
            SENDER.to_bytes(),
            1,
            encode_bigint(message.value),
            25_000,
            encode_bigint(2_500),
            encode_bigint(2_500),
            0,
            b"",
        ]

    def test_deterministic(self, codec):
        assert codec.encode(make_message(SENDER)) == codec.encode(make_message(SENDER))

    def test_zero_amount_is_empty_bytes(self, codec):
        decoded = cbor2.loads(codec.encode(make_message(SENDER, value=0)))
        assert decoded[4] == b""

    def test_negative_gas_limit_allowed(self, codec):
        message = make_message(SENDER, gas_limit=-1)
        assert codec.decode(codec.encode(message)) == message


class TestRoundTrip:
    """decode(encode(m)) == m."""

    @pytest.mark.parametrize("overrides", [
        {},
        {"nonce": 0, "value": 0, "gas_fee_cap": 0, "gas_premium": 0},
        {"nonce": 2 ** 64 - 1, "method": 2 ** 64 - 1},
        {"gas_limit": 2 ** 63 - 1},
        {"gas_limit": -(2 ** 63)},
        {"value": 2 ** 1000},
        {"params": b"\x82\x01\x02", "method": 2},
        {"to": Address.new_bls(bytes(48))},
        {"to": Address.new_delegated(10, bytes(20))},
    ])
    def test_round_trip(self, codec, overrides):
        message = make_message(SENDER, **overrides)
        assert codec.decode(codec.encode(message)) == message

    def test_network_is_assigned_on_decode(self, codec):
        message = make_message(SENDER)
        decoded = codec.decode(codec.encode(message), Network.TEST)
        assert decoded.from_.network == Network.TEST
        assert str(decoded.to) == "t01024"


class TestValidation:
    """Constructing a message validates every field."""

    @pytest.mark.parametrize("overrides", [
        {"nonce": -1},
        {"nonce": 2 ** 64},
        {"value": -1},
        {"gas_limit": 2 ** 63},
        {"gas_fee_cap": -5},
        {"method": True},
        {"params": "text"},
        {"version": 1},
        {"to": "f01024"},
    ])
    def test_invalid_fields(self, overrides):
        with pytest.raises(TypeMismatchError):
            make_message(SENDER, **overrides)


class TestStrictDecode:
    """Malformed or non-canonical bytes are rejected."""

    def test_wrong_arity(self, codec):
        items = _fields(make_message(SENDER))
        with pytest.raises(WrongArityError):
            codec.decode(_array(items[:9]))
        with pytest.raises(WrongArityError):
            codec.decode(_array(items + [b"\x00"]))

    def test_not_an_array(self, codec):
        with pytest.raises(TypeMismatchError):
            codec.decode(cbor2.dumps({"a": 1}))

    def test_unknown_version(self, codec):
        items = _fields(make_message(SENDER))
        items[0] = b"\x01"
        with pytest.raises(TypeMismatchError):
            codec.decode(_array(items))

    def test_non_minimal_nonce(self, codec):
        items = _fields(make_message(SENDER, nonce=5))
        items[3] = b"\x18\x05"
        with pytest.raises(NonCanonicalIntegerError):
            codec.decode(_array(items))

    def test_bigint_leading_zero(self, codec):
        items = _fields(make_message(SENDER))
        items[4] = cbor2.dumps(b"\x00\x00\x01")
        with pytest.raises(NonCanonicalIntegerError):
            codec.decode(_array(items))

    def test_negative_value(self, codec):
        items = _fields(make_message(SENDER))
        items[4] = cbor2.dumps(b"\x01\x05")
        with pytest.raises(TypeMismatchError):
            codec.decode(_array(items))

    def test_wrong_field_type(self, codec):
        items = _fields(make_message(SENDER))
        items[3] = cbor2.dumps("1")
        with pytest.raises(TypeMismatchError):
            codec.decode(_array(items))

    def test_trailing_bytes(self, codec):
        data = codec.encode(make_message(SENDER)) + b"\x00"
        with pytest.raises(SignerError):
            codec.decode(data)

    def test_garbage(self, codec):
        with pytest.raises(MalformedCborError):
            codec.decode(b"")
        with pytest.raises(SignerError):
            codec.decode(b"\x8a\x00")

    def test_bit_flips_never_collide(self, codec):
        """Test no single-bit mutation decodes to the original message."""
        message = make_message(SENDER, to=Address.new_id(5), value=7)
        data = codec.encode(message)
        for i in range(len(data)):
            for bit in range(8):
                mutated = bytearray(data)
                mutated[i] ^= 1 << bit
                try:
                    decoded = codec.decode(bytes(mutated))
                except SignerError:
                    continue
                assert decoded != message
                assert codec.encode(decoded) == bytes(mutated)


class TestSignedMessages:
    """Signed messages encode as [message, signature]."""

    def test_round_trip(self, codec):
        signed = SignedMessage(make_message(SENDER), Signature(SignatureType.SECP256K1, bytes(65)))
        data = codec.encode_signed(signed)
        assert data[0] == 0x82
        assert codec.decode_signed(data) == signed

    def test_signature_type_byte(self, codec):
        signed = SignedMessage(make_message(SENDER), Signature(SignatureType.BLS, bytes(96)))
        decoded = cbor2.loads(codec.encode_signed(signed))
        assert decoded[1][0] == 2
        assert len(decoded[1]) == 97

    def test_wrong_arity(self, codec):
        with pytest.raises(WrongArityError):
            codec.decode_signed(cbor2.dumps([make_message(SENDER).to_cbor_value()]))


class TestCid:
    """Message CIDs."""

    def test_cid_format(self, codec):
        cid = codec.cid(make_message(SENDER))
        assert cid.startswith("bafy2bzace")
        assert len(cid) == 62

    def test_cid_changes_with_nonce(self, codec):
        assert codec.cid(make_message(SENDER, nonce=1)) != codec.cid(make_message(SENDER, nonce=2))

    def test_cid_bytes(self, codec):
        message = make_message(SENDER)
        assert codec.cid_bytes(message) == cid_bytes(codec.encode(message))

    def test_signed_cid(self, codec):
        message = make_message(SENDER)
        bls_signed = SignedMessage(message, Signature(SignatureType.BLS, bytes(96)))
        secp_signed = SignedMessage(message, Signature(SignatureType.SECP256K1, bytes(65)))
        assert codec.signed_cid(bls_signed) == codec.cid(message)
        assert codec.signed_cid(secp_signed) != codec.cid(message)
