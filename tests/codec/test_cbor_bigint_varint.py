"""
Low-level codec tests: strict canonical CBOR, big integers, varints and hashes.
"""

import pytest

from filecoin_signer.codec import cbor
from filecoin_signer.codec.bigint import MAX_BIGINT_BYTES, decode_bigint, encode_bigint
from filecoin_signer.codec.hashes import CID_PREFIX, blake2b_256, cid_bytes, cid_string, signing_digest
from filecoin_signer.codec.reader import BinaryReader, VarintError, decode_uvarint
from filecoin_signer.codec.writer import BinaryWriter, encode_uvarint
from filecoin_signer.runtime.errors import (
    MalformedCborError,
    NonCanonicalIntegerError,
    SerializationError,
    TypeMismatchError,
)


class TestStrictCbor:
    """Decoding accepts only canonical bytes."""

    def test_round_trip(self):
        value = [0, -1, 2 ** 64 - 1, b"bytes", "text", None, True, {"b": 1, "a": [1, 2]}]
        assert cbor.loads(cbor.dumps(value)) == value

    def test_tag_42_links(self):
        link = cbor.CBORTag(42, b"\x00\x01\x71")
        assert cbor.loads(cbor.dumps([link])) == [link]

    def test_rejects_unsupported_types(self):
        with pytest.raises(TypeMismatchError):
            cbor.dumps(1.5)
        with pytest.raises(TypeMismatchError):
            cbor.dumps({1: "int key"})
        with pytest.raises(TypeMismatchError):
            cbor.dumps(cbor.CBORTag(1, 0))
        with pytest.raises(TypeMismatchError):
            cbor.dumps(2 ** 64)

    def test_non_minimal_integer(self):
        """Test 5 encoded with a one-byte argument is rejected."""
        with pytest.raises(NonCanonicalIntegerError):
            cbor.loads(b"\x18\x05")

    def test_non_minimal_length(self):
        with pytest.raises(NonCanonicalIntegerError):
            cbor.loads(b"\x58\x01\xff")

    def test_indefinite_length(self):
        with pytest.raises(NonCanonicalIntegerError):
            cbor.loads(b"\x9f\x01\xff")

    def test_unsorted_map_keys(self):
        with pytest.raises(NonCanonicalIntegerError):
            cbor.loads(b"\xa2\x61b\x01\x61a\x02")

    def test_trailing_bytes(self):
        with pytest.raises(SerializationError):
            cbor.loads(b"\x01\x02")

    def test_malformed(self):
        with pytest.raises(MalformedCborError):
            cbor.loads(b"")
        with pytest.raises(MalformedCborError):
            cbor.loads(b"\x5a\x00\x00\x00\x10")
        with pytest.raises(SerializationError):
            cbor.loads(b"\xff")

    def test_float_rejected_on_decode(self):
        with pytest.raises(TypeMismatchError):
            cbor.loads(b"\xf9\x3c\x00")

    def test_non_bytes_input(self):
        with pytest.raises(TypeMismatchError):
            cbor.loads("a0")


class TestBigInt:
    """Sign-plus-magnitude big integers."""

    def test_zero_is_empty(self):
        assert encode_bigint(0) == b""
        assert decode_bigint(b"") == 0

    def test_positive_and_negative(self):
        assert encode_bigint(1) == b"\x00\x01"
        assert encode_bigint(256) == b"\x00\x01\x00"
        assert encode_bigint(-5) == b"\x01\x05"
        assert decode_bigint(b"\x01\x05", signed=True) == -5

    def test_negative_rejected_when_unsigned(self):
        with pytest.raises(TypeMismatchError):
            decode_bigint(b"\x01\x05")

    def test_leading_zero_rejected(self):
        with pytest.raises(NonCanonicalIntegerError):
            decode_bigint(b"\x00\x00\x01")
        with pytest.raises(NonCanonicalIntegerError):
            decode_bigint(b"\x00")

    def test_bad_sign_byte(self):
        with pytest.raises(TypeMismatchError):
            decode_bigint(b"\x02\x01")

    def test_size_limit(self):
        largest = 2 ** (8 * (MAX_BIGINT_BYTES - 1)) - 1
        assert decode_bigint(encode_bigint(largest)) == largest
        with pytest.raises(TypeMismatchError):
            encode_bigint(largest + 1)
        with pytest.raises(TypeMismatchError):
            decode_bigint(b"\x00" + b"\x01" * MAX_BIGINT_BYTES)

    def test_rejects_bool(self):
        with pytest.raises(TypeMismatchError):
            encode_bigint(True)


class TestVarint:
    """Unsigned LEB128 varints."""

    def test_known_encodings(self):
        assert encode_uvarint(0) == b"\x00"
        assert encode_uvarint(127) == b"\x7f"
        assert encode_uvarint(128) == b"\x80\x01"
        assert encode_uvarint(1024) == b"\x80\x08"

    def test_writer_reader(self):
        writer = BinaryWriter()
        writer.uvarint(300)
        writer.u8(7)
        writer.bytes(b"xy")
        reader = BinaryReader(writer.to_bytes())
        assert reader.uvarint() == 300
        assert reader.u8() == 7
        assert reader.rest() == b"xy"
        assert reader.eof

    def test_max_uint64(self):
        assert decode_uvarint(encode_uvarint(2 ** 64 - 1)) == 2 ** 64 - 1

    def test_rejects_non_minimal(self):
        with pytest.raises(VarintError):
            decode_uvarint(b"\x80\x00")

    def test_rejects_overflow(self):
        with pytest.raises(VarintError):
            decode_uvarint(b"\xff" * 9 + b"\x02")
        with pytest.raises(VarintError):
            decode_uvarint(b"\x80" * 11)

    def test_rejects_trailing(self):
        with pytest.raises(VarintError):
            decode_uvarint(b"\x01\x00")

    def test_writer_range(self):
        with pytest.raises(ValueError):
            encode_uvarint(-1)
        with pytest.raises(ValueError):
            encode_uvarint(2 ** 64)


class TestHashes:
    """CID construction and signing digests."""

    def test_cid_bytes_layout(self):
        data = cbor.dumps([1, 2, 3])
        cid = cid_bytes(data)
        assert cid[:6] == bytes([0x01, 0x71, 0xA0, 0xE4, 0x02, 0x20])
        assert cid[:6] == CID_PREFIX
        assert cid[6:] == blake2b_256(data)
        assert len(cid) == 38

    def test_cid_string(self):
        text = cid_string(cbor.dumps([1]))
        assert text.startswith("bafy2bzace")
        assert text == text.lower()
        assert "=" not in text

    def test_signing_digest(self):
        data = cbor.dumps({"a": 1})
        assert signing_digest(data) == blake2b_256(cid_bytes(data))
        assert len(signing_digest(data)) == 32
