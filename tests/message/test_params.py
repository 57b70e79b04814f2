"""
Method parameter and proposal hash tests.
"""

import base64

import pytest

from filecoin_signer.address import Address, Network
from filecoin_signer.codec.cbor import CBORTag
from filecoin_signer.message import (
    AddressShape,
    ArrayOf,
    BigInt,
    Bool,
    Bytes,
    Int,
    MapOf,
    MessageCodec,
    Nullable,
    RegistrySchemaProvider,
    Struct,
    Text,
    UInt,
    compute_proposal_hash,
    deserialize_method_params,
    deserialize_params,
    proposal_hash_base64,
    serialize_method_params,
    serialize_params,
)
from filecoin_signer.runtime.errors import (
    NonCanonicalIntegerError,
    TypeMismatchError,
    WrongArityError,
)


PROPOSE_PARAMS = Struct([
    ("to", AddressShape()),
    ("value", BigInt()),
    ("method", UInt()),
    ("params", Bytes()),
])

CONSTRUCTOR_PARAMS = Struct([
    ("signers", ArrayOf(AddressShape())),
    ("num_approvals_threshold", UInt()),
    ("unlock_duration", Int()),
    ("start_epoch", Int()),
])


class TestSchemaless:
    """Without a schema any data-model value is accepted."""

    def test_nested_round_trip(self):
        value = {
            "list": [1, -2, b"\x00", "s", None, True],
            "map": {"inner": [[]]},
            "link": CBORTag(42, b"\x00\x01\x71\xa0\xe4\x02\x20" + bytes(32)),
        }
        assert deserialize_params(serialize_params(value)) == value

    def test_empty_params(self):
        assert serialize_params([]) == b"\x80"

    def test_float_rejected(self):
        with pytest.raises(TypeMismatchError):
            serialize_params({"x": 1.5})

    def test_non_canonical_rejected(self):
        with pytest.raises(NonCanonicalIntegerError):
            deserialize_params(b"\x81\x18\x01")

    def test_codec_static_helpers(self):
        data = MessageCodec.serialize_params([1, 2])
        assert MessageCodec.deserialize_params(data) == [1, 2]


class TestStructs:
    """Records encode as tuples in declaration order."""

    def test_round_trip(self):
        value = {
            "signers": [Address.new_id(100), Address.new_actor(b"a")],
            "num_approvals_threshold": 1,
            "unlock_duration": 0,
            "start_epoch": -1,
        }
        data = serialize_params(value, CONSTRUCTOR_PARAMS)
        assert data[0] == 0x84
        assert deserialize_params(data, CONSTRUCTOR_PARAMS) == value

    def test_text_addresses_accepted(self):
        data = serialize_params({"to": "f0100", "value": 5, "method": 0, "params": b""}, PROPOSE_PARAMS)
        decoded = deserialize_params(data, PROPOSE_PARAMS, Network.TEST)
        assert decoded["to"] == Address.new_id(100, Network.TEST)
        assert decoded["value"] == 5

    def test_missing_field(self):
        with pytest.raises(TypeMismatchError):
            serialize_params({"to": "f0100", "value": 5, "method": 0}, PROPOSE_PARAMS)

    def test_unknown_field(self):
        with pytest.raises(TypeMismatchError):
            serialize_params({"to": "f0100", "value": 5, "method": 0, "params": b"", "x": 1},
                             PROPOSE_PARAMS)

    def test_wrong_decode_arity(self):
        data = serialize_params([Address.new_id(1).to_bytes(), b"", 0])
        with pytest.raises(WrongArityError):
            deserialize_params(data, PROPOSE_PARAMS)

    def test_wrong_field_type(self):
        with pytest.raises(TypeMismatchError):
            serialize_params({"to": "f0100", "value": "5", "method": 0, "params": b""}, PROPOSE_PARAMS)


class TestShapes:
    """Individual shapes validate ranges and types."""

    def test_uint_range(self):
        assert UInt(8).to_cbor(255) == 255
        with pytest.raises(TypeMismatchError):
            UInt(8).to_cbor(256)
        with pytest.raises(TypeMismatchError):
            UInt().to_cbor(-1)
        with pytest.raises(TypeMismatchError):
            UInt().to_cbor(True)

    def test_int_range(self):
        assert Int(8).to_cbor(-128) == -128
        with pytest.raises(TypeMismatchError):
            Int(8).to_cbor(128)

    def test_bigint(self):
        assert BigInt().to_cbor(256) == b"\x00\x01\x00"
        assert BigInt(signed=True).from_cbor(b"\x01\x05") == -5
        with pytest.raises(TypeMismatchError):
            BigInt().to_cbor(-1)

    def test_bytes_limit(self):
        with pytest.raises(TypeMismatchError):
            Bytes(max_len=2).to_cbor(b"abc")

    def test_text_and_bool(self):
        assert Text().to_cbor("x") == "x"
        assert Bool().from_cbor(False) is False
        with pytest.raises(TypeMismatchError):
            Bool().to_cbor(0)

    def test_nullable(self):
        shape = Nullable(AddressShape())
        assert shape.to_cbor(None) is None
        assert shape.from_cbor(None) is None
        assert shape.to_cbor("f01") == Address.new_id(1).to_bytes()

    def test_map_of(self):
        shape = MapOf(BigInt())
        data = serialize_params({"a": 1, "bb": 0}, shape)
        assert deserialize_params(data, shape) == {"a": 1, "bb": 0}
        with pytest.raises(TypeMismatchError):
            MapOf(UInt()).to_cbor({1: 1})

    def test_error_path(self):
        with pytest.raises(TypeMismatchError) as exc_info:
            CONSTRUCTOR_PARAMS.to_cbor({
                "signers": ["f01", 7],
                "num_approvals_threshold": 1,
                "unlock_duration": 0,
                "start_epoch": 0,
            })
        assert exc_info.value.details["path"] == "$.signers[1]"


class TestSchemaProvider:
    """Schemas looked up per actor method."""

    def test_registry(self):
        provider = RegistrySchemaProvider()
        provider.register("multisig", 2, PROPOSE_PARAMS)
        assert len(provider) == 1
        value = {"to": Address.new_id(9), "value": 1, "method": 0, "params": b""}
        data = serialize_method_params(provider, "multisig", 2, value)
        assert deserialize_method_params(provider, "multisig", 2, data) == value

    def test_unknown_method(self):
        provider = RegistrySchemaProvider({("multisig", 2): PROPOSE_PARAMS})
        with pytest.raises(TypeMismatchError):
            serialize_method_params(provider, "multisig", 3, {})
        assert provider.lookup("miner", 2) is None


class TestProposalHash:
    """Multisig proposal hashes."""

    ARGS = dict(
        requester=Address.new_id(100),
        to=Address.new_id(1001),
        value=1_000,
        method=0,
        params=b"",
    )

    def test_deterministic(self):
        first = compute_proposal_hash(**self.ARGS)
        assert len(first) == 32
        assert compute_proposal_hash(**self.ARGS) == first

    def test_changes_with_params(self):
        changed = dict(self.ARGS, params=b"\x80")
        assert compute_proposal_hash(**changed) != compute_proposal_hash(**self.ARGS)

    def test_text_addresses(self):
        text_args = dict(self.ARGS, requester="f0100", to="f01001")
        assert compute_proposal_hash(**text_args) == compute_proposal_hash(**self.ARGS)

    def test_no_requester(self):
        anonymous = dict(self.ARGS, requester=None)
        assert compute_proposal_hash(**anonymous) != compute_proposal_hash(**self.ARGS)

    def test_base64(self):
        text = proposal_hash_base64(**self.ARGS)
        assert base64.b64decode(text) == compute_proposal_hash(**self.ARGS)
