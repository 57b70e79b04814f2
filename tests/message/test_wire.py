"""
JSON wire model tests.
"""

import base64
import json

import pytest
from pydantic import ValidationError

from filecoin_signer.address import Address
from filecoin_signer.crypto.signature import Signature, SignatureType
from filecoin_signer.message import MessageAPI, SignatureAPI, SignedMessage, SignedMessageAPI
from filecoin_signer.runtime.errors import SignatureFormatError

from conftest import make_message


SENDER = Address.new_actor(b"wire")


def _message_json(**overrides):
    data = {
        "To": "f01024",
        "From": str(SENDER),
        "Nonce": 1,
        "Value": "100000000000000000",
        "GasLimit": 25000,
        "GasFeeCap": "2500",
        "GasPremium": "2500",
        "Method": 0,
        "Params": "",
    }
    data.update(overrides)
    return data


class TestMessageAPI:
    """Unsigned message JSON form."""

    def test_to_message(self):
        message = MessageAPI.model_validate(_message_json()).to_message()
        assert message == make_message(SENDER)

    def test_round_trip(self):
        message = make_message(SENDER, params=b"\x82\x01\x02", method=2)
        wire = MessageAPI.from_message(message)
        data = wire.to_dict()
        assert data["Value"] == "100000000000000000"
        assert data["GasFeeCap"] == "2500"
        assert data["Params"] == base64.b64encode(b"\x82\x01\x02").decode("ascii")
        assert data["To"] == "f01024"
        assert MessageAPI.model_validate(data).to_message() == message

    def test_validate_json(self):
        text = json.dumps(_message_json(Params="gA=="))
        message = MessageAPI.model_validate_json(text).to_message()
        assert message.params == b"\x80"

    def test_missing_params_default(self):
        data = _message_json()
        del data["Params"]
        assert MessageAPI.model_validate(data).params == b""

    @pytest.mark.parametrize("field,value", [
        ("Value", "01"),
        ("Value", "-5"),
        ("Value", "1.5"),
        ("Value", True),
        ("GasFeeCap", "abc"),
        ("Nonce", -1),
        ("Method", 2 ** 64),
        ("Params", "not base64!"),
        ("To", "f0abc"),
    ])
    def test_invalid_fields(self, field, value):
        with pytest.raises(ValidationError):
            MessageAPI.model_validate(_message_json(**{field: value}))


class TestSignedMessageAPI:
    """Signed message JSON form."""

    def test_round_trip(self):
        signed = SignedMessage(make_message(SENDER), Signature(SignatureType.SECP256K1, b"\x01" * 65))
        data = SignedMessageAPI.from_signed_message(signed).to_dict()
        assert data["Signature"]["Type"] == 0
        assert base64.b64decode(data["Signature"]["Data"]) == b"\x01" * 65
        assert SignedMessageAPI.model_validate(data).to_signed_message() == signed

    def test_bls_type(self):
        wire = SignatureAPI.from_signature(Signature(SignatureType.BLS, bytes(96)))
        assert wire.model_dump(by_alias=True, mode="json")["Type"] == 1

    def test_unknown_type(self):
        with pytest.raises(ValidationError):
            SignatureAPI.model_validate({"Type": 2, "Data": ""})

    def test_bad_signature_length(self):
        wire = SignatureAPI.model_validate({"Type": 0, "Data": base64.b64encode(bytes(64)).decode()})
        with pytest.raises(SignatureFormatError):
            wire.to_signature()


class TestSignatureDict:
    """Signature.to_dict / from_dict."""

    def test_round_trip(self):
        signature = Signature(SignatureType.BLS, b"\x02" * 96)
        data = signature.to_dict()
        assert data["Type"] == 1
        assert Signature.from_dict(data) == signature

    def test_rejects_unknown_type(self):
        with pytest.raises(SignatureFormatError):
            Signature.from_dict({"Type": 2, "Data": ""})

    def test_rejects_bad_base64(self):
        with pytest.raises(SignatureFormatError):
            Signature.from_dict({"Type": 0, "Data": "***"})
