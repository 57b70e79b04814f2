"""
Shared fixtures for the signer test suite.

BLS operations run on py_ecc (pure Python pairings), so BLS key pairs and
signatures are module or session scoped and used sparingly.
"""

import hashlib

import pytest

from filecoin_signer.address import Address
from filecoin_signer.crypto.signature import Curve
from filecoin_signer.keys import KeyManager
from filecoin_signer.message import Message, MessageCodec
from filecoin_signer.signers import SigningEngine
from filecoin_signer.voucher import VoucherEngine


TREZOR_MNEMONIC = " ".join(["abandon"] * 11 + ["about"])
TREZOR_SEED_HEX = (
    "c55257c360c07c72029aebc1b53c05ed0362ada38ead3e3e9efa3708e53495531f09a6987599d18264c1e1c92f2cf141630c7a3c4ab7c81b2f001698e7463b04"
)


class CountingEntropy:
    """Deterministic entropy source: SHA-256 of a running counter."""

    def __init__(self, label: bytes = b"test"):
        self.label = label
        self.calls = 0

    def __call__(self, n: int) -> bytes:
        out = b""
        while len(out) < n:
            out += hashlib.sha256(self.label + self.calls.to_bytes(8, "big")).digest()
            self.calls += 1
        return out[:n]


@pytest.fixture
def entropy():
    return CountingEntropy()


@pytest.fixture
def key_manager():
    return KeyManager()


@pytest.fixture
def codec():
    return MessageCodec()


@pytest.fixture
def signing_engine():
    return SigningEngine()


@pytest.fixture
def voucher_engine():
    return VoucherEngine()


@pytest.fixture
def secp_keypair(key_manager):
    """secp256k1 key pair from a fixed scalar."""
    return key_manager.import_private_key(bytes.fromhex("11" * 32), Curve.SECP256K1)


@pytest.fixture
def other_secp_keypair(key_manager):
    return key_manager.import_private_key(bytes.fromhex("22" * 32), Curve.SECP256K1)


@pytest.fixture(scope="session")
def bls_keypair():
    """BLS key pair from a fixed little-endian scalar."""
    return KeyManager().import_private_key(bytes.fromhex("33" * 31 + "00"), Curve.BLS)


@pytest.fixture(scope="session")
def other_bls_keypair():
    return KeyManager().import_private_key(bytes.fromhex("44" * 31 + "00"), Curve.BLS)


def make_message(sender: Address, nonce: int = 1, **overrides) -> Message:
    fields = dict(
        to=Address.new_id(1024),
        from_=sender,
        nonce=nonce,
        value=100_000_000_000_000_000,
        gas_limit=25_000,
        gas_fee_cap=2_500,
        gas_premium=2_500,
        method=0,
        params=b"",
    )
    fields.update(overrides)
    return Message(**fields)


@pytest.fixture
def secp_message(secp_keypair):
    return make_message(secp_keypair.address())
