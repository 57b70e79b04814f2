"""
Key management: BIP-39 mnemonics, BIP-32 / BLS KeyGen derivation and
zeroing private key buffers.
"""

from .hd import parse_path, coin_type, HARDENED_OFFSET
from .manager import KeyManager, KeyPair, EntropySource, public_key_for
from .private_key import PrivateKey

__all__ = [
    "KeyManager",
    "KeyPair",
    "EntropySource",
    "PrivateKey",
    "public_key_for",
    "parse_path",
    "coin_type",
    "HARDENED_OFFSET",
]
