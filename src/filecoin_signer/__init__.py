"""
Filecoin Signer - offline signing toolkit

Encodes Filecoin chain messages and payment channel vouchers canonically,
signs them with secp256k1 or BLS12-381 keys, and verifies signatures.
Never contacts a node.
"""

# Errors and configuration
from .runtime.errors import *
from .runtime.config import SignerConfig

# Addresses
from .address import Address, AddressCodec, Network, Protocol, parse_address

# Keys
from .keys import KeyManager, KeyPair, PrivateKey
from .crypto import Curve, Signature, SignatureType

# Messages
from .message import (
    Message, SignedMessage, MessageCodec,
    Schema, UInt, Int, BigInt, Bytes, Text, Bool, AddressShape,
    ArrayOf, MapOf, Struct, Nullable,
    SchemaProvider, RegistrySchemaProvider,
    serialize_params, deserialize_params, serialize_method_params,
    compute_proposal_hash,
    MessageAPI, SignedMessageAPI,
)

# Signing
from .signers import BatchItem, SigningEngine
from .voucher import Merge, ModVerifyParams, Voucher, VoucherEngine

__version__ = "0.1.0"
__all__ = [
    "SignerConfig",

    # Addresses
    "Address",
    "AddressCodec",
    "Network",
    "Protocol",
    "parse_address",

    # Keys
    "KeyManager",
    "KeyPair",
    "PrivateKey",
    "Curve",
    "Signature",
    "SignatureType",

    # Messages
    "Message",
    "SignedMessage",
    "MessageCodec",
    "Schema",
    "UInt",
    "Int",
    "BigInt",
    "Bytes",
    "Text",
    "Bool",
    "AddressShape",
    "ArrayOf",
    "MapOf",
    "Struct",
    "Nullable",
    "SchemaProvider",
    "RegistrySchemaProvider",
    "serialize_params",
    "deserialize_params",
    "serialize_method_params",
    "compute_proposal_hash",
    "MessageAPI",
    "SignedMessageAPI",

    # Signing
    "BatchItem",
    "SigningEngine",
    "Merge",
    "ModVerifyParams",
    "Voucher",
    "VoucherEngine",
]

from .runtime.errors import __all__ as _errors_all
__all__ += _errors_all
