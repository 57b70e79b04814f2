"""
Chain messages: canonical CBOR codec, method parameters, proposal hashes
and the JSON wire form.
"""

from .codec import Message, SignedMessage, MessageCodec, MESSAGE_VERSION
from .params import (
    Schema,
    UInt,
    Int,
    BigInt,
    Bytes,
    Text,
    Bool,
    AddressShape,
    ArrayOf,
    MapOf,
    Struct,
    Nullable,
    SchemaProvider,
    RegistrySchemaProvider,
    serialize_params,
    deserialize_params,
    serialize_method_params,
    deserialize_method_params,
)
from .proposal import compute_proposal_hash, proposal_hash_base64
from .wire import MessageAPI, SignatureAPI, SignedMessageAPI

__all__ = [
    "Message",
    "SignedMessage",
    "MessageCodec",
    "MESSAGE_VERSION",
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
    "deserialize_method_params",
    "compute_proposal_hash",
    "proposal_hash_base64",
    "MessageAPI",
    "SignatureAPI",
    "SignedMessageAPI",
]
