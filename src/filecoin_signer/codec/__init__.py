"""
Low-level encoding primitives.

Key components:
- writer.py / reader.py: LEB128 varints for address payloads
- cbor.py: strict canonical CBOR over cbor2
- bigint.py: sign-plus-magnitude big integers
- hashes.py: BLAKE2b helpers and CID construction
"""

from .bigint import encode_bigint, decode_bigint, MAX_BIGINT_BYTES, MAX_UNSIGNED_BIGINT
from .hashes import blake2b_256, blake2b_160, cid_bytes, cid_string, signing_digest
from .reader import BinaryReader, VarintError
from .writer import BinaryWriter

__all__ = [
    "BinaryReader",
    "BinaryWriter",
    "VarintError",
    "encode_bigint",
    "decode_bigint",
    "MAX_BIGINT_BYTES",
    "MAX_UNSIGNED_BIGINT",
    "blake2b_256",
    "blake2b_160",
    "cid_bytes",
    "cid_string",
    "signing_digest",
]
