"""
Hash Functions

BLAKE2b helpers and the content identifier (CID) construction used to
compute signing digests.
"""

import base64
import hashlib

# CIDv1, dag-cbor codec (0x71), blake2b-256 multihash (0xb220 as varint), 32-byte digest
CID_VERSION = 0x01
DAG_CBOR_CODEC = 0x71
BLAKE2B_256_MULTIHASH = b"\xa0\xe4\x02"
CID_PREFIX = bytes([CID_VERSION, DAG_CBOR_CODEC]) + BLAKE2B_256_MULTIHASH + b"\x20"


def blake2b_256(data: bytes) -> bytes:
    """
    Compute BLAKE2b with a 32-byte digest.

    Args:
        data: Input bytes to hash

    Returns:
        32-byte digest
    """
    return hashlib.blake2b(data, digest_size=32).digest()


def blake2b_160(data: bytes) -> bytes:
    """Compute BLAKE2b with a 20-byte digest (secp256k1 and actor address payloads)."""
    return hashlib.blake2b(data, digest_size=20).digest()


def address_checksum(data: bytes) -> bytes:
    """Compute the 4-byte BLAKE2b checksum over ``protocol_byte || payload``."""
    return hashlib.blake2b(data, digest_size=4).digest()


def cid_bytes(cbor_data: bytes) -> bytes:
    """
    Binary CID of a DAG-CBOR encoded object.

    Args:
        cbor_data: Canonical CBOR bytes

    Returns:
        38-byte CIDv1 (prefix plus blake2b-256 of the data)
    """
    return CID_PREFIX + blake2b_256(cbor_data)


def cid_string(cbor_data: bytes) -> str:
    """
    Text CID of a DAG-CBOR encoded object, multibase base32 ("b" prefix).
    """
    encoded = base64.b32encode(cid_bytes(cbor_data)).decode("ascii")
    return "b" + encoded.lower().rstrip("=")


def signing_digest(cbor_data: bytes) -> bytes:
    """
    Digest that secp256k1 keys sign for chain objects.

    First the canonical bytes are hashed into a CID, then the CID's own
    bytes are hashed again.

    Args:
        cbor_data: Canonical CBOR bytes

    Returns:
        32-byte blake2b-256 of the CID bytes
    """
    return blake2b_256(cid_bytes(cbor_data))
