"""
Filecoin addresses: protocol tag, payload, checksum, text and binary forms.
"""

from .codec import (
    Address,
    AddressCodec,
    Network,
    Protocol,
    parse_address,
    PAYLOAD_HASH_LEN,
    BLS_PUBLIC_KEY_LEN,
    SECP256K1_PUBLIC_KEY_LEN,
    CHECKSUM_LEN,
    MAX_SUBADDRESS_LEN,
)

__all__ = [
    "Address",
    "AddressCodec",
    "Network",
    "Protocol",
    "parse_address",
    "PAYLOAD_HASH_LEN",
    "BLS_PUBLIC_KEY_LEN",
    "SECP256K1_PUBLIC_KEY_LEN",
    "CHECKSUM_LEN",
    "MAX_SUBADDRESS_LEN",
]
