"""
Multisig proposal hashing.

Approving or cancelling a pending multisig transaction refers to it by the
blake2b-256 hash of ``[requester, to, value, method, params]``.
"""

from __future__ import annotations
import base64
from typing import Any, Optional

from ..address import Address
from ..codec.hashes import blake2b_256
from .params import AddressShape, BigInt, Bytes, Nullable, Struct, UInt, serialize_params


PROPOSAL_HASH_DATA = Struct([
    ("requester", Nullable(AddressShape())),
    ("to", AddressShape()),
    ("value", BigInt()),
    ("method", UInt()),
    ("params", Bytes()),
])


def compute_proposal_hash(requester: Optional[Any], to: Any, value: int,
                          method: int, params: bytes = b"") -> bytes:
    """
    Hash identifying a multisig proposal.

    Args:
        requester: Proposing address (Address or text), or None
        to: Destination address (Address or text)
        value: Amount in attoFIL
        method: Method number invoked on ``to``
        params: Serialized method parameters

    Returns:
        32-byte blake2b-256 digest
    """
    encoded = serialize_params({
        "requester": requester,
        "to": to,
        "value": value,
        "method": method,
        "params": params,
    }, PROPOSAL_HASH_DATA)
    return blake2b_256(encoded)


def proposal_hash_base64(requester: Optional[Address], to: Address, value: int,
                         method: int, params: bytes = b"") -> str:
    return base64.b64encode(compute_proposal_hash(requester, to, value, method, params)).decode("ascii")
