"""
Payment channel voucher types.

A voucher encodes as the 11-element CBOR array
``[channel_addr, time_lock_min, time_lock_max, secret_pre_image, extra,
lane, nonce, amount, min_settle_height, merges, signature]``.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from ..address import Address, Network
from ..codec.bigint import decode_bigint, encode_bigint
from ..crypto.signature import Signature
from ..message.codec import (
    address_from_cbor,
    check_bytes,
    check_int64,
    check_token_amount,
    check_uint64,
)
from ..runtime.errors import (
    InvalidLaneStateError,
    MalformedMergeError,
    TimeLockViolationError,
    TypeMismatchError,
    WrongArityError,
)

VOUCHER_FIELDS = 11
MAX_UINT64 = (1 << 64) - 1


@dataclass(frozen=True)
class Merge:
    """Lane merged into a voucher, up to ``nonce``."""
    lane: int
    nonce: int

    def __post_init__(self):
        for name in ("lane", "nonce"):
            v = getattr(self, name)
            if isinstance(v, bool) or not isinstance(v, int) or not 0 <= v <= MAX_UINT64:
                raise MalformedMergeError(f"Merge {name} must be an unsigned 64-bit integer, got {v!r}",
                                          details={"field": name})

    def to_cbor_value(self) -> List[int]:
        return [self.lane, self.nonce]

    @classmethod
    def from_cbor_value(cls, value: Any) -> Merge:
        if not isinstance(value, list) or len(value) != 2:
            raise MalformedMergeError("Merge must be a 2-element array of [lane, nonce]")
        return cls(value[0], value[1])


def _as_merge(value: Any) -> Merge:
    if isinstance(value, Merge):
        return value
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return Merge(value[0], value[1])
    raise MalformedMergeError(f"Merge must be a (lane, nonce) pair, got {value!r}")


@dataclass(frozen=True)
class ModVerifyParams:
    """Actor method the payment channel calls to validate the voucher's extra data."""
    actor: Address
    method: int
    data: bytes = b""

    def __post_init__(self):
        if not isinstance(self.actor, Address):
            raise TypeMismatchError("extra.actor must be an Address", details={"field": "extra.actor"})
        check_uint64(self.method, "extra.method")
        object.__setattr__(self, "data", check_bytes(self.data, "extra.data"))

    def to_cbor_value(self) -> List[Any]:
        return [self.actor.to_bytes(), self.method, self.data]

    @classmethod
    def from_cbor_value(cls, value: Any, network: Network = Network.MAIN) -> ModVerifyParams:
        if not isinstance(value, list):
            raise TypeMismatchError("extra must be an array or null", details={"field": "extra"})
        if len(value) != 3:
            raise WrongArityError(f"extra must have 3 fields, got {len(value)}",
                                  details={"expected": 3, "actual": len(value)})
        return cls(
            actor=address_from_cbor(value[0], "extra.actor", network),
            method=check_uint64(value[1], "extra.method"),
            data=check_bytes(value[2], "extra.data"),
        )


@dataclass(frozen=True)
class Voucher:
    """
    Signed promise to pay ``amount`` from a payment channel lane.

    Immutable: signing returns a new voucher. An empty secret preimage is
    normalized to None since both encode the same way.
    """
    channel_address: Address
    time_lock_min: int
    time_lock_max: int
    lane: int
    nonce: int
    amount: int
    min_settle_height: int = 0
    merges: Tuple[Merge, ...] = field(default_factory=tuple)
    extra: Optional[ModVerifyParams] = None
    secret_preimage: Optional[bytes] = None
    signature: Optional[Signature] = None

    def __post_init__(self):
        if not isinstance(self.channel_address, Address):
            raise TypeMismatchError("channel_address must be an Address",
                                    details={"field": "channel_address"})
        check_int64(self.time_lock_min, "time_lock_min")
        check_int64(self.time_lock_max, "time_lock_max")
        check_uint64(self.lane, "lane")
        check_uint64(self.nonce, "nonce")
        check_token_amount(self.amount, "amount")
        check_int64(self.min_settle_height, "min_settle_height")

        if self.secret_preimage is not None:
            preimage = check_bytes(self.secret_preimage, "secret_preimage")
            object.__setattr__(self, "secret_preimage", preimage or None)
        if self.extra is not None and not isinstance(self.extra, ModVerifyParams):
            raise TypeMismatchError("extra must be ModVerifyParams or None", details={"field": "extra"})
        if self.signature is not None and not isinstance(self.signature, Signature):
            raise TypeMismatchError("signature must be a Signature or None",
                                    details={"field": "signature"})

        merges = tuple(_as_merge(m) for m in (self.merges or ()))
        object.__setattr__(self, "merges", merges)

        if self.time_lock_min > self.time_lock_max:
            raise TimeLockViolationError(
                f"time_lock_min {self.time_lock_min} is after time_lock_max {self.time_lock_max}",
                details={"time_lock_min": self.time_lock_min, "time_lock_max": self.time_lock_max}
            )
        seen = set()
        for merge in merges:
            if merge.lane == self.lane:
                raise InvalidLaneStateError(f"Voucher cannot merge its own lane {self.lane}",
                                            details={"lane": self.lane})
            if merge.lane in seen:
                raise MalformedMergeError(f"Lane {merge.lane} is merged more than once",
                                          details={"lane": merge.lane})
            seen.add(merge.lane)

    @property
    def signed(self) -> bool:
        return self.signature is not None

    def to_cbor_value(self, include_signature: bool = True) -> List[Any]:
        signature = None
        if include_signature and self.signature is not None:
            signature = self.signature.to_bytes()
        return [
            self.channel_address.to_bytes(),
            self.time_lock_min,
            self.time_lock_max,
            self.secret_preimage or b"",
            self.extra.to_cbor_value() if self.extra is not None else None,
            self.lane,
            self.nonce,
            encode_bigint(self.amount),
            self.min_settle_height,
            [m.to_cbor_value() for m in self.merges],
            signature,
        ]

    @classmethod
    def from_cbor_value(cls, value: Any, network: Network = Network.MAIN) -> Voucher:
        """
        Build a voucher from its decoded CBOR array, re-checking its invariants.

        Raises:
            WrongArityError: If the array does not have 11 elements
            TypeMismatchError: If a field has the wrong type or range
            MalformedMergeError: If a merge is not a 2-array of u64
            TimeLockViolationError, InvalidLaneStateError: On broken invariants
        """
        if not isinstance(value, list):
            raise TypeMismatchError(f"Voucher must be a CBOR array, got {type(value).__name__}")
        if len(value) != VOUCHER_FIELDS:
            raise WrongArityError(f"Voucher must have {VOUCHER_FIELDS} fields, got {len(value)}",
                                  details={"expected": VOUCHER_FIELDS, "actual": len(value)})
        (channel, tl_min, tl_max, preimage, extra, lane, nonce,
         amount, min_settle_height, merges, signature) = value

        if not isinstance(merges, list):
            raise MalformedMergeError("Merges must be an array")
        return cls(
            channel_address=address_from_cbor(channel, "channel_address", network),
            time_lock_min=check_int64(tl_min, "time_lock_min"),
            time_lock_max=check_int64(tl_max, "time_lock_max"),
            secret_preimage=check_bytes(preimage, "secret_preimage"),
            extra=None if extra is None else ModVerifyParams.from_cbor_value(extra, network),
            lane=check_uint64(lane, "lane"),
            nonce=check_uint64(nonce, "nonce"),
            amount=decode_bigint(amount, field="amount"),
            min_settle_height=check_int64(min_settle_height, "min_settle_height"),
            merges=tuple(Merge.from_cbor_value(m) for m in merges),
            signature=None if signature is None else Signature.from_bytes(
                check_bytes(signature, "signature")),
        )


__all__ = [
    "Merge",
    "ModVerifyParams",
    "Voucher",
    "VOUCHER_FIELDS",
]
