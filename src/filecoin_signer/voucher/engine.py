"""
Payment channel voucher engine.

Creates, signs, serializes and verifies vouchers. Both signing schemes sign
the blake2b-256 digest of the voucher's signing bytes (the encoding with a
null signature slot).
"""

from __future__ import annotations
import base64
import binascii
import dataclasses
import logging
from typing import Iterable, Optional, Tuple, Union

from ..address import Address, Network
from ..codec import cbor
from ..codec.hashes import blake2b_256
from ..keys.manager import KeyPair
from ..runtime.config import SignerConfig
from ..runtime.errors import MalformedCborError, SignatureFormatError
from ..signers.engine import SigningEngine
from .types import Merge, ModVerifyParams, Voucher

logger = logging.getLogger(__name__)

MergeInput = Union[Merge, Tuple[int, int]]


class VoucherEngine:
    """
    Payment channel voucher operations.

    Args:
        config: Signer configuration
        logger: Logger to use instead of the module logger
        signing_engine: Engine that produces and checks the signatures
    """

    def __init__(self, config: Optional[SignerConfig] = None,
                 logger: Optional[logging.Logger] = None,
                 signing_engine: Optional[SigningEngine] = None):
        self.config = config or SignerConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.signing_engine = signing_engine or SigningEngine(self.config, logger=self.logger)

    def create(self, channel_address: Address, time_lock_min: int, time_lock_max: int,
               amount: int, lane: int, nonce: int, min_settle_height: int = 0,
               merges: Iterable[MergeInput] = (), extra: Optional[ModVerifyParams] = None,
               secret_preimage: Optional[bytes] = None) -> Voucher:
        """
        Create an unsigned voucher.

        Args:
            channel_address: Payment channel actor address
            time_lock_min: First epoch at which the voucher may be redeemed
            time_lock_max: Last epoch at which the voucher may be redeemed
            amount: Cumulative lane amount in attoFIL
            lane: Lane number
            nonce: Lane nonce
            min_settle_height: Minimum settle height the voucher imposes
            merges: (lane, nonce) pairs merged into this voucher
            extra: Optional actor method that validates the voucher
            secret_preimage: Optional hashlock preimage

        Returns:
            Unsigned voucher

        Raises:
            TimeLockViolationError: If time_lock_min > time_lock_max
            InvalidLaneStateError: If a merge references the voucher's own lane
            MalformedMergeError: On duplicate or out-of-range merges
        """
        voucher = Voucher(
            channel_address=channel_address,
            time_lock_min=time_lock_min,
            time_lock_max=time_lock_max,
            lane=lane,
            nonce=nonce,
            amount=amount,
            min_settle_height=min_settle_height,
            merges=tuple(merges),
            extra=extra,
            secret_preimage=secret_preimage,
        )
        self.logger.debug(f"Created voucher for {channel_address} lane {lane} nonce {nonce}")
        return voucher

    def signing_bytes(self, voucher: Voucher) -> bytes:
        """Canonical encoding with the signature slot set to null."""
        return cbor.dumps(voucher.to_cbor_value(include_signature=False))

    def digest(self, voucher: Voucher) -> bytes:
        """blake2b-256 of the signing bytes."""
        return blake2b_256(self.signing_bytes(voucher))

    def sign(self, voucher: Voucher, keypair: KeyPair) -> Voucher:
        """Return a copy of ``voucher`` carrying a signature by ``keypair``."""
        signature = self.signing_engine.sign(self.digest(voucher), keypair)
        self.logger.debug(f"Signed voucher lane {voucher.lane} nonce {voucher.nonce} "
                          f"with {keypair.curve.name}")
        return dataclasses.replace(voucher, signature=signature)

    def serialize(self, voucher: Voucher) -> bytes:
        return cbor.dumps(voucher.to_cbor_value())

    def deserialize(self, data: bytes, network: Network = Network.MAIN) -> Voucher:
        """
        Strictly decode a voucher and re-check its invariants.

        Args:
            data: Canonical CBOR bytes
            network: Network assigned to decoded addresses
        """
        return Voucher.from_cbor_value(cbor.loads(data), network)

    def to_base64(self, voucher: Voucher) -> str:
        """Transport form used by payment channel tooling."""
        return base64.b64encode(self.serialize(voucher)).decode("ascii")

    def from_base64(self, text: str, network: Network = Network.MAIN) -> Voucher:
        try:
            data = base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError, TypeError) as e:
            raise MalformedCborError("Voucher is not valid base64", cause=e)
        return self.deserialize(data, network)

    def verify(self, voucher: Voucher, signer_address: Address) -> bool:
        """
        Check the voucher signature against the expected signer.

        Raises:
            SignatureFormatError: If the voucher is unsigned
            UnsupportedCurveError: If the signature scheme does not match
                the signer's address protocol
        """
        if voucher.signature is None:
            raise SignatureFormatError("Voucher is not signed")
        ok = self.signing_engine.verify(self.digest(voucher), voucher.signature, signer_address)
        if not ok:
            self.logger.debug(f"Voucher signature does not match {signer_address}")
        return ok


__all__ = [
    "VoucherEngine",
]
