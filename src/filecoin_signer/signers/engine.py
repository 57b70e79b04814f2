"""
Signing engine.

Signs and verifies arbitrary payloads, chain messages and batches with
secp256k1 and BLS keys. The signing scheme follows the key (when signing)
or the claimed address protocol (when verifying).
"""

from __future__ import annotations
import hmac
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from ..address import Address, Network, Protocol
from ..codec import hashes
from ..crypto import bls, secp256k1
from ..crypto.signature import Signature, SignatureType
from ..keys.manager import KeyPair
from ..message.codec import Message, MessageCodec, SignedMessage
from ..runtime.config import SignerConfig
from ..runtime.errors import (
    InvalidPrivateKeyError,
    SignatureFormatError,
    UnsupportedCurveError,
    VerificationFailedError,
)

logger = logging.getLogger(__name__)

DIGEST_LEN = 32

_PROTOCOL_FOR_SCHEME = {
    SignatureType.SECP256K1: Protocol.SECP256K1,
    SignatureType.BLS: Protocol.BLS,
}


@dataclass(frozen=True)
class BatchItem:
    """One (payload, signature, claimed signer) triple of a batch."""
    data: bytes
    signature: Signature
    address: Address


BatchInput = Union[BatchItem, Tuple[bytes, Signature, Address]]


def _batch_item(item: BatchInput) -> BatchItem:
    if isinstance(item, BatchItem):
        return item
    if not isinstance(item, (tuple, list)) or len(item) != 3:
        raise SignatureFormatError(
            "Batch items must be BatchItem or (data, signature, address) triples",
            details={"type": type(item).__name__}
        )
    return BatchItem(*item)


class SigningEngine:
    """
    Produces and checks signatures.

    secp256k1 signs 32-byte digests (see ``digest``); BLS signs payload
    bytes directly.

    Args:
        config: Batch and aggregation settings
        logger: Logger to use instead of the module logger
        codec: Message codec used by the message helpers
    """

    def __init__(self, config: Optional[SignerConfig] = None,
                 logger: Optional[logging.Logger] = None,
                 codec: Optional[MessageCodec] = None):
        self.config = config or SignerConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.codec = codec or MessageCodec(logger=self.logger)

    # Digests

    @staticmethod
    def cid_bytes(data: bytes) -> bytes:
        """CIDv1 bytes (dag-cbor, blake2b-256) of canonical CBOR data."""
        return hashes.cid_bytes(bytes(data))

    @staticmethod
    def digest(data: bytes) -> bytes:
        """blake2b-256 of ``cid_bytes(data)``: what secp256k1 keys sign for chain objects."""
        return hashes.signing_digest(bytes(data))

    # Raw payloads

    def sign(self, data: bytes, keypair: KeyPair) -> Signature:
        """
        Sign a payload.

        Args:
            data: 32-byte digest for secp256k1 keys, any bytes for BLS keys
            keypair: Signing key pair

        Returns:
            Signature tagged with the key's scheme

        Raises:
            SignatureFormatError: If a secp256k1 payload is not 32 bytes
            InvalidPrivateKeyError: If the key has been wiped
        """
        data = bytes(data)
        try:
            secret = keypair.private_key.to_bytes()
        except ValueError as e:
            raise InvalidPrivateKeyError("Private key has been wiped", cause=e)

        if keypair.curve == SignatureType.SECP256K1:
            if len(data) != DIGEST_LEN:
                raise SignatureFormatError(
                    f"secp256k1 signs {DIGEST_LEN}-byte digests, got {len(data)} bytes",
                    details={"length": len(data)}
                )
            raw = secp256k1.sign_recoverable(secret, data)
        else:
            raw = bls.sign(secret, data)
        self.logger.debug(f"Signed {len(data)} bytes with {keypair.curve.name}")
        return Signature(keypair.curve, raw)

    def verify(self, data: bytes, signature: Signature, address: Address) -> bool:
        """
        Check a signature against the address that claims to have made it.

        secp256k1: the public key is recovered and its hash compared with the
        address payload; high-s signatures and bad recovery ids are rejected.
        BLS: pairing check against the public key in the address payload.

        Returns:
            True if the signature is valid for ``address``

        Raises:
            SignatureFormatError: On a wrong signature or digest length
            UnsupportedCurveError: If the scheme does not match the address protocol
        """
        self._check_item(bytes(data), signature, address)
        if signature.scheme == SignatureType.SECP256K1:
            return self._verify_secp256k1(bytes(data), signature, address)
        ok = bls.verify(address.payload, bytes(data), signature.data)
        self.logger.debug(f"BLS verification for {address}: {ok}")
        return ok

    def _check_item(self, data: bytes, signature: Signature, address: Address) -> None:
        if not isinstance(signature, Signature):
            raise SignatureFormatError(f"Signature expected, got {type(signature).__name__}")
        if not isinstance(address, Address):
            raise UnsupportedCurveError(f"Address expected, got {type(address).__name__}")
        expected = _PROTOCOL_FOR_SCHEME[signature.scheme]
        if address.protocol != expected:
            raise UnsupportedCurveError(
                f"{signature.scheme.name} signature cannot belong to a "
                f"{address.protocol.name} address",
                details={"scheme": signature.scheme.name, "protocol": address.protocol.name}
            )
        if signature.scheme == SignatureType.SECP256K1 and len(data) != DIGEST_LEN:
            raise SignatureFormatError(
                f"secp256k1 verifies {DIGEST_LEN}-byte digests, got {len(data)} bytes",
                details={"length": len(data)}
            )

    def _verify_secp256k1(self, digest: bytes, signature: Signature, address: Address) -> bool:
        sig = signature.data
        if sig[64] > 3:
            self.logger.warning(f"Rejected secp256k1 signature with recovery id {sig[64]}")
            return False
        if not secp256k1.is_low_s(sig):
            self.logger.warning("Rejected secp256k1 signature with high s")
            return False
        try:
            public_key = secp256k1.recover_public_key(sig, digest)
        except secp256k1.Secp256k1Error as e:
            self.logger.warning(f"secp256k1 key recovery failed: {e}")
            return False
        ok = hmac.compare_digest(hashes.blake2b_160(public_key), address.payload)
        self.logger.debug(f"secp256k1 verification for {address}: {ok}")
        return ok

    # Messages

    def message_payload(self, message: Message, scheme: SignatureType) -> bytes:
        """
        Bytes a key of ``scheme`` signs for a message.

        secp256k1 signs the digest of the CID; BLS signs the CID bytes.
        """
        encoded = self.codec.encode(message)
        if scheme == SignatureType.SECP256K1:
            return self.digest(encoded)
        return self.cid_bytes(encoded)

    def sign_message(self, message: Message, keypair: KeyPair) -> SignedMessage:
        """
        Sign a chain message with the key that controls its sender.

        Raises:
            UnsupportedCurveError: If the key's curve cannot sign for ``message.from_``
            VerificationFailedError: If the key does not control ``message.from_``
        """
        if message.from_.protocol != keypair.protocol:
            raise UnsupportedCurveError(
                f"{keypair.curve.name} key cannot sign for a {message.from_.protocol.name} sender",
                details={"curve": keypair.curve.name, "protocol": message.from_.protocol.name}
            )
        if not message.from_.same_account(keypair.address(message.from_.network)):
            raise VerificationFailedError(
                f"Key does not control sender {message.from_}",
                details={"from": str(message.from_)}
            )
        signature = self.sign(self.message_payload(message, keypair.curve), keypair)
        return SignedMessage(message, signature)

    def verify_message(self, signed: SignedMessage) -> bool:
        """Verify a signed message against its sender address."""
        payload = self.message_payload(signed.message, signed.signature.scheme)
        return self.verify(payload, signed.signature, signed.message.from_)

    # Batches and aggregation

    def verify_batch(self, items: Iterable[BatchInput],
                     max_workers: Optional[int] = None) -> bool:
        """
        Verify many signatures; True only if every one is valid.

        secp256k1 items are verified independently on a thread pool. BLS
        items are checked with a single weighted pairing check when their
        payloads are distinct, otherwise one by one. Either way the result
        equals verifying every item on its own. An empty batch is valid.

        Args:
            items: BatchItem or (data, signature, address) tuples
            max_workers: Thread pool size (defaults to the configured value)

        Raises:
            SignatureFormatError: If an item is not a triple, or as for ``verify``
            UnsupportedCurveError: As for ``verify``
        """
        batch = [_batch_item(item) for item in items]
        if not batch:
            return True
        for item in batch:
            self._check_item(bytes(item.data), item.signature, item.address)

        secp_items = [i for i in batch if i.signature.scheme == SignatureType.SECP256K1]
        bls_items = [i for i in batch if i.signature.scheme == SignatureType.BLS]
        self.logger.debug(f"Verifying batch of {len(secp_items)} secp256k1 "
                          f"and {len(bls_items)} BLS signatures")

        if secp_items:
            workers = max_workers or self.config.batch_max_workers
            with ThreadPoolExecutor(max_workers=workers) as pool:
                results = list(pool.map(
                    lambda i: self.verify(i.data, i.signature, i.address), secp_items
                ))
            if not all(results):
                return False

        return self._verify_bls_batch(bls_items)

    def _verify_bls_batch(self, items: List[BatchItem]) -> bool:
        if not items:
            return True
        messages = [bytes(i.data) for i in items]
        if (len(items) == 1 or not self.config.bls_batch_aggregate
                or len(set(messages)) != len(messages)):
            return all(self.verify(i.data, i.signature, i.address) for i in items)
        ok = bls.batch_verify(
            [i.address.payload for i in items],
            messages,
            [i.signature.data for i in items],
        )
        self.logger.debug(f"Weighted BLS batch of {len(items)}: {ok}")
        return ok

    def aggregate(self, signatures: Sequence[Signature]) -> Signature:
        """
        Combine BLS signatures into one.

        Raises:
            SignatureFormatError: If the list is empty or a signature is not a valid point
            UnsupportedCurveError: If any signature is not BLS
        """
        if not signatures:
            raise SignatureFormatError("Cannot aggregate an empty list of signatures")
        for signature in signatures:
            if signature.scheme != SignatureType.BLS:
                raise UnsupportedCurveError(
                    f"Only BLS signatures aggregate, got {signature.scheme.name}"
                )
        try:
            combined = bls.aggregate([s.data for s in signatures])
        except bls.BlsError as e:
            raise SignatureFormatError(str(e), cause=e)
        return Signature(SignatureType.BLS, combined)

    def verify_aggregate(self, signature: Signature,
                         messages: Sequence[Union[Message, bytes]],
                         network: Network = Network.MAIN) -> bool:
        """
        Verify an aggregate BLS signature over messages, as in a block.

        Each message's sender must be a BLS address; its public key is taken
        from the address and its signing bytes are the message CID.

        Args:
            signature: Aggregate BLS signature
            messages: Messages or their CBOR encodings
            network: Network used when decoding CBOR messages

        Raises:
            UnsupportedCurveError: If the signature or a sender is not BLS
        """
        if signature.scheme != SignatureType.BLS:
            raise UnsupportedCurveError("Aggregate signatures must be BLS")
        if not messages:
            return False
        public_keys, payloads = [], []
        for message in messages:
            if not isinstance(message, Message):
                message = self.codec.decode(message, network)
            if message.from_.protocol != Protocol.BLS:
                raise UnsupportedCurveError(
                    f"Sender {message.from_} is not a BLS address",
                    details={"from": str(message.from_)}
                )
            public_keys.append(message.from_.payload)
            payloads.append(self.message_payload(message, SignatureType.BLS))
        return bls.aggregate_verify(public_keys, payloads, signature.data)


__all__ = [
    "BatchItem",
    "SigningEngine",
]
