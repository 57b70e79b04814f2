"""
BLS12-381 signatures.

Minimal-pubkey-size variant as used on Filecoin: 48-byte G1 public keys,
96-byte G2 signatures, basic scheme ciphersuite
``BLS_SIG_BLS12381G2_XMD:SHA-256_SSWU_RO_NUL_``. Backed by py_ecc.
Private keys are 32-byte little-endian scalars.
"""

from __future__ import annotations
import hashlib
from typing import List, Sequence

from py_ecc.bls import G2Basic
from py_ecc.bls.g2_primitives import (
    G1_to_pubkey,
    G2_to_signature,
    pubkey_to_G1,
    signature_to_G2,
    subgroup_check,
)
from py_ecc.optimized_bls12_381 import add, curve_order, multiply


BLS_CURVE_ORDER = curve_order
PRIVATE_KEY_LEN = 32
PUBLIC_KEY_LEN = 48
SIGNATURE_LEN = 96
MIN_IKM_LEN = 32
BATCH_WEIGHT_LEN = 16


class BlsError(Exception):
    """Base exception for BLS operations."""
    pass


def scalar_from_bytes(private_key: bytes) -> int:
    """
    Parse a little-endian private key scalar.

    Raises:
        BlsError: If the scalar is zero or not below the curve order
    """
    if len(private_key) != PRIVATE_KEY_LEN:
        raise BlsError(f"Private key must be {PRIVATE_KEY_LEN} bytes, got {len(private_key)}")
    scalar = int.from_bytes(private_key, "little")
    if not 0 < scalar < BLS_CURVE_ORDER:
        raise BlsError("Private key scalar is out of range")
    return scalar


def scalar_to_bytes(scalar: int) -> bytes:
    return scalar.to_bytes(PRIVATE_KEY_LEN, "little")


def is_valid_private_key(private_key: bytes) -> bool:
    try:
        scalar_from_bytes(private_key)
    except BlsError:
        return False
    return True


def key_gen(ikm: bytes, key_info: bytes = b"") -> bytes:
    """
    Stretch input key material into a private key (IETF BLS KeyGen, HKDF based).

    Args:
        ikm: At least 32 bytes of secret input key material
        key_info: Optional context bound into the derivation

    Returns:
        32-byte little-endian private key
    """
    if len(ikm) < MIN_IKM_LEN:
        raise BlsError(f"Key material must be at least {MIN_IKM_LEN} bytes")
    return scalar_to_bytes(G2Basic.KeyGen(bytes(ikm), key_info))


def public_key_from_private(private_key: bytes) -> bytes:
    """Compressed 48-byte G1 public key."""
    return G2Basic.SkToPk(scalar_from_bytes(private_key))


def sign(private_key: bytes, message: bytes) -> bytes:
    """Sign a message; returns a compressed 96-byte G2 signature."""
    return G2Basic.Sign(scalar_from_bytes(private_key), bytes(message))


def verify(public_key: bytes, message: bytes, signature: bytes) -> bool:
    """
    Check the pairing equation for one signature.

    Returns False for invalid points as well as wrong signatures.
    """
    if len(public_key) != PUBLIC_KEY_LEN or len(signature) != SIGNATURE_LEN:
        return False
    return G2Basic.Verify(bytes(public_key), bytes(message), bytes(signature))


def aggregate(signatures: Sequence[bytes]) -> bytes:
    """
    Add signatures into one G2 point.

    Raises:
        BlsError: If the list is empty or a signature is not a valid point
    """
    if not signatures:
        raise BlsError("Cannot aggregate an empty list of signatures")
    try:
        return G2Basic.Aggregate([bytes(s) for s in signatures])
    except Exception as e:
        raise BlsError(f"Signature aggregation failed: {e}") from e


def aggregate_verify(public_keys: Sequence[bytes], messages: Sequence[bytes],
                     signature: bytes) -> bool:
    """
    Aggregated pairing check over (public key, message) pairs.

    The basic scheme requires distinct messages; callers must fall back to
    individual checks when messages repeat.
    """
    if len(public_keys) != len(messages) or not public_keys:
        return False
    if len(signature) != SIGNATURE_LEN or any(len(pk) != PUBLIC_KEY_LEN for pk in public_keys):
        return False
    return G2Basic.AggregateVerify(
        [bytes(pk) for pk in public_keys],
        [bytes(m) for m in messages],
        bytes(signature),
    )


def batch_weights(public_keys: Sequence[bytes], messages: Sequence[bytes],
                  signatures: Sequence[bytes]) -> List[int]:
    """
    Nonzero 128-bit coefficients for a batch, derived from every input.

    Changing any public key, message or signature changes all weights.
    """
    transcript = hashlib.blake2b(digest_size=32, person=b"fil-bls-batch")
    for pk, message, signature in zip(public_keys, messages, signatures):
        for part in (pk, message, signature):
            transcript.update(len(part).to_bytes(8, "big"))
            transcript.update(bytes(part))
    seed = transcript.digest()

    weights = []
    for index in range(len(public_keys)):
        h = hashlib.blake2b(seed + index.to_bytes(4, "big"), digest_size=BATCH_WEIGHT_LEN)
        weights.append(int.from_bytes(h.digest(), "big") or 1)
    return weights


def batch_verify(public_keys: Sequence[bytes], messages: Sequence[bytes],
                 signatures: Sequence[bytes]) -> bool:
    """
    Verify independent (public key, message, signature) triples with one pairing check.

    Each signature and its public key are scaled by the same weight before
    aggregation, so the check passes only if every triple verifies on its
    own (up to a negligible probability). Messages must be distinct.

    Returns:
        True if every triple is valid; False otherwise, including for
        invalid points and empty or mismatched inputs
    """
    count = len(public_keys)
    if not count or len(messages) != count or len(signatures) != count:
        return False
    if any(len(pk) != PUBLIC_KEY_LEN for pk in public_keys):
        return False
    if any(len(sig) != SIGNATURE_LEN for sig in signatures):
        return False
    messages = [bytes(m) for m in messages]
    if len(set(messages)) != count:
        return False

    weights = batch_weights(public_keys, messages, signatures)
    weighted_keys = []
    combined = None
    try:
        for pk, signature, weight in zip(public_keys, signatures, weights):
            if not G2Basic.KeyValidate(bytes(pk)):
                return False
            point = signature_to_G2(bytes(signature))
            if not subgroup_check(point):
                return False
            term = multiply(point, weight)
            combined = term if combined is None else add(combined, term)
            weighted_keys.append(G1_to_pubkey(multiply(pubkey_to_G1(bytes(pk)), weight)))
    except ValueError:
        return False
    return G2Basic.AggregateVerify(weighted_keys, messages, G2_to_signature(combined))


__all__ = [
    "BlsError",
    "BLS_CURVE_ORDER",
    "scalar_from_bytes",
    "scalar_to_bytes",
    "is_valid_private_key",
    "key_gen",
    "public_key_from_private",
    "sign",
    "verify",
    "aggregate",
    "aggregate_verify",
    "batch_weights",
    "batch_verify",
]
