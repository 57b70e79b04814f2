"""
SECP256K1 cryptographic operations.

Recoverable ECDSA over 32-byte digests, backed by coincurve (libsecp256k1).
Signatures are ``r || s || recovery_id``; public keys are the 65-byte
uncompressed SEC1 form.
"""

from __future__ import annotations

import coincurve


SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SECP256K1_HALF_ORDER = SECP256K1_ORDER // 2

PRIVATE_KEY_LEN = 32
DIGEST_LEN = 32


class Secp256k1Error(Exception):
    """Base exception for SECP256K1 operations."""
    pass


def is_valid_private_key(private_key: bytes) -> bool:
    """Check that a 32-byte scalar lies in ``[1, n-1]``."""
    if len(private_key) != PRIVATE_KEY_LEN:
        return False
    scalar = int.from_bytes(private_key, "big")
    return 0 < scalar < SECP256K1_ORDER


def _private_key(private_key: bytes) -> coincurve.PrivateKey:
    if not is_valid_private_key(private_key):
        raise Secp256k1Error("Private key scalar is out of range")
    return coincurve.PrivateKey(bytes(private_key))


def public_key_from_private(private_key: bytes, compressed: bool = False) -> bytes:
    """
    Derive the public key for a private key.

    Args:
        private_key: 32-byte scalar
        compressed: Return the 33-byte compressed form instead of 65 bytes

    Returns:
        SEC1 encoded public key
    """
    return _private_key(private_key).public_key.format(compressed=compressed)


def compress_public_key(public_key: bytes) -> bytes:
    """Convert a SEC1 public key to its 33-byte compressed form."""
    try:
        return coincurve.PublicKey(bytes(public_key)).format(compressed=True)
    except ValueError as e:
        raise Secp256k1Error(f"Invalid public key: {e}")


def sign_recoverable(private_key: bytes, digest: bytes) -> bytes:
    """
    Sign a 32-byte digest.

    Args:
        private_key: 32-byte scalar
        digest: 32-byte message digest (signed as-is, no further hashing)

    Returns:
        65-byte ``r || s || recovery_id`` signature with low s
    """
    if len(digest) != DIGEST_LEN:
        raise Secp256k1Error(f"Digest must be {DIGEST_LEN} bytes, got {len(digest)}")
    return _private_key(private_key).sign_recoverable(bytes(digest), hasher=None)


def is_low_s(signature: bytes) -> bool:
    """Check that ``s`` is in the lower half of the group order."""
    s = int.from_bytes(signature[32:64], "big")
    return 0 < s <= SECP256K1_HALF_ORDER


def recover_public_key(signature: bytes, digest: bytes) -> bytes:
    """
    Recover the signer's public key from a recoverable signature.

    Args:
        signature: 65-byte ``r || s || recovery_id``
        digest: 32-byte digest that was signed

    Returns:
        65-byte uncompressed public key

    Raises:
        Secp256k1Error: If the signature is malformed or recovery fails
    """
    if len(signature) != 65:
        raise Secp256k1Error(f"Recoverable signature must be 65 bytes, got {len(signature)}")
    if len(digest) != DIGEST_LEN:
        raise Secp256k1Error(f"Digest must be {DIGEST_LEN} bytes, got {len(digest)}")
    if signature[64] > 3:
        raise Secp256k1Error(f"Invalid recovery id: {signature[64]}")
    r = int.from_bytes(signature[:32], "big")
    s = int.from_bytes(signature[32:64], "big")
    if not (0 < r < SECP256K1_ORDER and 0 < s < SECP256K1_ORDER):
        raise Secp256k1Error("Signature scalars are out of range")
    try:
        public_key = coincurve.PublicKey.from_signature_and_message(
            bytes(signature), bytes(digest), hasher=None
        )
    except ValueError as e:
        raise Secp256k1Error(f"Public key recovery failed: {e}")
    return public_key.format(compressed=False)


def add_private_keys(private_key: bytes, tweak: bytes) -> bytes:
    """
    Compute ``(private_key + tweak) mod n``.

    Raises:
        Secp256k1Error: If the tweak is not below n or the result is zero
    """
    tweak_int = int.from_bytes(tweak, "big")
    if tweak_int >= SECP256K1_ORDER:
        raise Secp256k1Error("Tweak is not below the group order")
    child = (int.from_bytes(private_key, "big") + tweak_int) % SECP256K1_ORDER
    if child == 0:
        raise Secp256k1Error("Derived key is zero")
    return child.to_bytes(PRIVATE_KEY_LEN, "big")


__all__ = [
    "Secp256k1Error",
    "SECP256K1_ORDER",
    "is_valid_private_key",
    "public_key_from_private",
    "compress_public_key",
    "sign_recoverable",
    "is_low_s",
    "recover_public_key",
    "add_private_keys",
]
