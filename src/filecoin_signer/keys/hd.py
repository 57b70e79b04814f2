"""
Hierarchical deterministic derivation.

BIP-32 for secp256k1 keys (HMAC-SHA512 from ``cryptography``, point
arithmetic from coincurve) and the IETF BLS KeyGen for BLS keys.
"""

from __future__ import annotations
import logging
from typing import List, Tuple

from cryptography.hazmat.primitives import hashes, hmac

from ..crypto import bls, secp256k1
from ..runtime.errors import InvalidDerivationPathError, KeyManagementError, ErrorCode
from .private_key import wipe_buffer

logger = logging.getLogger(__name__)

HARDENED_OFFSET = 0x80000000
BIP32_SEED_KEY = b"Bitcoin seed"
MIN_SEED_LEN = 16
MAX_SEED_LEN = 64

# Filecoin's registered coin type, and the shared testnet coin type
FILECOIN_COIN_TYPE = 461
TESTNET_COIN_TYPE = 1


def parse_path(path: str) -> List[int]:
    """
    Parse a derivation path such as ``m/44'/461'/0'/0/0``.

    Hardened segments may be marked with ``'``, ``h`` or ``H``.

    Args:
        path: Path text starting with ``m``

    Returns:
        Child indexes, hardened ones offset by 2^31

    Raises:
        InvalidDerivationPathError: If the path is malformed
    """
    if not isinstance(path, str) or not path:
        raise InvalidDerivationPathError("Derivation path must be a non-empty string")
    parts = path.split("/")
    if parts[0] != "m":
        raise InvalidDerivationPathError(f"Derivation path must start with 'm': {path!r}",
                                         details={"path": path})
    indexes = []
    for segment in parts[1:]:
        hardened = segment[-1:] in ("'", "h", "H")
        digits = segment[:-1] if hardened else segment
        if not digits or not digits.isascii() or not digits.isdigit():
            raise InvalidDerivationPathError(f"Invalid path segment {segment!r} in {path!r}",
                                             details={"path": path})
        if len(digits) > 1 and digits[0] == "0":
            raise InvalidDerivationPathError(f"Leading zero in path segment {segment!r}",
                                             details={"path": path})
        index = int(digits)
        if index >= HARDENED_OFFSET:
            raise InvalidDerivationPathError(f"Path segment {segment!r} is out of range",
                                             details={"path": path})
        indexes.append(index + HARDENED_OFFSET if hardened else index)
    return indexes


def coin_type(path: str) -> int:
    """
    Coin type of a BIP-44 style path, or -1 if the path has none.

    Raises:
        InvalidDerivationPathError: If the path is malformed
    """
    indexes = parse_path(path)
    if len(indexes) < 2:
        return -1
    return indexes[1] & ~HARDENED_OFFSET


def _hmac_sha512(key: bytes, data: bytes) -> bytes:
    h = hmac.HMAC(key, hashes.SHA512())
    h.update(data)
    return h.finalize()


def _check_seed(seed: bytes) -> None:
    if not isinstance(seed, (bytes, bytearray)) or not MIN_SEED_LEN <= len(seed) <= MAX_SEED_LEN:
        raise KeyManagementError(
            f"Seed must be {MIN_SEED_LEN} to {MAX_SEED_LEN} bytes",
            code=ErrorCode.INVALID_PRIVATE_KEY
        )


def master_key(seed: bytes) -> Tuple[bytearray, bytearray]:
    """
    Compute the BIP-32 master key and chain code.

    Returns:
        (private_key, chain_code) as mutable buffers
    """
    _check_seed(seed)
    digest = bytearray(_hmac_sha512(BIP32_SEED_KEY, bytes(seed)))
    key, chain_code = digest[:32], digest[32:]
    wipe_buffer(digest)
    if not secp256k1.is_valid_private_key(bytes(key)):
        wipe_buffer(key)
        wipe_buffer(chain_code)
        raise KeyManagementError("Seed produces an invalid master key",
                                 code=ErrorCode.INVALID_PRIVATE_KEY)
    return key, chain_code


def derive_child(key: bytes, chain_code: bytes, index: int) -> Tuple[bytearray, bytearray]:
    """
    CKDpriv: derive one private child.

    Args:
        key: Parent private key
        chain_code: Parent chain code
        index: Child index (hardened if >= 2^31)

    Returns:
        (child_key, child_chain_code)
    """
    if index >= HARDENED_OFFSET:
        data = b"\x00" + bytes(key) + index.to_bytes(4, "big")
    else:
        data = secp256k1.public_key_from_private(bytes(key), compressed=True) + index.to_bytes(4, "big")
    digest = bytearray(_hmac_sha512(bytes(chain_code), data))
    try:
        child = secp256k1.add_private_keys(bytes(key), bytes(digest[:32]))
        child_chain = digest[32:]
    except secp256k1.Secp256k1Error as e:
        raise InvalidDerivationPathError(f"Child index {index} yields an invalid key", cause=e)
    finally:
        wipe_buffer(digest)
    return bytearray(child), child_chain


def derive_secp256k1(seed: bytes, path: str) -> bytearray:
    """
    Derive a secp256k1 private key along a BIP-32 path.

    Intermediate keys and chain codes are wiped before returning.

    Returns:
        32-byte private key buffer
    """
    indexes = parse_path(path)
    key, chain_code = master_key(seed)
    try:
        for index in indexes:
            child, child_chain = derive_child(key, chain_code, index)
            wipe_buffer(key)
            wipe_buffer(chain_code)
            key, chain_code = child, child_chain
    except Exception:
        wipe_buffer(key)
        raise
    finally:
        wipe_buffer(chain_code)
    logger.debug(f"Derived secp256k1 key at depth {len(indexes)}")
    return key


def derive_bls(seed: bytes, path: str) -> bytearray:
    """
    Derive a BLS private key with KeyGen(seed, key_info=path).

    The path is validated but only bound into the derivation as context.
    """
    parse_path(path)
    if not isinstance(seed, (bytes, bytearray)) or len(seed) < bls.MIN_IKM_LEN:
        raise KeyManagementError(f"BLS seed must be at least {bls.MIN_IKM_LEN} bytes",
                                 code=ErrorCode.INVALID_PRIVATE_KEY)
    key = bytearray(bls.key_gen(bytes(seed), path.encode("utf-8")))
    logger.debug("Derived BLS key")
    return key


__all__ = [
    "HARDENED_OFFSET",
    "FILECOIN_COIN_TYPE",
    "TESTNET_COIN_TYPE",
    "parse_path",
    "coin_type",
    "master_key",
    "derive_child",
    "derive_secp256k1",
    "derive_bls",
]
