"""
Cryptographic primitives: secp256k1 (coincurve) and BLS12-381 (py_ecc).
"""

from . import bls, secp256k1
from .bls import BlsError
from .secp256k1 import Secp256k1Error
from .signature import Curve, Signature, SignatureType, SECP256K1_SIGNATURE_LEN, BLS_SIGNATURE_LEN

__all__ = [
    "bls",
    "secp256k1",
    "BlsError",
    "Secp256k1Error",
    "Curve",
    "Signature",
    "SignatureType",
    "SECP256K1_SIGNATURE_LEN",
    "BLS_SIGNATURE_LEN",
]
