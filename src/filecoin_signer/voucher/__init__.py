"""
Payment channel vouchers.
"""

from .engine import VoucherEngine
from .types import Merge, ModVerifyParams, Voucher

__all__ = [
    "Merge",
    "ModVerifyParams",
    "Voucher",
    "VoucherEngine",
]
