"""
Signing and verification of payloads, messages and batches.
"""

from .engine import BatchItem, SigningEngine

__all__ = [
    "BatchItem",
    "SigningEngine",
]
