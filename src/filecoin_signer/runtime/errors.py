"""
Filecoin Signer Error Model

This module provides the error handling framework for the signer. Every
failure caused by untrusted input (addresses, messages, vouchers, signatures)
surfaces as a subclass of SignerError carrying a stable ErrorCode.
"""

from __future__ import annotations
from typing import Optional, Dict, Any
from enum import IntEnum


class ErrorCode(IntEnum):
    """Signer error codes grouped by component."""

    # Success
    OK = 0

    # General errors (1-99)
    UNKNOWN = 1
    INTERNAL = 2
    INVALID_CONFIG = 3

    # Address errors (100-199)
    INVALID_CHECKSUM = 100
    INVALID_LENGTH = 101
    UNKNOWN_PROTOCOL = 102
    MALFORMED_ENCODING = 103
    UNKNOWN_NETWORK = 104

    # Key errors (200-299)
    INVALID_MNEMONIC = 200
    INVALID_DERIVATION_PATH = 201
    INVALID_PRIVATE_KEY = 202

    # Serialization errors (300-399)
    WRONG_ARITY = 300
    NON_CANONICAL_INTEGER = 301
    TYPE_MISMATCH = 302
    MALFORMED_CBOR = 303

    # Signature errors (400-499)
    INVALID_FORMAT = 400
    VERIFICATION_FAILED = 401
    UNSUPPORTED_CURVE = 402

    # Voucher errors (500-599)
    INVALID_LANE_STATE = 500
    TIME_LOCK_VIOLATION = 501
    MALFORMED_MERGE = 502


class SignerError(Exception):
    """
    Base class for all signer errors.

    Provides structured error information: a code, a message, optional
    details and the underlying cause.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNKNOWN,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        """
        Initialize a signer error.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [f"[{self.code.name}] {self.message}"]
        if self.details:
            parts.append(f"Details: {self.details}")
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result = {
            "code": self.code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.cause:
            result["cause"] = str(self.cause)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SignerError':
        """Create error from dictionary representation."""
        code = ErrorCode(data.get("code", ErrorCode.UNKNOWN))
        message = data.get("message", "Unknown error")
        details = data.get("details")
        return error_for_code(code, message, details)


class ConfigError(SignerError):
    """Invalid signer configuration."""

    def __init__(self, message: str = "Invalid configuration",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.INVALID_CONFIG, details, cause)


# =============================================================================
# Address errors
# =============================================================================

class AddressError(SignerError):
    """Address encoding and decoding errors."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.MALFORMED_ENCODING,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, code, details, cause)


class InvalidChecksumError(AddressError):
    """Address checksum does not match its payload."""

    def __init__(self, message: str = "Invalid address checksum",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.INVALID_CHECKSUM, details, cause)


class InvalidLengthError(AddressError):
    """Address payload length does not match its protocol."""

    def __init__(self, message: str = "Invalid address length",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.INVALID_LENGTH, details, cause)


class UnknownProtocolError(AddressError):
    """Unrecognized address protocol."""

    def __init__(self, message: str = "Unknown address protocol",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.UNKNOWN_PROTOCOL, details, cause)


class MalformedEncodingError(AddressError):
    """Address text is not valid base32 or decimal."""

    def __init__(self, message: str = "Malformed address encoding",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.MALFORMED_ENCODING, details, cause)


class UnknownNetworkError(AddressError):
    """Unrecognized network prefix."""

    def __init__(self, message: str = "Unknown network",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.UNKNOWN_NETWORK, details, cause)


# =============================================================================
# Key errors
# =============================================================================

class KeyManagementError(SignerError):
    """Key derivation and import errors."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INVALID_PRIVATE_KEY,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, code, details, cause)


class InvalidMnemonicError(KeyManagementError):
    """Mnemonic has unknown words or a bad checksum."""

    def __init__(self, message: str = "Invalid mnemonic",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.INVALID_MNEMONIC, details, cause)


class InvalidDerivationPathError(KeyManagementError):
    """Derivation path cannot be parsed or walked."""

    def __init__(self, message: str = "Invalid derivation path",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.INVALID_DERIVATION_PATH, details, cause)


class InvalidPrivateKeyError(KeyManagementError):
    """Private key scalar is out of range for its curve."""

    def __init__(self, message: str = "Invalid private key",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.INVALID_PRIVATE_KEY, details, cause)


# =============================================================================
# Serialization errors
# =============================================================================

class SerializationError(SignerError):
    """Canonical encoding and decoding errors."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.MALFORMED_CBOR,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, code, details, cause)


class WrongArityError(SerializationError):
    """Structured array has the wrong number of elements."""

    def __init__(self, message: str = "Wrong arity",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.WRONG_ARITY, details, cause)


class NonCanonicalIntegerError(SerializationError):
    """Integer, length header or big integer is not minimally encoded."""

    def __init__(self, message: str = "Non-canonical integer encoding",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.NON_CANONICAL_INTEGER, details, cause)


class TypeMismatchError(SerializationError):
    """Field holds a value of the wrong type or range."""

    def __init__(self, message: str = "Type mismatch",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.TYPE_MISMATCH, details, cause)


class MalformedCborError(SerializationError):
    """Bytes are not decodable CBOR."""

    def __init__(self, message: str = "Malformed CBOR",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.MALFORMED_CBOR, details, cause)


# =============================================================================
# Signature errors
# =============================================================================

class SignatureError(SignerError):
    """Signature production and verification errors."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INVALID_FORMAT,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, code, details, cause)


class SignatureFormatError(SignatureError):
    """Signature has the wrong length or scheme tag."""

    def __init__(self, message: str = "Invalid signature format",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.INVALID_FORMAT, details, cause)


class VerificationFailedError(SignatureError):
    """Well-formed signature that does not verify."""

    def __init__(self, message: str = "Signature verification failed",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.VERIFICATION_FAILED, details, cause)


class UnsupportedCurveError(SignatureError):
    """Signature scheme does not match the key or address it is used with."""

    def __init__(self, message: str = "Unsupported curve",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.UNSUPPORTED_CURVE, details, cause)


# =============================================================================
# Voucher errors
# =============================================================================

class VoucherError(SignerError):
    """Payment channel voucher errors."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INVALID_LANE_STATE,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, code, details, cause)


class InvalidLaneStateError(VoucherError):
    """Voucher merges reference its own lane."""

    def __init__(self, message: str = "Invalid lane state",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.INVALID_LANE_STATE, details, cause)


class TimeLockViolationError(VoucherError):
    """time_lock_min is greater than time_lock_max."""

    def __init__(self, message: str = "Time lock violation",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.TIME_LOCK_VIOLATION, details, cause)


class MalformedMergeError(VoucherError):
    """Merge entry is not a (lane, nonce) pair of unsigned integers."""

    def __init__(self, message: str = "Malformed merge",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.MALFORMED_MERGE, details, cause)


_ERRORS_BY_CODE = {
    ErrorCode.INVALID_CONFIG: ConfigError,
    ErrorCode.INVALID_CHECKSUM: InvalidChecksumError,
    ErrorCode.INVALID_LENGTH: InvalidLengthError,
    ErrorCode.UNKNOWN_PROTOCOL: UnknownProtocolError,
    ErrorCode.MALFORMED_ENCODING: MalformedEncodingError,
    ErrorCode.UNKNOWN_NETWORK: UnknownNetworkError,
    ErrorCode.INVALID_MNEMONIC: InvalidMnemonicError,
    ErrorCode.INVALID_DERIVATION_PATH: InvalidDerivationPathError,
    ErrorCode.INVALID_PRIVATE_KEY: InvalidPrivateKeyError,
    ErrorCode.WRONG_ARITY: WrongArityError,
    ErrorCode.NON_CANONICAL_INTEGER: NonCanonicalIntegerError,
    ErrorCode.TYPE_MISMATCH: TypeMismatchError,
    ErrorCode.MALFORMED_CBOR: MalformedCborError,
    ErrorCode.INVALID_FORMAT: SignatureFormatError,
    ErrorCode.VERIFICATION_FAILED: VerificationFailedError,
    ErrorCode.UNSUPPORTED_CURVE: UnsupportedCurveError,
    ErrorCode.INVALID_LANE_STATE: InvalidLaneStateError,
    ErrorCode.TIME_LOCK_VIOLATION: TimeLockViolationError,
    ErrorCode.MALFORMED_MERGE: MalformedMergeError,
}


def error_for_code(code: ErrorCode, message: str,
                   details: Optional[Dict[str, Any]] = None) -> SignerError:
    """
    Create the specific error class registered for a code.

    Args:
        code: Error code
        message: Error message
        details: Additional error details

    Returns:
        Error instance of the matching subclass, or SignerError
    """
    error_cls = _ERRORS_BY_CODE.get(code)
    if error_cls is None:
        return SignerError(message, code, details)
    return error_cls(message, details)


__all__ = [
    "ErrorCode",
    "SignerError",
    "ConfigError",
    "AddressError",
    "InvalidChecksumError",
    "InvalidLengthError",
    "UnknownProtocolError",
    "MalformedEncodingError",
    "UnknownNetworkError",
    "KeyManagementError",
    "InvalidMnemonicError",
    "InvalidDerivationPathError",
    "InvalidPrivateKeyError",
    "SerializationError",
    "WrongArityError",
    "NonCanonicalIntegerError",
    "TypeMismatchError",
    "MalformedCborError",
    "SignatureError",
    "SignatureFormatError",
    "VerificationFailedError",
    "UnsupportedCurveError",
    "VoucherError",
    "InvalidLaneStateError",
    "TimeLockViolationError",
    "MalformedMergeError",
    "error_for_code",
]
