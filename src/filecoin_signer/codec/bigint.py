"""
Big integer byte encoding.

Token amounts travel as CBOR byte strings: empty for zero, otherwise a
sign byte (0x00 positive, 0x01 negative) followed by the minimal
big-endian magnitude.
"""

from ..runtime.errors import NonCanonicalIntegerError, TypeMismatchError

# sign byte included
MAX_BIGINT_BYTES = 128

MAX_UNSIGNED_BIGINT = (1 << (8 * (MAX_BIGINT_BYTES - 1))) - 1


def encode_bigint(value: int) -> bytes:
    """
    Encode an integer as sign byte plus magnitude.

    Args:
        value: Integer to encode

    Returns:
        Encoded bytes (empty for zero)

    Raises:
        TypeMismatchError: If the value is not an int or is too large
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeMismatchError(f"Big integer expected, got {type(value).__name__}")
    if value == 0:
        return b""
    magnitude = abs(value)
    mag_bytes = magnitude.to_bytes((magnitude.bit_length() + 7) // 8, "big")
    if len(mag_bytes) + 1 > MAX_BIGINT_BYTES:
        raise TypeMismatchError(f"Big integer exceeds {MAX_BIGINT_BYTES} bytes")
    return (b"\x00" if value > 0 else b"\x01") + mag_bytes


def decode_bigint(data: bytes, signed: bool = False, field: str = "bigint") -> int:
    """
    Decode sign-plus-magnitude bytes strictly.

    Args:
        data: Encoded bytes
        signed: Whether a negative sign is acceptable
        field: Field name used in error messages

    Returns:
        Decoded integer

    Raises:
        TypeMismatchError: On a wrong type, bad sign byte or oversize value
        NonCanonicalIntegerError: On an empty magnitude or leading zero bytes
    """
    if not isinstance(data, bytes):
        raise TypeMismatchError(f"{field} must be a byte string, got {type(data).__name__}",
                                details={"field": field})
    if not data:
        return 0
    if len(data) > MAX_BIGINT_BYTES:
        raise TypeMismatchError(f"{field} exceeds {MAX_BIGINT_BYTES} bytes", details={"field": field})

    sign, magnitude = data[0], data[1:]
    if sign not in (0, 1):
        raise TypeMismatchError(f"{field} has invalid sign byte {sign}", details={"field": field})
    if sign == 1 and not signed:
        raise TypeMismatchError(f"{field} must not be negative", details={"field": field})
    if not magnitude or magnitude[0] == 0:
        raise NonCanonicalIntegerError(f"{field} magnitude is not minimal", details={"field": field})

    value = int.from_bytes(magnitude, "big")
    return -value if sign == 1 else value
