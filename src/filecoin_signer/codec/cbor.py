"""
Canonical CBOR

Thin strict layer over cbor2. Encoding always uses canonical mode (minimal
integer and length headers, definite lengths, length-first sorted map keys).
Decoding accepts only bytes that re-encode to themselves, so two different
byte strings can never decode to the same value.
"""

from __future__ import annotations
from typing import Any

import cbor2
from cbor2 import CBORDecodeError, CBOREncodeError, CBORTag

from ..runtime.errors import MalformedCborError, NonCanonicalIntegerError, TypeMismatchError


# Tag 42 carries IPLD links (CIDs); no other tag is part of the data model.
CID_TAG = 42

MIN_CBOR_INT = -(1 << 64)
MAX_CBOR_INT = (1 << 64) - 1


def check_value(value: Any, path: str = "$") -> None:
    """
    Ensure a value belongs to the structured-value data model.

    Allowed: None, bool, int (64-bit CBOR range), bytes, str, list/tuple,
    dict with string keys, and tag-42 links wrapping bytes.

    Raises:
        TypeMismatchError: On any other type
    """
    if value is None or isinstance(value, (bool, bytes, str)):
        return
    if isinstance(value, int):
        if value < MIN_CBOR_INT or value > MAX_CBOR_INT:
            raise TypeMismatchError(f"Integer at {path} does not fit in a CBOR major type",
                                    details={"path": path})
        return
    if isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            check_value(item, f"{path}[{i}]")
        return
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeMismatchError(f"Map key at {path} must be a string, got {type(key).__name__}",
                                        details={"path": path})
            check_value(item, f"{path}.{key}")
        return
    if isinstance(value, CBORTag):
        if value.tag != CID_TAG or not isinstance(value.value, bytes):
            raise TypeMismatchError(f"Unsupported CBOR tag {value.tag} at {path}",
                                    details={"path": path})
        return
    raise TypeMismatchError(f"Unsupported value type {type(value).__name__} at {path}",
                            details={"path": path})


def dumps(value: Any) -> bytes:
    """
    Encode a structured value canonically.

    Args:
        value: Value from the structured-value data model

    Returns:
        Canonical CBOR bytes

    Raises:
        TypeMismatchError: If the value is outside the data model
    """
    check_value(value)
    try:
        return cbor2.dumps(value, canonical=True)
    except (CBOREncodeError, TypeError, ValueError) as e:
        raise TypeMismatchError(f"Value cannot be encoded: {e}", cause=e)


def loads(data: bytes) -> Any:
    """
    Decode canonical CBOR strictly.

    Args:
        data: CBOR bytes

    Returns:
        Decoded structured value

    Raises:
        MalformedCborError: If the bytes are not decodable
        TypeMismatchError: If the value is outside the data model
        NonCanonicalIntegerError: If the bytes are not the canonical
            encoding of the decoded value (non-minimal headers,
            indefinite lengths, unsorted or duplicate keys, trailing bytes)
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeMismatchError(f"CBOR input must be bytes, got {type(data).__name__}")
    data = bytes(data)
    if not data:
        raise MalformedCborError("Empty CBOR input")

    try:
        value = cbor2.loads(data)
        check_value(value)
    except CBORDecodeError as e:
        raise MalformedCborError(f"Undecodable CBOR: {e}", cause=e)
    except RecursionError as e:
        raise MalformedCborError("CBOR nesting is too deep", cause=e)
    except (ValueError, TypeError, OverflowError, LookupError, EOFError, MemoryError) as e:
        raise MalformedCborError(f"Undecodable CBOR: {e}", cause=e)

    if cbor2.dumps(value, canonical=True) != data:
        raise NonCanonicalIntegerError(
            "CBOR input is not canonically encoded",
            details={"length": len(data)}
        )
    return value


__all__ = [
    "CID_TAG",
    "CBORTag",
    "check_value",
    "dumps",
    "loads",
]
