"""
Method parameter serialization.

Parameters are arbitrary CBOR values. Without a schema any value of the
structured-value data model is accepted (int, bytes, str, bool, None,
lists, string-keyed maps and tag-42 links). With a schema the value is
validated and converted: structs become tuples, addresses their binary
form and big integers sign-plus-magnitude bytes.

Schemas for concrete actor methods are supplied through a SchemaProvider.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Sequence, Tuple

from ..address import Address, Network, parse_address
from ..codec import cbor
from ..codec.bigint import decode_bigint, encode_bigint
from ..runtime.errors import TypeMismatchError, WrongArityError


class Schema(ABC):
    """Shape of a parameter value."""

    @abstractmethod
    def to_cbor(self, value: Any, path: str = "$") -> Any:
        """Validate a Python value and convert it to its CBOR data-model form."""
        pass

    @abstractmethod
    def from_cbor(self, value: Any, path: str = "$", network: Network = Network.MAIN) -> Any:
        """Validate a decoded CBOR value and convert it back to Python form."""
        pass

    def _mismatch(self, expected: str, value: Any, path: str) -> TypeMismatchError:
        return TypeMismatchError(f"Expected {expected} at {path}, got {type(value).__name__}",
                                 details={"path": path, "expected": expected})


class UInt(Schema):
    def __init__(self, bits: int = 64):
        self.bits = bits

    def _check(self, value: Any, path: str) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise self._mismatch("unsigned integer", value, path)
        if not 0 <= value < (1 << self.bits):
            raise TypeMismatchError(f"Integer at {path} is out of range for u{self.bits}",
                                    details={"path": path})
        return value

    def to_cbor(self, value, path="$"):
        return self._check(value, path)

    def from_cbor(self, value, path="$", network=Network.MAIN):
        return self._check(value, path)


class Int(Schema):
    def __init__(self, bits: int = 64):
        self.bits = bits

    def _check(self, value: Any, path: str) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise self._mismatch("integer", value, path)
        bound = 1 << (self.bits - 1)
        if not -bound <= value < bound:
            raise TypeMismatchError(f"Integer at {path} is out of range for i{self.bits}",
                                    details={"path": path})
        return value

    def to_cbor(self, value, path="$"):
        return self._check(value, path)

    def from_cbor(self, value, path="$", network=Network.MAIN):
        return self._check(value, path)


class BigInt(Schema):
    """Arbitrary precision integer carried as sign-plus-magnitude bytes."""

    def __init__(self, signed: bool = False):
        self.signed = signed

    def to_cbor(self, value, path="$"):
        if isinstance(value, bool) or not isinstance(value, int):
            raise self._mismatch("big integer", value, path)
        if value < 0 and not self.signed:
            raise TypeMismatchError(f"Big integer at {path} must not be negative",
                                    details={"path": path})
        return encode_bigint(value)

    def from_cbor(self, value, path="$", network=Network.MAIN):
        return decode_bigint(value, signed=self.signed, field=path)


class Bytes(Schema):
    def __init__(self, max_len: Optional[int] = None):
        self.max_len = max_len

    def _check(self, value: Any, path: str) -> bytes:
        if not isinstance(value, (bytes, bytearray)):
            raise self._mismatch("bytes", value, path)
        if self.max_len is not None and len(value) > self.max_len:
            raise TypeMismatchError(f"Byte string at {path} exceeds {self.max_len} bytes",
                                    details={"path": path})
        return bytes(value)

    def to_cbor(self, value, path="$"):
        return self._check(value, path)

    def from_cbor(self, value, path="$", network=Network.MAIN):
        return self._check(value, path)


class Text(Schema):
    def to_cbor(self, value, path="$"):
        if not isinstance(value, str):
            raise self._mismatch("text", value, path)
        return value

    def from_cbor(self, value, path="$", network=Network.MAIN):
        return self.to_cbor(value, path)


class Bool(Schema):
    def to_cbor(self, value, path="$"):
        if not isinstance(value, bool):
            raise self._mismatch("bool", value, path)
        return value

    def from_cbor(self, value, path="$", network=Network.MAIN):
        return self.to_cbor(value, path)


class AddressShape(Schema):
    """Address carried in its binary form. Text addresses are accepted on encode."""

    def to_cbor(self, value, path="$"):
        if isinstance(value, str):
            value = parse_address(value)
        if not isinstance(value, Address):
            raise self._mismatch("address", value, path)
        return value.to_bytes()

    def from_cbor(self, value, path="$", network=Network.MAIN):
        if not isinstance(value, bytes):
            raise self._mismatch("address bytes", value, path)
        return Address.from_bytes(value, network)


class ArrayOf(Schema):
    def __init__(self, item: Schema):
        self.item = item

    def to_cbor(self, value, path="$"):
        if not isinstance(value, (list, tuple)):
            raise self._mismatch("array", value, path)
        return [self.item.to_cbor(v, f"{path}[{i}]") for i, v in enumerate(value)]

    def from_cbor(self, value, path="$", network=Network.MAIN):
        if not isinstance(value, list):
            raise self._mismatch("array", value, path)
        return [self.item.from_cbor(v, f"{path}[{i}]", network) for i, v in enumerate(value)]


class MapOf(Schema):
    """String-keyed map with uniformly shaped values."""

    def __init__(self, value: Schema):
        self.value = value

    def to_cbor(self, value, path="$"):
        if not isinstance(value, dict):
            raise self._mismatch("map", value, path)
        out = {}
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeMismatchError(f"Map key at {path} must be text", details={"path": path})
            out[k] = self.value.to_cbor(v, f"{path}.{k}")
        return out

    def from_cbor(self, value, path="$", network=Network.MAIN):
        if not isinstance(value, dict):
            raise self._mismatch("map", value, path)
        return {k: self.value.from_cbor(v, f"{path}.{k}", network) for k, v in value.items()}


class Struct(Schema):
    """
    Record encoded as a tuple: an array of its field values in declaration order.

    Python values are dicts keyed by field name. Every field must be present
    and no others are allowed.
    """

    def __init__(self, fields: Sequence[Tuple[str, Schema]]):
        self.fields = list(fields)

    @property
    def names(self):
        return [name for name, _ in self.fields]

    def to_cbor(self, value, path="$"):
        if not isinstance(value, dict):
            raise self._mismatch("struct", value, path)
        missing = [n for n in self.names if n not in value]
        extra = [k for k in value if k not in self.names]
        if missing or extra:
            raise TypeMismatchError(
                f"Struct at {path} has missing fields {missing} or unknown fields {extra}",
                details={"path": path, "missing": missing, "unknown": extra}
            )
        return [shape.to_cbor(value[name], f"{path}.{name}") for name, shape in self.fields]

    def from_cbor(self, value, path="$", network=Network.MAIN):
        if not isinstance(value, list):
            raise self._mismatch("struct tuple", value, path)
        if len(value) != len(self.fields):
            raise WrongArityError(
                f"Struct at {path} must have {len(self.fields)} fields, got {len(value)}",
                details={"path": path, "expected": len(self.fields), "actual": len(value)}
            )
        return {
            name: shape.from_cbor(item, f"{path}.{name}", network)
            for (name, shape), item in zip(self.fields, value)
        }


class Nullable(Schema):
    def __init__(self, inner: Schema):
        self.inner = inner

    def to_cbor(self, value, path="$"):
        return None if value is None else self.inner.to_cbor(value, path)

    def from_cbor(self, value, path="$", network=Network.MAIN):
        return None if value is None else self.inner.from_cbor(value, path, network)


def serialize_params(value: Any, schema: Optional[Schema] = None) -> bytes:
    """
    Encode method parameters canonically.

    Args:
        value: Parameter value
        schema: Optional shape that validates and converts the value

    Returns:
        CBOR bytes

    Raises:
        TypeMismatchError: If the value does not fit the schema or data model
        WrongArityError: If a struct has the wrong number of fields
    """
    if schema is not None:
        value = schema.to_cbor(value)
    return cbor.dumps(value)


def deserialize_params(data: bytes, schema: Optional[Schema] = None,
                       network: Network = Network.MAIN) -> Any:
    """
    Strictly decode method parameters, optionally shaping them with a schema.
    """
    value = cbor.loads(data)
    if schema is not None:
        value = schema.from_cbor(value, network=network)
    return value


class SchemaProvider(ABC):
    """Source of parameter schemas per (actor, method)."""

    @abstractmethod
    def lookup(self, actor: str, method: int) -> Optional[Schema]:
        """
        Find the schema for an actor method.

        Args:
            actor: Actor code name or code CID text
            method: Method number

        Returns:
            Schema, or None if the method is unknown
        """
        pass


class RegistrySchemaProvider(SchemaProvider):
    """In-memory schema registry."""

    def __init__(self, schemas: Optional[Dict[Tuple[str, int], Schema]] = None):
        self._schemas: Dict[Tuple[str, int], Schema] = dict(schemas or {})

    def register(self, actor: str, method: int, schema: Schema) -> None:
        self._schemas[(actor, method)] = schema

    def lookup(self, actor: str, method: int) -> Optional[Schema]:
        return self._schemas.get((actor, method))

    def __len__(self) -> int:
        return len(self._schemas)


def _schema_for(provider: SchemaProvider, actor: str, method: int) -> Schema:
    schema = provider.lookup(actor, method)
    if schema is None:
        raise TypeMismatchError(f"No parameter schema for {actor} method {method}",
                                details={"actor": actor, "method": method})
    return schema


def serialize_method_params(provider: SchemaProvider, actor: str, method: int,
                            value: Any) -> bytes:
    """Serialize parameters using the schema the provider has for the method."""
    return serialize_params(value, _schema_for(provider, actor, method))


def deserialize_method_params(provider: SchemaProvider, actor: str, method: int,
                              data: bytes, network: Network = Network.MAIN) -> Any:
    return deserialize_params(data, _schema_for(provider, actor, method), network)


__all__ = [
    "Schema",
    "UInt",
    "Int",
    "BigInt",
    "Bytes",
    "Text",
    "Bool",
    "AddressShape",
    "ArrayOf",
    "MapOf",
    "Struct",
    "Nullable",
    "SchemaProvider",
    "RegistrySchemaProvider",
    "serialize_params",
    "deserialize_params",
    "serialize_method_params",
    "deserialize_method_params",
]
