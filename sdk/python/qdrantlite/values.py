"""Tagged payload values exchanged with the service.

A payload value on the wire is a ``qdrant.Value`` protobuf message whose
``kind`` oneof holds exactly one of seven variants. This module names those
variants and converts between them and plain Python values:

* :func:`encode_value` turns any Python value into a ``Value``. It never
  fails; values of unsupported types become Null.
* :func:`decode_value` turns a ``Value`` back into plain Python
  (None, bool, int, float, str, list, dict).

``decode_value(encode_value(v))`` is structurally equal to ``v`` for strings,
booleans, integers, floats, sequences and string-keyed mappings, with two
narrowings: every integer comes back as a 64-bit ``int`` and every sequence
comes back as a ``list``.

Both directions walk containers with an explicit work stack, so nesting depth
is not bounded by the interpreter's recursion limit.
"""

from __future__ import annotations

import dataclasses
import logging
import numbers
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

from qdrant_client import grpc as pb

logger = logging.getLogger(__name__)

_INT64_MIN = -(2**63)
_UINT64_RANGE = 2**64


class ValueKind(str, Enum):
    """Variants of a tagged value, named after the protobuf oneof fields."""

    NULL = "null_value"
    BOOL = "bool_value"
    INTEGER = "integer_value"
    DOUBLE = "double_value"
    STRING = "string_value"
    LIST = "list_value"
    STRUCT = "struct_value"


def kind_of(value: pb.Value) -> ValueKind:
    """Returns the variant held by ``value``; an unset oneof counts as NULL."""
    which = value.WhichOneof("kind")
    return ValueKind(which) if which else ValueKind.NULL


def null_value() -> pb.Value:
    return pb.Value(null_value=pb.NullValue.NULL_VALUE)


def to_int64(number: int) -> int:
    """Reinterprets ``number`` as a signed 64-bit integer (two's complement).

    Integers already in range are unchanged; e.g. ``2**64 - 1`` becomes -1.
    """
    if _INT64_MIN <= number < -_INT64_MIN:
        return number
    return (number - _INT64_MIN) % _UINT64_RANGE + _INT64_MIN


def _is_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return True
    # numpy.bool_ is not an int subclass and registers with no numbers ABC
    kind = type(value)
    return kind.__module__ == "numpy" and kind.__name__ in ("bool_", "bool")


def encode_value(value: Any) -> pb.Value:
    """Converts a Python value into a tagged ``Value``.

    Lossy cases, none of which raise:

    * unsupported types become Null;
    * a container met again inside itself (a cycle) becomes Null at the
      point of re-entry; shared but acyclic containers are encoded in full;
    * a real number too large for a double becomes Null;
    * a string that is not valid UTF-8 (lone surrogates) has the offending
      characters replaced with ``?``.
    """
    root = pb.Value()
    pending: list[tuple[pb.Value, Any, frozenset[int]]] = [(root, value, frozenset())]
    while pending:
        target, item, ancestors = pending.pop()
        pending.extend(_fill(target, item, ancestors))
    return root


def _fill(
    target: pb.Value, value: Any, ancestors: frozenset[int]
) -> list[tuple[pb.Value, Any, frozenset[int]]]:
    """Writes ``value`` into ``target``; returns the children still to encode."""
    if value is None:
        target.null_value = pb.NullValue.NULL_VALUE
    elif isinstance(value, str):
        _set_string(target, value)
    elif _is_bool(value):
        target.bool_value = bool(value)
    elif isinstance(value, numbers.Integral):
        target.integer_value = to_int64(int(value))
    elif isinstance(value, numbers.Real):
        try:
            target.double_value = float(value)
        except OverflowError:
            logger.debug("real number out of double range encoded as null")
            target.null_value = pb.NullValue.NULL_VALUE
    elif id(value) in ancestors:
        logger.debug("cyclic %s encoded as null", type(value).__name__)
        target.null_value = pb.NullValue.NULL_VALUE
    elif isinstance(value, Mapping):
        if not all(isinstance(key, str) for key in value):
            logger.debug("mapping with non-string keys encoded as null")
            target.null_value = pb.NullValue.NULL_VALUE
            return []
        return _fill_struct(target, value.items(), ancestors | {id(value)})
    elif dataclasses.is_dataclass(value) and not isinstance(value, type):
        items = [(item.name, getattr(value, item.name)) for item in dataclasses.fields(value)]
        return _fill_struct(target, items, ancestors | {id(value)})
    elif isinstance(value, Sequence) and not isinstance(
        value, (bytes, bytearray, memoryview)
    ):
        # empty containers still have to select their variant
        target.list_value.SetInParent()
        path = ancestors | {id(value)}
        return [(target.list_value.values.add(), item, path) for item in value]
    else:
        logger.debug("unsupported payload type %s encoded as null", type(value).__name__)
        target.null_value = pb.NullValue.NULL_VALUE
    return []


def _fill_struct(
    target: pb.Value, items: Any, path: frozenset[int]
) -> list[tuple[pb.Value, Any, frozenset[int]]]:
    target.struct_value.SetInParent()
    fields = target.struct_value.fields
    return [(fields[key], item, path) for key, item in items]


def _set_string(target: pb.Value, value: str) -> None:
    try:
        target.string_value = value
    except UnicodeEncodeError:
        logger.debug("string with invalid code points encoded with replacements")
        target.string_value = value.encode("utf-8", "replace").decode("utf-8")


def decode_value(value: pb.Value) -> Any:
    """Converts a tagged ``Value`` back into plain Python."""
    result: list[Any] = [None]
    pending: list[tuple[pb.Value, Any, Any]] = [(value, result, 0)]
    while pending:
        message, container, slot = pending.pop()
        kind = kind_of(message)
        if kind is ValueKind.LIST:
            values = message.list_value.values
            items: list[Any] = [None] * len(values)
            container[slot] = items
            pending.extend((child, items, index) for index, child in enumerate(values))
        elif kind is ValueKind.STRUCT:
            fields: dict[str, Any] = {}
            container[slot] = fields
            for key, child in message.struct_value.fields.items():
                fields[key] = None
                pending.append((child, fields, key))
        else:
            container[slot] = _scalar(message, kind)
    return result[0]


def _scalar(value: pb.Value, kind: ValueKind) -> Any:
    if kind is ValueKind.BOOL:
        return value.bool_value
    if kind is ValueKind.INTEGER:
        return int(value.integer_value)
    if kind is ValueKind.DOUBLE:
        return float(value.double_value)
    if kind is ValueKind.STRING:
        return value.string_value
    return None


def encode_payload(payload: Mapping[str, Any] | None) -> dict[str, pb.Value]:
    """Encodes a top-level payload map key by key.

    Raises ValueError when a key is not a string.
    """
    if payload is None:
        return {}
    encoded: dict[str, pb.Value] = {}
    for key, item in payload.items():
        if not isinstance(key, str):
            raise ValueError(f"payload keys must be strings, got {type(key).__name__}")
        encoded[key] = encode_value(item)
    return encoded


def decode_payload(fields: Mapping[str, pb.Value] | None) -> dict[str, Any]:
    """Decodes a payload map; a missing payload yields an empty dict."""
    if not fields:
        return {}
    return {key: decode_value(item) for key, item in fields.items()}
