from __future__ import annotations

import sys
import unittest
from dataclasses import dataclass, field
from decimal import Decimal
from fractions import Fraction
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from qdrant_client import grpc as pb

from qdrantlite import (
    ValueKind,
    decode_payload,
    decode_value,
    encode_payload,
    encode_value,
    kind_of,
)
from qdrantlite.values import to_int64

try:
    import numpy
except ImportError:  # pragma: no cover
    numpy = None


@dataclass
class Empty:
    pass


@dataclass
class Author:
    name: str
    tags: list[str] = field(default_factory=list)


class EncodeScalarTests(unittest.TestCase):
    def test_scalars_select_their_variant(self) -> None:
        cases = [
            (None, ValueKind.NULL),
            ("text", ValueKind.STRING),
            ("", ValueKind.STRING),
            (True, ValueKind.BOOL),
            (False, ValueKind.BOOL),
            (0, ValueKind.INTEGER),
            (-42, ValueKind.INTEGER),
            (1.5, ValueKind.DOUBLE),
            (Fraction(1, 4), ValueKind.DOUBLE),
        ]
        for value, kind in cases:
            with self.subTest(value=value):
                self.assertEqual(kind_of(encode_value(value)), kind)

    def test_bool_is_not_encoded_as_integer(self) -> None:
        encoded = encode_value(True)

        self.assertTrue(encoded.bool_value)
        self.assertIs(decode_value(encoded), True)

    def test_integers_keep_their_value(self) -> None:
        self.assertEqual(encode_value(2**63 - 1).integer_value, 2**63 - 1)
        self.assertEqual(encode_value(-(2**63)).integer_value, -(2**63))

    def test_unsigned_64_bit_values_wrap_twos_complement(self) -> None:
        self.assertEqual(encode_value(2**64 - 1).integer_value, -1)
        self.assertEqual(encode_value(2**63).integer_value, -(2**63))
        self.assertEqual(to_int64(2**64 + 5), 5)
        self.assertEqual(to_int64(-(2**63) - 1), 2**63 - 1)

    def test_unsupported_types_become_null(self) -> None:
        for value in [object(), b"raw", bytearray(b"x"), {1, 2}, Decimal("1.5"), Empty]:
            with self.subTest(value=value):
                encoded = encode_value(value)
                self.assertEqual(kind_of(encoded), ValueKind.NULL)
                self.assertIsNone(decode_value(encoded))

    def test_mapping_with_non_string_keys_becomes_null(self) -> None:
        self.assertEqual(kind_of(encode_value({1: "a"})), ValueKind.NULL)

    @unittest.skipIf(numpy is None, "numpy not installed")
    def test_numpy_scalars(self) -> None:
        self.assertEqual(encode_value(numpy.int8(-5)).integer_value, -5)
        self.assertEqual(encode_value(numpy.uint64(2**64 - 1)).integer_value, -1)
        self.assertEqual(encode_value(numpy.float32(0.5)).double_value, 0.5)
        self.assertEqual(kind_of(encode_value(numpy.bool_(True))), ValueKind.BOOL)

    def test_int_subclass_named_bool_stays_integer(self) -> None:
        bool_like = type("bool", (int,), {})

        encoded = encode_value(bool_like(3))

        self.assertEqual(kind_of(encoded), ValueKind.INTEGER)
        self.assertEqual(encoded.integer_value, 3)

    def test_real_out_of_double_range_becomes_null(self) -> None:
        encoded = encode_value(Fraction(10**400))

        self.assertEqual(kind_of(encoded), ValueKind.NULL)

    def test_lone_surrogates_are_replaced(self) -> None:
        encoded = encode_value("a\ud800b")

        self.assertEqual(kind_of(encoded), ValueKind.STRING)
        self.assertEqual(encoded.string_value, "a?b")


class NestingTests(unittest.TestCase):
    DEPTH = 2000

    def test_deeply_nested_list(self) -> None:
        value: list = []
        for _ in range(self.DEPTH):
            value = [value]

        node = encode_value(value)
        depth = 0
        while node.list_value.values:
            self.assertEqual(kind_of(node), ValueKind.LIST)
            node = node.list_value.values[0]
            depth += 1
        self.assertEqual(depth, self.DEPTH)

        decoded = decode_value(encode_value(value))
        depth = 0
        while decoded:
            decoded = decoded[0]
            depth += 1
        self.assertEqual(depth, self.DEPTH)

    def test_deeply_nested_struct(self) -> None:
        value: dict = {}
        for _ in range(self.DEPTH):
            value = {"child": value}

        decoded = decode_value(encode_value(value))
        depth = 0
        while decoded:
            decoded = decoded["child"]
            depth += 1
        self.assertEqual(depth, self.DEPTH)

    def test_cyclic_list_is_cut_with_null(self) -> None:
        value: list = [1]
        value.append(value)

        self.assertEqual(decode_value(encode_value(value)), [1, None])

    def test_cyclic_dict_is_cut_with_null(self) -> None:
        value: dict = {"name": "root"}
        value["self"] = {"parent": value}

        self.assertEqual(
            decode_value(encode_value(value)),
            {"name": "root", "self": {"parent": None}},
        )

    def test_shared_containers_are_encoded_in_full(self) -> None:
        shared = {"tag": "a"}

        self.assertEqual(
            decode_value(encode_value([shared, shared])),
            [{"tag": "a"}, {"tag": "a"}],
        )


class EncodeContainerTests(unittest.TestCase):
    def test_list_preserves_order_and_count(self) -> None:
        encoded = encode_value([3, "b", 1.0, None])

        self.assertEqual(kind_of(encoded), ValueKind.LIST)
        self.assertEqual(
            [kind_of(item) for item in encoded.list_value.values],
            [ValueKind.INTEGER, ValueKind.STRING, ValueKind.DOUBLE, ValueKind.NULL],
        )

    def test_empty_containers_keep_their_variant(self) -> None:
        self.assertEqual(kind_of(encode_value([])), ValueKind.LIST)
        self.assertEqual(kind_of(encode_value({})), ValueKind.STRUCT)
        self.assertEqual(kind_of(encode_value(Empty())), ValueKind.STRUCT)
        self.assertEqual(len(encode_value(Empty()).struct_value.fields), 0)

    def test_struct_preserves_key_set(self) -> None:
        encoded = encode_value({"a": 1, "b": {"c": [True]}})

        self.assertEqual(set(encoded.struct_value.fields), {"a", "b"})
        inner = encoded.struct_value.fields["b"]
        self.assertEqual(set(inner.struct_value.fields), {"c"})

    def test_dataclass_encodes_its_fields(self) -> None:
        decoded = decode_value(encode_value(Author(name="ada", tags=["math"])))

        self.assertEqual(decoded, {"name": "ada", "tags": ["math"]})

    def test_tuple_decodes_as_list(self) -> None:
        self.assertEqual(decode_value(encode_value((1, 2))), [1, 2])


class RoundTripTests(unittest.TestCase):
    def test_nested_values_round_trip(self) -> None:
        values = [
            "plain",
            7,
            -3.25,
            False,
            [],
            {},
            [1, [2, [3, {"deep": "yes"}]]],
            {"title": "doc", "score": 0.5, "flags": [True, False], "meta": {"n": None}},
        ]
        for value in values:
            with self.subTest(value=value):
                self.assertEqual(decode_value(encode_value(value)), value)

    def test_round_trip_survives_serialization(self) -> None:
        value = {"tags": ["a", "b"], "count": 2, "nested": {"ok": True}}
        wire = encode_value(value).SerializeToString()

        self.assertEqual(decode_value(pb.Value.FromString(wire)), value)

    def test_unset_value_decodes_to_none(self) -> None:
        self.assertIsNone(decode_value(pb.Value()))
        self.assertEqual(kind_of(pb.Value()), ValueKind.NULL)


class PayloadTests(unittest.TestCase):
    def test_encode_payload_encodes_each_key(self) -> None:
        encoded = encode_payload({"tag": "a", "rank": 1})

        self.assertEqual(set(encoded), {"tag", "rank"})
        self.assertEqual(encoded["tag"].string_value, "a")
        self.assertEqual(encoded["rank"].integer_value, 1)

    def test_encode_payload_accepts_none(self) -> None:
        self.assertEqual(encode_payload(None), {})

    def test_encode_payload_rejects_non_string_keys(self) -> None:
        with self.assertRaises(ValueError):
            encode_payload({1: "a"})

    def test_decode_payload_of_missing_payload_is_empty(self) -> None:
        self.assertEqual(decode_payload(None), {})
        self.assertEqual(decode_payload({}), {})


if __name__ == "__main__":
    unittest.main()
