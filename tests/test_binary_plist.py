import plistlib
import struct
import unittest
from datetime import datetime, timedelta, timezone

import pytest

from aidoku_converter.binary_plist import encode


def _trailer(data):
    offset_size, ref_size, count, top, table_start = struct.unpack(">6xBBQQQ", data[-32:])
    return {
        "offset_size": offset_size,
        "ref_size": ref_size,
        "count": count,
        "top": top,
        "table_start": table_start,
    }


class BinaryPlistEncodingTests(unittest.TestCase):
    def test_header_and_trailer_layout(self):
        data = encode({"a": 1, "b": [True, False]})
        self.assertEqual(data[:8], b"bplist00")

        trailer = _trailer(data)
        # dict, "a", "b", 1, array, True, False
        self.assertEqual(trailer["count"], 7)
        self.assertEqual(trailer["top"], 0)
        self.assertEqual(trailer["ref_size"], 1)
        self.assertEqual(
            trailer["table_start"] + trailer["count"] * trailer["offset_size"],
            len(data) - 32,
        )
        # The top object is a two entry dictionary right after the magic.
        first_offset = data[trailer["table_start"]]
        self.assertEqual(first_offset, 8)
        self.assertEqual(data[8], 0xD2)

    def test_nested_document_is_readable_by_plistlib(self):
        document = {
            "library": [
                {"mangaId": "m1", "categories": ["Reading"], "lastUpdated": 1704067200000},
            ],
            "manga": [{"id": "m1", "nsfw": 0, "tags": [], "author": "Alice, Bob"}],
            "ratio": 0.5,
            "completed": True,
            "blob": b"\x00\x01\x02",
            "version": "1.0.0",
        }
        self.assertEqual(plistlib.loads(encode(document)), document)

    def test_equal_scalars_are_written_once(self):
        data = encode(["abc", "abc", 7, 7, "abc"])
        self.assertEqual(_trailer(data)["count"], 3)
        self.assertEqual(plistlib.loads(data), ["abc", "abc", 7, 7, "abc"])

    def test_booleans_and_integers_are_distinct_objects(self):
        data = encode([1, True, 0, False, 1.0])
        self.assertEqual(_trailer(data)["count"], 6)
        decoded = plistlib.loads(data)
        self.assertEqual([type(value) for value in decoded], [int, bool, int, bool, float])

    def test_output_is_deterministic(self):
        document = {"z": [3, 2, 1], "a": {"nested": "value"}, "m": "ü"}
        self.assertEqual(encode(document), encode(document))
        self.assertEqual(list(plistlib.loads(encode(document))), ["z", "a", "m"])


def test_large_collections_use_extended_counts():
    values = list(range(20))
    mapping = {f"key{i:02d}": i for i in range(16)}
    text = "x" * 40
    decoded = plistlib.loads(encode({"values": values, "mapping": mapping, "text": text}))
    assert decoded == {"values": values, "mapping": mapping, "text": text}


def test_unicode_strings_use_utf16():
    data = encode(["Café ✓", "emoji 😀"])
    assert plistlib.loads(data) == ["Café ✓", "emoji 😀"]
    assert b"\x00C\x00a\x00f\x00\xe9" in data


@pytest.mark.parametrize(
    "value",
    [0, 255, 256, 65535, 65536, 2**32, 2**63 - 1, -1, -(2**63), 2**63 + 5],
)
def test_integer_widths_round_trip(value):
    assert plistlib.loads(encode([value])) == [value]


def test_many_objects_widen_references():
    values = [f"item-{i}" for i in range(300)]
    data = encode(values)
    assert _trailer(data)["ref_size"] == 2
    assert plistlib.loads(data) == values


def test_dates_are_truncated_by_default():
    moment = datetime(2024, 1, 1, 12, 0, 0, 500000, tzinfo=timezone.utc)
    assert plistlib.loads(encode([moment])) == [datetime(2024, 1, 1, 12, 0, 0)]


def test_date_formatter_is_local_to_the_call():
    moment = datetime(2024, 1, 1, 12, 0, 0, 500000)
    precise = encode([moment], date_formatter=None)
    assert plistlib.loads(precise) == [moment]
    # A later call with the default formatter is unaffected.
    assert plistlib.loads(encode([moment])) == [datetime(2024, 1, 1, 12, 0, 0)]


def test_sort_keys_orders_dictionary_members():
    data = encode({"b": 1, "a": 2}, sort_keys=True)
    assert list(plistlib.loads(data)) == ["a", "b"]
    assert list(plistlib.loads(encode({"b": 1, "a": 2}))) == ["b", "a"]


@pytest.mark.parametrize("value", [None, {"a": None}, {1: "x"}, {"s": {1, 2}}])
def test_unsupported_values_raise_type_error(value):
    with pytest.raises(TypeError):
        encode(value)


def test_out_of_range_integers_raise_overflow():
    with pytest.raises(OverflowError):
        encode([2**64])
    with pytest.raises(OverflowError):
        encode([-(2**63) - 1])


def test_reference_cycles_are_rejected():
    looped = []
    looped.append(looped)
    with pytest.raises(ValueError):
        encode(looped)


def test_none_is_rejected_rather_than_written_as_null():
    with pytest.raises(TypeError):
        encode({"library": [{"title": None}]})


def test_aware_dates_are_stored_as_utc():
    moment = datetime(2024, 1, 1, 14, 0, 0, tzinfo=timezone(timedelta(hours=2)))
    assert plistlib.loads(encode([moment])) == [datetime(2024, 1, 1, 12, 0, 0)]


def test_shared_containers_are_not_cycles():
    shared = ["x"]
    assert plistlib.loads(encode({"a": shared, "b": shared})) == {"a": ["x"], "b": ["x"]}
