#!/usr/bin/env python3
"""Test query operator matching"""

import sys
from datetime import datetime, timezone

from bson import ObjectId

from datap.core.errors import InvalidArgument
from datap.core.query import get_field, matches


def test_literal_equality():
    """Plain values compare by (deep) equality"""
    print("Testing literal equality...")
    doc = {"name": "Ann", "age": 30, "tags": ["a", "b"], "address": {"city": "Oslo"}, "active": True}

    assert matches(doc, {"name": "Ann"})
    assert not matches(doc, {"name": "Bob"})
    assert matches(doc, {"tags": ["a", "b"]})
    assert not matches(doc, {"tags": ["b", "a"]})
    assert matches(doc, {"address": {"city": "Oslo"}})
    assert matches(doc, {"name": "Ann", "age": 30})
    assert not matches(doc, {"name": "Ann", "age": 31})

    # Booleans are not numbers
    assert matches(doc, {"active": True})
    assert not matches(doc, {"active": 1})
    assert not matches({"count": 1}, {"count": True})

    # Empty and missing queries match everything
    assert matches(doc, {})
    assert matches(doc, None)
    print("   ✓ Literal equality successful")


def test_comparison_operators():
    print("Testing comparison operators...")
    doc = {"age": 30, "name": "Ann"}

    assert matches(doc, {"age": {"$eq": 30}})
    assert matches(doc, {"age": {"$ne": 31}})
    assert matches(doc, {"age": {"$gt": 29, "$lt": 31}})
    assert matches(doc, {"age": {"$gte": 30, "$lte": 30}})
    assert not matches(doc, {"age": {"$gt": 30}})
    assert not matches(doc, {"age": {"$gte": 25, "$lt": 30}})

    # Every operator in the object must hold
    assert not matches(doc, {"age": {"$gt": 10, "$ne": 30}})

    # Incomparable types never match instead of raising
    assert not matches(doc, {"name": {"$gt": 5}})
    assert not matches(doc, {"age": {"$lt": "zzz"}})

    # Datetimes compare by instant
    stamp = {"at": datetime(2024, 5, 1, tzinfo=timezone.utc)}
    assert matches(stamp, {"at": {"$gte": datetime(2024, 1, 1, tzinfo=timezone.utc)}})
    assert not matches(stamp, {"at": {"$lt": datetime(2024, 1, 1, tzinfo=timezone.utc)}})
    print("   ✓ Comparison operators successful")


def test_membership_operators():
    print("Testing $in / $nin...")
    doc = {"status": "open"}

    assert matches(doc, {"status": {"$in": ["open", "closed"]}})
    assert not matches(doc, {"status": {"$in": ["closed"]}})
    assert matches(doc, {"status": {"$nin": ["closed"]}})
    assert not matches(doc, {"status": {"$nin": ["open"]}})
    assert matches({"n": 1}, {"n": {"$in": (1, 2)}})

    try:
        matches(doc, {"status": {"$in": "open"}})
        assert False, "$in with a string should fail"
    except InvalidArgument:
        pass
    print("   ✓ Membership operators successful")


def test_regex_operator():
    print("Testing $regex...")
    doc = {"email": "Ann@Example.com", "age": 30}

    assert matches(doc, {"email": {"$regex": "example", "$options": "i"}})
    assert not matches(doc, {"email": {"$regex": "example"}})
    assert matches(doc, {"email": {"$regex": r"^ann@", "$options": "i"}})

    # Non-string values are stringified
    assert matches(doc, {"age": {"$regex": "^3"}})
    assert not matches(doc, {"age": {"$regex": "^4"}})

    # Missing values never match
    assert not matches(doc, {"phone": {"$regex": ".*"}})

    try:
        matches(doc, {"email": {"$regex": "("}})
        assert False, "invalid pattern should fail"
    except InvalidArgument:
        pass
    print("   ✓ $regex successful")


def test_missing_fields():
    """Absent fields behave like None"""
    print("Testing missing fields...")
    doc = {"name": "Ann"}

    assert matches(doc, {"age": {"$ne": 30}})
    assert matches(doc, {"age": {"$nin": [30, 40]}})
    assert not matches(doc, {"age": {"$eq": 30}})
    assert not matches(doc, {"age": {"$gt": 0}})
    assert not matches(doc, {"age": {"$lte": 100}})
    assert not matches(doc, {"age": 30})
    assert matches(doc, {"age": None})
    assert matches(doc, {"age": {"$in": [None, 1]}})
    print("   ✓ Missing fields successful")


def test_unknown_operators_are_ignored():
    doc = {"age": 30}
    assert matches(doc, {"age": {"$foo": 1}})
    assert matches(doc, {"age": {"$foo": 1, "$gt": 20}})
    assert not matches(doc, {"age": {"$foo": 1, "$gt": 40}})
    print("   ✓ Unknown operators ignored")


def test_dot_notation_and_ids():
    doc = {"_id": "64b7f0c2a1b2c3d4e5f60718", "address": {"city": "Oslo", "zip": {"code": "0150"}}, "a.b": "literal"}

    assert get_field(doc, "address.city") == "Oslo"
    assert get_field(doc, "address.zip.code") == "0150"
    assert get_field(doc, "address.missing.code") is None
    assert get_field(doc, "a.b") == "literal"

    assert matches(doc, {"address.city": "Oslo"})
    assert matches(doc, {"address.zip.code": {"$in": ["0150"]}})

    # ObjectId query values match ids stored as hex strings
    assert matches(doc, {"_id": ObjectId("64b7f0c2a1b2c3d4e5f60718")})
    print("   ✓ Dot notation successful")


if __name__ == "__main__":
    try:
        test_literal_equality()
        test_comparison_operators()
        test_membership_operators()
        test_regex_operator()
        test_missing_fields()
        test_unknown_operators_are_ignored()
        test_dot_notation_and_ids()
    except Exception as e:
        print(f"\n✗ Test failed: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
