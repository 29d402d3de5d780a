#!/usr/bin/env python3
"""Test how the JSON storage reports unreadable files and failed writes"""

import os
import sys
import json
import shutil
import tempfile
from datetime import datetime, timezone
from unittest.mock import patch

from datap.core.errors import DatapError, InvalidArgument, StorageIOError
from datap.infrastructure.storage.collection_store import CollectionStore
from datap.infrastructure.storage.json_storage import JSONStorage


def _write_file(storage_dir, name, content):
    with open(os.path.join(storage_dir, f"{name}.json"), "w", encoding="utf-8") as f:
        f.write(content)


def test_unreadable_files_raise_storage_error():
    print("Testing corrupt collection files...")
    storage_dir = tempfile.mkdtemp(prefix="datap_errors_")
    try:
        _write_file(storage_dir, "broken", "{not json")
        _write_file(storage_dir, "scalar", json.dumps({"a": 1}))
        _write_file(storage_dir, "mixed", json.dumps([{"a": 1}, 2]))
        _write_file(storage_dir, "blank", "   \n")

        storage = JSONStorage(storage_dir)
        for name in ("broken", "scalar", "mixed"):
            try:
                storage.find(name)
                assert False, f"{name} should fail to load"
            except StorageIOError as e:
                print(f"   {name}: {e}")
                assert e.path.endswith(f"{name}.json")
                assert isinstance(e, DatapError)

        # A blank file is an empty collection
        assert storage.count("blank") == 0
        print("   ✓ Corrupt files reported")
    finally:
        shutil.rmtree(storage_dir, ignore_errors=True)


def test_failed_write_leaves_memory_ahead_of_disk():
    print("Testing failed writes and flush...")
    storage_dir = tempfile.mkdtemp(prefix="datap_errors_")
    storage = JSONStorage(storage_dir)
    file_path = os.path.join(storage_dir, "logs.json")

    try:
        storage.create_one("logs", {"line": 1})

        with patch.object(CollectionStore, "_atomic_write", side_effect=OSError("disk full")):
            try:
                storage.create_one("logs", {"line": 2})
                assert False, "write failure should surface"
            except StorageIOError as e:
                print(f"   Raised: {e}")
                assert isinstance(e, OSError)

        # Memory already holds the second document, the file does not
        assert storage.count("logs") == 2
        with open(file_path, "r", encoding="utf-8") as f:
            assert len(json.load(f)) == 1

        storage.flush("logs")
        with open(file_path, "r", encoding="utf-8") as f:
            assert [d["line"] for d in json.load(f)] == [1, 2]
        print("   ✓ flush() brought the file up to date")
    finally:
        shutil.rmtree(storage_dir, ignore_errors=True)


def test_stored_values_match_their_reloaded_form():
    """Tuples, sets and naive datetimes are stored the way they read back from disk"""
    print("Testing value normalization...")
    storage_dir = tempfile.mkdtemp(prefix="datap_errors_")
    storage = JSONStorage(storage_dir)
    try:
        doc_id = storage.create_one("c", {"pair": (1, 2), "tags": {"a"}, "at": datetime(2024, 5, 1, 12, 0, 0, 123456)})["inserted_id"]
        storage.update_one("c", {"_id": doc_id, "more": (3,)})
        storage.upsert_one("c", {"_id": doc_id, "nested": {"s": frozenset(["b"])}})

        in_memory = storage.find("c")
        print(f"   In memory: {in_memory}")
        assert in_memory[0]["pair"] == [1, 2]
        assert in_memory[0]["tags"] == ["a"]
        assert in_memory[0]["more"] == [3]
        assert in_memory[0]["nested"] == {"s": ["b"]}
        assert in_memory[0]["at"] == datetime(2024, 5, 1, 12, 0, 0, 123000, tzinfo=timezone.utc)

        assert JSONStorage(storage_dir).find("c") == in_memory
        print("   ✓ Memory matches disk")
    finally:
        shutil.rmtree(storage_dir, ignore_errors=True)


def test_unencodable_value_is_rejected_before_storing():
    print("Testing unencodable values...")
    storage_dir = tempfile.mkdtemp(prefix="datap_errors_")
    storage = JSONStorage(storage_dir)
    try:
        for call in (
            lambda: storage.create_one("bad", {"x": object()}),
            lambda: storage.create_many("bad", [{"ok": 0}, {"x": object()}]),
            lambda: storage.upsert_one("bad", {"x": object()}),
        ):
            try:
                call()
                assert False, "an object() cannot be written to JSON"
            except InvalidArgument as e:
                print(f"   Rejected: {e}")
        assert storage.count("bad") == 0
        assert not os.path.exists(os.path.join(storage_dir, "bad.json"))

        # The collection keeps working after a rejected write
        doc_id = storage.create_one("bad", {"ok": 1})["inserted_id"]
        for call in (
            lambda: storage.update_one("bad", {"_id": doc_id, "x": object()}),
            lambda: storage.update_many("bad", {}, {"x": object()}),
            lambda: storage.upsert_one("bad", {"_id": doc_id, "x": object()}),
        ):
            try:
                call()
                assert False, "an object() cannot be written to JSON"
            except InvalidArgument:
                pass

        assert storage.find("bad") == JSONStorage(storage_dir).find("bad")
        assert "x" not in storage.find_by_id("bad", doc_id)
        storage.create_one("bad", {"ok": 2})
        storage.flush("bad")
        assert JSONStorage(storage_dir).count("bad") == 2
        print("   ✓ Unencodable values rejected without touching the collection")
    finally:
        shutil.rmtree(storage_dir, ignore_errors=True)


def test_no_temp_files_left_behind():
    storage_dir = tempfile.mkdtemp(prefix="datap_errors_")
    storage = JSONStorage(storage_dir)
    try:
        for n in range(5):
            storage.create_one("clean", {"n": n})

        with patch("datap.infrastructure.storage.collection_store.os.replace",
                   side_effect=OSError("rename failed")):
            try:
                storage.create_one("clean", {"n": 99})
                assert False, "rename failure should surface"
            except StorageIOError:
                pass

        leftovers = [name for name in os.listdir(storage_dir) if name.startswith(".tmp_")]
        assert leftovers == []
        assert storage.list_collections() == ["clean"]
        print("   ✓ Temp files cleaned up")
    finally:
        shutil.rmtree(storage_dir, ignore_errors=True)


if __name__ == "__main__":
    try:
        test_unreadable_files_raise_storage_error()
        test_failed_write_leaves_memory_ahead_of_disk()
        test_stored_values_match_their_reloaded_form()
        test_unencodable_value_is_rejected_before_storing()
        test_no_temp_files_left_behind()
    except Exception as e:
        print(f"\n✗ Test failed: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
