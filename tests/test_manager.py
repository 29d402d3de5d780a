#!/usr/bin/env python3
"""Test connector construction from explicit config and from Config"""

import os
import sys
import json
import shutil
import tempfile
from unittest.mock import patch

from datap.config import Config
from datap.core.errors import InvalidArgument
from datap.infrastructure.database.mongodb import MongoConnector
from datap.infrastructure.storage.json_storage import JSONStorage
from datap.manager import Datap, get_connector, reset_connector


def test_datap_builds_configured_backends():
    print("Testing Datap configuration...")
    storage_dir = tempfile.mkdtemp(prefix="datap_manager_")
    try:
        with patch("datap.infrastructure.database.mongodb.MongoClient") as mock_client_cls:
            datap = Datap({
                "mongo": {"url": "mongodb://localhost:27017", "dbName": "app"},
                "lowdb": {"dbPath": storage_dir},
            })
            assert isinstance(datap.mongo, MongoConnector)
            assert isinstance(datap.json, JSONStorage)
            # Mongo connects lazily
            mock_client_cls.assert_not_called()

            datap.json.create_one("things", {"a": 1})
            assert os.path.exists(os.path.join(storage_dir, "things.json"))
            datap.close()

        only_json = Datap({"json": {"db_path": storage_dir}})
        assert only_json.mongo is None
        assert only_json.json.count("things") == 1

        assert Datap().mongo is None and Datap().json is None
        print("   ✓ Backends built from config")
    finally:
        shutil.rmtree(storage_dir, ignore_errors=True)


def test_datap_rejects_incomplete_config():
    for config in (
        {"mongo": {"url": "mongodb://localhost:27017"}},
        {"mongo": {"db_name": "app"}},
        {"json": {"path": "somewhere"}},
    ):
        try:
            Datap(config)
            assert False, f"{config} should be rejected"
        except InvalidArgument as e:
            print(f"   Rejected: {e}")
    print("   ✓ Incomplete config rejected")


def test_get_connector_defaults_to_json_storage():
    print("Testing get_connector with JSON storage...")
    data_dir = tempfile.mkdtemp(prefix="datap_manager_")
    try:
        with patch.object(Config, "USE_MONGO", False), \
             patch.object(Config, "DATA_DIR", data_dir), \
             patch("datap.infrastructure.storage.json_storage._storage_instance", None):
            reset_connector()
            connector = get_connector()
            assert isinstance(connector, JSONStorage)
            assert get_connector() is connector
            assert str(connector.storage_dir) == os.path.join(data_dir, "storage")
            reset_connector()
        print("   ✓ JSON storage selected")
    finally:
        reset_connector()
        shutil.rmtree(data_dir, ignore_errors=True)


def test_get_connector_selects_mongo():
    print("Testing get_connector with MongoDB...")
    try:
        with patch.object(Config, "USE_MONGO", True), \
             patch.object(Config, "MONGODB_URL", "mongodb://db:27017"), \
             patch.object(Config, "DATABASE_NAME", "appdb"), \
             patch("datap.infrastructure.database.mongodb.MongoClient"):
            reset_connector()
            connector = get_connector()
            assert isinstance(connector, MongoConnector)
            assert connector._url == "mongodb://db:27017"
            assert connector._db_name == "appdb"
            reset_connector()

        with patch.object(Config, "USE_MONGO", True), patch.object(Config, "MONGODB_URL", None):
            try:
                get_connector()
                assert False, "missing MONGODB_URL should fail"
            except InvalidArgument:
                pass
        print("   ✓ MongoDB selected")
    finally:
        reset_connector()


def test_json_config_overrides():
    config_dir = tempfile.mkdtemp(prefix="datap_manager_")
    config_path = os.path.join(config_dir, "config.json")
    try:
        with open(config_path, "w") as f:
            json.dump({"DATABASE_NAME": "from_file"}, f)

        with patch.dict(os.environ, {"CONFIG_PATH": config_path}), \
             patch.object(Config, "DATABASE_NAME", Config.DATABASE_NAME):
            Config.load_json_config()
            assert Config.DATABASE_NAME == "from_file"
        print("   ✓ Config file overrides applied")
    finally:
        shutil.rmtree(config_dir, ignore_errors=True)


if __name__ == "__main__":
    try:
        test_datap_builds_configured_backends()
        test_datap_rejects_incomplete_config()
        test_get_connector_defaults_to_json_storage()
        test_get_connector_selects_mongo()
        test_json_config_overrides()
    except Exception as e:
        print(f"\n✗ Test failed: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
