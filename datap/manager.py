# -----------------------------------------------------------------------------
# Copyright (c) 2025 Backend
# All rights reserved.
#
# Developed by:
# Author: Prabhath Chellingi
# GitHub: https://github.com/Prabhath003
# Contact: prabhathchellingi2003@gmail.com
#
# This source code is licensed under the MIT License found in the LICENSE file
# in the root directory of this source tree.
# -----------------------------------------------------------------------------

# datap/manager.py
import threading
from typing import Any, Dict, Optional

from .config import Config
from .core.connector import DatabaseConnector
from .core.errors import InvalidArgument
from .infrastructure.database.mongodb import MongoConnector
from .infrastructure.storage.json_storage import JSONStorage, get_storage
from .log_creator import get_file_logger, suppress_library_loggers

logger = get_file_logger()
suppress_library_loggers()


class Datap:
    """
    Builds one connector per configured backend.

    Example config:
        {
            "mongo": {"url": "mongodb://localhost:27017", "db_name": "app"},
            "json": {"db_path": "data/storage"},
        }

    "lowdb" is accepted as an alias of "json", and camelCase keys (dbName,
    dbPath) as aliases of the snake_case ones.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        self.mongo: Optional[MongoConnector] = None
        self.json: Optional[JSONStorage] = None

        mongo_config = config.get("mongo")
        if mongo_config:
            url = mongo_config.get("url")
            db_name = mongo_config.get("db_name") or mongo_config.get("dbName")
            if not url or not db_name:
                raise InvalidArgument("mongo config needs both 'url' and 'db_name'")
            self.mongo = MongoConnector(url, db_name, mongo_config.get("options"))

        json_config = config.get("json") or config.get("lowdb")
        if json_config:
            db_path = json_config.get("db_path") or json_config.get("dbPath")
            if not db_path:
                raise InvalidArgument("json config needs 'db_path'")
            self.json = JSONStorage(db_path)

        logger.info(f"Datap configured (mongo={'yes' if self.mongo else 'no'}, json={'yes' if self.json else 'no'})")

    def close(self) -> None:
        for connector in (self.mongo, self.json):
            if connector is not None:
                connector.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


# Global connector instance
_connector_instance: Optional[DatabaseConnector] = None
_connector_lock = threading.Lock()


def get_connector() -> DatabaseConnector:
    """Get or create the process-wide connector selected by Config.USE_MONGO"""
    global _connector_instance

    with _connector_lock:
        if _connector_instance is None:
            if Config.USE_MONGO:
                if not Config.MONGODB_URL:
                    raise InvalidArgument("USE_MONGO is set but MONGODB_URL is empty")
                _connector_instance = MongoConnector(Config.MONGODB_URL, Config.DATABASE_NAME,
                                                     Config.MONGODB_OPTIONS)
                logger.info(f"Using MongoDB backend (database: {Config.DATABASE_NAME})")
            else:
                _connector_instance = get_storage()
                logger.info(f"Using JSON storage backend at {Config.storage_dir()}")

    return _connector_instance


def reset_connector() -> None:
    """Close and forget the process-wide connector"""
    global _connector_instance

    with _connector_lock:
        if _connector_instance is not None:
            _connector_instance.close()
        _connector_instance = None
