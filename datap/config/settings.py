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

# datap/config/settings.py
import os
import json
from dotenv import load_dotenv

load_dotenv()

from ..log_creator import get_file_logger

logger = get_file_logger()


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Backend selection
    USE_MONGO = _env_flag("DATAP_USE_MONGO")

    # MongoDB Configuration
    MONGODB_URL = os.getenv("MONGODB_URL")
    DATABASE_NAME = os.getenv("DATAP_DATABASE_NAME", "datap")
    MONGODB_OPTIONS = {
        "maxPoolSize": 20,
        "connectTimeoutMS": 5000,
        "serverSelectionTimeoutMS": 5000,
        "socketTimeoutMS": 30000,
        "retryWrites": True,
        "retryReads": True,
    }

    # Embedded JSON storage
    DATA_DIR = os.getenv("DATAP_DATA_DIR", "data/")
    STORAGE_SUBDIR = "storage"

    @classmethod
    def load_json_config(cls):
        config_path = os.getenv("CONFIG_PATH")
        if config_path and os.path.isfile(config_path):
            try:
                with open(config_path, "r") as f:
                    config_data = json.load(f)
                    for key, value in config_data.items():
                        setattr(cls, key, value)
                logger.info(f"Loaded config overrides from {config_path}")
            except Exception as e:
                logger.error(f"Failed to load config from {config_path}: {e}")

    @classmethod
    def storage_dir(cls) -> str:
        return os.path.join(cls.DATA_DIR, cls.STORAGE_SUBDIR)


Config.load_json_config()
