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

# datap/core/ids.py
from typing import Any, Container

from bson import ObjectId


def generate_id(taken: Container[Any] = ()) -> str:
    """
    Generate a new document id as a 24-char ObjectId hex string.

    ObjectIds embed a timestamp and a per-process counter, so ids created later
    sort after earlier ones. `taken` holds ids already used in the collection.
    """
    new_id = str(ObjectId())
    while new_id in taken:
        new_id = str(ObjectId())
    return new_id


def is_object_id(value: Any) -> bool:
    """True for ObjectId instances and 24-char hex strings"""
    if isinstance(value, ObjectId):
        return True
    return isinstance(value, str) and ObjectId.is_valid(value)


def normalize_id(value: Any) -> Any:
    """Ids are stored as plain strings; ObjectId arguments are compared by hex value"""
    if isinstance(value, ObjectId):
        return str(value)
    return value
