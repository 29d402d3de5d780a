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

# datap/core/errors.py
"""Error types shared by every connector.

Absence is never an error: lookups return None and writes report zero counts.
"""
from typing import Optional


class DatapError(Exception):
    """Base class for datap errors."""
    pass


class InvalidArgument(DatapError, ValueError):
    """Raised when a call is missing a required id/key or carries a malformed argument."""
    pass


class DuplicateKeyError(InvalidArgument):
    """Raised when an explicit _id is already present in the collection."""

    def __init__(self, collection_name: str, doc_id: str):
        super().__init__(f"Duplicate _id '{doc_id}' in collection '{collection_name}'")
        self.collection_name = collection_name
        self.doc_id = doc_id


class StorageIOError(DatapError, OSError):
    """Raised when a collection file cannot be read, written, decoded or encoded."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        message = self.args[0] if self.args else ""
        if self.path:
            return f"{message} (path: {self.path})"
        return message
