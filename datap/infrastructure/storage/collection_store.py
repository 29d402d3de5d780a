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

# datap/infrastructure/storage/collection_store.py
import os
import tempfile
import threading
from datetime import timezone
from typing import Any, Dict, List

from bson import json_util
from bson.errors import InvalidBSON

from ...core.errors import InvalidArgument, StorageIOError
from ...log_creator import get_file_logger

logger = get_file_logger()

# Relaxed Extended JSON keeps datetimes and ObjectIds typed across a reload
JSON_OPTIONS = json_util.JSONOptions(
    json_mode=json_util.JSONMode.RELAXED,
    tz_aware=True,
    tzinfo=timezone.utc,
)


def normalize_document(doc: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep copy of doc in the form it takes after a write and reload.

    Tuples and sets become lists, datetimes become UTC with millisecond
    precision, and non-string keys become strings.

    Raises:
        InvalidArgument: doc holds a value Extended JSON cannot represent
    """
    try:
        encoded = json_util.dumps(doc, json_options=JSON_OPTIONS)
    except (TypeError, ValueError, OverflowError) as e:
        raise InvalidArgument(f"Document holds a value that cannot be stored: {e}") from e
    return json_util.loads(encoded, json_options=JSON_OPTIONS)


class MutationSlot:
    """
    FIFO admission token for one collection.

    Only one holder at a time; waiters are admitted strictly in the order they
    called acquire(). A plain threading.Lock gives no ordering guarantee.
    """

    def __init__(self):
        self._condition = threading.Condition()
        self._next_ticket = 0
        self._now_serving = 0

    def acquire(self) -> None:
        with self._condition:
            ticket = self._next_ticket
            self._next_ticket += 1
            while ticket != self._now_serving:
                self._condition.wait()

    def release(self) -> None:
        with self._condition:
            if self._now_serving >= self._next_ticket:
                raise RuntimeError("release() called on an unheld mutation slot")
            self._now_serving += 1
            self._condition.notify_all()

    @property
    def pending(self) -> int:
        """Number of holders plus waiters"""
        with self._condition:
            return self._next_ticket - self._now_serving

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()


class CollectionStore:
    """
    One collection's documents in memory plus the JSON file backing them.

    The in-memory list is the authority between writes; the file is only read
    once, when the store is opened.
    """

    def __init__(self, name: str, path: str, documents: List[Dict[str, Any]] = None):
        self.name = name
        self.path = path
        self.documents: List[Dict[str, Any]] = documents if documents is not None else []
        self.slot = MutationSlot()

    @classmethod
    def open(cls, name: str, path: str) -> "CollectionStore":
        """Load a collection from its file; a missing file is an empty collection"""
        return cls(name, path, cls._read_documents(path))

    @staticmethod
    def _read_documents(path: str) -> List[Dict[str, Any]]:
        if not os.path.exists(path):
            logger.debug(f"No file at {path}, starting empty collection")
            return []

        try:
            with open(path, 'r', encoding='utf-8') as f:
                content = f.read()
        except OSError as e:
            logger.error(f"Failed to read {path}: {e}")
            raise StorageIOError(f"Failed to read collection file: {e}", path) from e

        if not content.strip():
            return []

        try:
            data = json_util.loads(content, json_options=JSON_OPTIONS)
        except (ValueError, TypeError, InvalidBSON) as e:
            logger.error(f"Failed to decode JSON from {path}: {e}")
            raise StorageIOError(f"Collection file is not valid JSON: {e}", path) from e

        if not isinstance(data, list) or not all(isinstance(doc, dict) for doc in data):
            logger.error(f"Unexpected content in {path}: expected a list of documents")
            raise StorageIOError("Collection file must hold a JSON array of objects", path)

        logger.debug(f"Loaded {len(data)} documents from {path}")
        return data

    def snapshot(self) -> List[Dict[str, Any]]:
        """Current document list as seen by readers (no slot required)"""
        return list(self.documents)

    def persist(self) -> None:
        """
        Write the full collection to disk atomically.

        On failure the in-memory list is left as is, ahead of the file.
        """
        try:
            payload = json_util.dumps(self.documents, json_options=JSON_OPTIONS,
                                      indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to encode collection '{self.name}': {e}")
            raise StorageIOError(f"Collection '{self.name}' holds a value that cannot be stored: {e}",
                                 self.path) from e

        try:
            self._atomic_write(payload)
        except OSError as e:
            raise StorageIOError(f"Failed to write collection '{self.name}': {e}", self.path) from e

    def _atomic_write(self, payload: str) -> None:
        """
        Atomically write text to the backing file using a temporary file and rename.
        Readers of the file see either the previous or the new complete content.
        """
        file_dir = os.path.dirname(self.path) or '.'
        os.makedirs(file_dir, exist_ok=True)

        # Temp file in the same directory so the rename stays on one filesystem
        fd, temp_path = tempfile.mkstemp(
            suffix='.tmp',
            prefix='.tmp_' + os.path.basename(self.path) + '_',
            dir=file_dir,
            text=False
        )

        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())

            os.replace(temp_path, self.path)
            logger.debug(f"Atomically wrote {len(self.documents)} documents to {self.path}")

        except OSError as e:
            if os.path.exists(temp_path):
                try:
                    os.remove(temp_path)
                except OSError:
                    logger.warning(f"Could not remove temp file {temp_path}")
            logger.error(f"Error during atomic write to {self.path}: {e}")
            raise

    def __len__(self) -> int:
        return len(self.documents)

    def __repr__(self) -> str:
        return f"CollectionStore(name={self.name!r}, path={self.path!r}, documents={len(self.documents)})"
