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

# datap/infrastructure/storage/json_storage.py
import copy
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from ...core.connector import (
    CREATED_AT,
    DEFAULT_SORT,
    ID_FIELD,
    UPDATED_AT,
    DatabaseConnector,
    Document,
    Query,
    create_many_result,
    create_one_result,
    delete_result,
    resolve_upsert_key,
    split_document_id,
    strip_engine_fields,
    update_result,
    upsert_insert_result,
)
from ...core.errors import DuplicateKeyError, InvalidArgument, StorageIOError
from ...core.ids import generate_id, normalize_id
from ...core.query import get_field, matches, values_equal
from ...core.sorting import SortSpec, sort_documents
from ...log_creator import get_file_logger
from .collection_store import CollectionStore, normalize_document

logger = get_file_logger()

FILE_EXTENSION = ".json"


def _now() -> datetime:
    """UTC now, truncated to milliseconds so it survives a round trip through the file"""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


class JSONStorage(DatabaseConnector):
    """
    Embedded document store persisted as one JSON file per collection.
    Provides the same interface as the MongoDB connector.

    Collections are loaded lazily and cached until close(). Every mutating call
    holds the collection's mutation slot (FIFO) and rewrites the whole file
    before returning. Reads work on a snapshot and never wait for the slot, so
    a read may observe state from before or after a queued mutation.

    If a write fails with StorageIOError the in-memory collection is already
    changed and stays ahead of the file; reads see the newer state. Call
    flush() to retry the write.
    """

    def __init__(self, storage_dir: str):
        """
        Initialize JSON storage

        Args:
            storage_dir: Base directory holding one <collection>.json file per collection
        """
        self.storage_dir = Path(storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)

        self._collections: Dict[str, CollectionStore] = {}
        self._collections_lock = threading.Lock()
        self._open_locks: Dict[str, threading.Lock] = {}

        logger.info(f"Initialized JSON storage at: {self.storage_dir}")

    def connect(self, *args: Any, **kwargs: Any) -> None:
        """Nothing to connect; collections open lazily on first use"""
        pass

    # ------------------------------------------------------------------
    # Collection cache
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_name(collection_name: str) -> None:
        if not isinstance(collection_name, str) or not collection_name.strip():
            raise InvalidArgument("Collection name must be a non-empty string")
        if collection_name in (".", "..") or any(c in collection_name for c in ("/", "\\", "\x00")):
            raise InvalidArgument(f"Invalid collection name: {collection_name!r}")

    def _get_collection_path(self, collection_name: str) -> str:
        return str(self.storage_dir / f"{collection_name}{FILE_EXTENSION}")

    def _get_open_lock(self, collection_name: str) -> threading.Lock:
        """Get or create the lock guarding the first load of a collection"""
        with self._collections_lock:
            if collection_name not in self._open_locks:
                self._open_locks[collection_name] = threading.Lock()
            return self._open_locks[collection_name]

    def collection(self, name: str) -> CollectionStore:
        """Return the cached store for a collection, loading it from disk on first use"""
        self._validate_name(name)

        store = self._collections.get(name)
        if store is not None:
            return store

        with self._get_open_lock(name):
            store = self._collections.get(name)
            if store is None:
                store = CollectionStore.open(name, self._get_collection_path(name))
                with self._collections_lock:
                    self._collections[name] = store
                logger.debug(f"Opened collection '{name}' with {len(store)} documents")
        return store

    def close(self) -> None:
        """
        Release cached collections; data on disk is kept.

        Mutations already queued on a released collection finish before close()
        returns. A caller still holding a CollectionStore from before the close
        is not tracked: writes through it race with a store reopened for the
        same file, so close() is meant for when no other thread is writing.
        """
        with self._collections_lock:
            stores = list(self._collections.values())

        # Let queued mutations persist before their store is released
        for store in stores:
            with store.slot:
                pass

        with self._collections_lock:
            released = len(self._collections)
            self._collections = {}
            self._open_locks = {}
        logger.info(f"Closed JSON storage at {self.storage_dir} ({released} cached collections released)")

    def flush(self, collection_name: str) -> None:
        """Rewrite a cached collection's file, e.g. after a failed write"""
        store = self.collection(collection_name)
        with store.slot:
            store.persist()

    def list_collections(self) -> List[str]:
        names = {name for name in self._collections}
        for path in self.storage_dir.glob(f"*{FILE_EXTENSION}"):
            if not path.name.startswith(".tmp_"):
                names.add(path.name[:-len(FILE_EXTENSION)])
        return sorted(names)

    def drop_collection(self, collection_name: str) -> bool:
        """Delete a collection's file and cache entry. Returns True if anything existed."""
        self._validate_name(collection_name)
        path = self._get_collection_path(collection_name)

        with self._collections_lock:
            store = self._collections.pop(collection_name, None)

        existed = store is not None
        if store is not None:
            # Let queued mutations finish before the file goes away
            store.slot.acquire()
        try:
            if os.path.exists(path):
                os.remove(path)
                existed = True
        except OSError as e:
            logger.error(f"Failed to remove {path}: {e}")
            raise StorageIOError(f"Failed to drop collection '{collection_name}': {e}", path) from e
        finally:
            if store is not None:
                store.slot.release()

        if existed:
            logger.info(f"Dropped collection '{collection_name}'")
        return existed

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _id_set(documents: Iterable[Document]) -> Set[Any]:
        ids = set()
        for doc in documents:
            try:
                ids.add(normalize_id(doc.get(ID_FIELD)))
            except TypeError:
                continue
        return ids

    @staticmethod
    def _index_of(documents: List[Document], doc_id: Any) -> Optional[int]:
        for index, doc in enumerate(documents):
            if values_equal(doc.get(ID_FIELD), doc_id):
                return index
        return None

    @staticmethod
    def _new_document(collection_name: str, doc: Document, taken: Set[Any], now: datetime) -> Document:
        """Copy of doc with _id and both timestamps set; registers the id in `taken`"""
        if not isinstance(doc, dict):
            raise InvalidArgument(f"Documents must be dicts, got {type(doc).__name__}")

        fields = normalize_document(doc)
        doc_id = normalize_id(fields.pop(ID_FIELD, None))
        fields.pop(CREATED_AT, None)
        fields.pop(UPDATED_AT, None)

        if doc_id is None:
            doc_id = generate_id(taken)
        else:
            try:
                duplicate = doc_id in taken
            except TypeError:
                raise InvalidArgument(f"_id must be a hashable value, got {type(doc_id).__name__}")
            if duplicate:
                raise DuplicateKeyError(collection_name, doc_id)

        taken.add(doc_id)
        return {ID_FIELD: doc_id, **fields, CREATED_AT: now, UPDATED_AT: now}

    @staticmethod
    def _merge(existing: Document, patch: Document, now: datetime) -> Document:
        """New document with patch fields (already normalized) over existing ones and a refreshed updatedAt"""
        merged = {**existing, **copy.deepcopy(patch)}

        # updatedAt never moves backwards or below createdAt, even if the clock does
        updated_at = now
        for field in (CREATED_AT, UPDATED_AT):
            previous = existing.get(field)
            if isinstance(previous, datetime) and previous.tzinfo is not None and previous > updated_at:
                updated_at = previous
        merged[UPDATED_AT] = updated_at
        return merged

    @staticmethod
    def _check_pagination(limit: int, skip: int) -> None:
        for name, value in (("limit", limit), ("skip", skip)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidArgument(f"{name} must be a non-negative integer, got {value!r}")

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_one(self, collection_name: str, doc: Document) -> Dict[str, Any]:
        """Insert a document, generating _id when absent"""
        store = self.collection(collection_name)

        with store.slot:
            new_doc = self._new_document(collection_name, doc, self._id_set(store.documents), _now())
            store.documents.append(new_doc)
            store.persist()

        return create_one_result(new_doc[ID_FIELD])

    def create_many(self, collection_name: str, docs: List[Document]) -> Dict[str, Any]:
        """Insert documents in order with a single write; nothing is inserted if any is rejected"""
        store = self.collection(collection_name)
        docs = list(docs)
        if not docs:
            return create_many_result([])

        with store.slot:
            taken = self._id_set(store.documents)
            now = _now()
            new_docs = [self._new_document(collection_name, doc, taken, now) for doc in docs]
            store.documents.extend(new_docs)
            store.persist()

        logger.debug(f"Inserted {len(new_docs)} documents into '{collection_name}'")
        return create_many_result([doc[ID_FIELD] for doc in new_docs])

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def find_one(self, collection_name: str, query: Optional[Query] = None,
                 sort: Optional[SortSpec] = None) -> Optional[Document]:
        """Find the first matching document, by default the one with the highest _id"""
        store = self.collection(collection_name)
        results = [doc for doc in store.snapshot() if matches(doc, query)]
        if not results:
            return None

        results = sort_documents(results, DEFAULT_SORT if sort is None else sort)
        return copy.deepcopy(results[0])

    def find_by_id(self, collection_name: str, doc_id: Any) -> Optional[Document]:
        store = self.collection(collection_name)
        doc_id = normalize_id(doc_id)
        for doc in store.snapshot():
            if values_equal(doc.get(ID_FIELD), doc_id):
                return copy.deepcopy(doc)
        return None

    def find(self, collection_name: str, query: Optional[Query] = None,
             limit: int = 0, skip: int = 0, sort: Optional[SortSpec] = None) -> List[Document]:
        """
        Find all matching documents.

        Order is filter, then sort (collection order when no sort is given),
        then skip, then limit. A limit of 0 means no limit.
        """
        self._check_pagination(limit, skip)
        store = self.collection(collection_name)

        results = [doc for doc in store.snapshot() if matches(doc, query)]
        if sort:
            results = sort_documents(results, sort)
        if skip:
            results = results[skip:]
        if limit:
            results = results[:limit]

        return copy.deepcopy(results)

    def count(self, collection_name: str, query: Optional[Query] = None) -> int:
        store = self.collection(collection_name)
        documents = store.snapshot()
        if not query:
            return len(documents)
        return sum(1 for doc in documents if matches(doc, query))

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update_one(self, collection_name: str, doc: Document) -> Dict[str, int]:
        """
        Merge doc's fields into the document whose _id matches doc["_id"] (or doc["id"]).

        Raises:
            InvalidArgument: neither _id nor id is given
        """
        doc_id, patch = split_document_id(doc)
        if doc_id is None:
            raise InvalidArgument("Either _id or id must be provided")
        doc_id = normalize_id(doc_id)
        patch = normalize_document(strip_engine_fields(patch))

        store = self.collection(collection_name)
        with store.slot:
            index = self._index_of(store.documents, doc_id)
            if index is None:
                return update_result(0, 0)

            store.documents[index] = self._merge(store.documents[index], patch, _now())
            store.persist()

        return update_result(1, 1)

    def update_many(self, collection_name: str, query: Optional[Query], patch: Document) -> Dict[str, int]:
        """Merge patch into every matching document"""
        patch = normalize_document(strip_engine_fields(patch))
        store = self.collection(collection_name)

        modified_count = 0
        with store.slot:
            now = _now()
            for index, doc in enumerate(store.documents):
                if matches(doc, query):
                    store.documents[index] = self._merge(doc, patch, now)
                    modified_count += 1

            if modified_count > 0:
                store.persist()

        return update_result(modified_count, modified_count)

    def upsert_one(self, collection_name: str, doc: Document, key: Optional[str] = None) -> Dict[str, Any]:
        """
        Update the document matching doc's _id, else the one matching its key field, else insert.

        Exactly one branch runs: an update returns matched/modified counts of 1,
        an insert returns upserted_id and upserted_count of 1.
        """
        if not isinstance(doc, dict):
            raise InvalidArgument(f"Documents must be dicts, got {type(doc).__name__}")

        fields = normalize_document(doc)
        key_field = resolve_upsert_key(fields, key)
        doc_id = normalize_id(fields.get(ID_FIELD))

        store = self.collection(collection_name)
        with store.slot:
            now = _now()
            index = None

            if doc_id is not None:
                index = self._index_of(store.documents, doc_id)

            if index is None and key_field is not None:
                key_value = fields[key_field]
                index = next(
                    (i for i, existing in enumerate(store.documents)
                     if values_equal(get_field(existing, key_field), key_value)),
                    None,
                )

            if index is not None:
                store.documents[index] = self._merge(store.documents[index], strip_engine_fields(fields), now)
                store.persist()
                return update_result(1, 1)

            new_doc = self._new_document(collection_name, fields, self._id_set(store.documents), now)
            store.documents.append(new_doc)
            store.persist()

        logger.debug(f"Upsert inserted {new_doc[ID_FIELD]} into '{collection_name}'")
        return upsert_insert_result(new_doc[ID_FIELD])

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete_one(self, collection_name: str, doc_id: Any) -> Dict[str, int]:
        """Delete the document with the given _id"""
        store = self.collection(collection_name)
        doc_id = normalize_id(doc_id)

        with store.slot:
            index = self._index_of(store.documents, doc_id)
            if index is None:
                return delete_result(0)

            del store.documents[index]
            store.persist()

        return delete_result(1)

    def delete_many(self, collection_name: str, query: Optional[Query]) -> Dict[str, int]:
        """Delete all matching documents"""
        store = self.collection(collection_name)

        with store.slot:
            kept = [doc for doc in store.documents if not matches(doc, query)]
            deleted_count = len(store.documents) - len(kept)

            if deleted_count > 0:
                store.documents = kept
                store.persist()

        return delete_result(deleted_count)


# Global storage instance
_storage_instance: Optional[JSONStorage] = None
_storage_lock = threading.Lock()


def get_storage() -> JSONStorage:
    """Get or create global JSON storage instance"""
    global _storage_instance

    with _storage_lock:
        if _storage_instance is None:
            from ...config import Config
            _storage_instance = JSONStorage(Config.storage_dir())

    return _storage_instance
