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

# datap/infrastructure/database/mongodb.py
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import BulkWriteError, PyMongoError
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError

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
from ...core.errors import DuplicateKeyError, InvalidArgument
from ...core.ids import normalize_id
from ...core.sorting import SortSpec, normalize_sort
from ...log_creator import get_file_logger

logger = get_file_logger()

_DUPLICATE_KEY_CODE = 11000
_ID_OPERATORS = ("$eq", "$ne")
_ID_LIST_OPERATORS = ("$in", "$nin")


def _to_object_id(value: Any) -> Any:
    """Hex string ids become ObjectIds for server-side lookups"""
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def _public_doc(doc: Optional[Document]) -> Optional[Document]:
    """Expose ObjectId _id values as hex strings, like the embedded engine stores them"""
    if doc is not None and isinstance(doc.get(ID_FIELD), ObjectId):
        doc[ID_FIELD] = str(doc[ID_FIELD])
    return doc


def _prepare_query(query: Optional[Query]) -> Query:
    if not query:
        return {}
    prepared = dict(query)
    condition = prepared.get(ID_FIELD)
    if condition is None:
        return prepared

    if isinstance(condition, dict):
        condition = dict(condition)
        for op in _ID_OPERATORS:
            if op in condition:
                condition[op] = _to_object_id(condition[op])
        for op in _ID_LIST_OPERATORS:
            if op in condition:
                condition[op] = [_to_object_id(v) for v in condition[op]]
        prepared[ID_FIELD] = condition
    else:
        prepared[ID_FIELD] = _to_object_id(condition)
    return prepared


def _sort_pairs(sort: Optional[SortSpec]) -> Optional[List[Tuple[str, int]]]:
    if not sort:
        return None
    return normalize_sort(sort)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MongoConnector(DatabaseConnector):
    """
    Thin MongoDB pass-through with the same interface as the embedded JSON storage.
    The client is created lazily on first use.
    """

    def __init__(self, url: str, db_name: str, options: Optional[Dict[str, Any]] = None):
        self._url = url
        self._db_name = db_name
        self._options: Dict[str, Any] = dict(options or {})
        self._client: Optional[MongoClient] = None
        self._db: Optional[Database] = None
        self._lock = threading.RLock()

    def connect(self, url: Optional[str] = None, db_name: Optional[str] = None,
                options: Optional[Dict[str, Any]] = None) -> None:
        """Create the MongoDB client, replacing any existing one"""
        with self._lock:
            if url is not None:
                self._url = url
            if db_name is not None:
                self._db_name = db_name
            if options is not None:
                self._options = dict(options)

            if self._client is not None:
                self._client.close()
                self._client = None
                self._db = None

            logger.info("Creating new MongoDB connection")
            try:
                client = MongoClient(self._url, **self._options)
                # Test Connection
                client.admin.command('ping')
            except PyMongoError as e:
                logger.error(f"Failed to create MongoDB connection: {e}")
                raise

            self._client = client
            self._db = client[self._db_name]
            logger.info(f"MongoDB connection established (database: {self._db_name})")

    def db(self, db_name: Optional[str] = None) -> Database:
        """Get database instance, connecting if needed"""
        with self._lock:
            if self._client is None:
                self.connect()
            if db_name and db_name != self._db_name:
                self._db = self._client[db_name]
                self._db_name = db_name
            return self._db

    def collection(self, name: str) -> Collection:
        return self.db()[name]

    def close(self) -> None:
        with self._lock:
            if self._client is not None:
                try:
                    self._client.close()
                    logger.info("MongoDB connection closed")
                finally:
                    self._client = None
                    self._db = None

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_one(self, collection_name: str, doc: Document) -> Dict[str, Any]:
        now = _now()
        payload = {**strip_engine_fields(doc), CREATED_AT: now, UPDATED_AT: now}
        if doc.get(ID_FIELD) is not None:
            payload[ID_FIELD] = _to_object_id(normalize_id(doc[ID_FIELD]))

        try:
            result = self.collection(collection_name).insert_one(payload)
        except MongoDuplicateKeyError as e:
            logger.error(f"Duplicate _id inserting into '{collection_name}': {e}")
            raise DuplicateKeyError(collection_name, normalize_id(payload.get(ID_FIELD))) from e

        return create_one_result(normalize_id(result.inserted_id))

    def create_many(self, collection_name: str, docs: List[Document]) -> Dict[str, Any]:
        docs = list(docs)
        if not docs:
            return create_many_result([])

        now = _now()
        payloads = []
        for doc in docs:
            payload = {**strip_engine_fields(doc), CREATED_AT: now, UPDATED_AT: now}
            if doc.get(ID_FIELD) is not None:
                payload[ID_FIELD] = _to_object_id(normalize_id(doc[ID_FIELD]))
            payloads.append(payload)

        try:
            result = self.collection(collection_name).insert_many(payloads)
        except BulkWriteError as e:
            errors = e.details.get("writeErrors", [])
            duplicate = next((err for err in errors if err.get("code") == _DUPLICATE_KEY_CODE), None)
            logger.error(f"Bulk insert into '{collection_name}' failed: {e}")
            if duplicate is not None:
                raise DuplicateKeyError(collection_name, normalize_id(duplicate.get("op", {}).get(ID_FIELD))) from e
            raise

        return create_many_result([normalize_id(i) for i in result.inserted_ids])

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def find_one(self, collection_name: str, query: Optional[Query] = None,
                 sort: Optional[SortSpec] = None) -> Optional[Document]:
        doc = self.collection(collection_name).find_one(
            _prepare_query(query),
            sort=_sort_pairs(DEFAULT_SORT if sort is None else sort),
        )
        return _public_doc(doc)

    def find_by_id(self, collection_name: str, doc_id: Any) -> Optional[Document]:
        doc = self.collection(collection_name).find_one({ID_FIELD: _to_object_id(normalize_id(doc_id))})
        return _public_doc(doc)

    def find(self, collection_name: str, query: Optional[Query] = None,
             limit: int = 0, skip: int = 0, sort: Optional[SortSpec] = None) -> List[Document]:
        for name, value in (("limit", limit), ("skip", skip)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidArgument(f"{name} must be a non-negative integer, got {value!r}")

        cursor = self.collection(collection_name).find(_prepare_query(query)).skip(skip).limit(limit)
        pairs = _sort_pairs(sort)
        if pairs:
            cursor = cursor.sort(pairs)

        return [_public_doc(doc) for doc in cursor]

    def count(self, collection_name: str, query: Optional[Query] = None) -> int:
        return self.collection(collection_name).count_documents(_prepare_query(query))

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update_one(self, collection_name: str, doc: Document) -> Dict[str, int]:
        doc_id, patch = split_document_id(doc)
        if doc_id is None:
            raise InvalidArgument("Either _id or id must be provided")

        result = self.collection(collection_name).update_one(
            {ID_FIELD: _to_object_id(normalize_id(doc_id))},
            {"$set": {**strip_engine_fields(patch), UPDATED_AT: _now()}},
        )
        return update_result(result.matched_count, result.modified_count)

    def update_many(self, collection_name: str, query: Optional[Query], patch: Document) -> Dict[str, int]:
        result = self.collection(collection_name).update_many(
            _prepare_query(query),
            {"$set": {**strip_engine_fields(patch), UPDATED_AT: _now()}},
        )
        return update_result(result.matched_count, result.modified_count)

    def upsert_one(self, collection_name: str, doc: Document, key: Optional[str] = None) -> Dict[str, Any]:
        """Update by _id, else by key field (server-side upsert), else insert"""
        fields = dict(doc)
        key_field = resolve_upsert_key(fields, key)
        doc_id = normalize_id(fields.get(ID_FIELD))
        collection = self.collection(collection_name)
        now = _now()
        patch = {**strip_engine_fields(fields), UPDATED_AT: now}

        if doc_id is not None:
            result = collection.update_one({ID_FIELD: _to_object_id(doc_id)}, {"$set": patch})
            if result.matched_count:
                return update_result(result.matched_count, result.modified_count)

        if key_field is not None:
            on_insert: Dict[str, Any] = {CREATED_AT: now}
            if doc_id is not None:
                on_insert[ID_FIELD] = _to_object_id(doc_id)
            result = collection.update_one(
                {key_field: fields[key_field]},
                {"$set": patch, "$setOnInsert": on_insert},
                upsert=True,
            )
            if result.upserted_id is not None:
                return upsert_insert_result(normalize_id(result.upserted_id))
            return update_result(result.matched_count, result.modified_count)

        inserted = self.create_one(collection_name, fields)
        return upsert_insert_result(inserted["inserted_id"])

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete_one(self, collection_name: str, doc_id: Any) -> Dict[str, int]:
        result = self.collection(collection_name).delete_one({ID_FIELD: _to_object_id(normalize_id(doc_id))})
        return delete_result(result.deleted_count)

    def delete_many(self, collection_name: str, query: Optional[Query]) -> Dict[str, int]:
        result = self.collection(collection_name).delete_many(_prepare_query(query))
        return delete_result(result.deleted_count)
