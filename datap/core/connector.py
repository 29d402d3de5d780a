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

# datap/core/connector.py
"""
Backend-agnostic document store interface.

Both the embedded JSON engine and the MongoDB connector implement this class
with the same method names, parameter order and result shapes, so callers can
swap backends through configuration alone.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .errors import InvalidArgument
from .sorting import SortSpec

Document = Dict[str, Any]
Query = Dict[str, Any]

ID_FIELD = "_id"
CREATED_AT = "createdAt"
UPDATED_AT = "updatedAt"

# Upsert documents may name their match field under this key
UPSERT_KEY_FIELD = "key"

# Fields owned by the store; patches never overwrite them
ENGINE_FIELDS = (ID_FIELD, CREATED_AT, UPDATED_AT)

DEFAULT_SORT: Dict[str, int] = {ID_FIELD: -1}


def create_one_result(inserted_id: Any) -> Dict[str, Any]:
    return {"inserted_id": inserted_id}


def create_many_result(inserted_ids: List[Any]) -> Dict[str, Any]:
    return {"inserted_count": len(inserted_ids), "inserted_ids": inserted_ids}


def update_result(matched_count: int, modified_count: int) -> Dict[str, int]:
    return {"matched_count": matched_count, "modified_count": modified_count}


def upsert_insert_result(upserted_id: Any) -> Dict[str, Any]:
    return {
        "upserted_id": upserted_id,
        "upserted_count": 1,
        "matched_count": 0,
        "modified_count": 0,
    }


def delete_result(deleted_count: int) -> Dict[str, int]:
    return {"deleted_count": deleted_count}


def split_document_id(doc: Document) -> "tuple[Any, Document]":
    """Pull the target id out of an update document (`_id` wins over `id`)"""
    rest = dict(doc)
    doc_id = rest.pop(ID_FIELD, None)
    alt_id = rest.pop("id", None)
    if doc_id is None:
        doc_id = alt_id
    return doc_id, rest


def strip_engine_fields(patch: Document) -> Document:
    """Drop _id and timestamp fields from a patch before it is merged"""
    return {k: v for k, v in patch.items() if k not in ENGINE_FIELDS}


def resolve_upsert_key(fields: Document, key: Optional[str] = None) -> Optional[str]:
    """
    Work out which field an upsert matches on besides _id.

    An explicit `key` must name a field with a value. A "key" entry in the
    document is only a directive when it names another field present in the
    document; it is then removed from `fields` so it is not stored.

    Raises:
        InvalidArgument: `key` names a field that is missing or None
    """
    if key is not None:
        if fields.get(key) is None:
            raise InvalidArgument(f"Upsert key field '{key}' is missing from the document")
        return key

    designated = fields.get(UPSERT_KEY_FIELD)
    if (isinstance(designated, str) and designated != UPSERT_KEY_FIELD
            and fields.get(designated) is not None):
        del fields[UPSERT_KEY_FIELD]
        return designated
    return None


class DatabaseConnector(ABC):
    """MongoDB-like CRUD contract shared by every backend"""

    @abstractmethod
    def connect(self, *args: Any, **kwargs: Any) -> None:
        ...

    @abstractmethod
    def collection(self, name: str) -> Any:
        ...

    @abstractmethod
    def create_one(self, collection_name: str, doc: Document) -> Dict[str, Any]:
        ...

    @abstractmethod
    def create_many(self, collection_name: str, docs: List[Document]) -> Dict[str, Any]:
        ...

    @abstractmethod
    def find_one(self, collection_name: str, query: Optional[Query] = None,
                 sort: Optional[SortSpec] = None) -> Optional[Document]:
        ...

    @abstractmethod
    def find_by_id(self, collection_name: str, doc_id: Any) -> Optional[Document]:
        ...

    @abstractmethod
    def find(self, collection_name: str, query: Optional[Query] = None,
             limit: int = 0, skip: int = 0, sort: Optional[SortSpec] = None) -> List[Document]:
        ...

    @abstractmethod
    def update_one(self, collection_name: str, doc: Document) -> Dict[str, int]:
        ...

    @abstractmethod
    def update_many(self, collection_name: str, query: Optional[Query], patch: Document) -> Dict[str, int]:
        ...

    @abstractmethod
    def upsert_one(self, collection_name: str, doc: Document, key: Optional[str] = None) -> Dict[str, Any]:
        ...

    @abstractmethod
    def delete_one(self, collection_name: str, doc_id: Any) -> Dict[str, int]:
        ...

    @abstractmethod
    def delete_many(self, collection_name: str, query: Optional[Query]) -> Dict[str, int]:
        ...

    @abstractmethod
    def count(self, collection_name: str, query: Optional[Query] = None) -> int:
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
