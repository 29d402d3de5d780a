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

# datap/core/sorting.py
"""
Typed comparison and multi-field sorting for schemaless documents.

Documents in one collection may hold different types under the same field, so
`compare` defines a total order across types:

    None < number < string < object/array < boolean < anything else

Datetimes compare by instant (epoch milliseconds) and therefore rank with
numbers. Two ObjectId hex strings compare lexicographically.
"""
import functools
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple, Union

from bson import ObjectId, json_util

from .errors import InvalidArgument
from .ids import is_object_id
from .query import get_field

SortSpec = Union[Mapping[str, Any], Sequence[Tuple[str, Any]]]

ASCENDING = 1
DESCENDING = -1

_TYPE_PRECEDENCE = {
    "number": 1,
    "string": 2,
    "object": 3,
    "boolean": 4,
}
_UNRANKED = 99

_DIRECTIONS = {
    1: ASCENDING,
    -1: DESCENDING,
    "asc": ASCENDING,
    "ascending": ASCENDING,
    "desc": DESCENDING,
    "descending": DESCENDING,
}


def _kind(value: Any) -> str:
    # bool before int: True is an int in Python but ranks as a boolean here
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (dict, list, tuple)):
        return "object"
    return type(value).__name__


def _sign(diff: Any) -> int:
    return (diff > 0) - (diff < 0)


def _canonical(value: Any) -> str:
    try:
        return json_util.dumps(value, sort_keys=True)
    except (TypeError, ValueError):
        return repr(value)


def _comparable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.timestamp() * 1000
    if isinstance(value, ObjectId):
        return str(value)
    return value


def compare(a: Any, b: Any) -> int:
    """Compare two field values, returning -1, 0 or 1"""
    if a is None:
        return 0 if b is None else -1
    if b is None:
        return 1

    a, b = _comparable(a), _comparable(b)

    if isinstance(a, str) and isinstance(b, str) and is_object_id(a) and is_object_id(b):
        return (a > b) - (a < b)

    kind_a, kind_b = _kind(a), _kind(b)

    if kind_a == kind_b:
        if kind_a == "number":
            return _sign(a - b)
        if kind_a in ("string", "boolean"):
            return (a > b) - (a < b)
        if kind_a == "object":
            left, right = _canonical(a), _canonical(b)
            return (left > right) - (left < right)
        try:
            return (a > b) - (a < b)
        except TypeError:
            return 0

    rank_a = _TYPE_PRECEDENCE.get(kind_a, _UNRANKED)
    rank_b = _TYPE_PRECEDENCE.get(kind_b, _UNRANKED)
    return _sign(rank_a - rank_b)


def normalize_sort(sort: SortSpec) -> List[Tuple[str, int]]:
    """Turn a {field: direction} mapping or [(field, direction)] list into ordered pairs"""
    items: Iterable[Tuple[str, Any]]
    if isinstance(sort, Mapping):
        items = sort.items()
    else:
        items = sort

    fields = []
    for field, direction in items:
        key = direction.lower() if isinstance(direction, str) else direction
        if isinstance(key, bool) or key not in _DIRECTIONS:
            raise InvalidArgument(f"Invalid sort direction {direction!r} for field '{field}'")
        fields.append((field, _DIRECTIONS[key]))
    return fields


def sort_documents(documents: Iterable[Dict[str, Any]], sort: SortSpec) -> List[Dict[str, Any]]:
    """
    Return documents ordered by the sort specification.

    The first field is primary; later fields only break ties. Documents equal on
    every field keep their relative order (Python's sort is stable).
    """
    fields = normalize_sort(sort)
    docs = list(documents)
    if not fields:
        return docs

    def compare_docs(left: Dict[str, Any], right: Dict[str, Any]) -> int:
        for field, direction in fields:
            result = compare(get_field(left, field), get_field(right, field))
            if result != 0:
                return result * direction
        return 0

    return sorted(docs, key=functools.cmp_to_key(compare_docs))
