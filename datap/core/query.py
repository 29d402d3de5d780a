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

# datap/core/query.py
"""
Predicate matching for MongoDB-style queries over plain dict documents.

A query maps field names to either a literal (equality) or an operator object
such as {"$gte": 30, "$lt": 40}. All fields must hold for a document to match.
"""
import operator
import re
from typing import Any, Callable, Dict, Optional

from .errors import InvalidArgument
from .ids import normalize_id

_REGEX_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}

_ORDERING_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "$gt": operator.gt,
    "$gte": operator.ge,
    "$lt": operator.lt,
    "$lte": operator.le,
}


def get_field(doc: Dict[str, Any], key: str) -> Any:
    """Get value from document, falling back to dot notation for nested fields"""
    if key in doc:
        return doc[key]
    if "." not in key:
        return None

    value: Any = doc
    for k in key.split("."):
        if isinstance(value, dict):
            value = value.get(k)
        else:
            return None

        if value is None:
            return None

    return value


def is_operator_object(condition: Any) -> bool:
    """A dict condition with at least one $-prefixed key is read as operators"""
    return isinstance(condition, dict) and any(
        isinstance(k, str) and k.startswith("$") for k in condition
    )


def values_equal(left: Any, right: Any) -> bool:
    """Deep equality that keeps booleans apart from 0/1"""
    left, right = normalize_id(left), normalize_id(right)
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    return left == right


def _ordered(op: Callable[[Any, Any], bool], doc_value: Any, op_value: Any) -> bool:
    if doc_value is None or op_value is None:
        return False
    try:
        return bool(op(doc_value, op_value))
    except TypeError:
        # Incomparable types (str vs int, naive vs aware datetime) never match
        return False


def _member(doc_value: Any, candidates: Any, op: str) -> bool:
    if not isinstance(candidates, (list, tuple, set, frozenset)):
        raise InvalidArgument(f"{op} needs a list of values, got {type(candidates).__name__}")
    return any(values_equal(doc_value, candidate) for candidate in candidates)


def compile_regex(pattern: Any, options: Optional[str] = None) -> "re.Pattern[str]":
    """Compile a $regex pattern with MongoDB-style $options letters"""
    if isinstance(pattern, re.Pattern):
        return pattern

    flags = 0
    for letter in options or "":
        flags |= _REGEX_FLAGS.get(letter, 0)

    try:
        return re.compile(str(pattern), flags)
    except re.error as e:
        raise InvalidArgument(f"Invalid $regex pattern {pattern!r}: {e}") from e


def _regex_matches(doc_value: Any, pattern: Any, options: Optional[str]) -> bool:
    if doc_value is None:
        return False
    if isinstance(doc_value, bool):
        text = "true" if doc_value else "false"
    else:
        text = str(normalize_id(doc_value))
    return compile_regex(pattern, options).search(text) is not None


def _matches_operators(doc_value: Any, condition: Dict[str, Any]) -> bool:
    for op, op_value in condition.items():
        if op == "$eq":
            if not values_equal(doc_value, op_value):
                return False
        elif op == "$ne":
            if values_equal(doc_value, op_value):
                return False
        elif op in _ORDERING_OPERATORS:
            if not _ordered(_ORDERING_OPERATORS[op], doc_value, op_value):
                return False
        elif op == "$in":
            if not _member(doc_value, op_value, op):
                return False
        elif op == "$nin":
            if _member(doc_value, op_value, op):
                return False
        elif op == "$regex":
            if not _regex_matches(doc_value, op_value, condition.get("$options")):
                return False
        # $options is read alongside $regex; other unknown operators are ignored

    return True


def matches(doc: Dict[str, Any], query: Optional[Dict[str, Any]]) -> bool:
    """Check if document matches every field condition in the query"""
    if not query:
        return True

    for key, condition in query.items():
        doc_value = get_field(doc, key)

        if is_operator_object(condition):
            if not _matches_operators(doc_value, condition):
                return False
        elif not values_equal(doc_value, condition):
            return False

    return True
