"""Backend-independent pieces: errors, ids, query matching, sorting and the connector interface"""

from .connector import DatabaseConnector
from .errors import DatapError, DuplicateKeyError, InvalidArgument, StorageIOError
from .query import matches
from .sorting import compare, sort_documents

__all__ = [
    'DatabaseConnector',
    'DatapError',
    'DuplicateKeyError',
    'InvalidArgument',
    'StorageIOError',
    'matches',
    'compare',
    'sort_documents'
]
