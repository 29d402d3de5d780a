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

"""MongoDB-like document store with interchangeable MongoDB and JSON-file backends"""

__version__ = "1.0.0"

from .core.connector import DatabaseConnector
from .core.errors import DatapError, DuplicateKeyError, InvalidArgument, StorageIOError
from .infrastructure.database import MongoConnector
from .infrastructure.storage import JSONStorage
from .manager import Datap, get_connector, reset_connector

__all__ = [
    'DatabaseConnector',
    'DatapError',
    'DuplicateKeyError',
    'InvalidArgument',
    'StorageIOError',
    'MongoConnector',
    'JSONStorage',
    'Datap',
    'get_connector',
    'reset_connector'
]
