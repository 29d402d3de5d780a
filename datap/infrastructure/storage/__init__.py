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

"""Storage module for JSON-file document persistence"""

from .collection_store import CollectionStore, MutationSlot
from .json_storage import JSONStorage, get_storage

__all__ = [
    'CollectionStore',
    'MutationSlot',
    'JSONStorage',
    'get_storage'
]
