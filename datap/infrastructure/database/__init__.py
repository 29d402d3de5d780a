"""Database infrastructure modules"""

from .mongodb import MongoConnector

__all__ = ['MongoConnector']
