"""Configuration for datap connectors"""

from .settings import Config

__all__ = ['Config']
