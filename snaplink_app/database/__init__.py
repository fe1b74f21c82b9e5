"""
Database module: engine/session handle and declarative base.
"""

from .connection import Base, Database

__all__ = ["Base", "Database"]
