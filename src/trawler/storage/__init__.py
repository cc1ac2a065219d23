"""
Storage Module - Persistent hosts, pages and structured data.

Components:
-----------
- HostStore, PageStore, StructuredDataStore: interfaces used by the core
- Database: SQLite connection and schema owner
- SQLiteHostStore, SQLitePageStore, SQLiteStructuredDataStore: implementations
- StoreError: raised when the database cannot be used

Usage:
------
from trawler.storage import Database, StorageConfig, SQLitePageStore

db = Database(StorageConfig(database_path='data/trawler.db'))
pages = SQLitePageStore(db)
"""

from .base import HostStore, PageStore, StoreError, StructuredDataStore
from .sqlite_store import (
    Database,
    SQLiteHostStore,
    SQLitePageStore,
    SQLiteStructuredDataStore,
    StorageConfig,
)

__all__ = [
    'HostStore',
    'PageStore',
    'StructuredDataStore',
    'StoreError',
    'Database',
    'StorageConfig',
    'SQLiteHostStore',
    'SQLitePageStore',
    'SQLiteStructuredDataStore',
]
