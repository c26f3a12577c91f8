"""Policy persistence layer.

Key Components:
- Database: single-connection async SQLite engine
- Models: the ``policies`` table and its ORM mapping
- Store: durable, queryable domain → decision table

Usage:
    from cookie_permissions.persistence import PolicyStore

    store = await PolicyStore.open(config.database_path)
    try:
        await store.upsert("example.com", Decision.ACCEPT)
    finally:
        await store.close()
"""

from .database import Base, DatabaseConfig, sqlite_url
from .models import Policy, policies_table
from .store import PolicyStore

__all__ = [
    "Base",
    "DatabaseConfig",
    "sqlite_url",
    "Policy",
    "policies_table",
    "PolicyStore",
]
