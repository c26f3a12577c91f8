"""Durable per-domain cookie policy store.

The store owns the only persistent state of the cookie permission manager:
one decision per domain pattern in the ``policies`` table. Opening the store
is all-or-nothing and raises a ``FatalStoreError`` subclass; once open, a
failing statement is logged and the operation becomes a no-op, so traffic
keeps flowing on the last known state.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, or_, select, text
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import SchemaInitError, StoreOpenError
from ..models import Decision
from ..utils.domain_matcher import LIKE_ESCAPE, CandidateQuery
from .database import Base, DatabaseConfig
from .models import Policy

logger = logging.getLogger(__name__)


class PolicyStore:
    """Data access object for stored cookie policies."""

    def __init__(self, database: DatabaseConfig, path: Optional[Path] = None):
        """Wrap an already initialized database.

        Use ``PolicyStore.open`` to create the file and schema.
        """
        self.database = database
        self.path = path

    @classmethod
    async def open(
        cls,
        path: Path,
        journal_mode: str = "TRUNCATE",
        echo: bool = False
    ) -> "PolicyStore":
        """Open the policy database, creating folder, file and schema if missing.

        Args:
            path: Database file path
            journal_mode: SQLite journal mode to apply
            echo: Enable SQLAlchemy statement logging

        Returns:
            Opened policy store.

        Raises:
            StoreOpenError: If the folder cannot be created or the file opened
            SchemaInitError: If the table structure cannot be set up
        """
        path = Path(path)

        try:
            path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Could not create configuration folder {path.parent}: {e}")
            raise StoreOpenError("Could not create configuration folder.", path=str(path.parent)) from e

        database = DatabaseConfig.for_file(path, echo=echo)

        try:
            async with database.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Could not open database {path}: {e}")
            await database.close()
            raise StoreOpenError("Could not open database.", path=str(path)) from e

        try:
            async with database.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            async with database.engine.connect() as conn:
                await conn.exec_driver_sql(f"PRAGMA journal_mode={journal_mode}")
        except (SQLAlchemyError, OSError) as e:
            logger.critical(f"Failed to execute database statement: {e}")
            await database.close()
            raise SchemaInitError("Could not set up database structure.", path=str(path)) from e

        logger.info(f"Opened cookie policy database {path}")
        return cls(database, path=path)

    @property
    def is_open(self) -> bool:
        return self.database.is_open

    async def close(self) -> None:
        """Release the database connection. Safe to call more than once."""
        if self.database.is_open:
            await self.database.close()
            logger.debug(f"Closed cookie policy database {self.path}")

    def _check_open(self, operation: str) -> bool:
        if not self.database.is_open:
            logger.warning(f"Policy store is not open, skipping {operation}")
            return False
        return True

    # ============= Lookups =============

    async def lookup_candidates(self, query: CandidateQuery) -> List[Tuple[str, Decision]]:
        """Find stored patterns that could textually match a cookie domain.

        Args:
            query: LIKE pattern and wildcard patterns derived from the domain

        Returns:
            (pattern, decision) pairs ordered by pattern, descending.
        """
        if not self._check_open("lookup"):
            return []

        condition = Policy.domain.like(query.like_pattern, escape=LIKE_ESCAPE)
        if query.wildcard_patterns:
            condition = or_(condition, func.lower(Policy.domain).in_(query.wildcard_patterns))

        try:
            async with self.database.session() as session:
                result = await session.execute(
                    select(Policy.domain, Policy.value)
                    .where(condition)
                    .order_by(Policy.domain.desc())
                )
                return [(row.domain, Decision.from_code(row.value)) for row in result.all()]
        except SQLAlchemyError as e:
            logger.warning(f"SQL fails: {e}")
            return []

    async def get(self, domain: str) -> Optional[Decision]:
        """Get the decision stored for exactly ``domain``."""
        if not self._check_open("get"):
            return None

        try:
            async with self.database.session() as session:
                result = await session.execute(
                    select(Policy.value).where(Policy.domain == domain)
                )
                value = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.warning(f"SQL fails: {e}")
            return None

        return None if value is None else Decision.from_code(value)

    async def list_all(self) -> List[Tuple[str, Decision]]:
        """List every stored policy ordered by domain."""
        if not self._check_open("listing"):
            return []

        try:
            async with self.database.session() as session:
                result = await session.execute(
                    select(Policy.domain, Policy.value).order_by(Policy.domain)
                )
                return [(row.domain, Decision.from_code(row.value)) for row in result.all()]
        except SQLAlchemyError as e:
            logger.warning(f"SQL fails: {e}")
            return []

    async def domains_with_decision(self, decision: Decision) -> List[str]:
        """List domains holding ``decision``, ordered descending."""
        if not self._check_open("domain query"):
            return []

        try:
            async with self.database.session() as session:
                result = await session.execute(
                    select(Policy.domain)
                    .where(Policy.value == int(decision))
                    .order_by(Policy.domain.desc())
                )
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.warning(f"SQL fails: {e}")
            return []

    async def count(self) -> int:
        if not self._check_open("count"):
            return 0

        try:
            async with self.database.session() as session:
                result = await session.execute(select(func.count()).select_from(Policy))
                return result.scalar_one()
        except SQLAlchemyError as e:
            logger.warning(f"SQL fails: {e}")
            return 0

    # ============= Writes =============

    async def upsert(self, domain: str, decision: Decision) -> bool:
        """Insert or replace the decision for ``domain``.

        Returns:
            True if the decision was written.
        """
        if decision == Decision.UNDETERMINED:
            raise ValueError("Undetermined is not a storable decision")
        if not self._check_open("upsert"):
            return False

        statement = insert(Policy).values(domain=domain, value=int(decision))
        statement = statement.on_conflict_do_update(
            index_elements=["domain"],
            set_={"value": statement.excluded["value"]},
        )

        try:
            async with self.database.session() as session:
                await session.execute(statement)
        except SQLAlchemyError as e:
            logger.warning(f"SQL fails: {e}")
            return False

        logger.debug(f"Stored policy {decision.display_name} for domain {domain}")
        return True

    async def delete(self, domain: str) -> bool:
        """Delete the policy for ``domain``.

        Returns:
            True if a record was removed.
        """
        if not self._check_open("delete"):
            return False

        try:
            async with self.database.session() as session:
                result = await session.execute(delete(Policy).where(Policy.domain == domain))
                removed = result.rowcount
        except SQLAlchemyError as e:
            logger.critical(f"Failed to execute database statement: {e}")
            return False

        return bool(removed)

    async def delete_all(self) -> int:
        """Delete every stored policy and return how many were removed."""
        if not self._check_open("delete all"):
            return 0

        try:
            async with self.database.session() as session:
                result = await session.execute(delete(Policy))
                removed = result.rowcount
        except SQLAlchemyError as e:
            logger.critical(f"Failed to execute database statement: {e}")
            return 0

        logger.info(f"Deleted all {removed} cookie policies")
        return removed
