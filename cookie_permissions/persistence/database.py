"""Database configuration and connection management for the policy store."""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    create_async_engine,
    async_sessionmaker,
    AsyncSession,
    AsyncEngine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def sqlite_url(path: Path) -> str:
    """Build an async SQLite URL for a database file."""
    return f"sqlite+aiosqlite:///{Path(path)}"


class DatabaseConfig:
    """Single-connection SQLite engine and session management.

    The policy store keeps exactly one connection open between ``open`` and
    ``close``; ``StaticPool`` hands the same connection to every session.
    """

    def __init__(self, url: str, echo: bool = False):
        """Initialize database configuration.

        Args:
            url: Async SQLAlchemy database URL
            echo: Enable SQLAlchemy logging
        """
        self.url = url
        self.echo = echo

        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @classmethod
    def for_file(cls, path: Path, echo: bool = False) -> "DatabaseConfig":
        return cls(url=sqlite_url(path), echo=echo)

    @property
    def engine(self) -> AsyncEngine:
        """Get or create async database engine."""
        if self._engine is None:
            self._engine = create_async_engine(
                self.url,
                poolclass=StaticPool,
                echo=self.echo,
            )
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Get or create async session factory."""
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        return self._session_factory

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Create async database session context manager."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def close(self) -> None:
        """Close database engine and connections."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
