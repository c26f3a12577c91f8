"""Tests for the durable policy store."""

import logging
import stat
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy import text

from cookie_permissions.engine.prompt import ConsentPrompt
from cookie_permissions.engine.resolver import PolicyResolver
from cookie_permissions.exceptions import FatalStoreError, StoreOpenError
from cookie_permissions.models import Decision
from cookie_permissions.persistence.database import DatabaseConfig
from cookie_permissions.persistence.store import PolicyStore
from cookie_permissions.utils.domain_matcher import CandidateQuery


class TestPolicyStoreOpen:
    """Test opening the store: folder, file and schema."""

    @pytest.mark.asyncio
    async def test_open_creates_private_folder_and_file(self, db_path: Path):
        store = await PolicyStore.open(db_path)
        try:
            assert store.is_open
            assert db_path.exists()
            assert stat.S_IMODE(db_path.parent.stat().st_mode) == 0o700
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_schema_has_unique_domain_index(self, policy_store: PolicyStore):
        async with policy_store.database.engine.connect() as conn:
            result = await conn.execute(text(
                "SELECT name, sql FROM sqlite_master WHERE type='index' AND tbl_name='policies'"
            ))
            indexes = {row.name: row.sql for row in result}

        assert "domain" in indexes
        assert "UNIQUE" in indexes["domain"].upper()

    @pytest.mark.asyncio
    async def test_journal_mode_is_truncate(self, policy_store: PolicyStore):
        async with policy_store.database.engine.connect() as conn:
            result = await conn.exec_driver_sql("PRAGMA journal_mode")
            assert result.scalar().lower() == "truncate"

    @pytest.mark.asyncio
    async def test_reopen_keeps_policies(self, db_path: Path):
        store = await PolicyStore.open(db_path)
        await store.upsert("example.com", Decision.ACCEPT)
        await store.close()

        store = await PolicyStore.open(db_path)
        try:
            assert await store.get("example.com") == Decision.ACCEPT
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_opens_existing_database_file(self, db_path: Path):
        db_path.parent.mkdir(parents=True)
        database = DatabaseConfig.for_file(db_path)
        async with database.engine.begin() as conn:
            await conn.exec_driver_sql("CREATE TABLE policies(domain text, value integer)")
            await conn.exec_driver_sql("CREATE UNIQUE INDEX domain ON policies (domain)")
            await conn.exec_driver_sql("INSERT INTO policies VALUES ('.example.com', 3)")
        await database.close()

        store = await PolicyStore.open(db_path)
        try:
            assert await store.list_all() == [(".example.com", Decision.BLOCK)]
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_folder_blocked_by_file_fails(self, tmp_path: Path):
        blocker = tmp_path / "config"
        blocker.write_text("not a folder")

        with pytest.raises(StoreOpenError) as exc_info:
            await PolicyStore.open(blocker / "domains.db")

        assert exc_info.value.error_code == "open_failed"

    @pytest.mark.asyncio
    async def test_database_path_is_directory_fails(self, tmp_path: Path):
        (tmp_path / "domains.db").mkdir()

        with pytest.raises(FatalStoreError):
            await PolicyStore.open(tmp_path / "domains.db")

    @pytest.mark.asyncio
    async def test_corrupt_database_file_fails(self, tmp_path: Path):
        db_file = tmp_path / "domains.db"
        db_file.write_bytes(b"this is not a sqlite database " * 64)

        with pytest.raises(FatalStoreError):
            await PolicyStore.open(db_file)


class TestPolicyStoreOperations:
    """Test reads and writes on an open store."""

    @pytest.mark.asyncio
    async def test_upsert_and_get(self, policy_store: PolicyStore):
        assert await policy_store.upsert("example.com", Decision.ACCEPT)

        assert await policy_store.get("example.com") == Decision.ACCEPT
        assert await policy_store.get("other.com") is None

    @pytest.mark.asyncio
    async def test_upsert_replaces_existing_decision(self, policy_store: PolicyStore):
        await policy_store.upsert("example.com", Decision.ACCEPT)
        await policy_store.upsert("example.com", Decision.BLOCK)

        assert await policy_store.count() == 1
        assert await policy_store.get("example.com") == Decision.BLOCK

    @pytest.mark.asyncio
    async def test_upsert_undetermined_is_rejected(self, policy_store: PolicyStore):
        with pytest.raises(ValueError):
            await policy_store.upsert("example.com", Decision.UNDETERMINED)

        assert await policy_store.count() == 0

    @pytest.mark.asyncio
    async def test_domains_are_stored_verbatim(self, policy_store: PolicyStore):
        await policy_store.upsert(".Example.com", Decision.ACCEPT)

        assert await policy_store.list_all() == [(".Example.com", Decision.ACCEPT)]

    @pytest.mark.asyncio
    async def test_list_all_orders_by_domain(self, policy_store: PolicyStore):
        await policy_store.upsert("b.com", Decision.BLOCK)
        await policy_store.upsert("a.com", Decision.ACCEPT)
        await policy_store.upsert(".c.com", Decision.ACCEPT_FOR_SESSION)

        domains = [domain for domain, _ in await policy_store.list_all()]
        assert domains == [".c.com", "a.com", "b.com"]

    @pytest.mark.asyncio
    async def test_lookup_candidates_descending(self, policy_store: PolicyStore):
        await policy_store.upsert(".example.com", Decision.BLOCK)
        await policy_store.upsert("a.example.com", Decision.ACCEPT)
        await policy_store.upsert("example.org", Decision.ACCEPT)

        candidates = await policy_store.lookup_candidates(CandidateQuery.for_domain("a.example.com"))

        assert candidates == [
            ("a.example.com", Decision.ACCEPT),
            (".example.com", Decision.BLOCK),
        ]

    @pytest.mark.asyncio
    async def test_lookup_candidates_for_domain_cookie(self, policy_store: PolicyStore):
        await policy_store.upsert("example.com", Decision.ACCEPT)
        await policy_store.upsert("www.example.com", Decision.BLOCK)
        await policy_store.upsert("example.net", Decision.BLOCK)

        candidates = await policy_store.lookup_candidates(CandidateQuery.for_domain(".example.com"))

        assert [pattern for pattern, _ in candidates] == ["www.example.com", "example.com"]

    @pytest.mark.asyncio
    async def test_unknown_code_reads_as_undetermined(self, policy_store: PolicyStore):
        async with policy_store.database.session() as session:
            await session.execute(text("INSERT INTO policies (domain, value) VALUES ('odd.com', 7)"))

        assert await policy_store.get("odd.com") == Decision.UNDETERMINED

    @pytest.mark.asyncio
    async def test_domains_with_decision(self, policy_store: PolicyStore):
        await policy_store.upsert("a.com", Decision.ACCEPT_FOR_SESSION)
        await policy_store.upsert("b.com", Decision.ACCEPT_FOR_SESSION)
        await policy_store.upsert("c.com", Decision.ACCEPT)

        domains = await policy_store.domains_with_decision(Decision.ACCEPT_FOR_SESSION)
        assert domains == ["b.com", "a.com"]

    @pytest.mark.asyncio
    async def test_delete(self, policy_store: PolicyStore):
        await policy_store.upsert("example.com", Decision.ACCEPT)

        assert await policy_store.delete("example.com")
        assert not await policy_store.delete("example.com")
        assert await policy_store.get("example.com") is None

    @pytest.mark.asyncio
    async def test_delete_all(self, policy_store: PolicyStore):
        for domain in ("a.com", "b.com", "c.com"):
            await policy_store.upsert(domain, Decision.ACCEPT)

        assert await policy_store.delete_all() == 3
        assert await policy_store.count() == 0

    @pytest.mark.asyncio
    async def test_closed_store_operations_are_noops(self, db_path: Path):
        store = await PolicyStore.open(db_path)
        await store.close()
        await store.close()

        assert not store.is_open
        assert await store.lookup_candidates(CandidateQuery.for_domain("example.com")) == []
        assert await store.get("example.com") is None
        assert await store.upsert("example.com", Decision.ACCEPT) is False
        assert await store.delete("example.com") is False
        assert await store.delete_all() == 0


class TestPolicyStoreStatementFailures:
    """Test that failing statements leave the engine usable."""

    @pytest_asyncio.fixture
    async def broken_store(self, policy_store: PolicyStore):
        await policy_store.upsert("example.com", Decision.BLOCK)
        async with policy_store.database.session() as session:
            await session.execute(text("DROP TABLE policies"))
        return policy_store

    @pytest.mark.asyncio
    async def test_prompt_decision_survives_failed_write(
        self, broken_store, interaction_factory, cookie_factory, caplog
    ):
        interaction = interaction_factory(Decision.ACCEPT)
        prompt = ConsentPrompt(broken_store, interaction)

        with caplog.at_level(logging.WARNING):
            decision = await prompt.ask([cookie_factory("example.com")])

        assert decision == Decision.ACCEPT
        assert len(interaction.requests) == 1
        assert "SQL fails" in caplog.text

    @pytest.mark.asyncio
    async def test_failed_lookup_resolves_undetermined(self, broken_store):
        resolver = PolicyResolver(broken_store)

        assert await resolver.resolve_domain("example.com") == Decision.UNDETERMINED

    @pytest.mark.asyncio
    async def test_reads_and_deletes_return_neutral_values(self, broken_store, caplog):
        with caplog.at_level(logging.WARNING):
            assert await broken_store.get("example.com") is None
            assert await broken_store.list_all() == []
            assert await broken_store.domains_with_decision(Decision.BLOCK) == []
            assert await broken_store.count() == 0
            assert await broken_store.delete("example.com") is False
            assert await broken_store.delete_all() == 0

        assert broken_store.is_open
        assert "Failed to execute database statement" in caplog.text
