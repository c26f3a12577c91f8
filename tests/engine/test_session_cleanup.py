"""Tests for expiry of session-only approvals."""

import pytest

from cookie_permissions.engine.cleanup import purge_expired_session_cookies
from cookie_permissions.engine.resolver import PolicyResolver
from cookie_permissions.http.jar import CookieJar
from cookie_permissions.models import Decision


class TestPurgeExpiredSessionCookies:
    """Test purge_expired_session_cookies."""

    @pytest.mark.asyncio
    async def test_removes_cookies_and_keeps_record(self, policy_store, cookie_factory):
        await policy_store.upsert("example.com", Decision.ACCEPT_FOR_SESSION)
        jar = CookieJar()
        await jar.add(cookie_factory("example.com", name="a"))
        await jar.add(cookie_factory(".example.com", name="b"))
        await jar.add(cookie_factory("other.com", name="c"))

        removed = await purge_expired_session_cookies(policy_store, jar)

        assert sorted(cookie.name for cookie in removed) == ["a", "b"]
        assert [cookie.name for cookie in jar.all_cookies()] == ["c"]
        assert await policy_store.get("example.com") == Decision.ACCEPT_FOR_SESSION

    @pytest.mark.asyncio
    async def test_wildcard_record_covers_subdomains(self, policy_store, cookie_factory):
        await policy_store.upsert(".example.com", Decision.ACCEPT_FOR_SESSION)
        jar = CookieJar()
        await jar.add(cookie_factory("www.example.com"))
        await jar.add(cookie_factory("badexample.com"))

        await purge_expired_session_cookies(policy_store, jar)

        assert [cookie.domain for cookie in jar.all_cookies()] == ["badexample.com"]

    @pytest.mark.asyncio
    async def test_other_decisions_are_untouched(self, policy_store, cookie_factory):
        await policy_store.upsert("kept.com", Decision.ACCEPT)
        await policy_store.upsert("blocked.com", Decision.BLOCK)
        jar = CookieJar()
        await jar.add(cookie_factory("kept.com"))
        await jar.add(cookie_factory("blocked.com"))

        removed = await purge_expired_session_cookies(policy_store, jar)

        assert removed == []
        assert len(jar) == 2

    @pytest.mark.asyncio
    async def test_later_cookie_is_kept_without_prompt(self, policy_store, cookie_factory):
        await policy_store.upsert("example.com", Decision.ACCEPT_FOR_SESSION)
        await purge_expired_session_cookies(policy_store, CookieJar())

        resolver = PolicyResolver(policy_store)
        assert await resolver.resolve(cookie_factory("example.com")) == Decision.ACCEPT_FOR_SESSION
