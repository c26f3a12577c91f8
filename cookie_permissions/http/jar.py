"""In-memory cookie jar with change notifications.

The jar plays the part of the HTTP library's cookie store: it holds the live
cookies, carries the session-wide acceptance mode and tells registered
observers about every addition, replacement and removal.
"""

import logging
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from ..models import AcceptPolicy, Cookie, CookieChange
from ..utils.domain_matcher import domain_matches

logger = logging.getLogger(__name__)

JarObserver = Callable[[CookieChange], Awaitable[None]]


class CookieJar:
    """Cookie store keyed by (domain, path, name)."""

    def __init__(self, accept_policy: AcceptPolicy = AcceptPolicy.ALWAYS):
        """Initialize an empty jar.

        Args:
            accept_policy: Session-wide acceptance mode
        """
        self.accept_policy = accept_policy
        self._cookies: Dict[Tuple[str, str, str], Cookie] = {}
        self._observers: List[JarObserver] = []

    def add_observer(self, observer: JarObserver) -> None:
        """Register an async callable receiving every ``CookieChange``."""
        self._observers.append(observer)

    def remove_observer(self, observer: JarObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    @property
    def observers(self) -> List[JarObserver]:
        return list(self._observers)

    async def _notify(self, change: CookieChange) -> None:
        for observer in list(self._observers):
            try:
                await observer(change)
            except Exception as e:
                logger.error(f"Error in cookie jar observer: {e}")

    async def add(self, cookie: Cookie) -> None:
        """Add a cookie, replacing one with the same identity."""
        old = self._cookies.get(cookie.key)
        self._cookies[cookie.key] = cookie
        await self._notify(CookieChange(old=old, new=cookie))

    async def remove(self, cookie: Cookie) -> bool:
        """Remove a cookie.

        Returns:
            True if the jar held the cookie.
        """
        old = self._cookies.pop(cookie.key, None)
        if old is None:
            return False
        await self._notify(CookieChange(old=old, new=None))
        return True

    async def clear(self) -> None:
        for cookie in self.all_cookies():
            await self.remove(cookie)

    def get(self, domain: str, name: str, path: str = "/") -> Optional[Cookie]:
        return self._cookies.get((domain.lower(), path, name))

    def named(self, domain: str, name: str) -> List[Cookie]:
        """Cookies with ``name`` on exactly ``domain``, on any path."""
        domain = domain.lower()
        return [cookie for key, cookie in self._cookies.items() if key[0] == domain and key[2] == name]

    def all_cookies(self) -> List[Cookie]:
        """Snapshot of all cookies in insertion order."""
        return list(self._cookies.values())

    def cookies_matching(self, pattern: str) -> List[Cookie]:
        """Cookies whose domain is covered by a policy pattern."""
        return [cookie for cookie in self._cookies.values() if domain_matches(cookie.domain, pattern)]

    def __len__(self) -> int:
        return len(self._cookies)

    def __contains__(self, cookie: object) -> bool:
        return isinstance(cookie, Cookie) and cookie.key in self._cookies

    def __repr__(self) -> str:
        return f"<CookieJar(cookies={len(self._cookies)}, accept_policy={self.accept_policy.value})>"
