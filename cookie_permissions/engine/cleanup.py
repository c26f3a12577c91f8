"""Expiry of session-scoped cookie approvals."""

import logging
from typing import TYPE_CHECKING, List

from ..models import Cookie, Decision

if TYPE_CHECKING:
    from ..http.jar import CookieJar
    from ..persistence.store import PolicyStore

logger = logging.getLogger(__name__)


async def purge_expired_session_cookies(store: "PolicyStore", jar: "CookieJar") -> List[Cookie]:
    """Delete live cookies whose domain was only accepted for a session.

    Run once right after the store is opened. The ``ACCEPT_FOR_SESSION``
    records themselves stay, so later cookies from those domains are kept
    again without asking, until the next time the store is opened.

    Args:
        store: Freshly opened policy store
        jar: Cookie jar holding the cookies carried over from earlier

    Returns:
        The removed cookies.
    """
    logger.info(f"Deleting all cookies from {jar!r} only allowed for one session")

    removed: List[Cookie] = []
    for domain in await store.domains_with_decision(Decision.ACCEPT_FOR_SESSION):
        for cookie in jar.cookies_matching(domain):
            if await jar.remove(cookie):
                removed.append(cookie)
                logger.info(f"Deleted temporary cookie: domain={cookie.domain}, name={cookie.name}")

    return removed
