"""HTTP-layer session that hands response cookies to the jar.

``HttpSession`` stands in for the HTTP client: a transport binding calls
``dispatch`` with every parsed response, and the session runs whatever is
installed in its ``response_hook`` slot. The default hook stores cookies the
way a plain HTTP library would, honouring only the session-wide acceptance
mode.
"""

import logging
from typing import Awaitable, Callable, Optional

from ..models import AcceptPolicy, Cookie, ResponseMessage
from ..utils.domain_matcher import domain_matches
from .jar import CookieJar

logger = logging.getLogger(__name__)

ResponseHook = Callable[[ResponseMessage], Awaitable[None]]


def passes_accept_policy(
    cookie: Cookie,
    accept_policy: AcceptPolicy,
    first_party_host: Optional[str]
) -> bool:
    """Apply the session-wide acceptance mode to one cookie.

    Args:
        cookie: Cookie offered by a response
        accept_policy: Session-wide acceptance mode
        first_party_host: Host of the page that initiated the request

    Returns:
        True if the mode allows the cookie to be stored.
    """
    if accept_policy == AcceptPolicy.ALWAYS:
        return True
    if accept_policy == AcceptPolicy.NO_THIRD_PARTY and first_party_host:
        return domain_matches(cookie.domain, first_party_host)
    return False


class HttpSession:
    """Minimal HTTP session owning a cookie jar and a response hook slot."""

    def __init__(self, jar: Optional[CookieJar] = None):
        self.jar = jar if jar is not None else CookieJar()
        self.response_hook: Optional[ResponseHook] = self.store_response_cookies

    async def store_response_cookies(self, message: ResponseMessage) -> None:
        """Default hook: store every cookie the acceptance mode allows."""
        if self.jar.accept_policy == AcceptPolicy.NEVER:
            return

        for cookie in message.cookies:
            if passes_accept_policy(cookie, self.jar.accept_policy, message.first_party_host):
                await self.jar.add(cookie)
            else:
                logger.debug(f"Rejected third-party cookie {cookie} from {message.url}")

    async def dispatch(self, message: ResponseMessage) -> None:
        """Run the installed response hook for a parsed response."""
        if self.response_hook is not None:
            await self.response_hook(message)
