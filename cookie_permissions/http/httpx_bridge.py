"""Binding between an ``httpx.AsyncClient`` and an ``HttpSession``.

The bridge registers a response event hook on the client, parses the
``Set-Cookie`` headers of every response into ``Cookie`` models and
dispatches them to the session. Afterwards the client's own cookie store is
pruned to what the session's jar actually kept, so blocked cookies are never
sent back.
"""

import logging
from email.utils import parsedate_to_datetime
from http.cookies import CookieError, SimpleCookie
from typing import List, Optional

import httpx

from ..models import Cookie, ResponseMessage
from ..utils.domain_matcher import domain_matches
from .session import HttpSession

logger = logging.getLogger(__name__)

LOCAL_SUFFIX = ".local"


def _session_domain(client_domain: str) -> str:
    """Undo the ``.local`` suffix http.cookiejar appends to dotless hosts."""
    if client_domain.endswith(LOCAL_SUFFIX):
        host = client_domain[:-len(LOCAL_SUFFIX)]
        if host and "." not in host:
            return host
    return client_domain


def default_cookie_path(request_path: str) -> str:
    """Directory of the request path, used when ``Set-Cookie`` has no ``Path``.

    ``/account/login`` gives ``/account``; anything without a second slash
    gives ``/``.
    """
    if not request_path.startswith("/"):
        return "/"
    directory = request_path[:request_path.rfind("/")]
    return directory or "/"


def parse_set_cookie(header: str, request_host: str, request_path: str = "/") -> List[Cookie]:
    """Parse one ``Set-Cookie`` header value.

    A ``Domain`` attribute yields a domain cookie (leading dot) and must
    cover the request host; without it the cookie is host-only.

    Args:
        header: Raw header value
        request_host: Host the request was sent to
        request_path: Path of the request, for the default cookie path

    Returns:
        Parsed cookies; malformed or foreign-domain cookies are skipped.
    """
    parsed = SimpleCookie()
    try:
        parsed.load(header)
    except CookieError as e:
        logger.warning(f"Ignoring malformed Set-Cookie header from {request_host}: {e}")
        return []

    cookies = []
    for morsel in parsed.values():
        domain_attribute = morsel["domain"].strip().lstrip(".").lower()
        if domain_attribute:
            domain = "." + domain_attribute
            if not domain_matches(domain, request_host):
                logger.debug(f"Ignoring cookie {morsel.key} for foreign domain {domain} from {request_host}")
                continue
        else:
            domain = request_host.lower()

        max_age = morsel["max-age"]
        expires = None
        if morsel["expires"]:
            try:
                expires = parsedate_to_datetime(morsel["expires"])
            except (TypeError, ValueError):
                logger.debug(f"Ignoring unparsable expiry of cookie {morsel.key}: {morsel['expires']}")

        cookies.append(Cookie(
            name=morsel.key,
            value=morsel.value,
            domain=domain,
            path=morsel["path"] or default_cookie_path(request_path),
            expires=expires,
            max_age=int(max_age) if str(max_age).lstrip("-").isdigit() else None,
            secure=bool(morsel["secure"]),
            http_only=bool(morsel["httponly"]),
            same_site=morsel["samesite"] or None,
        ))

    return cookies


class HttpxCookieBridge:
    """Feeds responses of an httpx client into an ``HttpSession``."""

    def __init__(self, session: HttpSession, first_party_host: Optional[str] = None):
        """Initialize the bridge.

        Args:
            session: Session receiving parsed responses
            first_party_host: Host of the initiating page; defaults to the
                host of each request (top-level navigation)
        """
        self.session = session
        self.first_party_host = first_party_host
        self._client: Optional[httpx.AsyncClient] = None

    def install(self, client: httpx.AsyncClient) -> None:
        """Append the bridge's hook, keeping the client's other hooks."""
        hooks = client.event_hooks
        hooks["response"] = [*hooks.get("response", []), self.on_response]
        client.event_hooks = hooks
        self._client = client

    def uninstall(self, client: httpx.AsyncClient) -> None:
        hooks = client.event_hooks
        hooks["response"] = [hook for hook in hooks.get("response", []) if hook != self.on_response]
        client.event_hooks = hooks
        if self._client is client:
            self._client = None

    async def on_response(self, response: httpx.Response) -> None:
        request = response.request
        host = request.url.host

        cookies: List[Cookie] = []
        for header in response.headers.get_list("set-cookie"):
            cookies.extend(parse_set_cookie(header, host, request.url.path))

        message = ResponseMessage(
            url=str(request.url),
            status_code=response.status_code,
            cookies=cookies,
            first_party_host=self.first_party_host or host,
        )
        await self.session.dispatch(message)

        if self._client is not None:
            self._prune_client_cookies(self._client)

    def _prune_client_cookies(self, client: httpx.AsyncClient) -> None:
        # Paths may differ between the two jars; only domain and name are compared.
        for stored in list(client.cookies.jar):
            domain = _session_domain(stored.domain)
            if not self.session.jar.named(domain, stored.name):
                logger.debug(f"Dropping cookie {stored.name}@{stored.domain} from the httpx client")
                client.cookies.jar.clear(stored.domain, stored.path, stored.name)
