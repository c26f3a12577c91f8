"""Cookie interception between the HTTP session and its cookie jar.

The interceptor is the only component touching live cookie traffic. It
observes two event sources:

- responses carrying ``Set-Cookie`` headers, through the session's response
  hook, which it replaces on ``install`` and restores on ``uninstall``;
- cookies added to the jar outside a request (scripts, imports), through a
  jar observer.

Every cookie is classified by the ``PolicyResolver``. Blocked cookies are
dropped, accepted ones stored, and undecided ones go through one
``ConsentPrompt`` per event. All event handling is serialized, so a
classification never interleaves with an outstanding prompt.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from ..exceptions import InterceptorStateError
from ..http.session import HttpSession, ResponseHook, passes_accept_policy
from ..models import AcceptPolicy, Cookie, CookieChange, Decision, ResponseMessage
from .prompt import ConsentPrompt
from .resolver import PolicyResolver

logger = logging.getLogger(__name__)


@dataclass
class InterceptionResult:
    """Outcome of processing the cookies of one response."""

    accepted: List[Cookie] = field(default_factory=list)
    blocked: List[Cookie] = field(default_factory=list)
    rejected: List[Cookie] = field(default_factory=list)
    prompted: List[Cookie] = field(default_factory=list)
    decision: Optional[Decision] = None

    @property
    def prompt_shown(self) -> bool:
        return self.decision is not None


class CookieInterceptor:
    """Applies stored and newly obtained cookie decisions to a session."""

    def __init__(self, session: HttpSession, resolver: PolicyResolver, prompt: ConsentPrompt):
        """Initialize the interceptor.

        Args:
            session: HTTP session whose response hook and jar are intercepted
            resolver: Lookup of stored decisions
            prompt: Consent prompt for undecided cookies
        """
        self.session = session
        self.resolver = resolver
        self.prompt = prompt

        self._lock = asyncio.Lock()
        self._installed = False
        self._previous_hook: Optional[ResponseHook] = None
        self._own_additions: Set[Tuple[str, str, str]] = set()
        self._deferred: Set[asyncio.Task] = set()

    @property
    def is_installed(self) -> bool:
        return self._installed

    # ============= Hook lifecycle =============

    def install(self) -> None:
        """Take over the session's response hook and observe its jar.

        The previous hook is remembered and still called for every response,
        without the cookies this interceptor has consumed.
        """
        if self._installed:
            raise InterceptorStateError()

        self._previous_hook = self.session.response_hook
        self.session.response_hook = self._on_response
        self.session.jar.add_observer(self._on_jar_changed)
        self._installed = True
        logger.debug(f"Installed cookie interceptor on {self.session.jar!r}")

    def uninstall(self) -> None:
        """Restore the original response hook and stop observing the jar.

        A hook installed on top of the interceptor since ``install`` is left
        in place.
        """
        if not self._installed:
            return

        if self.session.response_hook == self._on_response:
            self.session.response_hook = self._previous_hook
        else:
            logger.warning(
                "Response hook was replaced after the cookie interceptor was installed; "
                "leaving it in place"
            )
        self.session.jar.remove_observer(self._on_jar_changed)
        self._previous_hook = None
        self._installed = False
        logger.debug("Uninstalled cookie interceptor")

    async def drain(self) -> None:
        """Wait for out-of-band evaluations deferred while the engine was busy."""
        while self._deferred:
            await asyncio.gather(*list(self._deferred), return_exceptions=True)

    async def _on_response(self, message: ResponseMessage) -> None:
        if message.cookies:
            await self.on_response_cookies(message)

        if self._previous_hook is not None:
            await self._previous_hook(message.without_cookies())

    async def _on_jar_changed(self, change: CookieChange) -> None:
        # Replacements were allowed before, removals need no decision.
        if not change.is_new_cookie:
            return
        if change.new.key in self._own_additions:
            return

        if self._lock.locked():
            task = asyncio.ensure_future(self.on_cookie_added_out_of_band(change.new))
            self._deferred.add(task)
            task.add_done_callback(self._deferred.discard)
            return

        await self.on_cookie_added_out_of_band(change.new)

    # ============= Event handling =============

    async def on_response_cookies(self, message: ResponseMessage) -> InterceptionResult:
        """Classify and store the cookies offered by one response.

        Args:
            message: Parsed response with its cookies in header order

        Returns:
            What happened to each cookie.
        """
        async with self._lock:
            return await self._process_response_cookies(message)

    async def _process_response_cookies(self, message: ResponseMessage) -> InterceptionResult:
        result = InterceptionResult()
        accept_policy = self.session.jar.accept_policy

        if accept_policy == AcceptPolicy.NEVER:
            return result

        undetermined: List[Cookie] = []
        accepted: List[Cookie] = []

        for cookie in message.cookies:
            decision = await self.resolver.resolve(cookie)

            if decision == Decision.BLOCK:
                result.blocked.append(cookie)
                continue

            if not passes_accept_policy(cookie, accept_policy, message.first_party_host):
                result.rejected.append(cookie)
                continue

            if decision.keeps_cookie:
                accepted.append(cookie)
            else:
                undetermined.append(cookie)

        if undetermined:
            decision = await self.prompt.ask(undetermined)
            result.decision = decision
            result.prompted = list(undetermined)

            if decision.keeps_cookie:
                for cookie in undetermined:
                    await self._add_to_jar(cookie)
                    result.accepted.append(cookie)
            else:
                result.blocked.extend(undetermined)

        for cookie in accepted:
            await self._add_to_jar(cookie)
            result.accepted.append(cookie)

        logger.debug(
            f"Cookies from {message.url}: accepted={len(result.accepted)} "
            f"blocked={len(result.blocked)} rejected={len(result.rejected)}"
        )
        return result

    async def on_cookie_added_out_of_band(self, cookie: Cookie) -> Decision:
        """Evaluate a cookie that appeared in the jar outside a request.

        Returns:
            Decision applied to the cookie; blocked cookies are removed.
        """
        async with self._lock:
            decision = await self.resolver.resolve(cookie)

            if decision == Decision.UNDETERMINED:
                decision = await self.prompt.ask([cookie])

            if decision == Decision.BLOCK:
                await self.session.jar.remove(cookie)
                logger.info(f"Removed blocked cookie {cookie} added outside a request")

            return decision

    async def _add_to_jar(self, cookie: Cookie) -> None:
        self._own_additions.add(cookie.key)
        try:
            await self.session.jar.add(cookie)
        finally:
            self._own_additions.discard(cookie.key)
