"""Consent prompting for cookies without a stored policy.

A batch of undecided cookies is summarized, presented to the user once, and
the single answer is written once per distinct domain. This is the only
place that both asks a question and writes policy.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, List, Optional, Protocol, Sequence

from ..models import ConsentChoice, ConsentRequest, Cookie, Decision, FatalErrorNotice
from ..utils.domain_matcher import same_domain, sort_key

if TYPE_CHECKING:
    from ..persistence.store import PolicyStore

logger = logging.getLogger(__name__)

PROMPT_TITLE = "Confirm storing cookie"

PROMPT_CHOICES = [
    ConsentChoice(label="Accept", decision=Decision.ACCEPT),
    ConsentChoice(label="Accept for this session", decision=Decision.ACCEPT_FOR_SESSION),
    ConsentChoice(label="Deny", decision=Decision.BLOCK),
]


class UserInteraction(Protocol):
    """Blocking user-facing calls the engine relies on.

    Rendering is up to the implementation; both calls are awaited until the
    user has responded.
    """

    async def ask(self, request: ConsentRequest) -> Optional[Decision]:
        """Present the request and return the chosen decision, None if dismissed."""
        ...

    async def notify_fatal(self, notice: FatalErrorNotice) -> None:
        """Explain an unrecoverable error and wait for acknowledgement."""
        ...


class ConsentBatch:
    """Domain-grouped view of a non-empty set of undecided cookies.

    The caller's sequence is copied before sorting, so its order (response
    order) is left untouched.
    """

    def __init__(self, cookies: Sequence[Cookie]):
        if not cookies:
            raise ValueError("A consent batch needs at least one cookie")

        self.cookies: List[Cookie] = list(cookies)
        self.sorted_cookies: List[Cookie] = sorted(self.cookies, key=lambda c: sort_key(c.domain))
        self.domains: List[str] = []

        last_domain: Optional[str] = None
        for cookie in self.sorted_cookies:
            if last_domain is None or not same_domain(last_domain, cookie.domain):
                self.domains.append(cookie.host)
                last_domain = cookie.domain

    @property
    def domain_count(self) -> int:
        return len(self.domains)

    @property
    def cookie_count(self) -> int:
        return len(self.sorted_cookies)

    def summary(self) -> str:
        if self.domain_count == 1:
            domain = self.domains[0]
            if self.cookie_count > 1:
                return f"The website {domain} wants to store {self.cookie_count} cookies."
            return f"The website {domain} wants to store a cookie."
        return f"Multiple websites want to store {self.cookie_count} cookies in total."

    def to_request(self) -> ConsentRequest:
        return ConsentRequest(
            title=PROMPT_TITLE,
            message=self.summary(),
            domain_count=self.domain_count,
            cookie_count=self.cookie_count,
            domains=list(self.domains),
            choices=list(PROMPT_CHOICES),
        )

    def __len__(self) -> int:
        return self.cookie_count


class ConsentPrompt:
    """Single-flight consent prompt writing one policy per distinct domain."""

    def __init__(self, store: "PolicyStore", interaction: UserInteraction):
        self.store = store
        self.interaction = interaction
        self._lock = asyncio.Lock()

    @property
    def is_pending(self) -> bool:
        """Whether a prompt is currently waiting for the user."""
        return self._lock.locked()

    async def ask(self, cookies: Sequence[Cookie]) -> Decision:
        """Ask the user what to do with ``cookies``.

        Waits for any outstanding prompt first; there is no timeout.

        Args:
            cookies: Non-empty collection of undecided cookies

        Returns:
            The chosen decision; ``Decision.BLOCK`` if the prompt was dismissed.
        """
        batch = ConsentBatch(cookies)

        async with self._lock:
            logger.debug(f"Asking for policy: {batch.summary()} domains={batch.domains}")
            response = await self.interaction.ask(batch.to_request())

            if response is None or response == Decision.UNDETERMINED:
                logger.info(f"Consent prompt dismissed, blocking {batch.cookie_count} cookie(s)")
                return Decision.BLOCK

            decision = Decision(response)
            for domain in batch.domains:
                await self.store.upsert(domain, decision)

            logger.info(
                f"User chose {decision.display_name} for {batch.domain_count} domain(s): "
                f"{', '.join(batch.domains)}"
            )
            return decision
