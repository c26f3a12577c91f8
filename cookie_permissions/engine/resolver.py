"""Resolution of a cookie domain to its stored decision."""

import logging
from typing import TYPE_CHECKING

from ..models import Cookie, Decision
from ..utils.domain_matcher import CandidateQuery, domain_matches

if TYPE_CHECKING:
    from ..persistence.store import PolicyStore

logger = logging.getLogger(__name__)


class PolicyResolver:
    """Read-only lookup of the decision that applies to a cookie.

    Candidates come back from the store ordered by pattern, descending. The
    first candidate that really covers the cookie's domain wins. Descending
    string order tends to put longer, more specific patterns first, but it is
    not a true specificity order: with ``.example.com`` and ``a.example.com``
    stored, ``a.example.com`` wins for a cookie on ``a.example.com`` only
    because ``a`` sorts after ``.``.
    """

    def __init__(self, store: "PolicyStore"):
        self.store = store

    async def resolve(self, cookie: Cookie) -> Decision:
        return await self.resolve_domain(cookie.domain)

    async def resolve_domain(self, domain: str) -> Decision:
        """Resolve a cookie domain, ``Decision.UNDETERMINED`` if nothing matches."""
        candidates = await self.store.lookup_candidates(CandidateQuery.for_domain(domain))

        for pattern, decision in candidates:
            logger.debug(f"Checking cookie domain {domain} against {pattern}")
            if decision != Decision.UNDETERMINED and domain_matches(domain, pattern):
                logger.debug(f"Found policy {decision.display_name} for {domain} via {pattern}")
                return decision

        return Decision.UNDETERMINED
