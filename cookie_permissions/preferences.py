"""Read and delete operations behind the cookie permission preferences view.

Deleting a policy means the user is asked again the next time the domain
offers a cookie.
"""

import logging
from typing import Iterable, List

from .models import Decision, PolicyEntry
from .persistence.store import PolicyStore

logger = logging.getLogger(__name__)


class PolicyPreferences:
    """CRUD view over the policy store for the preferences UI."""

    def __init__(self, store: PolicyStore):
        self.store = store

    async def list_policies(self) -> List[PolicyEntry]:
        """All stored policies ordered by domain; unknown codes are skipped."""
        entries = []
        for domain, decision in await self.store.list_all():
            if decision == Decision.UNDETERMINED:
                continue
            entries.append(PolicyEntry(
                domain=domain,
                decision=decision,
                decision_name=decision.display_name,
            ))
        return entries

    async def delete(self, domains: Iterable[str]) -> int:
        """Delete the policies of ``domains``.

        Returns:
            Number of policies removed.
        """
        removed = 0
        for domain in domains:
            if await self.store.delete(domain):
                removed += 1
            else:
                logger.warning(f"No cookie policy deleted for {domain}")
        return removed

    async def delete_all(self) -> int:
        return await self.store.delete_all()
