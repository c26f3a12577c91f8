"""Lifecycle of the cookie permission manager.

Start-up opens the policy store, expires session-only approvals and installs
the interceptor on the HTTP session. Shutdown undoes this in reverse order.
A store that cannot be opened is reported to the user exactly once and
leaves the manager disabled; the session then keeps its native cookie
handling.
"""

import logging
from typing import Optional

from .config import PermissionConfig
from .engine.cleanup import purge_expired_session_cookies
from .engine.interceptor import CookieInterceptor
from .engine.prompt import ConsentPrompt, UserInteraction
from .engine.resolver import PolicyResolver
from .exceptions import FatalStoreError
from .http.session import HttpSession
from .models import FatalErrorNotice
from .persistence.store import PolicyStore
from .preferences import PolicyPreferences

logger = logging.getLogger(__name__)

FATAL_ERROR_TITLE = "Error in cookie permission manager"
FATAL_ERROR_MESSAGE = (
    "A fatal error occurred which prevents the cookie permission manager "
    "to continue. You should disable it."
)


class CookiePermissionManager:
    """Wires the policy store and the decision engine into an HTTP session."""

    def __init__(
        self,
        session: HttpSession,
        interaction: UserInteraction,
        config: Optional[PermissionConfig] = None
    ):
        """Initialize the manager.

        Args:
            session: HTTP session to govern
            interaction: User-facing prompt and error notification
            config: Settings; defaults are used when omitted
        """
        self.session = session
        self.interaction = interaction
        self.config = config or PermissionConfig()

        self.store: Optional[PolicyStore] = None
        self.interceptor: Optional[CookieInterceptor] = None

    @property
    def is_active(self) -> bool:
        return self.interceptor is not None and self.interceptor.is_installed

    @property
    def preferences(self) -> PolicyPreferences:
        if self.store is None:
            raise RuntimeError("Cookie permission manager is not started")
        return PolicyPreferences(self.store)

    async def start(self) -> bool:
        """Open the store, purge session cookies and install the interceptor.

        Returns:
            False if the store could not be opened; the user has been told.
        """
        if self.is_active:
            return True

        try:
            self.store = await PolicyStore.open(
                self.config.database_path,
                journal_mode=self.config.journal_mode,
                echo=self.config.echo_sql,
            )
        except FatalStoreError as e:
            logger.error(f"Cookie permission manager disabled: {e.message}")
            await self.interaction.notify_fatal(FatalErrorNotice(
                title=FATAL_ERROR_TITLE,
                message=FATAL_ERROR_MESSAGE,
                reason=e.message,
            ))
            return False

        await purge_expired_session_cookies(self.store, self.session.jar)

        resolver = PolicyResolver(self.store)
        prompt = ConsentPrompt(self.store, self.interaction)
        self.interceptor = CookieInterceptor(self.session, resolver, prompt)
        self.interceptor.install()

        logger.info("Cookie permission manager started")
        return True

    async def stop(self) -> None:
        """Uninstall the interceptor and close the store."""
        try:
            if self.interceptor is not None:
                await self.interceptor.drain()
                self.interceptor.uninstall()
        finally:
            self.interceptor = None
            if self.store is not None:
                await self.store.close()
                self.store = None
        logger.info("Cookie permission manager stopped")

    async def __aenter__(self) -> "CookiePermissionManager":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()
