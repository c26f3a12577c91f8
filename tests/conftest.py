"""Shared test fixtures and configuration for cookie permission tests."""

import sys
from pathlib import Path
from typing import AsyncGenerator, List, Optional

import pytest
import pytest_asyncio

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from cookie_permissions.config import PermissionConfig
from cookie_permissions.http.jar import CookieJar
from cookie_permissions.http.session import HttpSession
from cookie_permissions.models import ConsentRequest, Cookie, Decision, FatalErrorNotice
from cookie_permissions.persistence.store import PolicyStore


class ScriptedInteraction:
    """User interaction answering consent prompts from a script.

    Every request is recorded; ``answers`` are handed out in order and the
    last one repeats.
    """

    def __init__(self, *answers: Optional[Decision]):
        self.answers: List[Optional[Decision]] = list(answers) or [None]
        self.requests: List[ConsentRequest] = []
        self.fatal_notices: List[FatalErrorNotice] = []

    async def ask(self, request: ConsentRequest) -> Optional[Decision]:
        self.requests.append(request)
        if len(self.answers) > 1:
            return self.answers.pop(0)
        return self.answers[0]

    async def notify_fatal(self, notice: FatalErrorNotice) -> None:
        self.fatal_notices.append(notice)


def make_cookie(domain: str, name: str = "id", value: str = "1", path: str = "/") -> Cookie:
    return Cookie(name=name, value=value, domain=domain, path=path)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Policy database location inside a not yet existing folder."""
    return tmp_path / "config" / "domains.db"


@pytest_asyncio.fixture
async def policy_store(db_path: Path) -> AsyncGenerator[PolicyStore, None]:
    """Opened policy store backed by a temporary file."""
    store = await PolicyStore.open(db_path)
    yield store
    await store.close()


@pytest.fixture
def permission_config(tmp_path: Path) -> PermissionConfig:
    return PermissionConfig(config_dir=tmp_path / "config")


@pytest.fixture
def cookie_jar() -> CookieJar:
    return CookieJar()


@pytest.fixture
def http_session(cookie_jar: CookieJar) -> HttpSession:
    return HttpSession(cookie_jar)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


@pytest.fixture
def interaction_factory():
    """Build scripted interactions: ``interaction_factory(Decision.ACCEPT)``."""
    return ScriptedInteraction


@pytest.fixture
def cookie_factory():
    """Build cookies: ``cookie_factory(".example.com", name="sid")``."""
    return make_cookie
