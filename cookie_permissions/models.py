"""Pydantic models for cookie permission decisions.

This module defines the decision codes persisted per domain, the cookie
records flowing through the interceptor, and the small value objects passed
between the engine and its collaborators (jar notifications, consent
requests, fatal error notices).
"""

import logging
from datetime import datetime
from enum import Enum, IntEnum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class Decision(IntEnum):
    """Per-domain cookie decision.

    The integer values are the codes stored in the ``policies`` table and
    must never be renumbered. ``UNDETERMINED`` is never written: it is the
    meaning of "no row".
    """
    UNDETERMINED = 0
    ACCEPT = 1
    ACCEPT_FOR_SESSION = 2
    BLOCK = 3

    @property
    def display_name(self) -> str:
        """Human-readable name used by the preferences listing."""
        return _DECISION_NAMES[self]

    @property
    def keeps_cookie(self) -> bool:
        return self in (Decision.ACCEPT, Decision.ACCEPT_FOR_SESSION)

    @classmethod
    def from_code(cls, code: Optional[int]) -> "Decision":
        """Convert a stored code, treating unknown codes as undetermined."""
        try:
            return cls(code)
        except (ValueError, TypeError):
            logger.warning(f"Unknown cookie policy code in database: {code!r}")
            return cls.UNDETERMINED


_DECISION_NAMES = {
    Decision.UNDETERMINED: "Undetermined",
    Decision.ACCEPT: "Accept",
    Decision.ACCEPT_FOR_SESSION: "Accept for session",
    Decision.BLOCK: "Block",
}


class AcceptPolicy(str, Enum):
    """Session-wide cookie acceptance mode of the HTTP layer."""
    ALWAYS = "always"
    NO_THIRD_PARTY = "no_third_party"
    NEVER = "never"


class Cookie(BaseModel):
    """Cookie offered by a response or added to the jar.

    A domain starting with ``.`` denotes a domain cookie (the domain and all
    of its subdomains); otherwise the cookie is host-only.
    """

    name: str = Field(description="Cookie name")
    value: str = Field(default="", description="Cookie value")
    domain: str = Field(description="Cookie domain, optionally with a leading dot")
    path: str = Field(default="/", description="Cookie path")

    expires: Optional[datetime] = Field(default=None, description="Expiration time")
    max_age: Optional[int] = Field(default=None, description="Max age in seconds")
    secure: bool = Field(default=False, description="Secure flag")
    http_only: bool = Field(default=False, description="HttpOnly flag")
    same_site: Optional[str] = Field(default=None, description="SameSite attribute")

    @field_validator('domain')
    @classmethod
    def validate_domain(cls, v):
        """Reject empty domains; policy matching needs one."""
        if not v or not v.strip('.'):
            raise ValueError("Cookie domain must be a non-empty string")
        return v.strip()

    @property
    def host(self) -> str:
        """Domain without the leading domain-cookie dot."""
        return self.domain[1:] if self.domain.startswith('.') else self.domain

    @property
    def is_domain_cookie(self) -> bool:
        return self.domain.startswith('.')

    @property
    def key(self) -> Tuple[str, str, str]:
        """Identity of the cookie inside a jar."""
        return (self.domain.lower(), self.path, self.name)

    def __str__(self) -> str:
        return f"{self.name}@{self.domain}{self.path}"


class ResponseMessage(BaseModel):
    """Already-parsed HTTP response as seen by the cookie engine."""

    url: str = Field(description="URL of the response")
    status_code: int = Field(default=200, description="HTTP status code")
    cookies: List[Cookie] = Field(
        default_factory=list,
        description="Cookies parsed from Set-Cookie headers, in header order"
    )
    first_party_host: Optional[str] = Field(
        default=None,
        description="Host of the page that initiated the request"
    )

    def without_cookies(self) -> "ResponseMessage":
        """Copy of the message whose cookies were consumed by the engine."""
        return self.model_copy(update={"cookies": []})


class CookieChange(BaseModel):
    """Jar change notification.

    ``old is None`` means an addition, ``new is None`` a removal, both set a
    replacement of an existing cookie.
    """

    old: Optional[Cookie] = None
    new: Optional[Cookie] = None

    @property
    def is_new_cookie(self) -> bool:
        return self.new is not None and self.old is None


class PolicyEntry(BaseModel):
    """Stored policy as listed by the preferences view."""

    domain: str
    decision: Decision
    decision_name: str


class ConsentChoice(BaseModel):
    """One button of a consent prompt."""

    label: str
    decision: Decision


class ConsentRequest(BaseModel):
    """Question presented to the user for a batch of undecided cookies."""

    title: str
    message: str
    domain_count: int
    cookie_count: int
    domains: List[str] = Field(default_factory=list)
    choices: List[ConsentChoice] = Field(default_factory=list)


class FatalErrorNotice(BaseModel):
    """Unrecoverable failure reported once to the user."""

    title: str
    message: str
    reason: str
