"""Cookie policy decision engine.

This package decides per domain whether cookies may be stored:

- ``PolicyResolver`` looks up the stored decision covering a cookie domain
- ``ConsentPrompt`` asks the user once per batch of undecided cookies and
  stores the answer once per distinct domain
- ``CookieInterceptor`` applies decisions to response and out-of-band cookies
- ``purge_expired_session_cookies`` drops session-only approvals at store open
"""

from .cleanup import purge_expired_session_cookies
from .interceptor import CookieInterceptor, InterceptionResult
from .prompt import PROMPT_CHOICES, PROMPT_TITLE, ConsentBatch, ConsentPrompt, UserInteraction
from .resolver import PolicyResolver

__all__ = [
    "PolicyResolver",
    "ConsentBatch",
    "ConsentPrompt",
    "UserInteraction",
    "PROMPT_CHOICES",
    "PROMPT_TITLE",
    "CookieInterceptor",
    "InterceptionResult",
    "purge_expired_session_cookies",
]
