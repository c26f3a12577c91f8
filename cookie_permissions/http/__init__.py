"""HTTP-layer collaborators of the cookie engine.

- ``CookieJar``: live cookie store with change notifications
- ``HttpSession``: response hook slot the interceptor decorates
- ``HttpxCookieBridge``: feeds httpx responses into a session
"""

from .httpx_bridge import HttpxCookieBridge, parse_set_cookie
from .jar import CookieJar, JarObserver
from .session import HttpSession, ResponseHook, passes_accept_policy

__all__ = [
    "CookieJar",
    "JarObserver",
    "HttpSession",
    "ResponseHook",
    "passes_accept_policy",
    "HttpxCookieBridge",
    "parse_set_cookie",
]
