"""
Cookie Permissions - per-domain cookie permission manager.

Stores one decision per domain (Accept, Accept for session, Block), applies
it to every cookie an HTTP session receives and asks the user about cookies
from domains without a decision.
"""

__version__ = "1.0.0"

from .config import PermissionConfig, load_config
from .exceptions import (
    ConfigError,
    CookiePermissionError,
    FatalStoreError,
    InterceptorStateError,
    SchemaInitError,
    StoreOpenError,
)
from .manager import CookiePermissionManager
from .models import AcceptPolicy, Cookie, Decision, ResponseMessage
from .preferences import PolicyPreferences

__all__ = [
    "__version__",
    "PermissionConfig",
    "load_config",
    "CookiePermissionError",
    "ConfigError",
    "FatalStoreError",
    "StoreOpenError",
    "SchemaInitError",
    "InterceptorStateError",
    "CookiePermissionManager",
    "PolicyPreferences",
    "AcceptPolicy",
    "Cookie",
    "Decision",
    "ResponseMessage",
]
