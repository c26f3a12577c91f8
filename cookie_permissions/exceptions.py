"""Exceptions for the cookie permission manager.

Statement-level database failures are logged by the policy store and
never raised. Only failures that leave the feature unusable are modelled
here.
"""

from typing import Optional


class CookiePermissionError(Exception):
    """Base cookie permission error."""

    def __init__(
        self,
        message: str = "Cookie permission manager error",
        error_code: str = "cookie_permission_error",
        details: Optional[dict] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ConfigError(CookiePermissionError):
    """Raised when the configuration file cannot be read or is invalid."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="invalid_config",
            details={"path": path} if path else {}
        )


class FatalStoreError(CookiePermissionError):
    """Raised when the policy store cannot be made usable."""

    def __init__(
        self,
        message: str,
        error_code: str = "store_failed",
        path: Optional[str] = None
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            details={"path": path} if path else {}
        )


class StoreOpenError(FatalStoreError):
    """Raised when the configuration folder or database file cannot be opened."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message=message, error_code="open_failed", path=path)


class SchemaInitError(FatalStoreError):
    """Raised when the database structure cannot be set up."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message=message, error_code="schema_init_failed", path=path)


class InterceptorStateError(CookiePermissionError):
    """Raised when the interceptor is installed twice."""

    def __init__(self, message: str = "Cookie interceptor is already installed"):
        super().__init__(message=message, error_code="interceptor_state")
