"""
Error taxonomy and the default error-handling policy
"""

from typing import Any, Awaitable, Callable, Optional, Union


class VaultError(Exception):
    """Base class for every error raised by this library"""
    pass


class VaultConfigurationError(VaultError):
    """Invalid client setup; always fatal, never passed to the error handler"""
    pass


class VaultCredentialError(VaultConfigurationError):
    """Credential file for the auth method is missing"""
    pass


class VaultAuthenticationError(VaultError):
    """Login against Vault failed or returned an unexpected payload"""
    pass


class VaultRequestError(VaultError):
    """Authenticated request to Vault failed"""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Any = None,
    ):
        super().__init__(message)
        self.method = method
        self.url = url
        self.status_code = status_code
        self.response_body = response_body


ErrorHandler = Callable[[VaultError], Union[Any, Awaitable[Any]]]


def _library_class(error: BaseException) -> type:
    library_errors = (
        VaultRequestError,
        VaultAuthenticationError,
        VaultCredentialError,
        VaultConfigurationError,
    )
    for cls in type(error).__mro__:
        if cls in library_errors:
            return cls
    return VaultError


def default_error_handler(error: VaultError) -> Any:
    """Re-raise every routed error, keeping its class so callers can catch it"""
    message = f"ManageTeamVault module error: {error}"
    cls = type(error) if isinstance(error, VaultError) else VaultError
    try:
        wrapped = cls(message)
    except TypeError:
        # Subclass with a custom constructor: fall back to the closest library class
        wrapped = _library_class(error)(message)
    if isinstance(error, VaultRequestError):
        wrapped.method = error.method
        wrapped.url = error.url
        wrapped.status_code = error.status_code
        wrapped.response_body = error.response_body
    raise wrapped from error
