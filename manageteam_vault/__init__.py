"""
ManageTeam Vault

Async HashiCorp Vault client for ManageTeam services: pluggable login
(Kubernetes service account by default), cached token with renewal before
expiry, and authenticated requests to the Vault API.
"""

from .client import (
    VaultClient,
    TOKEN_HEADER,
)
from .auth import (
    AuthResult,
    AuthStrategy,
    AUTH_METHODS,
    kubernetes_login,
    jwt_login,
    register_auth_method,
    resolve_auth_method,
)
from .token_manager import (
    TokenManager,
    TokenState,
)
from .transport import Transport
from .config import (
    VaultConfig,
    KubernetesAuthConfig,
    AuthMethod,
)
from .exceptions import (
    VaultError,
    VaultConfigurationError,
    VaultCredentialError,
    VaultAuthenticationError,
    VaultRequestError,
    ErrorHandler,
    default_error_handler,
)
from .result import (
    Result,
    Success,
    Failure,
)

__version__ = "1.0.0"

__all__ = [
    # Client
    "VaultClient",
    "TOKEN_HEADER",
    # Auth strategies
    "AuthResult",
    "AuthStrategy",
    "AUTH_METHODS",
    "kubernetes_login",
    "jwt_login",
    "register_auth_method",
    "resolve_auth_method",
    # Token lifecycle
    "TokenManager",
    "TokenState",
    "Transport",
    # Configuration
    "VaultConfig",
    "KubernetesAuthConfig",
    "AuthMethod",
    # Errors
    "VaultError",
    "VaultConfigurationError",
    "VaultCredentialError",
    "VaultAuthenticationError",
    "VaultRequestError",
    "ErrorHandler",
    "default_error_handler",
    # Results
    "Result",
    "Success",
    "Failure",
]
