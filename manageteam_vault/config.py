"""
Configuration models for the ManageTeam Vault client
"""

import os
import re
from enum import Enum
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


LOCAL_ENVIRONMENTS = ("local", "test")


class AuthMethod(str, Enum):
    """Built-in Vault authentication methods"""
    KUBERNETES = "kubernetes"
    JWT = "jwt"


class KubernetesAuthConfig(BaseSettings):
    """Kubernetes service account used for Vault login"""

    model_config = SettingsConfigDict(
        env_prefix="K8S_SERVICE_ACCOUNT_",
        case_sensitive=False,
        frozen=True,
    )

    name: str = Field(
        default="blockchain",
        description="Service account name, used as the Vault role"
    )
    token_path: str = Field(
        default="/var/run/secrets/kubernetes.io/serviceaccount/token",
        description="Mounted service account token"
    )


class VaultConfig(BaseSettings):
    """Vault client configuration, resolved once and immutable afterwards"""

    model_config = SettingsConfigDict(
        env_prefix="VAULT_",
        case_sensitive=False,
        validate_default=True,
        frozen=True,
    )

    base_url: str = Field(
        default="vault.nonprod.manageteam.internal:8200/v1",
        description="Vault API origin, always normalized to https"
    )
    ca_cert_path: str = Field(
        default="/var/run/secrets/vault/ca.crt",
        description="CA certificate trusted when TLS verification is enabled"
    )
    token: str = Field(
        default="",
        description="Static token; bypasses the auth method when set"
    )
    auth_method: str = Field(
        default=AuthMethod.KUBERNETES.value,
        description="Registered auth method name"
    )
    ignore_ssl_cert_check: Optional[bool] = Field(
        default=None,
        description="Skip TLS verification (defaults to on for local and test environments)"
    )
    env_name: str = Field(
        default_factory=lambda: os.environ.get("APP__ENV_NAME", ""),
        description="Deployment environment name"
    )
    namespace: str = Field(
        default="",
        description="Vault namespace for multi-tenancy"
    )
    timeout_seconds: float = Field(
        default=5,
        gt=0,
        le=300,
        description="Transport timeout in seconds"
    )
    renewal_cliff_seconds: float = Field(
        default=30,
        ge=0,
        description="Renew the token when less than this many seconds remain"
    )
    static_token_ttl_seconds: int = Field(
        default=31 * 24 * 60 * 60,
        ge=1,
        description="Validity horizon assumed for a static token"
    )
    serialize_renewal: bool = Field(
        default=True,
        description="Let concurrent callers share a single in-flight renewal"
    )
    redact_token_in_errors: bool = Field(
        default=False,
        description="Hide the token in request error messages"
    )
    jwt_path: str = Field(
        default="/var/run/secrets/tokens/vault-token",
        description="JWT file for the jwt auth method"
    )
    kubernetes: KubernetesAuthConfig = Field(default_factory=KubernetesAuthConfig)

    @field_validator("base_url")
    @classmethod
    def normalize_base_url(cls, v: str) -> str:
        """Force an https origin without a trailing slash"""
        host = re.sub(r"^https?://", "", v.strip())
        if host.endswith("/"):
            host = host[:-1]
        if not host:
            raise ValueError(f"Invalid Vault base_url ({v!r})")
        return f"https://{host}"

    @property
    def skip_tls_verify(self) -> bool:
        if self.ignore_ssl_cert_check is not None:
            return self.ignore_ssl_cert_check
        return self.env_name in LOCAL_ENVIRONMENTS
