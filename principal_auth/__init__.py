"""
principal-auth

Credential and token lifecycle for an HTTP-facing application: password
hashing, signed access/refresh tokens with single-active-token rotation,
and one-time password-reset tokens.

CHANGELOG:
[2026-10-17 v0.1.0] Initial release
  - Token codec, credential hasher, lifecycle and reset managers
  - JSON-file and in-memory principal stores
  - aiohttp adapter

ARCHITECTURE:
- Layer 1 : Transport (aiohttp HTTP adapter)
- Layer 2 : Service (AuthService flows, configuration)
- Layer 3 : Security (codec, hasher, lifecycle, reset tokens, errors)
- Layer 4 : Persistence & delivery (principal store, audit, reset delivery)

SECURITY NOTES:
- Constant-time comparison for signatures and credential digests
- One refresh token per principal; rotation on every use
- Secrets come from configuration, never from ambient state at call time
"""

__version__ = "0.1.0"

from .core.auth_service import AuthService
from .core.config import AuthConfig, ConfigError
from .persistence.principal_store import (
    InMemoryPrincipalStore,
    JSONPrincipalStore,
    PrincipalRecord,
    PrincipalStore,
)
from .security.authentication import (
    CredentialHasher,
    CredentialPolicy,
    HashParameters,
    ResetTokenManager,
    TokenCodec,
    TokenLifecycleManager,
    TokenPair,
)

__all__ = [
    "AuthService",
    "AuthConfig",
    "ConfigError",
    "PrincipalStore",
    "PrincipalRecord",
    "InMemoryPrincipalStore",
    "JSONPrincipalStore",
    "CredentialHasher",
    "CredentialPolicy",
    "HashParameters",
    "ResetTokenManager",
    "TokenCodec",
    "TokenLifecycleManager",
    "TokenPair",
]
