"""
Authentication module - tokens, credentials and resets

Provides:
- TokenCodec: HS256 compact token encode/decode
- CredentialHasher: scrypt / bcrypt_pbkdf password hashing
- TokenLifecycleManager: access/refresh pairs, rotation, revocation
- ResetTokenManager: one-time password-reset tokens
"""

from .token_codec import TokenCodec
from .credential_hasher import (
    CredentialHasher,
    CredentialPolicy,
    HashParameters,
)
from .token_lifecycle import TokenLifecycleManager, TokenPair
from .reset_tokens import ResetTokenManager, digest_reset_token

__all__ = [
    "TokenCodec",
    "CredentialHasher",
    "CredentialPolicy",
    "HashParameters",
    "TokenLifecycleManager",
    "TokenPair",
    "ResetTokenManager",
    "digest_reset_token",
]
