"""
Authentication errors

Module: security.errors
Date: 2026-10-17
Version: 0.1.0

CHANGELOG:
[2026-10-17 v0.1.0] Initial implementation
  - AuthError base with HTTP status
  - Token, credential, refresh and reset error kinds

ARCHITECTURE:
Every error a credential operation can raise derives from AuthError.
The HTTP adapter maps `status` to the response code and `message` to the
body; nothing here crashes the process.

SECURITY NOTES:
- Messages are safe to return to callers (no secrets, no account hints)
- CredentialMismatch is used for both "no account" and "wrong password"
"""


class AuthError(Exception):
    """Base authentication error"""

    status = 400
    default_message = "Authentication error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ============================================================================
# Token Codec errors
# ============================================================================

class TokenError(AuthError):
    """Base token error"""
    status = 401
    default_message = "Invalid token"


class MalformedToken(TokenError):
    """Token is not three segments or payload cannot be parsed"""
    default_message = "Malformed token"


class BadSignature(TokenError):
    """Token signature does not match"""
    default_message = "Invalid token signature"


class Expired(TokenError):
    """Token expiry is not in the future"""
    default_message = "Token expired"


# ============================================================================
# Lifecycle errors
# ============================================================================

class InvalidRefreshToken(TokenError):
    """Refresh token is not the principal's active one"""
    default_message = "Invalid refresh token"


class InvalidAccessToken(TokenError):
    """Access token does not resolve to a principal"""
    default_message = "Invalid access token"


class InvalidOrExpiredResetToken(AuthError):
    """No principal holds this reset token, or it expired"""
    status = 400
    default_message = "Invalid or expired reset token"


# ============================================================================
# Credential errors
# ============================================================================

class AccountNotActive(AuthError):
    """Principal exists but may not authenticate"""
    status = 403
    default_message = "Account is not active"


class WeakCredential(AuthError):
    """Secret does not satisfy the credential policy"""
    status = 400
    default_message = "Password does not meet the policy"


class CredentialMismatch(AuthError):
    """Unknown principal or wrong secret"""
    status = 401
    default_message = "Invalid email or password"


class DuplicatePrincipal(AuthError):
    """Email or phone already registered"""
    status = 400
    default_message = "Principal already registered"


class InvalidRequest(AuthError):
    """Required input missing or malformed"""
    status = 400
    default_message = "Invalid request"


# ============================================================================
# Collaborator / internal errors
# ============================================================================

class DeliveryFailed(AuthError):
    """Reset token could not be delivered"""
    status = 500
    default_message = "Failed to send reset email. Please try again later."


class InternalAuthError(AuthError):
    """Invariant violation detected in stored state"""
    status = 500
    default_message = "Internal authentication failure"
