"""
Token Lifecycle Manager - Access/refresh pairs, rotation, revocation

Module: security.authentication.token_lifecycle
Date: 2026-10-17
Version: 0.1.0

CHANGELOG:
[2026-10-17 v0.1.0] Initial implementation
  - Access/refresh pair issuance with distinct secrets
  - Single active refresh token per principal
  - Rotation on refresh via store compare-and-set
  - Idempotent revocation

ARCHITECTURE:
Per principal: NoSession (no active refresh token) or Active.
  issue_pair:  NoSession|Active -> Active   (overwrites the slot)
  refresh:     Active -> Active             (only with the current token)
  revoke:      Active|NoSession -> NoSession

SECURITY NOTES:
- A refresh token is valid only while it equals the stored slot value
- Role and custom claims go into the access token only
- Refresh tokens carry a random jti so two issued in the same second differ
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ...core.constants import (
    CLAIM_ROLE,
    CLAIM_SUBJECT,
    CLAIM_TOKEN_ID,
    CLAIM_TOKEN_TYPE,
    DEFAULT_ACCESS_TTL,
    DEFAULT_REFRESH_TTL,
    MIN_SECRET_LENGTH,
    STATUS_ACTIVE,
    TOKEN_TYPE_ACCESS,
    TOKEN_TYPE_REFRESH,
)
from ...persistence.principal_store import PrincipalRecord, PrincipalStore
from ..errors import (
    AccountNotActive,
    CredentialMismatch,
    Expired,
    InvalidRefreshToken,
    MalformedToken,
    TokenError,
)
from .token_codec import TokenCodec


@dataclass
class TokenPair:
    """Access and refresh token pair"""
    access_token: str
    refresh_token: str
    access_expires_at: datetime
    refresh_expires_at: datetime
    token_type: str = "Bearer"
    principal_id: Optional[str] = None


class TokenLifecycleManager:
    """
    Issues, rotates and revokes token pairs.

    Signing is delegated to TokenCodec; the single-active-token rule is
    enforced by comparing against (and swapping) the value held by the
    PrincipalStore.
    """

    def __init__(
        self,
        store: PrincipalStore,
        access_secret: str,
        refresh_secret: str,
        codec: Optional[TokenCodec] = None,
        access_ttl: int = DEFAULT_ACCESS_TTL,
        refresh_ttl: int = DEFAULT_REFRESH_TTL,
    ):
        """
        Initialize lifecycle manager

        Args:
            store: Principal persistence
            access_secret: Key for access tokens (32+ characters)
            refresh_secret: Key for refresh tokens (32+ characters)
            codec: Token codec (carries the clock)
            access_ttl: Access token lifetime, seconds
            refresh_ttl: Refresh token lifetime, seconds

        Raises:
            ValueError: If a secret is too short or a TTL is not positive
        """
        for name, secret in (("access", access_secret), ("refresh", refresh_secret)):
            if not secret or len(secret) < MIN_SECRET_LENGTH:
                raise ValueError(f"{name} secret must be at least {MIN_SECRET_LENGTH} characters")
        if access_ttl <= 0 or refresh_ttl <= 0:
            raise ValueError("Token TTLs must be positive")

        self.logger = logging.getLogger("security.token_lifecycle")
        self.store = store
        self.codec = codec or TokenCodec()
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

        self.logger.info(
            f"TokenLifecycleManager initialized (access_ttl={access_ttl}s, "
            f"refresh_ttl={refresh_ttl}s)"
        )

    def _mint(self, principal: PrincipalRecord, claims: Optional[Dict[str, Any]]) -> TokenPair:
        access_claims = dict(claims or {})
        access_claims.update({
            CLAIM_SUBJECT: principal.principal_id,
            CLAIM_ROLE: principal.role,
            CLAIM_TOKEN_TYPE: TOKEN_TYPE_ACCESS,
        })
        access_token = self.codec.encode(access_claims, self._access_secret, self.access_ttl)

        refresh_token = self.codec.encode(
            {
                CLAIM_SUBJECT: principal.principal_id,
                CLAIM_TOKEN_TYPE: TOKEN_TYPE_REFRESH,
                CLAIM_TOKEN_ID: uuid.uuid4().hex,
            },
            self._refresh_secret,
            self.refresh_ttl,
        )

        now = self.codec.clock()
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            access_expires_at=datetime.fromtimestamp(int(now) + self.access_ttl, tz=timezone.utc),
            refresh_expires_at=datetime.fromtimestamp(int(now) + self.refresh_ttl, tz=timezone.utc),
            principal_id=principal.principal_id,
        )

    def issue_pair(
        self,
        principal: PrincipalRecord,
        claims: Optional[Dict[str, Any]] = None,
    ) -> TokenPair:
        """
        Issue a pair and make its refresh token the only valid one

        Only the refresh slot is written, and only while the stored account
        is still active and still holds principal.credential_hash (the
        credential the caller authenticated against).

        Args:
            principal: Principal to bind the tokens to
            claims: Extra access-token claims

        Returns:
            TokenPair

        Raises:
            AccountNotActive: Account deactivated or removed meanwhile
            CredentialMismatch: Credential changed meanwhile
        """
        pair = self._mint(principal, claims)
        if not self.store.update_fields(
            principal.principal_id,
            {"active_refresh_token": pair.refresh_token},
            expected={
                "account_status": STATUS_ACTIVE,
                "credential_hash": principal.credential_hash,
            },
        ):
            current = self.store.find_by_id(principal.principal_id)
            self.logger.warning(f"Pair not issued, principal changed: {principal.principal_id[:8]}")
            if current is None or not current.is_active:
                raise AccountNotActive()
            raise CredentialMismatch()
        principal.active_refresh_token = pair.refresh_token

        self.logger.info(f"Token pair issued for {principal.principal_id[:8]}")
        return pair

    def refresh(self, refresh_token: str) -> TokenPair:
        """
        Rotate: trade the current refresh token for a new pair

        Args:
            refresh_token: The principal's active refresh token

        Returns:
            New TokenPair; the presented token stops working

        Raises:
            MalformedToken, BadSignature, Expired: From the codec
            InvalidRefreshToken: Superseded, revoked, wrong type,
                unknown or inactive principal
        """
        payload = self.codec.decode(refresh_token, self._refresh_secret)

        if payload.get(CLAIM_TOKEN_TYPE) != TOKEN_TYPE_REFRESH:
            raise InvalidRefreshToken()

        principal_id = payload.get(CLAIM_SUBJECT)
        principal = self.store.find_by_id(principal_id) if isinstance(principal_id, str) else None
        if principal is None or not principal.is_active:
            raise InvalidRefreshToken()
        if principal.active_refresh_token != refresh_token:
            self.logger.warning(f"Superseded refresh token presented for {principal_id[:8]}")
            raise InvalidRefreshToken()

        pair = self._mint(principal, None)
        if not self.store.swap_refresh_token(principal_id, refresh_token, pair.refresh_token):
            # Lost a race with another refresh/logout on the same token
            self.logger.warning(f"Refresh rotation lost race for {principal_id[:8]}")
            raise InvalidRefreshToken()

        self.logger.info(f"Token pair rotated for {principal_id[:8]}")
        return pair

    def revoke(self, principal: PrincipalRecord) -> None:
        """Clear the refresh slot (idempotent)"""
        self.store.update_fields(principal.principal_id, {"active_refresh_token": None})
        principal.active_refresh_token = None
        self.logger.info(f"Refresh token revoked for {principal.principal_id[:8]}")

    def revoke_by_token(self, refresh_token: str) -> Optional[PrincipalRecord]:
        """
        Logout by refresh token. Never raises.

        Expired tokens are still honoured (the slot is cleared) as long as
        the signature is good and the token is the active one.

        Returns:
            The revoked principal, or None if nothing was revoked
        """
        try:
            payload = self.codec.decode(refresh_token, self._refresh_secret)
        except Expired:
            payload = self._decode_ignoring_expiry(refresh_token)
        except TokenError:
            return None
        if payload is None:
            return None

        principal_id = payload.get(CLAIM_SUBJECT)
        if not isinstance(principal_id, str):
            return None
        if not self.store.swap_refresh_token(principal_id, refresh_token, None):
            return None

        self.logger.info(f"Refresh token revoked for {principal_id[:8]} (logout)")
        return self.store.find_by_id(principal_id)

    def _decode_ignoring_expiry(self, token: str) -> Optional[Dict[str, Any]]:
        codec = TokenCodec(clock=lambda: float("-inf"))
        try:
            return codec.decode(token, self._refresh_secret)
        except TokenError:
            return None

    def verify_access(self, access_token: str) -> Dict[str, Any]:
        """
        Decode an access token

        Raises:
            MalformedToken, BadSignature, Expired: From the codec,
                MalformedToken also when the token is not an access token
        """
        payload = self.codec.decode(access_token, self._access_secret)
        if payload.get(CLAIM_TOKEN_TYPE) != TOKEN_TYPE_ACCESS:
            raise MalformedToken("Not an access token")
        return payload
