"""
Reset Token Manager - One-time password-reset tokens

Module: security.authentication.reset_tokens
Date: 2026-10-17
Version: 0.1.0

CHANGELOG:
[2026-10-17 v0.1.0] Initial implementation
  - Random reset token issuance (raw value returned once)
  - SHA-256 digest persistence with expiry
  - Single-use redemption, cancellation

SECURITY NOTES:
- Only the digest is stored; the raw token cannot be rebuilt from it
- Lookup and expiry are one store condition: expired == unknown
- Redemption is one compare-and-set on the stored digest: single use
  even when the same token is submitted concurrently
"""

import hashlib
import logging
import secrets
import time
from typing import Callable, Optional

from ...core.constants import DEFAULT_RESET_TTL, RESET_TOKEN_BYTES
from ...persistence.principal_store import PrincipalRecord, PrincipalStore
from ..errors import InternalAuthError, InvalidOrExpiredResetToken


def digest_reset_token(raw_token: str) -> str:
    """Lowercase hex SHA-256 of the raw token's bytes"""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


class ResetTokenManager:
    """Issues and consumes password-reset tokens"""

    def __init__(
        self,
        store: PrincipalStore,
        reset_ttl: int = DEFAULT_RESET_TTL,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize reset token manager

        Args:
            store: Principal persistence
            reset_ttl: Reset token lifetime, seconds
            clock: Returns current epoch seconds (default time.time)
        """
        if reset_ttl <= 0:
            raise ValueError("Reset TTL must be positive")

        self.logger = logging.getLogger("security.reset_tokens")
        self.store = store
        self.reset_ttl = reset_ttl
        self.clock = clock or time.time

    def check_invariant(self, principal: PrincipalRecord) -> None:
        """
        Both reset fields set, or both clear

        Raises:
            InternalAuthError: If exactly one is set
        """
        if (principal.reset_token_digest is None) != (principal.reset_token_expiry is None):
            self.logger.error(
                f"Inconsistent reset state for {principal.principal_id[:8]} "
                f"(digest set={principal.reset_token_digest is not None}, "
                f"expiry set={principal.reset_token_expiry is not None})"
            )
            raise InternalAuthError()

    def issue(self, principal: PrincipalRecord) -> str:
        """
        Start a reset flow for the principal

        Args:
            principal: Principal (its reset fields are written)

        Returns:
            Raw token, to be delivered out-of-band; never stored

        Raises:
            InternalAuthError: Inconsistent reset state, or principal gone
        """
        self.check_invariant(principal)

        raw_token = secrets.token_hex(RESET_TOKEN_BYTES)
        digest = digest_reset_token(raw_token)
        expiry = self.clock() + self.reset_ttl
        if not self.store.update_fields(
            principal.principal_id,
            {"reset_token_digest": digest, "reset_token_expiry": expiry},
        ):
            self.logger.error(f"Reset not issued, principal missing: {principal.principal_id[:8]}")
            raise InternalAuthError()
        principal.reset_token_digest = digest
        principal.reset_token_expiry = expiry

        self.logger.info(f"Reset token issued for {principal.principal_id[:8]}")
        return raw_token

    def consume(self, raw_token: str) -> PrincipalRecord:
        """
        Resolve a raw token to its principal

        A lookup only: the token is spent by complete(), which the caller
        must then call with the new credential.

        Raises:
            InvalidOrExpiredResetToken: Unknown, already used, or expired
        """
        if not isinstance(raw_token, str) or not raw_token:
            raise InvalidOrExpiredResetToken()

        principal = self.store.find_by_reset_digest(digest_reset_token(raw_token), self.clock())
        if principal is None:
            raise InvalidOrExpiredResetToken()

        self.check_invariant(principal)
        return principal

    def cancel(self, principal: PrincipalRecord) -> None:
        """Clear the pending reset issued to this principal (e.g. delivery failed)"""
        if principal.reset_token_digest is None:
            return
        self.store.clear_reset(principal.principal_id, principal.reset_token_digest)
        principal.reset_token_digest = None
        principal.reset_token_expiry = None
        self.logger.info(f"Reset cancelled for {principal.principal_id[:8]}")

    def complete(self, principal: PrincipalRecord, credential_hash: str) -> None:
        """
        Redeem the reset returned by consume()

        One store compare-and-set: while the consumed digest is still stored
        and unexpired, set the new credential, clear the refresh slot and
        clear both reset fields. Of several callers holding the same token,
        exactly one gets through.

        Args:
            principal: Principal returned by consume()
            credential_hash: New stored credential

        Raises:
            InvalidOrExpiredResetToken: Already redeemed, replaced or expired
        """
        digest = principal.reset_token_digest
        if digest is None or not self.store.complete_reset(
            principal.principal_id, digest, self.clock(), credential_hash
        ):
            self.logger.warning(f"Reset redemption rejected for {principal.principal_id[:8]}")
            raise InvalidOrExpiredResetToken()

        principal.credential_hash = credential_hash
        principal.active_refresh_token = None
        principal.reset_token_digest = None
        principal.reset_token_expiry = None
        self.logger.info(f"Reset completed for {principal.principal_id[:8]}")
