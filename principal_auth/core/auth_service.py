"""
Auth Service - Credential lifecycle flows

Module: core.auth_service
Date: 2026-10-17
Version: 0.1.0

CHANGELOG:
[2026-10-17 v0.1.0] Initial implementation
  - register / login / refresh / logout
  - change_password / forgot_password / reset_password
  - me (access token -> active principal)
  - account status changes
  - Audit trail for every flow

ARCHITECTURE:
AuthService wires the components together and is what the HTTP adapter
calls. It takes plain values and raises security.errors kinds:
  CredentialHasher      - hash / verify / policy
  TokenLifecycleManager - pairs, rotation, revocation
  ResetTokenManager     - reset issue / consume / complete
  PrincipalStore        - persistence
  ResetDelivery         - out-of-band token delivery
  AuditLogger           - event trail

SECURITY NOTES:
- Unknown email and wrong password are the same error at the same cost
- Account status is revealed only after the password verified
- forgot_password answers the same for known and unknown emails
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from ..delivery.reset_delivery import LoggingResetDelivery, ResetDelivery
from ..persistence.audit_store import AuditLogger, EventType
from ..persistence.principal_store import PrincipalRecord, PrincipalStore
from ..security.authentication.credential_hasher import CredentialHasher, CredentialPolicy
from ..security.authentication.reset_tokens import ResetTokenManager
from ..security.authentication.token_codec import TokenCodec
from ..security.authentication.token_lifecycle import TokenLifecycleManager, TokenPair
from ..security.errors import (
    AccountNotActive,
    CredentialMismatch,
    DeliveryFailed,
    DuplicatePrincipal,
    InvalidAccessToken,
    InvalidRequest,
    TokenError,
)
from .config import AuthConfig
from .constants import (
    ACCOUNT_STATUSES,
    CLAIM_SUBJECT,
    PRINCIPAL_TYPES,
    PRINCIPAL_USER,
    STATUS_ACTIVE,
)


def _normalize_email(email: Optional[str]) -> Optional[str]:
    return email.strip().lower() if isinstance(email, str) else email


class AuthService:
    """
    Credential lifecycle facade.

    Build it with from_config() for production wiring, or pass components
    directly (tests inject clocks, cheap hash parameters, outboxes).
    """

    def __init__(
        self,
        store: PrincipalStore,
        hasher: CredentialHasher,
        lifecycle: TokenLifecycleManager,
        resets: ResetTokenManager,
        delivery: Optional[ResetDelivery] = None,
        audit: Optional[AuditLogger] = None,
        policy: Optional[CredentialPolicy] = None,
    ):
        self.logger = logging.getLogger("core.auth_service")
        self.store = store
        self.hasher = hasher
        self.lifecycle = lifecycle
        self.resets = resets
        self.delivery = delivery or LoggingResetDelivery()
        self.audit = audit or AuditLogger()
        self.policy = policy or CredentialPolicy()

    @classmethod
    def from_config(
        cls,
        config: AuthConfig,
        store: PrincipalStore,
        delivery: Optional[ResetDelivery] = None,
        audit: Optional[AuditLogger] = None,
        clock=None,
    ) -> "AuthService":
        """
        Wire all components from configuration

        Args:
            config: Validated AuthConfig
            store: Principal persistence
            delivery: Reset delivery (default: logging only)
            audit: Audit logger (default: in-memory)
            clock: Epoch-seconds clock shared by codec and reset manager
        """
        config.validate()
        codec = TokenCodec(clock=clock)
        lifecycle = TokenLifecycleManager(
            store,
            access_secret=config.access_secret,
            refresh_secret=config.refresh_secret,
            codec=codec,
            access_ttl=config.access_ttl,
            refresh_ttl=config.refresh_ttl,
        )
        return cls(
            store=store,
            hasher=CredentialHasher(config.hash_parameters),
            lifecycle=lifecycle,
            resets=ResetTokenManager(store, reset_ttl=config.reset_ttl, clock=clock),
            delivery=delivery,
            audit=audit,
            policy=config.credential_policy,
        )

    # ------------------------------------------------------------------
    # Registration and login
    # ------------------------------------------------------------------

    def register(
        self,
        first_name: str,
        last_name: str,
        email: str,
        phone: str,
        password: str,
        role: str = PRINCIPAL_USER,
    ) -> Tuple[PrincipalRecord, TokenPair]:
        """
        Create a principal and log it in

        Raises:
            InvalidRequest: Missing field or unknown role
            WeakCredential: Password fails the policy
            DuplicatePrincipal: Email or phone already registered
        """
        if not all([first_name, last_name, email, phone, password]):
            raise InvalidRequest("All fields are required")
        if role not in PRINCIPAL_TYPES:
            raise InvalidRequest(f"Unknown role: {role}")

        self.policy.check(password)

        email = _normalize_email(email)
        existing = self.store.find_by_credential_lookup({"email": email, "phone": phone})
        if existing is not None:
            if existing.email == email:
                raise DuplicatePrincipal("Email already registered")
            raise DuplicatePrincipal("Phone number already registered")

        principal = PrincipalRecord.new(
            credential_hash=self.hasher.hash(password),
            email=email,
            phone=phone,
            first_name=first_name,
            last_name=last_name,
            role=role,
        )
        self.store.save(principal)
        pair = self.lifecycle.issue_pair(principal)

        self.audit.log_event(EventType.REGISTER, principal.principal_id, details={"role": role})
        self.logger.info(f"Principal registered: {principal.principal_id[:8]} ({role})")
        return principal, pair

    def login(self, email: str, password: str) -> Tuple[PrincipalRecord, TokenPair]:
        """
        Verify credentials and issue a new pair (replacing any session)

        Raises:
            InvalidRequest: Missing email or password
            CredentialMismatch: Unknown email or wrong password
            AccountNotActive: Right password, inactive account
        """
        if not email or not password:
            raise InvalidRequest("Email and password are required")

        principal = self.store.find_by_credential_lookup({"email": _normalize_email(email)})
        if principal is None:
            self.hasher.dummy_verify(password)
            self.audit.log_failure(EventType.LOGIN_FAILED, "unknown principal")
            raise CredentialMismatch()

        if not self.hasher.verify(password, principal.credential_hash):
            self.audit.log_failure(EventType.LOGIN_FAILED, "wrong credential", principal.principal_id)
            raise CredentialMismatch()

        if not principal.is_active:
            self.audit.log_failure(EventType.LOGIN_FAILED, "account not active", principal.principal_id)
            raise AccountNotActive()

        changes = {"last_login": datetime.now(timezone.utc)}
        if self.hasher.needs_rehash(principal.credential_hash):
            changes["credential_hash"] = self.hasher.hash(password)

        # Only if nothing changed while the password was being verified
        if not self.store.update_fields(
            principal.principal_id,
            changes,
            expected={"credential_hash": principal.credential_hash, "account_status": STATUS_ACTIVE},
        ):
            self.audit.log_failure(EventType.LOGIN_FAILED, "principal changed during login", principal.principal_id)
            current = self.store.find_by_id(principal.principal_id)
            if current is None or not current.is_active:
                raise AccountNotActive()
            raise CredentialMismatch()
        if "credential_hash" in changes:
            self.logger.info(f"Credential rehashed for {principal.principal_id[:8]}")
        principal.credential_hash = changes.get("credential_hash", principal.credential_hash)
        principal.last_login = changes["last_login"]

        pair = self.lifecycle.issue_pair(principal)

        self.audit.log_event(EventType.LOGIN_SUCCESS, principal.principal_id)
        return principal, pair

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def refresh(self, refresh_token: str) -> TokenPair:
        """
        Rotate a refresh token

        Raises:
            InvalidRequest: No token given
            MalformedToken, BadSignature, Expired, InvalidRefreshToken
        """
        if not refresh_token:
            raise InvalidRequest("Refresh token required")
        try:
            pair = self.lifecycle.refresh(refresh_token)
        except TokenError as e:
            self.audit.log_failure(EventType.TOKEN_REFRESH_FAILED, type(e).__name__)
            raise

        self.audit.log_event(EventType.TOKEN_REFRESH, pair.principal_id)
        return pair

    def logout(self, refresh_token: str) -> None:
        """
        End the session holding this refresh token. Always succeeds.

        Raises:
            InvalidRequest: No token given
        """
        if not refresh_token:
            raise InvalidRequest("Refresh token required")
        principal = self.lifecycle.revoke_by_token(refresh_token)
        if principal is not None:
            self.audit.log_event(EventType.LOGOUT, principal.principal_id)

    def me(self, access_token: str) -> PrincipalRecord:
        """
        Resolve an access token to its (still active) principal

        Raises:
            MalformedToken, BadSignature, Expired: Token rejected
            InvalidAccessToken: Principal no longer exists
            AccountNotActive: Principal deactivated since issuance
        """
        if not access_token:
            raise InvalidAccessToken("Access token required")
        payload = self.lifecycle.verify_access(access_token)

        principal_id = payload.get(CLAIM_SUBJECT)
        principal = self.store.find_by_id(principal_id) if isinstance(principal_id, str) else None
        if principal is None:
            raise InvalidAccessToken("User not found")
        if not principal.is_active:
            raise AccountNotActive()
        return principal

    # ------------------------------------------------------------------
    # Credential changes
    # ------------------------------------------------------------------

    def change_password(self, principal_id: str, current_password: str, new_password: str) -> None:
        """
        Replace the credential and end the current session

        Raises:
            InvalidRequest: Missing input
            InvalidAccessToken: Principal gone
            CredentialMismatch: Current password wrong
            WeakCredential: New password fails the policy
        """
        if not current_password or not new_password:
            raise InvalidRequest("Current password and new password are required")
        self.policy.check(new_password)

        principal = self.store.find_by_id(principal_id)
        if principal is None:
            raise InvalidAccessToken("User not found")

        if not self.hasher.verify(current_password, principal.credential_hash):
            raise CredentialMismatch("Current password is incorrect")

        # Replace only the credential that was just verified; ends the session too
        new_hash = self.hasher.hash(new_password)
        if not self.store.update_fields(
            principal.principal_id,
            {"credential_hash": new_hash, "active_refresh_token": None},
            expected={"credential_hash": principal.credential_hash},
        ):
            raise CredentialMismatch("Current password is incorrect")

        self.audit.log_event(EventType.PASSWORD_CHANGED, principal.principal_id)
        self.logger.info(f"Password changed for {principal_id[:8]}")

    def forgot_password(self, email: str) -> None:
        """
        Issue and deliver a reset token if the email is known

        Unknown emails return normally, like known ones.

        Raises:
            InvalidRequest: No email given
            DeliveryFailed: Delivery failed (reset state rolled back)
        """
        if not email:
            raise InvalidRequest("Email is required")

        principal = self.store.find_by_credential_lookup({"email": _normalize_email(email)})
        if principal is None:
            return

        raw_token = self.resets.issue(principal)
        result = self.delivery.deliver(principal.email, raw_token, principal.display_name)

        if not result.success:
            self.resets.cancel(principal)
            self.audit.log_failure(
                EventType.RESET_DELIVERY_FAILED,
                result.error or "delivery failed",
                principal.principal_id,
            )
            raise DeliveryFailed()

        self.audit.log_event(EventType.RESET_REQUESTED, principal.principal_id)

    def reset_password(self, raw_token: str, new_password: str) -> None:
        """
        Consume a reset token and set a new credential

        Raises:
            InvalidRequest: Missing input
            WeakCredential: New password fails the policy
            InvalidOrExpiredResetToken: Token unknown, used or expired
        """
        if not raw_token or not new_password:
            raise InvalidRequest("Token and new password are required")
        self.policy.check(new_password)

        principal = self.resets.consume(raw_token)
        self.resets.complete(principal, self.hasher.hash(new_password))

        self.audit.log_event(EventType.RESET_COMPLETED, principal.principal_id)

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def set_account_status(self, principal_id: str, status: str) -> PrincipalRecord:
        """
        Change account status; leaving `active` also ends the session

        Raises:
            InvalidRequest: Unknown status or principal
        """
        if status not in ACCOUNT_STATUSES:
            raise InvalidRequest(f"Unknown account status: {status}")
        principal = self.store.find_by_id(principal_id)
        if principal is None:
            raise InvalidRequest("Unknown principal")

        previous = principal.account_status
        changes = {"account_status": status}
        if status != STATUS_ACTIVE:
            changes["active_refresh_token"] = None
        if not self.store.update_fields(principal_id, changes):
            raise InvalidRequest("Unknown principal")
        principal.account_status = status
        if not principal.is_active:
            principal.active_refresh_token = None

        self.audit.log_event(
            EventType.ACCOUNT_STATUS_CHANGED,
            principal_id,
            details={"from": previous, "to": status},
        )
        return principal
