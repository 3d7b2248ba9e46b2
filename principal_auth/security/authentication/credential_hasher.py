"""
Credential Hasher - Password hashing and policy

Module: security.authentication.credential_hasher
Date: 2026-10-17
Version: 0.1.0

CHANGELOG:
[2026-10-17 v0.1.0] Initial implementation
  - scrypt hashing (memory-hard, default)
  - bcrypt_pbkdf hashing via bcrypt.kdf
  - Self-describing stored form "<tag>$<salt-hex>$<digest-hex>"
  - Constant-time verification, never raises on bad stored forms
  - Rehash detection and credential policy

ARCHITECTURE:
CredentialHasher provides:
  - hash(secret) with a fresh random salt
  - verify(secret, stored) dispatching on the algorithm tag
  - needs_rehash(stored) against the configured parameters
CredentialPolicy provides:
  - Minimum length and optional character-class rules

SECURITY NOTES:
- Cost parameters travel inside the tag, e.g. "scrypt:16384:8:1"
- Parameters parsed from a stored form are bounded before use
- Digests compared with hmac.compare_digest
"""

import hashlib
import hmac
import logging
import re
import secrets
from dataclasses import dataclass
from typing import Optional, Tuple

import bcrypt

from ...core.constants import (
    ALGORITHM_BCRYPT_PBKDF,
    ALGORITHM_SCRYPT,
    DEFAULT_BCRYPT_ROUNDS,
    DEFAULT_DIGEST_BYTES,
    DEFAULT_HASH_ALGORITHM,
    DEFAULT_PASSWORD_MIN_LENGTH,
    DEFAULT_SALT_BYTES,
    DEFAULT_SCRYPT_N,
    DEFAULT_SCRYPT_P,
    DEFAULT_SCRYPT_R,
    HASH_PARAM_SEPARATOR,
    HASH_SEGMENT_SEPARATOR,
    MAX_BCRYPT_ROUNDS,
    MAX_SCRYPT_N,
    MAX_SCRYPT_P,
    MAX_SCRYPT_R,
    MIN_SALT_BYTES,
    SUPPORTED_HASH_ALGORITHMS,
)
from ..errors import WeakCredential


class StoredFormError(ValueError):
    """Stored credential cannot be parsed"""
    pass


@dataclass(frozen=True)
class HashParameters:
    """Cost parameters for the configured algorithm"""
    algorithm: str = DEFAULT_HASH_ALGORITHM
    scrypt_n: int = DEFAULT_SCRYPT_N
    scrypt_r: int = DEFAULT_SCRYPT_R
    scrypt_p: int = DEFAULT_SCRYPT_P
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS
    salt_bytes: int = DEFAULT_SALT_BYTES
    digest_bytes: int = DEFAULT_DIGEST_BYTES

    def validate(self) -> None:
        """Raise ValueError if parameters are unusable"""
        if self.algorithm not in SUPPORTED_HASH_ALGORITHMS:
            raise ValueError(f"Unsupported hash algorithm: {self.algorithm}")
        _check_scrypt_cost(self.scrypt_n, self.scrypt_r, self.scrypt_p)
        _check_bcrypt_rounds(self.bcrypt_rounds)
        if self.salt_bytes < MIN_SALT_BYTES:
            raise ValueError(f"Salt must be at least {MIN_SALT_BYTES} bytes")
        if self.digest_bytes < 16:
            raise ValueError("Digest must be at least 16 bytes")

    @property
    def tag(self) -> str:
        """Algorithm tag with embedded cost"""
        if self.algorithm == ALGORITHM_SCRYPT:
            return HASH_PARAM_SEPARATOR.join(
                [ALGORITHM_SCRYPT, str(self.scrypt_n), str(self.scrypt_r), str(self.scrypt_p)]
            )
        return HASH_PARAM_SEPARATOR.join([ALGORITHM_BCRYPT_PBKDF, str(self.bcrypt_rounds)])


def _check_scrypt_cost(n: int, r: int, p: int) -> None:
    if n < 2 or n > MAX_SCRYPT_N or n & (n - 1):
        raise ValueError(f"scrypt N must be a power of two in [2, {MAX_SCRYPT_N}]")
    if not 1 <= r <= MAX_SCRYPT_R:
        raise ValueError(f"scrypt r must be in [1, {MAX_SCRYPT_R}]")
    if not 1 <= p <= MAX_SCRYPT_P:
        raise ValueError(f"scrypt p must be in [1, {MAX_SCRYPT_P}]")


def _check_bcrypt_rounds(rounds: int) -> None:
    if not 1 <= rounds <= MAX_BCRYPT_ROUNDS:
        raise ValueError(f"bcrypt rounds must be in [1, {MAX_BCRYPT_ROUNDS}]")


def _scrypt(secret: bytes, salt: bytes, n: int, r: int, p: int, length: int) -> bytes:
    return hashlib.scrypt(
        secret,
        salt=salt,
        n=n,
        r=r,
        p=p,
        maxmem=132 * n * r * p + 1024 * 1024,
        dklen=length,
    )


def _bcrypt_pbkdf(secret: bytes, salt: bytes, rounds: int, length: int) -> bytes:
    return bcrypt.kdf(
        password=secret,
        salt=salt,
        desired_key_bytes=length,
        rounds=rounds,
        ignore_few_rounds=True,
    )


class CredentialHasher:
    """
    Hashes and verifies secrets.

    Stored form: "<tag>$<salt-hex>$<digest-hex>". The tag carries the
    algorithm and its cost, so verify() needs no configuration and keeps
    working after the configured parameters change.
    """

    def __init__(self, params: Optional[HashParameters] = None):
        """
        Initialize hasher

        Args:
            params: Algorithm and cost (defaults: scrypt N=2^14, r=8, p=1)

        Raises:
            ValueError: If params are invalid
        """
        self.logger = logging.getLogger("security.credential_hasher")
        self.params = params or HashParameters()
        self.params.validate()
        self._dummy = self.hash(secrets.token_hex(16))
        self._dummy_parts = self._parse(self._dummy)

        self.logger.info(f"CredentialHasher initialized (tag={self.params.tag})")

    def hash(self, secret: str) -> str:
        """
        Hash a secret with a fresh salt

        Args:
            secret: Plaintext secret

        Returns:
            Stored form
        """
        salt = secrets.token_bytes(self.params.salt_bytes)
        digest = self._derive(self.params.tag, secret.encode("utf-8"), salt, self.params.digest_bytes)
        return HASH_SEGMENT_SEPARATOR.join([self.params.tag, salt.hex(), digest.hex()])

    def verify(self, secret: str, stored: str) -> bool:
        """
        Verify a secret against a stored form

        Args:
            secret: Plaintext secret
            stored: Stored form produced by hash()

        Returns:
            True on match; False on mismatch or any malformed input
        """
        try:
            tag, salt, expected = self._parse(stored)
            derived = self._derive(tag, secret.encode("utf-8"), salt, len(expected))
        except (StoredFormError, ValueError, TypeError, AttributeError) as e:
            self.logger.debug(f"Stored credential rejected: {e}")
            self._spend(secret)
            return False
        return hmac.compare_digest(derived, expected)

    def _spend(self, secret) -> None:
        # Same cost as a real verification, so a corrupt record is not told apart by timing
        tag, salt, expected = self._dummy_parts
        data = secret.encode("utf-8") if isinstance(secret, str) else b""
        hmac.compare_digest(self._derive(tag, data, salt, len(expected)), expected)

    def dummy_verify(self, secret: str) -> bool:
        """Spend one verification; always False. Keeps unknown-principal paths same-cost."""
        self.verify(secret, self._dummy)
        return False

    def needs_rehash(self, stored: str) -> bool:
        """True if stored was not produced with the configured parameters"""
        try:
            tag, salt, digest = self._parse(stored)
        except StoredFormError:
            return True
        return (
            tag != self.params.tag
            or len(salt) != self.params.salt_bytes
            or len(digest) != self.params.digest_bytes
        )

    @staticmethod
    def _parse(stored: str) -> Tuple[str, bytes, bytes]:
        if not isinstance(stored, str):
            raise StoredFormError("Stored credential must be a string")
        parts = stored.split(HASH_SEGMENT_SEPARATOR)
        if len(parts) != 3:
            raise StoredFormError(f"Expected 3 segments, got {len(parts)}")
        tag, salt_hex, digest_hex = parts
        try:
            salt = bytes.fromhex(salt_hex)
            digest = bytes.fromhex(digest_hex)
        except ValueError as e:
            raise StoredFormError(f"Non-hex segment: {e}")
        if not salt or not digest:
            raise StoredFormError("Empty salt or digest")
        return tag, salt, digest

    @staticmethod
    def _derive(tag: str, secret: bytes, salt: bytes, length: int) -> bytes:
        name, *cost = tag.split(HASH_PARAM_SEPARATOR)

        if name == ALGORITHM_SCRYPT:
            if len(cost) != 3:
                raise StoredFormError(f"Bad scrypt tag: {tag}")
            n, r, p = (int(c) for c in cost)
            _check_scrypt_cost(n, r, p)
            return _scrypt(secret, salt, n, r, p, length)

        if name == ALGORITHM_BCRYPT_PBKDF:
            if len(cost) != 1:
                raise StoredFormError(f"Bad bcrypt-pbkdf tag: {tag}")
            rounds = int(cost[0])
            _check_bcrypt_rounds(rounds)
            return _bcrypt_pbkdf(secret, salt, rounds, length)

        raise StoredFormError(f"Unknown algorithm: {name}")


@dataclass(frozen=True)
class CredentialPolicy:
    """Minimum requirements for new secrets"""
    min_length: int = DEFAULT_PASSWORD_MIN_LENGTH
    require_uppercase: bool = False
    require_lowercase: bool = False
    require_digit: bool = False
    require_special: bool = False

    def check(self, secret: str) -> None:
        """
        Validate a new secret

        Raises:
            WeakCredential: With the first unmet rule
        """
        if not isinstance(secret, str) or len(secret) < self.min_length:
            raise WeakCredential(f"Password must be at least {self.min_length} characters")

        if self.require_uppercase and not re.search(r"[A-Z]", secret):
            raise WeakCredential("Password must contain at least one uppercase letter")

        if self.require_lowercase and not re.search(r"[a-z]", secret):
            raise WeakCredential("Password must contain at least one lowercase letter")

        if self.require_digit and not re.search(r"\d", secret):
            raise WeakCredential("Password must contain at least one digit")

        if self.require_special and not re.search(r"[!@#$%^&*(),.?\":{}|<>]", secret):
            raise WeakCredential("Password must contain at least one special character")
