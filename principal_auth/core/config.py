"""
Configuration for principal-auth

Module: core.config
Date: 2026-10-17
Version: 0.1.0

CHANGELOG:
[2026-10-17 v0.1.0] Initial implementation
  - AuthConfig dataclass with defaults from core.constants
  - Environment loading (PRINCIPAL_AUTH_* variables)
  - Validation of secrets, TTLs and hash cost

ARCHITECTURE:
Configuration is read once (from_env) and passed explicitly into each
component constructor. Components never consult the environment.
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from ..security.authentication.credential_hasher import CredentialPolicy, HashParameters
from .constants import (
    DEFAULT_ACCESS_TTL,
    DEFAULT_BCRYPT_ROUNDS,
    DEFAULT_DATA_DIR,
    DEFAULT_HASH_ALGORITHM,
    DEFAULT_HTTP_HOST,
    DEFAULT_HTTP_PORT,
    DEFAULT_PASSWORD_MIN_LENGTH,
    DEFAULT_REFRESH_TTL,
    DEFAULT_RESET_TTL,
    DEFAULT_SCRYPT_N,
    DEFAULT_SCRYPT_P,
    DEFAULT_SCRYPT_R,
    ENV_PREFIX,
    MIN_SECRET_LENGTH,
)

logger = logging.getLogger("core.config")


class ConfigError(ValueError):
    """Configuration is missing or invalid"""
    pass


@dataclass
class AuthConfig:
    """Credential lifecycle configuration"""
    access_secret: str
    refresh_secret: str
    access_ttl: int = DEFAULT_ACCESS_TTL
    refresh_ttl: int = DEFAULT_REFRESH_TTL
    reset_ttl: int = DEFAULT_RESET_TTL
    hash_algorithm: str = DEFAULT_HASH_ALGORITHM
    scrypt_n: int = DEFAULT_SCRYPT_N
    scrypt_r: int = DEFAULT_SCRYPT_R
    scrypt_p: int = DEFAULT_SCRYPT_P
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS
    password_min_length: int = DEFAULT_PASSWORD_MIN_LENGTH
    data_dir: Optional[str] = DEFAULT_DATA_DIR
    host: str = DEFAULT_HTTP_HOST
    port: int = DEFAULT_HTTP_PORT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AuthConfig":
        """
        Build configuration from PRINCIPAL_AUTH_* variables

        Args:
            environ: Mapping to read (default os.environ)

        Raises:
            ConfigError: If a secret is missing or a number is malformed
        """
        env = os.environ if environ is None else environ

        def get(name: str, default=None):
            return env.get(ENV_PREFIX + name, default)

        def get_int(name: str, default: int) -> int:
            raw = get(name)
            if raw is None or raw == "":
                return default
            try:
                return int(raw)
            except ValueError:
                raise ConfigError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}")

        access_secret = get("ACCESS_SECRET")
        refresh_secret = get("REFRESH_SECRET")
        if not access_secret or not refresh_secret:
            raise ConfigError(
                f"{ENV_PREFIX}ACCESS_SECRET and {ENV_PREFIX}REFRESH_SECRET are required"
            )

        config = cls(
            access_secret=access_secret,
            refresh_secret=refresh_secret,
            access_ttl=get_int("ACCESS_TTL_SECONDS", DEFAULT_ACCESS_TTL),
            refresh_ttl=get_int("REFRESH_TTL_SECONDS", DEFAULT_REFRESH_TTL),
            reset_ttl=get_int("RESET_TTL_SECONDS", DEFAULT_RESET_TTL),
            hash_algorithm=get("HASH_ALGORITHM", DEFAULT_HASH_ALGORITHM),
            scrypt_n=get_int("SCRYPT_N", DEFAULT_SCRYPT_N),
            scrypt_r=get_int("SCRYPT_R", DEFAULT_SCRYPT_R),
            scrypt_p=get_int("SCRYPT_P", DEFAULT_SCRYPT_P),
            bcrypt_rounds=get_int("BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS),
            password_min_length=get_int("PASSWORD_MIN_LENGTH", DEFAULT_PASSWORD_MIN_LENGTH),
            data_dir=get("DATA_DIR", DEFAULT_DATA_DIR),
            host=get("HOST", DEFAULT_HTTP_HOST),
            port=get_int("PORT", DEFAULT_HTTP_PORT),
        )
        config.validate()
        return config

    @property
    def hash_parameters(self) -> HashParameters:
        return HashParameters(
            algorithm=self.hash_algorithm,
            scrypt_n=self.scrypt_n,
            scrypt_r=self.scrypt_r,
            scrypt_p=self.scrypt_p,
            bcrypt_rounds=self.bcrypt_rounds,
        )

    @property
    def credential_policy(self) -> CredentialPolicy:
        return CredentialPolicy(min_length=self.password_min_length)

    def validate(self) -> None:
        """
        Raises:
            ConfigError: On short secrets, non-positive TTLs or bad hash cost
        """
        for name, secret in (("access", self.access_secret), ("refresh", self.refresh_secret)):
            if not secret or len(secret) < MIN_SECRET_LENGTH:
                raise ConfigError(f"{name} secret must be at least {MIN_SECRET_LENGTH} characters")

        for name in ("access_ttl", "refresh_ttl", "reset_ttl"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive")

        if self.password_min_length < 1:
            raise ConfigError("password_min_length must be at least 1")

        try:
            self.hash_parameters.validate()
        except ValueError as e:
            raise ConfigError(str(e))

        if self.access_secret == self.refresh_secret:
            logger.warning("Access and refresh secrets are identical; distinct secrets recommended")
