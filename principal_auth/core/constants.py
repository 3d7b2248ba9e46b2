"""
Constants for principal-auth

Module: core.constants
Date: 2026-10-17
Version: 0.1.0

CHANGELOG:
[2026-10-17 v0.1.0] Initial constants definition
  - Token wire format constants
  - Token, reset and hashing defaults
  - Account statuses and principal types
  - Environment variable names

SECURITY NOTES:
- Defaults are conservative (short access TTL, memory-hard hashing)
- Secrets have no default value: they must be configured
"""

from typing import Final

# ============================================================================
# Project identity
# ============================================================================

SERVICE_NAME: Final[str] = "principal-auth"
SERVICE_VERSION: Final[str] = "0.1.0"

# ============================================================================
# Token wire format
# ============================================================================

TOKEN_ALGORITHM: Final[str] = "HS256"
TOKEN_TYPE_HEADER: Final[str] = "JWT"
TOKEN_SEGMENT_SEPARATOR: Final[str] = "."
TOKEN_SEGMENT_COUNT: Final[int] = 3

# Registered claim names
CLAIM_SUBJECT: Final[str] = "sub"
CLAIM_ISSUED_AT: Final[str] = "iat"
CLAIM_EXPIRES_AT: Final[str] = "exp"
CLAIM_TOKEN_ID: Final[str] = "jti"
CLAIM_TOKEN_TYPE: Final[str] = "token_type"
CLAIM_ROLE: Final[str] = "role"

TOKEN_TYPE_ACCESS: Final[str] = "access"
TOKEN_TYPE_REFRESH: Final[str] = "refresh"

MIN_SECRET_LENGTH: Final[int] = 32

# ============================================================================
# Token lifetimes (seconds)
# ============================================================================

DEFAULT_ACCESS_TTL: Final[int] = 60 * 60             # 1 hour
DEFAULT_REFRESH_TTL: Final[int] = 30 * 24 * 60 * 60  # 30 days
DEFAULT_RESET_TTL: Final[int] = 60 * 60              # 1 hour

# Raw reset token entropy (bytes, hex-encoded on the wire)
RESET_TOKEN_BYTES: Final[int] = 32

# ============================================================================
# Credential hashing
# ============================================================================

HASH_SEGMENT_SEPARATOR: Final[str] = "$"
HASH_PARAM_SEPARATOR: Final[str] = ":"

ALGORITHM_SCRYPT: Final[str] = "scrypt"
ALGORITHM_BCRYPT_PBKDF: Final[str] = "bcrypt-pbkdf"
SUPPORTED_HASH_ALGORITHMS: Final[tuple] = (ALGORITHM_SCRYPT, ALGORITHM_BCRYPT_PBKDF)

DEFAULT_HASH_ALGORITHM: Final[str] = ALGORITHM_SCRYPT
DEFAULT_SALT_BYTES: Final[int] = 16
MIN_SALT_BYTES: Final[int] = 16
DEFAULT_DIGEST_BYTES: Final[int] = 64

# scrypt cost (N must be a power of two)
DEFAULT_SCRYPT_N: Final[int] = 2 ** 14
DEFAULT_SCRYPT_R: Final[int] = 8
DEFAULT_SCRYPT_P: Final[int] = 1
MAX_SCRYPT_N: Final[int] = 2 ** 20
MAX_SCRYPT_R: Final[int] = 32
MAX_SCRYPT_P: Final[int] = 16

# bcrypt_pbkdf cost
DEFAULT_BCRYPT_ROUNDS: Final[int] = 100
MAX_BCRYPT_ROUNDS: Final[int] = 10000

# Password policy
DEFAULT_PASSWORD_MIN_LENGTH: Final[int] = 8

# ============================================================================
# Principals
# ============================================================================

STATUS_ACTIVE: Final[str] = "active"
STATUS_INACTIVE: Final[str] = "inactive"
STATUS_SUSPENDED: Final[str] = "suspended"
ACCOUNT_STATUSES: Final[tuple] = (STATUS_ACTIVE, STATUS_INACTIVE, STATUS_SUSPENDED)

PRINCIPAL_USER: Final[str] = "user"
PRINCIPAL_CHEF: Final[str] = "chef"
PRINCIPAL_ADMIN: Final[str] = "admin"
PRINCIPAL_TYPES: Final[tuple] = (PRINCIPAL_USER, PRINCIPAL_CHEF, PRINCIPAL_ADMIN)

# ============================================================================
# Configuration (environment)
# ============================================================================

ENV_PREFIX: Final[str] = "PRINCIPAL_AUTH_"
DEFAULT_DATA_DIR: Final[str] = "./data"
DEFAULT_HTTP_HOST: Final[str] = "127.0.0.1"
DEFAULT_HTTP_PORT: Final[int] = 8080

# ============================================================================
# HTTP
# ============================================================================

API_PREFIX: Final[str] = "/api/auth"
BEARER_PREFIX: Final[str] = "Bearer "
