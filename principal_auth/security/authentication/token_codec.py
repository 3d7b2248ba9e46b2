"""
Token Codec - Compact signed tokens (HS256)

Module: security.authentication.token_codec
Date: 2026-10-17
Version: 0.1.0

CHANGELOG:
[2026-10-17 v0.1.0] Initial implementation
  - HS256 encode with iat/exp stamping
  - Decode with signature-first verification
  - Distinct MalformedToken / BadSignature / Expired errors
  - Injectable clock

ARCHITECTURE:
TokenCodec provides:
  - base64url(header) "." base64url(payload) "." base64url(HMAC-SHA256)
  - Padding-free segments, compact JSON
  - Output readable by any standard HS256 JWT library

SECURITY NOTES:
- Signature is verified (constant time) before the payload is parsed
- Expiry is checked only once the token is authentic
- The secret is passed per call, never read from the environment
"""

import binascii
import json
import logging
import time
from typing import Any, Callable, Dict, Optional, Union

from jwt.algorithms import HMACAlgorithm
from jwt.utils import base64url_decode, base64url_encode

from ...core.constants import (
    CLAIM_EXPIRES_AT,
    CLAIM_ISSUED_AT,
    TOKEN_ALGORITHM,
    TOKEN_SEGMENT_COUNT,
    TOKEN_SEGMENT_SEPARATOR,
    TOKEN_TYPE_HEADER,
)
from ..errors import BadSignature, Expired, MalformedToken


SecretKey = Union[str, bytes]


def _json_segment(obj: Dict[str, Any]) -> bytes:
    """Compact JSON, base64url without padding"""
    raw = json.dumps(obj, separators=(",", ":")).encode("utf-8")
    return base64url_encode(raw)


def _parse_segment(segment: str) -> Dict[str, Any]:
    """Inverse of _json_segment; raises MalformedToken"""
    try:
        raw = base64url_decode(segment)
        obj = json.loads(raw.decode("utf-8"))
    except (binascii.Error, ValueError, UnicodeDecodeError) as e:
        raise MalformedToken(f"Malformed token segment: {e}")
    if not isinstance(obj, dict):
        raise MalformedToken("Token segment is not a JSON object")
    return obj


class TokenCodec:
    """
    Encodes and decodes HS256 compact tokens.

    The codec holds no secret: each call receives the key, so access and
    refresh tokens can be signed with distinct secrets by the same codec.
    """

    HEADER = {"alg": TOKEN_ALGORITHM, "typ": TOKEN_TYPE_HEADER}

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        """
        Initialize codec

        Args:
            clock: Returns current epoch seconds (default time.time)
        """
        self.logger = logging.getLogger("security.token_codec")
        self.clock = clock or time.time
        self._mac = HMACAlgorithm(HMACAlgorithm.SHA256)

    def encode(
        self,
        payload: Dict[str, Any],
        secret_key: SecretKey,
        ttl_seconds: Optional[int] = None,
    ) -> str:
        """
        Encode and sign a payload

        Args:
            payload: Claims to embed (copied, not mutated)
            secret_key: HMAC key
            ttl_seconds: Lifetime; exp is stamped only when given

        Returns:
            Token string (three dot-joined segments)
        """
        now = int(self.clock())
        claims = dict(payload)
        claims[CLAIM_ISSUED_AT] = now
        if ttl_seconds is not None:
            claims[CLAIM_EXPIRES_AT] = now + int(ttl_seconds)

        signing_input = _json_segment(self.HEADER) + b"." + _json_segment(claims)
        signature = self._mac.sign(signing_input, self._mac.prepare_key(secret_key))

        return (signing_input + b"." + base64url_encode(signature)).decode("ascii")

    def decode(self, token: str, secret_key: SecretKey) -> Dict[str, Any]:
        """
        Verify a token and return its payload

        Args:
            token: Token string
            secret_key: HMAC key the token was signed with

        Returns:
            Payload dict (including iat, and exp when present)

        Raises:
            MalformedToken: Wrong segment count or unparsable content
            BadSignature: Signature mismatch
            Expired: exp is not in the future
        """
        if not isinstance(token, str) or not token:
            raise MalformedToken("Token must be a non-empty string")

        segments = token.split(TOKEN_SEGMENT_SEPARATOR)
        if len(segments) != TOKEN_SEGMENT_COUNT:
            raise MalformedToken(
                f"Token must have {TOKEN_SEGMENT_COUNT} segments, got {len(segments)}"
            )
        header_segment, payload_segment, signature_segment = segments

        try:
            signing_input = f"{header_segment}.{payload_segment}".encode("ascii")
            signature = base64url_decode(signature_segment)
        except (binascii.Error, ValueError) as e:
            # Non-ascii input or undecodable tag: cannot be authentic
            self.logger.debug(f"Undecodable token signature: {e}")
            raise BadSignature()

        if not self._mac.verify(signing_input, self._mac.prepare_key(secret_key), signature):
            raise BadSignature()

        header = _parse_segment(header_segment)
        if header.get("alg") != TOKEN_ALGORITHM:
            raise MalformedToken(f"Unsupported token algorithm: {header.get('alg')!r}")

        payload = _parse_segment(payload_segment)

        if CLAIM_EXPIRES_AT in payload:
            expires_at = payload[CLAIM_EXPIRES_AT]
            if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
                raise MalformedToken("Token exp claim is not a number")
            if expires_at <= self.clock():
                raise Expired()

        return payload
