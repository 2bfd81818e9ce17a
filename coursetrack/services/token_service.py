"""JWT access token creation and validation (ES256).

coursetrack does not log anyone in.  Tokens are minted by the platform's
auth service; this module only verifies them.  create_access_token exists
for local tooling (scripts/mint_token.py) and tests.
"""

from __future__ import annotations

import os
import uuid
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

# ---------------------------------------------------------------------------
# Key management
# ---------------------------------------------------------------------------
# JWT_PUBLIC_KEY_PEM set: verify tokens from the real issuer.
# Otherwise: generate an ephemeral EC key pair on import (dev/test).
_private_key: ec.EllipticCurvePrivateKey | None
_public_key: ec.EllipticCurvePublicKey

_pem = os.getenv("JWT_PUBLIC_KEY_PEM")
if _pem:
    _private_key = None
    _public_key = serialization.load_pem_public_key(_pem.encode())  # type: ignore[assignment]
else:
    _private_key = ec.generate_private_key(ec.SECP256R1())
    _public_key = _private_key.public_key()

ALGORITHM = "ES256"
ISSUER = os.getenv("JWT_ISSUER", "auth-service")
AUDIENCE = os.getenv("JWT_AUDIENCE", "coursetrack")
ACCESS_TOKEN_TTL_MIN = 15


def create_access_token(
    *,
    sub: str,
    roles: list[str] | None = None,
    ttl_minutes: int = ACCESS_TOKEN_TTL_MIN,
) -> str:
    """Build and sign a JWT access token with the ephemeral dev key."""
    if _private_key is None:
        raise RuntimeError("no signing key: JWT_PUBLIC_KEY_PEM is verify-only")
    now = datetime.now(UTC)
    payload = {
        "sub": sub,
        "iss": ISSUER,
        "aud": AUDIENCE,
        "exp": now + timedelta(minutes=ttl_minutes),
        "iat": now,
        "jti": str(uuid.uuid4()),
        "roles": roles or ["student"],
    }
    return jwt.encode(payload, _private_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature and claims, return the payload.

    Pins algorithm to ES256 to prevent alg:none and alg-switching attacks.
    Validates exp, iss, and aud automatically via PyJWT options.

    Raises jwt.ExpiredSignatureError, jwt.InvalidTokenError on failure.
    """
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=AUDIENCE,
        options={"require": ["sub", "exp", "iat", "jti"]},
    )
