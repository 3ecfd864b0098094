"""GitHub App JWT construction.

The JWT is the App's proof of identity for the token exchange: RS256-signed
with the App private key, valid for 10 minutes, with ``iat`` backdated by
60 seconds so a verifier whose clock runs slightly behind still accepts it.
"""

from __future__ import annotations

import time

import jwt
import structlog

from token_generator.errors import SigningError

logger = structlog.get_logger()

# GitHub App JWT lifetime: 10 minutes (GitHub max).
JWT_LIFETIME_SECONDS = 600
# Backdate issued-at to absorb clock skew with GitHub.
CLOCK_SKEW_SECONDS = 60
JWT_ALGORITHM = "RS256"


def build_app_jwt(app_id: str, private_key: str, now: int | None = None) -> str:
    """Generate a short-lived JWT for GitHub App authentication.

    Args:
        app_id:      GitHub App ID, used as the ``iss`` claim.
        private_key: PEM-encoded RSA private key.
        now:         Generation time as a Unix timestamp (defaults to the
                     current wall-clock time).

    Returns:
        Encoded JWT string carrying only ``iat``, ``exp`` and ``iss``.

    Raises:
        SigningError: The key could not be used to sign (malformed PEM,
                      unsupported key type, missing crypto backend).
    """
    if now is None:
        now = int(time.time())
    payload = {
        "iat": now - CLOCK_SKEW_SECONDS,
        "exp": now + JWT_LIFETIME_SECONDS,
        "iss": app_id,
    }
    try:
        encoded: str = jwt.encode(payload, private_key, algorithm=JWT_ALGORITHM)
    except Exception as exc:
        # PyJWT surfaces key problems as InvalidKeyError, ValueError or
        # TypeError depending on how the key is malformed.
        raise SigningError(f"Failed to sign App JWT: {exc}") from exc
    logger.debug("token_generator.jwt_generated", app_id=app_id, expires_at=payload["exp"])
    return encoded
