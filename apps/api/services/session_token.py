"""Signed session tokens for script-generation callers."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from config import Settings, settings

SESSION_ISSUER = "viral-script-generator"
SESSION_AUDIENCE = "vsg-api"


@dataclass(frozen=True)
class SessionClaims:
    user_id: str
    email: Optional[str]
    expires_at: datetime


def create_session_token(
    user_id: str,
    email: Optional[str] = None,
    expires_hours: Optional[int] = None,
    config: Settings = settings,
) -> Dict[str, Any]:
    """Sign a session for ``user_id``. Returns ``{"token", "expires_at"}`` (unix seconds)."""
    issued_at = datetime.now(timezone.utc)
    lifetime = timedelta(hours=max(int(expires_hours or config.JWT_EXPIRATION_HOURS or 24), 1))
    expires_at = int((issued_at + lifetime).timestamp())

    claims: Dict[str, Any] = {
        "iss": SESSION_ISSUER,
        "aud": SESSION_AUDIENCE,
        "sub": user_id,
        "iat": int(issued_at.timestamp()),
        "exp": expires_at,
    }
    if email:
        claims["email"] = email.strip().lower()

    return {
        "token": jwt.encode(claims, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM),
        "expires_at": expires_at,
    }


def decode_session_token(token: str, config: Settings = settings) -> SessionClaims:
    """Verify signature, expiry, issuer and audience. Raises ValueError on any mismatch."""
    try:
        payload = jwt.decode(
            token,
            config.JWT_SECRET,
            algorithms=[config.JWT_ALGORITHM],
            audience=SESSION_AUDIENCE,
            issuer=SESSION_ISSUER,
        )
    except JWTError as exc:
        raise ValueError("Invalid or expired session token.") from exc

    user_id = str(payload.get("sub") or "").strip()
    if not user_id:
        raise ValueError("Session token missing subject.")

    return SessionClaims(
        user_id=user_id,
        email=str(payload.get("email") or "") or None,
        expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
    )
