"""JWT token creation and decoding.

Tokens are issued by the external auth provider in production; this
service only needs to verify them. create_access_token exists for local
development and tests.

Token claims:
  - sub:        auth provider user ID
  - email:      primary email address
  - name:       display name (optional)
  - image_url:  avatar URL (optional)
  - is_admin:   platform admin flag (optional)
  - type:       "access"
  - exp:        expiry timestamp
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from candidate_onboarding.config import settings

ALGORITHM = settings.jwt_algorithm


def create_access_token(
    auth_user_id: str,
    email: str,
    name: str | None = None,
    image_url: str | None = None,
    is_admin: bool = False,
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {
        "sub": auth_user_id,
        "email": email,
        "type": "access",
        "exp": expire,
    }
    if name:
        payload["name"] = name
    if image_url:
        payload["image_url"] = image_url
    if is_admin:
        payload["is_admin"] = True
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT. Returns empty dict on failure."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return {}


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as asserted by the token."""
    auth_user_id: str
    email: str
    name: str = ""
    image_url: str | None = None
    is_admin: bool = False


def principal_from_claims(payload: dict) -> Principal | None:
    """Build a Principal from decoded claims, or None if not an access token."""
    auth_user_id = payload.get("sub")
    if not auth_user_id or payload.get("type") != "access":
        return None
    return Principal(
        auth_user_id=auth_user_id,
        email=payload.get("email", ""),
        name=payload.get("name", ""),
        image_url=payload.get("image_url"),
        is_admin=bool(payload.get("is_admin", False)),
    )
