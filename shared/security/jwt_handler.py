import os
import uuid
import warnings
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt

SECRET_KEY = os.getenv("JWT_SECRET_KEY", "")
if not SECRET_KEY:
    warnings.warn(
        "JWT_SECRET_KEY is not set. Using an insecure development default. "
        "Set this env var in production!",
        stacklevel=2,
    )
    SECRET_KEY = "insecure-dev-secret-change-me"

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# jti -> expiry of tokens revoked by sign-out
_revoked: dict[str, datetime] = {}


def create_access_token(data: dict, role: str, expires_delta: timedelta = None) -> str:
    """Creates a JWT carrying the user id (sub), role and a unique jti."""
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))

    to_encode.update({
        "role": role,
        "jti": uuid.uuid4().hex,
        "iat": int(now.timestamp()),
        "exp": expire,
    })
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def verify_access_token(token: str) -> dict | None:
    """Decodes and verifies the JWT. Returns payload if valid, None if invalid/expired/revoked."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if payload.get("jti") in _revoked:
        return None
    return payload


def revoke_access_token(token: str) -> bool:
    """Blocks a token until it expires. Returns False when the token was already unusable."""
    payload = verify_access_token(token)
    if payload is None:
        return False

    now = datetime.now(timezone.utc)
    for jti, expires_at in list(_revoked.items()):
        if expires_at <= now:
            _revoked.pop(jti, None)

    _revoked[payload["jti"]] = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    return True
