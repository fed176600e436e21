from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer, APIKeyHeader
from .identity import Identity
from .jwt_handler import verify_access_token
from .api_key import verify_api_key

# Defines the expected header format (Bearer <token>)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)

# Defines the expected internal service header
api_key_header = APIKeyHeader(name="X-Internal-API-Key", auto_error=False)


def identity_from_token(token: str | None) -> Identity | None:
    """Builds an Identity from a bearer token; None when missing or invalid."""
    if not token:
        return None
    payload = verify_access_token(token)
    if payload is None:
        return None
    user_id = payload.get("sub")
    role = payload.get("role")
    if not user_id or not role:
        return None
    return Identity(user_id=user_id, user_type=role, email=payload.get("email"))


async def get_current_user(request: Request, token: str = Depends(oauth2_scheme)) -> Identity:
    """Dependency to validate the JWT and return the caller's Identity."""
    identity = identity_from_token(token)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Store in request state for downstream use (like rate limiting)
    request.state.user_id = identity.user_id
    return identity


def require_roles(*allowed):
    """Dependency factory restricting an endpoint to the given user types."""
    async def _guard(identity: Identity = Depends(get_current_user)) -> Identity:
        if identity.user_type not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return identity
    return _guard


async def verify_internal_api_key(api_key: str = Depends(api_key_header)) -> bool:
    """Dependency to validate service-to-service internal requests."""
    if not verify_api_key(api_key):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or missing X-Internal-API-Key header"
        )
    return True
