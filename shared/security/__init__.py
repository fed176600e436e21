from .jwt_handler import create_access_token, verify_access_token, revoke_access_token
from .api_key import verify_api_key
from .identity import Identity
from .dependencies import get_current_user, require_roles, identity_from_token, verify_internal_api_key
from .rate_limiter import limiter, user_id_or_ip

__all__ = [
    "create_access_token",
    "verify_access_token",
    "revoke_access_token",
    "verify_api_key",
    "Identity",
    "get_current_user",
    "require_roles",
    "identity_from_token",
    "verify_internal_api_key",
    "limiter",
    "user_id_or_ip"
]
