from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from .dependencies import identity_from_token


def user_id_or_ip(request: Request) -> str:
    """
    Rate limit key: one bucket per signed-in user, else one per client IP.

    get_current_user stores the user id on request.state before the limited
    endpoint runs; the bearer token is only decoded when it has not.
    """
    user_id = getattr(request.state, "user_id", None)
    if user_id:
        return f"user:{user_id}"

    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        identity = identity_from_token(auth_header.split(" ", 1)[1])
        if identity is not None:
            return f"user:{identity.user_id}"

    return f"ip:{get_remote_address(request)}"


limiter = Limiter(key_func=user_id_or_ip)
