"""
Shared secrets for service-to-service calls, such as the payment processor
calling back into POST /orders/confirm.

INTERNAL_API_KEY holds the current key. INTERNAL_API_KEYS_PREVIOUS may list
older keys (comma separated) that stay valid while callers are rotated.
"""
import os
import secrets
import warnings

import structlog

logger = structlog.get_logger(__name__)


def _load_keys() -> tuple[str, ...]:
    current = os.getenv("INTERNAL_API_KEY", "").strip()
    if not current:
        warnings.warn(
            "INTERNAL_API_KEY is not set; the payment callback accepts an insecure "
            "development key. Set it in production!",
            stacklevel=2,
        )
        current = "insecure-default-change-me"
    previous = [k.strip() for k in os.getenv("INTERNAL_API_KEYS_PREVIOUS", "").split(",") if k.strip()]
    return (current, *previous)


ACCEPTED_KEYS = _load_keys()


def verify_api_key(provided_key: str | None, accepted: tuple[str, ...] = ACCEPTED_KEYS) -> bool:
    if not provided_key:
        return False
    # Compare against every key so the timing does not reveal which one matched
    matches = [secrets.compare_digest(provided_key.encode(), key.encode()) for key in accepted]
    if any(matches[1:]) and not matches[0]:
        logger.info("internal_api_key_previous_used")
    return any(matches)
