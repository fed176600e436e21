import os

# Pricing: one unit of food costs $10.00, stored in cents
UNIT_PRICE_CENTS = 1000

DEFAULT_SCHEDULE_CAPACITY = 20
MAX_SCHEDULE_CAPACITY = 100
MIN_LOCATION_LENGTH = 3

CUSTOMER_ROLES = ("parent", "student", "parent_driver")
DRIVER_ROLES = ("driver", "parent_driver")

# Card that the mock processor always declines
DECLINED_TEST_CARD = "4000000000000002"

CHECKOUT_RATE_LIMIT = os.getenv("CHECKOUT_RATE_LIMIT", "10/minute")
STEP_TIMEOUT_SECONDS = float(os.getenv("STEP_TIMEOUT_SECONDS", "10"))
STEP_RETRIES = 1


def price_cents(quantity: int) -> int:
    """Amount charged for a booking; also used for the displayed order total."""
    return quantity * UNIT_PRICE_CENTS
