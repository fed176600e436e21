from .setup import setup_observability, configure_logging
from .metrics import (
    bites_orders_created_total,
    bites_payment_confirmations_total,
    bites_capacity_conflicts_total,
    bites_saga_compensation_total,
    bites_location_updates_total
)
