from prometheus_client import Counter

# Business Metrics
bites_orders_created_total = Counter(
    "bites_orders_created_total",
    "Total pending orders created"
)

bites_payment_confirmations_total = Counter(
    "bites_payment_confirmations_total",
    "Total payment confirmations processed",
    ["status"] # Labels: 'confirmed', 'capacity_exceeded', 'invalid_state', 'not_found'
)

bites_capacity_conflicts_total = Counter(
    "bites_capacity_conflicts_total",
    "Bookings rejected because the schedule ran out of capacity",
    ["stage"] # Labels: 'create', 'confirm'
)

bites_saga_compensation_total = Counter(
    "bites_saga_compensation_total",
    "Total saga compensations triggered",
    ["step_name"] # Labels: 'create_order', 'charge_payment'
)

bites_location_updates_total = Counter(
    "bites_location_updates_total",
    "Total location updates appended"
)
