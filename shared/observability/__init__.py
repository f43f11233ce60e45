from .setup import setup_observability
from .metrics import (
    ecomm_orders_placed_total,
    ecomm_order_amount,
    ecomm_payments_total,
    ecomm_payment_gateway_duration_seconds,
)
