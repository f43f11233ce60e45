from prometheus_client import Counter, Histogram

# Business Metrics
ecomm_orders_placed_total = Counter(
    "ecomm_orders_placed_total",
    "Order placement attempts",
    ["status"] # Labels: 'created', 'rejected'
)

ecomm_order_amount = Histogram(
    "ecomm_order_amount",
    "Server-computed order totals",
    buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000)
)

ecomm_payments_total = Counter(
    "ecomm_payments_total",
    "Payment settlement outcomes",
    ["status"] # Labels: 'success', 'failed', 'rejected'
)

ecomm_payment_gateway_duration_seconds = Histogram(
    "ecomm_payment_gateway_duration_seconds",
    "Latency of payment gateway charge calls"
)
