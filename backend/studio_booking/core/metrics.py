"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at the /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Admission metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Booking submissions by outcome',
    ['outcome']  # admitted, slot_taken, invalid, error
)

admission_latency = Histogram(
    'admission_latency_seconds',
    'Time spent inside the admission critical section',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

ledger_retries = Counter(
    'admission_ledger_retries_total',
    'Admission retries caused by a concurrent slot ledger update'
)

# Lifecycle metrics
status_transitions = Counter(
    'booking_status_transitions_total',
    'Booking status transitions',
    ['target', 'result']  # result: applied, rejected
)

# Rate limiting
rate_limit_decisions = Counter(
    'rate_limit_decisions_total',
    'Rate limiter decisions for booking submissions',
    ['result']  # allowed, limited
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)


def metrics_endpoint() -> Response:
    """Prometheus exposition for GET /metrics."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(outcome: str):
    """Record booking submission. Outcome: admitted, slot_taken, invalid, error"""
    booking_attempts.labels(outcome=outcome).inc()


def record_transition(target: str, applied: bool):
    result = "applied" if applied else "rejected"
    status_transitions.labels(target=target, result=result).inc()


def record_rate_limit(allowed: bool):
    result = "allowed" if allowed else "limited"
    rate_limit_decisions.labels(result=result).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
