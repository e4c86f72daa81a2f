"""
Prometheus metrics for monitoring
"""
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
import time
from functools import wraps
import logging

logger = logging.getLogger(__name__)

# ==================== HTTP Metrics ====================

http_requests_total = Counter(
    'libseat_http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'libseat_http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# ==================== Reservation Metrics ====================

reservations_created_total = Counter(
    'reservations_created_total',
    'Total reservations created',
    ['reservation_type']  # walk_in, advance
)

reservation_rejections_total = Counter(
    'reservation_rejections_total',
    'Reservation requests rejected by a domain rule',
    ['code']
)

slot_conflicts_total = Counter(
    'reservation_slot_conflicts_total',
    'Admissions that lost the overlap check'
)

reservation_transitions_total = Counter(
    'reservation_transitions_total',
    'Lifecycle transitions applied',
    ['transition']  # checkin, finish, cancel, checkin_expired, finish_early
)

reservations_expired_total = Counter(
    'reservations_expired_total',
    'Pending reservations cancelled by the expiry sweep'
)

reservation_admission_duration_seconds = Histogram(
    'reservation_admission_duration_seconds',
    'Time to admit a reservation',
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0]
)

# ==================== Seat Cache Metrics ====================

seat_cache_hits_total = Counter(
    'seat_list_cache_hits_total',
    'Seat list cache hits'
)

seat_cache_misses_total = Counter(
    'seat_list_cache_misses_total',
    'Seat list cache misses'
)

# ==================== Helper Functions ====================

def track_time(metric: Histogram):
    """Decorator to track execution time"""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                metric.observe(time.perf_counter() - start_time)
        return wrapper
    return decorator


def get_metrics() -> bytes:
    """Get current metrics in Prometheus format"""
    return generate_latest()


__all__ = [
    "CONTENT_TYPE_LATEST",
    "get_metrics",
    "track_time",
    "http_requests_total",
    "http_request_duration_seconds",
    "reservations_created_total",
    "reservation_rejections_total",
    "slot_conflicts_total",
    "reservation_transitions_total",
    "reservations_expired_total",
    "reservation_admission_duration_seconds",
    "seat_cache_hits_total",
    "seat_cache_misses_total",
]
