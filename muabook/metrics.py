from prometheus_client import Counter, Histogram

REQUEST_COUNTER = Counter(
    "muabook_api_requests_total",
    "Total number of processed HTTP requests.",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "muabook_api_request_duration_seconds",
    "HTTP request latency in seconds.",
    ["method", "path"],
)
BOOKINGS_COUNTER = Counter(
    "muabook_bookings_total",
    "Booking creation attempts by outcome.",
    ["outcome"],
)
