from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

NAMESPACE = "yoga"

# HTTP: путь берём из шаблона маршрута, чтобы email/id не раздували метки
http_requests_total = Counter(
    'http_requests_total', 'HTTP requests by route and status',
    ['method', 'route', 'status'], namespace=NAMESPACE,
)
http_request_duration_seconds = Histogram(
    'http_request_duration_seconds', 'HTTP request latency',
    ['method', 'route'], namespace=NAMESPACE,
)

# Витрины каталога
cache_hits_total = Counter('catalog_cache_hits_total', 'Catalog cache hits', namespace=NAMESPACE)
cache_misses_total = Counter('catalog_cache_misses_total', 'Catalog cache misses', namespace=NAMESPACE)

# Запись на занятия после оплаты
enrollments_total = Counter('enrollments_total', 'Completed enrollment workflows', namespace=NAMESPACE)
enrollment_failures_total = Counter(
    'enrollment_failures_total', 'Rejected or rolled back enrollment workflows',
    ['reason'], namespace=NAMESPACE,
)


def metrics_endpoint() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
