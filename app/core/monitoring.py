"""
Monitoring and Observability Module
Prometheus metrics, request tracking middleware and structured logging
"""

from prometheus_client import Counter, Histogram, generate_latest, REGISTRY
from prometheus_client.exposition import CONTENT_TYPE_LATEST
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
import re
import time
import logging
from typing import Callable
from datetime import datetime, timezone
import json

# ============================================================================
# PROMETHEUS METRICS
# ============================================================================

# API Request Metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=(0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 7.5, 10.0)
)

# Property Metrics
property_searches_total = Counter(
    'property_searches_total',
    'Total property searches',
    ['backend']  # sql, memory
)

property_search_duration_seconds = Histogram(
    'property_search_duration_seconds',
    'Property search duration in seconds',
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0)
)

property_search_results = Histogram(
    'property_search_results',
    'Number of matching properties per search',
    buckets=(0, 1, 5, 10, 20, 50, 100, 200, 500, 1000)
)

property_search_rejections_total = Counter(
    'property_search_rejections_total',
    'Searches rejected because a criterion could not be interpreted',
    ['field']
)

property_writes_total = Counter(
    'property_writes_total',
    'Property create/update/delete operations',
    ['operation']
)

# User Metrics
user_registrations_total = Counter(
    'user_registrations_total',
    'Total user registrations',
    ['provider']  # email, google, facebook, apple
)

user_logins_total = Counter(
    'user_logins_total',
    'Total user logins',
    ['provider']
)

user_login_failures_total = Counter(
    'user_login_failures_total',
    'Total failed login attempts'
)

# Favorite Metrics
favorite_changes_total = Counter(
    'favorite_changes_total',
    'Favorites added or removed',
    ['action']  # add, remove
)

# Error Metrics
errors_total = Counter(
    'errors_total',
    'Total errors',
    ['error_type', 'endpoint']
)

# ============================================================================
# MONITORING MIDDLEWARE
# ============================================================================

_UUID_RE = re.compile(
    r'[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}',
    flags=re.IGNORECASE
)


class PrometheusMonitoringMiddleware(BaseHTTPMiddleware):
    """
    Middleware to track HTTP requests and responses with Prometheus metrics
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Skip metrics endpoint itself
        if request.url.path == "/metrics":
            return await call_next(request)

        endpoint = self._clean_endpoint(request.url.path)
        method = request.method
        status_code = 500
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as e:
            errors_total.labels(
                error_type=type(e).__name__,
                endpoint=endpoint
            ).inc()
            raise
        finally:
            http_request_duration_seconds.labels(
                method=method,
                endpoint=endpoint
            ).observe(time.perf_counter() - start_time)
            http_requests_total.labels(
                method=method,
                endpoint=endpoint,
                status=status_code
            ).inc()

        return response

    @staticmethod
    def _clean_endpoint(path: str) -> str:
        """
        Collapse identifiers so label cardinality stays bounded
        Example: /api/v1/properties/123e4567-e89b-12d3-a456-426614174000 -> /api/v1/properties/{uuid}
        """
        path = _UUID_RE.sub('{uuid}', path)
        return re.sub(r'/\d+(?=/|$)', '/{id}', path)


# ============================================================================
# METRICS TRACKING HELPERS
# ============================================================================

class MetricsTracker:
    """Helper class for tracking custom metrics"""

    @staticmethod
    def track_search(backend: str, duration: float, result_count: int):
        """Track property search metrics"""
        property_searches_total.labels(backend=backend).inc()
        property_search_duration_seconds.observe(duration)
        property_search_results.observe(result_count)

    @staticmethod
    def track_search_rejection(field: str):
        property_search_rejections_total.labels(field=field or "unknown").inc()

    @staticmethod
    def track_property_write(operation: str):
        property_writes_total.labels(operation=operation).inc()

    @staticmethod
    def track_user_registration(provider: str):
        """Track user registration"""
        user_registrations_total.labels(provider=provider).inc()

    @staticmethod
    def track_user_login(provider: str, success: bool = True):
        """Track user login"""
        if success:
            user_logins_total.labels(provider=provider).inc()
        else:
            user_login_failures_total.inc()

    @staticmethod
    def track_favorite(action: str):
        favorite_changes_total.labels(action=action).inc()


# ============================================================================
# STRUCTURED LOGGING
# ============================================================================

class StructuredLogger:
    """Structured JSON logger for better observability"""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self._setup_handlers()

    def _setup_handlers(self):
        """Setup JSON logging handlers"""
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
                '"logger": "%(name)s", "message": %(message)s}'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.INFO)

    def log(self, level: str, message: str, **kwargs):
        """Log with structured data"""
        log_data = {
            'message': message,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            **kwargs
        }

        log_func = getattr(self.logger, level.lower())
        log_func(json.dumps(log_data, default=str))

    def info(self, message: str, **kwargs):
        self.log('INFO', message, **kwargs)

    def warning(self, message: str, **kwargs):
        self.log('WARNING', message, **kwargs)


# ============================================================================
# METRICS ENDPOINT
# ============================================================================

async def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint
    Returns metrics in Prometheus exposition format
    """
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST
    )
