"""
Metrics Collection with Prometheus.

Exposes HTTP and store-lifecycle metrics for monitoring.
"""

from enum import Enum

from prometheus_client import Counter, Gauge, Histogram, Info

from marketplace.config import settings


class MetricLabels(str, Enum):
    """Standard metric label names."""

    ENDPOINT = "endpoint"
    METHOD = "method"
    STATUS_CODE = "status_code"
    OPERATION = "operation"
    ERROR_TYPE = "error_type"
    TRANSACTION_TYPE = "transaction_type"
    TRANSACTION_STATUS = "transaction_status"


class MarketplaceMetrics:
    """
    Centralized metrics for the marketplace API.

    Covers:
    - HTTP requests (rate, duration, in progress)
    - Invite lifecycle events (created, accepted, revoked, member removed)
    - Transactions (created, status updates)
    - Product stock replacements
    - Access denials and errors
    """

    def __init__(self) -> None:
        """Initialize all Prometheus metrics."""

        self.service_info = Info(
            "marketplace_service",
            "Service information",
        )
        self.service_info.info(
            {
                "version": settings.api_version,
                "service_name": settings.service_name,
            }
        )

        # ====================================================================
        # HTTP Metrics
        # ====================================================================
        self.http_requests_total = Counter(
            "marketplace_http_requests_total",
            "Total HTTP requests",
            [MetricLabels.ENDPOINT, MetricLabels.METHOD, MetricLabels.STATUS_CODE],
        )

        self.http_request_duration_seconds = Histogram(
            "marketplace_http_request_duration_seconds",
            "HTTP request duration in seconds",
            [MetricLabels.ENDPOINT, MetricLabels.METHOD],
            buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
        )

        self.http_requests_in_progress = Gauge(
            "marketplace_http_requests_in_progress",
            "Number of HTTP requests currently being processed",
            [MetricLabels.ENDPOINT, MetricLabels.METHOD],
        )

        # ====================================================================
        # Lifecycle Metrics
        # ====================================================================
        self.invite_events_total = Counter(
            "marketplace_invite_events_total",
            "Invite lifecycle events",
            ["event", "role"],
        )

        self.transactions_created_total = Counter(
            "marketplace_transactions_created_total",
            "Transactions created",
            [MetricLabels.TRANSACTION_TYPE],
        )

        self.transaction_status_updates_total = Counter(
            "marketplace_transaction_status_updates_total",
            "Transaction status updates by new status",
            [MetricLabels.TRANSACTION_STATUS],
        )

        self.stock_replacements_total = Counter(
            "marketplace_stock_replacements_total",
            "Full size-inventory replacements",
            [MetricLabels.OPERATION],
        )

        # ====================================================================
        # Error Metrics
        # ====================================================================
        self.access_denied_total = Counter(
            "marketplace_access_denied_total",
            "Store access checks that were denied",
            ["required_roles"],
        )

        self.errors_total = Counter(
            "marketplace_errors_total",
            "Total errors by type",
            [MetricLabels.ERROR_TYPE, MetricLabels.OPERATION],
        )

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def record_http_request(
        self, endpoint: str, method: str, status_code: int, duration: float
    ) -> None:
        """Record HTTP request metrics."""
        self.http_requests_total.labels(
            endpoint=endpoint, method=method, status_code=status_code
        ).inc()
        self.http_request_duration_seconds.labels(endpoint=endpoint, method=method).observe(
            duration
        )

    def record_invite_event(self, event: str, role: str) -> None:
        """Record an invite lifecycle event."""
        self.invite_events_total.labels(event=event, role=role).inc()

    def record_transaction_created(self, transaction_type: str) -> None:
        self.transactions_created_total.labels(transaction_type=transaction_type).inc()

    def record_transaction_status(self, status: str) -> None:
        self.transaction_status_updates_total.labels(transaction_status=status).inc()

    def record_stock_replacement(self, operation: str) -> None:
        self.stock_replacements_total.labels(operation=operation).inc()

    def record_access_denied(self, required_roles: str) -> None:
        self.access_denied_total.labels(required_roles=required_roles).inc()

    def record_error(self, error_type: str, operation: str) -> None:
        """Record error occurrence."""
        self.errors_total.labels(error_type=error_type, operation=operation).inc()


# Global metrics instance
metrics = MarketplaceMetrics()
