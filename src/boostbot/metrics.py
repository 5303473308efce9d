"""Prometheus metrics collector."""

import logging
from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge

logger = logging.getLogger(__name__)


class MetricsCollector:
    """Collects and exposes Prometheus metrics."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """
        Initialize metrics.

        Args:
            registry: Registry to register into (process default when None)
        """
        registry = registry if registry is not None else REGISTRY

        # Inbound payments
        self.payments_total = Counter(
            "boostbot_payments_total",
            "Total Helipad payment splits received",
            ["action"],
            registry=registry,
        )

        self.payments_filtered_total = Counter(
            "boostbot_payments_filtered_total",
            "Payment splits dropped by entry filters",
            ["reason"],
            registry=registry,
        )

        self.late_splits_total = Counter(
            "boostbot_late_splits_total",
            "Splits ignored because their session already finalized",
            registry=registry,
        )

        # Sessions
        self.sessions_created_total = Counter(
            "boostbot_sessions_created_total",
            "Boost sessions created",
            registry=registry,
        )

        self.timer_arms_total = Counter(
            "boostbot_timer_arms_total",
            "Finalize timers armed or re-armed by fee-bearing splits",
            registry=registry,
        )

        self.sessions_finalized_total = Counter(
            "boostbot_sessions_finalized_total",
            "Boost sessions finalized",
            ["outcome"],
            registry=registry,
        )

        self.sessions_expired_total = Counter(
            "boostbot_sessions_expired_total",
            "Boost sessions discarded without a fee-bearing split",
            registry=registry,
        )

        self.sessions_in_flight = Gauge(
            "boostbot_sessions_in_flight",
            "Boost sessions currently collecting splits",
            registry=registry,
        )

        # Publishing
        self.relay_publish_total = Counter(
            "boostbot_relay_publish_total",
            "Relay publish attempts",
            ["status"],
            registry=registry,
        )

        # Application health
        self.errors_total = Counter(
            "boostbot_errors_total",
            "Total errors encountered",
            ["component", "error_type"],
            registry=registry,
        )

    def record_payment(self, action: int) -> None:
        """Record a received payment split."""
        self.payments_total.labels(action=str(action)).inc()

    def record_filtered(self, reason: str) -> None:
        """Record a split dropped by the entry filters."""
        self.payments_filtered_total.labels(reason=reason).inc()

    def record_late_split(self) -> None:
        """Record a split that arrived after its session finalized."""
        self.late_splits_total.inc()

    def record_session_created(self) -> None:
        """Record a new boost session."""
        self.sessions_created_total.inc()

    def record_timer_armed(self) -> None:
        """Record a finalize timer (re)arm."""
        self.timer_arms_total.inc()

    def record_finalized(self, outcome: str) -> None:
        """Record a finalized session."""
        self.sessions_finalized_total.labels(outcome=outcome).inc()

    def record_sessions_expired(self, count: int = 1) -> None:
        """Record sessions discarded without posting."""
        self.sessions_expired_total.inc(count)

    def set_sessions_in_flight(self, count: int) -> None:
        """Update the in-flight session gauge."""
        self.sessions_in_flight.set(count)

    def record_relay_result(self, success: bool) -> None:
        """Record one relay publish result."""
        self.relay_publish_total.labels(status="success" if success else "failure").inc()

    def record_error(self, component: str, error_type: str) -> None:
        """Record an error."""
        self.errors_total.labels(component=component, error_type=error_type).inc()


# Global metrics collector instance
_metrics: MetricsCollector = None


def get_metrics() -> MetricsCollector:
    """Get or create global metrics collector."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
