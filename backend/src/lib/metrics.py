"""
Prometheus-compatible metrics for observability.

Tracks the shop's key counters:
- Settled transactions (by category and payment mode)
- Failed settlements (by category and reason)
- Cashback earned and redeemed, revenue collected (whole naira)

Usage:
    from src.lib.metrics import get_metrics_collector

    metrics = get_metrics_collector()
    metrics.record_settlement(category="barbing", payment_mode="cash",
                              amount_charged=1000, cashback_used=0, cashback_earned=50)

    # Export for Prometheus
    prometheus_output = metrics.export_prometheus()
"""

from decimal import Decimal
from typing import Dict, Tuple, Union
from threading import Lock


Number = Union[int, float, Decimal]

_HELP = {
    "transactions_settled_total": "Total number of settled transactions",
    "transaction_failures_total": "Total number of refused or failed settlements",
    "revenue_total": "Total amount collected in naira",
    "cashback_earned_total": "Total cashback credited to customers in naira",
    "cashback_redeemed_total": "Total cashback spent by customers in naira",
}


class MetricsCollector:
    """
    Prometheus-style metrics collector for the POS backend.

    Counters:
    - transactions_settled_total: Settled sales (labels: category, payment_mode)
    - transaction_failures_total: Refused or failed settlements (labels: category, reason)
    - revenue_total: Amount collected in naira (labels: category)
    - cashback_earned_total: Cashback credited in naira (labels: category)
    - cashback_redeemed_total: Cashback spent in naira (labels: category)

    Thread-safe for concurrent increments.
    """

    def __init__(self):
        self._lock = Lock()

        # Counters: key = (metric_name, labels_tuple), value = count
        self._counters: Dict[Tuple[str, Tuple[Tuple[str, str], ...]], Number] = {}

    def _get_counter_key(self, metric_name: str, labels: Dict[str, str]) -> Tuple[str, Tuple[Tuple[str, str], ...]]:
        """Generate unique key for counter with sorted labels."""
        sorted_labels = tuple(sorted(labels.items()))
        return (metric_name, sorted_labels)

    def _increment(self, metric_name: str, labels: Dict[str, str], amount: Number = 1):
        """Thread-safe increment of counter."""
        key = self._get_counter_key(metric_name, labels)
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + amount

    def _get_value(self, metric_name: str, labels: Dict[str, str]) -> Number:
        """Get current value of counter."""
        key = self._get_counter_key(metric_name, labels)
        with self._lock:
            return self._counters.get(key, 0)

    # ===== Settlement Metrics =====

    def record_settlement(
        self,
        category: str,
        payment_mode: str,
        amount_charged: Number,
        cashback_used: Number,
        cashback_earned: Number,
    ):
        """
        Record one successfully settled transaction.

        Args:
            category: Service category (barbing, charging, computer)
            payment_mode: Payment mode (cash, transfer, pos, cashback)
            amount_charged: Money actually collected
            cashback_used: Cashback consumed as payment
            cashback_earned: Cashback credited to the customer
        """
        category = category.lower()
        self._increment(
            "transactions_settled_total",
            {"category": category, "payment_mode": payment_mode.lower()},
        )
        if amount_charged:
            self._increment("revenue_total", {"category": category}, amount_charged)
        if cashback_used:
            self._increment("cashback_redeemed_total", {"category": category}, cashback_used)
        if cashback_earned:
            self._increment("cashback_earned_total", {"category": category}, cashback_earned)

    def increment_failures(self, category: str, reason: str = "unknown", amount: int = 1):
        """Increment refused or failed settlements."""
        labels = {
            "category": category.lower(),
            "reason": reason.lower()
        }
        self._increment("transaction_failures_total", labels, amount)

    # ===== Export =====

    def export_prometheus(self) -> str:
        """Render every counter in Prometheus text format; empty when nothing was recorded."""
        with self._lock:
            snapshot = dict(self._counters)

        series_by_metric: Dict[str, list] = {}
        for (metric_name, labels), value in snapshot.items():
            series_by_metric.setdefault(metric_name, []).append((labels, value))

        lines = []
        for metric_name in sorted(series_by_metric):
            lines.append(f"# HELP {metric_name} {_HELP.get(metric_name, 'Counter metric')}")
            lines.append(f"# TYPE {metric_name} counter")
            for labels, value in sorted(series_by_metric[metric_name]):
                rendered = ",".join(f'{name}="{label}"' for name, label in labels)
                lines.append(f"{metric_name}{{{rendered}}} {value}")
            lines.append("")

        return "\n".join(lines)

    def get_counter_value(self, metric_name: str, labels: Dict[str, str]) -> Number:
        """Current value of one series; 0 if it was never incremented."""
        return self._get_value(metric_name, labels)

    def reset_all(self):
        """Reset all counters (for testing)."""
        with self._lock:
            self._counters.clear()


# Global singleton instance
_metrics_collector: MetricsCollector | None = None
_metrics_lock = Lock()


def get_metrics_collector() -> MetricsCollector:
    """
    Get global metrics collector singleton.

    Returns:
        MetricsCollector instance
    """
    global _metrics_collector
    if _metrics_collector is None:
        with _metrics_lock:
            if _metrics_collector is None:
                _metrics_collector = MetricsCollector()
    return _metrics_collector


def reset_metrics():
    """Reset global metrics collector (for testing)."""
    global _metrics_collector
    with _metrics_lock:
        if _metrics_collector is not None:
            _metrics_collector.reset_all()
