"""
Growth rate between two comparable windows.

percent = (current - previous) / previous * 100, with 0 whenever the previous
window is missing or had no views.
"""

from typing import Dict, Optional

from trendlens.models.schemas import CategoryMetrics
from trendlens.services.errors import WindowMismatch


def safe_growth(curr: float, prev: Optional[float]) -> float:
    """Growth ratio that never divides by zero."""
    if prev is None or prev <= 0:
        return 0.0
    return (curr - prev) / prev


def ensure_comparable(current: CategoryMetrics, previous: CategoryMetrics) -> None:
    """Reject a week window compared against a month window."""
    if current.window is None or previous.window is None:
        return
    if current.window.kind != previous.window.kind:
        raise WindowMismatch(
            f"Cannot compare {current.window.kind} window {current.window.label} "
            f"with {previous.window.kind} window {previous.window.label}"
        )


def growth_rate(current: CategoryMetrics, previous: Optional[CategoryMetrics]) -> float:
    """
    Growth of total views in percent.

    Raises:
        WindowMismatch: the two metrics were computed over different window kinds
    """
    if previous is None:
        return 0.0
    ensure_comparable(current, previous)
    return safe_growth(current.total_views, previous.total_views) * 100


def apply_growth(
    current: Dict[str, CategoryMetrics],
    previous: Dict[str, CategoryMetrics]
) -> Dict[str, CategoryMetrics]:
    """Copies of `current` with growth_rate_percent filled from `previous`."""
    return {
        category: metrics.model_copy(
            update={"growth_rate_percent": growth_rate(metrics, previous.get(category))}
        )
        for category, metrics in current.items()
    }
