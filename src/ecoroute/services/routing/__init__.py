"""Route alternative generation, scoring and recalculation."""

from .models import AlertDraft, OptimizedRoute, RecalculationDecision
from .optimizer import RouteOptimizer, generate_alternatives

__all__ = [
    "AlertDraft",
    "OptimizedRoute",
    "RecalculationDecision",
    "RouteOptimizer",
    "generate_alternatives",
]
