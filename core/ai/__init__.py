"""AI-focused helpers for SpendWise."""

from .cache import InsightCache, InsightService
from .insights import (
    Insight,
    InsightBatch,
    InsightError,
    InsightErrorKind,
    InsightRequest,
    build_insight_request,
    generate_insights,
    parse_insights,
)

__all__ = [
    "Insight",
    "InsightBatch",
    "InsightCache",
    "InsightError",
    "InsightErrorKind",
    "InsightRequest",
    "InsightService",
    "build_insight_request",
    "generate_insights",
    "parse_insights",
]
