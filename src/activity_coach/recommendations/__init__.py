"""Recommendation engine for coaching advice."""

from .engine import AdviceGenerator, RecommendationEngine
from .templates import (
    DEFAULT_TEMPLATE,
    RECOMMENDATION_TEMPLATES,
    VERDICT_DEFAULTS,
    get_template,
    recommend,
)

__all__ = [
    "AdviceGenerator",
    "RecommendationEngine",
    "DEFAULT_TEMPLATE",
    "RECOMMENDATION_TEMPLATES",
    "VERDICT_DEFAULTS",
    "get_template",
    "recommend",
]
