"""LLM prompt templates for coaching advice."""

from typing import Optional

from ..models.recommendation import MetricKind


# ============================================================================
# ADVICE PROMPTS
# ============================================================================

ADVICE_SYSTEM = "You are an expert fitness coach specializing in personalized training recommendations."

SPEED_ADVICE_USER = """As a fitness coach, analyze these recent running speed metrics:

{metrics}

Provide a personalized training recommendation based on these trends. Include:
1. A brief summary of current performance
2. Recommendations from the summary
Limit to 3-4 sentences total."""

DISTANCE_ADVICE_USER = """As a fitness coach, analyze these recent running distance metrics:

{metrics}

Provide a personalized training recommendation for distance improvement. Include:
1. A brief summary of current distance capacity
2. Recommendations from the summary
Limit to 3-4 sentences total."""

ELEVATION_ADVICE_USER = """As a fitness coach, analyze these recent elevation gain metrics:

{metrics}

Provide a personalized training recommendation for hill/elevation training. Include:
1. A brief summary of current hill performance
2. Recommendations from the summary
Limit to 3-4 sentences total."""

PACE_DISTRIBUTION_ADVICE_USER = """As a fitness coach, analyze this pace distribution data:

{metrics}

{distribution}

Provide a personalized pace training recommendation. Include:
1. A summary of current pace variability
2. Recommendations from the summary
Limit to 3-4 sentences total."""

GENERAL_ADVICE_USER = """As a fitness coach, analyze these recent performance metrics for {label}:

{metrics}

Provide a personalized training recommendation based on these trends. Include:
1. A brief summary of current performance
2. Recommendations from the summary
Limit to 3-4 sentences total."""


ADVICE_USER_TEMPLATES = {
    MetricKind.SPEED: SPEED_ADVICE_USER,
    MetricKind.DISTANCE: DISTANCE_ADVICE_USER,
    MetricKind.ELEVATION: ELEVATION_ADVICE_USER,
    MetricKind.PACE_DISTRIBUTION: PACE_DISTRIBUTION_ADVICE_USER,
}


def build_advice_prompt(
    metric_kind: MetricKind,
    metrics: str,
    distribution: Optional[str] = None,
) -> str:
    """Fill the user prompt for a metric."""
    template = ADVICE_USER_TEMPLATES.get(metric_kind, GENERAL_ADVICE_USER)
    return template.format(
        metrics=metrics,
        label=metric_kind.label,
        distribution=distribution or "Insufficient pace data",
    )
