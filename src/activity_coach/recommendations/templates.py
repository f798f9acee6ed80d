"""
Template Recommendations

Fixed headline and advice text keyed by trend verdict and metric. Used
directly for the offline path and as the fallback when generated advice is
unavailable.
"""

from typing import Dict, Tuple

from ..models.recommendation import (
    AdviceSource,
    MetricKind,
    Recommendation,
    TrendVerdict,
)


Template = Tuple[str, str]  # (headline, advice)


RECOMMENDATION_TEMPLATES: Dict[Tuple[TrendVerdict, MetricKind], Template] = {
    # Speed
    (TrendVerdict.IMPROVEMENT, MetricKind.SPEED): (
        "Your speed is improving!",
        "Your recent speed gains show you're making progress. Try adding one sprint "
        "session per week, alternating between 30-second and 60-second efforts with "
        "full recovery. Focus on maintaining your form during speedwork.",
    ),
    (TrendVerdict.DECLINE, MetricKind.SPEED): (
        "Your speed shows a temporary setback.",
        "Recent speed metrics indicate you might need recovery. Focus on easy runs for "
        "the next week, then gradually reintroduce speedwork with 200m repeats at 5K "
        "pace. Ensure you're getting adequate protein and sleep.",
    ),
    # Distance
    (TrendVerdict.IMPROVEMENT, MetricKind.DISTANCE): (
        "Your distance capacity is growing!",
        "Great progress on building distance. Continue with one longer run per week, "
        "increasing by no more than 10% each week. Make sure to take recovery days "
        "after your longer efforts.",
    ),
    (TrendVerdict.DECLINE, MetricKind.DISTANCE): (
        "Your distance capacity has decreased slightly.",
        "Recent runs suggest you may need a recovery period. Scale back total weekly "
        "mileage by 20% for one week, then rebuild. Consider cross-training like "
        "cycling or swimming to maintain fitness while reducing impact.",
    ),
    # Elevation
    (TrendVerdict.IMPROVEMENT, MetricKind.ELEVATION): (
        "Your hill performance is improving!",
        "You're getting stronger on hills. Incorporate one dedicated hill session "
        "weekly, focusing on power on the uphills and recovery on the downhills. Add "
        "some calf raises and lunges to support continued improvement.",
    ),
    (TrendVerdict.DECLINE, MetricKind.ELEVATION): (
        "Your hill performance has decreased.",
        "Your hill metrics suggest possible fatigue. Take a week with flat routes only, "
        "then gradually reintroduce hills with a focus on form rather than speed. "
        "Consider adding glute strengthening exercises to your routine.",
    ),
    # Pace distribution
    (TrendVerdict.IMPROVEMENT, MetricKind.PACE_DISTRIBUTION): (
        "Your pacing is consistent!",
        "Your run speeds sit in a tight band, a sign of good pace control. Keep most "
        "runs easy and add one structured tempo session per week to lift the whole band.",
    ),
    (TrendVerdict.DECLINE, MetricKind.PACE_DISTRIBUTION): (
        "Your pacing is uneven.",
        "Your run speeds vary widely. Run your easy days by feel or heart rate rather "
        "than chasing pace, and save fast running for one or two planned sessions a week.",
    ),
    (TrendVerdict.CONSTANT, MetricKind.PACE_DISTRIBUTION): (
        "Your pacing varies moderately.",
        "There is some spread in your run speeds. Decide the purpose of each run "
        "before you start (easy, steady or fast) and hold that effort for the whole session.",
    ),
    # Combined performance
    (TrendVerdict.IMPROVEMENT, MetricKind.PERFORMANCE): (
        "Great progress! Your performance is improving.",
        "Keep up the good work. Try increasing your distance by 10% this week to build "
        "on your momentum.",
    ),
    (TrendVerdict.DECLINE, MetricKind.PERFORMANCE): (
        "Your performance shows a slight decrease.",
        "Consider a recovery week with lighter workouts, then gradually build back up. "
        "Focus on proper nutrition and sleep.",
    ),
    (TrendVerdict.CONSTANT, MetricKind.PERFORMANCE): (
        "Your performance has been consistent.",
        "Try adding interval training to break through your plateau. Mix up your "
        "routes to keep things interesting.",
    ),
    (TrendVerdict.INSUFFICIENT_DATA, MetricKind.PERFORMANCE): (
        "Not enough data to analyze trends.",
        "Track a few more workouts so we can provide personalized recommendations.",
    ),
}

# Used when a (verdict, metric) pair has no entry of its own
VERDICT_DEFAULTS: Dict[TrendVerdict, Template] = {
    TrendVerdict.CONSTANT: (
        "Your performance is stable.",
        "Your metrics show consistency. To break through your current plateau, try "
        "adding variety with fartlek training (alternating fast and slow segments). "
        "Also consider mixing up your terrain and routes to challenge different muscle groups.",
    ),
    TrendVerdict.INSUFFICIENT_DATA: (
        "Not enough data available.",
        "We need more activity data to provide personalized recommendations. Try to log "
        "at least 3-4 runs per week with your current device to receive tailored advice.",
    ),
}

DEFAULT_TEMPLATE: Template = (
    "Performance analysis available.",
    "Keep up with consistent training. Mix high and low intensity workouts throughout "
    "the week, with at least one rest or active recovery day. Stay hydrated and focus "
    "on quality sleep for optimal recovery.",
)


def get_template(verdict: TrendVerdict, metric_kind: MetricKind) -> Template:
    """Look up the template for a verdict and metric, with defaults."""
    template = RECOMMENDATION_TEMPLATES.get((verdict, metric_kind))
    if template is None:
        template = VERDICT_DEFAULTS.get(verdict, DEFAULT_TEMPLATE)
    return template


def recommend(
    verdict: TrendVerdict,
    metric_kind: MetricKind,
    source: AdviceSource = AdviceSource.TEMPLATE,
) -> Recommendation:
    """Build the local recommendation for a verdict and metric."""
    headline, advice = get_template(verdict, metric_kind)
    return Recommendation(
        trend_verdict=verdict,
        headline=headline,
        advice=advice,
        source=source,
    )
