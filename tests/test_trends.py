"""Tests for trend classification."""

from datetime import date, datetime, timedelta, timezone

import pytest

from activity_coach.analysis.trends import classify, pace_variability, percent_change
from activity_coach.models.recommendation import MetricKind, TrendVerdict
from activity_coach.models.series import PerformanceTrendPoint, TimeSeriesPoint


def _series(*values: float):
    start = datetime(2025, 3, 1, 8, 0, tzinfo=timezone.utc)
    return [
        TimeSeriesPoint(timestamp=start + timedelta(days=i), value=v, distance=5000.0)
        for i, v in enumerate(values)
    ]


def _trend(*speeds: float):
    return [
        PerformanceTrendPoint(
            day=date(2025, 3, 1) + timedelta(days=i),
            speed=s,
            distance=5000.0,
            elevation=50.0,
            performance_index=0.4 * s + 0.6 * 5000.0,
        )
        for i, s in enumerate(speeds)
    ]


class TestPercentChange:
    """Tests for percent_change."""

    def test_increase(self):
        assert percent_change(100, 110) == pytest.approx(10.0)

    def test_decrease(self):
        assert percent_change(100, 80) == pytest.approx(-20.0)

    def test_zero_first_value(self):
        """A zero starting value cannot be compared and counts as no change."""
        assert percent_change(0, 5) == 0.0

    def test_negative_first_value(self):
        assert percent_change(-1, 5) == 0.0

    def test_missing_value(self):
        assert percent_change(None, 5) == 0.0


class TestClassifyChange:
    """Tests for the percent-change rule (speed, distance, elevation, performance)."""

    def test_speed_improvement(self):
        assert classify(_series(3.0, 3.1, 3.2), MetricKind.SPEED) == TrendVerdict.IMPROVEMENT

    def test_speed_decline(self):
        assert classify(_series(3.0, 2.9, 2.8), MetricKind.SPEED) == TrendVerdict.DECLINE

    def test_speed_within_threshold(self):
        assert classify(_series(3.0, 3.05, 3.1), MetricKind.SPEED) == TrendVerdict.CONSTANT

    def test_exactly_at_threshold_is_constant(self):
        assert classify(_series(100, 100, 105), MetricKind.DISTANCE) == TrendVerdict.CONSTANT
        assert classify(_series(100, 100, 95), MetricKind.DISTANCE) == TrendVerdict.CONSTANT

    def test_only_last_three_points_count(self):
        """An early jump outside the recent window does not affect the verdict."""
        series = _series(1.0, 10.0, 3.0, 3.05, 3.1)
        assert classify(series, MetricKind.SPEED) == TrendVerdict.CONSTANT

    def test_two_points_are_enough(self):
        assert classify(_series(5000, 6000), MetricKind.DISTANCE) == TrendVerdict.IMPROVEMENT

    def test_elevation_uses_wider_threshold(self):
        assert classify(_series(100, 104, 108), MetricKind.ELEVATION) == TrendVerdict.CONSTANT
        assert classify(_series(100, 108, 115), MetricKind.ELEVATION) == TrendVerdict.IMPROVEMENT
        assert classify(_series(100, 95, 85), MetricKind.ELEVATION) == TrendVerdict.DECLINE

    def test_first_value_zero_is_constant(self):
        assert classify(_series(0, 40, 80), MetricKind.ELEVATION) == TrendVerdict.CONSTANT

    def test_performance_compares_speed(self):
        assert classify(_trend(3.0, 3.1, 3.3), MetricKind.PERFORMANCE) == TrendVerdict.IMPROVEMENT
        assert classify(_trend(3.3, 3.1, 3.0), MetricKind.PERFORMANCE) == TrendVerdict.DECLINE

    @pytest.mark.parametrize("kind", [
        MetricKind.SPEED,
        MetricKind.DISTANCE,
        MetricKind.ELEVATION,
        MetricKind.PERFORMANCE,
    ])
    def test_insufficient_data(self, kind):
        assert classify([], kind) == TrendVerdict.INSUFFICIENT_DATA
        assert classify(_series(3.0), kind) == TrendVerdict.INSUFFICIENT_DATA


class TestClassifyPace:
    """Tests for the pace consistency rule."""

    def test_consistent_pace_is_improvement(self):
        series = _series(10.0, 10.3, 10.6)  # stdev ~0.24
        assert classify(series, MetricKind.PACE_DISTRIBUTION) == TrendVerdict.IMPROVEMENT

    def test_erratic_pace_is_decline(self):
        series = _series(8.0, 10.0, 12.0)  # stdev ~1.63
        assert classify(series, MetricKind.PACE_DISTRIBUTION) == TrendVerdict.DECLINE

    def test_moderate_spread_is_constant(self):
        series = _series(9.0, 10.0, 11.0)  # stdev ~0.82
        assert classify(series, MetricKind.PACE_DISTRIBUTION) == TrendVerdict.CONSTANT

    def test_needs_three_points(self):
        assert classify(_series(9.0, 12.0), MetricKind.PACE_DISTRIBUTION) == TrendVerdict.INSUFFICIENT_DATA

    def test_uses_all_points_not_only_recent(self):
        series = _series(6.0, 14.0, 10.0, 10.0, 10.0)
        assert pace_variability(series) > 1.5
        assert classify(series, MetricKind.PACE_DISTRIBUTION) == TrendVerdict.DECLINE

    def test_variability_below_three_points(self):
        assert pace_variability(_series(1.0, 2.0)) is None
