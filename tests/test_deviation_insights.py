"""
Unit tests for deviation insight text and vehicle recommendations
"""

from fleet_efficiency.models import DeviationType, Severity, TrendDirection
from fleet_efficiency.services.deviation_classifier import classify_deviation
from fleet_efficiency.services.deviation_insights import (
    POSSIBLE_CAUSES,
    RECOMMENDATIONS,
    attach_insights,
    deviation_insights,
    vehicle_recommendations,
)
from tests.fixtures.trip_fixtures import make_baseline, make_samples


class TestDeviationInsights:
    """Test deviation_insights lookup"""

    def test_below_lower_causes(self):
        causes, recommendations = deviation_insights(DeviationType.BELOW_LOWER, -18.0)

        assert causes == list(POSSIBLE_CAUSES[DeviationType.BELOW_LOWER])
        assert recommendations == list(RECOMMENDATIONS[DeviationType.BELOW_LOWER])

    def test_within_range_has_no_text(self):
        assert deviation_insights(DeviationType.WITHIN_RANGE, 3.0) == ([], [])

    def test_urgent_deviation_adds_investigation(self):
        _, recommendations = deviation_insights(DeviationType.ABOVE_UPPER, 30.0)

        assert recommendations[0] == "Immediate investigation required"
        assert recommendations[-1] == "Consider temporary vehicle inspection"

    def test_exactly_twenty_five_is_not_urgent(self):
        _, recommendations = deviation_insights(DeviationType.ABOVE_UPPER, 25.0)

        assert "Immediate investigation required" not in recommendations

    def test_returns_fresh_lists(self):
        causes, _ = deviation_insights(DeviationType.BELOW_LOWER, -18.0)
        causes.clear()

        assert POSSIBLE_CAUSES[DeviationType.BELOW_LOWER]

    def test_attach_insights_copies_record(self):
        trip = make_samples([7.0])[0]
        record = classify_deviation(trip, make_baseline(value=10.0))

        enriched = attach_insights(record)

        assert record.possible_causes == []
        assert enriched.possible_causes
        assert enriched.recommendations[0] == "Immediate investigation required"
        assert enriched.deviation_percent == record.deviation_percent


class TestVehicleRecommendations:
    """Test vehicle_recommendations"""

    def test_no_baseline(self):
        recs = vehicle_recommendations(None, [], TrendDirection.STABLE, True)

        assert recs == [
            "Establish fuel efficiency baseline for this vehicle",
            "Collect at least 10 trips over 30 days for accurate baseline",
        ]

    def test_healthy_vehicle_has_none(self):
        recs = vehicle_recommendations(
            make_baseline(confidence=85), [], TrendDirection.STABLE, False
        )

        assert recs == []

    def test_low_confidence_and_stale(self):
        recs = vehicle_recommendations(
            make_baseline(confidence=55), [], TrendDirection.STABLE, True
        )

        assert "Update baseline with recent performance data" in recs
        assert "Increase trip sample size to improve baseline accuracy" in recs

    def test_high_severity_and_frequent_deviations(self):
        baseline = make_baseline(value=10.0)
        deviations = [
            classify_deviation(trip, baseline)
            for trip in make_samples([7.0, 7.2, 7.4, 7.1, 7.3, 7.0])
        ]
        assert all(d.severity == Severity.HIGH for d in deviations)

        recs = vehicle_recommendations(baseline, deviations, TrendDirection.DECLINING, False)

        assert "Investigate high-severity efficiency deviations immediately" in recs
        assert "Review driving patterns and vehicle maintenance schedule" in recs
        assert "Schedule comprehensive vehicle inspection" in recs

    def test_improving_trend(self):
        recs = vehicle_recommendations(
            make_baseline(confidence=85), [], TrendDirection.IMPROVING, False
        )

        assert recs == ["Document recent changes that improved efficiency"]
