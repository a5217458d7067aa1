"""
Unit tests for the recency-weighted baseline estimator
"""

from datetime import timedelta

import numpy as np
import pytest

from fleet_efficiency.models import Baseline, InsufficientSamples
from fleet_efficiency.services.baseline_estimator import (
    compute_baseline,
    confidence_score,
    estimate_baseline,
    recency_weights,
)
from tests.fixtures.trip_fixtures import make_samples


class TestRecencyWeights:
    """Linear ramp 1 + (i/N) * 0.2"""

    def test_first_weight_is_one(self):
        assert recency_weights(10)[0] == 1.0

    def test_last_weight_below_bonus_cap(self):
        weights = recency_weights(10)

        assert weights[-1] == pytest.approx(1.18)
        assert np.all(np.diff(weights) > 0)

    def test_ramp_does_not_depend_on_dates(self):
        weights = recency_weights(5)

        assert list(weights) == pytest.approx([1.0, 1.04, 1.08, 1.12, 1.16])


class TestConfidenceScore:
    """Half sample size, half consistency"""

    def test_full_sample_perfect_consistency(self):
        assert confidence_score(30, 0.0) == 100

    def test_sample_score_caps_at_thirty(self):
        assert confidence_score(120, 0.0) == 100

    def test_high_variation_scores_zero_consistency(self):
        assert confidence_score(30, 0.45) == 50

    def test_twelve_identical_samples(self):
        # 12/30 * 50 = 20, plus 50 for zero variation
        assert confidence_score(12, 0.0) == 70

    def test_rounds_half_up(self):
        # 15/30 * 50 = 25, (0.3 - 0.27) / 0.3 * 50 = 5 -> 30 exactly
        assert confidence_score(15, 0.27) == 30
        # 3/30 * 50 = 5 -> 5 + 50 = 55
        assert confidence_score(3, 0.0) == 55


class TestEstimateBaseline:
    """Test estimate_baseline"""

    def test_identical_values(self):
        estimate = estimate_baseline(make_samples([8.0] * 12))

        assert estimate.baseline_value == 8.0
        assert estimate.coefficient_of_variation == 0.0
        assert estimate.confidence_score == 70
        assert estimate.sample_size == 12

    def test_newer_trips_weigh_more(self):
        rising = estimate_baseline(make_samples([7.0] * 5 + [9.0] * 5))
        falling = estimate_baseline(make_samples([9.0] * 5 + [7.0] * 5))

        assert rising.baseline_value > 8.0
        assert falling.baseline_value < 8.0

    def test_value_rounded_to_two_decimals(self):
        estimate = estimate_baseline(make_samples([7.0] * 5 + [9.0] * 5))

        assert estimate.baseline_value == round(estimate.baseline_value, 2)

    def test_pure(self):
        samples = make_samples([7.8, 8.1, 8.4, 7.6, 8.0, 8.2, 7.9, 8.3, 8.1, 7.7])

        assert estimate_baseline(samples) == estimate_baseline(samples)

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            estimate_baseline([])


class TestComputeBaseline:
    """End-to-end baseline math for one vehicle"""

    def test_scenario_excludes_outlier(self, scenario_samples, reference_now):
        baseline = compute_baseline("V-001", scenario_samples, now=reference_now)

        assert isinstance(baseline, Baseline)
        assert baseline.sample_size == 11
        assert baseline.baseline_value == 8.05
        assert baseline.confidence_score == 65
        assert baseline.data_range.trip_count == 11

    def test_defaults_and_timestamps(self, scenario_samples, reference_now):
        baseline = compute_baseline(
            "V-001", scenario_samples, now=reference_now, vehicle_registration="ABC-123"
        )

        assert baseline.tolerance_upper_percent == 15.0
        assert baseline.tolerance_lower_percent == 15.0
        assert baseline.computed_at == reference_now
        assert baseline.last_updated == reference_now
        assert baseline.vehicle_registration == "ABC-123"

    def test_data_range_spans_retained_samples(self, scenario_samples, reference_now):
        baseline = compute_baseline("V-001", scenario_samples, now=reference_now)

        assert baseline.data_range.start_date == scenario_samples[0].start_date
        assert baseline.data_range.end_date == scenario_samples[-1].start_date
        assert baseline.data_range.total_fuel == 550.0

    def test_unsorted_input_is_ordered_by_date(self, scenario_samples, reference_now):
        shuffled = list(reversed(scenario_samples))

        assert compute_baseline("V-001", shuffled, now=reference_now) == compute_baseline(
            "V-001", scenario_samples, now=reference_now
        )

    def test_ineligible_samples_do_not_count(self, reference_now):
        samples = make_samples([8.0] * 9 + [0.0] * 5)

        result = compute_baseline("V-001", samples, now=reference_now)

        assert isinstance(result, InsufficientSamples)
        assert result.available == 9

    def test_exactly_min_samples(self, reference_now):
        result = compute_baseline("V-001", make_samples([8.0] * 10), now=reference_now)

        assert isinstance(result, Baseline)
        assert result.sample_size == 10

    def test_custom_tolerance(self, reference_now):
        result = compute_baseline(
            "V-001", make_samples([8.0] * 10), now=reference_now, tolerance_percent=20.0
        )

        assert result.tolerance_upper_percent == 20.0
        assert result.tolerance_lower_percent == 20.0

    def test_widely_spread_trips(self, reference_now):
        samples = make_samples(
            [8.0] * 12, step=timedelta(days=7), start=reference_now - timedelta(days=85)
        )

        result = compute_baseline("V-001", samples, now=reference_now)

        assert result.baseline_value == 8.0


class TestMixedFleetScenario:
    """Twelve trips with the outlier in last position"""

    EFFICIENCIES = [8, 8.2, 7.9, 8.1, 8.0, 8.3, 7.8, 8.05, 8.15, 7.95, 8.2, 1.0]

    def test_outlier_excluded(self, reference_now):
        samples = make_samples(self.EFFICIENCIES)

        baseline = compute_baseline("V", samples, now=reference_now)

        assert isinstance(baseline, Baseline)
        assert baseline.sample_size == 11
        assert 8.05 <= baseline.baseline_value <= 8.15
        assert baseline.data_range.end_date == samples[-2].start_date
