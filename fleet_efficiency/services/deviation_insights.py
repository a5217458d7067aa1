"""
Deviation insight catalog and vehicle recommendations

Advisory text only. Kept as lookup tables so wording can change (or be
translated) without touching the classifier.
"""

from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from fleet_efficiency.models import (
    Baseline,
    DeviationRecord,
    DeviationType,
    Severity,
    TrendDirection,
)

URGENT_DEVIATION_PERCENT = 25.0
LOW_CONFIDENCE_SCORE = 70
FREQUENT_DEVIATION_COUNT = 5

POSSIBLE_CAUSES: Dict[DeviationType, Tuple[str, ...]] = {
    DeviationType.BELOW_LOWER: (
        "Aggressive driving or high-speed travel",
        "Air conditioning usage in heavy traffic",
        "Vehicle maintenance issues (dirty air filter, low tire pressure)",
        "Heavy cargo or passenger load",
        "Poor road conditions or traffic congestion",
        "Fuel quality issues",
        "Engine problems or aging components",
    ),
    DeviationType.ABOVE_UPPER: (
        "Very efficient driving (optimal speed, smooth acceleration)",
        "Favorable road conditions (downhill, tailwind)",
        "Light vehicle load",
        "Recent vehicle maintenance improvements",
        "Fuel measurement or calculation errors",
        "Route with significant downhill segments",
    ),
    DeviationType.WITHIN_RANGE: (),
}

RECOMMENDATIONS: Dict[DeviationType, Tuple[str, ...]] = {
    DeviationType.BELOW_LOWER: (
        "Check vehicle maintenance schedule",
        "Review driver behavior and driving patterns",
        "Inspect tire pressure and air filter",
        "Consider fuel system cleaning",
        "Monitor for recurring patterns in similar routes",
    ),
    DeviationType.ABOVE_UPPER: (
        "Verify fuel quantity and odometer readings",
        "Document driving conditions and route characteristics",
        "Check if this efficiency can be replicated",
        "Review calculation accuracy",
        "Consider updating baseline if pattern continues",
    ),
    DeviationType.WITHIN_RANGE: (),
}


def deviation_insights(
    deviation_type: DeviationType, deviation_percent: float
) -> Tuple[List[str], List[str]]:
    """
    Look up possible causes and recommendations for a deviation.

    Returns:
        (possible_causes, recommendations) as fresh lists
    """
    causes = list(POSSIBLE_CAUSES.get(deviation_type, ()))
    recommendations = list(RECOMMENDATIONS.get(deviation_type, ()))

    if abs(deviation_percent) > URGENT_DEVIATION_PERCENT:
        recommendations.insert(0, "Immediate investigation required")
        recommendations.append("Consider temporary vehicle inspection")

    return causes, recommendations


def attach_insights(record: DeviationRecord) -> DeviationRecord:
    """Return a copy of the record with insight text filled in."""
    causes, recommendations = deviation_insights(
        record.deviation_type, record.deviation_percent
    )
    return replace(record, possible_causes=causes, recommendations=recommendations)


def vehicle_recommendations(
    baseline: Optional[Baseline],
    deviations: Sequence[DeviationRecord],
    trend: TrendDirection,
    needs_update: bool,
    min_samples: int = 10,
) -> List[str]:
    """Recommendations for a vehicle's baseline analysis."""
    recommendations: List[str] = []

    if baseline is None:
        recommendations.append("Establish fuel efficiency baseline for this vehicle")
        recommendations.append(
            f"Collect at least {min_samples} trips over 30 days for accurate baseline"
        )
        return recommendations

    if needs_update:
        recommendations.append("Update baseline with recent performance data")

    if baseline.confidence_score < LOW_CONFIDENCE_SCORE:
        recommendations.append("Increase trip sample size to improve baseline accuracy")

    if any(d.severity == Severity.HIGH for d in deviations):
        recommendations.append(
            "Investigate high-severity efficiency deviations immediately"
        )

    if len(deviations) > FREQUENT_DEVIATION_COUNT:
        recommendations.append(
            "Review driving patterns and vehicle maintenance schedule"
        )

    if trend == TrendDirection.DECLINING:
        recommendations.append("Monitor vehicle health - efficiency trending downward")
        recommendations.append("Schedule comprehensive vehicle inspection")
    elif trend == TrendDirection.IMPROVING:
        recommendations.append("Document recent changes that improved efficiency")

    return recommendations
