from enum import Enum

from psv.collector.sample import ErrorSample, Sample
from psv.config import Thresholds

NEEDS_IMPROVEMENT_FACTOR = 1.5
INVERSE_NEEDS_IMPROVEMENT_FACTOR = 0.8


class Status(Enum):
    GOOD = "GOOD"
    NEEDS_IMPROVEMENT = "NEEDS IMPROVEMENT"
    POOR = "POOR"

    @property
    def icon(self) -> str:
        return {"GOOD": "✅", "NEEDS IMPROVEMENT": "⚠️ ", "POOR": "❌"}[self.value]


def classify(value: float, threshold: float, inverse: bool = False) -> Status:
    """
    Grades value against threshold.

    Lower is better by default: GOOD below the threshold, NEEDS_IMPROVEMENT up to 1.5x it.
    With inverse=True higher is better (performance score): GOOD above the threshold,
    NEEDS_IMPROVEMENT above 0.8x it. Anything else, NaN included, is POOR.
    """
    if inverse:
        if value > threshold:
            return Status.GOOD
        if value > threshold * INVERSE_NEEDS_IMPROVEMENT_FACTOR:
            return Status.NEEDS_IMPROVEMENT
        return Status.POOR

    if value < threshold:
        return Status.GOOD
    if value < threshold * NEEDS_IMPROVEMENT_FACTOR:
        return Status.NEEDS_IMPROVEMENT
    return Status.POOR


def sample_meets_thresholds(sample: Sample, thresholds: Thresholds) -> bool:
    """Single-run pass rule: CLS and LCP under their bounds, performance at or above its floor."""
    if isinstance(sample, ErrorSample):
        return False
    return (
        sample.cls < thresholds.cls
        and sample.lcp < thresholds.lcp
        and sample.performance >= thresholds.performance
    )
