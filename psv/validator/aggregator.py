import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from psv.collector.sample import ErrorSample, MetricSample, RunSet, Sample
from psv.config import GroupBy, Thresholds
from psv.targets import Strategy, URLConfig

logger = logging.getLogger(__name__)

BucketKey = tuple[str, Optional[Strategy]]


@dataclass(frozen=True)
class MetricStats:
    min: float
    max: float
    mean: float

    @classmethod
    def of(cls, values: Sequence[float]) -> "MetricStats":
        return cls(min=min(values), max=max(values), mean=sum(values) / len(values))


@dataclass
class TargetSummary:
    """
    Aggregated view of every run for one bucket.

    strategy is None when samples were grouped by URL only, in which case mobile and
    desktop measurements of the same URL are mixed together.
    """

    name: str
    url: str
    strategy: Optional[Strategy]
    samples: list[Sample] = field(default_factory=list)

    @property
    def successes(self) -> list[MetricSample]:
        return [s for s in self.samples if isinstance(s, MetricSample)]

    @property
    def errors(self) -> list[ErrorSample]:
        return [s for s in self.samples if isinstance(s, ErrorSample)]

    @property
    def fully_errored(self) -> bool:
        return not self.successes

    @property
    def cls_stats(self) -> Optional[MetricStats]:
        if self.fully_errored:
            return None
        return MetricStats.of([s.cls for s in self.successes])

    @property
    def performance_stats(self) -> Optional[MetricStats]:
        if self.fully_errored:
            return None
        return MetricStats.of([s.performance for s in self.successes])


@dataclass(frozen=True)
class TargetResult:
    summary: TargetSummary
    cls_passed: bool
    performance_passed: bool

    @property
    def passed(self) -> bool:
        return self.cls_passed and self.performance_passed


@dataclass(frozen=True)
class ValidationReport:
    results: list[TargetResult]
    thresholds: Thresholds
    runs: int

    @property
    def passed(self) -> bool:
        return all(result.passed for result in self.results)

    def exit_code(self, require_all_pass: bool = True) -> int:
        """0 when every bucket passed. Without require_all_pass the caller owns the decision."""
        if not require_all_pass:
            return 0
        return 0 if self.passed else 1


def bucket_key(url: str, strategy: Strategy, group_by: GroupBy) -> BucketKey:
    if group_by is GroupBy.URL:
        return (url, None)
    return (url, strategy)


def aggregate(
    run_sets: Sequence[RunSet],
    targets: Sequence[URLConfig],
    thresholds: Thresholds,
    group_by: GroupBy = GroupBy.URL_STRATEGY,
) -> ValidationReport:
    """
    Groups the samples of every run into per-target buckets and grades each bucket.

    A bucket passes when its worst CLS stays under thresholds.cls and its worst performance
    score reaches thresholds.performance. Buckets without a single successful sample fail.
    """
    buckets: dict[BucketKey, TargetSummary] = {}
    for target in targets:
        key = bucket_key(target.url, target.strategy, group_by)
        if key not in buckets:
            name = target.name
            if key[1] is None:
                name = name.removesuffix(f" ({target.strategy.label})")
            buckets[key] = TargetSummary(name=name, url=target.url, strategy=key[1])

    for run_set in run_sets:
        for sample in run_set:
            key = bucket_key(sample.url, sample.strategy, group_by)
            if key not in buckets:
                logger.warning(f"Dropping sample for unconfigured target {sample.url}")
                continue
            buckets[key].samples.append(sample)

    results = [_grade(summary, thresholds) for summary in buckets.values()]
    return ValidationReport(results=results, thresholds=thresholds, runs=len(run_sets))


def _grade(summary: TargetSummary, thresholds: Thresholds) -> TargetResult:
    cls_stats = summary.cls_stats
    performance_stats = summary.performance_stats
    if cls_stats is None or performance_stats is None:
        logger.warning(f"{summary.name}: every run failed, counting as a failure")
        return TargetResult(summary=summary, cls_passed=False, performance_passed=False)

    return TargetResult(
        summary=summary,
        cls_passed=cls_stats.max < thresholds.cls,
        performance_passed=performance_stats.min >= thresholds.performance,
    )
