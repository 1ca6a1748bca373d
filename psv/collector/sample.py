from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, TypeAlias, Union

from psv.targets import Strategy


def utc_timestamp() -> str:
    """ISO-8601 in UTC with millisecond precision, e.g. 2026-10-17T09:30:00.123Z."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class MetricSample:
    name: str
    url: str
    strategy: Strategy
    timestamp: str
    performance: int
    cls: float
    lcp: float
    fcp: float
    si: float
    tbt: float
    tti: float
    max_potential_fid: Optional[float] = None
    run: int = 1
    layout_shift_elements: tuple[str, ...] = field(default_factory=tuple)
    lcp_details: Optional[dict[str, Any]] = field(default=None, hash=False)

    is_error = False

    @property
    def fid(self) -> float:
        """max-potential-fid is not always reported; a missing audit counts as 0 ms."""
        return self.max_potential_fid if self.max_potential_fid is not None else 0.0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "url": self.url,
            "strategy": self.strategy.value,
            "timestamp": self.timestamp,
            "performance": self.performance,
            "cls": self.cls,
            "lcp": self.lcp,
            "fid": self.fid,
            "fcp": self.fcp,
            "si": self.si,
            "tbt": self.tbt,
            "tti": self.tti,
            "run": self.run,
        }
        if self.layout_shift_elements:
            data["clsDetails"] = list(self.layout_shift_elements)
        if self.lcp_details is not None:
            data["lcpDetails"] = self.lcp_details
        return data


@dataclass(frozen=True)
class ErrorSample:
    name: str
    url: str
    strategy: Strategy
    run: int
    error: str

    is_error = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "url": self.url,
            "strategy": self.strategy.value,
            "run": self.run,
            "error": self.error,
        }


Sample: TypeAlias = Union[MetricSample, ErrorSample]
RunSet: TypeAlias = list[Sample]
