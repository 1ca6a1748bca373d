import copy

import pytest

from psv.collector.sample import ErrorSample, MetricSample
from psv.config import Thresholds
from psv.targets import Strategy

PAGESPEED_RESPONSE = {
    "lighthouseResult": {
        "categories": {"performance": {"score": 0.92}},
        "audits": {
            "cumulative-layout-shift": {
                "numericValue": 0.05123,
                "details": {
                    "items": [
                        {"node": {"snippet": '<div class="hero">'}},
                        {"node": {"snippet": "<img src=banner.png>"}},
                        {"node": {}},
                        {"node": {"snippet": "<footer>"}},
                    ]
                },
            },
            "largest-contentful-paint": {
                "numericValue": 2345.6,
                "details": {"type": "table", "items": [{"node": {"snippet": "<img class=\"hero\">"}}]},
            },
            "max-potential-fid": {"numericValue": 87.0},
            "first-contentful-paint": {"numericValue": 1234.5},
            "speed-index": {"numericValue": 3456.7},
            "total-blocking-time": {"numericValue": 123.4},
            "interactive": {"numericValue": 4567.8},
        },
    }
}


@pytest.fixture
def pagespeed_response():
    return copy.deepcopy(PAGESPEED_RESPONSE)


@pytest.fixture
def thresholds():
    return Thresholds(cls=0.1, lcp=2500, fid=100, performance=90)


@pytest.fixture(autouse=True)
def _no_api_key_env(monkeypatch):
    monkeypatch.delenv("PSI_API_KEY", raising=False)


@pytest.fixture
def make_sample():
    def _make(
        cls: float = 0.05,
        performance: int = 95,
        run: int = 1,
        url: str = "https://example.com",
        strategy: Strategy = Strategy.MOBILE,
        lcp: float = 2000.0,
        name: str = "URL 1",
    ) -> MetricSample:
        return MetricSample(
            name=name,
            url=url,
            strategy=strategy,
            timestamp="2026-10-17T09:30:00.000Z",
            performance=performance,
            cls=cls,
            lcp=lcp,
            fcp=1200.0,
            si=3000.0,
            tbt=150.0,
            tti=4000.0,
            max_potential_fid=80.0,
            run=run,
        )

    return _make


@pytest.fixture
def make_error():
    def _make(
        run: int = 1,
        url: str = "https://example.com",
        strategy: Strategy = Strategy.MOBILE,
        error: str = "Lighthouse returned error: NO_FCP",
    ) -> ErrorSample:
        return ErrorSample("URL 1", url, strategy, run, error)

    return _make
