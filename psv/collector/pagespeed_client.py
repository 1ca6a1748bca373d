import logging
import math
from typing import Any

import requests

from psv.collector.sample import MetricSample, utc_timestamp
from psv.config import DEFAULT_REQUEST_TIMEOUT_SECONDS
from psv.errors import ParseError, RemoteError, TransportError
from psv.targets import URLConfig

PAGESPEED_API_URL = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
CATEGORY = "performance"
MAX_LAYOUT_SHIFT_ELEMENTS = 3
UNKNOWN_ELEMENT = "Unknown element"

# (sample field, lighthouse audit id)
REQUIRED_AUDITS = [
    ("cls", "cumulative-layout-shift"),
    ("lcp", "largest-contentful-paint"),
    ("fcp", "first-contentful-paint"),
    ("si", "speed-index"),
    ("tbt", "total-blocking-time"),
    ("tti", "interactive"),
]
FID_AUDIT = "max-potential-fid"

logger = logging.getLogger(__name__)


class PageSpeedClient:
    """Adapter over the PageSpeed Insights v5 API. One call, one sample, no retries."""

    session: requests.Session

    def __init__(
        self,
        api_key: str,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        endpoint: str = PAGESPEED_API_URL,
    ) -> None:
        self.api_key = api_key
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.endpoint = endpoint

    def fetch(self, target: URLConfig, run: int = 1, detailed: bool = False) -> MetricSample:
        """
        Requests a performance report for target and extracts its metrics.

        Raises TransportError when no response arrives within the timeout, RemoteError when
        the API answers with an error payload, ParseError when the report is malformed.
        """
        params = {
            "url": target.url,
            "strategy": target.strategy.value,
            "category": CATEGORY,
            "key": self.api_key,
        }
        logger.debug(f"GET {self.endpoint} url={target.url} strategy={target.strategy.value}")

        try:
            response = self.session.get(self.endpoint, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            # the requests message embeds the full query string, API key included
            raise TransportError(f"Request for {target.url} failed: {type(e).__name__}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise ParseError(
                f"Response for {target.url} is not valid JSON (HTTP {response.status_code})"
            ) from e

        if not isinstance(payload, dict):
            raise ParseError(f"Response for {target.url} is not a JSON object")

        if payload.get("error"):
            raise RemoteError(_error_message(payload["error"]), status_code=response.status_code)
        if not response.ok:
            raise RemoteError(f"HTTP {response.status_code} for {target.url}", response.status_code)

        return extract_sample(payload, target, run=run, detailed=detailed)


def extract_sample(
    payload: dict[str, Any], target: URLConfig, run: int = 1, detailed: bool = False
) -> MetricSample:
    """Builds a MetricSample from a runPagespeed response body."""
    try:
        lighthouse = payload["lighthouseResult"]
        score = lighthouse["categories"][CATEGORY]["score"]
        audits = lighthouse["audits"]
    except (KeyError, TypeError) as e:
        raise ParseError(f"Missing field in PageSpeed report: {e}") from e

    if not _is_number(score) or not 0 <= score <= 1:
        raise ParseError(f"Performance score is not a number in [0, 1]: {score!r}")

    metrics = {field: _numeric_audit(audits, audit_id) for field, audit_id in REQUIRED_AUDITS}

    layout_shift_elements: tuple[str, ...] = ()
    lcp_details = None
    if detailed:
        layout_shift_elements = _layout_shift_elements(audits)
        lcp_details = _audit_details(audits, "largest-contentful-paint")

    return MetricSample(
        name=target.name,
        url=target.url,
        strategy=target.strategy,
        timestamp=utc_timestamp(),
        performance=round_half_up(score * 100),
        max_potential_fid=_optional_audit(audits, FID_AUDIT),
        run=run,
        layout_shift_elements=layout_shift_elements,
        lcp_details=lcp_details,
        **metrics,
    )


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _numeric_audit(audits: Any, audit_id: str) -> float:
    try:
        value = audits[audit_id]["numericValue"]
    except (KeyError, TypeError) as e:
        raise ParseError(f"Missing audit '{audit_id}' in PageSpeed report") from e
    if not _is_number(value):
        raise ParseError(f"Audit '{audit_id}' has a non-numeric value: {value!r}")
    return float(value)


def _optional_audit(audits: Any, audit_id: str) -> float | None:
    audit = audits.get(audit_id) if isinstance(audits, dict) else None
    if not isinstance(audit, dict):
        return None
    value = audit.get("numericValue")
    return float(value) if _is_number(value) else None


def _audit_details(audits: dict[str, Any], audit_id: str) -> dict[str, Any] | None:
    """The audit's details object, None when absent. Any other shape is a malformed report."""
    audit = audits.get(audit_id)
    if not isinstance(audit, dict):
        return None
    details = audit.get("details")
    if details is None:
        return None
    if not isinstance(details, dict):
        raise ParseError(f"Audit '{audit_id}' has malformed details: {type(details).__name__}")
    return details


def _layout_shift_elements(audits: dict[str, Any]) -> tuple[str, ...]:
    details = _audit_details(audits, "cumulative-layout-shift") or {}
    items = details.get("items") or []
    if not isinstance(items, list):
        raise ParseError(f"Layout shift items are malformed: {type(items).__name__}")
    snippets = []
    for item in items[:MAX_LAYOUT_SHIFT_ELEMENTS]:
        node = item.get("node") if isinstance(item, dict) else None
        snippet = node.get("snippet") if isinstance(node, dict) else None
        snippets.append(snippet if isinstance(snippet, str) and snippet else UNKNOWN_ELEMENT)
    return tuple(snippets)


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)
