import logging
import time
from enum import Enum
from typing import Callable, Optional, Sequence

from psv.collector.pagespeed_client import PageSpeedClient
from psv.collector.sample import ErrorSample, RunSet
from psv.config import Thresholds, ValidationSettings
from psv.errors import FetchError
from psv.report import Reporter
from psv.targets import URLConfig
from psv.validator.aggregator import ValidationReport, aggregate

logger = logging.getLogger(__name__)


class ValidationState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    WAITING = "waiting"
    SUMMARIZING = "summarizing"
    DONE = "done"


class ValidationRunner:
    """
    Measures every target settings.runs times and grades the collected samples.

    The flow is:
    1. RUNNING: fetch every target once, sequentially. A failed fetch becomes an ErrorSample
       and the run carries on with the next target.
    2. WAITING: sleep settings.interval_seconds so the API's result cache expires. Skipped
       before the first run.
    3. Repeat 1-2 until settings.runs run sets exist.
    4. SUMMARIZING: aggregate the run sets and report.
    """

    def __init__(
        self,
        client: PageSpeedClient,
        targets: Sequence[URLConfig],
        settings: ValidationSettings,
        thresholds: Thresholds,
        reporter: Optional[Reporter] = None,
        detailed: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.targets = list(targets)
        self.settings = settings
        self.thresholds = thresholds
        self.reporter = reporter
        self.detailed = detailed
        self._sleep = sleep
        self.state = ValidationState.IDLE
        self.current_run = 0
        self.run_sets: list[RunSet] = []

    def run(self) -> ValidationReport:
        self.run_sets = []
        self.current_run = 0
        if self.reporter is not None:
            self.reporter.validation_header(self.targets, self.settings)

        for run in range(1, self.settings.runs + 1):
            if run > 1:
                self._transition(ValidationState.WAITING)
                logger.info(f"Waiting {self.settings.interval_seconds} seconds...")
                self._sleep(self.settings.interval_seconds)

            self.current_run = run
            self._transition(ValidationState.RUNNING)
            if self.reporter is not None:
                self.reporter.run_header(run, self.settings.runs)
            self.run_sets.append(self._run_once(run))

        self._transition(ValidationState.SUMMARIZING)
        report = aggregate(self.run_sets, self.targets, self.thresholds, self.settings.group_by)
        if self.reporter is not None:
            self.reporter.validation_summary(report)

        self._transition(ValidationState.DONE)
        return report

    def _run_once(self, run: int) -> RunSet:
        run_set: RunSet = []
        for target in self.targets:
            logger.info(f"Testing: {target.name} ({target.strategy.value}) run {run}...")
            try:
                sample = self.client.fetch(target, run=run, detailed=self.detailed)
            except FetchError as e:
                logger.error(f"{target.name}: {e}")
                error_sample = ErrorSample(target.name, target.url, target.strategy, run, str(e))
                run_set.append(error_sample)
                if self.reporter is not None:
                    self.reporter.fetch_error(target, str(e))
                continue

            run_set.append(sample)
            if self.reporter is not None:
                self.reporter.compact(sample, self.thresholds)
        return run_set

    def _transition(self, state: ValidationState) -> None:
        logger.debug(f"validation: {self.state.value} -> {state.value} (run {self.current_run})")
        self.state = state
