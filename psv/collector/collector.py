import logging
import time
from typing import Callable, Optional, Sequence

from psv.collector.json_writer import ResultsWriter
from psv.collector.pagespeed_client import PageSpeedClient
from psv.collector.sample import ErrorSample, RunSet
from psv.config import Thresholds
from psv.errors import FetchError
from psv.report import Reporter
from psv.targets import URLConfig

logger = logging.getLogger(__name__)


def run_single_pass(
    client: PageSpeedClient,
    targets: Sequence[URLConfig],
    thresholds: Thresholds,
    reporter: Reporter,
    detailed: bool = False,
) -> RunSet:
    """Fetches every target once, in order, and prints each result followed by a summary."""
    reporter.testing_header(targets)
    run_set: RunSet = []

    for target in targets:
        logger.info(f"Testing: {target.name} ({target.strategy.value})...")
        try:
            sample = client.fetch(target, run=1, detailed=detailed)
        except FetchError as e:
            logger.error(f"{target.name}: {e}")
            reporter.fetch_error(target, str(e))
            run_set.append(ErrorSample(target.name, target.url, target.strategy, 1, str(e)))
            continue

        run_set.append(sample)
        reporter.sample(sample, thresholds)

    reporter.single_summary(run_set, thresholds)
    return run_set


def run_watch(
    client: PageSpeedClient,
    targets: Sequence[URLConfig],
    thresholds: Thresholds,
    reporter: Reporter,
    writer: Optional[ResultsWriter],
    interval_seconds: float,
    detailed: bool = False,
    sleep: Callable[[float], None] = time.sleep,
    max_passes: Optional[int] = None,
) -> int:
    """
    Repeats single passes until interrupted (or max_passes is reached). The next pass is
    scheduled only after the current one has been printed and saved. Returns the pass count.
    """
    passes = 0
    try:
        while True:
            run_set = run_single_pass(client, targets, thresholds, reporter, detailed=detailed)
            if writer is not None:
                path = writer.write(run_set, thresholds, targets)
                reporter.saved(str(path))
            passes += 1

            if max_passes is not None and passes >= max_passes:
                break

            logger.info(f"Waiting {interval_seconds:g} seconds before next run...")
            sleep(interval_seconds)

    except KeyboardInterrupt:
        logger.info("program interrupted by the User")

    return passes
