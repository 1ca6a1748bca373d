import json
import logging
from pathlib import Path
from typing import Sequence

from psv.collector.sample import Sample, utc_timestamp
from psv.config import DEFAULT_RESULTS_DIR, Thresholds
from psv.targets import URLConfig

logger = logging.getLogger(__name__)

FILENAME_PREFIX = "psi-results-"


class ResultsWriter:
    results_dir: Path

    def __init__(self, results_dir: Path | str = DEFAULT_RESULTS_DIR) -> None:
        self.results_dir = Path(results_dir)

    def write(
        self,
        samples: Sequence[Sample],
        thresholds: Thresholds,
        targets: Sequence[URLConfig],
    ) -> Path:
        """
        write dumps one pass worth of samples, error entries included, next to the thresholds
        and targets they were measured against. Returns the path of the new file.

        OSError is left to the caller: losing saved results silently is worse than failing.
        """
        self.results_dir.mkdir(parents=True, exist_ok=True)
        timestamp = utc_timestamp()
        filename = self.results_dir / f"{FILENAME_PREFIX}{_filesystem_safe(timestamp)}.json"

        document = {
            "timestamp": timestamp,
            "config": {
                "thresholds": thresholds.to_dict(),
                "urls": [{"name": t.name, "url": t.url} for t in targets],
            },
            "results": [sample.to_dict() for sample in samples],
        }
        with open(filename, mode="w", encoding="utf-8") as f:
            json.dump(document, f, indent=2)

        logger.info(f"wrote {len(samples)} result(s) to {filename}")
        return filename


def _filesystem_safe(timestamp: str) -> str:
    return timestamp.replace(":", "-").replace(".", "-")
