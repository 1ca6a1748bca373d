import json
import logging
import math
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from psv.errors import ConfigError

load_dotenv()

logger = logging.getLogger(__name__)

API_KEY_PLACEHOLDER = "YOUR_GOOGLE_API_KEY_HERE"
API_KEY_HINT = (
    "Add your Google API key to the config file (apiKey) or set PSI_API_KEY.\n"
    "Get your API key from: https://developers.google.com/speed/docs/insights/v5/get-started"
)

DEFAULT_CONFIG_PATH = os.getenv("PSI_CONFIG_PATH", "config.json")
DEFAULT_URLS_FILE = os.getenv("PSI_URLS_FILE", "urls.txt")

DEFAULT_RUNS = 3
DEFAULT_INTERVAL_SECONDS = 45
DEFAULT_RESULTS_DIR = "./results"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 120
DEFAULT_WATCH_INTERVAL_SECONDS = 60


class GroupBy(str, Enum):
    """How validation buckets samples before aggregating them."""

    URL = "url"
    URL_STRATEGY = "url+strategy"

    @classmethod
    def parse(cls, raw: str) -> "GroupBy":
        normalized = raw.strip().lower().replace("-", "+")
        for member in cls:
            if member.value == normalized:
                return member
        raise ConfigError(f"Unknown groupBy value '{raw}'. Use 'url' or 'url+strategy'.")


@dataclass(frozen=True)
class Thresholds:
    """Upper bounds for cls, lcp and fid; lower bound for the performance score."""

    cls: float
    lcp: float
    fid: float
    performance: float

    def to_dict(self) -> dict[str, float]:
        return {"cls": self.cls, "lcp": self.lcp, "fid": self.fid, "performance": self.performance}


@dataclass(frozen=True)
class ValidationSettings:
    runs: int = DEFAULT_RUNS
    interval_seconds: int = DEFAULT_INTERVAL_SECONDS
    require_all_pass: bool = True
    group_by: GroupBy = GroupBy.URL_STRATEGY


@dataclass(frozen=True)
class OutputOptions:
    save_results: bool = False
    results_dir: str = DEFAULT_RESULTS_DIR
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    watch_interval_seconds: float = DEFAULT_WATCH_INTERVAL_SECONDS


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable configuration container, loaded once at startup.
    """

    api_key: str
    thresholds: Thresholds
    validation: ValidationSettings = ValidationSettings()
    options: OutputOptions = OutputOptions()


def load_config(path: str | Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    """
    Reads a JSON or YAML config document and validates it.

    PSI_API_KEY (environment or .env) takes precedence over the document's apiKey.
    """
    raw = _read_document(Path(path))
    return parse_config(raw)


def parse_config(raw: dict[str, Any]) -> AppConfig:
    api_key = os.getenv("PSI_API_KEY") or raw.get("apiKey")
    if not api_key or api_key == API_KEY_PLACEHOLDER:
        raise ConfigError("Please add your Google API key to the configuration", hint=API_KEY_HINT)
    if not isinstance(api_key, str):
        raise ConfigError("apiKey must be a string", hint=API_KEY_HINT)

    return AppConfig(
        api_key=api_key,
        thresholds=_parse_thresholds(raw.get("thresholds")),
        validation=_parse_validation(raw.get("validation")),
        options=_parse_options(raw.get("options")),
    )


def _read_document(path: Path) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix in (".yaml", ".yml"):
                raw = yaml.safe_load(f)
            else:
                raw = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(
            f"Config file not found: '{path}'",
            hint="Make sure config.json exists in the current directory or pass --config.",
        ) from e
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(
            f"Error loading config '{path}': {e}",
            hint="The config file must be UTF-8 encoded JSON, or YAML with a .yaml/.yml suffix.",
        ) from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Config '{path}' must contain an object at the top level")

    logger.debug(f"Loaded config from {path}")
    return raw


def _parse_thresholds(raw: Any) -> Thresholds:
    if not isinstance(raw, dict):
        raise ConfigError("Config is missing the 'thresholds' object")

    values = {}
    for key in ("cls", "lcp", "fid", "performance"):
        value = raw.get(key)
        if not _is_number(value) or not math.isfinite(value):
            raise ConfigError(f"thresholds.{key} must be a finite number, got {value!r}")
        values[key] = float(value)

    return Thresholds(**values)


def _parse_validation(raw: Any) -> ValidationSettings:
    if raw is None:
        return ValidationSettings()
    if not isinstance(raw, dict):
        raise ConfigError("'validation' must be an object")

    runs = raw.get("runs", DEFAULT_RUNS)
    if not _is_int(runs) or runs < 1:
        raise ConfigError(f"validation.runs must be an integer >= 1, got {runs!r}")

    interval = raw.get("intervalSeconds", DEFAULT_INTERVAL_SECONDS)
    if not _is_int(interval) or interval < 0:
        raise ConfigError(f"validation.intervalSeconds must be an integer >= 0, got {interval!r}")

    require_all_pass = raw.get("requireAllPass", True)
    if not isinstance(require_all_pass, bool):
        raise ConfigError("validation.requireAllPass must be a boolean")

    group_by = raw.get("groupBy", GroupBy.URL_STRATEGY.value)
    if not isinstance(group_by, str):
        raise ConfigError("validation.groupBy must be a string")

    return ValidationSettings(
        runs=runs,
        interval_seconds=interval,
        require_all_pass=require_all_pass,
        group_by=GroupBy.parse(group_by),
    )


def _parse_options(raw: Any) -> OutputOptions:
    if raw is None:
        return OutputOptions()
    if not isinstance(raw, dict):
        raise ConfigError("'options' must be an object")

    save_results = raw.get("saveResults", False)
    if not isinstance(save_results, bool):
        raise ConfigError("options.saveResults must be a boolean")

    results_dir = raw.get("resultsDir") or DEFAULT_RESULTS_DIR
    if not isinstance(results_dir, str):
        raise ConfigError("options.resultsDir must be a string")

    timeout = raw.get("requestTimeoutSeconds", DEFAULT_REQUEST_TIMEOUT_SECONDS)
    if not _is_number(timeout) or timeout <= 0:
        raise ConfigError(f"options.requestTimeoutSeconds must be > 0, got {timeout!r}")

    watch_interval = raw.get("watchIntervalSeconds", DEFAULT_WATCH_INTERVAL_SECONDS)
    if not _is_number(watch_interval) or watch_interval < 0:
        raise ConfigError(f"options.watchIntervalSeconds must be >= 0, got {watch_interval!r}")

    return OutputOptions(
        save_results=save_results,
        results_dir=results_dir,
        request_timeout_seconds=float(timeout),
        watch_interval_seconds=float(watch_interval),
    )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
