import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Sequence

from psv.errors import ConfigError

logger = logging.getLogger(__name__)

URL_PREFIXES = ("http://", "https://")
NO_URLS_HINT = (
    "You can provide URLs in two ways:\n"
    "  1. Command line: psv https://example.com\n"
    "  2. Create urls.txt with one URL per line"
)


class Strategy(str, Enum):
    MOBILE = "mobile"
    DESKTOP = "desktop"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class StrategyMode(str, Enum):
    MOBILE = "mobile"
    DESKTOP = "desktop"
    BOTH = "both"

    @property
    def label(self) -> str:
        if self is StrategyMode.BOTH:
            return "Mobile + Desktop"
        return self.value.capitalize()


@dataclass(frozen=True)
class URLConfig:
    name: str
    url: str
    strategy: Strategy = Strategy.MOBILE


def resolve_strategy(desktop: bool = False, both: bool = False, mobile: bool = False) -> StrategyMode:
    """Desktop wins over both, both wins over mobile; mobile is the default."""
    if desktop:
        return StrategyMode.DESKTOP
    if both:
        return StrategyMode.BOTH
    return StrategyMode.MOBILE


def is_http_url(token: str) -> bool:
    return token.startswith(URL_PREFIXES)


def load_url_list(path: Path) -> list[str]:
    """
    Reads a line-oriented URL list. Blank lines and '#' comments are skipped and only
    http(s) URLs are kept.
    """
    with open(path, "r", encoding="utf-8") as f:
        lines = [line.strip() for line in f]
    return [line for line in lines if line and not line.startswith("#") and is_http_url(line)]


def resolve_urls(cli_tokens: Iterable[str], urls_file: Path) -> tuple[list[str], str]:
    """
    Returns the base URLs and a label describing where they came from.

    CLI tokens win; the URL list file is the fallback. Raises ConfigError when neither
    yields a URL.
    """
    cli_urls = [token for token in cli_tokens if is_http_url(token)]
    if cli_urls:
        return cli_urls, "command-line"

    if urls_file.exists():
        try:
            file_urls = load_url_list(urls_file)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read {urls_file}: {e}")
        else:
            if file_urls:
                return file_urls, str(urls_file)

    raise ConfigError("No URLs configured!", hint=NO_URLS_HINT)


def build_targets(base_urls: Sequence[str], mode: StrategyMode) -> list[URLConfig]:
    targets: list[URLConfig] = []
    for index, url in enumerate(base_urls, start=1):
        if mode is StrategyMode.BOTH:
            for strategy in (Strategy.MOBILE, Strategy.DESKTOP):
                targets.append(URLConfig(f"URL {index} ({strategy.label})", url, strategy))
        else:
            targets.append(URLConfig(f"URL {index}", url, Strategy(mode.value)))
    return targets
