import argparse
import logging
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from psv.collector.collector import run_single_pass, run_watch
from psv.collector.json_writer import ResultsWriter
from psv.collector.pagespeed_client import PageSpeedClient
from psv.config import DEFAULT_CONFIG_PATH, DEFAULT_URLS_FILE, GroupBy, load_config
from psv.errors import ConfigError
from psv.logging_config import setup_logging
from psv.report import Reporter
from psv.targets import build_targets, resolve_strategy, resolve_urls
from psv.validator.validation import ValidationRunner

logger = logging.getLogger("psv")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="psv",
        description="Measure pages with PageSpeed Insights and check Core Web Vitals thresholds.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  psv https://example.com\n"
            "  psv --both --detailed\n"
            "  psv --validate https://example.com/checkout"
        ),
    )
    parser.add_argument("urls", nargs="*", metavar="URL", help="URLs to test (overrides the URL list file)")
    parser.add_argument("--detailed", action="store_true", help="Show the elements behind layout shifts")
    parser.add_argument("--watch", action="store_true", help="Re-run the test continuously")
    parser.add_argument("--validate", action="store_true", help="Run repeated measurements and exit 0/1")
    parser.add_argument("--desktop", action="store_true", help="Test with the desktop strategy")
    parser.add_argument("--mobile", action="store_true", help="Test with the mobile strategy (default)")
    parser.add_argument("--both", action="store_true", help="Test every URL on mobile and desktop")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Config file (JSON or YAML)")
    parser.add_argument("--urls-file", default=DEFAULT_URLS_FILE, help="Line-oriented URL list file")
    parser.add_argument(
        "--group-by",
        choices=["url", "url-strategy"],
        default=None,
        help="How validation groups runs (overrides validation.groupBy)",
    )
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_intermixed_args(argv)
    setup_logging("psv", log_file=args.log_file, level=logging.DEBUG if args.verbose else logging.INFO)
    reporter = Reporter(detailed=args.detailed)

    try:
        config = load_config(args.config)
        mode = resolve_strategy(desktop=args.desktop, both=args.both, mobile=args.mobile)
        base_urls, source = resolve_urls(args.urls, Path(args.urls_file))
        settings = config.validation
        if args.group_by is not None:
            settings = replace(settings, group_by=GroupBy.parse(args.group_by))
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        reporter.config_error(str(e), e.hint)
        return EXIT_FAILURE

    targets = build_targets(base_urls, mode)
    reporter.sources(source, len(base_urls), mode.label)
    client = PageSpeedClient(config.api_key, timeout=config.options.request_timeout_seconds)

    try:
        if args.validate:
            report = ValidationRunner(
                client, targets, settings, config.thresholds, reporter=reporter, detailed=args.detailed
            ).run()
            if not settings.require_all_pass and not report.passed:
                logger.warning("Validation failed but requireAllPass is disabled; exiting with 0")
            return report.exit_code(settings.require_all_pass)

        writer = ResultsWriter(config.options.results_dir) if config.options.save_results else None
        if args.watch:
            run_watch(
                client,
                targets,
                config.thresholds,
                reporter,
                writer,
                interval_seconds=config.options.watch_interval_seconds,
                detailed=args.detailed,
            )
            return EXIT_OK

        run_set = run_single_pass(client, targets, config.thresholds, reporter, detailed=args.detailed)
        if writer is not None:
            path = writer.write(run_set, config.thresholds, targets)
            reporter.saved(str(path))

    except OSError as e:
        logger.error(f"Could not save results: {e}")
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.info("program interrupted by the User")
        return EXIT_INTERRUPTED

    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
