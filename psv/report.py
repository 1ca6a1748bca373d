from typing import Sequence

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule

from psv.collector.sample import ErrorSample, MetricSample, RunSet, Sample
from psv.config import Thresholds, ValidationSettings
from psv.targets import URLConfig
from psv.validator.aggregator import TargetResult, ValidationReport
from psv.validator.thresholds import Status, classify, sample_meets_thresholds

STATUS_STYLES = {
    Status.GOOD: "green",
    Status.NEEDS_IMPROVEMENT: "yellow",
    Status.POOR: "red",
}


def format_metric(value: float, unit: str = "ms") -> str:
    if unit == "ms":
        return f"{round(value)}ms"
    if unit == "s":
        return f"{value / 1000:.2f}s"
    return f"{value:.3f}"


def format_status(status: Status) -> str:
    style = STATUS_STYLES[status]
    return f"[{style}]{status.icon} {status.value}[/{style}]"


class Reporter:
    """Renders samples and validation summaries. Purely presentational."""

    def __init__(self, console: Console | None = None, detailed: bool = False) -> None:
        self.console = console if console is not None else Console()
        self.detailed = detailed

    def rule(self) -> None:
        self.console.print(Rule(style="blue"))

    def banner(self, title: str) -> None:
        self.console.print()
        self.console.print(f"[bold cyan]🔍 {escape(title)}[/bold cyan]")
        self.rule()

    def sources(self, source: str, url_count: int, strategy_label: str) -> None:
        label = escape(f"[{strategy_label}]")
        if source == "command-line":
            self.console.print(f"[cyan]📌 Using URL(s) from command line {label}[/cyan]")
        else:
            self.console.print(
                f"[cyan]📄 Using URLs from {escape(source)} ({url_count} URL(s)) {label}[/cyan]"
            )

    def testing_header(self, targets: Sequence[URLConfig]) -> None:
        self.banner("PageSpeed Insights Testing Tool")
        self.console.print(f"Testing {len(targets)} URL(s)...")
        if self.detailed:
            self.console.print("[yellow]Detailed mode enabled[/yellow]")

    def sample(self, sample: MetricSample, thresholds: Thresholds) -> None:
        out = self.console
        out.print()
        self.rule()
        out.print(f"[bold cyan]📊 {escape(sample.name)}[/bold cyan] [dim]{escape(sample.url)}[/dim]")
        self.rule()

        perf_status = classify(sample.performance, thresholds.performance, inverse=True)
        out.print()
        out.print(f"[bold]Performance Score:[/bold] {sample.performance}/100 {format_status(perf_status)}")

        out.print()
        out.print("[bold]Core Web Vitals:[/bold]")
        out.print(
            f"  CLS: {format_metric(sample.cls, 'unitless')} "
            f"{format_status(classify(sample.cls, thresholds.cls))}"
        )
        out.print(f"  LCP: {format_metric(sample.lcp)} {format_status(classify(sample.lcp, thresholds.lcp))}")
        out.print(f"  FID: {format_metric(sample.fid)} {format_status(classify(sample.fid, thresholds.fid))}")

        out.print()
        out.print("[bold]Other Metrics:[/bold]")
        out.print(f"  FCP: {format_metric(sample.fcp)}")
        out.print(f"  SI:  {format_metric(sample.si)}")
        out.print(f"  TBT: {format_metric(sample.tbt)}")
        out.print(f"  TTI: {format_metric(sample.tti, 's')}")

        if self.detailed and sample.layout_shift_elements:
            out.print()
            out.print("[bold]CLS Details:[/bold]")
            for i, snippet in enumerate(sample.layout_shift_elements, start=1):
                out.print(f"  {i}. {escape(snippet)}")

    def compact(self, sample: MetricSample, thresholds: Thresholds) -> None:
        cls_status = classify(sample.cls, thresholds.cls)
        perf_status = classify(sample.performance, thresholds.performance, inverse=True)
        self.console.print(
            f"  [bold]{escape(sample.name)}[/bold] "
            f"CLS: {format_metric(sample.cls, 'unitless')} {format_status(cls_status)}  "
            f"Performance: {sample.performance}/100 {format_status(perf_status)}"
        )

    def fetch_error(self, target: URLConfig, message: str) -> None:
        self.console.print(f"[red]❌ Error testing {escape(target.name)}: {escape(message)}[/red]")

    def single_summary(self, run_set: RunSet, thresholds: Thresholds) -> int:
        passed = sum(1 for sample in run_set if sample_meets_thresholds(sample, thresholds))
        self.console.print()
        self.rule()
        self.console.print("[bold green]✅ Testing Complete[/bold green]")
        self.rule()
        self.console.print(
            f"[bold]Summary:[/bold] {passed}/{len(run_set)} URLs passed all thresholds"
        )
        return passed

    def config_error(self, message: str, hint: str | None = None) -> None:
        self.console.print(f"[red]❌ Error: {escape(message)}[/red]")
        if hint:
            self.console.print()
            self.console.print(escape(hint))
            self.console.print()

    def saved(self, path: str) -> None:
        self.console.print(f"[green]💾 Results saved to: {escape(path)}[/green]")

    def validation_header(self, targets: Sequence[URLConfig], settings: ValidationSettings) -> None:
        self.banner(f"PSI Validation Mode ({settings.runs} runs)")
        self.console.print(
            f"Testing {len(targets)} URL(s) {settings.runs} times "
            f"at {settings.interval_seconds}s intervals"
        )

    def run_header(self, run: int, total: int) -> None:
        self.console.print()
        self.console.print(f"[bold yellow]▶ RUN {run}/{total}[/bold yellow]")

    def validation_summary(self, report: ValidationReport) -> None:
        self.console.print()
        self.rule()
        self.console.print("[bold cyan]📊 VALIDATION SUMMARY[/bold cyan]")
        self.rule()

        for result in report.results:
            self._target_summary(result, report.thresholds)

        self.rule()
        if report.passed:
            self.console.print(
                "[bold green]✅ VALIDATION PASSED - All URLs meet CLS and performance "
                "thresholds across all runs[/bold green]"
            )
        else:
            self.console.print(
                "[bold red]❌ VALIDATION FAILED - Some URLs exceed CLS or fall below "
                "the performance threshold[/bold red]"
            )
        self.rule()

    def _target_summary(self, result: TargetResult, thresholds: Thresholds) -> None:
        summary = result.summary
        out = self.console
        out.print()
        out.print(f"[bold]{escape(summary.name)}[/bold]")
        out.print(f"  URL: [cyan]{escape(summary.url)}[/cyan]")

        if summary.fully_errored:
            out.print(f"  [red]❌ ALL {len(summary.samples)} RUNS FAILED[/red]")
            for sample in summary.errors:
                out.print(f"    Run {sample.run}: [red]ERROR[/red] {escape(sample.error)}")
            return

        out.print()
        out.print("  [bold]CLS Scores:[/bold]")
        for sample in summary.samples:
            out.print(f"    {self._run_label(sample, summary.strategy is None)}: {self._cls_cell(sample, thresholds)}")
        cls_stats = summary.cls_stats
        if cls_stats is not None:
            out.print(
                f"  [bold]Average:[/bold] {format_metric(cls_stats.mean, 'unitless')} "
                f"(min: {format_metric(cls_stats.min, 'unitless')}, "
                f"max: {format_metric(cls_stats.max, 'unitless')})"
            )
        if result.cls_passed:
            out.print("  [bold]CLS Result:[/bold] [green]✅ ALL RUNS PASS[/green]")
        else:
            out.print("  [bold]CLS Result:[/bold] [red]❌ SOME RUNS FAIL[/red]")

        out.print()
        out.print("  [bold]Performance Scores:[/bold]")
        for sample in summary.samples:
            out.print(f"    {self._run_label(sample, summary.strategy is None)}: {self._perf_cell(sample, thresholds)}")
        perf_stats = summary.performance_stats
        if perf_stats is not None:
            out.print(
                f"  [bold]Average:[/bold] {round(perf_stats.mean)}/100 "
                f"(min: {round(perf_stats.min)}, max: {round(perf_stats.max)})"
            )
        if result.performance_passed:
            out.print("  [bold]Performance Result:[/bold] [green]✅ ALL RUNS PASS[/green]")
        else:
            out.print("  [bold]Performance Result:[/bold] [yellow]⚠️ SOME RUNS BELOW THRESHOLD[/yellow]")

    @staticmethod
    def _run_label(sample: Sample, show_strategy: bool) -> str:
        if show_strategy:
            return f"Run {sample.run} ({sample.strategy.label})"
        return f"Run {sample.run}"

    @staticmethod
    def _cls_cell(sample: Sample, thresholds: Thresholds) -> str:
        if isinstance(sample, ErrorSample):
            return "[red]ERROR[/red]"
        mark = "[green]✅[/green]" if sample.cls < thresholds.cls else "[red]❌[/red]"
        return f"{format_metric(sample.cls, 'unitless')} {mark}"

    @staticmethod
    def _perf_cell(sample: Sample, thresholds: Thresholds) -> str:
        if isinstance(sample, ErrorSample):
            return "[red]ERROR[/red]"
        mark = "[green]✅[/green]" if sample.performance >= thresholds.performance else "[yellow]⚠️[/yellow]"
        return f"{sample.performance}/100 {mark}"
