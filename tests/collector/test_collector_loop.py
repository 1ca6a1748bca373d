from psv.collector.collector import run_single_pass, run_watch
from psv.collector.pagespeed_client import PageSpeedClient
from psv.collector.sample import ErrorSample, MetricSample
from psv.errors import RemoteError, TransportError
from psv.targets import Strategy, URLConfig

TARGETS = [
    URLConfig("URL 1", "https://example.com", Strategy.MOBILE),
    URLConfig("URL 2", "https://example.org", Strategy.MOBILE),
]


def test_run_single_pass_fetches_targets_in_order(mocker, thresholds, make_sample):
    client = mocker.MagicMock()
    client.fetch.side_effect = [make_sample(url=t.url, name=t.name) for t in TARGETS]
    reporter = mocker.MagicMock()

    run_set = run_single_pass(client, TARGETS, thresholds, reporter)

    assert [call.args[0] for call in client.fetch.call_args_list] == TARGETS
    assert [s.url for s in run_set] == ["https://example.com", "https://example.org"]
    assert reporter.sample.call_count == 2
    reporter.single_summary.assert_called_once_with(run_set, thresholds)


def test_run_single_pass_when_fetch_fails_records_error_and_continues(mocker, thresholds, make_sample):
    client = mocker.MagicMock()
    client.fetch.side_effect = [
        RemoteError("Quota exceeded", status_code=429),
        make_sample(url="https://example.org", name="URL 2"),
    ]
    reporter = mocker.MagicMock()

    run_set = run_single_pass(client, TARGETS, thresholds, reporter)

    assert isinstance(run_set[0], ErrorSample)
    assert run_set[0].error == "Quota exceeded"
    assert run_set[0].run == 1
    assert isinstance(run_set[1], MetricSample)
    reporter.fetch_error.assert_called_once_with(TARGETS[0], "Quota exceeded")


def test_run_single_pass_when_report_is_malformed_continues_with_next_target(mocker, thresholds, pagespeed_response):
    malformed = mocker.MagicMock(status_code=200, ok=True)
    malformed.json.return_value = {
        "lighthouseResult": {"categories": {"performance": {"score": float("nan")}}, "audits": {}}
    }
    good = mocker.MagicMock(status_code=200, ok=True)
    good.json.return_value = pagespeed_response
    session = mocker.MagicMock()
    session.get.side_effect = [malformed, good]
    client = PageSpeedClient("secret-key", session=session)

    run_set = run_single_pass(client, TARGETS, thresholds, mocker.MagicMock(), detailed=True)

    assert isinstance(run_set[0], ErrorSample)
    assert "Performance score" in run_set[0].error
    assert isinstance(run_set[1], MetricSample)
    assert run_set[1].url == "https://example.org"


def test_run_watch_waits_between_passes_and_saves_each_one(mocker, thresholds, make_sample):
    client = mocker.MagicMock()
    client.fetch.return_value = make_sample()
    reporter = mocker.MagicMock()
    writer = mocker.MagicMock()
    writer.write.return_value = "results/psi-results-x.json"
    sleep = mocker.MagicMock()

    passes = run_watch(
        client, TARGETS, thresholds, reporter, writer, interval_seconds=60, sleep=sleep, max_passes=3
    )

    assert passes == 3
    assert writer.write.call_count == 3
    assert sleep.call_count == 2
    sleep.assert_called_with(60)


def test_run_watch_stops_cleanly_on_keyboard_interrupt(mocker, thresholds, make_sample):
    client = mocker.MagicMock()
    client.fetch.side_effect = [make_sample(), TransportError("boom"), KeyboardInterrupt()]
    sleep = mocker.MagicMock()

    passes = run_watch(
        client, TARGETS, thresholds, mocker.MagicMock(), None, interval_seconds=5, sleep=sleep
    )

    assert passes == 1
    sleep.assert_called_once_with(5)
