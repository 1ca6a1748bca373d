import json

import pytest

from psv.collector.json_writer import FILENAME_PREFIX, ResultsWriter
from psv.targets import Strategy, URLConfig

TARGETS = [
    URLConfig("URL 1 (Mobile)", "https://example.com", Strategy.MOBILE),
    URLConfig("URL 1 (Desktop)", "https://example.com", Strategy.DESKTOP),
]


def test_write_creates_missing_results_dir(tmp_path, thresholds, make_sample):
    results_dir = tmp_path / "nested" / "results"
    writer = ResultsWriter(results_dir)
    path = writer.write([make_sample()], thresholds, TARGETS)
    assert path.parent == results_dir
    assert path.exists()


def test_write_uses_filesystem_safe_timestamp_in_filename(tmp_path, thresholds, make_sample):
    path = ResultsWriter(tmp_path).write([make_sample()], thresholds, TARGETS)
    assert path.name.startswith(FILENAME_PREFIX)
    assert path.suffix == ".json"
    stem = path.stem[len(FILENAME_PREFIX):]
    assert ":" not in stem
    assert "." not in stem


def test_write_persists_thresholds_urls_and_every_result(tmp_path, thresholds, make_sample, make_error):
    samples = [make_sample(cls=0.02), make_error(strategy=Strategy.DESKTOP)]
    path = ResultsWriter(tmp_path).write(samples, thresholds, TARGETS)

    document = json.loads(path.read_text())
    assert document["timestamp"].endswith("Z")
    assert document["config"]["thresholds"] == {"cls": 0.1, "lcp": 2500, "fid": 100, "performance": 90}
    assert document["config"]["urls"] == [
        {"name": "URL 1 (Mobile)", "url": "https://example.com"},
        {"name": "URL 1 (Desktop)", "url": "https://example.com"},
    ]
    assert len(document["results"]) == 2
    assert document["results"][0]["cls"] == pytest.approx(0.02)
    assert document["results"][0]["strategy"] == "mobile"
    assert document["results"][1]["error"] == "Lighthouse returned error: NO_FCP"
    assert "cls" not in document["results"][1]


def test_write_when_results_dir_is_a_file_raises(tmp_path, thresholds, make_sample):
    blocker = tmp_path / "results"
    blocker.write_text("not a directory")
    with pytest.raises(OSError):
        ResultsWriter(blocker).write([make_sample()], thresholds, TARGETS)
