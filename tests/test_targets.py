import pytest

from psv.errors import ConfigError
from psv.targets import (
    Strategy,
    StrategyMode,
    URLConfig,
    build_targets,
    load_url_list,
    resolve_strategy,
    resolve_urls,
)


@pytest.mark.parametrize(
    "flags, expected",
    [
        ({}, StrategyMode.MOBILE),
        ({"mobile": True}, StrategyMode.MOBILE),
        ({"both": True}, StrategyMode.BOTH),
        ({"desktop": True}, StrategyMode.DESKTOP),
        ({"both": True, "mobile": True}, StrategyMode.BOTH),
        ({"desktop": True, "both": True, "mobile": True}, StrategyMode.DESKTOP),
    ],
)
def test_resolve_strategy_precedence(flags, expected):
    assert resolve_strategy(**flags) is expected


def test_load_url_list_skips_comments_blanks_and_non_http_lines(tmp_path):
    urls_file = tmp_path / "urls.txt"
    urls_file.write_text(
        "# production pages\n"
        "\n"
        "https://example.com\n"
        "   http://example.org/about  \n"
        "ftp://example.net\n"
        "example.com/no-scheme\n"
    )
    assert load_url_list(urls_file) == ["https://example.com", "http://example.org/about"]


def test_resolve_urls_prefers_command_line(tmp_path):
    urls_file = tmp_path / "urls.txt"
    urls_file.write_text("https://from-file.example\n")
    urls, source = resolve_urls(["https://cli.example"], urls_file)
    assert urls == ["https://cli.example"]
    assert source == "command-line"


def test_resolve_urls_falls_back_to_url_list(tmp_path):
    urls_file = tmp_path / "urls.txt"
    urls_file.write_text("https://from-file.example\n")
    urls, source = resolve_urls(["not-a-url"], urls_file)
    assert urls == ["https://from-file.example"]
    assert source == str(urls_file)


def test_resolve_urls_when_nothing_configured_raises(tmp_path):
    with pytest.raises(ConfigError, match="No URLs configured") as excinfo:
        resolve_urls([], tmp_path / "urls.txt")
    assert "urls.txt" in excinfo.value.hint


def test_resolve_urls_when_list_is_not_utf8_warns_and_falls_through(tmp_path, caplog):
    urls_file = tmp_path / "urls.txt"
    urls_file.write_bytes(b"https://example.com/\xff\n")
    with pytest.raises(ConfigError, match="No URLs configured"):
        resolve_urls([], urls_file)
    assert "Could not read" in caplog.text


def test_resolve_urls_when_list_has_only_comments_raises(tmp_path):
    urls_file = tmp_path / "urls.txt"
    urls_file.write_text("# nothing yet\n\n")
    with pytest.raises(ConfigError):
        resolve_urls([], urls_file)


def test_build_targets_single_strategy_names_by_position():
    targets = build_targets(["https://a.example", "https://b.example"], StrategyMode.DESKTOP)
    assert targets == [
        URLConfig("URL 1", "https://a.example", Strategy.DESKTOP),
        URLConfig("URL 2", "https://b.example", Strategy.DESKTOP),
    ]


def test_build_targets_both_generates_mobile_and_desktop_per_url():
    targets = build_targets(["https://a.example", "https://b.example"], StrategyMode.BOTH)
    assert len(targets) == 4
    assert [(t.name, t.strategy) for t in targets] == [
        ("URL 1 (Mobile)", Strategy.MOBILE),
        ("URL 1 (Desktop)", Strategy.DESKTOP),
        ("URL 2 (Mobile)", Strategy.MOBILE),
        ("URL 2 (Desktop)", Strategy.DESKTOP),
    ]
