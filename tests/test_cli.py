from __future__ import annotations

import importlib
import io
import json
import sys
from pathlib import Path

import pytest

from arun import cli
from artifact_runner import ConfigurationError, RunnerParams, ScrapeError, ScraperRunner


class _FakeScraper:
    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[tuple[str, list[str]]] = []
        self.error = error

    def scrape(self, execution_id: str, directories: list[str]) -> None:
        self.calls.append((execution_id, list(directories)))
        if self.error is not None:
            raise self.error


@pytest.fixture
def fake_scraper(monkeypatch: pytest.MonkeyPatch) -> _FakeScraper:
    scraper = _FakeScraper()
    monkeypatch.setattr(
        cli, "new_runner", lambda: ScraperRunner(scraper, scraper_enabled=True)
    )
    return scraper


def test_cli_capture_without_mount_path_is_clean(
    fake_scraper: _FakeScraper, capsys: pytest.CaptureFixture[str]
) -> None:
    code = cli.main(["capture", "--execution-id", "exec1"])
    output = capsys.readouterr().out
    assert code == 0
    assert "Artifacts captured for execution exec1" in output
    assert fake_scraper.calls == []


def test_cli_capture_scrapes_requested_dirs(
    fake_scraper: _FakeScraper, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    code = cli.main(
        [
            "capture",
            "--execution-id",
            "exec1",
            "--volume-mount-path",
            str(tmp_path),
            "--dir",
            "logs",
            "--dir",
            "reports",
        ]
    )
    capsys.readouterr()
    assert code == 0
    assert fake_scraper.calls == [("exec1", [str(tmp_path / "logs"), str(tmp_path / "reports")])]


def test_cli_capture_reports_errors_as_json(
    fake_scraper: _FakeScraper, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    fake_scraper.error = ScrapeError("disk full")
    code = cli.main(
        [
            "capture",
            "--execution-id",
            "exec1",
            "--volume-mount-path",
            str(tmp_path),
            "--dir",
            "logs",
            "--json",
        ]
    )
    payload = json.loads(capsys.readouterr().out)
    assert code == 1
    assert payload == {"status": "failed", "errors": ["scrape artifacts error: disk full"]}


def test_cli_capture_error_table(
    fake_scraper: _FakeScraper, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    fake_scraper.error = ScrapeError("disk full")
    code = cli.main(
        ["capture", "--execution-id", "exec1", "--volume-mount-path", str(tmp_path), "--dir", "logs"]
    )
    output = capsys.readouterr().out
    assert code == 1
    assert "Capture Errors" in output
    assert "disk full" in output


def test_cli_configuration_error_exit_code(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    def _broken_runner() -> ScraperRunner:
        raise ConfigurationError("invalid runner configuration: ssl: bad")

    monkeypatch.setattr(cli, "new_runner", _broken_runner)
    code = cli.main(["capture", "--execution-id", "exec1"])
    output = capsys.readouterr().out
    assert code == 2
    assert "Configuration error" in output


def test_cli_config_masks_secrets(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    params = RunnerParams.model_construct(
        endpoint="minio.local:9000",
        access_key_id="access",
        secret_access_key="very-secret",
        location="",
        token="",
        ssl=False,
        scrapper_enabled=True,
    )
    monkeypatch.setattr(cli, "load_params", lambda: params)
    code = cli.main(["config"])
    output = capsys.readouterr().out
    assert code == 0
    assert "minio.local:9000" in output
    assert "very-secret" not in output


def test_cli_rejects_unknown_log_level(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main(["--log-level", "chatty", "config"])
    assert exc.value.code == 2
    captured = capsys.readouterr()
    assert "invalid choice" in captured.err
    assert "usage:" in captured.err.lower()


def test_cli_top_level_help_examples(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main(["--help"])
    output = capsys.readouterr().out
    assert exc.value.code == 0
    assert "Quick Examples:" in output
    assert "python -m arun config" in output
    assert "RUNNER_SCRAPPERENABLED" in output


def test_cli_print_help_writes_to_requested_stream(capsys: pytest.CaptureFixture[str]) -> None:
    parser = cli.build_parser()
    buffer = io.StringIO()
    parser.print_help(file=buffer)
    output = capsys.readouterr().out
    assert output == ""
    help_text = buffer.getvalue()
    assert "Usage:" in help_text
    assert "artifact-runner CLI" in help_text


def test_importing_main_module_does_not_run_cli(monkeypatch: pytest.MonkeyPatch) -> None:
    def _unexpected_main(argv=None) -> int:
        raise AssertionError("main() ran on import")

    monkeypatch.setattr(cli, "main", _unexpected_main)
    monkeypatch.delitem(sys.modules, "arun.__main__", raising=False)

    module = importlib.import_module("arun.__main__")

    assert module.main is _unexpected_main
