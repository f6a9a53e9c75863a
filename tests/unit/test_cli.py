from typing import Any

import pytest

from file_cloud import cli

ARGS = [
    "--bucket", "test-bucket",
    "--key", "ABC123",
    "--secret", "ABC/123",
    "--endpoint", "localhost:9000",
    "--user", "",
    "--pass", "",
]  # fmt: skip


def test_main_prints_version(capsys) -> None:
    cli.main(["--version"])
    out, _ = capsys.readouterr()
    assert "file-cloud v" in out


def test_main_rejects_invalid_config(capsys) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.main([*ARGS, "--port", "0"])
    assert exc_info.value.code == 2
    _, err = capsys.readouterr()
    assert "invalid configuration" in err


def test_main_rejects_half_configured_auth() -> None:
    with pytest.raises(SystemExit):
        cli.main([*ARGS, "--user", "skalnik"])


def test_main_serves_app(monkeypatch) -> None:
    served: dict[str, Any] = {}

    def fake_run(app: Any, **kwargs: Any) -> None:
        served["app"] = app
        served.update(kwargs)

    monkeypatch.setattr(cli.uvicorn, "run", fake_run)
    cli.main([*ARGS, "--port", "9000", "--cdn", "https://cdn.example.com", "--secure", "false"])

    assert served["port"] == 9000
    directory = served["app"].state.directory
    assert directory.cdn == "https://cdn.example.com"
    assert directory.cache is not None
    assert served["app"].state.settings.bucket == "test-bucket"


def test_main_rejects_unknown_log_level(monkeypatch, capsys) -> None:
    monkeypatch.setattr(cli.uvicorn, "run", lambda app, **kwargs: None)
    with pytest.raises(SystemExit) as exc_info:
        cli.main([*ARGS, "--log-level", "verbose"])
    assert exc_info.value.code == 2
    _, err = capsys.readouterr()
    assert "invalid configuration" in err


def test_main_falls_back_to_environment(monkeypatch) -> None:
    served: dict[str, Any] = {}
    monkeypatch.setattr(cli.uvicorn, "run", lambda app, **kwargs: served.update(kwargs))
    monkeypatch.setenv("PORT", "9091")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    cli.main(ARGS)
    assert served["port"] == 9091
    assert served["log_level"] == "warning"
