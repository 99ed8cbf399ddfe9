"""Tests for logging configuration and entrypoint wiring."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from types import SimpleNamespace

import synced_player.app as app_module
from synced_player.logging_utils import setup_logging


def _flush_root_handlers() -> None:
    for handler in logging.getLogger().handlers:
        flush = getattr(handler, "flush", None)
        if callable(flush):
            flush()


def _restore_root(original_handlers, original_level) -> None:
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in original_handlers:
        root.addHandler(handler)
    root.setLevel(original_level)


def test_setup_logging_default_path_writes_json(tmp_path) -> None:
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    try:
        log_path = setup_logging(log_dir=tmp_path, level="INFO")
        logging.getLogger("synced_player.test").info(
            "default-log-path", extra={"surface": "mini"}
        )
        _flush_root_handlers()
        assert log_path == tmp_path / "synced-player.log"
        line = log_path.read_text(encoding="utf-8").strip().splitlines()[-1]
        payload = json.loads(line)
        assert payload["message"] == "default-log-path"
        assert payload["level"] == "INFO"
        assert payload["context"]["surface"] == "mini"
    finally:
        _restore_root(original_handlers, original_level)


def test_setup_logging_custom_file_without_console(tmp_path) -> None:
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    custom_path = tmp_path / "custom" / "player.log"
    try:
        setup_logging(log_dir=tmp_path, level="DEBUG", log_file=custom_path, console=False)
        logging.getLogger("synced_player.test").debug("custom-log-path")
        _flush_root_handlers()
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG
        assert "custom-log-path" in custom_path.read_text(encoding="utf-8")
    finally:
        _restore_root(original_handlers, original_level)


def test_app_main_passes_effective_level_and_log_file(monkeypatch, tmp_path) -> None:
    args = SimpleNamespace(
        verbose=True,
        quiet=False,
        log_file=str(tmp_path / "app.log"),
        api_base_url=None,
        video="demo-2",
        playlist="demo-playlist",
        index=1,
    )
    captured: dict[str, object] = {}

    class FakeParser:
        def parse_args(self):
            return args

        def error(self, message: str) -> None:
            raise AssertionError(message)

    class FakeApp:
        def __init__(self, *, media_source, initial_route: str, tuning) -> None:
            captured["media_source"] = media_source
            captured["route"] = initial_route

        def run(self) -> None:
            captured["ran"] = True

    def fake_setup_logging(*, log_dir: Path, level: str, log_file: Path | None, console: bool):
        captured["level"] = level
        captured["log_file"] = log_file
        captured["console"] = console

    monkeypatch.delenv("SYNCED_PLAYER_API_BASE_URL", raising=False)
    monkeypatch.setattr(app_module, "build_parser", lambda: FakeParser())
    monkeypatch.setattr(app_module, "setup_logging", fake_setup_logging)
    monkeypatch.setattr(app_module, "log_dir", lambda: tmp_path / "logs")
    monkeypatch.setattr(app_module, "SyncedPlayerApp", FakeApp)

    rc = app_module.main()

    assert rc == 0
    assert captured["level"] == "DEBUG"
    assert captured["log_file"] == tmp_path / "app.log"
    assert captured["console"] is False
    assert captured["route"] == "/watch/demo-2?playlist=demo-playlist&index=1"
    assert isinstance(captured["media_source"], app_module.DemoCatalog)
    assert captured["ran"] is True


def test_app_main_returns_nonzero_on_startup_failure(monkeypatch, tmp_path, capsys) -> None:
    args = SimpleNamespace(
        verbose=False,
        quiet=False,
        log_file=None,
        api_base_url="http://api",
        video=None,
        playlist=None,
        index=None,
    )

    class FakeParser:
        def parse_args(self):
            return args

    class FailingApp:
        def __init__(self, **kwargs) -> None:
            del kwargs

        def run(self) -> None:
            raise RuntimeError("boom")

    monkeypatch.setattr(app_module, "build_parser", lambda: FakeParser())
    monkeypatch.setattr(app_module, "setup_logging", lambda **kwargs: None)
    monkeypatch.setattr(app_module, "log_dir", lambda: tmp_path / "logs")
    monkeypatch.setattr(app_module, "SyncedPlayerApp", FailingApp)

    rc = app_module.main()
    captured = capsys.readouterr()

    assert rc == 1
    assert "Startup failed." in captured.err
