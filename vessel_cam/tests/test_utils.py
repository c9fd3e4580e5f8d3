"""Tests for atomic file I/O and logging configuration."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import pytest
import yaml

from vessel_cam.utils import fs
from vessel_cam.utils.logging_config import (
    ContextFormatter,
    install_excepthook,
    pop_context,
    push_context,
    set_level,
    setup_logging,
    shutdown,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clean_logging():
    """Restore root handlers and logging context after the test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    pop_context()


def _record(msg: str = "hello %s", args: tuple = ("clay",)) -> logging.LogRecord:
    return logging.LogRecord(
        name="vessel_cam.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=args,
        exc_info=None,
    )


# ---------------------------------------------------------------------------
# Atomic writes and YAML
# ---------------------------------------------------------------------------


class TestFs:
    def test_atomic_write_text(self, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "dir" / "vessel.gcode"
        fs.atomic_write_text(target, "G28\n")
        assert target.read_text(encoding="utf-8") == "G28\n"
        assert [p.name for p in target.parent.iterdir()] == ["vessel.gcode"]

    def test_atomic_write_failure_cleans_up(self, tmp_path: Path) -> None:
        target = tmp_path / "blocked"
        target.mkdir()
        (target / "child").write_text("x", encoding="utf-8")
        with pytest.raises(RuntimeError, match="atomically"):
            fs.atomic_write_bytes(target, b"data")
        assert [p.name for p in tmp_path.iterdir()] == ["blocked"]

    def test_yaml_roundtrip_preserves_order(self, tmp_path: Path) -> None:
        data = {"estimated_time": 12.5, "total_layers": 150, "path_length": 1.0}
        path = tmp_path / "stats.yaml"
        fs.atomic_yaml_dump(data, path)
        assert fs.load_yaml(path) == data
        assert path.read_text(encoding="utf-8").startswith("estimated_time:")

    def test_load_yaml_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            fs.load_yaml(tmp_path / "missing.yaml")

    def test_load_yaml_malformed(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("height: [150\n", encoding="utf-8")
        with pytest.raises(yaml.YAMLError):
            fs.load_yaml(path)

    def test_ensure_dir(self, tmp_path: Path) -> None:
        p = fs.ensure_dir(tmp_path / "a" / "b")
        assert p.is_dir()
        assert fs.ensure_dir(p) == p


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


class TestContextFormatter:
    def test_json_includes_context(self, clean_logging) -> None:
        push_context(app="export", format="stl")
        line = ContextFormatter("json").format(_record())
        data = json.loads(line)
        assert data["msg"] == "hello clay"
        assert data["lvl"] == "INFO"
        assert data["app"] == "export"
        assert data["format"] == "stl"

    def test_human_format(self, clean_logging) -> None:
        push_context(app="export")
        line = ContextFormatter("human", use_color=False).format(_record())
        assert "| INFO     |" in line
        assert "app=export" in line
        assert line.endswith("hello clay")

    def test_pop_context_keys(self, clean_logging) -> None:
        push_context(app="export", format="obj")
        pop_context(["format"])
        data = json.loads(ContextFormatter("json").format(_record()))
        assert data["app"] == "export"
        assert "format" not in data


class TestSetupLogging:
    def test_json_file_handler(self, tmp_path: Path, clean_logging) -> None:
        log_file = tmp_path / "logs" / "export.jsonl"
        info = setup_logging(
            "DEBUG",
            str(log_file),
            json=True,
            to_stderr=False,
            capture_warnings=False,
            context={"app": "test"},
        )
        assert len(info["handlers"]) == 1

        logging.getLogger("vessel_cam.test").info("wrote %d bytes", 42)
        for handler in info["handlers"]:
            handler.flush()

        data = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        assert data["msg"] == "wrote 42 bytes"
        assert data["app"] == "test"

    def test_reconfigure_replaces_handlers(self, tmp_path: Path, clean_logging) -> None:
        first = setup_logging("INFO", str(tmp_path / "a.log"), to_stderr=False,
                              capture_warnings=False)["handlers"]
        second = setup_logging("INFO", str(tmp_path / "b.log"), to_stderr=False,
                               capture_warnings=False)["handlers"]
        root = logging.getLogger()
        assert not any(h in root.handlers for h in first)
        assert all(h in root.handlers for h in second)

    def test_unknown_level(self, clean_logging) -> None:
        with pytest.raises(ValueError, match="VERBOSE"):
            setup_logging("VERBOSE", to_stderr=False)

    def test_quiet_libs(self, clean_logging) -> None:
        setup_logging("DEBUG", to_stderr=False, capture_warnings=False,
                      quiet_libs=["PIL"])
        assert logging.getLogger("PIL").level == logging.WARNING


class TestRuntimeControls:
    def test_set_level(self, clean_logging) -> None:
        setup_logging("INFO", to_stderr=False, capture_warnings=False)
        set_level("debug")
        assert logging.getLogger().level == logging.DEBUG
        with pytest.raises(ValueError, match="LOUD"):
            set_level("LOUD")

    def test_excepthook_logs_critical(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        monkeypatch.setattr(sys, "excepthook", sys.__excepthook__)
        install_excepthook()
        assert sys.excepthook is not sys.__excepthook__

        try:
            raise RuntimeError("kiln overheated")
        except RuntimeError as e:
            exc_info = (type(e), e, e.__traceback__)
        with caplog.at_level(logging.CRITICAL, logger="vessel_cam"):
            sys.excepthook(*exc_info)

        record = caplog.records[-1]
        assert record.levelno == logging.CRITICAL
        assert record.getMessage() == "Uncaught exception"
        assert record.exc_info[1] is exc_info[1]

    def test_excepthook_passes_keyboard_interrupt(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        seen = []
        monkeypatch.setattr(sys, "excepthook", sys.__excepthook__)
        monkeypatch.setattr(sys, "__excepthook__", lambda *exc: seen.append(exc[0]))
        install_excepthook()
        with caplog.at_level(logging.CRITICAL, logger="vessel_cam"):
            sys.excepthook(KeyboardInterrupt, KeyboardInterrupt(), None)
        assert seen == [KeyboardInterrupt]
        assert not caplog.records

    def test_shutdown_flushes_file(self, tmp_path: Path, clean_logging) -> None:
        log_file = tmp_path / "export.log"
        handlers = setup_logging(
            "INFO", str(log_file), to_stderr=False, capture_warnings=False
        )["handlers"]
        logging.getLogger("vessel_cam.test").info("glaze applied")
        shutdown()
        assert not any(h in logging.getLogger().handlers for h in handlers)
        assert "glaze applied" in log_file.read_text(encoding="utf-8")
