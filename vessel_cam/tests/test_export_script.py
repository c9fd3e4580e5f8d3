"""Tests for the ``vessel-cam`` command-line entrypoint."""

from __future__ import annotations

import io
import logging
import sys
from pathlib import Path

import pytest
from PIL import Image

from vessel_cam.configs.loader import ConfigError
from vessel_cam.scripts.export_vessel import (
    EXIT_BAD_INPUT,
    EXIT_OK,
    main,
    parse_overrides,
)
from vessel_cam.utils.fs import load_yaml
from vessel_cam.utils.logging_config import pop_context

_SMALL = ["--set", "layers=6", "--set", "segments=8"]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def clean_logging():
    """``main()`` configures the root logger; undo it after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    hook = sys.excepthook
    yield
    sys.excepthook = hook
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    logging.captureWarnings(False)
    pop_context()


# ---------------------------------------------------------------------------
# Overrides
# ---------------------------------------------------------------------------


class TestParseOverrides:
    def test_scalars_parsed_as_yaml(self) -> None:
        assert parse_overrides(["layers=200", "twist=0.5", "export_format=stl"]) == {
            "layers": 200,
            "twist": 0.5,
            "export_format": "stl",
        }

    def test_dotted_keys_nest(self) -> None:
        assert parse_overrides(["printer.type=wasp", "printer.print_speed=900"]) == {
            "printer": {"type": "wasp", "print_speed": 900},
        }

    @pytest.mark.parametrize("item", ["layers", "=5", " =5"])
    def test_malformed(self, item: str) -> None:
        with pytest.raises(ConfigError):
            parse_overrides([item])

    def test_conflicting_nesting(self) -> None:
        with pytest.raises(ConfigError, match="conflicts"):
            parse_overrides(["printer=wasp", "printer.type=wasp"])


# ---------------------------------------------------------------------------
# main()
# ---------------------------------------------------------------------------


class TestMain:
    def test_export_mesh(self, tmp_path: Path) -> None:
        out = tmp_path / "vessel.stl"
        assert main(["--output", str(out), *_SMALL]) == EXIT_OK
        assert out.read_text(encoding="utf-8").startswith("solid vessel")

    def test_export_gcode_with_stats(self, tmp_path: Path) -> None:
        out = tmp_path / "vessel.gcode"
        stats = tmp_path / "stats.yaml"
        code = main([
            "--output", str(out),
            "--stats", str(stats),
            "--set", "printer.type=wasp",
            *_SMALL,
        ])
        assert code == EXIT_OK
        assert "G28 ; Home Delta" in out.read_text(encoding="utf-8")
        data = load_yaml(stats)
        assert data["total_layers"] == 6
        assert data["estimated_time"] > 0

    def test_format_flag_overrides_suffix(self, tmp_path: Path) -> None:
        out = tmp_path / "vessel.txt"
        assert main(["-o", str(out), "-f", "ply", *_SMALL]) == EXIT_OK
        assert out.read_text(encoding="utf-8").startswith("ply\n")

    def test_params_file_and_texture(self, tmp_path: Path) -> None:
        params = tmp_path / "vase.yaml"
        params.write_text(
            "layers: 4\nsegments: 6\nwall_thickness: 0\nexport_format: obj\n",
            encoding="utf-8",
        )
        texture = tmp_path / "grain.png"
        Image.new("L", (16, 16), 255).save(texture)
        out = tmp_path / "vessel.out"

        code = main(["-p", str(params), "-t", str(texture), "-o", str(out)])
        assert code == EXIT_OK
        assert "# Vertices: 35" in out.read_text(encoding="utf-8")

    def test_json_log_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "export.log"
        out = tmp_path / "vessel.obj"
        code = main([
            "-o", str(out), "--log-file", str(log_file), "--json-logs", *_SMALL,
        ])
        assert code == EXIT_OK
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert '"app": "export"' in log_file.read_text(encoding="utf-8")

    def test_invalid_override(self, tmp_path: Path) -> None:
        out = tmp_path / "vessel.obj"
        assert main(["-o", str(out), "--set", "layers=0"]) == EXIT_BAD_INPUT
        assert not out.exists()

    def test_missing_params_file(self, tmp_path: Path) -> None:
        code = main(["-p", str(tmp_path / "nope.yaml"), "-o", str(tmp_path / "v.obj")])
        assert code == EXIT_BAD_INPUT

    def test_missing_texture(self, tmp_path: Path) -> None:
        code = main([
            "-t", str(tmp_path / "nope.png"), "-o", str(tmp_path / "v.obj"), *_SMALL,
        ])
        assert code == EXIT_BAD_INPUT

    def test_undecodable_texture(self, tmp_path: Path) -> None:
        texture = tmp_path / "broken.png"
        texture.write_bytes(b"not a png")
        code = main(["-t", str(texture), "-o", str(tmp_path / "v.obj"), *_SMALL])
        assert code == EXIT_BAD_INPUT

    def test_malformed_params_yaml(self, tmp_path: Path) -> None:
        params = tmp_path / "vase.yaml"
        params.write_text("height: [1, 2\n", encoding="utf-8")
        code = main(["-p", str(params), "-o", str(tmp_path / "v.obj")])
        assert code == EXIT_BAD_INPUT
        assert not (tmp_path / "v.obj").exists()

    def test_truncated_texture(self, tmp_path: Path) -> None:
        buf = io.BytesIO()
        Image.linear_gradient("L").save(buf, format="PNG")
        data = buf.getvalue()
        texture = tmp_path / "cut.png"
        texture.write_bytes(data[: len(data) // 2])
        code = main(["-t", str(texture), "-o", str(tmp_path / "v.obj"), *_SMALL])
        assert code == EXIT_BAD_INPUT

    def test_installs_excepthook(self, tmp_path: Path) -> None:
        sys.excepthook = sys.__excepthook__
        assert main(["-o", str(tmp_path / "v.obj"), *_SMALL]) == EXIT_OK
        assert sys.excepthook is not sys.__excepthook__
