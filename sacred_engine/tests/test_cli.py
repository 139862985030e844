"""
Tests for the sacred-engine CLI and logging setup.

Run with: python -m pytest sacred_engine/tests/test_cli.py -v
"""

import argparse
import json
import logging

import numpy as np
import pytest

from sacred_engine.cli import (
    ascii_preview,
    main,
    validate_point_name,
    validate_positive_float,
    validate_positive_int,
    validate_shape_kind,
)
from sacred_engine.logging_config import JSONFormatter, configure_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    """configure_logging replaces root handlers; put pytest's back afterwards."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


# ===========================================================================
# Argument validation
# ===========================================================================


class TestValidators:
    def test_positive_int(self):
        assert validate_positive_int("12") == 12
        with pytest.raises(argparse.ArgumentTypeError):
            validate_positive_int("0")
        with pytest.raises(argparse.ArgumentTypeError):
            validate_positive_int("abc")

    def test_positive_float(self):
        assert validate_positive_float("16.7") == pytest.approx(16.7)
        with pytest.raises(argparse.ArgumentTypeError):
            validate_positive_float("-1")

    def test_point_name(self):
        assert validate_point_name("Feather") == "Feather"
        with pytest.raises(argparse.ArgumentTypeError):
            validate_point_name("Nowhere")

    def test_shape_kind(self):
        assert validate_shape_kind("star") == "star"
        with pytest.raises(argparse.ArgumentTypeError):
            validate_shape_kind("blob")


# ===========================================================================
# Commands
# ===========================================================================


class TestCommands:
    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_points(self, capsys):
        assert main(["points"]) == 0
        out = capsys.readouterr().out
        assert "Seahorse Valley" in out
        assert "Mini Mandelbrot" in out

    def test_shapes_list(self, capsys):
        assert main(["shapes"]) == 0
        out = capsys.readouterr().out.split()
        assert "spiral" in out
        assert "decay_spiral" in out

    def test_shapes_kind(self, capsys):
        assert main(["shapes", "--kind", "hexagon", "--radius", "2"]) == 0
        out = capsys.readouterr().out
        assert "hexagon: 6 points, closed" in out

    def test_clock(self, capsys):
        assert main(["clock", "--frames", "10", "--interval", "20"]) == 0
        out = capsys.readouterr().out
        assert "Accepted frames: 10/10" in out
        assert '"frame_count": 10' in out
        assert "Frame Monitor Report" in out

    def test_fractal(self, capsys):
        assert main(["fractal", "--width", "20", "--height", "8", "--iterations", "20"]) == 0
        out = capsys.readouterr().out
        preview = out.split("\n\n")[0].splitlines()
        assert len(preview) == 8
        assert all(len(line) == 20 for line in preview)
        assert "Pixels in set (est.)" in out

    def test_fractal_point(self, capsys):
        assert main(["fractal", "--point", "Elephant Valley", "--width", "10", "--height", "4"]) == 0
        assert "Zoom: 100" in capsys.readouterr().out

    def test_invalid_argument_exits(self):
        with pytest.raises(SystemExit):
            main(["fractal", "--width", "0"])

    def test_ascii_preview_ramp(self):
        rgba = np.zeros((1, 2, 4), dtype=np.uint8)
        rgba[0, 1, :3] = 255
        assert ascii_preview(rgba) == " @"


# ===========================================================================
# Logging
# ===========================================================================


class TestLogging:
    def test_json_formatter(self):
        record = logging.LogRecord("sacred_engine.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        record.fps = 59
        data = json.loads(JSONFormatter().format(record))
        assert data["level"] == "INFO"
        assert data["logger"] == "sacred_engine.test"
        assert data["message"] == "hello world"
        assert data["fps"] == 59
        assert "timestamp" in data

    def test_json_output_forced(self):
        configure_logging(json_output=True)
        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter, JSONFormatter)

    def test_environment_selects_json(self, monkeypatch):
        monkeypatch.setenv("SACRED_ENV", "production")
        configure_logging()
        assert isinstance(logging.getLogger().handlers[0].formatter, JSONFormatter)

    def test_development_is_human_readable(self, monkeypatch):
        monkeypatch.delenv("SACRED_ENV", raising=False)
        configure_logging(level=logging.DEBUG)
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert not isinstance(root.handlers[0].formatter, JSONFormatter)
