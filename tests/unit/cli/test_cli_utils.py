"""Unit tests for CLI utilities including ErrorFormatter."""

import logging
import sys

import pytest

from espbind.cli_utils import ErrorFormatter, PathValidator, setup_logging


class TestErrorFormatter:
    """Tests for ErrorFormatter class."""

    def test_print_error(self, capsys):
        """Test error title and message output."""
        ErrorFormatter.print_error("Build failed", "pio exited with 1")

        out = capsys.readouterr().out
        assert "✗ Build failed" in out
        assert "pio exited with 1" in out
        assert ErrorFormatter.RED in out

    def test_print_success(self, capsys):
        ErrorFormatter.print_success("Bindings generated!")

        assert "✓ Bindings generated!" in capsys.readouterr().out

    def test_handle_error_exits_1(self, capsys):
        """Test that fatal errors exit with status 1."""
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_error("Configuration error", ValueError("bad directive"))

        assert exc_info.value.code == 1
        assert "bad directive" in capsys.readouterr().out

    def test_handle_keyboard_interrupt(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_keyboard_interrupt()

        assert exc_info.value.code == 130
        assert "Build interrupted" in capsys.readouterr().out

    def test_handle_unexpected_error_verbose(self, capsys):
        """Test that verbose mode prints a traceback."""
        try:
            raise RuntimeError("oops")
        except RuntimeError as e:
            with pytest.raises(SystemExit) as exc_info:
                ErrorFormatter.handle_unexpected_error(e, verbose=True)

        out = capsys.readouterr().out
        assert exc_info.value.code == 1
        assert "RuntimeError: oops" in out
        assert "Traceback:" in out


class TestPathValidator:
    """Tests for PathValidator class."""

    def test_missing(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            PathValidator.validate_workspace_dir(tmp_path / "missing")

        assert exc_info.value.code == 2

    def test_not_a_directory(self, tmp_path):
        path = tmp_path / "file"
        path.write_text("")

        with pytest.raises(SystemExit) as exc_info:
            PathValidator.validate_workspace_dir(path)

        assert exc_info.value.code == 2

    def test_valid(self, tmp_path):
        PathValidator.validate_workspace_dir(tmp_path)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_levels(self):
        root = logging.getLogger()
        saved = root.handlers[:], root.level
        try:
            setup_logging(verbose=True)
            assert root.level == logging.DEBUG
            assert root.handlers[0].stream is sys.stderr

            setup_logging(verbose=False)
            assert root.level == logging.WARNING
        finally:
            root.handlers, root.level = saved[0], saved[1]
