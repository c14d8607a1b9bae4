import os
from pathlib import Path
from unittest.mock import patch

from commitsum.utils import debug_requested, resolve_output_path, setup_logging


# --- setup_logging ---


@patch("commitsum.utils.RotatingFileHandler")
@patch("commitsum.utils.logging")
def test_setup_logging(mock_logging, mock_handler, tmp_path):
    """Test that logging is configured with the rotating file handler."""
    logger = setup_logging(log_dir=tmp_path / "logs")

    assert (tmp_path / "logs").is_dir()
    mock_logging.basicConfig.assert_called_once()
    _, kwargs = mock_logging.basicConfig.call_args
    assert kwargs["handlers"] == [mock_handler.return_value]
    assert kwargs["level"] == mock_logging.INFO
    mock_logging.getLogger.assert_called_with("CommitSum")
    assert logger == mock_logging.getLogger.return_value


@patch("commitsum.utils.RotatingFileHandler")
@patch("commitsum.utils.logging")
def test_setup_logging_debug(mock_logging, mock_handler, tmp_path):
    setup_logging(debug=True, log_dir=tmp_path)

    _, kwargs = mock_logging.basicConfig.call_args
    assert kwargs["level"] == mock_logging.DEBUG
    log_file = mock_handler.call_args[0][0]
    assert log_file.name.startswith("commitsum-")
    assert log_file.suffix == ".log"


# --- debug_requested ---


def test_debug_requested(monkeypatch):
    monkeypatch.delenv("DEBUG", raising=False)
    assert debug_requested() is False
    monkeypatch.setenv("DEBUG", "1")
    assert debug_requested() is True


# --- resolve_output_path ---


def test_resolve_output_path_with_root(tmp_path):
    path = resolve_output_path("commits-2026-10-19.txt", root=tmp_path)
    assert path == tmp_path / "commit-summaries" / "commits-2026-10-19.txt"
    assert not path.parent.exists()


def test_resolve_output_path_defaults_to_cwd():
    path = resolve_output_path("out.md")
    assert path == Path(os.getcwd()) / "commit-summaries" / "out.md"
