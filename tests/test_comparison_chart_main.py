"""
Tests for the Comparison Chart server entry point.
"""

import shutil
import sys
import tempfile
from unittest.mock import patch

import pytest

from src.comparison_chart import api
from src.comparison_chart import main as main_module


@pytest.fixture
def temp_dir():
    path = tempfile.mkdtemp()
    yield path
    shutil.rmtree(path)
    api.state = None


class TestMain:
    """Tests for argument handling in main()."""

    def test_starts_server_with_config(self, temp_dir):
        """Flags flow into the session config and uvicorn."""
        argv = [
            "main", "--data-dir", temp_dir,
            "--history", f"{temp_dir}/history.json",
            "--port", "9001", "--timeframe", "1M", "--save-debounce", "0.5",
        ]
        with patch.object(sys, "argv", argv), patch.object(main_module.uvicorn, "run") as run:
            main_module.main()

        run.assert_called_once()
        assert run.call_args.kwargs["port"] == 9001
        session = api.state.session
        assert session.timeframe == "1M"
        assert session.config.save_debounce_seconds == 0.5

    def test_missing_data_dir_exits(self, temp_dir):
        """A data directory that does not exist is a startup error."""
        argv = ["main", "--data-dir", f"{temp_dir}/missing"]
        with patch.object(sys, "argv", argv), patch.object(main_module.uvicorn, "run") as run:
            with pytest.raises(SystemExit):
                main_module.main()
        run.assert_not_called()

    def test_custom_is_not_a_startup_timeframe(self, temp_dir):
        argv = ["main", "--data-dir", temp_dir, "--timeframe", "Custom"]
        with patch.object(sys, "argv", argv):
            with pytest.raises(SystemExit):
                main_module.main()
