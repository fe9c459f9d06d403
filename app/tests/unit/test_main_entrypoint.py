"""Unit tests for the application entry point."""

from unittest.mock import patch

import pytest

import main


@pytest.mark.unit
@patch("main.scheduled_tasks")
def test_main_starts_jobs(mock_tasks):
    stop = main.main(block=False)

    mock_tasks.init.assert_called_once()
    mock_tasks.run_startup_jobs.assert_called_once()
    mock_tasks.run_continuously.assert_called_once_with(interval=1)
    assert stop is mock_tasks.run_continuously.return_value


@pytest.mark.unit
@patch("main.scheduled_tasks")
def test_main_jobs_disabled(mock_tasks, monkeypatch):
    monkeypatch.setenv("JOBS_ENABLED", "false")

    assert main.main(block=False) is None
    mock_tasks.init.assert_not_called()
