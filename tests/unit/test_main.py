# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the server entry point."""

from unittest.mock import MagicMock, patch

from edugate.main import run


@patch("edugate.main.uvicorn.run")
@patch("edugate.main.get_settings")
def test_run_uses_api_settings(mock_settings: MagicMock, mock_run: MagicMock) -> None:
    """Test that the factory is served with the API settings."""
    settings = mock_settings.return_value
    settings.api.host = "127.0.0.1"
    settings.api.port = 9000
    settings.api.reload = False
    settings.api.workers = 4
    settings.log_level = "INFO"

    run()

    mock_run.assert_called_once_with(
        "edugate.api.app:create_app",
        factory=True,
        host="127.0.0.1",
        port=9000,
        reload=False,
        workers=4,
        log_level="info",
    )


@patch("edugate.main.uvicorn.run")
@patch("edugate.main.get_settings")
def test_reload_runs_single_worker(mock_settings: MagicMock, mock_run: MagicMock) -> None:
    """Test that reload mode does not pass a worker count."""
    settings = mock_settings.return_value
    settings.api.reload = True
    settings.log_level = "DEBUG"

    run()

    assert mock_run.call_args.kwargs["workers"] is None
    assert mock_run.call_args.kwargs["log_level"] == "debug"
