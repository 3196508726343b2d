# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Server entry point.

Runs the API with uvicorn using the API_* settings:

    $ edugate
    $ python -m edugate.main
"""

import uvicorn

from edugate.core.config import get_settings


def run() -> None:
    """Start the uvicorn server for the application factory."""
    settings = get_settings()

    uvicorn.run(
        "edugate.api.app:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.reload,
        # reload and multiple workers are mutually exclusive in uvicorn
        workers=None if settings.api.reload else settings.api.workers,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
