"""edugate backend.

Grade and subscription based access control for a learning platform:
free-tier lesson unlocks, monthly download quotas and feature gates.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
