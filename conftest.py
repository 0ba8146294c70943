"""Shared test setup."""

import os
import sys
import tempfile

# Add the project root to the Python path - might be needed for discovery
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

# Modules such as cli.main configure logging on import, before any fixture runs
os.environ.setdefault(
    "LOG_FILE", os.path.join(tempfile.gettempdir(), "inverstra-tests", "app.log")
)
os.environ["LOGFIRE_ENABLED"] = "false"
