"""
Development configuration.

Logging defaults for local development. ``VOICETOGGLE_LOG_LEVEL`` in the
environment overrides LOG_LEVEL, and ``voicetoggle --log-level`` overrides both
for a single run.
"""

import logging
import os

LOG_LEVEL = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_TO_CONSOLE = True  # Also write logs to stderr
LOG_LEVEL_ENV = "VOICETOGGLE_LOG_LEVEL"


def get_log_level() -> int:
    """Get the logging level as an integer."""
    name = os.environ.get(LOG_LEVEL_ENV) or LOG_LEVEL
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO
