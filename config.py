"""Configuration constants for the take continuity logger."""

from pathlib import Path
from typing import Any, Optional

import yaml

# Database and application config paths
DB_PATH = Path.home() / '.config' / 'take-continuity' / 'takes.db'
CONFIG_PATH = Path.home() / '.config' / 'take-continuity' / 'config.yaml'

# File numbers are zero-padded to this many digits
FILE_NUMBER_WIDTH = 4

# Entries a trial project may hold before a token is needed
TRIAL_LOG_LIMIT = 15

DEFAULT_CAMERA_COUNT = 1
MAX_CAMERA_COUNT = 10

# Slot text that marks a deliberately empty file number
WASTE_MARKER = 'WASTE'


def _defaults() -> dict[str, Any]:
    return {
        'db_path': str(DB_PATH),
        'log_level': 'WARNING',
        'trial_log_limit': TRIAL_LOG_LIMIT,
    }


def load_config(path: Optional[Path] = None) -> dict[str, Any]:
    """Load the application config, merged over the defaults.

    Args:
        path: YAML file to read. Defaults to CONFIG_PATH; a missing file
            yields the defaults.

    Returns:
        Config dictionary with ``db_path``, ``log_level`` and ``trial_log_limit``.
    """
    config = _defaults()
    path = path or CONFIG_PATH
    if not path.exists():
        return config
    with open(path, encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if isinstance(data, dict):
        config.update({k: v for k, v in data.items() if v is not None})
    return config
