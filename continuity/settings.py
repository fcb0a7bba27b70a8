"""Project settings: camera configuration, enabled fields and YAML loading."""

import logging
from pathlib import Path
from typing import Any

import yaml

from config import DEFAULT_CAMERA_COUNT, MAX_CAMERA_COUNT
from .models import ProjectSettings, SettingsError

logger = logging.getLogger(__name__)

OPTIONAL_FIELDS = ('sound', 'camera', 'episode', 'card_number', 'description', 'notes')


def normalize_camera_count(value: Any) -> int:
    """Camera count from raw config; missing or invalid values mean one camera."""
    try:
        count = int(value)
    except (TypeError, ValueError):
        if value is not None:
            logger.warning("Invalid camera count %r, using %d", value, DEFAULT_CAMERA_COUNT)
        return DEFAULT_CAMERA_COUNT
    if count < 1 or count > MAX_CAMERA_COUNT:
        logger.warning("Camera count %d out of range, using %d", count, DEFAULT_CAMERA_COUNT)
        return DEFAULT_CAMERA_COUNT
    return count


def settings_from_dict(data: dict[str, Any]) -> ProjectSettings:
    """Build ProjectSettings from a plain dictionary.

    ``enabled_fields`` may be a list of names or a mapping of name -> bool.
    Unknown field names are ignored.
    """
    enabled = data.get('enabled_fields')
    if enabled is None:
        enabled_fields = ProjectSettings().enabled_fields
    elif isinstance(enabled, dict):
        enabled_fields = frozenset(k for k, v in enabled.items() if v and k in OPTIONAL_FIELDS)
    else:
        enabled_fields = frozenset(k for k in enabled if k in OPTIONAL_FIELDS)

    custom = data.get('custom_fields') or ()
    return ProjectSettings(
        camera_count=normalize_camera_count(data.get('camera_count')),
        enabled_fields=enabled_fields,
        custom_fields=tuple(str(name) for name in custom),
        director=data.get('director'),
        cinematographer=data.get('cinematographer'),
        production=data.get('production'),
    )


def settings_to_dict(settings: ProjectSettings) -> dict[str, Any]:
    return {
        'camera_count': settings.camera_count,
        'enabled_fields': sorted(settings.enabled_fields),
        'custom_fields': list(settings.custom_fields),
        'director': settings.director,
        'cinematographer': settings.cinematographer,
        'production': settings.production,
    }


def load_project_settings(path: Path) -> ProjectSettings:
    """Load project settings from a YAML file.

    Args:
        path: YAML file with ``camera_count``, ``enabled_fields``,
            ``custom_fields`` and crew names.

    Returns:
        The parsed settings.

    Raises:
        SettingsError: If the file cannot be read or is not a mapping.
    """
    try:
        with open(path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise SettingsError(f"Failed to load settings from {path}: {e}") from e
    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {path} must contain a mapping")
    return settings_from_dict(data)
