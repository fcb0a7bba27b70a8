"""Parsing and formatting of sound and camera file-number slots."""

import re
from collections.abc import Mapping
from typing import Any, Optional

from config import FILE_NUMBER_WIDTH, WASTE_MARKER
from .models import LogEntry, ProjectSettings, Slot

SOUND = 'sound'

_CAMERA_FIELD = re.compile(r'^camera(\d+)$')
_INLINE_RANGE = re.compile(r'^\s*(\S+?)\s*[-–]\s*(\S+)\s*$')
_LEADING_DIGITS = re.compile(r'\s*(\d+)')


# --- Field ids ---

def camera_field(index: int) -> str:
    """Field id of camera channel ``index`` (1-based)."""
    return f'camera{index}'


def camera_fields(camera_count: int) -> list[str]:
    return [camera_field(i) for i in range(1, camera_count + 1)]


def camera_index(field_id: str) -> Optional[int]:
    """1-based channel index of a camera field id, None for other fields."""
    match = _CAMERA_FIELD.match(field_id)
    return int(match.group(1)) if match else None


def is_camera_field(field_id: str) -> bool:
    return camera_index(field_id) is not None


def file_fields(settings: ProjectSettings) -> list[str]:
    """File-number fields enabled for a project, sound first."""
    fields = []
    if settings.is_enabled('sound'):
        fields.append(SOUND)
    if settings.is_enabled('camera'):
        fields.extend(camera_fields(settings.camera_count))
    return fields


def field_label(field_id: str, camera_count: int = 1) -> str:
    """Display label of a field id."""
    if field_id == SOUND:
        return 'Sound File'
    index = camera_index(field_id)
    if index is not None:
        return 'Camera File' if camera_count == 1 else f'Camera {index} File'
    return field_id.replace('_', ' ').title()


# --- Parsing ---

def _to_number(value: Any) -> int:
    """Leading digits of ``value`` as an int; non-numeric text counts as 0."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    match = _LEADING_DIGITS.match(str(value))
    return int(match.group(1)) if match else 0


def _is_blank_text(value: Any) -> bool:
    if value is None:
        return True
    text = str(value).strip()
    return not text or text.upper() == WASTE_MARKER


def _pair(start: Any, end: Any) -> Slot:
    if _is_blank_text(start) and _is_blank_text(end):
        return Slot.blank()
    if _is_blank_text(start):
        return Slot.single(_to_number(end))
    if _is_blank_text(end):
        return Slot.single(_to_number(start))
    return Slot.ranged(_to_number(start), _to_number(end))


def parse_slot(raw: Any) -> Slot:
    """Parse a raw slot value into a Slot.

    Args:
        raw: None, a Slot, an int, a ``(from, to)`` pair, a mapping with
            ``from``/``to`` keys, or text. Text is blank when empty or
            ``WASTE``, a range when written ``from-to``, otherwise a single
            number (non-numeric text counts as 0).

    Returns:
        The parsed Slot, ranges normalized so lower <= upper.
    """
    if isinstance(raw, Slot):
        return raw
    if isinstance(raw, Mapping):
        return _pair(raw.get('from'), raw.get('to'))
    if isinstance(raw, (tuple, list)) and len(raw) == 2:
        return _pair(raw[0], raw[1])
    if isinstance(raw, int) and not isinstance(raw, bool):
        return Slot.single(raw)
    if _is_blank_text(raw):
        return Slot.blank()
    text = str(raw).strip()
    match = _INLINE_RANGE.match(text)
    if match:
        return Slot.ranged(_to_number(match.group(1)), _to_number(match.group(2)))
    return Slot.single(_to_number(text))


def is_blank(entry: LogEntry, field_id: str) -> bool:
    return entry.slot(field_id).is_blank


def lower_bound(slot: Slot) -> Optional[int]:
    return slot.lower


def upper_bound(slot: Slot) -> Optional[int]:
    return slot.upper


# --- Formatting ---

def format_padded(number: int) -> str:
    """Zero-pad a file number, e.g. 7 -> '0007'."""
    return str(number).zfill(FILE_NUMBER_WIDTH)


def format_slot(slot: Slot) -> str:
    if slot.is_blank:
        return ''
    if slot.is_range:
        return f'{format_padded(slot.lower)}-{format_padded(slot.upper)}'
    return format_padded(slot.lower)


def normalize_file_number(text: Optional[str]) -> str:
    """Clean a typed file number: keep the digits and pad them."""
    if text is None:
        return ''
    if text.strip().upper() == WASTE_MARKER:
        return WASTE_MARKER
    digits = re.sub(r'\D', '', text)
    return format_padded(int(digits)) if digits else ''


# --- Stored representation ---

def slot_from_stored(data: Mapping[str, Any], field_id: str) -> Slot:
    """Read a slot from stored record data.

    A ``<field>_from``/``<field>_to`` pair wins over an inline value stored
    under the field id.
    """
    start = data.get(f'{field_id}_from')
    end = data.get(f'{field_id}_to')
    if not (_is_blank_text(start) and _is_blank_text(end)):
        return _pair(start, end)
    return parse_slot(data.get(field_id))


def slot_to_stored(field_id: str, slot: Slot) -> dict[str, str]:
    """Stored record data of a slot; ranges become a padded from/to pair."""
    if slot.is_blank:
        return {}
    if slot.is_range:
        return {
            f'{field_id}_from': format_padded(slot.lower),
            f'{field_id}_to': format_padded(slot.upper),
        }
    return {field_id: format_padded(slot.lower)}
