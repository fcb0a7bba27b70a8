"""Span calculations used to keep range widths when renumbering."""

from collections.abc import Iterable
from typing import Optional

from .models import LogEntry, Slot


def span(slot: Slot) -> Optional[int]:
    """Width of a slot.

    Args:
        slot: Slot to measure.

    Returns:
        ``upper - lower`` for a range, 0 for a single value, None for a
        blank slot (blank slots are never shifted).
    """
    if slot.is_blank:
        return None
    if slot.is_range:
        return abs(slot.upper - slot.lower)
    return 0


def file_count(slot: Slot) -> int:
    """Number of files covered by a slot, bounds included."""
    width = span(slot)
    return 0 if width is None else width + 1


def entry_spans(entry: LogEntry, fields: Iterable[str]) -> dict[str, Optional[int]]:
    return {field_id: span(entry.slot(field_id)) for field_id in fields}


def shifted(slot: Slot, new_lower: int) -> Slot:
    """Move ``slot`` so it starts at ``new_lower``, keeping its width and shape."""
    width = span(slot)
    if width is None:
        return slot
    if slot.is_range or width > 0:
        return Slot.ranged(new_lower, new_lower + width)
    return Slot.single(new_lower)
