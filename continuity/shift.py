"""Insert-before renumbering of a take and the rest of its scene/shot."""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from functools import reduce
from typing import Optional

from .delta import shifted
from .models import EntryUpdate, LogEntry, ProjectSettings
from .slots import SOUND, camera_field, camera_index, format_slot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShiftCarry:
    """Last assigned upper bound per field while walking a chain.

    None means the field is not moving: the inserted take has no value for it.
    """
    sound: Optional[int] = None
    cameras: tuple[Optional[int], ...] = ()

    def get(self, field_id: str) -> Optional[int]:
        if field_id == SOUND:
            return self.sound
        index = camera_index(field_id)
        if index is None or index > len(self.cameras):
            return None
        return self.cameras[index - 1]

    def advance(self, field_id: str, upper: int) -> 'ShiftCarry':
        if field_id == SOUND:
            return replace(self, sound=upper)
        index = camera_index(field_id)
        cameras = list(self.cameras)
        cameras[index - 1] = upper
        return replace(self, cameras=tuple(cameras))

    def fields(self) -> list[str]:
        return [SOUND] + [camera_field(i) for i in range(1, len(self.cameras) + 1)]


@dataclass(frozen=True)
class ShiftPlan:
    """Updates to apply atomically, plus the carry left after the last entry."""
    updates: tuple[EntryUpdate, ...]
    carry: ShiftCarry


def shift_chain(target: LogEntry, entries: Iterable[LogEntry]) -> list[LogEntry]:
    """The target followed by every later take of its scene/shot, ascending by take."""
    target_take = target.take_number
    if target_take is None:
        return [target]
    later = [
        entry for entry in entries
        if entry.id != target.id
        and entry.same_scene_shot(target.scene, target.shot)
        and entry.take_number is not None
        and entry.take_number > target_take
    ]
    later.sort(key=lambda entry: (entry.take_number, entry.id))
    return [target] + later


def initial_carry(
    inserted: LogEntry,
    camera_count: int,
    honour_rec_active: bool = True,
) -> ShiftCarry:
    """Carry seeded from the upper bounds of the inserted take."""
    def start(field_id: str) -> Optional[int]:
        slot = inserted.slot(field_id)
        if slot.is_blank:
            return None
        if honour_rec_active and not inserted.is_rec_active(field_id):
            return None
        return slot.upper

    return ShiftCarry(
        sound=start(SOUND),
        cameras=tuple(start(camera_field(i)) for i in range(1, camera_count + 1)),
    )


def _make_step(honour_rec_active: bool):
    def step(
        state: tuple[ShiftCarry, tuple[EntryUpdate, ...]],
        entry: LogEntry,
    ) -> tuple[ShiftCarry, tuple[EntryUpdate, ...]]:
        carry, updates = state
        new_slots = {}
        for field_id in carry.fields():
            base = carry.get(field_id)
            slot = entry.slot(field_id)
            if base is None or slot.is_blank:
                continue
            if honour_rec_active and not entry.is_rec_active(field_id):
                continue
            moved = shifted(slot, base + 1)
            new_slots[field_id] = moved
            carry = carry.advance(field_id, moved.upper)
            logger.debug(
                "Entry %s %s: %s -> %s", entry.id, field_id,
                format_slot(slot), format_slot(moved),
            )

        take = entry.take_number
        new_take = str(take + 1) if take is not None else None
        return carry, updates + (EntryUpdate(entry.id, take=new_take, slots=new_slots),)

    return step


def _fold(
    inserted: LogEntry,
    target: LogEntry,
    entries: Sequence[LogEntry],
    camera_count: int,
    honour_rec_active: bool,
) -> ShiftPlan:
    chain = shift_chain(target, entries)
    start = initial_carry(inserted, camera_count, honour_rec_active)
    carry, updates = reduce(_make_step(honour_rec_active), chain, (start, ()))
    logger.info(
        "Insert before %s: %d entries renumbered", target.location, len(updates)
    )
    return ShiftPlan(updates=updates, carry=carry)


def shift_single_camera(
    inserted: LogEntry,
    target: LogEntry,
    entries: Sequence[LogEntry],
) -> ShiftPlan:
    """Plan the insert-before cascade for a single-camera project.

    Args:
        inserted: The take being inserted, with its final slot values.
        target: Existing take the new one goes in front of.
        entries: All entries of the project.

    Returns:
        The update batch: the target and each later take of its scene/shot
        get their take number increased by one and their file numbers moved
        to follow the inserted take, keeping their widths.
    """
    return _fold(inserted, target, entries, 1, honour_rec_active=False)


def shift_multi_camera(
    inserted: LogEntry,
    target: LogEntry,
    entries: Sequence[LogEntry],
    camera_count: int,
) -> ShiftPlan:
    """Plan the insert-before cascade for a multi-camera project.

    Channels with REC switched off behave like blank slots, both on the
    inserted take and on the entries being renumbered.
    """
    return _fold(inserted, target, entries, camera_count, honour_rec_active=True)


def plan_insert_before(
    inserted: LogEntry,
    target: LogEntry,
    entries: Sequence[LogEntry],
    settings: ProjectSettings,
) -> ShiftPlan:
    """Route to the single or multi-camera cascade."""
    if settings.is_multi_camera:
        return shift_multi_camera(inserted, target, entries, settings.camera_count)
    return shift_single_camera(inserted, target, entries)


def apply_updates(entries: Iterable[LogEntry], updates: Iterable[EntryUpdate]) -> list[LogEntry]:
    """Entries as they will read once ``updates`` are persisted."""
    by_id = {update.entry_id: update for update in updates}
    result = []
    for entry in entries:
        update = by_id.get(entry.id)
        if update is None:
            result.append(entry)
            continue
        slots = dict(entry.slots)
        slots.update(update.slots)
        take = update.take if update.take is not None else entry.take
        result.append(replace(entry, take=take, slots=slots))
    return result
