"""Take-number and file-number collision detection across a project."""

import logging
from collections.abc import Iterable, Sequence
from typing import Optional, Union

from .models import (
    Classification,
    ChannelConflict,
    ConflictType,
    EntryUpdate,
    FileCollision,
    InsertEligible,
    LogEntry,
    ProjectSettings,
    Slot,
    TakeCollision,
)
from .shift import apply_updates, plan_insert_before
from .slots import file_fields, is_camera_field

logger = logging.getLogger(__name__)

Detection = Union[TakeCollision, FileCollision, InsertEligible, None]


def classify_overlap(candidate: Slot, existing: Slot) -> Optional[ConflictType]:
    """Classify how a candidate slot collides with an existing one.

    Args:
        candidate: Slot of the take being logged.
        existing: Slot of an already logged take, same field.

    Returns:
        None when either slot is blank or the spans do not overlap,
        otherwise the conflict type.
    """
    if not candidate.overlaps(existing):
        return None
    if candidate.lower == existing.lower and candidate.upper == existing.upper:
        return ConflictType.EXACT
    if candidate.lower == existing.lower:
        return ConflictType.LOWER
    if existing.lower < candidate.lower < existing.upper:
        return ConflictType.WITHIN
    if candidate.lower == existing.upper:
        return ConflictType.UPPER
    # an existing value starts inside the candidate range
    return ConflictType.WITHIN


def candidate_fields(
    candidate: LogEntry,
    settings: ProjectSettings,
    disabled: Iterable[str] = (),
    honour_rec_active: bool = True,
) -> list[str]:
    """File fields of the candidate that take part in detection."""
    disabled = set(disabled)
    fields = []
    for field_id in file_fields(settings):
        if field_id in disabled or candidate.slot(field_id).is_blank:
            continue
        if honour_rec_active and is_camera_field(field_id) and not candidate.is_rec_active(field_id):
            continue
        fields.append(field_id)
    return fields


def channel_conflicts(
    candidate: LogEntry,
    entries: Sequence[LogEntry],
    fields: Sequence[str],
) -> list[ChannelConflict]:
    """Every overlap between the candidate's fields and existing slots."""
    conflicts = []
    for field_id in fields:
        slot = candidate.slot(field_id)
        for entry in entries:
            if candidate.id and entry.id == candidate.id:
                continue
            conflict_type = classify_overlap(slot, entry.slot(field_id))
            if conflict_type is not None:
                conflicts.append(ChannelConflict(field_id, conflict_type, entry))
    return conflicts


def resolve_file_conflicts(
    conflicts: Sequence[ChannelConflict],
    fields: Sequence[str],
) -> Union[FileCollision, InsertEligible, None]:
    """Decide whether file collisions block the commit or allow insert-before.

    Insert-before needs every match to sit on a lower bound of one and the
    same entry, and every other field with a value must face a blank slot
    on that entry.
    """
    if not conflicts:
        return None

    for conflict in conflicts:
        if conflict.conflict_type.blocking:
            return FileCollision(conflict.conflict_type, conflict.field_id, conflict.existing)

    target = conflicts[0].existing
    for conflict in conflicts[1:]:
        if conflict.existing.id != target.id:
            return FileCollision(
                ConflictType.CROSS_ENTRY, conflict.field_id, target, other=conflict.existing
            )

    matched = tuple(conflict.field_id for conflict in conflicts)
    blank = []
    for field_id in fields:
        if field_id in matched:
            continue
        if target.slot(field_id).is_blank:
            blank.append(field_id)
            continue
        return FileCollision(ConflictType.MISALIGNED, field_id, target)
    return InsertEligible(target=target, matched_fields=matched, blank_fields=tuple(blank))


def find_take_collision(candidate: LogEntry, entries: Iterable[LogEntry]) -> Optional[TakeCollision]:
    """Find a Normal entry already using the candidate's scene/shot/take."""
    if candidate.is_sound_only or candidate.take_number is None:
        return None
    same_shot = [
        entry for entry in entries
        if (not candidate.id or entry.id != candidate.id)
        and entry.same_scene_shot(candidate.scene, candidate.shot)
    ]
    clash = next(
        (entry for entry in same_shot
         if entry.classification is Classification.NORMAL
         and entry.take_number == candidate.take_number),
        None,
    )
    if clash is None:
        return None
    highest = max(entry.take_number for entry in same_shot if entry.take_number is not None)
    return TakeCollision(existing=clash, highest_take=highest)


def find_shift_overlap(
    updates: Sequence[EntryUpdate],
    shifted_entries: Sequence[LogEntry],
) -> Optional[FileCollision]:
    """Find a renumbered slot that lands on an entry the shift leaves alone.

    Args:
        updates: Insert-before updates of the target chain.
        shifted_entries: Project entries with ``updates`` applied.

    Returns:
        A blocking ``shift_overlap`` collision naming the untouched entry,
        or None when every moved slot is clear.
    """
    moved = {update.entry_id for update in updates}
    by_id = {entry.id: entry for entry in shifted_entries}
    for update in updates:
        for field_id, slot in update.slots.items():
            for entry in shifted_entries:
                if entry.id in moved or not slot.overlaps(entry.slot(field_id)):
                    continue
                return FileCollision(
                    ConflictType.SHIFT_OVERLAP, field_id, entry, other=by_id.get(update.entry_id)
                )
    return None


def _file_decision(
    candidate: LogEntry,
    entries: Sequence[LogEntry],
    settings: ProjectSettings,
    disabled: Iterable[str],
    honour_rec_active: bool,
) -> Union[FileCollision, InsertEligible, None]:
    fields = candidate_fields(candidate, settings, disabled, honour_rec_active)
    return resolve_file_conflicts(channel_conflicts(candidate, entries, fields), fields)


def detect_file_conflicts(
    candidate: LogEntry,
    entries: Sequence[LogEntry],
    settings: ProjectSettings,
    disabled: Iterable[str] = (),
) -> Union[FileCollision, InsertEligible, None]:
    """File-number decision alone, without the take check or the shift simulation."""
    entries = sorted(entries, key=lambda entry: entry.id)
    return _file_decision(candidate, entries, settings, disabled, settings.is_multi_camera)


def _detect(
    candidate: LogEntry,
    entries: Sequence[LogEntry],
    settings: ProjectSettings,
    disabled: Iterable[str],
    honour_rec_active: bool,
) -> Detection:
    entries = sorted(entries, key=lambda entry: entry.id)
    result = _file_decision(candidate, entries, settings, disabled, honour_rec_active)

    if isinstance(result, InsertEligible):
        plan = plan_insert_before(candidate, result.target, entries, settings)
        shifted_entries = apply_updates(entries, plan.updates)
        overlap = find_shift_overlap(plan.updates, shifted_entries)
        if overlap is not None:
            result = overlap
        else:
            # the take number must still be free once the target chain moves up
            collision = find_take_collision(candidate, shifted_entries)
            if collision is not None:
                return collision
            logger.debug("Insert-before possible at %s", result.target.location)
            return result

    if isinstance(result, FileCollision):
        logger.debug(
            "Blocking %s conflict on %s at %s",
            result.conflict_type.value, result.field_id, result.location,
        )
        return result

    return find_take_collision(candidate, entries)


def detect_single_camera(
    candidate: LogEntry,
    entries: Sequence[LogEntry],
    settings: ProjectSettings,
    disabled: Iterable[str] = (),
) -> Detection:
    """Detect collisions for a single-camera project.

    Args:
        candidate: Take being logged, slots already parsed.
        entries: All entries of the project.
        settings: Project settings.
        disabled: Field ids disabled on the entry form.

    Returns:
        None, a TakeCollision, a blocking FileCollision or an InsertEligible
        decision point. Blocking file collisions win over insert-before,
        which wins over take collisions.
    """
    return _detect(candidate, entries, settings, disabled, honour_rec_active=False)


def detect_multi_camera(
    candidate: LogEntry,
    entries: Sequence[LogEntry],
    settings: ProjectSettings,
    disabled: Iterable[str] = (),
) -> Detection:
    """Detect collisions for a multi-camera project, skipping channels not recording."""
    return _detect(candidate, entries, settings, disabled, honour_rec_active=True)


def detect_duplicates(
    candidate: LogEntry,
    entries: Sequence[LogEntry],
    settings: ProjectSettings,
    disabled: Iterable[str] = (),
) -> Detection:
    """Route to the single or multi-camera detector."""
    if settings.is_multi_camera:
        return detect_multi_camera(candidate, entries, settings, disabled)
    return detect_single_camera(candidate, entries, settings, disabled)
