"""Prediction of the next scene, shot, take and file numbers."""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from .models import Classification, LogEntry, ProjectSettings
from .slots import camera_fields, file_fields, format_padded, is_camera_field


@dataclass
class Prediction:
    """Proposed values for a freshly opened entry."""
    scene: str
    shot: str
    take: str
    files: dict[str, str] = field(default_factory=dict)        # field id -> padded number
    rec_active: dict[str, bool] = field(default_factory=dict)
    episode: Optional[str] = None
    card_numbers: dict[str, str] = field(default_factory=dict)
    description: Optional[str] = None

    def values(self) -> dict[str, Any]:
        """Form values keyed by field id, empty proposals left out."""
        values: dict[str, Any] = {'scene': self.scene, 'shot': self.shot, 'take': self.take}
        if self.episode:
            values['episode'] = self.episode
        if self.description:
            values['description'] = self.description
        values.update({k: v for k, v in self.files.items() if v})
        return values


def _recency(entry: LogEntry) -> tuple[datetime, int]:
    return entry.created_at or datetime.min, entry.id


def highest_recorded(entries: Iterable[LogEntry], field_id: str) -> int:
    """Highest upper bound (or single value) logged for a field, 0 if none."""
    uppers = [entry.slot(field_id).upper for entry in entries if not entry.slot(field_id).is_blank]
    return max(uppers, default=0)


def last_recorded(ordered: Sequence[LogEntry], field_id: str) -> Optional[int]:
    """Upper bound of the newest non-blank slot of a field; ``ordered`` is oldest first."""
    slot = next(
        (entry.slot(field_id) for entry in reversed(ordered) if not entry.slot(field_id).is_blank),
        None,
    )
    return slot.upper if slot is not None else None


def highest_take(entries: Iterable[LogEntry], scene: str, shot: str) -> int:
    takes = [
        entry.take_number for entry in entries
        if entry.same_scene_shot(scene, shot) and entry.take_number is not None
    ]
    return max(takes, default=0)


def predict_next(
    entries: Sequence[LogEntry],
    settings: ProjectSettings,
    rec_active: Optional[Mapping[str, bool]] = None,
) -> Prediction:
    """Predict the values of the next take.

    Scene, shot and episode follow the most recent Normal take; the take is
    one past the highest take of that scene/shot. File numbers continue from
    the highest number logged anywhere in the project, except cameras that
    are not recording, which repeat their last recorded number.

    Args:
        entries: All entries of the project.
        settings: Project settings.
        rec_active: REC flag per camera field; missing cameras record.

    Returns:
        The prediction. Calling this again on the same entries gives the
        same result.
    """
    fields = file_fields(settings)
    rec = {field_id: True for field_id in camera_fields(settings.camera_count)}
    rec.update(rec_active or {})

    if not entries:
        return Prediction(
            scene='1', shot='1', take='1',
            files={field_id: format_padded(1) for field_id in fields},
            rec_active=rec,
        )

    ordered = sorted(entries, key=_recency)
    last = ordered[-1]
    last_valid = next(
        (entry for entry in reversed(ordered) if entry.classification is Classification.NORMAL),
        last,
    )
    scene = last_valid.scene or '1'
    shot = last_valid.shot or '1'
    take = highest_take(entries, scene, shot) + 1

    files = {}
    for field_id in fields:
        if is_camera_field(field_id) and not rec.get(field_id, True):
            last_value = last_recorded(ordered, field_id)
            files[field_id] = format_padded(last_value) if last_value is not None else ''
        else:
            files[field_id] = format_padded(highest_recorded(entries, field_id) + 1)

    description = None
    if settings.is_enabled('description'):
        description = next(
            (entry.description for entry in reversed(ordered)
             if entry.description and entry.same_scene_shot(scene, shot)),
            None,
        )

    return Prediction(
        scene=scene,
        shot=shot,
        take=str(take),
        files=files,
        rec_active=rec,
        episode=last_valid.episode if settings.is_enabled('episode') else None,
        card_numbers=dict(last.card_numbers) if settings.is_enabled('card_number') else {},
        description=description,
    )
