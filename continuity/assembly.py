"""Turn a filled-in entry form into the record that gets persisted."""

from typing import Optional

from .classification import IDENTIFIER_FIELDS, EntryForm
from .models import Classification, LogEntry, ProjectSettings, SOUND_ONLY_CLASSIFICATIONS
from .slots import file_fields, is_camera_field, parse_slot, slot_to_stored


def _text(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def assemble_entry(form: EntryForm, settings: ProjectSettings, project_id: int = 0) -> LogEntry:
    """Build an unsaved LogEntry from an entry form.

    Disabled fields are dropped, as are cameras that were not recording.
    Ambience and SFX takes keep neither scene/shot/take nor camera files.

    Args:
        form: The entry form.
        settings: Project settings.
        project_id: Project the entry belongs to.

    Returns:
        The assembled entry with ``id`` 0.

    Raises:
        ValidationError: If a mandatory field is empty.
    """
    form.validate()
    disabled = form.disabled_fields
    sound_only = form.classification in SOUND_ONLY_CLASSIFICATIONS

    slots = {}
    for field_id in file_fields(settings):
        if field_id in disabled:
            continue
        if is_camera_field(field_id):
            if sound_only:
                continue
            if settings.is_multi_camera and not form.rec_active.get(field_id, True):
                continue
        slot = parse_slot(form.values.get(field_id))
        if not slot.is_blank:
            slots[field_id] = slot

    identifiers = {}
    for name in IDENTIFIER_FIELDS:
        if sound_only or name in disabled:
            identifiers[name] = None
        else:
            identifiers[name] = _text(form.values.get(name))

    def optional(name: str) -> Optional[str]:
        if not settings.is_enabled(name):
            return None
        return _text(form.values.get(name))

    card_numbers = {}
    if settings.is_enabled('card_number'):
        card_numbers = {k: v.strip() for k, v in form.card_numbers.items() if v and v.strip()}

    return LogEntry(
        project_id=project_id,
        scene=identifiers['scene'],
        shot=identifiers['shot'],
        take=identifiers['take'],
        classification=form.classification,
        slots=slots,
        rec_active=dict(form.rec_active) if settings.is_multi_camera else {},
        shot_details=frozenset(form.shot_details),
        episode=optional('episode'),
        card_numbers=card_numbers,
        description=optional('description'),
        notes=optional('notes'),
        custom={k: v for k, v in form.custom.items() if k in settings.custom_fields},
        is_good_take=form.is_good_take,
        waste_options=form.waste_options if form.classification is Classification.WASTE else None,
        insert_sound_speed=(
            form.insert_sound_speed if form.classification is Classification.INSERT else None
        ),
    )


def stored_fields(entry: LogEntry) -> dict[str, str]:
    """Slots of an entry in their stored form, ranges as from/to pairs."""
    data = {}
    for field_id, slot in sorted(entry.slots.items()):
        data.update(slot_to_stored(field_id, slot))
    return data
