"""Entry form state: classification, shot details and field enablement.

Each classification maps to a rule that yields the set of disabled fields.
Every change of classification or MOS diffs the disabled set before and
after: newly disabled fields have their value held and blanked, re-enabled
fields get their held value back.
"""

from collections.abc import Callable, Mapping
from typing import Any, Optional

from .autofill import Prediction
from .models import (
    Classification,
    ClassificationError,
    ProjectSettings,
    ShotDetail,
    SOUND_ONLY_CLASSIFICATIONS,
    ValidationError,
    WasteOptions,
)
from .slots import SOUND, camera_fields, field_label, file_fields, is_camera_field, parse_slot

# Fields hidden by Ambience and SFX besides the cameras
IDENTIFIER_FIELDS = ('scene', 'shot', 'take')


def _cameras(form: 'EntryForm') -> set[str]:
    if not form.settings.is_enabled('camera'):
        return set()
    return set(camera_fields(form.settings.camera_count))


def _normal_rule(form: 'EntryForm') -> set[str]:
    return set()


def _waste_rule(form: 'EntryForm') -> set[str]:
    options = form.waste_options or WasteOptions()
    disabled = set()
    if not options.camera:
        disabled |= _cameras(form)
    if not options.sound:
        disabled.add(SOUND)
    return disabled


def _insert_rule(form: 'EntryForm') -> set[str]:
    return {SOUND} if form.insert_sound_speed is False else set()


def _sound_only_rule(form: 'EntryForm') -> set[str]:
    return set(IDENTIFIER_FIELDS) | _cameras(form)


CLASSIFICATION_RULES: dict[Classification, Callable[['EntryForm'], set[str]]] = {
    Classification.NORMAL: _normal_rule,
    Classification.WASTE: _waste_rule,
    Classification.INSERT: _insert_rule,
    Classification.AMBIENCE: _sound_only_rule,
    Classification.SFX: _sound_only_rule,
}


class EntryForm:
    """Values of a take being logged plus its classification state machine."""

    def __init__(
        self,
        settings: ProjectSettings,
        values: Optional[Mapping[str, Any]] = None,
        next_files: Optional[Mapping[str, str]] = None,
        rec_active: Optional[Mapping[str, bool]] = None,
    ) -> None:
        """Initialize the form.

        Args:
            settings: Project settings.
            values: Initial field values keyed by field id. File fields hold
                text (single or inline range) or a ``(from, to)`` pair.
            next_files: Next free file number per file field, used when a
                classification auto-fills sound.
            rec_active: REC flag per camera field; missing cameras record.
        """
        self.settings = settings
        self.values: dict[str, Any] = dict(values or {})
        self.next_files: dict[str, str] = dict(next_files or {})
        self.rec_active: dict[str, bool] = {
            field_id: True for field_id in camera_fields(settings.camera_count)
        }
        self.rec_active.update(rec_active or {})
        self.classification = Classification.NORMAL
        self.waste_options: Optional[WasteOptions] = None
        self.insert_sound_speed: Optional[bool] = None
        self.shot_details: set[ShotDetail] = set()
        self.card_numbers: dict[str, str] = {}
        self.custom: dict[str, str] = {}
        self.is_good_take = False
        self._held: dict[str, Any] = {}
        self._disabled: frozenset[str] = frozenset()

    @classmethod
    def from_prediction(cls, settings: ProjectSettings, prediction: Prediction) -> 'EntryForm':
        """Form primed with an auto-fill prediction."""
        form = cls(
            settings,
            values=prediction.values(),
            next_files=prediction.files,
            rec_active=prediction.rec_active,
        )
        form.card_numbers = dict(prediction.card_numbers)
        return form

    # --- State ---

    @property
    def disabled_fields(self) -> frozenset[str]:
        return self._disabled

    @property
    def held_values(self) -> dict[str, Any]:
        return dict(self._held)

    @property
    def is_mos(self) -> bool:
        return ShotDetail.MOS in self.shot_details

    def _compute_disabled(self) -> frozenset[str]:
        disabled = CLASSIFICATION_RULES[self.classification](self)
        if self.is_mos:
            disabled.add(SOUND)
        return frozenset(disabled)

    def _transition(self, change: Callable[[], None]) -> None:
        before = self._disabled
        change()
        after = self._compute_disabled()
        for field_id in after - before:
            if field_id in self.values:
                self._held[field_id] = self.values.pop(field_id)
        for field_id in before - after:
            if field_id in self._held:
                self.values[field_id] = self._held.pop(field_id)
        self._disabled = after

    def _autofill_sound(self) -> None:
        if SOUND not in self._disabled and self.next_files.get(SOUND):
            self.values[SOUND] = self.next_files[SOUND]

    # --- Transitions ---

    def select_classification(
        self,
        classification: Classification,
        waste_options: Optional[WasteOptions] = None,
        sound_speed: Optional[bool] = None,
    ) -> Classification:
        """Toggle a classification tab.

        Selecting the active classification again returns to Normal.

        Args:
            classification: Tab the user selected.
            waste_options: Channels kept on a wasted take; required for Waste.
            sound_speed: Whether sound rolled; required for Insert.

        Returns:
            The classification now in effect.

        Raises:
            ClassificationError: If Waste keeps no channel or Insert lacks
                the sound speed answer.
        """
        target = classification
        if classification is self.classification:
            target = Classification.NORMAL

        if target is Classification.WASTE:
            if waste_options is None or not (waste_options.camera or waste_options.sound):
                raise ClassificationError("Select at least one of camera or sound for a wasted take")
        if target is Classification.INSERT and sound_speed is None:
            raise ClassificationError("Answer whether sound speed rolled for an insert")

        def change() -> None:
            self.classification = target
            self.waste_options = waste_options if target is Classification.WASTE else None
            self.insert_sound_speed = sound_speed if target is Classification.INSERT else None
            if target in SOUND_ONLY_CLASSIFICATIONS:
                self.shot_details.discard(ShotDetail.MOS)

        self._transition(change)

        if target in SOUND_ONLY_CLASSIFICATIONS or (
            target is Classification.INSERT and sound_speed
        ):
            self._autofill_sound()
        return target

    def toggle_shot_detail(self, detail: ShotDetail) -> bool:
        """Toggle a shot detail flag, returning whether it is now set.

        Raises:
            ClassificationError: If MOS is selected on Ambience or SFX.
        """
        turning_on = detail not in self.shot_details
        if (detail is ShotDetail.MOS and turning_on
                and self.classification in SOUND_ONLY_CLASSIFICATIONS):
            raise ClassificationError("MOS is not available for Ambience or SFX")

        def change() -> None:
            if turning_on:
                self.shot_details.add(detail)
            else:
                self.shot_details.discard(detail)

        self._transition(change)
        return turning_on

    # --- Values ---

    def set_value(self, field_id: str, value: Any) -> None:
        """Set a field value.

        Raises:
            ClassificationError: If the field is disabled.
        """
        if field_id in self._disabled:
            raise ClassificationError(f"{field_label(field_id, self.settings.camera_count)} is disabled")
        self.values[field_id] = value

    def set_range(self, field_id: str, start: str, end: str) -> None:
        self.set_value(field_id, (start, end))

    def set_rec_active(self, field_id: str, active: bool) -> None:
        if not is_camera_field(field_id):
            raise ValueError(f"Not a camera field: {field_id}")
        self.rec_active[field_id] = active

    # --- Validation ---

    def mandatory_fields(self) -> list[str]:
        """Fields that must hold a value before the take can be logged."""
        required = []
        if self.classification not in SOUND_ONLY_CLASSIFICATIONS:
            required.extend(['scene', 'shot'])
        for field_id in file_fields(self.settings):
            if field_id in self._disabled:
                continue
            if is_camera_field(field_id) and not self.rec_active.get(field_id, True):
                continue
            required.append(field_id)
        return required

    def missing_fields(self) -> list[str]:
        missing = []
        for field_id in self.mandatory_fields():
            value = self.values.get(field_id)
            if field_id == SOUND or is_camera_field(field_id):
                if parse_slot(value).is_blank:
                    missing.append(field_id)
            elif value is None or not str(value).strip():
                missing.append(field_id)
        return missing

    def validate(self) -> None:
        """Raise ValidationError listing every missing mandatory field."""
        missing = self.missing_fields()
        if missing:
            labels = [field_label(f, self.settings.camera_count) for f in missing]
            raise ValidationError(missing, labels)
