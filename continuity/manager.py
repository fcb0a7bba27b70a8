"""Take logging: the commit pipeline from entry form to persisted entry."""

import logging
from dataclasses import replace
from typing import Optional, Protocol

from .assembly import assemble_entry
from .autofill import Prediction, predict_next
from .classification import EntryForm
from .database import DatabaseManager
from .duplicates import Detection, detect_duplicates, detect_file_conflicts
from .entitlement import EntitlementGate
from .models import (
    ContinuityError,
    EntryUpdate,
    FileCollision,
    FileRangeConflict,
    InsertEligible,
    LogEntry,
    ProjectSettings,
    QuotaExceededError,
    TakeCollision,
    TakeNumberConflict,
    TakeResolution,
    TakeShift,
)
from .shift import apply_updates, plan_insert_before

logger = logging.getLogger(__name__)


class ConflictResolver(Protocol):
    """Asks the user how to handle a take or insert-before decision."""

    def resolve_take_conflict(self, collision: TakeCollision) -> TakeResolution:
        ...

    def confirm_insert_before(self, eligible: InsertEligible) -> bool:
        ...


class TakeLogManager:
    """Creates projects and commits log entries."""

    def __init__(self, db: DatabaseManager, gate: Optional[EntitlementGate] = None) -> None:
        """Initialize the take log manager.

        Args:
            db: Database manager used for every read and write.
            gate: Entitlement gate consulted before commits; no limit when None.
        """
        self.db = db
        self.gate = gate

    # --- Projects ---

    def create_project(self, name: str, settings: Optional[ProjectSettings] = None) -> int:
        """Create a project and register it with the entitlement gate.

        Raises:
            QuotaExceededError: If the gate allows no new project.
        """
        if self.gate is not None and not self.gate.may_create_project():
            raise QuotaExceededError("A token is needed to create another project")
        project_id = self.db.create_project(name, settings)
        if self.gate is not None:
            self.gate.register_project(project_id)
        return project_id

    def delete_project(self, project_id: int) -> None:
        if self.gate is not None:
            self.gate.release_project(project_id)
        self.db.delete_project(project_id)

    def settings_for(self, project_id: int) -> ProjectSettings:
        """Settings of a project.

        Raises:
            ContinuityError: If the project does not exist.
        """
        project = self.db.get_project(project_id)
        if project is None:
            raise ContinuityError(f"Project {project_id} not found")
        return project.settings

    # --- Entries ---

    def predict(self, project_id: int, rec_active: Optional[dict[str, bool]] = None) -> Prediction:
        """Proposed values for the next entry of a project."""
        return predict_next(self.db.list_entries(project_id), self.settings_for(project_id), rec_active)

    def new_form(self, project_id: int, rec_active: Optional[dict[str, bool]] = None) -> EntryForm:
        """Entry form primed with the prediction for the next entry."""
        settings = self.settings_for(project_id)
        prediction = predict_next(self.db.list_entries(project_id), settings, rec_active)
        return EntryForm.from_prediction(settings, prediction)

    def check(self, project_id: int, form: EntryForm) -> Detection:
        """Run validation and collision detection without writing anything."""
        settings = self.settings_for(project_id)
        entry = assemble_entry(form, settings, project_id)
        return detect_duplicates(entry, self.db.list_entries(project_id), settings, form.disabled_fields)

    def commit(
        self,
        project_id: int,
        form: EntryForm,
        resolver: Optional[ConflictResolver] = None,
    ) -> Optional[LogEntry]:
        """Log the take described by ``form``.

        The entitlement gate runs first, then validation and collision
        detection. An insert-before renumbering or a take renumbering is
        written in the same transaction as the new entry.

        Args:
            project_id: Project to log into.
            form: The filled-in entry form.
            resolver: Answers take collisions and insert-before questions.
                Without one a take collision raises and insert-before is
                declined.

        Returns:
            The stored entry, or None when the user cancelled.

        Raises:
            QuotaExceededError: If the project accepts no more entries.
            ValidationError: If a mandatory field is empty.
            TakeNumberConflict: If the take is taken and nothing resolved it.
            FileRangeConflict: On a blocking file-number collision.
            DatabaseError: If persisting fails; nothing is written.
        """
        if self.gate is not None and not self.gate.may_add_entry(project_id):
            raise QuotaExceededError(f"Project {project_id} cannot accept more entries")

        settings = self.settings_for(project_id)
        entry = assemble_entry(form, settings, project_id)
        entries = self.db.list_entries(project_id)
        disabled = form.disabled_fields
        take_shift: Optional[TakeShift] = None
        updates: tuple[EntryUpdate, ...] = ()

        detection = detect_duplicates(entry, entries, settings, disabled)
        if isinstance(detection, TakeCollision):
            if resolver is None:
                raise TakeNumberConflict(detection)
            resolution = resolver.resolve_take_conflict(detection)
            if resolution is TakeResolution.CANCEL:
                return None
            if resolution is TakeResolution.USE_SUGGESTED:
                entry = replace(entry, take=str(detection.suggested_take))
            else:
                eligible = detect_file_conflicts(entry, entries, settings, disabled)
                if (isinstance(eligible, InsertEligible)
                        and eligible.target.same_scene_shot(entry.scene, entry.shot)):
                    # the insert-before cascade renumbers the takes itself
                    entry = replace(entry, take=eligible.target.take)
                else:
                    take_shift = TakeShift(entry.scene, entry.shot, entry.take_number, 1)
                    entries = apply_updates(entries, self._take_shift_updates(entries, take_shift))
            detection = detect_duplicates(entry, entries, settings, disabled)
            if isinstance(detection, TakeCollision):
                raise TakeNumberConflict(detection)

        if isinstance(detection, FileCollision):
            raise FileRangeConflict(detection)

        if isinstance(detection, InsertEligible):
            if resolver is None or not resolver.confirm_insert_before(detection):
                logger.info("Insert before %s declined", detection.target.location)
                return None
            updates = plan_insert_before(entry, detection.target, entries, settings).updates

        saved = self.db.create_entry(project_id, entry, updates, take_shift)
        if self.gate is not None:
            self.gate.record_entry(project_id)
        logger.info("Logged %s (%d entries renumbered)", saved.location, len(updates))
        return saved

    @staticmethod
    def _take_shift_updates(entries: list[LogEntry], shift: TakeShift) -> list[EntryUpdate]:
        return [
            EntryUpdate(entry.id, take=str(entry.take_number + shift.increment))
            for entry in entries
            if entry.same_scene_shot(shift.scene, shift.shot)
            and entry.take_number is not None
            and entry.take_number >= shift.from_take
        ]

    def delete_entry(self, entry_id: int) -> bool:
        """Delete an entry, closing the take gap in its scene/shot."""
        return self.db.delete_entry(entry_id)
