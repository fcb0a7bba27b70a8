"""Database management for the take continuity logger."""

import json
import logging
import sqlite3
from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from config import DB_PATH
from .assembly import stored_fields
from .models import (
    Classification,
    DatabaseError,
    EntitlementState,
    EntryUpdate,
    LogEntry,
    ProjectRecord,
    ProjectSettings,
    ShotDetail,
    TakeShift,
    WasteOptions,
)
from .settings import settings_from_dict, settings_to_dict
from .slots import slot_from_stored, slot_to_stored

logger = logging.getLogger(__name__)

_ENTRY_COLUMNS = "id, project_id, created_at, scene, shot, take, classification, files, details"


class DatabaseManager:
    """Manages the SQLite database of projects, log entries and entitlements."""

    def __init__(self, db_path: Path = DB_PATH) -> None:
        """Initialize database manager.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._ensure_db_exists()

    def _ensure_db_exists(self) -> None:
        """Create database and tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connect() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS projects (
                    id INTEGER PRIMARY KEY,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    name TEXT NOT NULL,
                    settings TEXT NOT NULL DEFAULT '{}'
                );

                CREATE TABLE IF NOT EXISTS log_entries (
                    id INTEGER PRIMARY KEY,
                    project_id INTEGER REFERENCES projects(id) ON DELETE CASCADE,
                    created_at TIMESTAMP NOT NULL,
                    scene TEXT,
                    shot TEXT,
                    take TEXT,
                    classification TEXT DEFAULT 'normal',
                    files TEXT NOT NULL DEFAULT '{}',
                    details TEXT NOT NULL DEFAULT '{}'
                );

                CREATE INDEX IF NOT EXISTS idx_log_entries_project
                    ON log_entries(project_id);

                CREATE TABLE IF NOT EXISTS entitlements (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    tokens INTEGER DEFAULT 0,
                    trial_logs_used INTEGER DEFAULT 0,
                    trial_completed INTEGER DEFAULT 0,
                    trial_project_id INTEGER
                );

                CREATE TABLE IF NOT EXISTS unlocked_projects (
                    project_id INTEGER PRIMARY KEY REFERENCES projects(id) ON DELETE CASCADE
                );
            """)

            # Migration: add updated_at column if it doesn't exist
            try:
                conn.execute("SELECT updated_at FROM log_entries LIMIT 1")
            except sqlite3.OperationalError:
                conn.execute("ALTER TABLE log_entries ADD COLUMN updated_at TIMESTAMP")

    def _connect(self) -> sqlite3.Connection:
        """Create a database connection with foreign keys enabled."""
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    # --- Projects ---

    def create_project(self, name: str, settings: Optional[ProjectSettings] = None) -> int:
        """Create a new project.

        Args:
            name: Project name.
            settings: Project settings, defaults when omitted.

        Returns:
            The ID of the created project.

        Raises:
            DatabaseError: If project creation fails.
        """
        settings = settings or ProjectSettings()
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "INSERT INTO projects (name, settings) VALUES (?, ?)",
                    (name, json.dumps(settings_to_dict(settings)))
                )
                return cursor.lastrowid
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to create project: {e}") from e

    def get_project(self, project_id: int) -> Optional[ProjectRecord]:
        """Get a project by ID.

        Args:
            project_id: The project ID.

        Returns:
            The project record, or None if it does not exist.
        """
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT p.id, p.created_at, p.name, p.settings, COUNT(e.id)
                FROM projects p
                LEFT JOIN log_entries e ON e.project_id = p.id
                WHERE p.id = ?
                GROUP BY p.id
                """,
                (project_id,)
            ).fetchone()

        return self._row_to_project(row) if row else None

    def get_projects(self) -> list[ProjectRecord]:
        """List all projects with their entry counts.

        Returns:
            Projects ordered by creation, oldest first.
        """
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT p.id, p.created_at, p.name, p.settings, COUNT(e.id)
                FROM projects p
                LEFT JOIN log_entries e ON e.project_id = p.id
                GROUP BY p.id
                ORDER BY p.id
                """
            ).fetchall()

        return [self._row_to_project(row) for row in rows]

    @staticmethod
    def _row_to_project(row: tuple) -> ProjectRecord:
        return ProjectRecord(
            id=row[0],
            created_at=datetime.fromisoformat(row[1]),
            name=row[2],
            settings=settings_from_dict(json.loads(row[3] or '{}')),
            entry_count=row[4],
        )

    def update_project_settings(self, project_id: int, settings: ProjectSettings) -> None:
        """Replace the settings of a project.

        Raises:
            DatabaseError: If the update fails.
        """
        try:
            with self._connect() as conn:
                conn.execute(
                    "UPDATE projects SET settings = ? WHERE id = ?",
                    (json.dumps(settings_to_dict(settings)), project_id)
                )
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to update project settings: {e}") from e

    def delete_project(self, project_id: int) -> None:
        """Delete a project and all its entries.

        Raises:
            DatabaseError: If deletion fails.
        """
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to delete project: {e}") from e

    # --- Entries ---

    def list_entries(self, project_id: int) -> list[LogEntry]:
        """Get all entries of a project.

        Args:
            project_id: The project ID.

        Returns:
            Entries ordered by ID, oldest first.

        Raises:
            DatabaseError: If the query fails.
        """
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    f"SELECT {_ENTRY_COLUMNS} FROM log_entries WHERE project_id = ? ORDER BY id",
                    (project_id,)
                ).fetchall()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to list entries: {e}") from e

        return [self._row_to_entry(row) for row in rows]

    def get_entry(self, entry_id: int) -> Optional[LogEntry]:
        """Get a single entry by ID, or None if it does not exist."""
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_ENTRY_COLUMNS} FROM log_entries WHERE id = ?",
                (entry_id,)
            ).fetchone()

        return self._row_to_entry(row) if row else None

    def create_entry(
        self,
        project_id: int,
        entry: LogEntry,
        updates: Sequence[EntryUpdate] = (),
        take_shift: Optional[TakeShift] = None,
    ) -> LogEntry:
        """Persist a new entry, renumbering other entries in the same transaction.

        Args:
            project_id: Project the entry belongs to.
            entry: The assembled entry; its ``id`` is ignored.
            updates: Insert-before updates of existing entries.
            take_shift: Take renumbering to apply before the insert.

        Returns:
            The stored entry with its ID and creation time.

        Raises:
            DatabaseError: If any part fails; nothing is written in that case.
        """
        created_at = datetime.now()
        try:
            with self._connect() as conn:
                if take_shift is not None:
                    self._shift_takes(
                        conn, project_id, take_shift.scene, take_shift.shot,
                        take_shift.from_take, take_shift.increment,
                    )
                self._apply_updates(conn, updates)
                cursor = conn.execute(
                    """
                    INSERT INTO log_entries
                        (project_id, created_at, scene, shot, take, classification, files, details)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        project_id,
                        created_at.isoformat(sep=' '),
                        entry.scene,
                        entry.shot,
                        entry.take,
                        entry.classification.value,
                        json.dumps(stored_fields(entry)),
                        json.dumps(self._details_to_dict(entry)),
                    )
                )
                entry_id = cursor.lastrowid
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to create entry: {e}") from e

        logger.info("Created entry %d in project %d", entry_id, project_id)
        return replace(entry, id=entry_id, project_id=project_id, created_at=created_at)

    def update_entry(self, update: EntryUpdate) -> None:
        """Apply one partial update to an existing entry.

        Raises:
            DatabaseError: If the entry does not exist or the update fails.
        """
        self.update_entries([update])

    def update_entries(self, updates: Iterable[EntryUpdate]) -> None:
        """Apply a batch of partial updates in a single transaction.

        Args:
            updates: Take and slot changes, one per entry.

        Raises:
            DatabaseError: If any entry is missing or an update fails; the
                whole batch is rolled back.
        """
        try:
            with self._connect() as conn:
                self._apply_updates(conn, list(updates))
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to update entries: {e}") from e

    def _apply_updates(self, conn: sqlite3.Connection, updates: Sequence[EntryUpdate]) -> None:
        now = datetime.now().isoformat(sep=' ')
        for update in updates:
            row = conn.execute(
                "SELECT files, take FROM log_entries WHERE id = ?", (update.entry_id,)
            ).fetchone()
            if row is None:
                raise DatabaseError(f"Entry {update.entry_id} not found")

            files = json.loads(row[0] or '{}')
            for field_id, slot in update.slots.items():
                for key in (field_id, f'{field_id}_from', f'{field_id}_to'):
                    files.pop(key, None)
                files.update(slot_to_stored(field_id, slot))

            take = update.take if update.take is not None else row[1]
            conn.execute(
                "UPDATE log_entries SET files = ?, take = ?, updated_at = ? WHERE id = ?",
                (json.dumps(files), take, now, update.entry_id)
            )

    def shift_take_numbers(
        self,
        project_id: int,
        scene: str,
        shot: str,
        from_take: int,
        increment: int,
        exclude_id: Optional[int] = None,
        max_take: Optional[int] = None,
    ) -> int:
        """Add ``increment`` to every take of a scene/shot from ``from_take`` upwards.

        Args:
            project_id: The project ID.
            scene: Scene of the takes to renumber.
            shot: Shot of the takes to renumber.
            from_take: Lowest take number affected (inclusive).
            increment: Amount added to each take (negative to close a gap).
            exclude_id: Entry left untouched.
            max_take: Highest take number affected (inclusive).

        Returns:
            Number of entries renumbered.

        Raises:
            DatabaseError: If the update fails.
        """
        try:
            with self._connect() as conn:
                return self._shift_takes(
                    conn, project_id, scene, shot, from_take, increment, exclude_id, max_take
                )
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to shift take numbers: {e}") from e

    def _shift_takes(
        self,
        conn: sqlite3.Connection,
        project_id: int,
        scene: str,
        shot: str,
        from_take: int,
        increment: int,
        exclude_id: Optional[int] = None,
        max_take: Optional[int] = None,
    ) -> int:
        rows = conn.execute(
            f"SELECT {_ENTRY_COLUMNS} FROM log_entries WHERE project_id = ?",
            (project_id,)
        ).fetchall()

        changes = []
        for row in rows:
            entry = self._row_to_entry(row)
            take = entry.take_number
            if entry.id == exclude_id or take is None:
                continue
            if not entry.same_scene_shot(scene, shot) or take < from_take:
                continue
            if max_take is not None and take > max_take:
                continue
            changes.append((str(take + increment), entry.id))

        conn.executemany("UPDATE log_entries SET take = ? WHERE id = ?", changes)
        return len(changes)

    def delete_entry(self, entry_id: int) -> bool:
        """Delete an entry and close the take gap it leaves in its scene/shot.

        Args:
            entry_id: The entry to delete.

        Returns:
            True if the entry existed.

        Raises:
            DatabaseError: If deletion fails.
        """
        entry = self.get_entry(entry_id)
        if entry is None:
            return False

        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM log_entries WHERE id = ?", (entry_id,))
                take = entry.take_number
                if entry.scene and entry.shot and take is not None:
                    self._shift_takes(conn, entry.project_id, entry.scene, entry.shot, take + 1, -1)
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to delete entry: {e}") from e
        return True

    # --- Row mapping ---

    @staticmethod
    def _details_to_dict(entry: LogEntry) -> dict[str, Any]:
        waste = entry.waste_options
        return {
            'rec_active': entry.rec_active,
            'shot_details': sorted(detail.value for detail in entry.shot_details),
            'episode': entry.episode,
            'card_numbers': entry.card_numbers,
            'description': entry.description,
            'notes': entry.notes,
            'custom': entry.custom,
            'is_good_take': entry.is_good_take,
            'waste_options': {'camera': waste.camera, 'sound': waste.sound} if waste else None,
            'insert_sound_speed': entry.insert_sound_speed,
        }

    @staticmethod
    def _row_to_entry(row: tuple) -> LogEntry:
        files = json.loads(row[7] or '{}')
        details = json.loads(row[8] or '{}')
        field_ids = {key.rsplit('_', 1)[0] if key.endswith(('_from', '_to')) else key for key in files}
        slots = {}
        for field_id in field_ids:
            slot = slot_from_stored(files, field_id)
            if not slot.is_blank:
                slots[field_id] = slot

        waste = details.get('waste_options')
        return LogEntry(
            id=row[0],
            project_id=row[1],
            created_at=datetime.fromisoformat(row[2]),
            scene=row[3],
            shot=row[4],
            take=row[5],
            classification=Classification(row[6] or 'normal'),
            slots=slots,
            rec_active=details.get('rec_active') or {},
            shot_details=frozenset(ShotDetail(v) for v in details.get('shot_details') or ()),
            episode=details.get('episode'),
            card_numbers=details.get('card_numbers') or {},
            description=details.get('description'),
            notes=details.get('notes'),
            custom=details.get('custom') or {},
            is_good_take=bool(details.get('is_good_take')),
            waste_options=WasteOptions(**waste) if waste else None,
            insert_sound_speed=details.get('insert_sound_speed'),
        )

    # --- Entitlements ---

    def get_entitlement_state(self) -> EntitlementState:
        """Load trial and token bookkeeping, defaults when nothing is stored."""
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT tokens, trial_logs_used, trial_completed, trial_project_id "
                    "FROM entitlements WHERE id = 1"
                ).fetchone()
                unlocked = {r[0] for r in conn.execute("SELECT project_id FROM unlocked_projects")}
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to load entitlements: {e}") from e

        if row is None:
            return EntitlementState(unlocked_projects=unlocked)
        return EntitlementState(
            tokens=row[0],
            trial_logs_used=row[1],
            trial_completed=bool(row[2]),
            trial_project_id=row[3],
            unlocked_projects=unlocked,
        )

    def save_entitlement_state(self, state: EntitlementState) -> None:
        """Persist trial and token bookkeeping.

        Raises:
            DatabaseError: If saving fails.
        """
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO entitlements (id, tokens, trial_logs_used, trial_completed, trial_project_id)
                    VALUES (1, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        tokens = excluded.tokens,
                        trial_logs_used = excluded.trial_logs_used,
                        trial_completed = excluded.trial_completed,
                        trial_project_id = excluded.trial_project_id
                    """,
                    (state.tokens, state.trial_logs_used, int(state.trial_completed),
                     state.trial_project_id)
                )
                conn.execute("DELETE FROM unlocked_projects")
                conn.executemany(
                    "INSERT INTO unlocked_projects (project_id) VALUES (?)",
                    [(project_id,) for project_id in sorted(state.unlocked_projects)]
                )
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to save entitlements: {e}") from e
