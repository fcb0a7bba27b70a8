"""Data models, enums, and exceptions for the take continuity logger."""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


# --- Enums ---

class Classification(Enum):
    """Mutually exclusive tag of a logged take."""
    NORMAL = 'normal'
    WASTE = 'waste'
    INSERT = 'insert'
    AMBIENCE = 'ambience'
    SFX = 'sfx'


class SlotKind(Enum):
    """Shape of a file-number slot."""
    BLANK = 'blank'
    SINGLE = 'single'
    RANGE = 'range'


class ConflictType(Enum):
    """How a candidate file number collides with an existing one."""
    EXACT = 'exact'
    LOWER = 'lower'            # same lower bound, insert-before is possible
    WITHIN = 'within'
    UPPER = 'upper'            # lands on an existing upper bound
    MISALIGNED = 'misaligned'  # channel has a value the insert target cannot absorb
    CROSS_ENTRY = 'cross_entry'
    SHIFT_OVERLAP = 'shift_overlap'  # renumbered slot lands on a take outside the chain

    @property
    def blocking(self) -> bool:
        return self is not ConflictType.LOWER


class ShotDetail(Enum):
    """Shot detail flags, independent of the classification."""
    MOS = 'mos'
    NO_SLATE = 'no_slate'
    PICKUP = 'pickup'
    WILD = 'wild'


class TakeResolution(Enum):
    """Answer to a take-number collision."""
    CANCEL = 'cancel'
    USE_SUGGESTED = 'use_suggested'  # log as highest take + 1
    INSERT_HERE = 'insert_here'      # keep the number, push later takes up by one


# Classifications that carry no scene/shot/take or camera values
SOUND_ONLY_CLASSIFICATIONS = frozenset({Classification.AMBIENCE, Classification.SFX})


# --- Data Classes ---

@dataclass(frozen=True)
class Slot:
    """A sound or camera file-number slot: blank, a single number, or a range.

    Ranges are always normalized so that ``lower <= upper``.
    """
    kind: SlotKind = SlotKind.BLANK
    lower: Optional[int] = None
    upper: Optional[int] = None

    @classmethod
    def blank(cls) -> 'Slot':
        return cls()

    @classmethod
    def single(cls, value: int) -> 'Slot':
        return cls(SlotKind.SINGLE, value, value)

    @classmethod
    def ranged(cls, start: int, end: int) -> 'Slot':
        lower, upper = sorted((start, end))
        return cls(SlotKind.RANGE, lower, upper)

    @property
    def is_blank(self) -> bool:
        return self.kind is SlotKind.BLANK

    @property
    def is_range(self) -> bool:
        return self.kind is SlotKind.RANGE

    def overlaps(self, other: 'Slot') -> bool:
        """Whether two non-blank slots share at least one file number."""
        if self.is_blank or other.is_blank:
            return False
        return self.lower <= other.upper and other.lower <= self.upper


@dataclass(frozen=True)
class WasteOptions:
    """Which channels of a wasted take still carry a file number."""
    camera: bool = False
    sound: bool = False


@dataclass
class ProjectSettings:
    """Per-project logging configuration."""
    camera_count: int = 1
    enabled_fields: frozenset[str] = frozenset(
        {'sound', 'camera', 'episode', 'card_number', 'description', 'notes'}
    )
    custom_fields: tuple[str, ...] = ()
    director: Optional[str] = None
    cinematographer: Optional[str] = None
    production: Optional[str] = None

    @property
    def is_multi_camera(self) -> bool:
        return self.camera_count > 1

    def is_enabled(self, name: str) -> bool:
        return name in self.enabled_fields


@dataclass
class ProjectRecord:
    """Database record of a project."""
    id: int
    created_at: datetime
    name: str
    settings: ProjectSettings = field(default_factory=ProjectSettings)
    entry_count: int = 0


@dataclass
class LogEntry:
    """A logged take.

    ``id`` is 0 until the entry has been persisted. Slots are keyed by field
    id (``sound``, ``camera1`` .. ``cameraN``); a missing key means blank.
    """
    id: int = 0
    project_id: int = 0
    created_at: Optional[datetime] = None
    scene: Optional[str] = None
    shot: Optional[str] = None
    take: Optional[str] = None
    classification: Classification = Classification.NORMAL
    slots: dict[str, Slot] = field(default_factory=dict)
    rec_active: dict[str, bool] = field(default_factory=dict)  # multi-camera only
    shot_details: frozenset[ShotDetail] = frozenset()
    episode: Optional[str] = None
    card_numbers: dict[str, str] = field(default_factory=dict)  # camera field -> card
    description: Optional[str] = None
    notes: Optional[str] = None
    custom: dict[str, str] = field(default_factory=dict)
    is_good_take: bool = False
    waste_options: Optional[WasteOptions] = None
    insert_sound_speed: Optional[bool] = None

    def slot(self, field_id: str) -> Slot:
        return self.slots.get(field_id, Slot())

    def is_rec_active(self, field_id: str) -> bool:
        return self.rec_active.get(field_id, True)

    @property
    def take_number(self) -> Optional[int]:
        """Take as an integer, or None when it holds no leading digits."""
        if self.take is None:
            return None
        match = re.match(r'\s*(\d+)', self.take)
        return int(match.group(1)) if match else None

    @property
    def is_sound_only(self) -> bool:
        return self.classification in SOUND_ONLY_CLASSIFICATIONS

    def same_scene_shot(self, scene: Optional[str], shot: Optional[str]) -> bool:
        if not self.scene or not self.shot or not scene or not shot:
            return False
        return self.scene.strip() == scene.strip() and self.shot.strip() == shot.strip()

    @property
    def location(self) -> str:
        """Human readable position of the entry in the log sheet."""
        if self.classification is Classification.AMBIENCE:
            return 'Ambience'
        if self.classification is Classification.SFX:
            return 'SFX'
        return f"Scene {self.scene or '?'}, Shot {self.shot or '?'}, Take {self.take or '?'}"


@dataclass(frozen=True)
class EntryUpdate:
    """Partial update of an existing entry produced by renumbering."""
    entry_id: int
    take: Optional[str] = None
    slots: dict[str, Slot] = field(default_factory=dict)


@dataclass(frozen=True)
class TakeShift:
    """Bump the takes of one scene/shot from ``from_take`` upwards."""
    scene: str
    shot: str
    from_take: int
    increment: int = 1


@dataclass(frozen=True)
class ChannelConflict:
    """A file-number collision on one channel against one existing entry."""
    field_id: str
    conflict_type: ConflictType
    existing: LogEntry


@dataclass
class TakeCollision:
    """The candidate's scene/shot/take is already logged."""
    existing: LogEntry
    highest_take: int

    @property
    def suggested_take(self) -> int:
        return self.highest_take + 1


@dataclass
class FileCollision:
    """A blocking file-number collision."""
    conflict_type: ConflictType
    field_id: str
    existing: LogEntry
    other: Optional[LogEntry] = None  # second entry of a cross-entry conflict

    @property
    def location(self) -> str:
        if self.other is not None:
            return f"{self.existing.location} and {self.other.location}"
        return self.existing.location


@dataclass
class InsertEligible:
    """The candidate may be inserted before ``target`` once confirmed."""
    target: LogEntry
    matched_fields: tuple[str, ...] = ()
    blank_fields: tuple[str, ...] = ()   # fields blank on the target


@dataclass
class EntitlementState:
    """Trial and token bookkeeping."""
    tokens: int = 0
    trial_logs_used: int = 0
    trial_completed: bool = False
    trial_project_id: Optional[int] = None
    unlocked_projects: set[int] = field(default_factory=set)


# --- Exceptions ---

class ContinuityError(Exception):
    """Base exception for take logging operations."""


class ValidationError(ContinuityError):
    """One or more mandatory fields are missing."""

    def __init__(self, fields: list[str], labels: Optional[list[str]] = None) -> None:
        self.fields = list(fields)
        names = ', '.join(labels or fields)
        super().__init__(f"Missing mandatory fields: {names}")


class ClassificationError(ContinuityError):
    """Invalid classification or shot detail change."""


class TakeNumberConflict(ContinuityError):
    """Scene/shot/take already logged; a higher take is suggested."""

    def __init__(self, collision: TakeCollision) -> None:
        self.collision = collision
        self.suggested_take = collision.suggested_take
        super().__init__(
            f"Take already exists at {collision.existing.location}. "
            f"Suggested take: {collision.suggested_take}"
        )


class FileRangeConflict(ContinuityError):
    """Blocking file-number collision."""

    _MESSAGES = {
        ConflictType.EXACT: 'File number already logged',
        ConflictType.WITHIN: 'File number falls inside an existing range',
        ConflictType.UPPER: 'File number starts on the upper bound of an existing range',
        ConflictType.MISALIGNED: 'File numbers do not line up with the take to insert before',
        ConflictType.CROSS_ENTRY: 'File numbers match two different takes',
        ConflictType.SHIFT_OVERLAP: 'Renumbering the following takes would overlap another take',
    }

    def __init__(self, collision: FileCollision) -> None:
        self.collision = collision
        self.conflict_type = collision.conflict_type
        self.location = collision.location
        reason = self._MESSAGES.get(collision.conflict_type, 'File number conflict')
        super().__init__(f"{reason} ({collision.field_id}): {self.location}")


class QuotaExceededError(ContinuityError):
    """The project may not accept another entry."""


class SettingsError(ContinuityError):
    """Error loading project settings."""


class DatabaseError(ContinuityError):
    """Error with database operations."""
