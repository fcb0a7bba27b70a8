"""Core modules for the take continuity logger."""

from .models import (
    Classification,
    SlotKind,
    ConflictType,
    ShotDetail,
    TakeResolution,
    Slot,
    WasteOptions,
    ProjectSettings,
    ProjectRecord,
    LogEntry,
    EntryUpdate,
    TakeShift,
    TakeCollision,
    FileCollision,
    InsertEligible,
    EntitlementState,
    ContinuityError,
    ValidationError,
    ClassificationError,
    TakeNumberConflict,
    FileRangeConflict,
    QuotaExceededError,
    SettingsError,
    DatabaseError,
)
from .slots import parse_slot, format_padded, format_slot, is_blank
from .delta import span, file_count
from .duplicates import detect_duplicates, detect_single_camera, detect_multi_camera
from .shift import ShiftCarry, ShiftPlan, plan_insert_before, shift_single_camera, shift_multi_camera
from .classification import EntryForm
from .autofill import Prediction, predict_next
from .assembly import assemble_entry
from .settings import load_project_settings, normalize_camera_count
from .database import DatabaseManager
from .entitlement import EntitlementGate
from .export import export_csv
from .manager import ConflictResolver, TakeLogManager

__all__ = [
    'Classification',
    'SlotKind',
    'ConflictType',
    'ShotDetail',
    'TakeResolution',
    'Slot',
    'WasteOptions',
    'ProjectSettings',
    'ProjectRecord',
    'LogEntry',
    'EntryUpdate',
    'TakeShift',
    'TakeCollision',
    'FileCollision',
    'InsertEligible',
    'EntitlementState',
    'ContinuityError',
    'ValidationError',
    'ClassificationError',
    'TakeNumberConflict',
    'FileRangeConflict',
    'QuotaExceededError',
    'SettingsError',
    'DatabaseError',
    'parse_slot',
    'format_padded',
    'format_slot',
    'is_blank',
    'span',
    'file_count',
    'detect_duplicates',
    'detect_single_camera',
    'detect_multi_camera',
    'ShiftCarry',
    'ShiftPlan',
    'plan_insert_before',
    'shift_single_camera',
    'shift_multi_camera',
    'EntryForm',
    'Prediction',
    'predict_next',
    'assemble_entry',
    'load_project_settings',
    'normalize_camera_count',
    'DatabaseManager',
    'EntitlementGate',
    'export_csv',
    'ConflictResolver',
    'TakeLogManager',
]
