"""CSV export of a project's log sheet."""

import csv
from collections.abc import Sequence
from pathlib import Path

from .delta import file_count
from .models import LogEntry, ProjectSettings
from .slots import field_label, file_fields, format_slot, is_camera_field


def log_sheet_rows(entries: Sequence[LogEntry], settings: ProjectSettings) -> list[list[str]]:
    """Header plus one row per entry, ordered by scene, shot and take."""
    fields = file_fields(settings)
    header = ['Scene', 'Shot', 'Take', 'Classification']
    header += [field_label(f, settings.camera_count) for f in fields]
    header += ['Files', 'Episode', 'Description', 'Notes', 'Good']
    header += list(settings.custom_fields)

    def order(entry: LogEntry) -> tuple:
        return (entry.scene or '', entry.shot or '', entry.take_number or 0, entry.id)

    rows = [header]
    for entry in sorted(entries, key=order):
        row = [
            entry.scene or '',
            entry.shot or '',
            entry.take or '',
            entry.classification.value.upper(),
        ]
        for field_id in fields:
            slot = entry.slot(field_id)
            if slot.is_blank and is_camera_field(field_id) and not entry.is_rec_active(field_id):
                row.append('OFF')
            else:
                row.append(format_slot(slot))
        row.append(str(sum(file_count(entry.slot(f)) for f in fields)))
        row += [
            entry.episode or '',
            entry.description or '',
            entry.notes or '',
            'yes' if entry.is_good_take else '',
        ]
        row += [entry.custom.get(name, '') for name in settings.custom_fields]
        rows.append(row)
    return rows


def export_csv(entries: Sequence[LogEntry], settings: ProjectSettings, path: Path) -> int:
    """Write the log sheet to a CSV file.

    Args:
        entries: Entries of the project.
        settings: Project settings (decides the file columns).
        path: Output file.

    Returns:
        Number of entries written.
    """
    rows = log_sheet_rows(entries, settings)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', newline='', encoding='utf-8') as f:
        csv.writer(f).writerows(rows)
    return len(rows) - 1
