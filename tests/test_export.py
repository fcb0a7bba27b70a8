"""
CSV export of the log sheet.
Run from project root: python -m pytest tests/ -v
"""
import csv
import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from continuity.export import export_csv, log_sheet_rows
from continuity.models import Classification, LogEntry, ProjectSettings, Slot


ENTRIES = [
    LogEntry(id=2, scene='1', shot='1', take='2',
             slots={'sound': Slot.ranged(2, 4), 'camera1': Slot.single(2)},
             is_good_take=True),
    LogEntry(id=1, scene='1', shot='1', take='1',
             slots={'sound': Slot.single(1), 'camera1': Slot.single(1)},
             classification=Classification.WASTE, notes='Boom in shot'),
]


class TestLogSheetRows(unittest.TestCase):

    def test_header_and_order(self):
        rows = log_sheet_rows(ENTRIES, ProjectSettings(custom_fields=('Lens',)))

        self.assertEqual(rows[0], [
            'Scene', 'Shot', 'Take', 'Classification', 'Sound File', 'Camera File',
            'Files', 'Episode', 'Description', 'Notes', 'Good', 'Lens',
        ])
        self.assertEqual(rows[1][:6], ['1', '1', '1', 'WASTE', '0001', '0001'])
        self.assertEqual(rows[1][9], 'Boom in shot')
        self.assertEqual(rows[2][4:7], ['0002-0004', '0002', '4'])
        self.assertEqual(rows[2][10], 'yes')

    def test_inactive_camera_shows_off(self):
        entry = LogEntry(
            id=1, scene='1', shot='1', take='1',
            slots={'camera1': Slot.single(5)},
            rec_active={'camera1': True, 'camera2': False},
        )
        rows = log_sheet_rows([entry], ProjectSettings(camera_count=2))
        self.assertEqual(rows[0][5:7], ['Camera 1 File', 'Camera 2 File'])
        self.assertEqual(rows[1][4:7], ['', '0005', 'OFF'])


class TestExportCsv(unittest.TestCase):

    def test_writes_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'out' / 'sheet.csv'

            count = export_csv(ENTRIES, ProjectSettings(), path)

            self.assertEqual(count, 2)
            with open(path, newline='', encoding='utf-8') as f:
                rows = list(csv.reader(f))
        self.assertEqual(len(rows), 3)
        self.assertEqual(rows[2][2], '2')


if __name__ == '__main__':
    unittest.main()
