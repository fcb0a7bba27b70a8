"""
Slot parsing, formatting and stored representation.
Run from project root: python -m pytest tests/ -v
"""
import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from continuity.models import LogEntry, ProjectSettings, Slot, SlotKind
from continuity.slots import (
    camera_index,
    field_label,
    file_fields,
    format_padded,
    format_slot,
    is_blank,
    normalize_file_number,
    parse_slot,
    slot_from_stored,
    slot_to_stored,
)


class TestParseSlot(unittest.TestCase):

    def test_blank_values(self):
        for raw in (None, '', '   ', 'WASTE', 'waste', ('', ''), {'from': None, 'to': ''}):
            with self.subTest(raw=raw):
                self.assertTrue(parse_slot(raw).is_blank)

    def test_single_value(self):
        self.assertEqual(parse_slot('0042'), Slot.single(42))
        self.assertEqual(parse_slot(7), Slot.single(7))

    def test_non_numeric_counts_as_zero(self):
        self.assertEqual(parse_slot('abc'), Slot.single(0))

    def test_inline_range_is_normalized(self):
        slot = parse_slot('0005-0002')
        self.assertEqual(slot.kind, SlotKind.RANGE)
        self.assertEqual((slot.lower, slot.upper), (2, 5))
        self.assertEqual(parse_slot('0001–0003'), Slot.ranged(1, 3))

    def test_pairs(self):
        self.assertEqual(parse_slot(('0003', '0001')), Slot.ranged(1, 3))
        self.assertEqual(parse_slot({'from': '0004', 'to': '0006'}), Slot.ranged(4, 6))
        # half-filled pair falls back to a single value
        self.assertEqual(parse_slot(('0004', '')), Slot.single(4))

    def test_slot_passes_through(self):
        slot = Slot.ranged(1, 2)
        self.assertIs(parse_slot(slot), slot)


class TestFormatting(unittest.TestCase):

    def test_format_padded(self):
        self.assertEqual(format_padded(1), '0001')
        self.assertEqual(format_padded(123), '0123')
        self.assertEqual(format_padded(12345), '12345')

    def test_format_slot(self):
        self.assertEqual(format_slot(Slot.blank()), '')
        self.assertEqual(format_slot(Slot.single(9)), '0009')
        self.assertEqual(format_slot(Slot.ranged(1, 3)), '0001-0003')

    def test_normalize_file_number(self):
        self.assertEqual(normalize_file_number('12'), '0012')
        self.assertEqual(normalize_file_number('A-7b'), '0007')
        self.assertEqual(normalize_file_number(''), '')
        self.assertEqual(normalize_file_number('waste'), 'WASTE')


class TestStoredRepresentation(unittest.TestCase):

    def test_pair_wins_over_inline_value(self):
        data = {'sound': '0009', 'sound_from': '0001', 'sound_to': '0002'}
        self.assertEqual(slot_from_stored(data, 'sound'), Slot.ranged(1, 2))

    def test_inline_range_under_field_id(self):
        self.assertEqual(slot_from_stored({'camera2': '0004-0006'}, 'camera2'), Slot.ranged(4, 6))
        self.assertTrue(slot_from_stored({}, 'camera2').is_blank)

    def test_slot_to_stored(self):
        self.assertEqual(slot_to_stored('sound', Slot.single(3)), {'sound': '0003'})
        self.assertEqual(
            slot_to_stored('camera1', Slot.ranged(6, 4)),
            {'camera1_from': '0004', 'camera1_to': '0006'},
        )
        self.assertEqual(slot_to_stored('sound', Slot.blank()), {})


class TestFields(unittest.TestCase):

    def test_file_fields_follow_settings(self):
        self.assertEqual(file_fields(ProjectSettings()), ['sound', 'camera1'])
        self.assertEqual(
            file_fields(ProjectSettings(camera_count=3)),
            ['sound', 'camera1', 'camera2', 'camera3'],
        )
        no_sound = ProjectSettings(enabled_fields=frozenset({'camera'}))
        self.assertEqual(file_fields(no_sound), ['camera1'])

    def test_labels_and_indexes(self):
        self.assertEqual(field_label('camera1'), 'Camera File')
        self.assertEqual(field_label('camera2', camera_count=2), 'Camera 2 File')
        self.assertEqual(field_label('sound'), 'Sound File')
        self.assertEqual(camera_index('camera12'), 12)
        self.assertIsNone(camera_index('sound'))

    def test_is_blank(self):
        entry = LogEntry(slots={'sound': Slot.single(1)})
        self.assertFalse(is_blank(entry, 'sound'))
        self.assertTrue(is_blank(entry, 'camera1'))


if __name__ == '__main__':
    unittest.main()
