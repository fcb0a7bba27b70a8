"""
Take-number and file-number collision detection.
Run from project root: python -m pytest tests/ -v
"""
import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from continuity.duplicates import (
    classify_overlap,
    detect_duplicates,
    find_take_collision,
)
from continuity.models import (
    Classification,
    ConflictType,
    FileCollision,
    InsertEligible,
    LogEntry,
    ProjectSettings,
    Slot,
    TakeCollision,
)


def make_entry(entry_id, take='1', scene='1', shot='1', classification=Classification.NORMAL,
               rec_active=None, **slots):
    return LogEntry(
        id=entry_id, scene=scene, shot=shot, take=take,
        classification=classification, slots=slots, rec_active=rec_active or {},
    )


SINGLE = ProjectSettings()
MULTI = ProjectSettings(camera_count=2)


class TestClassifyOverlap(unittest.TestCase):

    def test_no_overlap(self):
        self.assertIsNone(classify_overlap(Slot.single(4), Slot.ranged(1, 3)))
        self.assertIsNone(classify_overlap(Slot.blank(), Slot.ranged(1, 3)))
        self.assertIsNone(classify_overlap(Slot.single(1), Slot.blank()))

    def test_types(self):
        existing = Slot.ranged(1, 5)
        self.assertIs(classify_overlap(Slot.ranged(1, 5), existing), ConflictType.EXACT)
        self.assertIs(classify_overlap(Slot.single(1), existing), ConflictType.LOWER)
        self.assertIs(classify_overlap(Slot.single(3), existing), ConflictType.WITHIN)
        self.assertIs(classify_overlap(Slot.single(5), existing), ConflictType.UPPER)
        self.assertIs(classify_overlap(Slot.ranged(0, 2), existing), ConflictType.WITHIN)
        self.assertIs(classify_overlap(Slot.single(7), Slot.single(7)), ConflictType.EXACT)

    def test_only_lower_is_non_blocking(self):
        blocking = {conflict_type for conflict_type in ConflictType if conflict_type.blocking}
        self.assertEqual(set(ConflictType) - blocking, {ConflictType.LOWER})


class TestSingleCameraDetection(unittest.TestCase):

    def test_exact_match_blocks(self):
        existing = make_entry(1, sound=Slot.single(1), camera1=Slot.single(1))
        candidate = make_entry(0, take='2', sound=Slot.single(1), camera1=Slot.single(1))

        result = detect_duplicates(candidate, [existing], SINGLE)

        self.assertIsInstance(result, FileCollision)
        self.assertIs(result.conflict_type, ConflictType.EXACT)
        self.assertEqual(result.location, 'Scene 1, Shot 1, Take 1')

    def test_lower_bound_allows_insert_before(self):
        existing = make_entry(1, camera1=Slot.ranged(1, 3))
        candidate = make_entry(0, camera1=Slot.single(1))

        result = detect_duplicates(candidate, [existing], SINGLE)

        self.assertIsInstance(result, InsertEligible)
        self.assertEqual(result.target.id, 1)
        self.assertEqual(result.matched_fields, ('camera1',))

    def test_within_and_upper_block(self):
        existing = make_entry(1, sound=Slot.ranged(10, 14))
        for value, expected in ((12, ConflictType.WITHIN), (14, ConflictType.UPPER)):
            with self.subTest(value=value):
                candidate = make_entry(0, take='2', sound=Slot.single(value))
                result = detect_duplicates(candidate, [existing], SINGLE)
                self.assertIs(result.conflict_type, expected)

    def test_misaligned_channel_blocks(self):
        existing = make_entry(1, sound=Slot.ranged(1, 2), camera1=Slot.single(4))
        candidate = make_entry(0, sound=Slot.single(1), camera1=Slot.single(9))

        result = detect_duplicates(candidate, [existing], SINGLE)

        self.assertIsInstance(result, FileCollision)
        self.assertIs(result.conflict_type, ConflictType.MISALIGNED)
        self.assertEqual(result.field_id, 'camera1')

    def test_renumbered_chain_may_not_land_on_another_shot(self):
        target = make_entry(1, sound=Slot.ranged(1, 2))
        other_shot = make_entry(2, shot='2', sound=Slot.single(3))
        candidate = make_entry(0, sound=Slot.single(1))

        result = detect_duplicates(candidate, [target, other_shot], SINGLE)

        self.assertIsInstance(result, FileCollision)
        self.assertIs(result.conflict_type, ConflictType.SHIFT_OVERLAP)
        self.assertEqual(result.field_id, 'sound')
        self.assertEqual(result.existing.id, 2)
        self.assertEqual(result.other.id, 1)
        self.assertTrue(result.conflict_type.blocking)

    def test_renumbered_chain_clear_of_other_shots(self):
        target = make_entry(1, sound=Slot.ranged(1, 2))
        other_shot = make_entry(2, shot='2', sound=Slot.single(4))
        candidate = make_entry(0, sound=Slot.single(1))

        result = detect_duplicates(candidate, [target, other_shot], SINGLE)

        self.assertIsInstance(result, InsertEligible)

    def test_blank_slots_never_collide(self):
        existing = make_entry(1, sound=Slot.single(1))
        candidate = make_entry(0, take='2', camera1=Slot.single(1))
        self.assertIsNone(detect_duplicates(candidate, [existing], SINGLE))

    def test_disabled_field_is_ignored(self):
        existing = make_entry(1, sound=Slot.single(1))
        candidate = make_entry(0, take='2', sound=Slot.single(1))
        self.assertIsNone(detect_duplicates(candidate, [existing], SINGLE, disabled={'sound'}))

    def test_edited_entry_skips_itself(self):
        existing = make_entry(1, sound=Slot.single(1))
        edited = make_entry(1, sound=Slot.single(1))
        self.assertIsNone(detect_duplicates(edited, [existing], SINGLE))


class TestTakeCollision(unittest.TestCase):

    def test_suggests_highest_plus_one(self):
        entries = [
            make_entry(1, take='1', sound=Slot.single(1)),
            make_entry(2, take='2', sound=Slot.single(2)),
            make_entry(3, take='7', shot='2', sound=Slot.single(3)),
        ]
        candidate = make_entry(0, take='1', sound=Slot.single(4))

        result = detect_duplicates(candidate, entries, SINGLE)

        self.assertIsInstance(result, TakeCollision)
        self.assertEqual(result.existing.id, 1)
        self.assertEqual(result.suggested_take, 3)

    def test_waste_entry_does_not_hold_take(self):
        existing = make_entry(1, classification=Classification.WASTE)
        candidate = make_entry(0, sound=Slot.single(1))
        self.assertIsNone(find_take_collision(candidate, [existing]))

    def test_sound_only_candidate_has_no_take(self):
        existing = make_entry(1)
        candidate = LogEntry(classification=Classification.AMBIENCE, slots={'sound': Slot.single(9)})
        self.assertIsNone(find_take_collision(candidate, [existing]))

    def test_file_conflict_wins_over_take_collision(self):
        existing = make_entry(1, sound=Slot.single(1))
        candidate = make_entry(0, sound=Slot.single(1))
        result = detect_duplicates(candidate, [existing], SINGLE)
        self.assertIsInstance(result, FileCollision)

    def test_insert_before_checks_shifted_takes(self):
        entries = [
            make_entry(1, take='1', sound=Slot.ranged(1, 2)),
            make_entry(2, take='2', sound=Slot.single(3)),
        ]
        # inserted as take 2 before take 1: the target becomes take 2
        candidate = make_entry(0, take='2', sound=Slot.single(1))

        result = detect_duplicates(candidate, entries, SINGLE)

        self.assertIsInstance(result, TakeCollision)
        self.assertEqual(result.existing.id, 1)
        self.assertEqual(result.suggested_take, 4)

    def test_insert_before_frees_the_take(self):
        entries = [make_entry(1, take='1', sound=Slot.ranged(1, 2))]
        candidate = make_entry(0, take='1', sound=Slot.single(1))
        self.assertIsInstance(detect_duplicates(candidate, entries, SINGLE), InsertEligible)


class TestMultiCameraDetection(unittest.TestCase):

    def test_blank_target_channel_allows_insert_before(self):
        target = make_entry(1, sound=Slot.ranged(1, 2), camera1=Slot.ranged(1, 3))
        candidate = make_entry(
            0, sound=Slot.single(1), camera1=Slot.single(1), camera2=Slot.single(5)
        )

        result = detect_duplicates(candidate, [target], MULTI)

        self.assertIsInstance(result, InsertEligible)
        self.assertEqual(result.matched_fields, ('sound', 'camera1'))
        self.assertEqual(result.blank_fields, ('camera2',))

    def test_matches_on_different_entries_block(self):
        entry_x = make_entry(1, take='1', camera1=Slot.ranged(1, 3))
        entry_y = make_entry(2, take='2', sound=Slot.ranged(1, 2))
        candidate = make_entry(0, take='3', sound=Slot.single(1), camera1=Slot.single(1))

        result = detect_duplicates(candidate, [entry_x, entry_y], MULTI)

        self.assertIsInstance(result, FileCollision)
        self.assertIs(result.conflict_type, ConflictType.CROSS_ENTRY)
        self.assertEqual({result.existing.id, result.other.id}, {1, 2})

    def test_inactive_channel_is_ignored(self):
        existing = make_entry(1, camera2=Slot.single(5))
        candidate = make_entry(0, take='2', camera2=Slot.single(5), rec_active={'camera2': False})
        self.assertIsNone(detect_duplicates(candidate, [existing], MULTI))

    def test_single_camera_ignores_rec_flags(self):
        existing = make_entry(1, camera1=Slot.single(5))
        candidate = make_entry(0, take='2', camera1=Slot.single(5), rec_active={'camera1': False})
        result = detect_duplicates(candidate, [existing], SINGLE)
        self.assertIs(result.conflict_type, ConflictType.EXACT)


if __name__ == '__main__':
    unittest.main()
