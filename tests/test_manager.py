"""
Commit pipeline: detection, conflict resolution and renumbering.
Run from project root: python -m pytest tests/ -v
"""
import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from continuity.database import DatabaseManager
from continuity.entitlement import EntitlementGate
from continuity.manager import TakeLogManager
from continuity.models import (
    ConflictType,
    ContinuityError,
    FileRangeConflict,
    InsertEligible,
    ProjectSettings,
    QuotaExceededError,
    Slot,
    TakeNumberConflict,
    TakeResolution,
    ValidationError,
)


class ScriptedResolver:
    """Answers every question the same way and remembers what was asked."""

    def __init__(self, take_resolution=TakeResolution.CANCEL, confirm=True):
        self.take_resolution = take_resolution
        self.confirm = confirm
        self.asked = []

    def resolve_take_conflict(self, collision):
        self.asked.append(collision)
        return self.take_resolution

    def confirm_insert_before(self, eligible):
        self.asked.append(eligible)
        return self.confirm


class ManagerTestCase(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.db = DatabaseManager(Path(self.tmp.name) / 'takes.db')
        self.manager = TakeLogManager(self.db)
        self.project_id = self.manager.create_project('Short', ProjectSettings())

    def tearDown(self):
        self.tmp.cleanup()

    def log(self, resolver=None, **values):
        form = self.manager.new_form(self.project_id)
        for name, value in values.items():
            form.set_value(name, value)
        return self.manager.commit(self.project_id, form, resolver)


class TestCommit(ManagerTestCase):

    def test_first_take_uses_prediction(self):
        entry = self.log()

        self.assertGreater(entry.id, 0)
        self.assertEqual((entry.scene, entry.shot, entry.take), ('1', '1', '1'))
        self.assertEqual(entry.slots, {'sound': Slot.single(1), 'camera1': Slot.single(1)})

    def test_prediction_advances(self):
        self.log(camera1=('0001', '0004'))
        prediction = self.manager.predict(self.project_id)
        self.assertEqual(prediction.take, '2')
        self.assertEqual(prediction.files, {'sound': '0002', 'camera1': '0005'})

    def test_validation_error(self):
        with self.assertRaises(ValidationError):
            self.log(scene='')
        self.assertEqual(self.db.list_entries(self.project_id), [])

    def test_exact_file_match_blocks(self):
        self.log()
        with self.assertRaises(FileRangeConflict) as ctx:
            self.log(take='2', sound='0001', camera1='0001')
        self.assertIs(ctx.exception.conflict_type, ConflictType.EXACT)
        self.assertEqual(ctx.exception.location, 'Scene 1, Shot 1, Take 1')

    def test_check_writes_nothing(self):
        self.log(sound=('0001', '0002'), camera1=('0001', '0003'))
        form = self.manager.new_form(self.project_id)
        form.set_value('take', '1')
        form.set_value('sound', '0001')
        form.set_value('camera1', '0001')

        self.assertIsInstance(self.manager.check(self.project_id, form), InsertEligible)
        self.assertEqual(len(self.db.list_entries(self.project_id)), 1)

    def test_unknown_project(self):
        with self.assertRaises(ContinuityError):
            self.manager.settings_for(999)


class TestInsertBefore(ManagerTestCase):

    def setUp(self):
        super().setUp()
        self.existing = self.log(sound=('0001', '0002'), camera1=('0001', '0003'))

    def insert(self, resolver):
        return self.log(resolver, take='1', sound='0001', camera1='0001')

    def test_confirmed_insert_renumbers_target(self):
        saved = self.insert(ScriptedResolver(confirm=True))

        self.assertEqual(saved.take, '1')
        moved = self.db.get_entry(self.existing.id)
        self.assertEqual(moved.take, '2')
        self.assertEqual(moved.slot('sound'), Slot.ranged(2, 3))
        self.assertEqual(moved.slot('camera1'), Slot.ranged(2, 4))

    def test_declined_insert_writes_nothing(self):
        resolver = ScriptedResolver(confirm=False)
        self.assertIsNone(self.insert(resolver))
        self.assertIsInstance(resolver.asked[0], InsertEligible)
        self.assertEqual(len(self.db.list_entries(self.project_id)), 1)
        self.assertEqual(self.db.get_entry(self.existing.id).take, '1')

    def test_without_resolver_is_declined(self):
        self.assertIsNone(self.insert(None))


class TestInsertBeforeAcrossShots(ManagerTestCase):

    def test_overlap_with_other_shot_blocks(self):
        target = self.log(sound=('0001', '0002'), camera1=('0001', '0003'))
        other = self.log(shot='2', take='1', sound='0003', camera1='0004')
        resolver = ScriptedResolver(confirm=True)

        with self.assertRaises(FileRangeConflict) as ctx:
            self.log(resolver, take='1', sound='0001', camera1='0001')

        self.assertIs(ctx.exception.conflict_type, ConflictType.SHIFT_OVERLAP)
        self.assertEqual(resolver.asked, [])
        self.assertEqual(self.db.get_entry(target.id), target)
        self.assertEqual(self.db.get_entry(other.id), other)
        self.assertEqual(len(self.db.list_entries(self.project_id)), 2)


class TestInsertHereWithInsertBefore(ManagerTestCase):

    def test_takes_stay_contiguous(self):
        target = self.log(sound=('0001', '0002'), camera1=('0001', '0003'))
        following = self.log()
        resolver = ScriptedResolver(TakeResolution.INSERT_HERE, confirm=True)

        saved = self.log(resolver, take='2', sound='0001', camera1='0001')

        self.assertEqual(saved.take, '1')
        self.assertEqual(self.db.get_entry(target.id).take, '2')
        moved = self.db.get_entry(following.id)
        self.assertEqual(moved.take, '3')
        self.assertEqual(moved.slot('sound'), Slot.single(4))
        self.assertEqual(moved.slot('camera1'), Slot.single(5))
        takes = sorted(int(e.take) for e in self.db.list_entries(self.project_id))
        self.assertEqual(takes, [1, 2, 3])


class TestTakeConflict(ManagerTestCase):

    def setUp(self):
        super().setUp()
        self.existing = self.log()

    def test_without_resolver_raises(self):
        with self.assertRaises(TakeNumberConflict) as ctx:
            self.log(take='1')
        self.assertEqual(ctx.exception.suggested_take, 2)

    def test_cancel(self):
        self.assertIsNone(self.log(ScriptedResolver(TakeResolution.CANCEL), take='1'))
        self.assertEqual(len(self.db.list_entries(self.project_id)), 1)

    def test_use_suggested(self):
        saved = self.log(ScriptedResolver(TakeResolution.USE_SUGGESTED), take='1')
        self.assertEqual(saved.take, '2')
        self.assertEqual(self.db.get_entry(self.existing.id).take, '1')

    def test_insert_here_renumbers_later_takes(self):
        saved = self.log(ScriptedResolver(TakeResolution.INSERT_HERE), take='1')
        self.assertEqual(saved.take, '1')
        self.assertEqual(self.db.get_entry(self.existing.id).take, '2')


class TestDeleteEntry(ManagerTestCase):

    def test_delete_renumbers(self):
        first = self.log()
        second = self.log()

        self.assertTrue(self.manager.delete_entry(first.id))

        self.assertEqual(self.db.get_entry(second.id).take, '1')


class TestQuota(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.db = DatabaseManager(Path(self.tmp.name) / 'takes.db')
        self.gate = EntitlementGate(self.db, trial_limit=1)
        self.manager = TakeLogManager(self.db, self.gate)

    def tearDown(self):
        self.tmp.cleanup()

    def test_trial_project_limit(self):
        project_id = self.manager.create_project('Trial')
        self.manager.commit(project_id, self.manager.new_form(project_id))

        with self.assertRaises(QuotaExceededError):
            self.manager.commit(project_id, self.manager.new_form(project_id))
        with self.assertRaises(QuotaExceededError):
            self.manager.create_project('Second')

    def test_token_lifts_limit(self):
        project_id = self.manager.create_project('Trial')
        self.manager.commit(project_id, self.manager.new_form(project_id))
        self.gate.add_tokens(1)

        entry = self.manager.commit(project_id, self.manager.new_form(project_id))

        self.assertEqual(entry.take, '2')

    def test_deleting_trial_project_frees_the_trial(self):
        project_id = self.manager.create_project('Trial')
        self.manager.delete_project(project_id)
        self.assertTrue(self.gate.may_create_project())


if __name__ == '__main__':
    unittest.main()
