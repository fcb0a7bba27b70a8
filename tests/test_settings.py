"""
Project settings and application config loading.
Run from project root: python -m pytest tests/ -v
"""
import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import TRIAL_LOG_LIMIT, load_config
from continuity.models import ProjectSettings, SettingsError
from continuity.settings import (
    load_project_settings,
    normalize_camera_count,
    settings_from_dict,
    settings_to_dict,
)


class TestCameraCount(unittest.TestCase):

    def test_valid_counts(self):
        self.assertEqual(normalize_camera_count(3), 3)
        self.assertEqual(normalize_camera_count('2'), 2)

    def test_invalid_counts_fall_back_to_one(self):
        for value in (None, 0, -2, 11, 'many'):
            with self.subTest(value=value):
                self.assertEqual(normalize_camera_count(value), 1)

    def test_out_of_range_is_logged(self):
        with self.assertLogs('continuity.settings', level='WARNING'):
            normalize_camera_count(42)


class TestSettingsDict(unittest.TestCase):

    def test_defaults(self):
        self.assertEqual(settings_from_dict({}), ProjectSettings())

    def test_enabled_fields_as_mapping(self):
        settings = settings_from_dict({
            'camera_count': 2,
            'enabled_fields': {'sound': True, 'camera': True, 'notes': False, 'bogus': True},
            'custom_fields': ['Lens'],
            'director': 'A. Director',
        })
        self.assertEqual(settings.enabled_fields, {'sound', 'camera'})
        self.assertEqual(settings.custom_fields, ('Lens',))
        self.assertTrue(settings.is_multi_camera)

    def test_round_trip_through_dict(self):
        settings = ProjectSettings(camera_count=3, custom_fields=('Lens', 'Stop'), production='Film')
        self.assertEqual(settings_from_dict(settings_to_dict(settings)), settings)


class TestLoadFiles(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_load_project_settings(self):
        path = self.dir / 'project.yaml'
        path.write_text('camera_count: 2\nenabled_fields: [sound, camera, notes]\n', encoding='utf-8')

        settings = load_project_settings(path)

        self.assertEqual(settings.camera_count, 2)
        self.assertEqual(settings.enabled_fields, {'sound', 'camera', 'notes'})

    def test_missing_or_malformed_file(self):
        with self.assertRaises(SettingsError):
            load_project_settings(self.dir / 'missing.yaml')
        path = self.dir / 'list.yaml'
        path.write_text('- 1\n- 2\n', encoding='utf-8')
        with self.assertRaises(SettingsError):
            load_project_settings(path)

    def test_load_config_defaults(self):
        config = load_config(self.dir / 'absent.yaml')
        self.assertEqual(config['log_level'], 'WARNING')
        self.assertEqual(config['trial_log_limit'], TRIAL_LOG_LIMIT)

    def test_load_config_overrides(self):
        path = self.dir / 'config.yaml'
        path.write_text('log_level: DEBUG\ndb_path: /tmp/x.db\ntrial_log_limit:\n', encoding='utf-8')

        config = load_config(path)

        self.assertEqual(config['log_level'], 'DEBUG')
        self.assertEqual(config['db_path'], '/tmp/x.db')
        self.assertEqual(config['trial_log_limit'], TRIAL_LOG_LIMIT)


if __name__ == '__main__':
    unittest.main()
