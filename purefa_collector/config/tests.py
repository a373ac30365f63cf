"""
Tests for settings loading and value parsing.
"""
import json
import logging
import os
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

from . import Settings
from ..core.errors import ConfigError
from ..utils import parse_duration, parse_bool


class TestSettings(unittest.TestCase):
    """Test cases for the Settings class."""

    def setUp(self):
        self.temp_dir = TemporaryDirectory()
        self.temp_path = Path(self.temp_dir.name)

        self.yaml_file = self.temp_path / "purefa.yaml"
        with open(self.yaml_file, 'w', encoding='utf-8') as f:
            f.write("array: purefa1.example.com\n"
                    "api_token: 55b0bf09-10b4-e54c-7db8-9fccc742e908\n"
                    "http_timeout: 10s\n"
                    "ignore_veeamsnap: true\n")

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings()
        self.assertEqual(settings.array, '')
        self.assertEqual(settings.http_timeout, 0.0)
        self.assertFalse(settings.ignore_veeamsnap)
        self.assertEqual(settings.tls_validation, 'strict')

    def test_load_yaml(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(config_file=str(self.yaml_file))

        self.assertEqual(settings.array, 'purefa1.example.com')
        self.assertEqual(settings.http_timeout, 10.0)
        self.assertTrue(settings.ignore_veeamsnap)

    def test_load_json(self):
        json_file = self.temp_path / "purefa.json"
        with open(json_file, 'w', encoding='utf-8') as f:
            json.dump({"array": "10.0.0.5", "api_token": "t", "http_timeout": 2}, f)

        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(config_file=str(json_file))
        self.assertEqual(settings.array, '10.0.0.5')
        self.assertEqual(settings.http_timeout, 2.0)

    def test_environment_overrides_file(self):
        env = {'PUREFA_ARRAY': 'purefa2.example.com', 'PUREFA_HTTP_TIMEOUT': '500ms',
               'PUREFA_IGNORE_VEEAMSNAP': 'false'}
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(config_file=str(self.yaml_file))

        self.assertEqual(settings.array, 'purefa2.example.com')
        self.assertEqual(settings.api_token, '55b0bf09-10b4-e54c-7db8-9fccc742e908')
        self.assertEqual(settings.http_timeout, 0.5)
        self.assertFalse(settings.ignore_veeamsnap)

    def test_environment_ignored_when_disabled(self):
        with patch.dict(os.environ, {'PUREFA_ARRAY': 'other'}, clear=True):
            settings = Settings(from_env=False)
        self.assertEqual(settings.array, '')

    def test_missing_file(self):
        with self.assertRaises(ConfigError):
            Settings(config_file=str(self.temp_path / "absent.yaml"), from_env=False)

    def test_unsupported_format(self):
        ini_file = self.temp_path / "purefa.ini"
        ini_file.write_text("[array]\n", encoding='utf-8')
        with self.assertRaises(ConfigError):
            Settings(config_file=str(ini_file), from_env=False)

    def test_invalid_yaml(self):
        bad_file = self.temp_path / "bad.yaml"
        bad_file.write_text("array: [unclosed\n", encoding='utf-8')
        with self.assertRaises(ConfigError):
            Settings(config_file=str(bad_file), from_env=False)

    def test_top_level_must_be_mapping(self):
        list_file = self.temp_path / "list.yaml"
        list_file.write_text("- purefa1\n- purefa2\n", encoding='utf-8')
        with self.assertRaises(ConfigError):
            Settings(config_file=str(list_file), from_env=False)

    def test_invalid_duration(self):
        settings = Settings(from_env=False)
        with self.assertRaises(ConfigError):
            settings.update({'http_timeout': 'soon'})

    def test_to_config(self):
        with patch.dict(os.environ, {}, clear=True):
            config = Settings(config_file=str(self.yaml_file)).to_config()

        self.assertEqual(config.base_url, 'https://purefa1.example.com/api/1.15')
        self.assertEqual(config.http_timeout, 10.0)
        self.assertTrue(config.ignore_veeamsnap)

    def test_to_config_without_token(self):
        settings = Settings(from_env=False)
        settings.update({'array': 'purefa1.example.com'})
        with self.assertRaises(ConfigError):
            settings.to_config()


class TestParsing(unittest.TestCase):
    """Test cases for duration and flag parsing."""

    def test_parse_duration(self):
        self.assertEqual(parse_duration('4s'), 4.0)
        self.assertEqual(parse_duration('500ms'), 0.5)
        self.assertEqual(parse_duration('1m'), 60.0)
        self.assertEqual(parse_duration('10'), 10.0)
        self.assertEqual(parse_duration(3), 3.0)
        self.assertEqual(parse_duration(None), 0.0)

    def test_parse_duration_rejects_garbage(self):
        for value in ('fast', '-1s', '4 days', True):
            with self.assertRaises(ValueError):
                parse_duration(value)

    def test_parse_bool(self):
        for value in ('true', 'Yes', '1', 'on', True):
            self.assertTrue(parse_bool(value))
        for value in ('false', 'NO', '0', 'off', '', False):
            self.assertFalse(parse_bool(value))
        with self.assertRaises(ValueError):
            parse_bool('maybe')


if __name__ == '__main__':
    logging.basicConfig(level=logging.ERROR)
    unittest.main()
