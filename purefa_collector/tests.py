"""
Tests for the command line entry point.
"""
import logging
import os
import unittest
from unittest.mock import Mock, patch

from .core.errors import AuthError, GatherError, VolumeError, TransportError
from .main import create_argument_parser, load_settings, run_continuous
from .writer.base import Accumulator


class TestLoadSettings(unittest.TestCase):

    def test_flags_override_environment(self):
        args = create_argument_parser().parse_args(
            ['--array', 'purefa1.example.com', '--http-timeout', '2s', '--ignore-veeamsnap'])
        env = {'PUREFA_ARRAY': 'purefa2.example.com', 'PUREFA_API_TOKEN': 't'}
        with patch.dict(os.environ, env, clear=True):
            config = load_settings(args).to_config()

        self.assertEqual(config.array, 'purefa1.example.com')
        self.assertEqual(config.api_token, 't')
        self.assertEqual(config.http_timeout, 2.0)
        self.assertTrue(config.ignore_veeamsnap)

    def test_absent_flag_keeps_environment_value(self):
        args = create_argument_parser().parse_args([])
        env = {'PUREFA_ARRAY': 'a', 'PUREFA_API_TOKEN': 't', 'PUREFA_IGNORE_VEEAMSNAP': 'true'}
        with patch.dict(os.environ, env, clear=True):
            settings = load_settings(args)
        self.assertTrue(settings.ignore_veeamsnap)


class TestRunContinuous(unittest.TestCase):

    def setUp(self):
        self.collector = Mock()
        self.writer = Mock(spec=Accumulator)

    @patch('purefa_collector.main.time.sleep')
    def test_stops_after_max_iterations(self, sleep):
        failed = run_continuous(self.collector, self.writer, interval_time=60, max_iterations=3)

        self.assertEqual(failed, 0)
        self.assertEqual(self.collector.gather.call_count, 3)
        self.assertEqual(self.writer.flush.call_count, 3)
        # No sleep after the last poll
        self.assertEqual(sleep.call_count, 2)
        sleep.assert_called_with(60)

    @patch('purefa_collector.main.time.sleep')
    def test_failed_poll_does_not_stop_the_loop(self, sleep):
        partial = GatherError([VolumeError('vol2', TransportError("timed out"))])
        self.collector.gather.side_effect = [AuthError('https://a/api/1.15/volume'), partial, None]

        failed = run_continuous(self.collector, self.writer, interval_time=5, max_iterations=3)

        self.assertEqual(failed, 2)
        self.assertEqual(self.collector.gather.call_count, 3)
        self.assertEqual(self.writer.flush.call_count, 3)


if __name__ == '__main__':
    logging.basicConfig(level=logging.ERROR)
    unittest.main()
