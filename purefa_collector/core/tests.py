"""
Tests for the collector configuration and the gather orchestration.
"""
import itertools
import json
import logging
import unittest
from dataclasses import FrozenInstanceError
from unittest.mock import Mock

import requests

from .collector import PureFACollector
from .config import PureFAConfig, DEFAULT_HTTP_TIMEOUT
from .errors import (
    ConfigError, AuthError, UnexpectedStatusError, TransportError,
    DecodeError, GatherError
)
from ..datasources.live_api import LiveAPIDataSource
from ..writer.base import Accumulator
from ..writer.prometheus_writer import PrometheusWriter

BASE_URL = 'https://purefa1.example.com/api/1.15'

VOLUMES = [
    {"name": "vol1", "serial": "S1", "size": 1024, "created": "2020-01-01"},
    {"name": "vol2", "serial": "S2", "size": 2048, "created": "2020-01-02"},
]


def monitor_body(name, reads=10):
    return json.dumps([{
        "name": name, "time": "2020-01-01T10:00:00Z",
        "reads_per_sec": reads, "writes_per_sec": 5,
        "input_per_sec": 4096, "output_per_sec": 8192,
        "usec_per_read_op": 200, "usec_per_write_op": 300,
    }])


def make_response(status_code=200, body='[]'):
    body = body.encode('utf-8') if isinstance(body, str) else body
    response = Mock()
    response.status_code = status_code
    chunks = itertools.cycle([body, b''])
    response.raw.read1.side_effect = lambda *args, **kwargs: next(chunks)
    return response


class RecordingAccumulator(Accumulator):
    """Keeps every record it is given, in order."""

    def __init__(self):
        self.records = []

    def add_fields(self, measurement, fields, tags):
        self.records.append((measurement, dict(fields), dict(tags)))


class FakeArray:
    """Routes session.get calls to canned responses by URL."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def get(self, url, params=None, timeout=None, stream=False):
        if params:
            url = f"{url}?action={params['action']}"
        self.calls.append(url)
        result = self.routes[url]
        if isinstance(result, Exception):
            raise result
        return result


class TestPureFAConfig(unittest.TestCase):
    """Test cases for configuration validation and defaults."""

    def test_empty_token_is_rejected(self):
        with self.assertRaises(ConfigError):
            PureFAConfig(array='purefa1.example.com', api_token='')

    def test_base_url_derived_from_array(self):
        config = PureFAConfig(array='purefa1.example.com', api_token='t')
        self.assertEqual(config.base_url, 'https://purefa1.example.com/api/1.15')

    def test_explicit_base_url_kept_without_trailing_slash(self):
        config = PureFAConfig(api_token='t', base_url='https://10.0.0.5/api/1.15/')
        self.assertEqual(config.base_url, 'https://10.0.0.5/api/1.15')

    def test_missing_array_and_base_url(self):
        with self.assertRaises(ConfigError):
            PureFAConfig(api_token='t')

    def test_default_timeout(self):
        self.assertEqual(PureFAConfig(array='a', api_token='t').http_timeout, DEFAULT_HTTP_TIMEOUT)
        self.assertEqual(PureFAConfig(array='a', api_token='t', http_timeout=0).http_timeout, 4.0)

    def test_read_timeout_never_above_total(self):
        self.assertEqual(PureFAConfig(array='a', api_token='t').read_timeout, 3.0)
        self.assertEqual(PureFAConfig(array='a', api_token='t', http_timeout=1.5).read_timeout, 1.5)

    def test_negative_timeout(self):
        with self.assertRaises(ConfigError):
            PureFAConfig(array='a', api_token='t', http_timeout=-1)

    def test_invalid_tls_validation(self):
        with self.assertRaises(ConfigError):
            PureFAConfig(array='a', api_token='t', tls_validation='sometimes')

    def test_invalid_veeamsnap_pattern(self):
        with self.assertRaises(ConfigError):
            PureFAConfig(array='a', api_token='t', veeamsnap_pattern='(')

    def test_config_is_immutable(self):
        config = PureFAConfig(array='a', api_token='t')
        with self.assertRaises(FrozenInstanceError):
            config.api_token = 'other'

    def test_token_not_exposed(self):
        config = PureFAConfig(array='a', api_token='secret-token')
        self.assertNotIn('secret-token', repr(config))
        self.assertEqual(config.to_dict()['api_token'], '[REDACTED]')


class TestGather(unittest.TestCase):
    """Test cases for PureFACollector.gather against a mocked array."""

    def setUp(self):
        self.config = PureFAConfig(array='purefa1.example.com', api_token='t')
        self.accumulator = RecordingAccumulator()

    def make_collector(self, routes, config=None):
        self.array = FakeArray(routes)
        session = Mock()
        session.get.side_effect = self.array.get
        datasource = LiveAPIDataSource(config or self.config, session=session)
        return PureFACollector(config or self.config, datasource=datasource)

    def test_forbidden_aborts_without_records(self):
        collector = self.make_collector({f"{BASE_URL}/volume": make_response(403)})
        with self.assertRaises(AuthError):
            collector.gather(self.accumulator)
        self.assertEqual(self.accumulator.records, [])

    def test_unexpected_status_aborts(self):
        collector = self.make_collector({f"{BASE_URL}/volume": make_response(500)})
        with self.assertRaises(UnexpectedStatusError) as ctx:
            collector.gather(self.accumulator)
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(self.accumulator.records, [])

    def test_transport_failure_aborts(self):
        collector = self.make_collector({f"{BASE_URL}/volume": requests.ConnectTimeout("timed out")})
        with self.assertRaises(TransportError):
            collector.gather(self.accumulator)
        self.assertEqual(self.accumulator.records, [])

    def test_malformed_list_aborts(self):
        collector = self.make_collector({f"{BASE_URL}/volume": make_response(200, '"not-json')})
        with self.assertRaises(DecodeError):
            collector.gather(self.accumulator)
        self.assertEqual(self.accumulator.records, [])

    def test_non_array_list_aborts(self):
        collector = self.make_collector({f"{BASE_URL}/volume": make_response(200, '"not-json"')})
        with self.assertRaises(DecodeError):
            collector.gather(self.accumulator)
        self.assertEqual(self.accumulator.records, [])

    def test_capacity_record_emitted(self):
        body = '[{"name":"vol1","serial":"S1","size":1024,"created":"2020-01-01"}]'
        collector = self.make_collector({
            f"{BASE_URL}/volume": make_response(200, body),
            f"{BASE_URL}/volume/vol1?action=monitor": make_response(200, monitor_body('vol1')),
        })
        collector.gather(self.accumulator)

        measurement, fields, tags = self.accumulator.records[0]
        self.assertEqual(measurement, 'purefa')
        self.assertEqual(tags, {'name': 'vol1'})
        self.assertEqual(fields['size'], 1024)

    def test_records_streamed_in_volume_order(self):
        collector = self.make_collector({
            f"{BASE_URL}/volume": make_response(200, json.dumps(VOLUMES)),
            f"{BASE_URL}/volume/vol1?action=monitor": make_response(200, monitor_body('vol1')),
            f"{BASE_URL}/volume/vol2?action=monitor": make_response(200, monitor_body('vol2')),
        })
        collector.gather(self.accumulator)

        self.assertEqual(len(self.accumulator.records), 4)
        order = [(r[2]['name'], 'size' in r[1]) for r in self.accumulator.records]
        self.assertEqual(order, [('vol1', True), ('vol1', False), ('vol2', True), ('vol2', False)])
        self.assertEqual(self.accumulator.records[1][1]['reads_per_sec'], 10)
        # One list request, then one monitor request per volume, in sequence
        self.assertEqual(self.array.calls, [
            f"{BASE_URL}/volume",
            f"{BASE_URL}/volume/vol1?action=monitor",
            f"{BASE_URL}/volume/vol2?action=monitor",
        ])

    def test_volume_without_serial_still_collected(self):
        volumes = [{"name": "vol1", "size": 1024, "serial": None}, VOLUMES[1]]
        collector = self.make_collector({
            f"{BASE_URL}/volume": make_response(200, json.dumps(volumes)),
            f"{BASE_URL}/volume/vol1?action=monitor": make_response(200, monitor_body('vol1')),
            f"{BASE_URL}/volume/vol2?action=monitor": make_response(200, monitor_body('vol2')),
        })
        collector.gather(self.accumulator)

        self.assertEqual(len(self.accumulator.records), 4)
        self.assertEqual(self.accumulator.records[0][1], {'size': 1024, 'serial': '', 'created': ''})

    def test_empty_volume_list(self):
        collector = self.make_collector({f"{BASE_URL}/volume": make_response(200, '[]')})
        collector.gather(self.accumulator)
        self.assertEqual(self.accumulator.records, [])
        self.assertEqual(collector.get_statistics()['collections_completed'], 1)

    def test_performance_failure_is_isolated(self):
        collector = self.make_collector({
            f"{BASE_URL}/volume": make_response(200, json.dumps(VOLUMES)),
            f"{BASE_URL}/volume/vol1?action=monitor": make_response(200, monitor_body('vol1')),
            f"{BASE_URL}/volume/vol2?action=monitor": make_response(500),
        })
        with self.assertRaises(GatherError) as ctx:
            collector.gather(self.accumulator)

        capacity = [r[2]['name'] for r in self.accumulator.records if 'size' in r[1]]
        performance = [r[2]['name'] for r in self.accumulator.records if 'reads_per_sec' in r[1]]
        self.assertEqual(capacity, ['vol1', 'vol2'])
        self.assertEqual(performance, ['vol1'])

        error = ctx.exception
        self.assertEqual(len(error.errors), 1)
        self.assertEqual(error.first.volume_name, 'vol2')
        self.assertIsInstance(error.first.cause, UnexpectedStatusError)
        self.assertEqual(collector.get_statistics()['last_volume_failures'], 1)

    def test_all_failures_collected(self):
        collector = self.make_collector({
            f"{BASE_URL}/volume": make_response(200, json.dumps(VOLUMES)),
            f"{BASE_URL}/volume/vol1?action=monitor": requests.ReadTimeout("slow"),
            f"{BASE_URL}/volume/vol2?action=monitor": make_response(200, '{broken'),
        })
        with self.assertRaises(GatherError) as ctx:
            collector.gather(self.accumulator)

        causes = [type(e.cause) for e in ctx.exception.errors]
        self.assertEqual(causes, [TransportError, DecodeError])
        self.assertIn('vol1', str(ctx.exception))
        self.assertIn('vol2', str(ctx.exception))
        # Capacity records still emitted for both volumes
        self.assertEqual(len(self.accumulator.records), 2)

    def test_repeated_gather_is_structurally_identical(self):
        collector = self.make_collector({
            f"{BASE_URL}/volume": make_response(200, json.dumps(VOLUMES)),
            f"{BASE_URL}/volume/vol1?action=monitor": make_response(200, monitor_body('vol1')),
            f"{BASE_URL}/volume/vol2?action=monitor": make_response(200, monitor_body('vol2')),
        })
        collector.gather(self.accumulator)
        first = list(self.accumulator.records)
        self.accumulator.records.clear()

        collector.gather(self.accumulator)
        self.assertEqual(self.accumulator.records, first)
        self.assertEqual(collector.get_statistics()['collections_completed'], 2)

    def test_veeam_snapshots_ignored_when_enabled(self):
        volumes = VOLUMES[:1] + [{"name": "VEEAM-ExportLUNSnap-abc", "serial": "S9", "size": 1, "created": "x"}]
        routes = {
            f"{BASE_URL}/volume": make_response(200, json.dumps(volumes)),
            f"{BASE_URL}/volume/vol1?action=monitor": make_response(200, monitor_body('vol1')),
        }
        config = PureFAConfig(array='purefa1.example.com', api_token='t', ignore_veeamsnap=True)
        collector = self.make_collector(routes, config=config)
        collector.gather(self.accumulator)

        names = {r[2]['name'] for r in self.accumulator.records}
        self.assertEqual(names, {'vol1'})

    def test_veeam_snapshots_kept_by_default(self):
        volumes = [{"name": "veeam-snap-1", "serial": "S9", "size": 1, "created": "x"}]
        collector = self.make_collector({
            f"{BASE_URL}/volume": make_response(200, json.dumps(volumes)),
            f"{BASE_URL}/volume/veeam-snap-1?action=monitor": make_response(200, monitor_body('veeam-snap-1')),
        })
        collector.gather(self.accumulator)
        self.assertEqual(len(self.accumulator.records), 2)

    def test_deleted_volume_no_longer_exported(self):
        routes = {
            f"{BASE_URL}/volume": make_response(200, json.dumps(VOLUMES)),
            f"{BASE_URL}/volume/vol1?action=monitor": make_response(200, monitor_body('vol1')),
            f"{BASE_URL}/volume/vol2?action=monitor": make_response(200, monitor_body('vol2')),
        }
        collector = self.make_collector(routes)
        writer = PrometheusWriter({'start_server': False})
        registry = writer.prometheus_registry

        collector.gather(writer)
        writer.flush()
        self.assertEqual(registry.get_sample_value('purefa_size', {'name': 'vol2'}), 2048.0)

        routes[f"{BASE_URL}/volume"] = make_response(200, json.dumps(VOLUMES[:1]))
        collector.gather(writer)
        writer.flush()
        self.assertEqual(registry.get_sample_value('purefa_size', {'name': 'vol1'}), 1024.0)
        self.assertIsNone(registry.get_sample_value('purefa_size', {'name': 'vol2'}))
        self.assertIsNone(registry.get_sample_value('purefa_reads_per_sec', {'name': 'vol2'}))

    def test_close_releases_session(self):
        collector = self.make_collector({})
        collector.close()
        collector.datasource.session.close.assert_called_once()


if __name__ == '__main__':
    logging.basicConfig(level=logging.ERROR)
    unittest.main()
