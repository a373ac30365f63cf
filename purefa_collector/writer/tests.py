"""
Tests for the accumulator implementations.
"""
import logging
import unittest
from unittest.mock import Mock, patch

from .base import Accumulator
from .factory import WriterFactory
from .influxdb_writer import InfluxDBWriter
from .multi_writer import MultiWriter
from .prometheus_writer import PrometheusWriter
from ..core.errors import ConfigError
from ..core.writer_config import WriterConfig


class TestPrometheusWriter(unittest.TestCase):

    def setUp(self):
        self.writer = PrometheusWriter({'start_server': False})

    def sample(self, metric, labels):
        return self.writer.prometheus_registry.get_sample_value(metric, labels)

    def test_numeric_fields_become_gauges(self):
        self.writer.add_fields('purefa', {'size': 1024, 'serial': 'S1', 'created': 'c'}, {'name': 'vol1'})
        self.assertEqual(self.sample('purefa_size', {'name': 'vol1'}), 1024.0)
        self.assertIsNone(self.sample('purefa_serial', {'name': 'vol1'}))

    def test_gauge_updated_in_place(self):
        self.writer.add_fields('purefa', {'reads_per_sec': 1}, {'name': 'vol1'})
        self.writer.add_fields('purefa', {'reads_per_sec': 7}, {'name': 'vol1'})
        self.writer.add_fields('purefa', {'reads_per_sec': 3}, {'name': 'vol2'})
        self.assertEqual(self.sample('purefa_reads_per_sec', {'name': 'vol1'}), 7.0)
        self.assertEqual(self.sample('purefa_reads_per_sec', {'name': 'vol2'}), 3.0)

    def test_bool_and_nan_skipped(self):
        self.writer.add_fields('purefa', {'flag': True, 'bad': float('nan')}, {'name': 'vol1'})
        self.assertEqual(self.writer.dynamic_metrics, {})

    def test_mismatched_labels_skipped(self):
        self.writer.add_fields('purefa', {'size': 1}, {'name': 'vol1'})
        self.writer.add_fields('purefa', {'size': 2}, {'name': 'vol1', 'pod': 'p'})
        self.assertEqual(self.sample('purefa_size', {'name': 'vol1'}), 1.0)

    def test_metric_name_sanitized(self):
        self.assertEqual(self.writer._sanitize_metric_name('purefa', 'usec-per read'), 'purefa_usec_per_read')

    def test_render(self):
        self.writer.add_fields('purefa', {'usec_per_read_op': 250}, {'name': 'vol1'})
        text = self.writer.render()
        self.assertIn('purefa_usec_per_read_op{name="vol1"} 250.0', text)
        self.assertIn('in microseconds', text)

    def test_flush_drops_series_not_seen_in_poll(self):
        self.writer.add_fields('purefa', {'size': 1}, {'name': 'vol1'})
        self.writer.add_fields('purefa', {'size': 2}, {'name': 'vol2'})
        self.writer.flush()

        self.writer.add_fields('purefa', {'size': 1}, {'name': 'vol1'})
        self.writer.flush()

        self.assertEqual(self.sample('purefa_size', {'name': 'vol1'}), 1.0)
        self.assertIsNone(self.sample('purefa_size', {'name': 'vol2'}))

    def test_flush_drops_counters_of_unreported_volume(self):
        self.writer.add_fields('purefa', {'size': 1}, {'name': 'vol1'})
        self.writer.add_fields('purefa', {'reads_per_sec': 40}, {'name': 'vol1'})
        self.writer.flush()

        # Capacity reported again, performance did not
        self.writer.add_fields('purefa', {'size': 1}, {'name': 'vol1'})
        self.writer.flush()

        self.assertEqual(self.sample('purefa_size', {'name': 'vol1'}), 1.0)
        self.assertIsNone(self.sample('purefa_reads_per_sec', {'name': 'vol1'}))

    def test_series_set_again_after_removal(self):
        self.writer.add_fields('purefa', {'size': 1}, {'name': 'vol1'})
        self.writer.flush()
        self.writer.flush()
        self.assertIsNone(self.sample('purefa_size', {'name': 'vol1'}))

        self.writer.add_fields('purefa', {'size': 5}, {'name': 'vol1'})
        self.writer.flush()
        self.assertEqual(self.sample('purefa_size', {'name': 'vol1'}), 5.0)

    @patch('purefa_collector.writer.prometheus_writer.start_http_server')
    def test_server_started_once(self, start_http_server):
        writer = PrometheusWriter({'prometheus_port': 9123})
        writer.add_fields('purefa', {'size': 1}, {'name': 'vol1'})
        writer.add_fields('purefa', {'size': 2}, {'name': 'vol2'})
        start_http_server.assert_called_once_with(9123, registry=writer.prometheus_registry)


class TestInfluxDBWriter(unittest.TestCase):

    def setUp(self):
        self.client = Mock()
        self.writer = InfluxDBWriter({'influxdb_url': 'https://db:8181', 'influxdb_token': 't',
                                      'influxdb_database': 'purefa'}, client=self.client)

    def test_point_written(self):
        self.writer.add_fields('purefa', {'size': 1024, 'serial': 'S1'}, {'name': 'vol1'})

        self.client.write.assert_called_once()
        point = self.client.write.call_args.kwargs['record']
        line = point.to_line_protocol()
        self.assertTrue(line.startswith('purefa,name=vol1 '))
        self.assertIn('size=1024i', line)
        self.assertIn('serial="S1"', line)
        self.assertEqual(self.writer.points_submitted, 1)

    def test_record_without_fields_skipped(self):
        self.writer.add_fields('purefa', {'size': None}, {'name': 'vol1'})
        self.client.write.assert_not_called()

    def test_write_failure_logged_not_raised(self):
        self.client.write.side_effect = RuntimeError("connection reset")
        self.writer.add_fields('purefa', {'size': 1}, {'name': 'vol1'})
        self.assertEqual(self.writer.points_submitted, 0)

    def test_close_closes_client(self):
        self.writer.close()
        self.client.close.assert_called_once()


class TestMultiWriter(unittest.TestCase):

    def test_failing_writer_does_not_block_others(self):
        broken = Mock(spec=Accumulator)
        broken.add_fields.side_effect = RuntimeError("down")
        healthy = Mock(spec=Accumulator)
        writer = MultiWriter([broken, healthy])

        writer.add_fields('purefa', {'size': 1}, {'name': 'vol1'})
        healthy.add_fields.assert_called_once_with('purefa', {'size': 1}, {'name': 'vol1'})

        writer.flush()
        writer.close()
        healthy.flush.assert_called_once()
        healthy.close.assert_called_once()


class TestWriterFactory(unittest.TestCase):

    def test_prometheus(self):
        writer = WriterFactory.create_writer_from_config(WriterConfig(output_format='prometheus', prometheus_port=9000))
        self.assertIsInstance(writer, PrometheusWriter)
        self.assertEqual(writer.port, 9000)

    @patch('purefa_collector.writer.factory.InfluxDBWriter')
    def test_both(self, influx_writer):
        config = WriterConfig(output_format='both', influxdb_url='https://db:8181',
                              influxdb_token='t', influxdb_database='purefa')
        writer = WriterFactory.create_writer_from_config(config)
        self.assertIsInstance(writer, MultiWriter)
        self.assertEqual(len(writer.writers), 2)
        influx_writer.assert_called_once_with(config.to_dict())

    def test_influxdb_requires_connection_settings(self):
        with self.assertRaises(ConfigError):
            WriterConfig(output_format='influxdb')

    def test_unknown_output(self):
        with self.assertRaises(ConfigError):
            WriterConfig(output_format='graphite')


if __name__ == '__main__':
    logging.basicConfig(level=logging.ERROR)
    unittest.main()
