"""
Tests for decoding FlashArray API responses.
"""
import logging
import unittest

from .models import Volume, VolumePerformance, decode_volumes, decode_volume_performance
from ..core.errors import DecodeError


class TestDecodeVolumes(unittest.TestCase):
    """Test cases for the volume list decoder."""

    def test_decode_single_volume(self):
        volumes = decode_volumes(b'[{"name":"vol1","serial":"S1","size":1024,"created":"2020-01-01"}]')
        self.assertEqual(volumes, [Volume(created='2020-01-01', name='vol1', serial='S1', size=1024)])

    def test_order_preserved(self):
        body = '[{"name":"b","serial":"1","size":1,"created":"c"},{"name":"a","serial":"2","size":2,"created":"c"}]'
        self.assertEqual([v.name for v in decode_volumes(body)], ['b', 'a'])

    def test_empty_array(self):
        self.assertEqual(decode_volumes(b'[]'), [])

    def test_unknown_fields_ignored(self):
        volumes = decode_volumes('[{"name":"vol1","serial":"S1","size":5,"created":"c","source":null,"total":9}]')
        self.assertEqual(volumes[0].size, 5)
        self.assertEqual(volumes[0].get_raw('total'), 9)

    def test_malformed_json(self):
        with self.assertRaises(DecodeError) as ctx:
            decode_volumes(b'not-json')
        self.assertIsInstance(ctx.exception.__cause__, ValueError)

    def test_top_level_object_rejected(self):
        with self.assertRaises(DecodeError):
            decode_volumes(b'{"name":"vol1"}')

    def test_type_mismatch(self):
        with self.assertRaises(DecodeError):
            decode_volumes(b'[{"name":"vol1","serial":"S1","size":"1024","created":"c"}]')

    def test_bool_is_not_a_size(self):
        with self.assertRaises(DecodeError):
            decode_volumes(b'[{"name":"vol1","serial":"S1","size":true,"created":"c"}]')

    def test_missing_size(self):
        with self.assertRaises(DecodeError):
            decode_volumes(b'[{"name":"vol1","serial":"S1","created":"c"}]')

    def test_missing_serial_and_created_read_as_empty(self):
        volumes = decode_volumes(b'[{"name":"vol1","size":1}]')
        self.assertEqual(volumes, [Volume(name='vol1', size=1, created='', serial='')])

    def test_null_serial_and_created_read_as_empty(self):
        volumes = decode_volumes(b'[{"name":"vol1","serial":null,"size":1,"created":null}]')
        self.assertEqual(volumes[0].serial, '')
        self.assertEqual(volumes[0].created, '')

    def test_null_name(self):
        with self.assertRaises(DecodeError):
            decode_volumes(b'[{"name":null,"serial":"S1","size":1,"created":"c"}]')

    def test_null_size(self):
        with self.assertRaises(DecodeError):
            decode_volumes(b'[{"name":"vol1","serial":"S1","size":null,"created":"c"}]')

    def test_serial_type_mismatch(self):
        with self.assertRaises(DecodeError):
            decode_volumes(b'[{"name":"vol1","serial":42,"size":1}]')

    def test_non_object_item(self):
        with self.assertRaises(DecodeError):
            decode_volumes(b'["vol1"]')


class TestDecodeVolumePerformance(unittest.TestCase):
    """Test cases for the monitor response decoder."""

    def test_decode_sample(self):
        sample = decode_volume_performance(
            b'[{"name":"vol1","time":"2020-01-01T10:00:00Z","reads_per_sec":12,"writes_per_sec":3,'
            b'"input_per_sec":4096,"output_per_sec":8192,"usec_per_read_op":210,"usec_per_write_op":340}]',
            'vol1')
        self.assertEqual(sample.counters(), {
            'reads_per_sec': 12, 'writes_per_sec': 3,
            'input_per_sec': 4096, 'output_per_sec': 8192,
            'usec_per_read_op': 210, 'usec_per_write_op': 340,
        })

    def test_missing_counters_omitted(self):
        sample = decode_volume_performance(b'[{"name":"vol1","reads_per_sec":1.5}]', 'vol1')
        self.assertEqual(sample.counters(), {'reads_per_sec': 1.5})
        self.assertIsNone(sample.time)

    def test_bare_object_accepted(self):
        sample = decode_volume_performance(b'{"name":"vol1","writes_per_sec":2}', 'vol1')
        self.assertIsInstance(sample, VolumePerformance)
        self.assertEqual(sample.writes_per_sec, 2)

    def test_empty_array(self):
        with self.assertRaises(DecodeError):
            decode_volume_performance(b'[]', 'vol1')

    def test_counter_type_mismatch(self):
        with self.assertRaises(DecodeError):
            decode_volume_performance(b'[{"name":"vol1","reads_per_sec":"fast"}]', 'vol1')

    def test_malformed(self):
        with self.assertRaises(DecodeError) as ctx:
            decode_volume_performance(b'<html>', 'vol1')
        self.assertIn('vol1', str(ctx.exception))


if __name__ == '__main__':
    logging.basicConfig(level=logging.ERROR)
    unittest.main()
