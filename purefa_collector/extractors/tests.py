"""
Tests for the capacity and performance extractors.
"""
import logging
import unittest
from unittest.mock import Mock

from .capacity import capacity_record
from .performance import performance_record, performance_record_from_sample
from ..core.errors import TransportError
from ..datasources.base import DataSource
from ..schema.models import Volume, VolumePerformance


class TestCapacityRecord(unittest.TestCase):

    def test_fields_and_tags(self):
        volume = Volume(created='2020-01-01T10:00:00Z', name='vol1', serial='8A1B', size=1073741824)
        record = capacity_record(volume)

        self.assertEqual(record.measurement, 'purefa')
        self.assertEqual(record.tags, {'name': 'vol1'})
        self.assertEqual(record.fields, {'size': 1073741824, 'serial': '8A1B', 'created': '2020-01-01T10:00:00Z'})

    def test_zero_size_volume(self):
        record = capacity_record(Volume(created='', name='empty', serial='', size=0))
        self.assertEqual(record.fields['size'], 0)


class TestPerformanceRecord(unittest.TestCase):

    def setUp(self):
        self.volume = Volume(created='c', name='vol1', serial='S1', size=1)
        self.datasource = Mock(spec=DataSource)

    def test_counters_become_fields(self):
        self.datasource.volume_performance.return_value = VolumePerformance(
            name='vol1', reads_per_sec=100, writes_per_sec=50, usec_per_read_op=250)
        record = performance_record(self.datasource, self.volume)

        self.datasource.volume_performance.assert_called_once_with('vol1')
        self.assertEqual(record.measurement, 'purefa')
        self.assertEqual(record.tags, {'name': 'vol1'})
        self.assertEqual(record.fields, {'reads_per_sec': 100, 'writes_per_sec': 50, 'usec_per_read_op': 250})

    def test_tagged_by_requested_volume(self):
        self.datasource.volume_performance.return_value = VolumePerformance(name='VOL1', reads_per_sec=1)
        record = performance_record(self.datasource, self.volume)
        self.assertEqual(record.tags, {'name': 'vol1'})

    def test_errors_propagate(self):
        self.datasource.volume_performance.side_effect = TransportError("timed out")
        with self.assertRaises(TransportError):
            performance_record(self.datasource, self.volume)

    def test_record_from_sample_without_counters(self):
        record = performance_record_from_sample(VolumePerformance(name='idle'))
        self.assertEqual(record.fields, {})
        self.assertEqual(record.tags, {'name': 'idle'})


if __name__ == '__main__':
    logging.basicConfig(level=logging.ERROR)
    unittest.main()
