"""Writer module for the FlashArray collector.

Provides accumulator implementations for different output formats.
"""

from .base import Accumulator
from .factory import WriterFactory
from .influxdb_writer import InfluxDBWriter
from .prometheus_writer import PrometheusWriter
from .multi_writer import MultiWriter

__all__ = ['Accumulator', 'WriterFactory', 'InfluxDBWriter', 'PrometheusWriter', 'MultiWriter']
