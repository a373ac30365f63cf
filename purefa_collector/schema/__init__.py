"""Typed records for FlashArray API responses and emitted metrics."""

from .models import (
    MEASUREMENT, Volume, VolumePerformance, MetricRecord,
    decode_volumes, decode_volume_performance
)

__all__ = ['MEASUREMENT', 'Volume', 'VolumePerformance', 'MetricRecord',
           'decode_volumes', 'decode_volume_performance']
