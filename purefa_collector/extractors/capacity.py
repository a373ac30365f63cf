"""Capacity metrics: static sizing derived from the volume list itself."""

from ..schema.models import MEASUREMENT, MetricRecord, Volume


def capacity_record(volume: Volume) -> MetricRecord:
    """Build the capacity record for one volume. No I/O, cannot fail."""
    return MetricRecord(
        measurement=MEASUREMENT,
        tags={'name': volume.name},
        fields={
            'size': volume.size,
            'serial': volume.serial,
            'created': volume.created,
        },
    )
