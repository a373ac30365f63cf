"""Performance metrics: I/O activity from the per-volume monitor endpoint."""

import logging

from ..datasources.base import DataSource
from ..schema.models import MEASUREMENT, MetricRecord, Volume, VolumePerformance

LOG = logging.getLogger(__name__)


def performance_record_from_sample(sample: VolumePerformance) -> MetricRecord:
    """Map a monitor sample to a record; counters the array did not report are left out."""
    return MetricRecord(
        measurement=MEASUREMENT,
        tags={'name': sample.name},
        fields=sample.counters(),
    )


def performance_record(datasource: DataSource, volume: Volume) -> MetricRecord:
    """Fetch the latest sample for a volume and build its performance record.

    Raises TransportError, AuthError, UnexpectedStatusError or DecodeError
    from the follow-up request.
    """
    sample = datasource.volume_performance(volume.name)
    if sample.name != volume.name:
        LOG.debug(f"Monitor sample for {volume.name} reported name {sample.name}")

    record = performance_record_from_sample(sample)
    # Tag by the volume we asked about, whatever the sample echoes back
    record.tags['name'] = volume.name
    return record
