"""Main collector orchestration logic.

One gather() call is one poll of the array: list the volumes, then
derive and emit a capacity and a performance record for each of them.
"""

import logging
import time
from typing import Optional, Dict, Any, List

from ..datasources.base import DataSource
from ..datasources.live_api import LiveAPIDataSource
from ..extractors import capacity_record, performance_record
from ..schema.models import MetricRecord, Volume
from ..writer.base import Accumulator
from .config import PureFAConfig
from .errors import PureFAError, VolumeError, GatherError


class PureFACollector:
    """Collects capacity and performance metrics from one FlashArray.

    The HTTP client lives in the data source, which is built once here
    and reused by every gather() call. Requests are issued one after the
    other, never in parallel, to keep the load on the management API low.
    """

    def __init__(self, config: PureFAConfig, datasource: Optional[DataSource] = None):
        """Initialize collector with configuration.

        Args:
            config: Validated array configuration
            datasource: Data source to poll, defaults to the live REST API
        """
        self.config = config
        self.logger = logging.getLogger(__name__)
        self.datasource = datasource if datasource is not None else LiveAPIDataSource(config)

        # Statistics tracking
        self.collections_completed = 0
        self.last_collection_time: Optional[float] = None
        self.last_records_emitted = 0
        self.last_volume_failures = 0

    def _filter_volumes(self, volumes: List[Volume]) -> List[Volume]:
        if not self.config.ignore_veeamsnap:
            return volumes

        kept = []
        for volume in volumes:
            if self.config.is_veeam_snapshot(volume.name):
                self.logger.debug(f"Ignoring Veeam snapshot volume {volume.name}")
            else:
                kept.append(volume)
        if len(kept) != len(volumes):
            self.logger.info(f"Ignored {len(volumes) - len(kept)} Veeam snapshot volumes")
        return kept

    def _emit(self, accumulator: Accumulator, record: MetricRecord) -> None:
        accumulator.add_fields(record.measurement, record.fields, record.tags)
        self.last_records_emitted += 1

    def gather(self, accumulator: Accumulator) -> None:
        """Run one poll and push every record to the accumulator as soon as it exists.

        Raises:
            AuthError, UnexpectedStatusError, TransportError, DecodeError:
                the volume list could not be fetched; nothing was emitted.
            GatherError: one or more volumes failed. Records for the other
                volumes, and capacity records of failed volumes, were emitted.
        """
        start_time = time.time()
        self.last_records_emitted = 0
        self.last_volume_failures = 0

        try:
            volumes = self._filter_volumes(self.datasource.list_volumes())
        except PureFAError as e:
            self.logger.error(f"Failed to list volumes on {self.config.base_url}: {e}")
            raise

        errors: List[VolumeError] = []
        for volume in volumes:
            try:
                self._emit(accumulator, capacity_record(volume))
                self._emit(accumulator, performance_record(self.datasource, volume))
            except PureFAError as e:
                self.logger.warning(f"Failed to gather volume {volume.name}: {e}")
                errors.append(VolumeError(volume.name, e))

        self.collections_completed += 1
        self.last_collection_time = time.time()
        self.last_volume_failures = len(errors)

        duration = self.last_collection_time - start_time
        self.logger.info(f"Gathered {self.last_records_emitted} records from {len(volumes)} volumes "
                         f"in {duration:.2f}s ({len(errors)} failed)")

        if errors:
            raise GatherError(errors)

    def get_statistics(self) -> Dict[str, Any]:
        """Get collection statistics."""
        return {
            'collections_completed': self.collections_completed,
            'last_collection_time': self.last_collection_time,
            'last_records_emitted': self.last_records_emitted,
            'last_volume_failures': self.last_volume_failures,
            'base_url': self.config.base_url,
        }

    def close(self) -> None:
        """Release the HTTP client."""
        self.datasource.cleanup()
        self.logger.info("Collector cleanup completed")
