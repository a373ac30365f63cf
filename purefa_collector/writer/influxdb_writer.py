"""
InfluxDB writer for the FlashArray collector.
Writes metric records to InfluxDB 3.x using the client's background batching.

Note: the batching setup follows batching_example.py from the https://github.com/InfluxCommunity/influxdb3-python project
License: Apache License, Version 2.0, January 2004 (http://www.apache.org/licenses/)
"""

import logging
import os
import time
from typing import Dict, Any, Optional

from influxdb_client_3 import InfluxDBClient3, Point, WritePrecision, WriteOptions, write_client_options
from influxdb_client_3.exceptions.exceptions import InfluxDBError

from .base import Accumulator

LOG = logging.getLogger(__name__)


class BatchingCallback(object):
    """
    Callback handler for batched InfluxDB writes.

    Tracks write success/failure statistics and provides timing information
    for performance monitoring and debugging.
    """

    def __init__(self):
        self.write_status_msg = None
        self.write_count = 0
        self.error_count = 0
        self.retry_count = 0
        self.start = time.time_ns()

    def success(self, conf, data: str):
        """Called when a batch write succeeds."""
        self.write_count += 1
        self.write_status_msg = f"SUCCESS: {self.write_count} batches written"
        LOG.debug(f"Batch write successful: {len(data)} bytes")

    def error(self, conf, data: str, exception: InfluxDBError):
        """Called when a batch write fails permanently."""
        self.error_count += 1
        self.write_status_msg = f"FAILURE: {exception}"
        LOG.error(f"Batch write failed: {len(data)} bytes, error: {exception}")

    def retry(self, conf, data: str, exception: InfluxDBError):
        """Called when a batch write fails but will be retried."""
        self.retry_count += 1
        LOG.warning(f"Batch write retry {self.retry_count}: {len(data)} bytes, error: {exception}")

    def elapsed_ms(self) -> int:
        """Get elapsed time in milliseconds."""
        return (time.time_ns() - self.start) // 1_000_000

    def get_stats(self) -> Dict[str, Any]:
        """Get write statistics."""
        return {
            'writes': self.write_count,
            'errors': self.error_count,
            'retries': self.retry_count,
            'elapsed_ms': self.elapsed_ms(),
            'status': self.write_status_msg
        }


class InfluxDBWriter(Accumulator):
    """
    Accumulator implementation for InfluxDB 3.x.

    Each add_fields call becomes one Point with second precision. Points
    are handed to the client, which batches them in the background.
    """

    def __init__(self, config: Dict[str, Any], client: Optional[InfluxDBClient3] = None):
        """Initialize InfluxDB writer with configuration."""
        self.url = config.get('influxdb_url') or os.getenv('INFLUXDB_URL', 'https://influxdb:8181')
        self.token = config.get('influxdb_token') or os.getenv('INFLUXDB_TOKEN', '')
        self.database = config.get('influxdb_database') or os.getenv('INFLUXDB_DATABASE', 'purefa')
        self.tls_ca = config.get('tls_ca')

        self.batch_size = config.get('batch_size', 500)
        self.flush_interval = config.get('flush_interval', 60_000)  # ms, matches the default poll interval

        self.batch_callback = BatchingCallback()
        self.points_submitted = 0

        self.client = client if client is not None else self._initialize_client()
        LOG.info(f"InfluxDBWriter initialized: {self.url} -> {self.database}")

    def _initialize_client(self) -> InfluxDBClient3:
        """Initialize the InfluxDB client with batching and TLS configuration."""
        write_options = WriteOptions(
            batch_size=self.batch_size,
            flush_interval=self.flush_interval,
            jitter_interval=2_000,       # 2 seconds
            retry_interval=5_000,        # 5 seconds
            max_retries=2,
            max_retry_delay=15_000,      # 15 seconds
            max_close_wait=60_000,       # 60 seconds
            exponential_base=2
        )

        wco = write_client_options(
            success_callback=self.batch_callback.success,
            error_callback=self.batch_callback.error,
            retry_callback=self.batch_callback.retry,
            write_options=write_options
        )

        client_kwargs = {
            'host': self.url,
            'database': self.database,
            'token': self.token,
            'enable_gzip': True,
            'write_client_options': wco,
            'verify_ssl': True,  # InfluxDB always uses strict TLS validation
            'timeout': 60000  # milliseconds
        }

        ca_cert_path = self.tls_ca or os.getenv('INFLUXDB3_TLS_CA')
        if ca_cert_path and os.path.exists(ca_cert_path):
            LOG.info(f"Using custom CA certificate: {ca_cert_path}")
            client_kwargs['ssl_ca_cert'] = ca_cert_path
        elif ca_cert_path:
            LOG.warning(f"CA certificate path specified but file not found: {ca_cert_path}")

        try:
            client = InfluxDBClient3(**client_kwargs)
        except Exception as e:
            LOG.error(f"Failed to create InfluxDB client: {e}")
            raise
        LOG.info(f"InfluxDB client created with strict TLS validation to {self.url}")
        return client

    def _to_point(self, measurement: str, fields: Dict[str, Any], tags: Dict[str, str],
                  timestamp: int) -> Optional[Point]:
        point = Point(measurement)
        for tag_key, tag_value in tags.items():
            if tag_value is not None:
                point = point.tag(tag_key, self._sanitize_tag_value(str(tag_value)))

        field_count = 0
        for field_key, field_value in fields.items():
            if field_value is not None:
                point = point.field(field_key, field_value)
                field_count += 1

        if field_count == 0:
            return None
        return point.time(timestamp, WritePrecision.S)

    def add_fields(self, measurement: str, fields: Dict[str, Any], tags: Dict[str, str]) -> None:
        """Convert the record to a Point and submit it to the batching client."""
        point = self._to_point(measurement, fields, tags, int(time.time()))
        if point is None:
            LOG.debug(f"Skipping {measurement} {tags}: no fields")
            return

        try:
            self.client.write(record=point)
            self.points_submitted += 1
        except Exception as e:
            LOG.error(f"Failed to write point for {measurement} {tags}: {e}")

    def flush(self) -> None:
        """Ask the client's write API to send its current batch now."""
        write_api = getattr(self.client, '_write_api', None)
        if write_api is not None and hasattr(write_api, 'flush'):
            try:
                write_api.flush()
                LOG.debug("InfluxDB write_api flushed")
            except Exception as e:
                LOG.warning(f"Failed to flush InfluxDB client: {e}")

    def _sanitize_tag_value(self, value: str) -> str:
        """Sanitize tag values to avoid InfluxDB line protocol issues."""
        sanitized = ' '.join(value.split())
        if not sanitized:
            return 'unknown'
        return sanitized.replace('\n', '_').replace('\r', '_')

    def get_batch_stats(self) -> Dict[str, Any]:
        """Get batching statistics from the client's automatic batching."""
        stats = self.batch_callback.get_stats()
        stats['points_submitted'] = self.points_submitted
        return stats

    def close(self, timeout_seconds: int = 90) -> None:
        """Flush pending batches and close the client."""
        LOG.info(f"Closing InfluxDB writer ({self.points_submitted} points submitted)")
        try:
            self.client.close()
        except Exception as e:
            LOG.warning(f"Error closing InfluxDB client: {e}")
        LOG.info(f"InfluxDB batch statistics: {self.get_batch_stats()}")
