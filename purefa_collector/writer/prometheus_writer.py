"""
Dynamic Prometheus exporter writer for the FlashArray collector.
Creates one gauge per measurement/field pair the first time it is seen.
"""

import logging
import math
import re
import threading
from typing import Dict, Any, Optional, Set, Tuple

from prometheus_client import Gauge, CollectorRegistry, start_http_server, generate_latest

from .base import Accumulator

# Initialize logger
LOG = logging.getLogger(__name__)


class PrometheusWriter(Accumulator):
    """
    Prometheus writer that exposes every numeric field as a gauge.

    Metric names are <measurement>_<field>, tags become labels. String
    fields (serial, created) have no place in a gauge and are skipped.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize Prometheus Writer.

        Args:
            config: Optional configuration dictionary
        """
        config = config or {}

        self.port = config.get('prometheus_port', 8000)
        self.start_server = config.get('start_server', True)

        # Separate registry per writer, so tests and embedders do not share global state
        self.prometheus_registry = CollectorRegistry()

        # Metrics created on demand, keyed by metric name
        self.dynamic_metrics: Dict[str, Tuple[Gauge, Tuple[str, ...]]] = {}

        # Label values set since the last flush, and those exported by the previous poll
        self.poll_series: Dict[str, Set[Tuple[str, ...]]] = {}
        self.exported_series: Dict[str, Set[Tuple[str, ...]]] = {}

        # Server management
        self.server_lock = threading.Lock()
        self.server_started = False

        LOG.info("PrometheusWriter initialized with dynamic metric generation")

    def _sanitize_label_value(self, value: Any) -> str:
        """Sanitize label values to avoid Prometheus metric issues."""
        if value is None:
            return 'unknown'

        value_str = str(value).strip()
        if not value_str:
            return 'unknown'

        return value_str.replace('\n', '_').replace('\r', '_')

    def _sanitize_metric_name(self, measurement: str, field_name: str) -> str:
        """Create a valid Prometheus metric name from measurement and field names."""
        metric_name = f"{measurement}_{field_name}".lower()
        metric_name = re.sub(r'[^a-z0-9_]', '_', metric_name)
        metric_name = re.sub(r'_{2,}', '_', metric_name).strip('_')

        # Ensure it starts with a letter
        if metric_name[:1].isdigit():
            metric_name = f"metric_{metric_name}"

        return metric_name

    def _get_metric_help_text(self, measurement: str, field_name: str) -> str:
        """Generate helpful description for the metric."""
        field_lower = field_name.lower()
        if field_lower.startswith('usec_per_'):
            suffix = ' in microseconds'
        elif field_lower in ('input_per_sec', 'output_per_sec'):
            suffix = ' in bytes per second'
        elif field_lower.endswith('_per_sec'):
            suffix = ' in operations per second'
        elif field_lower == 'size':
            suffix = ' in bytes'
        else:
            suffix = ''
        return f"{measurement} {field_name.replace('_', ' ')}{suffix}"

    def _get_or_create_metric(self, measurement: str, field_name: str,
                              label_names: Tuple[str, ...]) -> Optional[Gauge]:
        """Get or create a Prometheus gauge for a specific field."""
        metric_name = self._sanitize_metric_name(measurement, field_name)

        if metric_name in self.dynamic_metrics:
            gauge, known_labels = self.dynamic_metrics[metric_name]
            if known_labels != label_names:
                LOG.warning(f"Label set {label_names} does not match {known_labels} for {metric_name}, skipping")
                return None
            return gauge

        gauge = Gauge(
            metric_name,
            self._get_metric_help_text(measurement, field_name),
            list(label_names),
            registry=self.prometheus_registry
        )
        self.dynamic_metrics[metric_name] = (gauge, label_names)
        LOG.debug(f"Created new metric: {metric_name} with labels: {list(label_names)}")
        return gauge

    def _start_prometheus_server(self):
        """Start the Prometheus HTTP server if not already started."""
        with self.server_lock:
            if not self.server_started:
                try:
                    start_http_server(self.port, registry=self.prometheus_registry)
                    self.server_started = True
                    LOG.info(f"Prometheus metrics server started on port {self.port}")
                except Exception as e:
                    LOG.error(f"Failed to start Prometheus server on port {self.port}: {e}")
                    raise

    def add_fields(self, measurement: str, fields: Dict[str, Any], tags: Dict[str, str]) -> None:
        """Set a gauge for every numeric field of the record."""
        if self.start_server and not self.server_started:
            self._start_prometheus_server()

        label_names = tuple(sorted(tags))
        labels = {name: self._sanitize_label_value(tags[name]) for name in label_names}

        metrics_set = 0
        for field_name, field_value in fields.items():
            # Skip non-numeric fields; bool is an int subclass but not a measurement
            if isinstance(field_value, bool) or not isinstance(field_value, (int, float)):
                continue
            if isinstance(field_value, float) and math.isnan(field_value):
                continue

            gauge = self._get_or_create_metric(measurement, field_name, label_names)
            if gauge is None:
                continue
            if label_names:
                gauge.labels(**labels).set(float(field_value))
                metric_name = self._sanitize_metric_name(measurement, field_name)
                self.poll_series.setdefault(metric_name, set()).add(tuple(labels[name] for name in label_names))
            else:
                gauge.set(float(field_value))
            metrics_set += 1

        LOG.debug(f"Set {metrics_set} gauges for {measurement} {labels}")

    def flush(self) -> None:
        """End of a poll: drop series that were not set since the previous flush.

        A volume that is gone or did not report in this poll stops being
        exported instead of repeating its last value.
        """
        removed = 0
        for metric_name, series in self.exported_series.items():
            gauge = self.dynamic_metrics[metric_name][0]
            for label_values in series - self.poll_series.get(metric_name, set()):
                gauge.remove(*label_values)
                removed += 1

        self.exported_series = self.poll_series
        self.poll_series = {}
        if removed:
            LOG.info(f"Removed {removed} stale series")

    def render(self) -> str:
        """Current metrics in the Prometheus text exposition format."""
        return generate_latest(self.prometheus_registry).decode('utf-8')

    def close(self, timeout_seconds: int = 90) -> None:
        """Close the writer. The exposition server thread is a daemon and exits with the process."""
        LOG.info("PrometheusWriter closed")
