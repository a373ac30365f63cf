"""
Writer factory for the FlashArray collector.
"""

import logging

from .base import Accumulator
from .influxdb_writer import InfluxDBWriter
from .prometheus_writer import PrometheusWriter
from .multi_writer import MultiWriter

# Initialize logger
LOG = logging.getLogger(__name__)


class WriterFactory:
    """
    Factory for creating writer instances based on configuration.
    """

    @staticmethod
    def _prometheus_config(writer_config) -> dict:
        return {'prometheus_port': writer_config.prometheus_port}

    @staticmethod
    def create_writer_from_config(writer_config) -> Accumulator:
        """
        Create a writer based on WriterConfig object.

        Args:
            writer_config: WriterConfig instance with writer settings

        Returns:
            Appropriate Accumulator instance
        """
        output_choice = writer_config.output_format

        if output_choice == 'prometheus':
            LOG.info("Creating Prometheus writer from WriterConfig")
            return PrometheusWriter(WriterFactory._prometheus_config(writer_config))

        elif output_choice == 'influxdb':
            LOG.info(f"Creating InfluxDB writer with URL: {writer_config.influxdb_url}, database: {writer_config.influxdb_database}")
            return InfluxDBWriter(writer_config.to_dict())

        elif output_choice == 'both':
            writers = [
                InfluxDBWriter(writer_config.to_dict()),
                PrometheusWriter(WriterFactory._prometheus_config(writer_config)),
            ]
            return MultiWriter(writers)

        else:
            LOG.error(f"Unknown output format: {output_choice}")
            raise ValueError(f"Unsupported output format: {output_choice}")
