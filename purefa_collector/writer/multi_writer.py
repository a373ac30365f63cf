"""
Multi-writer for the FlashArray collector.
Supports writing to multiple destinations simultaneously (e.g., InfluxDB + Prometheus).
"""

import logging
from typing import Dict, Any, List

from .base import Accumulator

# Initialize logger
LOG = logging.getLogger(__name__)


class MultiWriter(Accumulator):
    """
    Composite accumulator that hands every record to each of its writers.
    A writer that raises is logged and does not keep the others from receiving the record.
    """

    def __init__(self, writers: List[Accumulator]):
        self.writers = writers
        LOG.info(f"MultiWriter initialized with {len(writers)} writers: {[type(w).__name__ for w in writers]}")

    def add_fields(self, measurement: str, fields: Dict[str, Any], tags: Dict[str, str]) -> None:
        for writer in self.writers:
            try:
                writer.add_fields(measurement, fields, tags)
            except Exception as e:
                LOG.error(f"Exception in {type(writer).__name__}: {e}", exc_info=True)

    def flush(self) -> None:
        for writer in self.writers:
            try:
                writer.flush()
            except Exception as e:
                LOG.error(f"Error flushing {type(writer).__name__}: {e}", exc_info=True)

    def close(self, timeout_seconds: int = 90) -> None:
        """Close all sub-writers."""
        LOG.info("Closing MultiWriter and all sub-writers...")

        for writer in self.writers:
            writer_name = type(writer).__name__
            try:
                writer.close(timeout_seconds=timeout_seconds)
                LOG.info(f"{writer_name} closed successfully")
            except Exception as e:
                LOG.error(f"Error closing {writer_name}: {e}", exc_info=True)

    def __str__(self) -> str:
        writer_names = [type(w).__name__ for w in self.writers]
        return f"MultiWriter({', '.join(writer_names)})"

    def __repr__(self) -> str:
        return self.__str__()
