"""
Base writer interface for the FlashArray collector.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Any

# Initialize logger
LOG = logging.getLogger(__name__)


class Accumulator(ABC):
    """
    Sink that accepts one tagged field set at a time.

    This is the only thing the collector needs from an output: it calls
    add_fields once per metric record and never looks at a return value.
    Buffering and delivery are the implementation's business.
    """

    @abstractmethod
    def add_fields(self, measurement: str, fields: Dict[str, Any], tags: Dict[str, str]) -> None:
        """
        Accept one metric record.

        Args:
            measurement: Measurement name, e.g. "purefa"
            fields: Field name -> numeric or string value
            tags: Tag name -> string value
        """
        pass

    def flush(self) -> None:
        """Push out anything buffered. Called by the run loop after each poll."""
        pass

    def close(self, timeout_seconds: int = 90) -> None:
        """
        Optional method to close the writer and clean up resources.
        Default implementation does nothing - override in subclasses that need cleanup.

        Args:
            timeout_seconds: Timeout for cleanup operations
        """
        pass
