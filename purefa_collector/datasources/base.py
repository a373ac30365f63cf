"""Base DataSource interface."""

from abc import ABC, abstractmethod
from typing import List

from ..core.config import PureFAConfig
from ..schema.models import Volume, VolumePerformance


class DataSource(ABC):
    """Abstract base class for the places volume data can come from.

    The collector only talks to this interface, so tests and alternative
    transports can stand in for the live REST API.
    """

    def __init__(self, config: PureFAConfig):
        self.config = config

    @abstractmethod
    def list_volumes(self) -> List[Volume]:
        """Return the current volumes, in the order the array lists them."""
        pass

    @abstractmethod
    def volume_performance(self, volume_name: str) -> VolumePerformance:
        """Return the latest performance sample for one volume."""
        pass

    def cleanup(self) -> None:
        """Release any resources held by the data source."""
        pass
