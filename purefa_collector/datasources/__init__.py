"""DataSource implementations."""

from .base import DataSource
from .live_api import LiveAPIDataSource

__all__ = ['DataSource', 'LiveAPIDataSource']
