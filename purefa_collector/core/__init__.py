"""Core collector package: configuration and the error taxonomy.

The orchestrator lives in core.collector and is imported from there, so
that the lower layers can depend on this package without a cycle.
"""

from .config import PureFAConfig
from .errors import (
    PureFAError, ConfigError, AuthError, UnexpectedStatusError,
    TransportError, DecodeError, VolumeError, GatherError
)

__all__ = ['PureFAConfig', 'PureFAError', 'ConfigError', 'AuthError', 'UnexpectedStatusError',
           'TransportError', 'DecodeError', 'VolumeError', 'GatherError']
