"""Core configuration classes for the collector."""

import re
from dataclasses import dataclass, field
from typing import Dict, Any, Optional

from .errors import ConfigError

# FlashArray REST API version the collector is pinned to
API_VERSION = '1.15'

# Seconds
DEFAULT_HTTP_TIMEOUT = 4.0
RESPONSE_HEADER_TIMEOUT = 3.0

# Veeam names the volume copies it mounts from array snapshots VEEAM-<...>
DEFAULT_VEEAMSNAP_PATTERN = r'^VEEAM-'

TLS_VALIDATION_MODES = ('strict', 'none')


@dataclass(frozen=True)
class PureFAConfig:
    """Validated, immutable configuration for one FlashArray.

    Built once at startup. Missing values are derived in __post_init__:
    base_url from the array address and http_timeout from the default.
    """

    array: str = ''
    api_token: str = field(default='', repr=False)
    base_url: str = ''
    http_timeout: Optional[float] = None  # seconds, total per request

    # Drop Veeam snapshot copies from the volume list before extraction
    ignore_veeamsnap: bool = False
    veeamsnap_pattern: str = DEFAULT_VEEAMSNAP_PATTERN

    tls_validation: str = 'strict'  # 'strict' or 'none'
    tls_ca: Optional[str] = None

    def __post_init__(self):
        """Validate configuration and fill defaults."""
        if not self.api_token:
            raise ConfigError("You must specify an API Token")

        if self.base_url:
            object.__setattr__(self, 'base_url', self.base_url.rstrip('/'))
        elif self.array:
            object.__setattr__(self, 'base_url', f"https://{self.array}/api/{API_VERSION}")
        else:
            raise ConfigError("You must specify the array address or a base URL")

        if not self.http_timeout:
            object.__setattr__(self, 'http_timeout', DEFAULT_HTTP_TIMEOUT)
        elif self.http_timeout < 0:
            raise ConfigError(f"http_timeout must be positive, got {self.http_timeout}")

        if self.tls_validation not in TLS_VALIDATION_MODES:
            raise ConfigError(f"tls_validation must be one of {list(TLS_VALIDATION_MODES)}")

        try:
            re.compile(self.veeamsnap_pattern)
        except re.error as e:
            raise ConfigError(f"Invalid veeamsnap_pattern {self.veeamsnap_pattern!r}: {e}") from e

    @property
    def read_timeout(self) -> float:
        """Time allowed to wait for the response headers, never above the total."""
        return min(RESPONSE_HEADER_TIMEOUT, self.http_timeout)

    def is_veeam_snapshot(self, volume_name: str) -> bool:
        return re.search(self.veeamsnap_pattern, volume_name, re.IGNORECASE) is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a dictionary, with the token redacted."""
        return {
            'array': self.array,
            'api_token': '[REDACTED]',
            'base_url': self.base_url,
            'http_timeout': self.http_timeout,
            'ignore_veeamsnap': self.ignore_veeamsnap,
            'veeamsnap_pattern': self.veeamsnap_pattern,
            'tls_validation': self.tls_validation,
            'tls_ca': self.tls_ca,
        }
