"""
Configuration loading for the FlashArray collector.
"""

import os
import json
import logging
from typing import Optional, Dict, Any

import yaml

from ..core.config import PureFAConfig, DEFAULT_VEEAMSNAP_PATTERN
from ..core.errors import ConfigError
from ..utils import parse_duration, parse_bool

# Initialize logger
LOG = logging.getLogger(__name__)

# Environment variable -> settings attribute
ENV_VARIABLES = {
    'PUREFA_ARRAY': 'array',
    'PUREFA_API_TOKEN': 'api_token',
    'PUREFA_URL': 'url',
    'PUREFA_HTTP_TIMEOUT': 'http_timeout',
    'PUREFA_IGNORE_VEEAMSNAP': 'ignore_veeamsnap',
    'PUREFA_TLS_VALIDATION': 'tls_validation',
    'PUREFA_TLS_CA': 'tls_ca',
}


class Settings:
    """
    Configuration settings for one FlashArray.
    Supports loading from a YAML or JSON file, then environment variables.

    Example YAML:

        array: purefa1.example.com
        api_token: 55b0bf09-10b4-e54c-7db8-9fccc742e908
        http_timeout: 4s
        ignore_veeamsnap: true
    """

    def __init__(self, config_file: Optional[str] = None, from_env: bool = True):
        """
        Initialize settings from a config file or environment variables.

        Args:
            config_file: Path to YAML or JSON configuration file
            from_env: Whether to load settings from environment variables
        """
        self.array: str = ''
        self.api_token: str = ''
        self.url: str = ''
        self.http_timeout: float = 0.0
        self.ignore_veeamsnap: bool = False
        self.veeamsnap_pattern: str = DEFAULT_VEEAMSNAP_PATTERN
        self.tls_validation: str = 'strict'
        self.tls_ca: Optional[str] = None

        # Later sources override earlier ones
        if config_file:
            self._load_from_file(config_file)

        if from_env:
            self._load_from_env()

    def _load_from_file(self, config_file: str) -> None:
        """Load settings from a YAML or JSON file."""
        if not os.path.exists(config_file):
            raise ConfigError(f"Config file not found: {config_file}")

        lower = config_file.lower()
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                if lower.endswith('.yaml') or lower.endswith('.yml'):
                    config = yaml.safe_load(f)
                elif lower.endswith('.json'):
                    config = json.load(f)
                else:
                    raise ConfigError(f"Unsupported config file format: {config_file}")
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to parse {config_file}: {e}") from e

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ConfigError(f"{config_file} must contain a mapping at the top level")

        self.update(config)
        LOG.info(f"Loaded configuration from {config_file}")

    def _load_from_env(self) -> None:
        """Load settings from environment variables."""
        values = {attr: os.environ[name] for name, attr in ENV_VARIABLES.items() if name in os.environ}
        if values:
            self.update(values)
            LOG.debug(f"Loaded settings from environment: {sorted(values)}")

    def update(self, values: Dict[str, Any]) -> None:
        """Apply values from any source; None values are left alone."""
        for key in ('array', 'api_token', 'url', 'veeamsnap_pattern', 'tls_validation', 'tls_ca'):
            if key in values and values[key] is not None:
                setattr(self, key, str(values[key]))

        if values.get('http_timeout') is not None:
            try:
                self.http_timeout = parse_duration(values['http_timeout'])
            except ValueError as e:
                raise ConfigError(f"Invalid http_timeout: {e}") from e

        if values.get('ignore_veeamsnap') is not None:
            try:
                self.ignore_veeamsnap = parse_bool(values['ignore_veeamsnap'])
            except ValueError as e:
                raise ConfigError(f"Invalid ignore_veeamsnap: {e}") from e

    def to_config(self) -> PureFAConfig:
        """Validate the settings and build the immutable collector configuration.

        Raises:
            ConfigError: the settings are incomplete or invalid
        """
        return PureFAConfig(
            array=self.array,
            api_token=self.api_token,
            base_url=self.url,
            http_timeout=self.http_timeout,
            ignore_veeamsnap=self.ignore_veeamsnap,
            veeamsnap_pattern=self.veeamsnap_pattern,
            tls_validation=self.tls_validation,
            tls_ca=self.tls_ca or None,
        )
