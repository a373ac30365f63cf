"""Writer configuration abstraction.

Separates writer-specific configuration from the array configuration.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any

from .errors import ConfigError

OUTPUT_FORMATS = ('influxdb', 'prometheus', 'both')


@dataclass
class WriterConfig:
    """Configuration specific to output writers."""

    output_format: str = 'influxdb'  # 'influxdb', 'prometheus', 'both'

    # InfluxDB-specific configuration (only populated if needed)
    influxdb_url: Optional[str] = None
    influxdb_token: Optional[str] = None
    influxdb_database: Optional[str] = None
    tls_ca: Optional[str] = None

    # Prometheus-specific configuration (only populated if needed)
    prometheus_port: int = 8000

    def __post_init__(self):
        """Validate writer configuration after initialization."""
        if self.output_format not in OUTPUT_FORMATS:
            raise ConfigError(f"output_format must be one of {list(OUTPUT_FORMATS)}")

        if self.output_format in ['influxdb', 'both']:
            for field in ['influxdb_url', 'influxdb_token', 'influxdb_database']:
                if not getattr(self, field):
                    raise ConfigError(f"{field} required for InfluxDB output (output_format={self.output_format})")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for writer initialization."""
        config: Dict[str, Any] = {'output_format': self.output_format}

        if self.output_format in ['influxdb', 'both']:
            config.update({
                'influxdb_url': self.influxdb_url,
                'influxdb_token': self.influxdb_token,
                'influxdb_database': self.influxdb_database,
                'tls_ca': self.tls_ca,
            })

        if self.output_format in ['prometheus', 'both']:
            config['prometheus_port'] = self.prometheus_port

        return config

    @classmethod
    def from_args(cls, args) -> 'WriterConfig':
        """Create WriterConfig directly from command line arguments."""
        return cls(
            output_format=getattr(args, 'output', 'influxdb'),
            influxdb_url=getattr(args, 'influxdb_url', None),
            influxdb_token=getattr(args, 'influxdb_token', None),
            influxdb_database=getattr(args, 'influxdb_database', None),
            tls_ca=getattr(args, 'influxdb_tls_ca', None),
            prometheus_port=getattr(args, 'prometheus_port', 8000),
        )
