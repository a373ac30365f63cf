import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union, Any

from .base_model import BaseModel
from ..core.errors import DecodeError

LOG = logging.getLogger(__name__)

MEASUREMENT = 'purefa'

Number = Union[int, float]


@dataclass
class Volume(BaseModel):
    """
    One entry of GET /api/1.15/volume

    {
        "created": "2020-01-01T10:00:00Z",
        "name": "vol1",
        "serial": "8A1B2C3D4E5F60718293A4B5",
        "size": 1073741824
    }
    created and serial read as an empty string when absent or null.
    """
    name: str
    size: int
    created: str = ''
    serial: str = ''


@dataclass
class VolumePerformance(BaseModel):
    """
    One sample of GET /api/1.15/volume/{name}?action=monitor

    [
        {
            "name": "vol1",
            "time": "2020-01-01T10:00:00Z",
            "reads_per_sec": 120,
            "writes_per_sec": 48,
            "input_per_sec": 196608,
            "output_per_sec": 491520,
            "usec_per_read_op": 210,
            "usec_per_write_op": 340
        }
    ]
    Counters missing from a firmware's response stay None.
    """
    name: str
    time: Optional[str] = None
    reads_per_sec: Optional[Number] = None
    writes_per_sec: Optional[Number] = None
    input_per_sec: Optional[Number] = None
    output_per_sec: Optional[Number] = None
    usec_per_read_op: Optional[Number] = None
    usec_per_write_op: Optional[Number] = None

    COUNTERS = (
        'reads_per_sec', 'writes_per_sec',
        'input_per_sec', 'output_per_sec',
        'usec_per_read_op', 'usec_per_write_op',
    )

    def counters(self) -> Dict[str, Number]:
        """Counters reported by the array, skipping the absent ones."""
        return {name: getattr(self, name) for name in self.COUNTERS if getattr(self, name) is not None}


@dataclass
class MetricRecord:
    """A tagged field set handed to the accumulator."""
    measurement: str
    tags: Dict[str, str] = field(default_factory=dict)
    fields: Dict[str, Any] = field(default_factory=dict)


def _load_json(body: Union[bytes, str], what: str) -> Any:
    try:
        return json.loads(body)
    except (ValueError, TypeError) as e:
        raise DecodeError(f"unable to decode Pure {what} response: {e}") from e


def decode_volumes(body: Union[bytes, str]) -> List[Volume]:
    """Parse the body of the volume list into Volume records.

    An empty array is a valid answer from an array without volumes.
    """
    data = _load_json(body, 'volume')
    if not isinstance(data, list):
        raise DecodeError(f"unable to decode Pure volume response: expected a JSON array, got {type(data).__name__}")

    volumes = [Volume.from_api_response(item) for item in data]
    LOG.debug(f"Decoded {len(volumes)} volumes")
    return volumes


def decode_volume_performance(body: Union[bytes, str], volume_name: str) -> VolumePerformance:
    """Parse a monitor response. The API answers with a one-element array."""
    data = _load_json(body, f"monitor ({volume_name})")
    if isinstance(data, list):
        if not data:
            raise DecodeError(f"unable to decode Pure monitor response for {volume_name}: empty array")
        data = data[0]
    return VolumePerformance.from_api_response(data)
