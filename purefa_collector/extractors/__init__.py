"""Per-volume metric extractors."""

from .capacity import capacity_record
from .performance import performance_record, performance_record_from_sample

__all__ = ['capacity_record', 'performance_record', 'performance_record_from_sample']
