"""
Centralized API endpoint definitions for the FlashArray collector.

Paths are relative to the configured base URL (https://<array>/api/1.15).
"""

API_ENDPOINTS = {
    # Volume inventory and sizing
    'volumes': 'volume',

    # Per-volume real-time performance sample
    'volume_monitor': 'volume/{name}',
}

# Query parameters sent along with an endpoint
ENDPOINT_PARAMS = {
    'volume_monitor': {'action': 'monitor'},
}
