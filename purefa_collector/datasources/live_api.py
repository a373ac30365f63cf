"""Live API DataSource implementation.

Collects data directly from the FlashArray REST API.
"""

import logging
import time
from typing import Dict, List, Optional, Any
from urllib.parse import quote

import requests
import urllib3

from .base import DataSource
from ..config.api_endpoints import API_ENDPOINTS, ENDPOINT_PARAMS
from ..core.config import PureFAConfig
from ..core.errors import AuthError, UnexpectedStatusError, TransportError
from ..schema.models import Volume, VolumePerformance, decode_volumes, decode_volume_performance

# Upper bound for one read of a response body
READ_CHUNK_SIZE = 64 * 1024


class LiveAPIDataSource(DataSource):
    """DataSource implementation for the live FlashArray REST API.

    This implementation handles:
    - one HTTP session, built once and reused for every poll
    - token authentication on every request
    - response status classification into collector errors
    """

    def __init__(self, config: PureFAConfig, session: Optional[requests.Session] = None):
        super().__init__(config)
        self.logger = logging.getLogger(__name__)

        # Bounds connect and the wait for headers; the body read is checked against http_timeout
        self.timeout = urllib3.Timeout(total=config.http_timeout, read=config.read_timeout)
        self.session = session if session is not None else self._create_session()

    def _create_session(self) -> requests.Session:
        """Create the HTTP client with TLS and auth configuration."""
        session = requests.Session()

        if self.config.tls_validation == 'none':
            session.verify = False
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
            self.logger.warning("TLS validation is DISABLED for the FlashArray API. This is insecure.")
        else:
            session.verify = self.config.tls_ca if self.config.tls_ca else True

        session.headers.update({
            'Authorization': f"Token {self.config.api_token}",
            'Accept': 'application/json',
        })
        self.logger.info(f"HTTP client created for {self.config.base_url} "
                         f"(timeout {self.config.http_timeout}s, header wait {self.config.read_timeout}s)")
        return session

    def list_volumes(self) -> List[Volume]:
        """GET {base_url}/volume and decode the volume list."""
        return decode_volumes(self._call_api('volumes'))

    def volume_performance(self, volume_name: str) -> VolumePerformance:
        """GET {base_url}/volume/{name}?action=monitor and decode the sample."""
        # Volume group (vg/vol) and pod (pod::vol) names go into the path as-is
        body = self._call_api('volume_monitor', name=quote(volume_name, safe='/:'))
        return decode_volume_performance(body, volume_name)

    def _call_api(self, endpoint_key: str, **path_args: Any) -> bytes:
        """Issue an authenticated GET and return the body if the status is 200.

        The whole exchange, body included, must finish within http_timeout.
        The response is closed on every exit path.

        Raises:
            TransportError: the request did not complete in time
            AuthError: the array answered 403
            UnexpectedStatusError: any other non-200 status
        """
        url = f"{self.config.base_url}/{API_ENDPOINTS[endpoint_key].format(**path_args)}"
        params: Optional[Dict[str, str]] = ENDPOINT_PARAMS.get(endpoint_key)

        self.logger.debug(f"GET {url} params={params}")
        deadline = time.monotonic() + self.config.http_timeout
        try:
            response = self.session.get(url, params=params, timeout=self.timeout, stream=True)
        except requests.RequestException as e:
            raise TransportError(f"request to {url} failed: {e}") from e

        try:
            # Successful responses will always return status code 200
            if response.status_code != 200:
                if response.status_code == 403:
                    raise AuthError(url)
                raise UnexpectedStatusError(response.status_code, url)
            return self._read_body(response, url, deadline)
        finally:
            response.close()

    def _read_body(self, response: requests.Response, url: str, deadline: float) -> bytes:
        """Drain the body one socket read at a time, checking the deadline after each."""
        chunks = []
        try:
            while True:
                chunk = response.raw.read1(READ_CHUNK_SIZE, decode_content=True)
                if not chunk:
                    break
                chunks.append(chunk)
                if time.monotonic() > deadline:
                    raise TransportError(
                        f"request to {url} exceeded http_timeout of {self.config.http_timeout}s")
        except (requests.RequestException, urllib3.exceptions.HTTPError) as e:
            raise TransportError(f"reading response from {url} failed: {e}") from e
        return b''.join(chunks)

    def cleanup(self) -> None:
        """Close the HTTP session."""
        if self.session is not None:
            self.session.close()
            self.logger.info("API session closed")
