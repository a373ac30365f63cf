"""Exception hierarchy for the FlashArray collector."""

from typing import List, Optional


class PureFAError(Exception):
    """Base exception for all collector errors."""
    pass


class ConfigError(PureFAError):
    """Raised when the collector configuration is missing or invalid."""
    pass


class AuthError(PureFAError):
    """Raised when the array rejects the API token (HTTP 403)."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Pure Array responded with 403 [Forbidden] for {url}, verify your api_token")


class UnexpectedStatusError(PureFAError):
    """Raised when the array answers with a status other than 200 or 403."""

    def __init__(self, status_code: int, url: str = ''):
        self.status_code = status_code
        self.url = url
        super().__init__(f"Pure Array responded with unexpected status code {status_code} for {url}")


class TransportError(PureFAError):
    """Raised on network level failures: timeouts, refused connections, DNS, TLS."""
    pass


class DecodeError(PureFAError):
    """Raised when a response body is not the JSON shape we expect."""
    pass


class VolumeError(PureFAError):
    """A failure scoped to one volume during a poll."""

    def __init__(self, volume_name: str, cause: Exception):
        self.volume_name = volume_name
        self.cause = cause
        super().__init__(f"volume {volume_name}: {cause}")


class GatherError(PureFAError):
    """Raised at the end of a poll when one or more volumes failed.

    Records for the volumes that succeeded have already been emitted.
    """

    def __init__(self, errors: List[VolumeError]):
        self.errors = list(errors)
        summary = '; '.join(str(e) for e in self.errors)
        super().__init__(f"{len(self.errors)} volume(s) failed: {summary}")

    @property
    def first(self) -> Optional[VolumeError]:
        return self.errors[0] if self.errors else None
