"""
Exception types shared by the aggregator, the profile backend and the routes
"""

from typing import Optional


class AniportalError(Exception):
    """Base class for all application errors"""


class UpstreamError(AniportalError):
    """The metadata API could not produce a usable answer"""


class UpstreamUnavailableError(UpstreamError):
    """Transport failure: connection refused, timeout, DNS..."""


class UpstreamStatusError(UpstreamError):
    """Upstream answered with a non-2xx status"""

    def __init__(self, status_code: int, url: str):
        super().__init__(f"Upstream returned HTTP {status_code} for {url}")
        self.status_code = status_code
        self.url = url


class UpstreamParseError(UpstreamError):
    """Upstream body is not JSON or lacks the expected envelope"""


class InsufficientPagesError(UpstreamError):
    """Upstream has fewer pages than a fan-out asked for"""

    def __init__(self, requested: int, available: int, path: str):
        super().__init__(
            f"{path} has {available} page(s), {requested} were requested"
        )
        self.requested = requested
        self.available = available


class NotFoundError(AniportalError):
    """No record matches the requested id, genre or keyword"""


class BackendError(AniportalError):
    """Auth/profile backend failure"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthError(BackendError):
    """Missing, invalid or expired credentials"""


class ProfileNotFoundError(BackendError):
    """The profile row does not exist for the user id"""


class EmailNotConfirmedError(AuthError):
    """Credentials are right but the signup mail was never confirmed"""
