"""Error taxonomy for the submission pipeline.

Every error is fatal to the current run. Components translate library
exceptions (httpx, OSError, YAML, pydantic) into one of these at their
boundary so the CLI only has to catch OptimusError.

Non-approval and a declined confirmation are not errors; the orchestrator
reports them as ABORTED outcomes.
"""

from typing import Optional


class OptimusError(Exception):
    """Base class for all fatal pipeline errors."""


class ConfigError(OptimusError):
    """Missing or invalid configuration, or an unsupported archive format."""


class ArchiveIOError(OptimusError):
    """Filesystem read/write failure while building or reading the archive."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


class NetworkError(OptimusError):
    """Transport-level failure or timeout on any remote call."""

    def __init__(self, url: str, message: str, cause: Optional[Exception] = None):
        self.url = url
        self.cause = cause
        super().__init__(f"Request to {url} failed: {message}")


class ProtocolError(OptimusError):
    """The server answered, but the body is not in the expected shape."""


class ServerRejected(OptimusError):
    """The server answered with a non-success status.

    Carries the status code and raw body so the operator can diagnose the
    rejection without re-running with extra logging.
    """

    def __init__(self, status_code: int, body: str, url: str = ""):
        self.status_code = status_code
        self.body = body
        self.url = url
        detail = body.strip() or "<empty body>"
        super().__init__(f"Server rejected request (status {status_code}): {detail}")
