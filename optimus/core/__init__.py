"""Core plumbing: errors, settings, project config and logging."""

from optimus.core.errors import (
    ArchiveIOError,
    ConfigError,
    NetworkError,
    OptimusError,
    ProtocolError,
    ServerRejected,
)

__all__ = [
    "ArchiveIOError",
    "ConfigError",
    "NetworkError",
    "OptimusError",
    "ProtocolError",
    "ServerRejected",
]
