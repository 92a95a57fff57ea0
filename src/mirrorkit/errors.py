"""Error taxonomy shared by the fetcher, replacer and configuration layers."""

from __future__ import annotations

from pathlib import Path


class MirrorError(Exception):
    """Base class for all mirrorkit failures."""


class ArgumentError(MirrorError, ValueError):
    """Raised for an unsupported call shape, before any I/O happens."""


class ResourceError(MirrorError, ValueError):
    """Raised when a resource reference cannot be parsed or resolved."""

    def __init__(self, message: str, *, resource: str) -> None:
        super().__init__(message)
        self.resource = resource


class TransportError(MirrorError):
    """Network-level failure while talking to the remote server.

    ``destination`` is the path that had already been resolved when the
    failure happened, so callers can still report a meaningful name.
    """

    def __init__(self, message: str, *, url: str, destination: Path | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.destination = destination


class ResourceNotFoundError(TransportError):
    """The server answered 404 for the requested resource."""


class FilesystemError(MirrorError, OSError):
    """Creating, renaming or removing a local file failed."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class ReplaceError(FilesystemError):
    """A replacement transaction failed and was rolled back."""

    def __init__(
        self,
        message: str,
        *,
        phase: str,
        source: Path,
        destination: Path,
        rollback_errors: list[OSError] | None = None,
    ) -> None:
        super().__init__(message, path=destination)
        self.phase = phase
        self.source = source
        self.destination = destination
        self.rollback_errors: list[OSError] = list(rollback_errors or [])


class MetadataParseError(MirrorError, ValueError):
    """A response header (Last-Modified, Content-Disposition) is malformed."""

    def __init__(self, message: str, *, header: str, value: str | None) -> None:
        super().__init__(message)
        self.header = header
        self.value = value


class ConfigError(MirrorError):
    """Raised when configuration files cannot be loaded or validated."""


__all__ = [
    "ArgumentError",
    "ConfigError",
    "FilesystemError",
    "MetadataParseError",
    "MirrorError",
    "ReplaceError",
    "ResourceError",
    "ResourceNotFoundError",
    "TransportError",
]
