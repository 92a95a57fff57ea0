"""Fetch remote files and commit them to disk without ever leaving a half-written copy."""

from mirrorkit.errors import (
    ArgumentError,
    ConfigError,
    FilesystemError,
    MetadataParseError,
    MirrorError,
    ReplaceError,
    ResourceError,
    ResourceNotFoundError,
    TransportError,
)
from mirrorkit.io.fetcher import CachedFetcher, fetch_file
from mirrorkit.io.replace import ReplaceTransaction, replace_files

__version__ = "0.1.0"

__all__ = [
    "ArgumentError",
    "CachedFetcher",
    "ConfigError",
    "FilesystemError",
    "MetadataParseError",
    "MirrorError",
    "ReplaceError",
    "ReplaceTransaction",
    "ResourceError",
    "ResourceNotFoundError",
    "TransportError",
    "fetch_file",
    "replace_files",
]
