"""Hashing helpers for reporting and verifying fetched files."""

from __future__ import annotations

import hashlib
from pathlib import Path


def sha256sum(path: Path, *, chunk_size: int = 65536) -> str:
    """Return the SHA-256 hex digest for `path`."""
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


__all__ = ["sha256sum"]
