"""Conditional HTTP download committed through a rollback-capable replace."""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Optional
from urllib.parse import SplitResult, unquote, urljoin, urlsplit

import requests

from mirrorkit.config.models import HttpConfig
from mirrorkit.errors import (
    ArgumentError,
    FilesystemError,
    MetadataParseError,
    ResourceError,
    ResourceNotFoundError,
    TransportError,
)
from mirrorkit.io.headers import (
    CONTENT_DISPOSITION,
    IF_MODIFIED_SINCE,
    LAST_MODIFIED,
    format_http_date,
    parse_filename_hint,
    parse_http_date,
)
from mirrorkit.io.replace import replace_files

logger = logging.getLogger(__name__)

SCRATCH_PREFIX = ".mirrorkit-"
SCRATCH_SUFFIX = ".part"
SUPPORTED_SCHEMES = frozenset({"http", "https"})


class CachedFetcher:
    """Fetch one resource at a time, skipping the transfer when the local copy is current.

    The fetcher owns its :class:`requests.Session` only when it created it;
    use it as a context manager (or call :meth:`close`) to release it.
    """

    def __init__(self, settings: HttpConfig | None = None, *, session: requests.Session | None = None) -> None:
        self.settings = settings or HttpConfig()
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()

    def __enter__(self) -> "CachedFetcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def fetch(
        self,
        resource: str,
        dest: str | os.PathLike[str] | None = None,
        *,
        directory: str | os.PathLike[str] | None = None,
        force: bool = False,
    ) -> Path:
        """Make sure the newest copy of ``resource`` is on disk and return its path.

        ``dest`` is used verbatim when given. Otherwise the name comes from
        the last segment of the URL, placed in ``directory`` (the current
        directory by default), and a ``Content-Disposition`` filename sent with
        the body takes precedence. ``force`` skips the freshness check.
        """
        url = self.resolve_url(resource)
        override = dest is not None
        destination = Path(dest) if override else derive_destination(url, directory=directory)
        if destination.is_dir():
            raise ArgumentError(f"destination {destination} is a directory")

        if not force and destination.exists():
            if self._is_current(url, destination):
                logger.debug("Local copy %s is current; skipping transfer", destination)
                return destination

        return self._transfer(url, destination, honour_hint=not override)

    def resolve_url(self, resource: str) -> str:
        """Return an absolute http(s) URL for ``resource``, joining it to ``base_url`` if relative."""
        parts = _split_resource(resource)
        if not parts.scheme:
            if not self.settings.base_url:
                raise ResourceError(f"relative reference {resource!r} needs a base_url", resource=resource)
            resource = urljoin(self.settings.base_url, resource)
            parts = _split_resource(resource)

        if parts.scheme.lower() not in SUPPORTED_SCHEMES:
            raise ResourceError(f"unsupported scheme {parts.scheme!r} in {resource!r}", resource=resource)
        if not parts.netloc:
            raise ResourceError(f"resource {resource!r} has no host", resource=resource)
        return resource

    def _is_current(self, url: str, destination: Path) -> bool:
        try:
            local_mtime = destination.stat().st_mtime
        except OSError as exc:
            raise FilesystemError(f"cannot stat {destination}: {exc}", path=destination) from exc

        headers = self.settings.request_headers()
        headers[IF_MODIFIED_SINCE] = format_http_date(local_mtime)
        try:
            response = self.session.head(
                url,
                headers=headers,
                timeout=self.settings.timeout_seconds,
                allow_redirects=True,
            )
        except requests.RequestException as exc:
            raise TransportError(f"freshness check for {url} failed: {exc}", url=url, destination=destination) from exc

        try:
            if response.status_code == requests.codes.not_modified:
                return True

            # Servers do not always honour If-Modified-Since; compare Last-Modified ourselves.
            try:
                remote = parse_http_date(response.headers.get(LAST_MODIFIED))
            except MetadataParseError as exc:
                logger.debug("Cannot confirm freshness of %s (%s); downloading", url, exc)
                return False
            return remote <= datetime.fromtimestamp(local_mtime, tz=UTC)
        finally:
            response.close()

    def _transfer(self, url: str, destination: Path, *, honour_hint: bool) -> Path:
        directory = destination.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, scratch_name = tempfile.mkstemp(prefix=SCRATCH_PREFIX, suffix=SCRATCH_SUFFIX, dir=directory)
        except OSError as exc:
            raise FilesystemError(f"cannot create scratch file in {directory}: {exc}", path=directory) from exc

        scratch = Path(scratch_name)
        committed = False
        try:
            try:
                with os.fdopen(fd, "wb") as handle:
                    response = self._download(url, destination, handle, scratch)
            except FilesystemError:
                raise
            except OSError as exc:
                raise FilesystemError(f"cannot write scratch file {scratch}: {exc}", path=scratch) from exc

            if honour_hint:
                destination = _hinted_destination(response, destination)

            replace_files([scratch], [destination])
            committed = True
        finally:
            if not committed:
                with contextlib.suppress(OSError):
                    scratch.unlink(missing_ok=True)

        logger.debug("Committed %s to %s", url, destination)
        return destination

    def _download(self, url: str, destination: Path, handle: BinaryIO, scratch: Path) -> requests.Response:
        try:
            response = self.session.get(
                url,
                headers=self.settings.request_headers(),
                timeout=self.settings.timeout_seconds,
                stream=True,
            )
        except requests.RequestException as exc:
            raise TransportError(f"download of {url} failed: {exc}", url=url, destination=destination) from exc

        try:
            if response.status_code == requests.codes.not_found:
                raise ResourceNotFoundError(f"Source not found at {url}", url=url, destination=destination)
            try:
                response.raise_for_status()
                for chunk in response.iter_content(chunk_size=self.settings.chunk_size):
                    if chunk:
                        _write_chunk(handle, chunk, scratch)
            except requests.RequestException as exc:
                raise TransportError(f"download of {url} failed: {exc}", url=url, destination=destination) from exc
        finally:
            response.close()
        return response


def derive_destination(url: str, *, directory: str | os.PathLike[str] | None = None) -> Path:
    """Name the local file after the last path segment of ``url``."""
    segment = PurePosixPath(unquote(urlsplit(url).path.rsplit("/", 1)[-1])).name
    if segment in {"", ".", ".."}:
        raise ArgumentError(f"cannot derive a filename from {url!r}; pass an explicit destination")
    if directory is None:
        return Path(segment)
    return Path(directory) / segment


def fetch_file(
    resource: str,
    dest: str | os.PathLike[str] | None = None,
    *,
    directory: str | os.PathLike[str] | None = None,
    force: bool = False,
    settings: Optional[HttpConfig] = None,
    session: Optional[requests.Session] = None,
) -> Path:
    """Download ``resource`` unless the local copy is current; see :meth:`CachedFetcher.fetch`."""
    with CachedFetcher(settings, session=session) as fetcher:
        return fetcher.fetch(resource, dest, directory=directory, force=force)


def _split_resource(resource: str) -> SplitResult:
    try:
        parts = urlsplit(resource)
        parts.port  # noqa: B018 - raises ValueError for a malformed port
    except ValueError as exc:
        raise ResourceError(f"cannot parse resource {resource!r}: {exc}", resource=resource) from exc
    return parts


def _hinted_destination(response: requests.Response, destination: Path) -> Path:
    header = response.headers.get(CONTENT_DISPOSITION)
    if header is None:
        return destination
    try:
        name = parse_filename_hint(header)
    except MetadataParseError as exc:
        logger.debug("Ignoring filename hint: %s", exc)
        return destination
    return destination.with_name(name)


def _write_chunk(handle: BinaryIO, chunk: bytes, scratch: Path) -> None:
    try:
        handle.write(chunk)
    except OSError as exc:
        raise FilesystemError(f"cannot write scratch file {scratch}: {exc}", path=scratch) from exc


__all__ = [
    "CachedFetcher",
    "SCRATCH_PREFIX",
    "SCRATCH_SUFFIX",
    "derive_destination",
    "fetch_file",
]
