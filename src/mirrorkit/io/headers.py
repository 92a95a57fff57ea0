"""HTTP header helpers for conditional requests and filename hints."""

from __future__ import annotations

from datetime import UTC, datetime
from email.message import Message
from email.utils import format_datetime, parsedate_to_datetime
from pathlib import PurePosixPath, PureWindowsPath

from mirrorkit.errors import MetadataParseError

LAST_MODIFIED = "Last-Modified"
IF_MODIFIED_SINCE = "If-Modified-Since"
CONTENT_DISPOSITION = "Content-Disposition"


def format_http_date(moment: datetime | float) -> str:
    """Render ``moment`` as an RFC 1123 date in GMT, e.g. ``Sun, 06 Nov 1994 08:49:37 GMT``.

    Plain floats are treated as POSIX timestamps (``os.stat().st_mtime``).
    """
    if not isinstance(moment, datetime):
        moment = datetime.fromtimestamp(moment, tz=UTC)
    elif moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return format_datetime(moment.astimezone(UTC).replace(microsecond=0), usegmt=True)


def parse_http_date(value: str | None) -> datetime:
    """Parse an HTTP date header into an aware UTC datetime."""
    if not value or not value.strip():
        raise MetadataParseError("empty HTTP date", header=LAST_MODIFIED, value=value)
    try:
        parsed = parsedate_to_datetime(value.strip())
    except (TypeError, ValueError, IndexError) as exc:
        raise MetadataParseError(
            f"unparseable HTTP date {value!r}", header=LAST_MODIFIED, value=value
        ) from exc
    if parsed.tzinfo is None:
        # RFC 5322 "-0000" means UTC with unknown origin
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def parse_filename_hint(value: str | None) -> str:
    """Return the bare filename suggested by a Content-Disposition header.

    Both ``filename`` and RFC 2231 ``filename*`` parameters are honoured. Any
    directory components are stripped so the hint can only rename the file,
    never relocate it.
    """
    if not value or not value.strip():
        raise MetadataParseError("empty Content-Disposition", header=CONTENT_DISPOSITION, value=value)

    message = Message()
    message[CONTENT_DISPOSITION] = value
    try:
        raw = message.get_filename()
    except (TypeError, ValueError, LookupError) as exc:
        raise MetadataParseError(
            f"malformed Content-Disposition {value!r}", header=CONTENT_DISPOSITION, value=value
        ) from exc
    if raw is None:
        raise MetadataParseError(
            "Content-Disposition carries no filename", header=CONTENT_DISPOSITION, value=value
        )

    name = PureWindowsPath(PurePosixPath(raw.strip()).name).name
    if name in {"", ".", ".."}:
        raise MetadataParseError(
            f"unusable filename {raw!r} in Content-Disposition", header=CONTENT_DISPOSITION, value=value
        )
    return name


__all__ = [
    "CONTENT_DISPOSITION",
    "IF_MODIFIED_SINCE",
    "LAST_MODIFIED",
    "format_http_date",
    "parse_filename_hint",
    "parse_http_date",
]
