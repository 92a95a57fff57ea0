from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import requests
from requests.structures import CaseInsensitiveDict

from mirrorkit.io.fetcher import SCRATCH_PREFIX

# Tue, 14 Nov 2023 22:13:20 GMT
LOCAL_MTIME = 1_700_000_000


class DummyResponse:
    """Just enough of :class:`requests.Response` for the fetcher."""

    def __init__(
        self,
        content: bytes = b"",
        status_code: int = 200,
        headers: Mapping[str, str] | None = None,
        *,
        fail_after_chunks: int | None = None,
    ) -> None:
        self.content = content
        self.status_code = status_code
        self.headers = CaseInsensitiveDict(headers or {})
        self.fail_after_chunks = fail_after_chunks
        self.closed = False

    def iter_content(self, chunk_size: int = 8192):
        for count, idx in enumerate(range(0, len(self.content), chunk_size)):
            if self.fail_after_chunks is not None and count >= self.fail_after_chunks:
                raise requests.ConnectionError("connection reset by peer")
            yield self.content[idx : idx + chunk_size]

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def close(self) -> None:
        self.closed = True


class DummySession:
    """Records requests and replays canned responses (or raises canned errors)."""

    def __init__(
        self,
        *,
        head: DummyResponse | Exception | None = None,
        get: DummyResponse | Exception | None = None,
    ) -> None:
        self.head_result = head
        self.get_result = get
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.closed = False

    def head(self, url: str, **kwargs: Any) -> DummyResponse:
        self.calls.append(("HEAD", url, kwargs))
        return self._reply(self.head_result, "HEAD")

    def get(self, url: str, **kwargs: Any) -> DummyResponse:
        self.calls.append(("GET", url, kwargs))
        return self._reply(self.get_result, "GET")

    def close(self) -> None:
        self.closed = True

    def methods(self) -> list[str]:
        return [method for method, _, _ in self.calls]

    @staticmethod
    def _reply(result: DummyResponse | Exception | None, method: str) -> DummyResponse:
        if result is None:
            raise AssertionError(f"unexpected {method} request")
        if isinstance(result, Exception):
            raise result
        return result


def write_with_mtime(path: Path, content: bytes, mtime: float = LOCAL_MTIME) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    os.utime(path, (mtime, mtime))
    return path


def scratch_files(directory: Path) -> list[str]:
    return sorted(p.name for p in directory.iterdir() if p.name.startswith(SCRATCH_PREFIX))


def snapshot(directory: Path) -> dict[str, bytes]:
    """Map every file under `directory` (relative name) to its content."""

    return {
        str(path.relative_to(directory)): path.read_bytes()
        for path in sorted(directory.rglob("*"))
        if path.is_file()
    }
