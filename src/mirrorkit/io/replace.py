"""All-or-nothing replacement of one or more files.

Existing destinations are renamed aside to ``<destination>.<pid>``, the new
files are renamed into place, and only then are the backups deleted. Any
failing rename unwinds the steps already taken, newest first, so the
filesystem is left as it was before the call.
"""

from __future__ import annotations

import enum
import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from mirrorkit.errors import ArgumentError, ReplaceError

logger = logging.getLogger(__name__)


class ActionKind(enum.Enum):
    RENAME_BACK = "rename_back"
    DELETE_BACKUP = "delete_backup"


@dataclass(frozen=True)
class UndoAction:
    """One reversible step; ``source`` is the current name, ``target`` where it goes."""

    kind: ActionKind
    source: Path
    target: Path | None = None

    def run(self) -> None:
        if self.kind is ActionKind.RENAME_BACK:
            os.replace(self.source, self.target)
        else:
            os.remove(self.source)


def backup_path_for(destination: Path, *, pid: int | None = None) -> Path:
    """Return the deterministic backup name for ``destination``."""
    return destination.with_name(f"{destination.name}.{os.getpid() if pid is None else pid}")


class ReplaceTransaction:
    """Replace ``destinations[i]`` with ``sources[i]`` for every index, atomically as a whole.

    The undo log and the pending backup deletions are kept on the instance so
    a caller (or a test) can inspect what was done after :meth:`run` returns
    or raises.
    """

    def __init__(
        self,
        sources: Sequence[str | os.PathLike[str]],
        destinations: Sequence[str | os.PathLike[str]],
    ) -> None:
        if len(sources) != len(destinations):
            raise ArgumentError(
                f"mismatched number of source and destination files ({len(sources)} != {len(destinations)})"
            )
        seen: set[str] = set()
        for item in destinations:
            key = os.path.normcase(os.path.abspath(item))
            if key in seen:
                raise ArgumentError(f"duplicate destination {os.fspath(item)!r}")
            seen.add(key)
        self.sources = [Path(item) for item in sources]
        self.destinations = [Path(item) for item in destinations]
        self.undo_log: list[UndoAction] = []
        self.finalizers: list[UndoAction] = []
        self.rollback_errors: list[OSError] = []
        self.committed = False
        self.rolled_back = False

    def run(self) -> None:
        if self.committed or self.rolled_back:
            raise ArgumentError("transaction has already been run")

        self._stage()
        self._commit()
        self._finalize()
        self.committed = True

    def _stage(self) -> None:
        for source, dest in zip(self.sources, self.destinations):
            if not dest.exists():
                continue
            backup = backup_path_for(dest)
            try:
                os.replace(dest, backup)
            except OSError as exc:
                self._fail("stage", source, dest, exc)
            logger.debug("Moved %s aside to %s", dest, backup)
            self.undo_log.append(UndoAction(ActionKind.RENAME_BACK, backup, dest))
            self.finalizers.append(UndoAction(ActionKind.DELETE_BACKUP, backup))

    def _commit(self) -> None:
        for source, dest in zip(self.sources, self.destinations):
            try:
                os.replace(source, dest)
            except OSError as exc:
                self._fail("commit", source, dest, exc)
            logger.debug("Moved %s into place at %s", source, dest)
            self.undo_log.append(UndoAction(ActionKind.RENAME_BACK, dest, source))

    def _finalize(self) -> None:
        for action in reversed(self.finalizers):
            try:
                action.run()
            except OSError as exc:
                # the new content is already in place; a stray backup is all that is left
                logger.warning("Could not remove backup %s: %s", action.source, exc)

    def rollback(self) -> list[OSError]:
        """Run every recorded undo step newest first, collecting failures.

        Only valid while the transaction is in flight; a committed or already
        unwound transaction has nothing left to undo.
        """
        if self.committed or self.rolled_back:
            raise ArgumentError("transaction has already been committed or rolled back")
        errors: list[OSError] = []
        for action in reversed(self.undo_log):
            try:
                action.run()
            except OSError as exc:
                errors.append(exc)
        self.rolled_back = True
        self.rollback_errors.extend(errors)
        return errors

    def _fail(self, phase: str, source: Path, dest: Path, exc: OSError) -> None:
        errors = self.rollback()
        raise ReplaceError(
            f"{phase} failed for {source} -> {dest}: {exc}",
            phase=phase,
            source=source,
            destination=dest,
            rollback_errors=errors,
        ) from exc


def replace_files(
    sources: Sequence[str | os.PathLike[str]], destinations: Sequence[str | os.PathLike[str]]
) -> None:
    """Overwrite each destination with its source, rolling everything back on failure."""
    ReplaceTransaction(sources, destinations).run()


__all__ = [
    "ActionKind",
    "ReplaceTransaction",
    "UndoAction",
    "backup_path_for",
    "replace_files",
]
