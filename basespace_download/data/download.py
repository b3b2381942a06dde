"""Stream BaseSpace file content to disk without leaving partial files behind."""

from __future__ import annotations

import logging
import os
import sys
import threading
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, TextIO

from basespace_download.api.errors import DownloadCancelled

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

CONTENT_PATH = "files/{id}/content"
TEMP_SUFFIX = ".tmp"


class OutcomeStatus(str, Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"


class SkipReason(str, Enum):
    DRY_RUN = "dry-run"
    ALREADY_EXISTS = "already-exists"


@dataclass(frozen=True)
class DownloadTask:
    file_id: str
    file_name: str
    target_path: Path
    expected_size: int = 0
    indent_prefix: str = ""
    dry_run: bool = False


@dataclass(frozen=True)
class Outcome:
    task: DownloadTask
    status: OutcomeStatus
    reason: Optional[SkipReason] = None
    bytes_written: int = 0

    @classmethod
    def skipped(cls, task: DownloadTask, reason: SkipReason) -> "Outcome":
        return cls(task, OutcomeStatus.SKIPPED, reason)


def _echo(line: str, stream: Optional[TextIO]) -> None:
    print(line, file=stream if stream is not None else sys.stderr)


def temp_path_for(target: Path, suffix: str = TEMP_SUFFIX) -> Path:
    return target.with_name(target.name + suffix)


def download_file(
    client,
    task: DownloadTask,
    *,
    progress: Optional[ProgressCallback] = None,
    chunk_size: int = 262_144,
    temp_suffix: str = TEMP_SUFFIX,
    progress_interval: float = 0.1,
    cancel: Optional[threading.Event] = None,
    stream: Optional[TextIO] = None,
) -> Outcome:
    """Download one file described by ``task``.

    The body is written to ``target_path + temp_suffix`` and renamed onto
    ``target_path`` only once the transfer has finished, so the target is
    either absent or complete. Any failure removes the temporary file and
    propagates to the caller.

    ``progress`` is called with ``(bytes_so_far, expected_size)`` at the start,
    at most once per ``progress_interval`` seconds while streaming, and once
    at the end.
    """
    _echo(f"{task.indent_prefix}[{task.file_id}] {task.file_name}", stream)

    if task.dry_run:
        return Outcome.skipped(task, SkipReason.DRY_RUN)

    target = Path(task.target_path)
    if target.exists():
        _echo(f"{task.indent_prefix}{task.file_name} already exists!", stream)
        return Outcome.skipped(task, SkipReason.ALREADY_EXISTS)

    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = temp_path_for(target, temp_suffix)
    written = 0
    completed = False
    logger.info("Streaming file %s -> %s", task.file_id, target)
    try:
        with open(tmp, "wb") as handle:
            with client.stream(CONTENT_PATH.format(id=task.file_id), chunk_size=chunk_size) as chunks:
                if progress is not None:
                    progress(0, task.expected_size)
                last_report = time.monotonic()
                for chunk in chunks:
                    if cancel is not None and cancel.is_set():
                        raise DownloadCancelled(f"download of {task.file_name} cancelled after {written} bytes")
                    handle.write(chunk)
                    written += len(chunk)
                    now = time.monotonic()
                    if progress is not None and now - last_report >= progress_interval:
                        progress(written, task.expected_size)
                        last_report = now
        if progress is not None:
            progress(written, task.expected_size)
        os.replace(tmp, target)
        completed = True
    finally:
        if not completed:
            logger.debug("Removing partial file %s after %d bytes", tmp, written)
            tmp.unlink(missing_ok=True)

    if task.expected_size and written != task.expected_size:
        logger.warning(
            "%s: received %d bytes, listing declared %d", task.file_name, written, task.expected_size
        )
    return Outcome(task, OutcomeStatus.COMPLETED, bytes_written=written)
