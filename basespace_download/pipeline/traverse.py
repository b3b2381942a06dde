"""Walk a BaseSpace project or sample and download every file it owns."""

from __future__ import annotations

import logging
import sys
import threading
from contextlib import closing
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, TextIO

from basespace_download.api.errors import DecodeError
from basespace_download.api.paginator import list_project_samples, list_sample_files
from basespace_download.api.resolver import EntityKind, resolve_name
from basespace_download.api.schemas import ListingItem
from basespace_download.data.download import (
    TEMP_SUFFIX,
    DownloadTask,
    Outcome,
    OutcomeStatus,
    download_file,
)

logger = logging.getLogger(__name__)

INDENT = "  "


@dataclass(frozen=True)
class TraversalSummary:
    completed: int = 0
    skipped: int = 0
    bytes_written: int = 0


def summarize(outcomes: Iterable[Outcome]) -> TraversalSummary:
    completed = skipped = written = 0
    for outcome in outcomes:
        if outcome.status is OutcomeStatus.COMPLETED:
            completed += 1
            written += outcome.bytes_written
        else:
            skipped += 1
    return TraversalSummary(completed=completed, skipped=skipped, bytes_written=written)


def local_file_name(name: str) -> str:
    """Reduce a remote display name to a bare file name inside the output directory."""
    local = Path(name.replace("\\", "/")).name
    if local in ("", ".", ".."):
        raise DecodeError(f"file name {name!r} cannot be written to disk")
    if local != name:
        logger.warning("Remote file name %r contains directories; writing it as %r", name, local)
    return local


class Traversal:
    """Sequential sample/project downloader.

    Every blocking call happens in listing order on the calling thread and the
    first error propagates unchanged.
    """

    def __init__(
        self,
        client,
        *,
        output_dir: str | Path = ".",
        dry_run: bool = False,
        progress_factory: Optional[Callable[[DownloadTask], Any]] = None,
        chunk_size: int = 262_144,
        temp_suffix: str = TEMP_SUFFIX,
        progress_interval: float = 0.1,
        page_limit: Optional[int] = None,
        cancel: Optional[threading.Event] = None,
        stream: Optional[TextIO] = None,
    ):
        self.client = client
        self.output_dir = Path(output_dir)
        self.dry_run = dry_run
        self.progress_factory = progress_factory
        self.chunk_size = chunk_size
        self.temp_suffix = temp_suffix
        self.progress_interval = progress_interval
        self.page_limit = page_limit
        self.cancel = cancel
        self.stream = stream

    def _echo(self, line: str) -> None:
        print(line, file=self.stream if self.stream is not None else sys.stderr)

    def _task_for(self, item: ListingItem, prefix: str) -> DownloadTask:
        name = local_file_name(item.name)
        return DownloadTask(
            file_id=item.id,
            file_name=name,
            target_path=self.output_dir / name,
            expected_size=item.size or 0,
            indent_prefix=prefix,
            dry_run=self.dry_run,
        )

    def _download(self, task: DownloadTask) -> Outcome:
        if self.progress_factory is None or task.dry_run:
            return self._fetch(task, None)
        with closing(self.progress_factory(task)) as report:
            return self._fetch(task, report)

    def _fetch(self, task: DownloadTask, report) -> Outcome:
        return download_file(
            self.client,
            task,
            progress=report,
            chunk_size=self.chunk_size,
            temp_suffix=self.temp_suffix,
            progress_interval=self.progress_interval,
            cancel=self.cancel,
            stream=self.stream,
        )

    def download_sample(self, sample_id: str, name: Optional[str] = None, prefix: str = "") -> list[Outcome]:
        """Download every file of ``sample_id``; ``name`` is looked up when not given."""
        if not name:
            name = resolve_name(self.client, EntityKind.SAMPLE, sample_id)
        self._echo(f"{prefix}Sample: [{sample_id}] {name}")

        outcomes = []
        for item in list_sample_files(self.client, sample_id, limit=self.page_limit, cancel=self.cancel):
            outcomes.append(self._download(self._task_for(item, prefix + INDENT)))
        logger.info("Sample %s: %d file(s) processed", sample_id, len(outcomes))
        return outcomes

    def download_project(self, project_id: str) -> list[Outcome]:
        """Download every sample listed under ``project_id``."""
        name = resolve_name(self.client, EntityKind.PROJECT, project_id)
        self._echo(f"Project: [{project_id}] {name}")

        outcomes = []
        for sample in list_project_samples(self.client, project_id, limit=self.page_limit, cancel=self.cancel):
            outcomes.extend(self.download_sample(sample.id, sample.name, INDENT))
        return outcomes
