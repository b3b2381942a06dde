"""Offset-based walking of BaseSpace listing endpoints."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional

from .errors import DecodeError, DownloadCancelled
from .schemas import ListingItem, ListingPage, decode_file_item, decode_page, decode_sample_item

logger = logging.getLogger(__name__)

SAMPLE_FILES = "samples/{id}/files"
PROJECT_SAMPLES = "projects/{id}/samples"


@dataclass
class PageCursor:
    """Position within a listing; ``total_count`` stays ``None`` until the first page."""

    offset: int = 0
    total_count: Optional[int] = None
    page_size: int = 0

    @property
    def exhausted(self) -> bool:
        return self.total_count is not None and self.offset >= self.total_count

    def advance(self, page: ListingPage) -> None:
        # the first page's TotalCount is taken as authoritative for the whole walk
        if self.total_count is None:
            self.total_count = page.total_count
        if page.displayed_count == 0 and self.offset < self.total_count:
            raise DecodeError(
                f"server returned an empty page at offset {self.offset} of {self.total_count}"
            )
        self.page_size = page.displayed_count
        self.offset += page.displayed_count


def paginate(
    client,
    resource_path: str,
    parent_id: str,
    decode_item: Callable[[Any], ListingItem],
    *,
    limit: Optional[int] = None,
    cancel: Optional[threading.Event] = None,
) -> Iterator[ListingItem]:
    """Yield every item listed under ``resource_path`` for ``parent_id``.

    Pages are requested lazily with an increasing ``Offset`` until the
    server-declared total has been consumed.
    """
    path = resource_path.format(id=parent_id)
    cursor = PageCursor()
    while not cursor.exhausted:
        if cancel is not None and cancel.is_set():
            raise DownloadCancelled(f"listing of {path} cancelled at offset {cursor.offset}")
        params = {"Offset": cursor.offset}
        if limit:
            params["Limit"] = limit
        page = decode_page(client.fetch(path, params), decode_item)
        logger.debug(
            "%s: offset=%d displayed=%d total=%d", path, cursor.offset, page.displayed_count, page.total_count
        )
        yield from page.items
        cursor.advance(page)


def list_sample_files(client, sample_id: str, **kwargs) -> Iterator[ListingItem]:
    return paginate(client, SAMPLE_FILES, sample_id, decode_file_item, **kwargs)


def list_project_samples(client, project_id: str, **kwargs) -> Iterator[ListingItem]:
    return paginate(client, PROJECT_SAMPLES, project_id, decode_sample_item, **kwargs)
