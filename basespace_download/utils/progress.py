"""tqdm rendering for the downloader's ``report(bytes_done, bytes_total)`` callback."""

from __future__ import annotations

import sys
from typing import Optional, TextIO

from tqdm import tqdm

BAR_FORMAT = "{l_bar}{bar:20}{r_bar}"


class TqdmReporter:
    """Progress callback backed by a byte-scaled tqdm bar.

    The bar is created on the first report, so skipped files never draw one.
    """

    def __init__(self, prefix: str = "", *, file: Optional[TextIO] = None, disable: Optional[bool] = False):
        self.prefix = prefix
        self.file = file
        self.disable = disable
        self.bar: Optional[tqdm] = None

    def __call__(self, done: int, total: int) -> None:
        if self.bar is None:
            self.bar = tqdm(
                total=total or None,
                unit="B",
                unit_scale=True,
                unit_divisor=1024,
                bar_format=self.prefix.replace("{", "{{").replace("}", "}}") + BAR_FORMAT,
                file=self.file if self.file is not None else sys.stderr,
                disable=self.disable,
            )
        if done > self.bar.n:
            self.bar.update(done - self.bar.n)

    def close(self) -> None:
        if self.bar is not None:
            self.bar.close()
            self.bar = None


def tqdm_progress_factory(task) -> TqdmReporter:
    """Build a reporter for ``task`` indented like its header line."""
    return TqdmReporter(task.indent_prefix)
