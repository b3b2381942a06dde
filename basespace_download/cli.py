"""Command-line entry point: download a BaseSpace sample or a whole project."""

from __future__ import annotations

import argparse
import logging
import re
import signal
import sys
import threading
from pathlib import Path
from typing import Optional, Sequence

import yaml

from basespace_download.api.client import BaseSpaceClient
from basespace_download.api.errors import BaseSpaceError, DownloadCancelled, UsageError
from basespace_download.pipeline.traverse import Traversal, summarize
from basespace_download.utils.config import TOKEN_ENV_VAR, load_config, namespace_to_dict, resolve_token
from basespace_download.utils.progress import tqdm_progress_factory

logger = logging.getLogger("basespace_download")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CANCELLED = 130

_TOKEN_PARAM = re.compile(r"""(access_token=)[^&\s'"]+""")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="basespace-download",
        description="basespace-download - Basespace file downloader",
    )
    parser.add_argument("-t", "--token", default=None,
                        help=f"Application token from Basespace (default: ${TOKEN_ENV_VAR}).")
    target = parser.add_mutually_exclusive_group()
    target.add_argument("-s", "--sample", help="Sample ID to download.")
    target.add_argument("-p", "--project", help="Project ID to download (all samples).")
    parser.add_argument("-dr", "--dry-run", dest="dry_run", action="store_true",
                        help="Dry-run (don't download files).")
    parser.add_argument("-o", "--output_dir", default=None,
                        help="Directory to write files to (default: current directory).")
    parser.add_argument("-c", "--config", default=None, help="YAML config overriding API/download settings.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse ``argv``; usage errors exit with status 2 before any request is made."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.sample and not args.project:
        parser.error("You must specify either a sample (-s) or project (-p) to download!")
    try:
        args.token = resolve_token(args.token)
    except UsageError as exc:
        parser.error(str(exc))
    return args


class RedactTokenFilter(logging.Filter):
    """Mask ``access_token=...`` in any record, including urllib3's request lines."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _TOKEN_PARAM.sub(r"\1***", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    # urllib3 logs each request line with its query string at DEBUG
    logging.getLogger("urllib3").setLevel(logging.INFO)
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RedactTokenFilter) for f in handler.filters):
            handler.addFilter(RedactTokenFilter())


def _interrupt_handler(cancel: threading.Event):
    def _handler(signum, frame):
        if cancel.is_set():
            raise KeyboardInterrupt
        cancel.set()

    return _handler


def _install_interrupt_handler(cancel: threading.Event):
    try:
        return signal.signal(signal.SIGINT, _interrupt_handler(cancel))
    except ValueError:
        # not on the main thread
        return None


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = load_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        logger.error("could not load config %s: %s", args.config, exc)
        return EXIT_FAILURE
    logger.debug("Effective config: %s", namespace_to_dict(config))

    output_dir = Path(args.output_dir or config.download.output_dir)
    cancel = threading.Event()
    previous_handler = _install_interrupt_handler(cancel)
    try:
        with BaseSpaceClient.from_config(args.token, config.api) as client:
            traversal = Traversal(
                client,
                output_dir=output_dir,
                dry_run=args.dry_run,
                progress_factory=tqdm_progress_factory,
                chunk_size=config.download.chunk_size,
                temp_suffix=config.download.temp_suffix,
                progress_interval=config.download.progress_interval,
                page_limit=config.api.page_limit,
                cancel=cancel,
            )
            if args.sample:
                outcomes = traversal.download_sample(args.sample)
            else:
                outcomes = traversal.download_project(args.project)
    except (DownloadCancelled, KeyboardInterrupt):
        if cancel.is_set():
            logger.warning("Interrupt received, stopped before finishing")
        logger.error("download cancelled")
        return EXIT_CANCELLED
    except BaseSpaceError as exc:
        logger.error("%s", exc)
        return EXIT_FAILURE
    except OSError as exc:
        logger.error("could not write to %s: %s", output_dir, exc)
        return EXIT_FAILURE
    finally:
        if previous_handler is not None:
            signal.signal(signal.SIGINT, previous_handler)

    summary = summarize(outcomes)
    logger.info(
        "Finished: %d downloaded (%d bytes), %d skipped",
        summary.completed,
        summary.bytes_written,
        summary.skipped,
    )
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
