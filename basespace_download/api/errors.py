"""Exception types raised while talking to the BaseSpace API."""

from __future__ import annotations


class BaseSpaceError(Exception):
    """Base class for every error raised by this package."""


class UsageError(BaseSpaceError):
    """Invalid or missing invocation arguments."""


class FetchError(BaseSpaceError):
    """A request could not be completed or its body could not be read."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Error downloading URL {url}: {reason}")


class DecodeError(BaseSpaceError):
    """A response body did not have the expected JSON shape."""

    def __init__(self, reason: str, body: bytes | None = None):
        self.reason = reason
        self.body = body
        super().__init__(f"Error processing response: {reason}")


class DownloadCancelled(BaseSpaceError):
    """The caller asked the traversal to stop."""
