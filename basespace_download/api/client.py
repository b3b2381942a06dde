"""Authenticated GET requests against the BaseSpace REST API."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Optional, Tuple, Union

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .errors import FetchError, UsageError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.basespace.illumina.com/v1pre3"
DEFAULT_TIMEOUT = (15, 60)
DEFAULT_CHUNK_SIZE = 262_144

Timeout = Union[float, Tuple[float, float], None]


def build_session(retries: int = 0, backoff_factor: float = 1.0) -> requests.Session:
    """Return a session that retries connection failures only.

    Read errors and HTTP status codes are never retried, so a half-streamed
    body or an error response is reported to the caller straight away.
    """
    session = requests.Session()
    retry = Retry(
        total=retries,
        connect=retries,
        read=0,
        status=0,
        other=0,
        backoff_factor=backoff_factor,
        allowed_methods=["GET"],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({"User-Agent": "basespace-download"})
    return session


class BaseSpaceClient:
    """Issue GET requests with the app token appended as ``access_token``.

    The token only ever travels as a query parameter. URLs recorded in logs and
    in :class:`FetchError` never include it.
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_URL,
        *,
        timeout: Timeout = DEFAULT_TIMEOUT,
        retries: int = 0,
        backoff_factor: float = 1.0,
        session: Optional[requests.Session] = None,
    ):
        if not token:
            raise UsageError("Missing app-token! You must obtain an Application Token from Illumina!")
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else build_session(retries, backoff_factor)

    @classmethod
    def from_config(cls, token: str, api_config) -> "BaseSpaceClient":
        timeout = getattr(api_config, "timeout", DEFAULT_TIMEOUT)
        if isinstance(timeout, list):
            timeout = tuple(timeout)
        return cls(
            token,
            getattr(api_config, "base_url", DEFAULT_API_URL),
            timeout=timeout,
            retries=getattr(api_config, "retries", 0),
            backoff_factor=getattr(api_config, "backoff_factor", 1.0),
        )

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _get(self, path: str, params: Optional[Mapping[str, Any]] = None, *, stream: bool = False) -> requests.Response:
        url = self.url(path)
        query = dict(params or {})
        query["access_token"] = self.token
        logger.debug("GET %s %s", url, {k: v for k, v in query.items() if k != "access_token"})
        try:
            response = self.session.get(url, params=query, timeout=self.timeout, stream=stream)
        except requests.RequestException as exc:
            raise FetchError(url, self._redact(exc)) from exc
        if response.status_code >= 400:
            response.close()
            raise FetchError(url, f"HTTP {response.status_code} {response.reason or ''}".rstrip())
        return response

    def fetch(self, path: str, params: Optional[Mapping[str, Any]] = None) -> bytes:
        """Return the fully drained body of ``GET {base_url}/{path}``."""
        response = self._get(path, params)
        with response:
            try:
                return response.content
            except requests.RequestException as exc:
                raise FetchError(self.url(path), f"could not read body: {self._redact(exc)}") from exc

    @contextmanager
    def stream(self, path: str, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[Iterator[bytes]]:
        """Open ``GET {base_url}/{path}`` and yield an iterator over its body.

        Errors raised while iterating are converted to :class:`FetchError`. The
        response is released when the ``with`` block exits.
        """
        response = self._get(path, stream=True)
        try:
            yield self._iter_chunks(response, self.url(path), chunk_size)
        finally:
            response.close()

    def _iter_chunks(self, response: requests.Response, url: str, chunk_size: int) -> Iterator[bytes]:
        try:
            for chunk in response.iter_content(chunk_size=chunk_size):
                if chunk:
                    yield chunk
        except requests.RequestException as exc:
            raise FetchError(url, f"transfer interrupted: {self._redact(exc)}") from exc

    def _redact(self, exc: Exception) -> str:
        message = str(exc) or type(exc).__name__
        return message.replace(self.token, "***")

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "BaseSpaceClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
