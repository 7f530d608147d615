# neoscout/crawler/fetcher.py
"""
Fetcher module: HTTP GET/HEAD with retry/backoff and per-request timeout.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence

from aiohttp import ClientError, ClientSession, ClientTimeout

from neoscout.config import ScoutConfig
from neoscout.logger import logger

__all__ = ("FetchError", "FetchResult", "Fetcher")


class FetchError(Exception):
    """Unrecovered failure of one request."""

    TIMEOUT = "timeout"
    CONNECTION = "connection"
    HTTP_STATUS = "http-status"

    def __init__(self, url: str, kind: str, status: Optional[int] = None, message: str = "") -> None:
        self.url = url
        self.kind = kind
        self.status = status
        detail = f"HTTP {status}" if status is not None else (message or kind)
        super().__init__(f"{kind} fetching {url}: {detail}")


@dataclass(slots=True)
class FetchResult:
    """Status, body and headers of a completed request (body is empty for HEAD).

    ``url`` is the final URL after redirects, so relative links in the body
    resolve against the address that actually served it.
    """

    url: str
    status: int
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "").split(";", 1)[0].strip().lower()

    @property
    def content_length(self) -> Optional[int]:
        raw = self.headers.get("content-length")
        try:
            return int(raw) if raw is not None else None
        except ValueError:
            return None

    @property
    def is_html(self) -> bool:
        return "html" in self.content_type

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding, errors="replace")


class Fetcher:
    """HTTP client for NeoScout with retries and exponential backoff.

    Use as an async context manager; it owns its :class:`aiohttp.ClientSession`
    unless one is passed in.
    """

    RETRY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)

    def __init__(self, config: ScoutConfig, session: Optional[ClientSession] = None) -> None:
        self.config = config
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> Fetcher:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.config.timeout),
                headers={"User-Agent": self.config.user_agent},
                raise_for_status=False,
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def fetch(self, url: str) -> FetchResult:
        """GET *url* and return its body. Raises :class:`FetchError`."""
        return await self._request("GET", url)

    async def head(self, url: str) -> FetchResult:
        """Metadata-only request: status and headers, no body."""
        return await self._request("HEAD", url)

    async def _request(self, method: str, url: str) -> FetchResult:
        if not self.session:
            raise RuntimeError("Session not initialized")
        attempts = 0
        while True:
            try:
                async with self.session.request(method, url, allow_redirects=True) as resp:
                    status = resp.status
                    if status >= 400:
                        raise FetchError(url, FetchError.HTTP_STATUS, status)
                    headers = {k.lower(): v for k, v in resp.headers.items()}
                    body = await resp.read() if method != "HEAD" else b""
                    return FetchResult(url=str(resp.url), status=status, body=body, headers=headers)
            except asyncio.TimeoutError as exc:
                # no retry on timeout
                raise FetchError(url, FetchError.TIMEOUT, message=str(exc) or "timed out") from exc
            except FetchError as exc:
                # 404 and friends are final
                if exc.status not in self.RETRY_STATUS:
                    raise
                error = exc
            except ClientError as exc:
                error = FetchError(url, FetchError.CONNECTION, message=str(exc))

            attempts += 1
            if attempts > self.config.retry_times:
                raise error
            backoff = min(2**attempts, 60)
            logger.debug("Retry %d/%d for %s after %.2f s", attempts, self.config.retry_times, url, backoff)
            await asyncio.sleep(backoff)
