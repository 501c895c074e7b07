# services/crawler/page_fetcher.py
"""
HTTP fetcher shared by the source resolver and the brand pipelines.

Each URL gets a bounded number of attempts with a linearly growing pause
between them (1 s, 2 s, ... by default).  When the attempts run out the
fetcher raises ``FetchError``; ``try_fetch`` turns that into a skip so one dead
URL never takes a brand pipeline down with it.
"""

import asyncio
from typing import Awaitable, Callable, Optional

import httpx
from loguru import logger
from prometheus_client import Counter, Histogram
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from core.config import Settings, get_settings
from core.exceptions import DeadlineExceeded, FetchError
from models.outcome import Outcome, SkipReason, Stage

from .deadline import Deadline

FETCH_REQUESTS = Counter('camera_fetch_requests_total', 'Total number of HTTP fetch attempts')
FETCH_ERRORS = Counter('camera_fetch_errors_total', 'URLs that failed after every retry')
FETCH_DURATION = Histogram('camera_fetch_duration_seconds', 'Time spent fetching a single URL')

SleepFunc = Callable[[float], Awaitable[None]]


class PageFetcher:
    """Retrieves raw HTML with retries, a browser-like user agent and deadline support."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        settings: Optional[Settings] = None,
        attempts: Optional[int] = None,
        backoff: Optional[float] = None,
        timeout: Optional[float] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        cfg = settings or get_settings()
        self.attempts = attempts if attempts is not None else cfg.FETCH_ATTEMPTS
        self.backoff = backoff if backoff is not None else cfg.RETRY_BACKOFF
        self.timeout = timeout if timeout is not None else cfg.TIMEOUT
        self._sleep = sleep
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            headers={"User-Agent": cfg.DEFAULT_USER_AGENT},
            timeout=self.timeout,
            follow_redirects=True,
        )

    async def __aenter__(self) -> "PageFetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    # ------------------------------------------------------------------
    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(f"Attempt {retry_state.attempt_number} failed: {exc}")

    async def _get(self, url: str, deadline: Deadline, timeout: float) -> str:
        if deadline.expired:
            raise DeadlineExceeded(url)
        FETCH_REQUESTS.inc()
        response = await self.client.get(url, timeout=deadline.bound(timeout))
        response.raise_for_status()
        return response.text

    async def fetch(
        self,
        url: str,
        deadline: Optional[Deadline] = None,
        *,
        attempts: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """
        Return the body of ``url``.

        Raises
        ------
        FetchError
            Every attempt failed with an HTTP or transport error.
        DeadlineExceeded
            The deadline expired before (or between) attempts.
        """
        deadline = deadline or Deadline.never()
        attempts = attempts or self.attempts
        timeout = timeout or self.timeout

        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_incrementing(start=self.backoff, increment=self.backoff),
            retry=retry_if_exception_type(httpx.HTTPError),
            before_sleep=self._log_retry,
            sleep=self._sleep,
            reraise=True,
        )
        body = ""
        try:
            with FETCH_DURATION.time():
                async for attempt in retrying:
                    with attempt:
                        body = await self._get(url, deadline, timeout)
        except httpx.HTTPError as exc:
            FETCH_ERRORS.inc()
            logger.error(f"Giving up on {url} after {attempts} attempt(s): {exc}")
            raise FetchError(url, attempts, str(exc) or exc.__class__.__name__) from exc
        return body

    async def try_fetch(
        self,
        url: str,
        deadline: Optional[Deadline] = None,
        *,
        stage: Stage = Stage.FETCH,
        attempts: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> Outcome[str]:
        """Like ``fetch`` but reports failure as a skip instead of raising."""
        try:
            html = await self.fetch(url, deadline, attempts=attempts, timeout=timeout)
        except DeadlineExceeded as exc:
            return Outcome.skipped(stage, SkipReason.DEADLINE, url, exc.message)
        except FetchError as exc:
            return Outcome.skipped(stage, SkipReason.FETCH_FAILED, url, exc.reason)
        return Outcome.success(html)
