"""
Congress.gov API client with rate limiting and retry logic.

This module provides:
- One shared token bucket per client for the request budget
- Exponential backoff with full jitter for transient failures
- Retry-After handling on HTTP 429
- Offset pagination exposed as async generators with stable ordering
"""

import asyncio
import logging
import random
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional

import httpx

from core.config import settings
from core.exceptions import (
    AuthenticationError,
    FetchError,
    NetworkError,
    RateLimitError,
    ResourceNotFoundError,
)
from ingestion.import_config import PAGE_SIZES
from ingestion.rate_limiter import TokenBucketLimiter

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Full-jitter exponential backoff for the given zero-based attempt"""
    ceiling = min(max_delay, base_delay * (2 ** attempt))
    return random.uniform(0, ceiling)


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


def _dig(data: Dict[str, Any], key: str) -> Any:
    """Follow a dotted key through nested dicts"""
    current: Any = data
    for part in key.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current


class CongressAPIClient:
    """
    Async client for the Congress.gov v3 API.

    Use as an async context manager so the underlying ``httpx.AsyncClient``
    is closed::

        async with CongressAPIClient() as client:
            async for bill in client.list_bills(118, "hr"):
                ...

    Attributes:
        max_retries: Retries after the first attempt for transient failures
        base_delay: Backoff base in seconds
        max_delay: Backoff ceiling in seconds, also caps Retry-After
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        limiter: Optional[TokenBucketLimiter] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        base_delay: Optional[float] = None,
        max_delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.api_key = api_key if api_key is not None else settings.CONGRESS_API_KEY
        self.base_url = (base_url or settings.CONGRESS_API_BASE_URL).rstrip("/")
        self.limiter = limiter or TokenBucketLimiter(
            capacity=settings.RATE_LIMIT_BUCKET_SIZE,
            refill_per_hour=settings.RATE_LIMIT_REFILL_PER_HOUR,
        )
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self.max_retries = max_retries if max_retries is not None else settings.MAX_RETRIES
        self.base_delay = base_delay if base_delay is not None else settings.RETRY_BASE_DELAY
        self.max_delay = max_delay if max_delay is not None else settings.RETRY_MAX_DELAY
        self._sleep = sleep
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "CongressAPIClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        GET one resource through the rate limiter with retry.

        Raises:
            AuthenticationError: On 401/403, not retried
            ResourceNotFoundError: On 404, not retried
            RateLimitError: On 429 after retries are exhausted
            NetworkError: On transport failures or 5xx after retries
            FetchError: On any other non-success status or an unparseable body
        """
        query = {"format": "json", **(params or {})}
        if self.api_key:
            query["api_key"] = self.api_key

        attempts = self.max_retries + 1
        for attempt in range(attempts):
            await self.limiter.acquire()
            last_attempt = attempt == attempts - 1
            logger.debug(f"GET {path} attempt {attempt + 1}/{attempts} params={params}")

            try:
                response = await self._client.get(path, params=query)
            except (httpx.TimeoutException, httpx.TransportError) as e:
                if last_attempt:
                    raise NetworkError(
                        f"Request failed after {attempts} attempts",
                        context={"retry_count": attempts},
                        original_exception=e,
                        endpoint=path
                    )
                delay = backoff_delay(attempt, self.base_delay, self.max_delay)
                logger.warning(
                    f"{type(e).__name__} on {path}. Retrying in {delay:.2f}s "
                    f"(attempt {attempt + 1}/{attempts})"
                )
                await self._sleep(delay)
                continue

            status = response.status_code

            if status in (401, 403):
                raise AuthenticationError(
                    f"Authentication failed for {path}",
                    status_code=status,
                    endpoint=path
                )

            if status == 404:
                raise ResourceNotFoundError(f"Resource not found: {path}", endpoint=path)

            if status in RETRYABLE_STATUS_CODES:
                retry_after = _parse_retry_after(response.headers.get("Retry-After"))
                if last_attempt:
                    context = {"retry_count": attempts, "response_body": response.text[:500]}
                    if status == 429:
                        raise RateLimitError(
                            f"Rate limit exceeded for {path}",
                            context=context,
                            retry_after=retry_after,
                            endpoint=path
                        )
                    raise NetworkError(
                        f"Server error {status} after {attempts} attempts",
                        context=context,
                        status_code=status,
                        endpoint=path
                    )
                delay = backoff_delay(attempt, self.base_delay, self.max_delay)
                if status == 429 and retry_after is not None:
                    delay = min(retry_after, self.max_delay)
                logger.warning(
                    f"HTTP {status} on {path}. Retrying in {delay:.2f}s "
                    f"(attempt {attempt + 1}/{attempts})"
                )
                await self._sleep(delay)
                continue

            if status >= 400:
                raise FetchError(
                    f"Unexpected HTTP {status} for {path}",
                    context={"response_body": response.text[:500]},
                    status_code=status,
                    endpoint=path
                )

            try:
                return response.json()
            except ValueError as e:
                raise FetchError(
                    "Failed to parse JSON response",
                    context={"response_body": response.text[:500]},
                    original_exception=e,
                    status_code=status,
                    endpoint=path
                )

        # Loop always returns or raises
        raise FetchError("Max retries exceeded", endpoint=path)

    async def _paginate(
        self,
        path: str,
        key: str,
        page_size: int,
        params: Optional[Dict[str, Any]] = None,
    ) -> AsyncIterator[Dict[str, Any]]:
        """Yield every item under ``key`` across pages, in upstream order"""
        offset = 0
        while True:
            data = await self._get(path, {**(params or {}), "offset": offset, "limit": page_size})
            items = _dig(data, key) or []
            logger.debug(f"Fetched {len(items)} items from {path} at offset {offset}")

            for item in items:
                yield item

            # Short pages can still carry ``next``; only its absence or an empty page ends the stream
            has_next = bool((data.get("pagination") or {}).get("next"))
            if not has_next or not items:
                break
            offset += page_size

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def list_members(self, current_member: bool = True) -> AsyncIterator[Dict[str, Any]]:
        return self._paginate(
            "/member", "members", PAGE_SIZES["legislators"],
            {"currentMember": "true" if current_member else "false"},
        )

    def list_committees(self) -> AsyncIterator[Dict[str, Any]]:
        return self._paginate("/committee", "committees", PAGE_SIZES["committees"])

    def list_bills(self, congress: int, bill_type: str) -> AsyncIterator[Dict[str, Any]]:
        return self._paginate(
            f"/bill/{congress}/{bill_type}", "bills", PAGE_SIZES["bills"]
        )

    async def list_house_votes(self, congress: int, session: int) -> AsyncIterator[Dict[str, Any]]:
        """
        Roll calls of one House session.

        A 404 marks the end of data for the congress/session; items that
        belong to another session are dropped.
        """
        pages = self._paginate(
            f"/house-vote/{congress}/{session}", "houseRollCallVotes", PAGE_SIZES["votes"]
        )
        try:
            async for item in pages:
                if item.get("sessionNumber", session) == session:
                    yield item
        except ResourceNotFoundError:
            logger.info(f"No House votes for congress {congress} session {session} (404)")

    async def get_house_vote(self, congress: int, session: int, roll: int) -> Dict[str, Any]:
        data = await self._get(f"/house-vote/{congress}/{session}/{roll}")
        return data.get("houseRollCallVote") or {}

    async def get_house_vote_members(self, congress: int, session: int, roll: int) -> list:
        data = await self._get(f"/house-vote/{congress}/{session}/{roll}/members")
        return _dig(data, "houseRollCallVoteMemberVotes.results") or []
