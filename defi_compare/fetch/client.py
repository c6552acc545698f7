"""HTTP client with a per-provider retry policy for transient statuses."""
from __future__ import annotations

import asyncio
import logging
import ssl
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import aiohttp
import certifi

from ..config import RetryConfig
from ..errors import ProviderUnavailable

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget plus a fixed backoff per retryable HTTP status.

    202 means the provider is still preparing data, 429 means rate limited.
    Any status not listed in ``backoff_seconds`` is final.
    """

    max_attempts: int = 3
    backoff_seconds: dict[int, float] = field(
        default_factory=lambda: {202: 3.0, 429: 5.0}
    )

    @classmethod
    def from_config(cls, config: RetryConfig) -> RetryPolicy:
        return cls(max_attempts=config.max_attempts, backoff_seconds=dict(config.backoff))


@dataclass(frozen=True)
class FetchRequest:
    method: str
    url: str
    params: dict[str, str] | None = None
    json: dict[str, Any] | None = None
    headers: dict[str, str] = field(default_factory=dict)


class RetryingFetchClient:
    """Issue one request, retrying transient statuses within the policy budget.

    Raises :class:`ProviderUnavailable` once the request has FAILED: a
    non-retryable status, a malformed body, a transport error, or an exhausted
    budget. Whether that is fatal is decided by the caller.
    """

    def __init__(
        self,
        provider: str,
        policy: RetryPolicy,
        timeout: int = 30,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.provider = provider
        self.policy = policy
        self.timeout = timeout
        self._sleep = sleep

    async def fetch(self, request: FetchRequest) -> Any:
        """Return the decoded JSON payload of a successful response."""
        last_status: int | None = None

        for attempt in range(1, self.policy.max_attempts + 1):
            status, payload = await self._send(request)
            last_status = status

            delay = self.policy.backoff_seconds.get(status)
            if delay is not None:
                if attempt >= self.policy.max_attempts:
                    break
                logger.warning(
                    "%s returned HTTP %d for %s, retrying in %.0fs (attempt %d/%d)",
                    self.provider, status, request.url, delay,
                    attempt, self.policy.max_attempts,
                )
                await self._sleep(delay)
                continue

            if 200 <= status < 300:
                return payload

            raise ProviderUnavailable(
                f"{self.provider} request to {request.url} failed: HTTP {status}",
                status=status,
            )

        raise ProviderUnavailable(
            f"{self.provider} request to {request.url} still pending after "
            f"{self.policy.max_attempts} attempts (last HTTP {last_status})",
            status=last_status,
        )

    async def _send(self, request: FetchRequest) -> tuple[int, Any]:
        """Perform a single HTTP exchange; the body is decoded only on 2xx."""
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        logger.debug("%s %s %s", self.provider, request.method, request.url)

        try:
            connector = aiohttp.TCPConnector(ssl=ssl_context)
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.request(
                    request.method,
                    request.url,
                    params=request.params,
                    json=request.json,
                    headers=request.headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    status = response.status
                    if status in self.policy.backoff_seconds or not 200 <= status < 300:
                        return status, None
                    try:
                        return status, await response.json(content_type=None)
                    except (aiohttp.ContentTypeError, ValueError) as e:
                        raise ProviderUnavailable(
                            f"{self.provider} returned a malformed body: {e}",
                            status=status,
                        ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderUnavailable(
                f"{self.provider} request to {request.url} failed: {e}"
            ) from e
