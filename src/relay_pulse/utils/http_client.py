"""Async HTTP client used to fetch the status payload.

Thin aiohttp wrapper with a per-request timeout. There is no retry or
backoff; the poll loop fetches again on its next cycle.
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Self

import aiohttp


__all__ = ["AIOHTTPClient", "HTTPResponse"]


class HTTPResponse:
    """HTTP response with decoded JSON body."""

    __slots__ = ("status", "body", "headers")

    def __init__(self, status: int, body: object, headers: Mapping[str, str]) -> None:
        self.status: int = status
        self.body: object = body
        self.headers: Mapping[str, str] = headers


class AIOHTTPClient:
    """Async HTTP client owning one aiohttp session.

    Example:
        >>> async with AIOHTTPClient() as client:
        ...     response = await client.get_json("https://relaypulse.top/api/status", timeout=10.0)
    """

    def __init__(self, *, default_timeout_seconds: float = 10.0) -> None:
        self._default_timeout_seconds: float = default_timeout_seconds
        self._session: aiohttp.ClientSession | None = None
        self._logger: logging.Logger = logging.getLogger(__name__)

    async def __aenter__(self) -> Self:
        """Enter async context manager and create aiohttp session."""
        timeout = aiohttp.ClientTimeout(total=self._default_timeout_seconds)
        self._session = aiohttp.ClientSession(timeout=timeout)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit async context manager and close the session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def get_json(self, url: str, *, timeout: float) -> HTTPResponse:
        """Send HTTP GET request and decode the JSON body.

        Args:
            url: Target URL
            timeout: Request timeout in seconds (keyword-only)

        Returns:
            Response with status code, decoded body and headers

        Raises:
            RuntimeError: If used outside ``async with``
            TimeoutError: If request exceeds timeout
            ValueError: If URL is malformed or the body is not JSON
            aiohttp.ClientError: For connection issues
        """
        if self._session is None:
            msg = "HTTP client session not initialized. Use 'async with' context manager."
            raise RuntimeError(msg)

        self._logger.debug("Initiating GET request to %s", url)

        try:
            async with asyncio.timeout(timeout):
                async with self._session.get(url) as response:
                    try:
                        body: object = await response.json(content_type=None)  # pyright: ignore[reportAny]  # aiohttp returns Any
                    except ValueError as exc:
                        msg = f"Response from {url} is not valid JSON"
                        raise ValueError(msg) from exc

                    return HTTPResponse(
                        status=response.status,
                        body=body,
                        headers=dict(response.headers),
                    )
        except TimeoutError:
            self._logger.warning("Request to %s timed out after %.1fs", url, timeout)
            raise
        except aiohttp.InvalidURL as exc:
            self._logger.error("Invalid URL: %s", url)
            raise ValueError(f"Malformed URL: {url}") from exc
        except aiohttp.ClientError as exc:
            self._logger.warning("Client error for %s: %s", url, exc)
            raise
