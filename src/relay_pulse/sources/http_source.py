"""HTTP status source for the relay pulse status API.

The endpoint answers ``GET /api/status?period=24h`` with a JSON object whose
``data`` list holds one entry per monitored (provider, service, channel)
triple. Wire field names differ from the domain model (``latency`` and
``availability``), so the payload is validated with Pydantic and converted
to immutable StatusRecord values.
"""

from __future__ import annotations

import logging
from typing import Annotated

import aiohttp
from pydantic import BaseModel, Field, ValidationError

from relay_pulse.core.exceptions import FetchError
from relay_pulse.types.models import CurrentStatus, StatusRecord, TimelineSample
from relay_pulse.utils.http_client import AIOHTTPClient

__all__ = ["HttpStatusSource", "StatusPayload", "parse_status_payload"]

logger = logging.getLogger(__name__)


class _WireCurrentStatus(BaseModel):
    status: int
    latency: Annotated[float, Field(ge=0)]


class _WireTimelineItem(BaseModel):
    time: str
    status: int
    latency: Annotated[float, Field(ge=0)]
    availability: Annotated[float, Field(ge=0, le=100)]


class _WireProviderStatus(BaseModel):
    provider: str
    service: str
    channel: str
    current_status: _WireCurrentStatus
    timeline: list[_WireTimelineItem] = []

    def to_record(self) -> StatusRecord:
        return StatusRecord(
            provider=self.provider,
            service=self.service,
            channel=self.channel,
            current_status=CurrentStatus(
                status=self.current_status.status,
                latency_ms=self.current_status.latency,
            ),
            timeline=tuple(
                TimelineSample(
                    time=item.time,
                    status=item.status,
                    latency_ms=item.latency,
                    availability_pct=item.availability,
                )
                for item in self.timeline
            ),
        )


class StatusPayload(BaseModel):
    """Top-level status API response."""

    data: list[_WireProviderStatus]


def parse_status_payload(body: object) -> list[StatusRecord]:
    """Validate a decoded JSON body and convert it to status records.

    Args:
        body: Decoded JSON response body

    Returns:
        Status records in payload order

    Raises:
        FetchError: If the body does not match the expected schema
    """
    try:
        payload = StatusPayload.model_validate(body)
    except ValidationError as exc:
        msg = f"Unexpected status payload: {exc.error_count()} validation error(s)"
        raise FetchError(msg, context={"errors": exc.errors(include_url=False)}) from exc
    return [item.to_record() for item in payload.data]


class HttpStatusSource:
    """StatusSource fetching the status set over HTTP.

    Must be used as an async context manager so the underlying session is
    opened once and reused across poll cycles.
    """

    def __init__(self, url: str, *, timeout_seconds: float = 10.0) -> None:
        self.url: str = url
        self._timeout_seconds: float = timeout_seconds
        self._client: AIOHTTPClient = AIOHTTPClient(default_timeout_seconds=timeout_seconds)

    async def __aenter__(self) -> HttpStatusSource:
        _ = await self._client.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self._client.__aexit__(exc_type, exc_val, exc_tb)

    async def fetch_status(self) -> list[StatusRecord]:
        """Fetch and parse the current status set.

        Raises:
            FetchError: On timeout, connection failure, non-2xx status or
                malformed payload
        """
        try:
            response = await self._client.get_json(self.url, timeout=self._timeout_seconds)
        except TimeoutError as exc:
            msg = f"Status request timed out after {self._timeout_seconds:.1f}s"
            raise FetchError(msg, url=self.url) from exc
        except (aiohttp.ClientError, ValueError, RuntimeError) as exc:
            raise FetchError(f"Status request failed: {exc}", url=self.url) from exc

        if not 200 <= response.status < 300:
            msg = f"Status endpoint returned HTTP {response.status}"
            raise FetchError(msg, url=self.url, context={"status": response.status})

        records = parse_status_payload(response.body)
        logger.debug("Parsed status payload", extra={"records": len(records)})
        return records
