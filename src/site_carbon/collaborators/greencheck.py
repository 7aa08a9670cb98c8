"""Green Web Foundation greencheck API client."""

from __future__ import annotations

import logging

import httpx

from site_carbon.collaborators.base import with_retries
from site_carbon.models import UNKNOWN_PROVIDER, HostingContext, LookupResult

LOGGER = logging.getLogger(__name__)


class GreenWebFoundationResolver:
    """Check hostnames against the Green Web Foundation registry."""

    def __init__(
        self,
        base_url: str = "https://api.thegreenwebfoundation.org/greencheck",
        *,
        timeout_seconds: float = 30.0,
        retries: int = 1,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._retries = retries
        self._transport = transport

    async def _fetch(self, url: str) -> object:
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.json()

    async def check(self, hostname: str) -> LookupResult[HostingContext]:
        """Return the green-hosting facts for ``hostname``.

        Args:
            hostname: Bare hostname, without scheme or path.

        Returns:
            Successful result with a :class:`HostingContext`, or a failure
            result describing why the lookup did not complete.
        """

        url = f"{self._base}/{hostname}"
        try:
            payload = await with_retries(
                lambda: self._fetch(url), retries=self._retries, name="greencheck"
            )
        except httpx.HTTPStatusError as exc:
            LOGGER.warning(
                "Greencheck HTTP error",
                extra={
                    "hostname": hostname,
                    "status_code": exc.response.status_code,
                    "url": url,
                },
            )
            return LookupResult.failure(f"HTTP {exc.response.status_code}")
        except httpx.HTTPError as exc:
            LOGGER.warning(
                "Greencheck transport error",
                extra={"hostname": hostname, "url": url},
                exc_info=exc,
            )
            return LookupResult.failure(f"transport error: {type(exc).__name__}")
        except ValueError as exc:
            LOGGER.warning(
                "Greencheck response parsing error",
                extra={"hostname": hostname, "url": url},
                exc_info=exc,
            )
            return LookupResult.failure("invalid JSON response")

        if not isinstance(payload, dict):
            return LookupResult.failure("unexpected response shape")

        return LookupResult.success(
            HostingContext(
                is_green_certified=bool(payload.get("green") or False),
                hosted_by=str(payload.get("hostedby") or UNKNOWN_PROVIDER),
                hosted_by_url=str(payload.get("hostedbywebsite") or ""),
            )
        )
