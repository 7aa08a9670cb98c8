"""DNS resolution and ip-api.com geolocation."""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import socket

import httpx

from site_carbon.collaborators.base import with_retries
from site_carbon.models import (
    UNKNOWN_CITY,
    UNKNOWN_COUNTRY,
    UNKNOWN_ORGANIZATION,
    LocationContext,
    LookupResult,
)

LOGGER = logging.getLogger(__name__)


def is_public_ip(value: str) -> bool:
    """Return ``True`` for a syntactically valid, globally routable address."""

    try:
        return ipaddress.ip_address(value).is_global
    except ValueError:
        return False


class IpApiGeolocator:
    """Resolve hostnames with the system resolver and geolocate via ip-api."""

    def __init__(
        self,
        base_url: str = "http://ip-api.com/json",
        *,
        timeout_seconds: float = 30.0,
        retries: int = 1,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._retries = retries
        self._transport = transport

    async def resolve_ip(self, hostname: str) -> LookupResult[str]:
        """Return the first address the resolver reports for ``hostname``."""

        loop = asyncio.get_running_loop()
        try:
            infos = await asyncio.wait_for(
                loop.getaddrinfo(hostname, None, type=socket.SOCK_STREAM),
                timeout=self._timeout,
            )
        except (OSError, asyncio.TimeoutError) as exc:
            LOGGER.info(
                "DNS lookup failed",
                extra={"hostname": hostname, "error_type": type(exc).__name__},
            )
            return LookupResult.failure(f"DNS lookup failed: {type(exc).__name__}")
        for _family, _type, _proto, _canon, sockaddr in infos:
            return LookupResult.success(str(sockaddr[0]))
        return LookupResult.failure("DNS lookup returned no addresses")

    async def _fetch(self, url: str) -> object:
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.json()

    async def geolocate(self, ip_address: str) -> LookupResult[LocationContext]:
        """Return the location of ``ip_address``.

        Fields missing from the response are filled with the unknown
        sentinels; a ``status`` other than ``success`` is a failure.
        """

        url = f"{self._base}/{ip_address}"
        try:
            payload = await with_retries(
                lambda: self._fetch(url), retries=self._retries, name="geoip"
            )
        except httpx.HTTPError as exc:
            LOGGER.warning(
                "Geo-IP lookup failed",
                extra={"ip_address": ip_address, "url": url},
                exc_info=exc,
            )
            return LookupResult.failure(f"geo-ip error: {type(exc).__name__}")
        except ValueError as exc:
            LOGGER.warning(
                "Geo-IP response parsing error",
                extra={"ip_address": ip_address, "url": url},
                exc_info=exc,
            )
            return LookupResult.failure("invalid JSON response")

        if not isinstance(payload, dict):
            return LookupResult.failure("unexpected response shape")
        status = payload.get("status", "success")
        if status != "success":
            message = str(payload.get("message") or status)
            LOGGER.info(
                "Geo-IP lookup unsuccessful",
                extra={"ip_address": ip_address, "reason": message},
            )
            return LookupResult.failure(f"geo-ip status: {message}")

        return LookupResult.success(
            LocationContext(
                country_code=str(payload.get("countryCode") or UNKNOWN_COUNTRY),
                city=str(payload.get("city") or UNKNOWN_CITY),
                organization=str(payload.get("org") or UNKNOWN_ORGANIZATION),
                ip_address=ip_address,
            )
        )

