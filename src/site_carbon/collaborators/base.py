"""Collaborator interfaces consumed by the emission pipeline."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Protocol, TypeVar, runtime_checkable

import httpx

from site_carbon.models import HostingContext, LocationContext, LookupResult, ResourceRecord

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


@runtime_checkable
class GreenHostingResolver(Protocol):
    """Report whether a hostname is served from green-certified hosting."""

    async def check(self, hostname: str) -> LookupResult[HostingContext]:
        """Return hosting facts or a failure description."""


@runtime_checkable
class Geolocator(Protocol):
    """Resolve hostnames and geolocate IP addresses."""

    async def resolve_ip(self, hostname: str) -> LookupResult[str]:
        """Return the first IP address of ``hostname``."""

    async def geolocate(self, ip_address: str) -> LookupResult[LocationContext]:
        """Return city, country and organisation for ``ip_address``."""


@runtime_checkable
class TelemetryCollector(Protocol):
    """Load a page and report every network resource it fetched."""

    async def collect(self, url: str) -> list[ResourceRecord]:
        """Return resource records; raise ``CollaboratorFatal`` on failure."""


async def with_retries(
    operation: Callable[[], Awaitable[T]],
    *,
    retries: int,
    name: str,
) -> T:
    """Run ``operation`` again on transport errors, up to ``retries`` times.

    Only :class:`httpx.TransportError` (connect failures, read timeouts) is
    retried; HTTP status errors and parse errors propagate immediately.
    """

    attempt = 0
    while True:
        try:
            return await operation()
        except httpx.TransportError as exc:
            if attempt >= max(retries, 0):
                raise
            attempt += 1
            LOGGER.info(
                "Retrying lookup after transport error",
                extra={
                    "collaborator": name,
                    "attempt": attempt,
                    "error_type": type(exc).__name__,
                },
            )
