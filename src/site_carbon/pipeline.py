"""Request-level orchestration of lookups, telemetry and estimation."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import TypeVar
from urllib.parse import urlsplit

from site_carbon.assembler import assemble
from site_carbon.collaborators import (
    Geolocator,
    GreenHostingResolver,
    GreenWebFoundationResolver,
    IpApiGeolocator,
    LeadNotification,
    LeadNotifier,
    LoggingLeadNotifier,
    SmtpLeadNotifier,
    TelemetryCollector,
    is_public_ip,
    notify_safely,
)
from site_carbon.config_loader import (
    ServiceConfig,
    TimeoutSettings,
    load_config,
    resolve_model,
)
from site_carbon.errors import CollaboratorDegraded, CollaboratorFatal, InputError
from site_carbon.estimation import EstimationEngine
from site_carbon.intensity import CarbonIntensityTable
from site_carbon.models import (
    UNKNOWN_HOSTING,
    UNKNOWN_LOCATION,
    EmissionEstimate,
    HostingContext,
    LocationContext,
    LookupResult,
    PageProfile,
    ResourceRecord,
)
from site_carbon.schemas import CalculateRequest, EmissionReport
from site_carbon.settings import SiteCarbonSettings, get_settings

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def parse_target_url(url: str) -> tuple[str, str]:
    """Validate ``url`` and return it together with its hostname.

    Raises:
        InputError: If ``url`` is not an absolute http(s) URL with a host.
    """

    candidate = (url or "").strip()
    try:
        parts = urlsplit(candidate)
        hostname = parts.hostname
    except ValueError as exc:
        raise InputError(f"malformed URL: {url!r}") from exc
    if parts.scheme.lower() not in ("http", "https") or not hostname:
        raise InputError(f"URL must be absolute http(s): {url!r}")
    return candidate, hostname.lower()


@dataclass(frozen=True, slots=True)
class PipelineResult:
    """Everything computed for one request."""

    report: EmissionReport
    estimate: EmissionEstimate
    profile: PageProfile
    server: LocationContext
    user: LocationContext | None
    hosting: HostingContext
    notification: LeadNotification


class EmissionPipeline:
    """Run one emission estimate per request.

    Lookups run concurrently with the page load; each is bounded by its own
    timeout. Green-hosting and geolocation failures fall back to sentinel
    values. A telemetry failure aborts the request.
    """

    def __init__(
        self,
        *,
        engine: EstimationEngine,
        hosting_resolver: GreenHostingResolver,
        geolocator: Geolocator,
        telemetry: TelemetryCollector,
        notifier: LeadNotifier,
        timeouts: TimeoutSettings | None = None,
        locate_requester: bool = True,
    ) -> None:
        self.engine = engine
        self.hosting_resolver = hosting_resolver
        self.geolocator = geolocator
        self.telemetry = telemetry
        self.notifier = notifier
        self.timeouts = timeouts or TimeoutSettings()
        self.locate_requester = locate_requester

    @classmethod
    def from_settings(
        cls,
        settings: SiteCarbonSettings | None = None,
        config: ServiceConfig | None = None,
    ) -> EmissionPipeline:
        """Build a pipeline wired to the real external services."""

        from site_carbon.collaborators.telemetry import PlaywrightTelemetryCollector

        env = settings or get_settings()
        service_config = config or load_config(settings=env)
        timeouts = service_config.timeouts
        notifier: LeadNotifier
        if env.email_configured:
            notifier = SmtpLeadNotifier(
                host=env.smtp_host,
                port=env.smtp_port,
                user=env.email_user,
                password=env.email_password,
                timeout_seconds=timeouts.notify,
            )
        else:
            notifier = LoggingLeadNotifier()
        return cls(
            engine=EstimationEngine(
                params=resolve_model(service_config),
                table=CarbonIntensityTable.default(),
            ),
            hosting_resolver=GreenWebFoundationResolver(
                timeout_seconds=timeouts.lookup, retries=env.lookup_retries
            ),
            geolocator=IpApiGeolocator(
                timeout_seconds=timeouts.lookup, retries=env.lookup_retries
            ),
            telemetry=PlaywrightTelemetryCollector(timeout_seconds=timeouts.telemetry),
            notifier=notifier,
            timeouts=timeouts,
            locate_requester=env.locate_requester,
        )

    @property
    def model_version(self) -> str:
        return self.engine.params.version

    async def _bounded(
        self, operation: Awaitable[LookupResult[T]], name: str
    ) -> LookupResult[T]:
        try:
            return await asyncio.wait_for(operation, timeout=self.timeouts.lookup)
        except asyncio.TimeoutError:
            LOGGER.warning(
                "Lookup timed out",
                extra={"collaborator": name, "timeout_s": self.timeouts.lookup},
            )
            return LookupResult.failure(f"{name} timed out")
        except Exception as exc:  # pragma: no cover - defensive
            LOGGER.warning(
                "Lookup raised unexpectedly",
                extra={"collaborator": name, "error_type": type(exc).__name__},
                exc_info=exc,
            )
            return LookupResult.failure(f"{name} failed: {type(exc).__name__}")

    async def _locate_server(self, hostname: str) -> LookupResult[LocationContext]:
        resolved = await self.geolocator.resolve_ip(hostname)
        if not resolved.ok or resolved.value is None:
            return LookupResult.failure(resolved.error or "unresolved hostname")
        return await self.geolocator.geolocate(resolved.value)

    async def _locate_requester(
        self, requester_ip: str | None
    ) -> LookupResult[LocationContext] | None:
        if not self.locate_requester or not requester_ip:
            return None
        if not is_public_ip(requester_ip):
            LOGGER.debug(
                "Skipping requester geolocation for non-public address",
                extra={"requester_ip": requester_ip},
            )
            return None
        return await self._bounded(
            self.geolocator.geolocate(requester_ip), "requester-geoip"
        )

    async def _collect(self, url: str) -> list[ResourceRecord]:
        try:
            return await asyncio.wait_for(
                self.telemetry.collect(url), timeout=self.timeouts.telemetry
            )
        except asyncio.TimeoutError as exc:
            raise CollaboratorFatal(
                f"page load exceeded {self.timeouts.telemetry:.0f} seconds"
            ) from exc

    async def run(
        self, request: CalculateRequest, requester_ip: str | None = None
    ) -> PipelineResult:
        """Estimate the emissions of one visit to ``request.url``.

        Raises:
            InputError: If the URL is malformed. No lookup is attempted.
            CollaboratorFatal: If the page telemetry cannot be collected.
        """

        url, hostname = parse_target_url(request.url)
        LOGGER.info("Estimating page", extra={"url": url, "hostname": hostname})

        hosting_result, server_result, user_result, records = await asyncio.gather(
            self._bounded(self.hosting_resolver.check(hostname), "greencheck"),
            self._bounded(self._locate_server(hostname), "server-geoip"),
            self._locate_requester(requester_ip),
            self._collect(url),
            return_exceptions=True,
        )

        if isinstance(records, BaseException):
            LOGGER.error(
                "Page telemetry failed; lead not sent",
                extra={
                    "url": url,
                    "error": str(records),
                    "contact_name": request.nome,
                    "contact_email": request.email,
                    "contact_phone": request.celular,
                },
            )
            if isinstance(records, CollaboratorFatal):
                raise records
            raise CollaboratorFatal(f"page load failed: {records}") from records

        hosting = _degrade(hosting_result, UNKNOWN_HOSTING, "greencheck", hostname)
        server = _degrade(server_result, UNKNOWN_LOCATION, "server-geoip", hostname)
        user: LocationContext | None = None
        if user_result is not None:
            user = _degrade(user_result, UNKNOWN_LOCATION, "requester-geoip", hostname)

        profile = self.engine.profile(records, hostname)
        estimate = self.engine.estimate(
            profile, server=server, user=user, hosting=hosting
        )
        report = assemble(profile, server, hosting, estimate)
        breakdown = estimate.breakdown
        notification = LeadNotification(
            nome=request.nome,
            celular=request.celular,
            email=request.email,
            url=url,
            report=report,
            energy_kwh=estimate.energy_kwh_per_visit,
            server_intensity=breakdown.server_intensity,
            user_intensity=breakdown.user_intensity,
            user_country=user.country_code if user is not None else "GLOBAL",
            model_version=estimate.model_version,
        )
        return PipelineResult(
            report=report,
            estimate=estimate,
            profile=profile,
            server=server,
            user=user,
            hosting=hosting,
            notification=notification,
        )

    async def notify(self, result: PipelineResult) -> bool:
        """Send the lead notification; failures are logged, never raised."""

        return await notify_safely(self.notifier, result.notification)


def _degrade(result: object, sentinel: T, name: str, hostname: str) -> T:
    """Return the lookup value, or ``sentinel`` when the lookup failed."""

    if isinstance(result, LookupResult) and result.ok:
        return result.value_or(sentinel)
    if isinstance(result, LookupResult):
        degraded = CollaboratorDegraded(name, result.error or "no value")
    else:
        degraded = CollaboratorDegraded(name, repr(result))
    LOGGER.warning(
        "Lookup degraded to sentinel",
        extra={"collaborator": name, "hostname": hostname, "error": str(degraded)},
    )
    return sentinel
