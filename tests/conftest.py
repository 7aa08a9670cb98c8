"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
import inspect
import os
import sys
from collections.abc import Callable, Iterator
from typing import Any

import pytest
from hypothesis import HealthCheck, settings

# Ensure src/ is on sys.path for tests so the src layout is used during test runs
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from site_carbon.config_loader import TimeoutSettings  # noqa: E402
from site_carbon.errors import CollaboratorFatal, NotificationFailure  # noqa: E402
from site_carbon.estimation import EstimationEngine  # noqa: E402
from site_carbon.estimation.parameters import get_model  # noqa: E402
from site_carbon.intensity import CarbonIntensityTable  # noqa: E402
from site_carbon.intensity.defaults import load_intensity_data  # noqa: E402
from site_carbon.models import (  # noqa: E402
    HostingContext,
    LocationContext,
    LookupResult,
    ResourceRecord,
)
from site_carbon.pipeline import EmissionPipeline  # noqa: E402


settings.register_profile(
    "site-carbon", suppress_health_check=[HealthCheck.function_scoped_fixture]
)
settings.load_profile("site-carbon")


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "asyncio: mark test as requiring an event loop")


def pytest_pyfunc_call(pyfuncitem: Any) -> bool | None:
    """Execute async test functions without requiring pytest-asyncio."""

    if inspect.iscoroutinefunction(pyfuncitem.obj):
        call_kwargs = {
            name: pyfuncitem.funcargs[name]
            for name in pyfuncitem._fixtureinfo.argnames  # type: ignore[attr-defined]
        }

        event_loop = asyncio.new_event_loop()
        try:
            event_loop.run_until_complete(pyfuncitem.obj(**call_kwargs))
        finally:
            event_loop.close()
        return True
    return None


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep host environment variables and cached data out of the tests."""

    for name in (
        "SITE_CARBON_MODEL_VERSION",
        "SITE_CARBON_CONFIG_PATH",
        "SITE_CARBON_INTENSITY_FILE",
        "SITE_CARBON_CORS_ORIGINS",
        "SITE_CARBON_LOOKUP_TIMEOUT",
        "SITE_CARBON_TELEMETRY_TIMEOUT",
        "SITE_CARBON_NOTIFY_TIMEOUT",
        "SITE_CARBON_LOOKUP_RETRIES",
        "SITE_CARBON_TRUST_PROXY",
        "SITE_CARBON_LOCATE_REQUESTER",
        "EMAIL_USER",
        "EMAIL_PASS",
        "SMTP_HOST",
        "SMTP_PORT",
        "PORT",
    ):
        monkeypatch.delenv(name, raising=False)
    load_intensity_data.cache_clear()
    yield
    load_intensity_data.cache_clear()


class FakeHostingResolver:
    """Green-hosting resolver returning a canned result."""

    def __init__(
        self, result: LookupResult[HostingContext], delay: float = 0.0
    ) -> None:
        self.result = result
        self.delay = delay
        self.calls: list[str] = []

    async def check(self, hostname: str) -> LookupResult[HostingContext]:
        self.calls.append(hostname)
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.result


class FakeGeolocator:
    """Geolocator backed by dictionaries of canned results."""

    def __init__(
        self,
        addresses: dict[str, LookupResult[str]] | None = None,
        locations: dict[str, LookupResult[LocationContext]] | None = None,
    ) -> None:
        self.addresses = addresses or {}
        self.locations = locations or {}
        self.geolocated: list[str] = []

    async def resolve_ip(self, hostname: str) -> LookupResult[str]:
        return self.addresses.get(hostname, LookupResult.failure("NXDOMAIN"))

    async def geolocate(self, ip_address: str) -> LookupResult[LocationContext]:
        self.geolocated.append(ip_address)
        return self.locations.get(ip_address, LookupResult.failure("no data"))


class FakeTelemetry:
    """Telemetry collector returning fixed records or raising."""

    def __init__(
        self,
        records: list[ResourceRecord] | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.records = records or []
        self.error = error
        self.delay = delay
        self.urls: list[str] = []

    async def collect(self, url: str) -> list[ResourceRecord]:
        self.urls.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.records)


class RecordingNotifier:
    """Notifier that records deliveries, optionally failing."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[Any] = []

    async def send(self, notification: Any) -> None:
        if self.fail:
            raise NotificationFailure("smtp down")
        self.sent.append(notification)


SERVER_IP = "203.0.113.10"
REQUESTER_IP = "8.8.8.8"

PAGE_RECORDS = [
    ResourceRecord(
        url="https://example.com/",
        transfer_size_bytes=524288,
        decoded_size_bytes=1048576,
        initiator_type="navigation",
    ),
    ResourceRecord(
        url="https://cdn.tracker.net/t.js",
        transfer_size_bytes=262144,
        decoded_size_bytes=524288,
        initiator_type="script",
    ),
    ResourceRecord(
        url="https://fonts.googleapis.com/css?family=Roboto",
        transfer_size_bytes=262144,
        decoded_size_bytes=262144,
        initiator_type="link",
    ),
]


@pytest.fixture
def intensity_table() -> CarbonIntensityTable:
    return CarbonIntensityTable.default()


@pytest.fixture
def make_pipeline() -> Callable[..., EmissionPipeline]:
    """Return a factory building a pipeline around fake collaborators."""

    def _build(
        *,
        model: str = "swdm-v4",
        hosting: LookupResult[HostingContext] | None = None,
        geolocator: FakeGeolocator | None = None,
        telemetry: FakeTelemetry | None = None,
        notifier: RecordingNotifier | None = None,
        timeouts: TimeoutSettings | None = None,
        hosting_delay: float = 0.0,
        locate_requester: bool = True,
    ) -> EmissionPipeline:
        return EmissionPipeline(
            engine=EstimationEngine(
                params=get_model(model), table=CarbonIntensityTable.default()
            ),
            hosting_resolver=FakeHostingResolver(
                hosting
                or LookupResult.success(
                    HostingContext(
                        is_green_certified=True,
                        hosted_by="Green Host",
                        hosted_by_url="https://green.example",
                    )
                ),
                delay=hosting_delay,
            ),
            geolocator=geolocator
            or FakeGeolocator(
                addresses={"example.com": LookupResult.success(SERVER_IP)},
                locations={
                    SERVER_IP: LookupResult.success(
                        LocationContext(
                            country_code="BR",
                            city="São Paulo",
                            organization="Example Networks",
                            ip_address=SERVER_IP,
                        )
                    ),
                    REQUESTER_IP: LookupResult.success(
                        LocationContext(
                            country_code="US",
                            city="Mountain View",
                            organization="Google LLC",
                            ip_address=REQUESTER_IP,
                        )
                    ),
                },
            ),
            telemetry=telemetry or FakeTelemetry(records=list(PAGE_RECORDS)),
            notifier=notifier or RecordingNotifier(),
            timeouts=timeouts,
            locate_requester=locate_requester,
        )

    return _build


@pytest.fixture
def failing_telemetry() -> FakeTelemetry:
    return FakeTelemetry(error=CollaboratorFatal("page load failed: net::ERR_NAME"))
