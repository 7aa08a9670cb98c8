"""Adapters for the external services the pipeline consumes."""

from __future__ import annotations

from site_carbon.collaborators.base import (
    Geolocator,
    GreenHostingResolver,
    TelemetryCollector,
    with_retries,
)
from site_carbon.collaborators.geolocation import IpApiGeolocator, is_public_ip
from site_carbon.collaborators.greencheck import GreenWebFoundationResolver
from site_carbon.collaborators.notification import (
    LeadNotification,
    LeadNotifier,
    LoggingLeadNotifier,
    SmtpLeadNotifier,
    notify_safely,
)

__all__ = [
    "Geolocator",
    "GreenHostingResolver",
    "GreenWebFoundationResolver",
    "IpApiGeolocator",
    "LeadNotification",
    "LeadNotifier",
    "LoggingLeadNotifier",
    "SmtpLeadNotifier",
    "TelemetryCollector",
    "is_public_ip",
    "notify_safely",
    "with_retries",
]
