"""Exception taxonomy for the emission pipeline."""

from __future__ import annotations

__all__ = [
    "CollaboratorDegraded",
    "CollaboratorFatal",
    "InputError",
    "NotificationFailure",
    "SiteCarbonError",
    "UnknownModelError",
]


class SiteCarbonError(Exception):
    """Base class for all errors raised by :mod:`site_carbon`."""


class InputError(SiteCarbonError, ValueError):
    """Raised when the submitted URL cannot be parsed as an absolute URL."""


class CollaboratorDegraded(SiteCarbonError):
    """A best-effort lookup failed and its sentinel value will be used.

    Attributes:
        collaborator: Short name of the failing lookup (for example
            ``"greencheck"`` or ``"geoip"``).
    """

    def __init__(self, collaborator: str, message: str) -> None:
        super().__init__(f"{collaborator}: {message}")
        self.collaborator = collaborator


class CollaboratorFatal(SiteCarbonError):
    """The page telemetry could not be collected, so no estimate exists."""


class NotificationFailure(SiteCarbonError):
    """The lead notification could not be delivered."""


class UnknownModelError(SiteCarbonError, ValueError):
    """Raised when an emission model version is not registered."""
