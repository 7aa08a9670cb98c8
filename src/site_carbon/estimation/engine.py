"""Synchronous estimation engine tying projection, calculation and rating."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from site_carbon.estimation.calculator import calculate
from site_carbon.estimation.parameters import ModelParameters, get_model
from site_carbon.estimation.profile import project
from site_carbon.estimation.rating import classify
from site_carbon.intensity import CarbonIntensityTable
from site_carbon.models import (
    EmissionEstimate,
    HostingContext,
    LocationContext,
    PageProfile,
    ResourceRecord,
)

_LOGGER = logging.getLogger("site_carbon.estimation.engine")


@dataclass(slots=True)
class EstimationEngine:
    """Run one model revision against a page's telemetry and context."""

    params: ModelParameters = field(default_factory=get_model)
    table: CarbonIntensityTable = field(default_factory=CarbonIntensityTable.default)
    logger: logging.Logger = _LOGGER

    def profile(
        self, records: Iterable[ResourceRecord], hostname: str
    ) -> PageProfile:
        """Project resource records with the model's profile settings."""

        return project(records, hostname, self.params.profile)

    def estimate(
        self,
        profile: PageProfile,
        *,
        server: LocationContext,
        user: LocationContext | None,
        hosting: HostingContext,
    ) -> EmissionEstimate:
        """Calculate and rate the emissions of one visit."""

        breakdown = calculate(profile, server, user, hosting, self.params, self.table)
        rating = classify(
            breakdown.emission_grams_per_visit,
            hosting.is_green_certified,
            self.params.rating,
        )
        self.logger.info(
            "Emission estimate computed",
            extra={
                "model_version": self.params.version,
                "page_weight_mb": round(profile.total_weight_mb, 4),
                "emission_g": round(breakdown.emission_grams_per_visit, 6),
                "rating": rating,
            },
        )
        return EmissionEstimate(
            breakdown=breakdown, rating=rating, model_version=self.params.version
        )
