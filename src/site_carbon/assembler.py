"""Shape computed and looked-up values into the response payload."""

from __future__ import annotations

from site_carbon.estimation.reporting import compare_carbon_equivalents
from site_carbon.models import (
    EmissionEstimate,
    HostingContext,
    LocationContext,
    PageProfile,
)
from site_carbon.schemas import EmissionReport, ServerLocation

__all__ = ["assemble"]


def assemble(
    profile: PageProfile,
    server: LocationContext,
    hosting: HostingContext,
    estimate: EmissionEstimate,
) -> EmissionReport:
    """Combine the per-request values into one :class:`EmissionReport`.

    Numeric strings use fixed precision: page weight and km with two
    decimals, trees and penalty with three.
    """

    emission = estimate.emission_grams_per_visit
    equivalents = compare_carbon_equivalents(emission)
    return EmissionReport(
        emissao=emission,
        energia=estimate.energy_kwh_per_visit,
        rating=estimate.rating,
        green=hosting.is_green_certified,
        hostedby=hosting.hosted_by,
        hostedbywebsite=hosting.hosted_by_url,
        servidor=ServerLocation(
            cidade=server.city,
            pais=server.country_code,
            org=server.organization,
        ),
        pageWeightMB=f"{profile.total_weight_mb:.2f}",
        km=equivalents["km"],
        arvores=equivalents["arvores"],
        externalScripts=profile.external_script_count,
        heavyDomains=profile.heavy_domain_count,
        totalPenalty=f"{estimate.breakdown.total_penalty_g:.3f}",
    )
