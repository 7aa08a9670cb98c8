"""Per-visit energy and emission arithmetic.

The calculator is a pure function of its arguments: no I/O, no clock, no
randomness. Grid intensities come from the read-only
:class:`~site_carbon.intensity.CarbonIntensityTable`.

Term structure::

    operational = w * (op_dc * I_server * green + (op_n + op_ud) * I_user)
    embodied    = w * (em_dc + em_n + em_ud) * I_global
    subtotal    = (operational + embodied) * cache
    emission    = subtotal + connection * w + render * w * I_user + penalties
    energy      = w * (sum of the six intensities) * cache
"""

from __future__ import annotations

from site_carbon.estimation.parameters import ModelParameters
from site_carbon.intensity import CarbonIntensityTable
from site_carbon.models import (
    EmissionBreakdown,
    HostingContext,
    LocationContext,
    PageProfile,
)

__all__ = ["calculate", "resolve_intensities"]


def resolve_intensities(
    server: LocationContext,
    user: LocationContext | None,
    params: ModelParameters,
    table: CarbonIntensityTable,
) -> tuple[float, float, float]:
    """Return ``(server, user, global)`` grid intensities in gCO2e/kWh.

    The requester segment uses the global value when no requester location is
    known. Embodied emissions always use the global value.
    """

    if params.grid_intensity_override is not None:
        flat = float(params.grid_intensity_override)
        return flat, flat, flat
    global_intensity = table.global_intensity
    server_intensity = table.intensity_for(server.country_code)
    if user is None or not user.is_known:
        user_intensity = global_intensity
    else:
        user_intensity = table.intensity_for(user.country_code)
    return server_intensity, user_intensity, global_intensity


def calculate(
    profile: PageProfile,
    server: LocationContext,
    user: LocationContext | None,
    hosting: HostingContext,
    params: ModelParameters,
    table: CarbonIntensityTable,
) -> EmissionBreakdown:
    """Estimate emissions and energy for one visit to a page.

    Args:
        profile: Page weight and third-party counts.
        server: Location of the origin server.
        user: Location of the requester, when known.
        hosting: Green-hosting facts for the target hostname.
        params: Model revision coefficients.
        table: Country intensity table.

    Returns:
        Breakdown holding the totals and every intermediate term.
    """

    weight_mb = max(profile.total_weight_mb, 0.0)
    i_server, i_user, i_global = resolve_intensities(server, user, params, table)
    green = params.green_hosting_factor if hosting.is_green_certified else 1.0
    cache = params.cache_factor if params.cache_factor is not None else 1.0

    op = params.operational
    em = params.embodied
    op_dc = weight_mb * op.data_center * i_server * green
    op_n = weight_mb * op.network * i_user
    op_ud = weight_mb * op.user_device * i_user
    em_dc = weight_mb * em.data_center * i_global
    em_n = weight_mb * em.network * i_global
    em_ud = weight_mb * em.user_device * i_global

    operational = op_dc + op_n + op_ud
    embodied = em_dc + em_n + em_ud
    adjusted = (operational + embodied) * cache

    connection = params.connection_g_per_mb * weight_mb
    render = params.render_kwh_per_mb * weight_mb * i_user
    external_penalty = (
        max(profile.external_script_count, 0) * params.external_script_penalty_g
    )
    heavy_penalty = max(profile.heavy_domain_count, 0) * params.heavy_domain_penalty_g

    emission = adjusted + connection + render + external_penalty + heavy_penalty
    energy = weight_mb * (op.total + em.total) * cache

    return EmissionBreakdown(
        emission_grams_per_visit=emission,
        energy_kwh_per_visit=energy,
        operational_data_center_g=op_dc,
        operational_network_g=op_n,
        operational_user_device_g=op_ud,
        embodied_data_center_g=em_dc,
        embodied_network_g=em_n,
        embodied_user_device_g=em_ud,
        operational_g=operational,
        embodied_g=embodied,
        cache_factor=cache,
        adjusted_subtotal_g=adjusted,
        connection_g=connection,
        render_g=render,
        external_script_penalty_g=external_penalty,
        heavy_domain_penalty_g=heavy_penalty,
        server_intensity=i_server,
        user_intensity=i_user,
        global_intensity=i_global,
        green_factor=green,
    )
