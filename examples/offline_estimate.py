"""Compare model revisions on a recorded page load without network access.

The resource entries below were captured from a small marketing page. Each
registered model is run over the same entries so their grades can be compared:

    python examples/offline_estimate.py
"""

from __future__ import annotations

from site_carbon.assembler import assemble
from site_carbon.estimation import EstimationEngine, available_models, get_model
from site_carbon.models import HostingContext, LocationContext, ResourceRecord

ENTRIES = [
    {
        "name": "https://www.example.com/",
        "transferSize": 48_213,
        "encodedBodySize": 47_913,
        "decodedBodySize": 181_402,
        "initiatorType": "navigation",
    },
    {
        "name": "https://www.example.com/static/app.js",
        "transferSize": 212_004,
        "encodedBodySize": 211_704,
        "decodedBodySize": 702_331,
        "initiatorType": "script",
    },
    {
        "name": "https://www.googletagmanager.com/gtag/js?id=G-XXXX",
        "transferSize": 98_311,
        "encodedBodySize": 98_011,
        "decodedBodySize": 0,
        "initiatorType": "script",
    },
    {
        "name": "https://fonts.gstatic.com/s/inter/v13/inter.woff2",
        "transferSize": 48_256,
        "encodedBodySize": 47_956,
        "decodedBodySize": 47_956,
        "initiatorType": "css",
    },
    {
        "name": "https://www.example.com/img/hero.webp",
        "transferSize": 386_120,
        "encodedBodySize": 385_820,
        "decodedBodySize": 385_820,
        "initiatorType": "img",
    },
]

SERVER = LocationContext(country_code="US", city="Ashburn", organization="Cloud Co")
VISITOR = LocationContext(country_code="BR", city="Recife", organization="ISP")
HOSTING = HostingContext(is_green_certified=True, hosted_by="Cloud Co")


def main() -> None:
    records = [ResourceRecord.from_timing_entry(entry) for entry in ENTRIES]
    for version in available_models():
        engine = EstimationEngine(params=get_model(version))
        profile = engine.profile(records, "www.example.com")
        estimate = engine.estimate(
            profile, server=SERVER, user=VISITOR, hosting=HOSTING
        )
        report = assemble(profile, SERVER, HOSTING, estimate)
        print(
            f"{version:<20} {report.pageWeightMB} MB  "
            f"{report.emissao:.4f} g  rating {report.rating}  "
            f"penalty {report.totalPenalty} g"
        )


if __name__ == "__main__":
    main()
