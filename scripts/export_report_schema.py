"""Export the site-carbon HTTP payload JSON Schemas."""

from __future__ import annotations

import json
from pathlib import Path

from site_carbon.schemas import CalculateRequest, EmissionReport, ErrorResponse


def main() -> None:
    """Write the request and response JSON Schemas to the repository root."""

    schema = {
        "request": CalculateRequest.model_json_schema(),
        "response": EmissionReport.model_json_schema(),
        "error": ErrorResponse.model_json_schema(),
    }
    output_path = Path(__file__).resolve().parent.parent / "calculate_schema.json"
    output_path.write_text(
        json.dumps(schema, indent=2, ensure_ascii=False), encoding="utf-8"
    )


if __name__ == "__main__":
    main()
