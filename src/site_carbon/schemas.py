"""Pydantic models describing the public HTTP payloads."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

RatingLiteral = Literal["A+", "A", "B", "C", "D", "E", "F"]


class CalculateRequest(BaseModel):
    """Lead submission: the page to analyse plus contact details."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    url: str = Field(..., description="Absolute http(s) URL of the page.")
    nome: str = Field(default="", description="Contact name.")
    celular: str = Field(default="", description="Contact phone number.")
    email: str = Field(default="", description="Contact e-mail address.")


class ServerLocation(BaseModel):
    """Where the analysed site is served from."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    cidade: str = Field(..., description="Server city.")
    pais: str = Field(..., description="Server country code.")
    org: str = Field(..., description="Network organisation owning the IP.")


class EmissionReport(BaseModel):
    """Immutable response payload for a successful estimate."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    emissao: float = Field(..., ge=0, description="Grams CO2e per visit.")
    energia: float = Field(..., ge=0, description="kWh per visit.")
    rating: RatingLiteral
    green: bool = Field(..., description="Hosting is green-certified.")
    hostedby: str
    hostedbywebsite: str
    servidor: ServerLocation
    pageWeightMB: str = Field(..., description="Page weight, two decimals.")
    km: str = Field(..., description="Equivalent km driven, two decimals.")
    arvores: str = Field(..., description="Equivalent trees per year, three decimals.")
    externalScripts: int = Field(..., ge=0)
    heavyDomains: int = Field(..., ge=0)
    totalPenalty: str = Field(..., description="Penalty grams, three decimals.")


class ErrorResponse(BaseModel):
    """Error payload returned with a non-2xx status."""

    error: str
