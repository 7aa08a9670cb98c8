"""FastAPI application exposing the emission estimate over HTTP."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Protocol
from uuid import uuid4

from fastapi import BackgroundTasks, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from site_carbon.errors import CollaboratorFatal, InputError
from site_carbon.estimation.parameters import available_models
from site_carbon.logging_pipeline import request_id_var
from site_carbon.pipeline import EmissionPipeline, PipelineResult
from site_carbon.schemas import CalculateRequest, EmissionReport, ErrorResponse
from site_carbon.settings import SiteCarbonSettings, get_settings

LOGGER = logging.getLogger(__name__)


class Pipeline(Protocol):
    """Subset of :class:`EmissionPipeline` the HTTP layer depends on."""

    @property
    def model_version(self) -> str: ...

    async def run(
        self, request: CalculateRequest, requester_ip: str | None = None
    ) -> PipelineResult: ...

    async def notify(self, result: PipelineResult) -> bool: ...


def requester_ip(request: Request, *, trust_proxy: bool) -> str | None:
    """Return the client address, preferring the first forwarded hop."""

    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    if request.client is None:
        return None
    return request.client.host


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=ErrorResponse(error=message).model_dump()
    )


def create_app(
    pipeline: Pipeline | None = None,
    settings: SiteCarbonSettings | None = None,
) -> FastAPI:
    """Build the HTTP application.

    Args:
        pipeline: Pipeline used to answer requests. Built from ``settings``
            with the real collaborators when omitted.
        settings: Environment settings; read from the process environment
            when omitted.

    Returns:
        Configured :class:`FastAPI` instance.
    """

    env = settings or get_settings()
    active: Pipeline = pipeline or EmissionPipeline.from_settings(env)

    app = FastAPI(title="Site Carbon API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=env.allowed_origins,
        allow_methods=["POST"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def bind_request_id(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("x-request-id") or uuid4().hex
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers["x-request-id"] = request_id
        return response

    @app.exception_handler(InputError)
    async def handle_input_error(request: Request, exc: InputError) -> JSONResponse:
        LOGGER.info("Rejected request", extra={"error": str(exc)})
        return _error(400, str(exc))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        LOGGER.info("Rejected malformed body", extra={"errors": exc.errors()})
        return _error(400, "invalid request body")

    @app.exception_handler(CollaboratorFatal)
    async def handle_collaborator_fatal(
        request: Request, exc: CollaboratorFatal
    ) -> JSONResponse:
        LOGGER.warning("Page could not be analysed", extra={"error": str(exc)})
        return _error(502, "Could not load the page to measure its weight")

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        LOGGER.exception("Unhandled error while estimating", exc_info=exc)
        return _error(500, "Internal error while calculating emissions")

    @app.post("/calculate", response_model=EmissionReport)
    async def calculate(
        payload: CalculateRequest, request: Request, background: BackgroundTasks
    ) -> EmissionReport:
        """Estimate the emissions of one visit and queue the lead e-mail."""

        result = await active.run(
            payload, requester_ip(request, trust_proxy=env.trust_proxy)
        )
        background.add_task(active.notify, result)
        return result.report

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "model": active.model_version}

    @app.get("/models")
    async def models() -> dict[str, object]:
        """List the registered emission models."""

        return {"default": active.model_version, "models": available_models()}

    return app
