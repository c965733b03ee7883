"""History Time Machine — FastAPI Application.

This module defines the FastAPI ``app`` instance, all REST API routes, and
the ``main()`` CLI function that launches the uvicorn server.

Architecture
------------
- **Image generation** is delegated to
  :class:`~timemachine.core.orchestrator.GenerationOrchestrator`, which owns
  provider resolution and model escalation.  Routes only translate its
  outcome into JSON.
- **Credentials** live in a :class:`~timemachine.core.secret_store.SecretStore`
  (SQLite file under ``data_dir``).
- **Outbound HTTP** goes through one shared ``httpx.AsyncClient`` created in
  the lifespan and closed on shutdown.

Endpoints
---------
========  ================================  ==================================
Method    Path                              Purpose
========  ================================  ==================================
GET       ``/api/providers``                Selectable providers + auto choice
POST      ``/api/generate``                 Generate one image
GET       ``/api/credentials``              Which credential types are stored
PUT       ``/api/credentials/{type}``       Store a credential
DELETE    ``/api/credentials/{type}``       Remove a credential
POST      ``/api/prompt/compile``           Build a scene or event prompt
GET       ``/api/presets``                  Named historical dates
GET       ``/api/onthisday/{month}/{day}``  Historical events for a day
========  ================================  ==================================

Usage
-----
CLI (installed entry point)::

    timemachine

Direct invocation::

    python -m timemachine.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from timemachine import __version__
from timemachine.api.models import CompilePromptRequest, CredentialRequest, GenerateRequest
from timemachine.core.adapters import build_adapters
from timemachine.core.adapters.base import ProviderAdapter
from timemachine.core.config import TimeMachineConfig, config
from timemachine.core.errors import HistoryLookupError, StorageError
from timemachine.core.history import fetch_on_this_day
from timemachine.core.models import FailureKind, GenerationRequest, GenerationSuccess
from timemachine.core.orchestrator import GenerationOrchestrator
from timemachine.core.prompt_builder import (
    HISTORICAL_PRESETS,
    Coordinates,
    HistoricalDate,
    build_event_prompt,
    build_scene_prompt,
    format_historical_date,
)
from timemachine.core.providers import AUTO, CREDENTIAL_TYPES, ProviderRegistry, default_registry
from timemachine.core.secret_store import SecretStore

logger = logging.getLogger(__name__)

# Failure kinds that map to a non-200 status.  Every other failure is a
# normal outcome and is returned with 200 and ``success: false``.
_FAILURE_STATUS: dict[FailureKind, int] = {
    FailureKind.INVALID_PROVIDER: 400,
    FailureKind.BUSY: 409,
}


def create_app(
    settings: TimeMachineConfig = config,
    *,
    registry: ProviderRegistry | None = None,
    secret_store=None,
    transport: httpx.AsyncBaseTransport | None = None,
    adapters: Mapping[str, ProviderAdapter] | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Components that are not supplied are built from ``settings`` when the
    application starts.

    Args:
        settings: Configuration instance.
        registry: Provider catalog (defaults to the built-in providers).
        secret_store: Credential store (defaults to a SQLite store at
            ``settings.secret_store_path``).
        transport: Optional httpx transport for the shared client.
        adapters: Adapter instances keyed by family name.

    Returns:
        The configured application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Create the shared HTTP client and orchestrator; close the client on shutdown."""
        # --- Startup -------------------------------------------------------
        client = httpx.AsyncClient(timeout=settings.request_timeout, transport=transport)
        store = secret_store if secret_store is not None else SecretStore(settings.secret_store_path)

        app.state.settings = settings
        app.state.http_client = client
        app.state.secret_store = store
        app.state.orchestrator = GenerationOrchestrator(
            registry if registry is not None else default_registry(),
            store,
            adapters if adapters is not None else build_adapters(client, settings),
        )
        logger.info("Generation orchestrator initialised.")

        yield  # Application runs here.

        # --- Shutdown ------------------------------------------------------
        await client.aclose()
        logger.info("HTTP client closed on shutdown.")

    app = FastAPI(
        title="History Time Machine",
        description="Generate images of places at moments in history.",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_routes(app)
    return app


def _orchestrator(request: Request) -> GenerationOrchestrator:
    return request.app.state.orchestrator


def _check_credential_type(credential_type: str) -> None:
    if credential_type not in CREDENTIAL_TYPES:
        raise HTTPException(status_code=404, detail=f"Unknown credential type: {credential_type}")


def _register_routes(app: FastAPI) -> None:
    """Attach every route to ``app``."""

    @app.get("/api/providers")
    async def list_providers(request: Request) -> dict:
        """Return the selectable providers and what ``"auto"`` resolves to."""
        orchestrator = _orchestrator(request)
        return {
            "auto": orchestrator.resolve_provider(AUTO),
            "providers": [p.to_dict() for p in orchestrator.list_available_providers()],
        }

    @app.post("/api/generate")
    async def generate_image(req: GenerateRequest, request: Request) -> dict:
        """Generate one image.

        Returns the outcome as JSON.  Failures caused by the backend (quota,
        rejected request, missing credential) are returned with status 200
        and ``success: false`` so the reason can be displayed.

        Raises:
            HTTPException: 400 for a blank prompt or unknown provider,
                409 while another generation is in flight.
        """
        outcome = await _orchestrator(request).submit(
            GenerationRequest(prompt=req.prompt, provider_choice=req.provider)
        )
        if outcome is None:
            raise HTTPException(status_code=400, detail="prompt must not be blank")

        if not isinstance(outcome, GenerationSuccess) and outcome.kind in _FAILURE_STATUS:
            raise HTTPException(status_code=_FAILURE_STATUS[outcome.kind], detail=outcome.reason)

        return outcome.to_dict()

    @app.get("/api/credentials")
    async def credential_status(request: Request) -> dict:
        """Return which credential types are stored.  Values are never returned."""
        store = request.app.state.secret_store
        return {credential_type: store.has(credential_type) for credential_type in CREDENTIAL_TYPES}

    @app.put("/api/credentials/{credential_type}")
    async def save_credential(credential_type: str, req: CredentialRequest, request: Request) -> dict:
        """Store a credential, replacing any previous value.

        Raises:
            HTTPException: 404 for an unknown credential type, 400 for a blank
                value, 500 if the store could not persist the value.
        """
        _check_credential_type(credential_type)
        value = req.value.strip()
        if not value:
            raise HTTPException(status_code=400, detail="credential value must not be blank")
        try:
            request.app.state.secret_store.save(credential_type, value)
        except StorageError as e:
            raise HTTPException(status_code=500, detail=str(e)) from e
        return {"success": True, "credential_type": credential_type}

    @app.delete("/api/credentials/{credential_type}")
    async def remove_credential(credential_type: str, request: Request) -> dict:
        """Remove a stored credential.  Removing an absent credential succeeds."""
        _check_credential_type(credential_type)
        try:
            request.app.state.secret_store.remove(credential_type)
        except StorageError as e:
            raise HTTPException(status_code=500, detail=str(e)) from e
        return {"success": True, "credential_type": credential_type}

    @app.post("/api/prompt/compile")
    async def compile_prompt(req: CompilePromptRequest) -> dict:
        """Build a scene prompt (coordinates + date) or an event prompt."""
        coordinates = None
        if req.latitude is not None and req.longitude is not None:
            coordinates = Coordinates(req.latitude, req.longitude)

        if req.date is not None:
            date = HistoricalDate(**req.date.model_dump())
            prompt = build_scene_prompt(coordinates, date)
        else:
            prompt = build_event_prompt(req.event.text, req.event.year, coordinates)

        return {"prompt": prompt}

    @app.get("/api/presets")
    async def get_presets() -> dict:
        """Return the named historical date presets."""
        return {
            "presets": [
                {
                    "label": preset.label,
                    "date": {
                        "year": preset.date.year,
                        "month": preset.date.month,
                        "day": preset.date.day,
                        "hour": preset.date.hour,
                        "is_bce": preset.date.is_bce,
                    },
                    "formatted": format_historical_date(preset.date),
                }
                for preset in HISTORICAL_PRESETS
            ]
        }

    @app.get("/api/onthisday/{month}/{day}")
    async def on_this_day(month: int, day: int, request: Request) -> dict:
        """Return historical events for a calendar day.

        Raises:
            HTTPException: 400 for an invalid day, 502 if the feed is unavailable.
        """
        if not 1 <= month <= 12 or not 1 <= day <= 31:
            raise HTTPException(status_code=400, detail="month must be 1-12 and day 1-31")

        try:
            events = await fetch_on_this_day(
                request.app.state.http_client,
                month,
                day,
                base_url=request.app.state.settings.wikimedia_base_url,
            )
        except HistoryLookupError as e:
            raise HTTPException(status_code=502, detail=str(e)) from e

        return {"month": month, "day": day, "events": [e.to_dict() for e in events]}


app = create_app()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~timemachine.core.config.config`
    (``TIMEMACHINE_SERVER_HOST``, ``TIMEMACHINE_SERVER_PORT``,
    ``TIMEMACHINE_LOG_LEVEL``).  Defaults to ``0.0.0.0:7860``.

    This function is registered as the ``timemachine`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "timemachine.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
