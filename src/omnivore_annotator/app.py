"""Webhook Application Module

FastAPI app exposing one POST route per pipeline stage:

  POST /api/summary     body: {"page": {"id": ...}}  (Omnivore page-created event)
  POST /api/actions     body: handoff payload
  POST /api/repetition  body: handoff payload
  GET  /health

Every request builds its own clients; nothing is shared between
invocations. Responses are the JSON-serialized ``StageOutcome`` with
status 200 when the stage completed and 502 when it stopped early.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Callable, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ValidationError

from .completions import CompletionClient
from .config import Settings
from .errors import ConfigurationError
from .models import HandoffPayload, PageCreatedEvent
from .omnivore import OmnivoreClient
from .stages import StageDefinition, StageHandler, StageOutcome, build_stages

logger = logging.getLogger(__name__)

HandlerFactory = Callable[[StageDefinition], AsyncContextManager[StageHandler]]


def default_handler_factory(settings: Settings, dry_run: bool = False):
    """Factory building a fresh StageHandler (and HTTP client) per call."""

    @asynccontextmanager
    async def factory(definition: StageDefinition) -> AsyncIterator[StageHandler]:
        async with httpx.AsyncClient(
            timeout=settings.http_timeout, follow_redirects=True
        ) as http:
            yield StageHandler(
                definition,
                OmnivoreClient(settings, http_client=http),
                CompletionClient(settings, http_client=http),
                http,
                candidates=settings.candidates,
                dry_run=dry_run,
            )

    return factory


def _outcome_response(outcome: StageOutcome) -> JSONResponse:
    return JSONResponse(
        outcome.model_dump(mode="json"), status_code=200 if outcome.ok else 502
    )


def create_app(
    settings: Optional[Settings] = None,
    handler_factory: Optional[HandlerFactory] = None,
) -> FastAPI:
    """Build the webhook app.

    Args:
        settings: Explicit settings (default: ``Settings.from_env()``)
        handler_factory: Async context manager factory yielding a
            StageHandler for a stage definition; overridable for tests
    """
    settings = settings or Settings.from_env()
    stages = build_stages(settings)
    factory = handler_factory or default_handler_factory(settings)

    app = FastAPI(title="Omnivore Annotator", version="0.1.0")

    async def read_body(request: Request, model: type[BaseModel]):
        try:
            body = await request.json()
        except ValueError as e:
            logger.error("No payload found: %s", e)
            return None, PlainTextResponse("No payload found.", status_code=400)
        try:
            return model.model_validate(body), None
        except ValidationError as e:
            logger.error("Malformed %s payload: %s", model.__name__, e)
            return None, PlainTextResponse(
                f"Malformed payload: {e.error_count()} validation error(s)",
                status_code=422,
            )

    async def run_stage(
        name: str, article_id: str, article: Optional[str] = None
    ):
        try:
            async with factory(stages[name]) as handler:
                outcome = await handler.run(article_id, article)
        except ConfigurationError as e:
            logger.exception("Stage %s is misconfigured", name)
            return PlainTextResponse(str(e), status_code=500)
        return _outcome_response(outcome)

    @app.get("/health")
    async def health():
        return {"status": "ok", "stages": list(stages)}

    @app.post("/api/summary")
    async def summary(request: Request):
        event, error = await read_body(request, PageCreatedEvent)
        if error is not None:
            return error
        return await run_stage("summary", event.page.id)

    @app.post("/api/actions")
    async def actions(request: Request):
        payload, error = await read_body(request, HandoffPayload)
        if error is not None:
            return error
        return await run_stage("actions", payload.article_id, payload.article)

    @app.post("/api/repetition")
    async def repetition(request: Request):
        payload, error = await read_body(request, HandoffPayload)
        if error is not None:
            return error
        return await run_stage("repetition", payload.article_id, payload.article)

    return app
