"""
FastAPI application exposing content acquisition, the hosted scrape service
and the analysis endpoints.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Literal, Optional

import structlog
from fastapi import FastAPI, File, Request, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST
from pydantic import BaseModel, Field

from contextiq import __version__
from contextiq.analysis import AnalysisServiceError, ChatMessage
from contextiq.config import find_config_file
from contextiq.container import DependencyContainer
from contextiq.crawler import UpstreamStatusError
from contextiq.errors import (
    AcquisitionError,
    ContentTooShortError,
    ExtractionFailedError,
    InvalidUrlError,
    SizeExceededError,
    UnsupportedTypeError,
)
from contextiq.models import AcquisitionOutcome
from contextiq.observability.metrics import export_prometheus
from contextiq.session import SessionStore

logger = structlog.get_logger(__name__)

SESSION_COOKIE = "contextiq_session"

ERROR_STATUS: Dict[type[AcquisitionError], int] = {
    InvalidUrlError: status.HTTP_400_BAD_REQUEST,
    ContentTooShortError: status.HTTP_400_BAD_REQUEST,
    SizeExceededError: status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    UnsupportedTypeError: status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    ExtractionFailedError: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


class TextRequest(BaseModel):
    text: str


class UrlRequest(BaseModel):
    url: str


class AnalysisRequest(BaseModel):
    text: Optional[str] = Field(default=None, description="Text to analyze; defaults to the active buffer.")


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    context: Optional[str] = Field(default=None, description="Reference text; defaults to the active buffer.")
    history: List[ChatTurn] = Field(default_factory=list)


def status_for(error: AcquisitionError) -> int:
    """HTTP status for an acquisition error."""
    if isinstance(error, UpstreamStatusError):
        return error.status
    for error_type, code in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(error: AcquisitionError) -> JSONResponse:
    return JSONResponse(status_code=status_for(error), content={"error": error.message, "kind": error.kind})


def create_app(container: Optional[Any] = None) -> FastAPI:
    """
    Build the application around ``container`` (a DependencyContainer by default).

    Each browser session gets its own ContentBuffer, keyed by the
    ``contextiq_session`` cookie: a successful acquisition replaces that
    session's buffer and the analysis endpoints fall back to it when no text
    is posted. Sessions never see each other's content.
    """
    if container is None:
        container = DependencyContainer(config_path=find_config_file())
        container.load_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Starting ContextIQ API", version=__version__)
        await container.initialize()
        # Build shared components up front so concurrent requests reuse one HTTP session
        await container.get_pipeline()
        await container.get_scrape_service()
        await container.get_analysis()
        app.state.start_time = time.time()

        yield

        logger.info("Shutting down ContextIQ API")
        await container.shutdown()

    app = FastAPI(title="ContextIQ", version=__version__, lifespan=lifespan)
    app.state.container = container
    web_config = container.config.web if getattr(container, "config", None) else None
    sessions = SessionStore(web_config.max_sessions if web_config else 1024)
    app.state.sessions = sessions

    cors_origins = web_config.cors_origins if web_config else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    @app.middleware("http")
    async def add_process_time(request: Request, call_next: Any) -> Response:
        start_time = time.time()
        response = await call_next(request)
        response.headers["X-Process-Time"] = str(time.time() - start_time)
        return response

    @app.middleware("http")
    async def attach_session(request: Request, call_next: Any) -> Response:
        if not request.url.path.startswith("/api/"):
            return await call_next(request)

        session_id = request.cookies.get(SESSION_COOKIE, "")
        # Only ids this app issued are honoured
        issued = session_id not in sessions
        if issued:
            session_id = sessions.create()
        request.state.buffer = sessions.get(session_id)

        response = await call_next(request)
        if issued:
            response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")
        return response

    @app.exception_handler(AnalysisServiceError)
    async def analysis_error_handler(request: Request, exc: AnalysisServiceError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"error": exc.message})

    def outcome_response(request: Request, outcome: AcquisitionOutcome) -> JSONResponse:
        if outcome.error is not None:
            return error_response(outcome.error)
        request.state.buffer.apply(outcome)
        assert outcome.result is not None
        return JSONResponse(content=outcome.result.to_dict())

    @app.get("/health")
    async def health(request: Request) -> Dict[str, Any]:
        return {
            "status": "ok",
            "version": __version__,
            "sessions": len(sessions),
            "container": container.get_health_status(),
        }

    @app.get("/metrics")
    async def metrics() -> Response:
        """Endpoint for Prometheus to scrape."""
        return Response(export_prometheus(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/api/content")
    async def get_content(request: Request) -> Dict[str, Any]:
        return request.state.buffer.to_dict()  # type: ignore[no-any-return]

    @app.post("/api/acquire/text")
    async def acquire_text(request: Request, body: TextRequest) -> JSONResponse:
        pipeline = await container.get_pipeline()
        return outcome_response(request, await pipeline.acquire_text(body.text))

    @app.post("/api/acquire/file")
    async def acquire_file(request: Request, file: UploadFile = File(...)) -> JSONResponse:
        pipeline = await container.get_pipeline()
        # The declared size is checked before the body is read into memory
        outcome = await pipeline.acquire_upload(file.filename or "", file.size, file.read)
        return outcome_response(request, outcome)

    @app.post("/api/acquire/url")
    async def acquire_url(request: Request, body: UrlRequest) -> JSONResponse:
        pipeline = await container.get_pipeline()
        return outcome_response(request, await pipeline.acquire_url(body.url))

    @app.post("/api/scrape")
    async def scrape(body: UrlRequest) -> JSONResponse:
        service = await container.get_scrape_service()
        try:
            content = await service.scrape(body.url)
        except AcquisitionError as e:
            logger.warning("Scrape failed", url=body.url, error=e.message)
            return error_response(e)
        return JSONResponse(content={"content": content, "url": body.url})

    def text_or_buffer(request: Request, text: Optional[str]) -> Optional[str]:
        text = text if text and text.strip() else request.state.buffer.text
        return text or None

    @app.post("/api/summarize")
    async def summarize(request: Request, body: AnalysisRequest) -> JSONResponse:
        text = text_or_buffer(request, body.text)
        if text is None:
            return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Text is required"})
        client = await container.get_analysis()
        return JSONResponse(content={"summary": await client.summarize(text)})

    @app.post("/api/analyze")
    async def analyze(request: Request, body: AnalysisRequest) -> JSONResponse:
        text = text_or_buffer(request, body.text)
        if text is None:
            return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Text is required"})
        client = await container.get_analysis()
        analysis = await client.analyze(text)
        return JSONResponse(content={"analysis": analysis.to_dict()})

    @app.post("/api/chat")
    async def chat(request: Request, body: ChatRequest) -> JSONResponse:
        context = text_or_buffer(request, body.context)
        history = [ChatMessage(role=turn.role, content=turn.content) for turn in body.history]
        client = await container.get_analysis()
        answer = await client.chat(body.message, context=context, history=history)
        return JSONResponse(content={"response": answer})

    return app


def run_web_server(host: str = "127.0.0.1", port: int = 8000, container: Optional[DependencyContainer] = None) -> None:
    """Function to run the FastAPI server."""
    import uvicorn

    logger.info("Starting ContextIQ API server", url=f"http://{host}:{port}")
    uvicorn.run(create_app(container), host=host, port=port)
