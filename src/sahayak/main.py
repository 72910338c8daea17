"""
FastAPI application entry point.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sahayak.api.assistant_router import router as assistant_router
from sahayak.api.health_router import router as health_router
from sahayak.api.voice_router import router as voice_router
from sahayak.api.voice_router import webhook_router as voice_webhook_router
from sahayak.assistant.gemini import GeminiTransport, GenerationConfig
from sahayak.assistant.text_adapter import TextGenerationAdapter
from sahayak.config import Settings, get_settings
from sahayak.health.context import HealthContextCache
from sahayak.shared.correlation import CorrelationIdMiddleware
from sahayak.shared.errors import InvalidInputError, MissingCredentialError
from sahayak.shared.logging import get_logger, setup_logging
from sahayak.voice.adapter import VoiceSessionAdapter
from sahayak.voice.config import VoiceConfig, get_voice_config
from sahayak.voice.vapi import VapiTransport

logger = get_logger(__name__)


def build_text_adapter(settings: Settings) -> TextGenerationAdapter | None:
    """Text adapter from settings, or None when no Gemini key is configured."""
    try:
        transport = GeminiTransport.from_settings(settings)
    except MissingCredentialError:
        logger.warning("GEMINI_API_KEY not set; text assistant disabled")
        return None
    return TextGenerationAdapter(transport, GenerationConfig.from_settings(settings))


def build_voice_adapter(config: VoiceConfig) -> VoiceSessionAdapter:
    """Voice adapter from config.

    A missing key does not disable the adapter; session operations raise
    MissingCredentialError instead.
    """
    if not config.api_key:
        logger.warning("VAPI_API_KEY not set; voice sessions will be refused")
    return VoiceSessionAdapter(VapiTransport.from_config(config), source_tag=config.source_tag)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    setup_logging()
    settings = get_settings()

    logger.info(
        "Application starting",
        extra={
            "env": settings.app_env,
            "text_assistant": app.state.text_adapter is not None,
            "voice_assistant": app.state.voice_adapter is not None,
        },
    )

    yield

    logger.info("Shutting down application")
    for transport in app.state.owned_transports:
        transport.close()
    logger.info("Application shutdown complete")


def create_app(
    settings: Settings | None = None,
    text_adapter: TextGenerationAdapter | None = None,
    voice_adapter: VoiceSessionAdapter | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Adapters passed in are used as-is; missing ones are built from settings.
    Adapters built here own their transports and close them on shutdown.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Sahayak API",
        description="Health guidance and voice sessions backed by Gemini and Vapi",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.state.owned_transports = []
    if text_adapter is None:
        text_adapter = build_text_adapter(settings)
        if text_adapter is not None:
            app.state.owned_transports.append(text_adapter.transport)
    if voice_adapter is None:
        voice_adapter = build_voice_adapter(get_voice_config())
        app.state.owned_transports.append(voice_adapter.transport)

    app.state.text_adapter = text_adapter
    app.state.voice_adapter = voice_adapter
    app.state.health_context_cache = HealthContextCache()

    @app.exception_handler(InvalidInputError)
    async def _invalid_input(_: Request, exc: InvalidInputError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": {"code": exc.error_code, "message": exc.message}},
        )

    @app.exception_handler(MissingCredentialError)
    async def _missing_credential(_: Request, exc: MissingCredentialError) -> JSONResponse:
        logger.error(
            "Provider credential missing",
            extra={"provider": exc.provider.value if exc.provider else None},
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": {"code": exc.error_code, "message": exc.message}},
        )

    # Request validation (FastAPI/Pydantic) -> consistent 422 payload
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = []
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            errors.append(
                {
                    "field": field,
                    "message": error["msg"],
                    "type": error["type"],
                }
            )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": {
                    "code": "VALIDATION_ERROR",
                    "message": "Request validation failed",
                    "errors": errors,
                }
            },
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(assistant_router)
    app.include_router(voice_router)
    app.include_router(voice_webhook_router)
    app.include_router(health_router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {
            "status": "healthy",
            "text_assistant": "enabled" if app.state.text_adapter is not None else "disabled",
            "voice_assistant": "enabled" if app.state.voice_adapter is not None else "disabled",
        }

    return app


app = create_app()
