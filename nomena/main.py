import logging
import uuid
from contextlib import asynccontextmanager

import httpx
from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from openai import AsyncOpenAI
from pydantic import ValidationError as PydanticValidationError

from nomena.cache import close_redis, get_cache_client
from nomena.db.connection import dispose_engine, get_database_type, get_engine, get_session_factory
from nomena.services.collaborators import (
    CollaboratorFailure,
    OpenAITextGenerator,
    WikipediaSummaryClient,
)
from nomena.services.favorites import (
    FavoriteNotFound,
    FavoritesError,
    ValidationError,
)
from nomena.services.favorites_service import FavoritesSessionRegistry
from nomena.services.name_service import NameService
from nomena.settings import AppSettings, get_settings

from .api import favorites, names
from .schemas.error import ErrorType
from .utils.error_responses import (
    build_error_response,
    build_validation_error_response,
    validation_details,
)
from .utils.request_context import clear_request_id, get_request_id, set_request_id

load_dotenv()

settings = get_settings()

logging.basicConfig(
    level=settings.log_level_numeric,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

STORE_RETRY_AFTER_SECONDS = 5


def validate_environment(active_settings: AppSettings | None = None) -> None:
    """Log a warning for every optional setting left at its default."""

    warnings = (active_settings or get_settings()).optional_config_warnings()
    if not warnings:
        return
    logger.warning("Environment configuration warnings:")
    for warning in warnings:
        logger.warning("  - %s", warning)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire shared clients and the favorites registry onto ``app.state``."""
    from nomena.warmup import prepare_sqlite, warmup_all

    validate_environment()
    settings = get_settings()

    engine = get_engine()
    logger.info("Favorites database: %s", get_database_type())
    if get_database_type() == "sqlite":
        await prepare_sqlite(engine)

    http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    openai_client = AsyncOpenAI(
        api_key=settings.openai_api_key or "",
        timeout=settings.openai_timeout_seconds,
    )
    reference = WikipediaSummaryClient(
        http_client,
        base_url=settings.reference_api_url,
        cache=await get_cache_client(),
        cache_ttl=settings.reference_cache_ttl_seconds,
    )
    generator = OpenAITextGenerator(
        openai_client,
        names_model=settings.openai_names_model,
        description_model=settings.openai_description_model,
    )
    name_service = NameService(generator, reference)
    registry = FavoritesSessionRegistry(
        session_factory=get_session_factory(),
        describer=name_service,
        table_name=settings.favorites_table,
        local_dir=settings.local_favorites_dir,
        owner=settings.guest_owner,
        max_sessions=settings.favorites_max_sessions,
    )
    app.state.name_service = name_service
    app.state.favorites_registry = registry

    await warmup_all(engine, registry.prober)

    yield

    logger.info("Shutting down Nomena API")
    await http_client.aclose()
    await openai_client.close()
    await close_redis()
    await dispose_engine()


app = FastAPI(
    title="Nomena API",
    version="0.1.0",
    description="Baby name suggestions with favorites that survive schema drift.",
    lifespan=lifespan,
    redirect_slashes=False,
)


def _default_origins() -> list[str]:
    origins = []
    for host in ("localhost", "127.0.0.1"):
        origins.extend(f"http://{host}:{port}" for port in (3000, 5173))
    return origins


allow_origins = list(dict.fromkeys([*_default_origins(), *settings.cors_allow_origins]))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add unique request ID to each request for tracking."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    token = set_request_id(request_id)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    # Left set on errors so the server error handler can still report it.
    clear_request_id(token)
    return response


def _json_error(response) -> JSONResponse:
    return JSONResponse(
        status_code=response.status_code,
        content=response.model_dump(mode="json"),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors."""
    errors = validation_details(exc.errors())
    logger.warning(
        "Validation error for request %s to %s: %s errors",
        get_request_id(),
        request.url.path,
        len(errors),
    )
    return _json_error(
        build_validation_error_response(
            message="Request validation failed",
            detail=f"{len(errors)} validation error(s)",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            path=str(request.url.path),
            errors=errors,
        )
    )


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_exception_handler(
    request: Request, exc: PydanticValidationError
):
    """Handle Pydantic validation errors raised inside handlers."""
    errors = validation_details(exc.errors())
    logger.warning(
        "Pydantic validation error for request %s to %s: %s errors",
        get_request_id(),
        request.url.path,
        len(errors),
    )
    return _json_error(
        build_validation_error_response(
            message="Data validation failed",
            detail=f"{len(errors)} validation error(s)",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            path=str(request.url.path),
            errors=errors,
        )
    )


@app.exception_handler(FavoritesError)
async def favorites_exception_handler(request: Request, exc: FavoritesError):
    """Map favorites failures onto 400/404/503 without leaking backend text."""
    path = str(request.url.path)
    if isinstance(exc, ValidationError):
        response = build_error_response(
            error_type=ErrorType.VALIDATION_ERROR,
            message=exc.message,
            detail=None,
            status_code=status.HTTP_400_BAD_REQUEST,
            path=path,
        )
    elif isinstance(exc, FavoriteNotFound):
        response = build_error_response(
            error_type=ErrorType.NOT_FOUND,
            message=exc.message,
            detail=None,
            status_code=status.HTTP_404_NOT_FOUND,
            path=path,
        )
    else:
        logger.error(
            "Favorites storage error for request %s to %s: %s",
            get_request_id(),
            path,
            exc.detail or exc.message,
        )
        response = build_error_response(
            error_type=ErrorType.STORAGE_UNAVAILABLE,
            message=exc.message,
            detail="The favorites store could not be reached; try again shortly.",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            path=path,
            retry_after=STORE_RETRY_AFTER_SECONDS,
            favorite_id=exc.favorite_id,
        )
    return _json_error(response)


@app.exception_handler(CollaboratorFailure)
async def collaborator_exception_handler(request: Request, exc: CollaboratorFailure):
    logger.error(
        "Collaborator failure for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        exc,
    )
    return _json_error(
        build_error_response(
            error_type=ErrorType.UPSTREAM_ERROR,
            message="Name generation service failed, please try again",
            detail=exc.collaborator,
            status_code=status.HTTP_502_BAD_GATEWAY,
            path=str(request.url.path),
        )
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle all other unhandled exceptions."""
    logger.exception(
        "Unhandled exception for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        type(exc).__name__,
    )
    return _json_error(
        build_error_response(
            error_type=ErrorType.INTERNAL_ERROR,
            message="Internal server error",
            detail=f"An unexpected error occurred: {type(exc).__name__}",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            path=str(request.url.path),
        )
    )


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    """Simple health endpoint for readiness checks."""
    return {"status": "ok"}


app.include_router(names.router, prefix="/names", tags=["names"])
app.include_router(favorites.router, prefix="/favorites", tags=["favorites"])
