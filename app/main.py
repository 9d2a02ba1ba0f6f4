"""Entry point for the FastAPI-powered watchlist synchroniser."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import BackgroundTasks, FastAPI, HTTPException, Request
from fastapi.responses import Response

from .catalog import ProfileCatalog
from .config import Settings, get_settings
from .models import MediaType, parse_webhook
from .services.arr import ArrClient, MediaBackend
from .services.events import EventReconciler
from .services.library_sync import LibraryReconciler
from .services.notion import NotionClient
from .services.onboarding import OnboardingReconciler
from .services.radarr import RadarrClient
from .services.reconciler import PeriodicReconciler
from .services.sonarr import SonarrClient
from .services.tvdb import TVDBClient

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(settings: Settings) -> None:
    """Configure the root logger once for the process."""

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.log_path:
        handlers.append(logging.FileHandler(settings.log_path, encoding="utf-8"))
    logging.basicConfig(
        level=logging.DEBUG if settings.log_debug else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
    )
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def build_backends(
    settings: Settings, clients: dict[MediaType, httpx.AsyncClient], tvdb: TVDBClient
) -> dict[MediaType, ArrClient]:
    """Instantiate the enabled back-end clients."""

    backends: dict[MediaType, ArrClient] = {}
    for backend_settings in settings.backends:
        http_client = clients[backend_settings.media_type]
        if backend_settings.media_type is MediaType.MOVIE:
            backends[MediaType.MOVIE] = RadarrClient(http_client, backend_settings.api_key)
        else:
            backends[MediaType.SERIES] = SonarrClient(
                http_client, backend_settings.api_key, tvdb
            )
    return backends


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    settings = get_settings()
    configure_logging(settings)
    notion_secret, notion_database_id = settings.require_notion()
    timeout = httpx.Timeout(settings.http_timeout_seconds, connect=10.0)

    exit_stack = AsyncExitStack()
    reconcilers: list[PeriodicReconciler] = []
    try:
        notion_http = await exit_stack.enter_async_context(
            httpx.AsyncClient(base_url=str(settings.notion_api_url), timeout=timeout)
        )
        tvdb_http = await exit_stack.enter_async_context(
            httpx.AsyncClient(base_url=str(settings.tvdb_api_url), timeout=timeout)
        )
        backend_http: dict[MediaType, httpx.AsyncClient] = {}
        for backend_settings in settings.backends:
            backend_http[backend_settings.media_type] = await exit_stack.enter_async_context(
                httpx.AsyncClient(base_url=backend_settings.host, timeout=timeout)
            )

        store = NotionClient(notion_http, notion_secret, notion_database_id)
        backends = build_backends(settings, backend_http, TVDBClient(tvdb_http))

        # Catalog failures abort startup.
        catalog = await ProfileCatalog.build(
            (backends[backend_settings.media_type], backend_settings)
            for backend_settings in settings.backends
        )
        await store.configure_enumerations(
            catalog.quality_labels(), catalog.root_labels(), catalog.monitor_labels()
        )

        media_backends: dict[MediaType, MediaBackend] = dict(backends)
        fastapi_app.state.event_reconciler = EventReconciler(store, catalog, media_backends)

        for media_type, backend in media_backends.items():
            reconcilers.append(
                OnboardingReconciler(
                    store,
                    backend,
                    catalog,
                    interval_seconds=settings.poll_interval_seconds,
                )
            )
            reconcilers.append(
                LibraryReconciler(
                    store,
                    backend,
                    catalog,
                    interval_seconds=settings.library_sync_interval_seconds,
                    retry_delay_seconds=settings.library_sync_retry_seconds,
                )
            )
        for reconciler in reconcilers:
            await reconciler.start()
        logger.info(
            "Started %d reconcilers for %s",
            len(reconcilers),
            ", ".join(media_type.value for media_type in catalog.media_types),
        )

        yield
    finally:
        for reconciler in reconcilers:
            await reconciler.stop()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title="watchlistarr",
        description="Keeps a Notion watchlist in sync with Radarr and Sonarr",
        version="1.0.0",
        lifespan=lifespan,
    )
    register_routes(fastapi_app)
    return fastapi_app


def get_event_reconciler(app: FastAPI) -> EventReconciler:
    reconciler = getattr(app.state, "event_reconciler", None)
    if not isinstance(reconciler, EventReconciler):
        raise RuntimeError("Event reconciler not initialised")
    return reconciler


def register_routes(fastapi_app: FastAPI) -> None:
    async def _webhook_endpoint(
        request: Request,
        background_tasks: BackgroundTasks,
        media_type: MediaType,
    ) -> dict[str, Any]:
        reconciler = get_event_reconciler(fastapi_app)
        if not reconciler.handles(media_type):
            raise HTTPException(status_code=405, detail="Method Not Allowed")

        body = await request.body()
        try:
            event = parse_webhook(media_type, await request.json())
        except ValueError as exc:
            logger.error(
                "Rejected malformed %s webhook: %s (body %r)",
                media_type.value,
                exc,
                body[:500],
            )
            raise HTTPException(status_code=400, detail="Malformed webhook body") from exc

        logger.info(
            "%s webhook %s for %s",
            media_type.value,
            event.event_type,
            event.external_id or "-",
        )
        # Processed after the response is sent.
        background_tasks.add_task(reconciler.handle, event)
        return {"status": "accepted"}

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.post("/radarr")
    async def radarr_webhook(
        request: Request, background_tasks: BackgroundTasks
    ) -> dict[str, Any]:
        return await _webhook_endpoint(request, background_tasks, MediaType.MOVIE)

    @fastapi_app.post("/sonarr")
    async def sonarr_webhook(
        request: Request, background_tasks: BackgroundTasks
    ) -> dict[str, Any]:
        return await _webhook_endpoint(request, background_tasks, MediaType.SERIES)

    @fastapi_app.api_route(
        "/{path:path}",
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"],
        include_in_schema=False,
    )
    async def method_not_allowed(path: str) -> Response:
        return Response(status_code=405)


app = create_app()
