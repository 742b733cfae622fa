"""
FastAPI application serving the gallery.

Routes are mounted under the configurable URL bases:
- ``{html_url_base}{path}``: directory listing as HTML
- ``{files_url_base}{path}``: full-size file
- ``{previews_url_base}{path}@{size}``: resized preview
- ``/healthz``: health report (never authenticated)
"""

import asyncio
from collections.abc import AsyncIterator
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse, Response
from fastapi.templating import Jinja2Templates

from .. import __version__
from ..config import GallerySettings
from ..error_handling import GalleryError, get_error_handler
from ..health import get_health_status
from ..logging_config import get_logger, log_request
from ..models.access import AccessLevel, AccessProfile
from ..services.access_policy import PathPolicyEvaluator
from ..services.auth import UserRegistry, parse_basic_authorization
from ..services.gallery import GalleryService
from ..services.image_processor import ImageResizer
from ..services.preview_cache import PreviewCache
from ..services.preview_key import parse_preview_key
from ..utils.media import content_type_for

logger = get_logger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


def get_identity(request: Request) -> str | None:
    """Authenticated user name, or None when authentication is disabled."""
    registry: UserRegistry | None = request.app.state.registry
    if registry is None:
        return None
    credentials = parse_basic_authorization(request.headers.get("Authorization"))
    if credentials is None:
        return registry.authenticate(None, None)
    return registry.authenticate(*credentials)


def get_profile(request: Request, identity: str | None = Depends(get_identity)) -> AccessProfile:
    registry: UserRegistry | None = request.app.state.registry
    if registry is None:
        return AccessLevel.ALL
    return registry.profile_for(identity)


def build_gallery_router(settings: GallerySettings) -> APIRouter:
    """Create the listing, file and preview routes for the configured URL bases."""
    router = APIRouter()

    @router.get(settings.html_url_base + "{route_path:path}", response_class=HTMLResponse)
    async def gallery_listing(
        request: Request,
        route_path: str,
        identity: str | None = Depends(get_identity),
        profile: AccessProfile = Depends(get_profile),
    ) -> Response:
        log_request("listing", request.url.path, identity)
        gallery: GalleryService = request.app.state.gallery
        listing = await asyncio.to_thread(gallery.build_listing, route_path, profile, identity)
        return request.app.state.templates.TemplateResponse(request, "listing.html", {"listing": listing})

    @router.get(settings.files_url_base + "{route_path:path}")
    async def original_file(
        request: Request,
        route_path: str,
        identity: str | None = Depends(get_identity),
    ) -> Response:
        log_request("original", request.url.path, identity)
        gallery: GalleryService = request.app.state.gallery
        target = await asyncio.to_thread(gallery.resolve_original, route_path)
        return FileResponse(target, media_type=content_type_for(target.name))

    @router.get(settings.previews_url_base + "{request_id:path}")
    async def preview_image(
        request: Request,
        request_id: str,
        identity: str | None = Depends(get_identity),
    ) -> Response:
        log_request("preview", request.url.path, identity)
        key = parse_preview_key(request_id)
        preview_cache: PreviewCache = request.app.state.preview_cache
        artifact = await preview_cache.get_or_create(key)
        return Response(content=artifact.data, media_type=artifact.content_type)

    return router


def build_health_router() -> APIRouter:
    router = APIRouter()

    @router.get("/healthz")
    async def healthz(request: Request) -> JSONResponse:
        status = await asyncio.to_thread(get_health_status, request.app.state.settings)
        return JSONResponse(status, status_code=200 if status["status"] == "healthy" else 503)

    return router


def register_exception_handlers(app: FastAPI) -> None:
    """Translate errors into generic HTML pages carrying only the user message."""

    async def gallery_error_handler(request: Request, exc: GalleryError) -> Response:
        error_info = get_error_handler().handle_error(exc, {"route": request.url.path})
        headers = {}
        if error_info.status_code == 401:
            headers["WWW-Authenticate"] = f'Basic realm="{app.state.settings.auth_realm}"'
        return app.state.templates.TemplateResponse(
            request,
            "message.html",
            {"message": error_info.user_message},
            status_code=error_info.status_code,
            headers=headers,
        )

    async def unhandled_error_handler(request: Request, exc: Exception) -> Response:
        error_info = get_error_handler().handle_error(exc, {"route": request.url.path})
        status_code = error_info.status_code if error_info.status_code >= 500 else 500
        return app.state.templates.TemplateResponse(
            request,
            "message.html",
            {"message": error_info.user_message},
            status_code=status_code,
        )

    app.add_exception_handler(GalleryError, gallery_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


def create_app(settings: GallerySettings, registry: UserRegistry | None = None) -> FastAPI:
    """
    Build the gallery application.

    Args:
        settings: Settings snapshot
        registry: User registry; loaded from ``settings.users_file`` when not
            given and authentication is configured. None disables authentication.

    Returns:
        FastAPI: Configured application
    """
    if registry is None and settings.users_file is not None:
        registry = UserRegistry.from_file(settings.users_file)

    executor = ThreadPoolExecutor(max_workers=settings.preview_workers, thread_name_prefix="preview")

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "application_starting",
            photos_root=str(settings.photos_root),
            persist_cache=settings.persist_cache,
            auth_enabled=registry is not None,
        )
        try:
            yield
        finally:
            executor.shutdown(wait=True)
            logger.info("application_stopped")

    app = FastAPI(
        title="simplegallery",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    evaluator = PathPolicyEvaluator(route_base=settings.html_url_base, match_mode=settings.access_match_mode)
    app.state.settings = settings
    app.state.registry = registry
    app.state.templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    app.state.gallery = GalleryService(settings, evaluator)
    app.state.preview_cache = PreviewCache(
        photos_root=settings.photos_root,
        previews_root=settings.previews_root,
        persist=settings.persist_cache,
        resizer=ImageResizer(quality=settings.preview_quality),
        executor=executor,
    )

    register_exception_handlers(app)
    app.include_router(build_health_router())
    app.include_router(build_gallery_router(settings))

    return app
