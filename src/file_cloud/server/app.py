from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import os
from pathlib import Path
import re
from typing import Any

from fastapi import BackgroundTasks, Depends, FastAPI, File, Request, Response, UploadFile, status
from fastapi.responses import PlainTextResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from file_cloud.__about__ import __version__
from file_cloud.config import Settings
from file_cloud.server.auth import require_basic_auth
from file_cloud.server.middleware import RequestLoggingMiddleware, client_ip
from file_cloud.server.plausible import PlausibleClient
from file_cloud.server.schema.upload import UploadResponse
from file_cloud.store import FileCloudError, InvalidKeyError, ObjectDirectory, ObjectMissingError, StreamReadError
from file_cloud.store.models import ResolvedFile
from file_cloud.utils import logging

HERE = Path(__file__).parent
TEMPLATES = Jinja2Templates(directory=HERE / "templates")

logger = logging.get_logger(__name__)


def get_directory(request: Request) -> ObjectDirectory:
    return request.app.state.directory


def token_pattern(token_length: int) -> re.Pattern[str]:
    return re.compile(rf"(?P<token>[A-Za-z0-9_=-]{{{token_length},}})(?:\.(?P<ext>.+))?")


def render(request: Request, name: str, file: ResolvedFile | None = None, status_code: int = 200) -> Response:
    settings: Settings = request.app.state.settings
    context: dict[str, Any] = {"plausible": settings.plausible, "file": file}
    return TEMPLATES.TemplateResponse(request, f"{name}.html", context, status_code=status_code)


def not_found(request: Request) -> Response:
    return render(request, "404", status_code=status.HTTP_404_NOT_FOUND)


def create_app(
    directory: ObjectDirectory,
    settings: Settings,
    plausible: PlausibleClient | None = None,
) -> FastAPI:
    if plausible is None and settings.plausible:
        plausible = PlausibleClient(settings.plausible)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("File Cloud %s serving bucket %s", __version__, settings.bucket)
        if settings.auth_enabled:
            logger.info("Setting up with basic auth")
        else:
            logger.info("Setting up without auth")
        yield
        if plausible is not None:
            await plausible.aclose()
        logger.info("Server stopped")

    app = FastAPI(title="File Cloud", version=__version__, lifespan=lifespan, docs_url=None, redoc_url=None)
    app.state.directory = directory
    app.state.settings = settings
    app.state.plausible = plausible
    app.add_middleware(RequestLoggingMiddleware)
    app.mount("/static", StaticFiles(directory=HERE / "static"), name="static")

    pattern = token_pattern(directory.token_length)

    @app.exception_handler(ObjectMissingError)
    async def object_missing(request: Request, exc: ObjectMissingError) -> Response:
        logger.info("Request error: %s", exc)
        return not_found(request)

    @app.exception_handler(FileCloudError)
    async def failure(request: Request, exc: FileCloudError) -> Response:
        if isinstance(exc, InvalidKeyError):
            logger.error("Data integrity anomaly: %s", exc)
        else:
            logger.error("Request error: %s", exc)
        return PlainTextResponse("Internal Server Error", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    @app.get("/ping")
    async def heartbeat() -> Response:
        return PlainTextResponse(".")

    @app.get("/", dependencies=[Depends(require_basic_auth)])
    async def index(request: Request) -> Response:
        return render(request, "index")

    @app.post("/", dependencies=[Depends(require_basic_auth)])
    async def upload(
        file: UploadFile | None = File(None),
        directory: ObjectDirectory = Depends(get_directory),
    ) -> UploadResponse:
        if file is None:
            raise StreamReadError("Upload request has no file field")
        try:
            name = os.path.basename(file.filename or "") or "upload"
            url = await directory.upload(name, file.content_type, file.file)
        finally:
            await file.close()
        return UploadResponse(url=url)

    @app.get("/{key}")
    async def lookup(
        key: str,
        request: Request,
        background_tasks: BackgroundTasks,
        directory: ObjectDirectory = Depends(get_directory),
    ) -> Response:
        match = pattern.fullmatch(key)
        if match is None:
            return not_found(request)

        resolved = await directory.lookup(match["token"])
        ext = match["ext"]
        if ext is None:
            return render(request, "file", file=resolved)

        if os.path.splitext(resolved.original_name)[1].lower() != f".{ext.lower()}":
            logger.info("Extension .%s does not match %s", ext, resolved.original_name)
            return not_found(request)

        if plausible is not None:
            url = request.url.path + (f"?{request.url.query}" if request.url.query else "")
            background_tasks.add_task(
                plausible.send_pageview,
                url,
                request.headers.get("user-agent", ""),
                client_ip(request.scope),
            )
        return RedirectResponse(resolved.url, status_code=status.HTTP_301_MOVED_PERMANENTLY)

    return app
