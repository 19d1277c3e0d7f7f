"""HTTP interface: ``GET /?ip=<address>`` and ``GET /version``."""

import logging
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from .cache import DatasetCache
from .client_ranges import RangesClient
from .logging_config import configure_logging
from .lookup import LookupService
from .models import ParameterError, RangeLookupError, VersionResponse
from .parser import DatasetParser
from .settings import Settings
from .version import get_local_version, new_instance_id

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, HEAD, OPTIONS",
    "Access-Control-Max-Age": "86400",
}

FETCH_FAILED_MESSAGE = "Unable to fetch AWS ranges"


@dataclass
class AppContext:
    """Per-application state built once at startup and shared by every request."""

    settings: Settings
    instance_id: str
    cache: DatasetCache
    service: LookupService


def create_context(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AppContext:
    """Wire the cache, fetcher and parser for one application instance."""
    cache = DatasetCache(single_flight=settings.single_flight)
    service = LookupService(
        cache=cache,
        client=RangesClient(settings, transport=transport),
        parser=DatasetParser(skip_malformed=settings.skip_malformed_prefixes),
    )
    return AppContext(
        settings=settings,
        instance_id=new_instance_id(),
        cache=cache,
        service=service,
    )


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def create_app(settings: Optional[Settings] = None, context: Optional[AppContext] = None) -> FastAPI:
    """Build the FastAPI application around an AppContext."""
    if context is None:
        context = create_context(settings or Settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("AWS IP lookup started (instance_id=%s)", context.instance_id)
        try:
            yield
        finally:
            await context.service.close()

    app = FastAPI(
        title="AWS IP Lookup",
        version=get_local_version(),
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.context = context

    @app.middleware("http")
    async def add_cors_headers(request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=CORS_HEADERS)
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    @app.api_route("/", methods=["GET", "HEAD"])
    async def lookup_ip(request: Request) -> Response:
        """Report the published AWS prefixes containing the ``ip`` parameter."""
        # First occurrence wins when the parameter is repeated
        values = request.query_params.getlist("ip")
        ip_param = values[0] if values else None

        try:
            result = await context.service.lookup(ip_param)
        except ParameterError as e:
            logger.info("Rejected lookup (ip=%r): %s", ip_param, e)
            return _error(e.error, 400)
        except RangeLookupError:
            return _error(FETCH_FAILED_MESSAGE, 500)
        except Exception:
            logger.exception("Unexpected error during lookup")
            return _error("Unknown error", 500)

        return JSONResponse(result.model_dump())

    @app.api_route("/version", methods=["GET", "HEAD"])
    async def version() -> Response:
        """Report the instance identity and versions."""
        payload = VersionResponse(
            instance_id=context.instance_id,
            local_version=get_local_version(),
            workers_version=context.settings.workers_version,
        )
        return JSONResponse(payload.model_dump())

    return app


def main():
    """Run the HTTP server with uvicorn."""
    settings = Settings()
    configure_logging(settings)
    app = create_app(settings)
    try:
        uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    except KeyboardInterrupt:
        logger.info("Shutting down server")
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
