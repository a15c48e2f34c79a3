from __future__ import annotations

from typing import TYPE_CHECKING

from litestar import Litestar, Request, get
from litestar.config.cors import CORSConfig
from litestar.enums import MediaType
from litestar.handlers import asgi
from litestar.plugins.prometheus import PrometheusConfig, PrometheusController
from litestar.response import Response

from .proxy import S3Gateway

if TYPE_CHECKING:
    from litestar.types import Receive, Scope, Send


PROXY_METHODS = frozenset({"GET", "HEAD"})

prometheus_config = PrometheusConfig(app_name="s3_gateway", prefix="s3_gateway")


def create_app(gateway: S3Gateway | None = None) -> Litestar:
    """Create the gateway ASGI application.

    Without an explicit ``gateway`` one is built from the environment and the
    configuration file, which also makes this usable as a uvicorn factory.
    """
    if gateway is None:
        gateway = S3Gateway.from_env()

    @get("/health", include_in_schema=False)
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @asgi(path="/", is_mount=True, copy_scope=True)
    async def proxy_handler(scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope=scope, receive=receive)
        path = scope.get("path", "/")
        if not path.startswith("/"):
            path = f"/{path}"
        if path != "/" and path.endswith("/"):
            path = path.rstrip("/") or "/"
        if request.method in PROXY_METHODS:
            response = await gateway.handle(request, path)
        else:
            response = Response(
                content="Method Not Allowed",
                status_code=405,
                headers={"Allow": "GET, HEAD"},
                media_type=MediaType.TEXT,
            )
        asgi_response = response.to_asgi_response(
            None, request, is_head_response=request.method == "HEAD"
        )
        await asgi_response(scope, receive, send)

    async def startup(app: Litestar) -> None:
        await gateway.startup()

    async def shutdown(app: Litestar) -> None:
        await gateway.shutdown()

    cors_config = CORSConfig(
        allow_origins=["*"],
        allow_methods=["GET", "HEAD"],
        allow_headers=["*"],
        expose_headers=["ETag", "Content-Range", "Content-Length"],
    )

    return Litestar(
        route_handlers=[health, proxy_handler, PrometheusController],
        on_startup=[startup],
        on_shutdown=[shutdown],
        cors_config=cors_config,
        middleware=[prometheus_config.middleware],
    )
