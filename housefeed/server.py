"""HTTP server for the history API."""

import logging
from typing import Optional

from aiohttp import web
import orjson

from .errors import InvalidSourceError
from .query import QueryService

logger = logging.getLogger(__name__)


def json_response(data, status: int = 200) -> web.Response:
    """Build a JSON response serialized with orjson."""
    return web.Response(
        status=status,
        content_type="application/json",
        body=orjson.dumps(data),
    )


@web.middleware
async def cors_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Allow any origin; answer preflight requests directly."""
    if request.method == "OPTIONS":
        response = web.Response(status=204)
    else:
        response = await handler(request)
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = "GET, OPTIONS"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    return response


class HistoryServer:
    """
    HTTP server that serves house history.

    Endpoints:
    - GET /api/history/{house} - Exposed window for one house
    - GET /api/history - Exposed window for every house
    - GET /api/status - Upstream connection status and last values
    """

    def __init__(
        self,
        query: QueryService,
        host: str = "0.0.0.0",
        port: int = 3000,
    ):
        """
        Initialize the server.

        Args:
            query: QueryService to answer from
            host: Host to bind to
            port: Port to bind to
        """
        self.query = query
        self.host = host
        self.port = port

        self._app: Optional[web.Application] = None
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None

    async def handle_get_one(self, request: web.Request) -> web.Response:
        """
        Handle GET /api/history/{house}.

        Returns 400 with an error message for unknown houses.
        """
        try:
            data = self.query.get_one(request.match_info["house"])
        except InvalidSourceError as e:
            return json_response({"error": str(e)}, status=400)
        return json_response(data)

    async def handle_get_all(self, request: web.Request) -> web.Response:
        """Handle GET /api/history."""
        return json_response(self.query.get_all())

    async def handle_status(self, request: web.Request) -> web.Response:
        """Handle GET /api/status."""
        return json_response(self.query.get_status())

    def build_app(self) -> web.Application:
        """Create the aiohttp application with routes and middleware."""
        app = web.Application(middlewares=[cors_middleware])
        app.router.add_get("/api/history", self.handle_get_all)
        app.router.add_get("/api/history/{house}", self.handle_get_one)
        app.router.add_get("/api/status", self.handle_status)
        return app

    async def start(self) -> None:
        """Start the HTTP server."""
        self._app = self.build_app()

        self._runner = web.AppRunner(self._app)
        await self._runner.setup()

        self._site = web.TCPSite(self._runner, self.host, self.port)
        await self._site.start()

        logger.info(f"History server started on http://{self.host}:{self.port}")

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self._site:
            await self._site.stop()
        if self._runner:
            await self._runner.cleanup()

        logger.info("History server stopped")
