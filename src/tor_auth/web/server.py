"""
Authorization Listener

This module serves the reverse proxy's authorization subrequests using aiohttp:
- TCP or Unix socket endpoint
- Client address extraction (query parameter, header, peer address)
- Fail-open error middleware so every request gets a 200 or 403
"""

import asyncio
from enum import Enum
from typing import Optional

from aiohttp import web
from aiohttp.web import Application

from ..auth_logging import get_logger
from ..config.schema import ListenConfig
from ..core.handler import (
    ALLOW_RESPONSE,
    AuthResponse,
    RequestContext,
    RequestHandler,
    Verdict,
)

CLIENT_PARAMETER = "ip"

DEFAULT_CLIENT_HEADER = "X-Real-IP"


class ServerState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"


def make_response(response: AuthResponse) -> web.Response:
    return web.Response(
        status=response.status,
        text=response.body,
        content_type=response.content_type,
    )


class AuthServer:
    """Authorization subrequest listener."""

    def __init__(
        self,
        listen: ListenConfig,
        handler: RequestHandler,
        ingress_address: str,
        ingress_port: int,
        client_header: str = DEFAULT_CLIENT_HEADER,
    ):
        """Initialize the listener.

        Args:
            listen: Endpoint to bind
            handler: Request handler shared by all requests
            ingress_address: Address of the protected service
            ingress_port: Port of the protected service
            client_header: Header carrying the real client address
        """
        self.listen = listen
        self.handler = handler
        self.ingress_address = ingress_address
        self.ingress_port = ingress_port
        self.client_header = client_header
        self.logger = get_logger("auth_server")

        self.state = ServerState.STOPPED
        self.app: Optional[Application] = None
        self.runner: Optional[web.AppRunner] = None
        self.site: Optional[web.BaseSite] = None
        self._started = False

        self._stats = {
            "requests": 0,
            "allowed": 0,
            "denied": 0,
            "errors": 0,
        }

    def setup_application(self) -> Application:
        """Setup aiohttp application with the catch-all auth route."""
        app = web.Application(middlewares=[self._create_error_middleware()])
        app.router.add_route("*", "/{tail:.*}", self.handle_request)
        return app

    def client_address(self, request: web.Request) -> Optional[str]:
        """Real client address: query parameter, then header, then TCP peer."""
        address = request.query.get(CLIENT_PARAMETER)
        if address:
            return address.strip()

        address = request.headers.get(self.client_header)
        if address:
            # X-Forwarded-For style lists carry the client first
            return address.split(",")[0].strip()

        if self.listen.is_unix:
            return None

        return request.remote or None

    def request_context(self, request: web.Request) -> RequestContext:
        return RequestContext(
            client_address=self.client_address(request),
            ingress_address=self.ingress_address,
            ingress_port=self.ingress_port,
        )

    async def handle_request(self, request: web.Request) -> web.Response:
        """Answer one authorization subrequest."""
        self._stats["requests"] += 1

        response = await self.handler.handle(self.request_context(request))

        if response.status == 403:
            self._stats["denied"] += 1
        else:
            self._stats["allowed"] += 1

        return make_response(response)

    def _create_error_middleware(self):
        """Create fail-open error handling middleware."""
        logger = self.logger
        stats = self._stats

        @web.middleware
        async def error_middleware(request, handler):
            try:
                return await handler(request)
            except web.HTTPException:
                raise
            except asyncio.CancelledError:
                raise
            except Exception as ex:
                stats["errors"] += 1
                logger.error(
                    "Unhandled error in auth request, allowing",
                    method=request.method,
                    path=request.path,
                    error=str(ex),
                    verdict=Verdict.ALLOW.value,
                )
                return make_response(ALLOW_RESPONSE)

        return error_middleware

    async def start(self) -> None:
        """Bind the endpoint and start serving.

        Raises:
            RuntimeError: If the server has already been started
        """
        if self._started:
            raise RuntimeError("Auth server cannot be started twice")
        self._started = True

        try:
            self.app = self.setup_application()

            self.runner = web.AppRunner(self.app, access_log=None)
            await self.runner.setup()

            if self.listen.is_unix:
                self.site = web.UnixSite(self.runner, self.listen.path)
            else:
                self.site = web.TCPSite(
                    self.runner, host=self.listen.address, port=self.listen.port
                )

            await self.site.start()
            self.state = ServerState.RUNNING

            self.logger.info(
                "Auth server started",
                listen=self.listen.describe(),
                ingress=f"{self.ingress_address}:{self.ingress_port}",
            )

        except Exception as ex:
            self.logger.error("Failed to start auth server", error=str(ex))
            await self.stop()
            raise

    async def stop(self) -> None:
        """Stop serving and release the endpoint."""
        if self.site:
            await self.site.stop()
            self.site = None

        if self.runner:
            await self.runner.cleanup()
            self.runner = None

        self.app = None

        if self.state is ServerState.RUNNING:
            self.logger.info("Auth server stopped")
        self.state = ServerState.STOPPED

    async def health_check(self) -> dict:
        """Get listener status and request counters."""
        return {
            "status": "healthy" if self.state is ServerState.RUNNING else "stopped",
            "listen": self.listen.describe(),
            "ingress": f"{self.ingress_address}:{self.ingress_port}",
            **self._stats,
        }
