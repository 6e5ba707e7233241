"""
tor-auth Main Entry Point

This script provides the main entry point for running the authorization daemon.
"""

import argparse
import asyncio
import platform
import signal
import sys
from typing import List, Optional

# uvloop is optional on Windows
try:
    import uvloop
except ImportError:
    uvloop = None

import dns.exception

from tor_auth.auth_logging import (
    VerdictLogger,
    get_logger,
    log_exception,
    setup_logging,
)
from tor_auth.config import ConfigLoader, ConfigurationError, TorAuthConfig
from tor_auth.core import (
    DiscoveryError,
    ExitListResolver,
    RequestHandler,
    discover_public_address,
)
from tor_auth.web import AuthServer

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


class TorAuthApp:
    """tor-auth application"""

    def __init__(
        self,
        config_path: Optional[str] = None,
        overrides: Optional[dict] = None,
    ):
        self.config_path = config_path
        self.overrides = overrides or {}
        self.config: Optional[TorAuthConfig] = None
        self.resolver: Optional[ExitListResolver] = None
        self.handler: Optional[RequestHandler] = None
        self.server: Optional[AuthServer] = None
        self.ingress_address: Optional[str] = None
        self._shutdown_event = asyncio.Event()
        self.logger = None

    async def initialize(self) -> None:
        """Load configuration and build the classification path.

        Raises:
            ConfigurationError: If the configuration is invalid or the ingress
                address cannot be determined
        """
        self.config = ConfigLoader(self.config_path, self.overrides).load_config()

        setup_logging(self.config.logging)
        self.logger = get_logger("tor_auth_app")
        self.logger.info(
            "Structured logging configured",
            level=self.config.logging.level,
            format=self.config.logging.format,
            file=self.config.logging.file,
        )

        sink = VerdictLogger()
        try:
            self.resolver = ExitListResolver.from_config(
                self.config.resolver, sink=sink
            )
        except dns.exception.DNSException as e:
            # No nameservers configured and no usable system resolver
            raise ConfigurationError(f"Unable to create DNS resolver: {e}") from e
        self.handler = RequestHandler(
            self.resolver, sink=sink, zone=self.config.resolver.zone
        )

        self.ingress_address = await self._resolve_ingress_address()

        self.server = AuthServer(
            listen=self.config.listen,
            handler=self.handler,
            ingress_address=self.ingress_address,
            ingress_port=self.config.ingress.port,
            client_header=self.config.client_header,
        )

        self.logger.info(
            "tor-auth initialized",
            listen=self.config.listen.describe(),
            ingress_address=self.ingress_address,
            ingress_port=self.config.ingress.port,
            nameservers=self.config.resolver.nameservers or "system",
            timeout=self.config.resolver.timeout,
        )

    async def _resolve_ingress_address(self) -> str:
        """Configured ingress address, or this host's public address."""
        if self.config.ingress.address:
            return self.config.ingress.address

        discovery = self.config.discovery
        try:
            address = await discover_public_address(
                name=discovery.name,
                nameservers=discovery.nameservers,
                timeout=discovery.timeout,
            )
        except DiscoveryError as e:
            raise ConfigurationError(
                f"Ingress address not configured and discovery failed: {e}"
            ) from e

        self.logger.info("Discovered public ingress address", address=address)
        return address

    async def start(self) -> None:
        """Start serving until a shutdown signal arrives"""
        if not self.server:
            await self.initialize()

        loop = asyncio.get_running_loop()
        signals = [signal.SIGTERM, signal.SIGINT]

        try:
            await self.server.start()

            for sig in signals:
                loop.add_signal_handler(sig, self._signal_handler)

            await self._shutdown_event.wait()

        except Exception as e:
            log_exception(self.logger, "Error running auth server", e)
            raise
        finally:
            for sig in signals:
                loop.remove_signal_handler(sig)
            await self.stop()

    async def stop(self) -> None:
        """Stop the auth server"""
        if self.server:
            await self.server.stop()

        if self.logger:
            self.logger.info("tor-auth shutdown complete")

    def shutdown(self) -> None:
        self._shutdown_event.set()

    def _signal_handler(self) -> None:
        """Handle shutdown signals"""
        self.logger.info("Received shutdown signal")
        self.shutdown()

    async def health_check(self) -> dict:
        """Perform health check"""
        if not self.server:
            return {"status": "not_running"}

        return await self.server.health_check()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tor-auth",
        description="Deny requests from Tor exit nodes for a reverse proxy auth_request",
    )
    parser.add_argument("--config", "-c", help="Configuration file path")
    parser.add_argument(
        "--listen",
        "-l",
        help="Unix socket path (containing a '/' or prefixed with 'unix:') "
        "or [address:]port to listen on",
    )
    parser.add_argument(
        "--ingress",
        "-i",
        help="[address:]port of the protected service",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level",
    )
    parser.add_argument(
        "--health-check",
        action="store_true",
        help="Validate configuration, resolve the ingress address and exit",
    )
    return parser


def overrides_from_args(args: argparse.Namespace) -> dict:
    overrides = {"listen": args.listen, "ingress": args.ingress}
    if args.log_level:
        overrides["logging"] = {"level": args.log_level}
    return overrides


async def run(argv: Optional[List[str]] = None) -> int:
    """Run the daemon and return the process exit code."""
    args = build_parser().parse_args(argv)

    app = TorAuthApp(args.config, overrides_from_args(args))

    try:
        await app.initialize()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    if args.health_check:
        health = await app.health_check()
        print(f"Health status: {health['status']}")
        print(f"Ingress: {app.ingress_address}:{app.config.ingress.port}")
        return EXIT_OK

    try:
        await app.start()
    except Exception as e:
        print(f"tor-auth failed: {e}", file=sys.stderr)
        return EXIT_FAILURE

    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> None:
    """Console script entry point"""
    # Use uvloop for better performance on Unix systems
    if uvloop is not None and platform.system() != "Windows":
        asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())

    try:
        sys.exit(asyncio.run(run(argv)))
    except KeyboardInterrupt:
        print("\ntor-auth interrupted")


if __name__ == "__main__":
    main()
