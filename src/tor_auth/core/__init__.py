"""
tor-auth Core Module

This module exports the classification path: probe names, the exit-list
resolver and the request handler.
"""

from .probe import (
    EXIT_LIST_ZONE,
    InvalidAddress,
    build_probe_name,
    is_valid_ipv4,
    reverse_ipv4,
)
from .events import NULL_SINK, AuthEventSink
from .resolver import (
    ExitListResolver,
    LookupOutcome,
    LookupResult,
    create_dns_resolver,
)
from .handler import (
    ALLOW_RESPONSE,
    DENY_RESPONSE,
    AuthResponse,
    RequestContext,
    RequestHandler,
    Verdict,
)
from .discovery import DiscoveryError, discover_public_address

__all__ = [
    # Probe names
    "EXIT_LIST_ZONE",
    "InvalidAddress",
    "build_probe_name",
    "is_valid_ipv4",
    "reverse_ipv4",
    # Observability
    "AuthEventSink",
    "NULL_SINK",
    # Resolver
    "ExitListResolver",
    "LookupOutcome",
    "LookupResult",
    "create_dns_resolver",
    # Handler
    "AuthResponse",
    "RequestContext",
    "RequestHandler",
    "Verdict",
    "ALLOW_RESPONSE",
    "DENY_RESPONSE",
    # Discovery
    "DiscoveryError",
    "discover_public_address",
]
