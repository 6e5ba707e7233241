"""
Request Handler

Maps one authorization request to a verdict:
- Builds the exit-list probe name for the request
- Awaits the resolver without blocking other requests
- Turns the outcome into a fixed (status, content type, body) response

Any uncertainty, including a missing or malformed client address, allows the
request (fail-open). Only a positive exit-list answer denies it.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional

from .events import NULL_SINK, AuthEventSink
from .probe import EXIT_LIST_ZONE, InvalidAddress, build_probe_name
from .resolver import ExitListResolver, LookupOutcome, LookupResult

logger = logging.getLogger(__name__)

CONTENT_TYPE = "text/plain"


class Verdict(Enum):
    ALLOW = "allow"
    DENY = "deny"


class AuthResponse(NamedTuple):
    status: int
    content_type: str
    body: str


ALLOW_RESPONSE = AuthResponse(200, CONTENT_TYPE, "OK")
DENY_RESPONSE = AuthResponse(403, CONTENT_TYPE, "Forbidden")


@dataclass(frozen=True)
class RequestContext:
    """Per-request classification input."""

    client_address: Optional[str]
    ingress_address: str
    ingress_port: int


def verdict_for(outcome: LookupOutcome) -> Verdict:
    if outcome is LookupOutcome.IS_EXIT_NODE:
        return Verdict.DENY
    return Verdict.ALLOW


def response_for(verdict: Verdict) -> AuthResponse:
    if verdict is Verdict.DENY:
        return DENY_RESPONSE
    return ALLOW_RESPONSE


class RequestHandler:
    """Classifies requests with an injected ExitListResolver."""

    def __init__(
        self,
        resolver: ExitListResolver,
        sink: Optional[AuthEventSink] = None,
        zone: str = EXIT_LIST_ZONE,
    ):
        self.resolver = resolver
        self.sink = sink or NULL_SINK
        self.zone = zone

    def probe_name(self, context: RequestContext) -> str:
        return build_probe_name(
            context.client_address,
            context.ingress_address,
            context.ingress_port,
            zone=self.zone,
        )

    async def classify(self, context: RequestContext) -> LookupResult:
        """Resolve the request's exit-list status."""
        if not context.client_address:
            return LookupResult(LookupOutcome.INDETERMINATE, "no client address")

        try:
            name = self.probe_name(context)
        except InvalidAddress as e:
            return LookupResult(LookupOutcome.INDETERMINATE, str(e))

        return await self.resolver.resolve(name)

    async def handle(self, context: RequestContext) -> AuthResponse:
        """Produce the response for one request. Never raises."""
        try:
            result = await self.classify(context)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(
                f"Unexpected error classifying {context.client_address}"
            )
            result = LookupResult(LookupOutcome.INDETERMINATE, f"internal error: {e}")

        verdict = verdict_for(result.outcome)
        if verdict is Verdict.DENY:
            self.sink.denied(context.client_address)
        else:
            self.sink.allowed(context.client_address, reason=result.diagnostic)

        return response_for(verdict)
