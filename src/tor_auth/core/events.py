"""
Observability sink interface.

The handler and resolver report what they decide through an AuthEventSink.
The base class ignores every event; tor_auth.auth_logging.VerdictLogger
writes them as structured log records.
"""

from typing import Optional


class AuthEventSink:
    """Receives classification events. Subclasses override what they need."""

    def denied(self, client_address: str) -> None:
        """Client was found on the exit list."""

    def allowed(
        self,
        client_address: Optional[str],
        reason: Optional[str] = None,
    ) -> None:
        """Client was allowed; reason is set when the lookup was indeterminate."""

    def empty_reply(self, probe: str) -> None:
        """Exit-list service answered successfully but with no records."""

    def resolver_error(self, probe: str, error: str) -> None:
        """Exit-list lookup failed for any reason other than NXDOMAIN."""


NULL_SINK = AuthEventSink()
