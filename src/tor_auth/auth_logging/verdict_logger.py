"""
Verdict Logging

Structured log records for every authorization decision and for anomalous
exit-list replies.
"""

from typing import Optional

from ..core.events import AuthEventSink
from .logger import get_logger


class VerdictLogger(AuthEventSink):
    """AuthEventSink writing one structured record per event."""

    def __init__(self, name: str = "tor_auth.verdicts"):
        self.logger = get_logger(name)

    def denied(self, client_address: str) -> None:
        self.logger.info(
            "Request denied", client_ip=client_address, verdict="deny"
        )

    def allowed(
        self,
        client_address: Optional[str],
        reason: Optional[str] = None,
    ) -> None:
        if reason is None:
            self.logger.info(
                "Request allowed",
                client_ip=client_address,
                verdict="allow",
            )
            return

        self.logger.warning(
            "Request allowed, exit-list status indeterminate",
            client_ip=client_address,
            verdict="allow",
            reason=reason,
        )

    def empty_reply(self, probe: str) -> None:
        self.logger.warning(
            "Exit-list reply has no answer records, query may be malformed",
            probe=probe,
        )

    def resolver_error(self, probe: str, error: str) -> None:
        self.logger.warning("Exit-list lookup failed", probe=probe, error=error)
