"""
Exit-List Resolver

This module implements the asynchronous exit-list lookup:
- One A query per probe name through dnspython's asyncio resolver
- Tri-state interpretation of the reply (exit node, not exit node, indeterminate)
- Bounded per-query lifetime and optional retries on timeout
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import dns.asyncresolver
import dns.exception
import dns.name
import dns.nameserver
import dns.resolver

from .events import NULL_SINK, AuthEventSink

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0

EMPTY_REPLY_DIAGNOSTIC = "successful reply without answer records"


class LookupOutcome(Enum):
    """Exit-list lookup classification."""

    IS_EXIT_NODE = "is_exit_node"  # A record answer
    NOT_EXIT_NODE = "not_exit_node"  # NXDOMAIN
    INDETERMINATE = "indeterminate"  # Timeout, SERVFAIL, empty reply, ...


@dataclass(frozen=True)
class LookupResult:
    """Outcome of one lookup, with the failure description when indeterminate."""

    outcome: LookupOutcome
    diagnostic: Optional[str] = None

    @property
    def is_exit_node(self) -> bool:
        return self.outcome is LookupOutcome.IS_EXIT_NODE

    @property
    def is_indeterminate(self) -> bool:
        return self.outcome is LookupOutcome.INDETERMINATE


def create_dns_resolver(
    nameservers: Optional[List[str]] = None,
) -> dns.asyncresolver.Resolver:
    """Create a dnspython asyncio resolver.

    Args:
        nameservers: ``address`` or ``address:port`` entries. When empty the
            system configuration (/etc/resolv.conf) is used.

    Returns:
        Configured resolver
    """
    if not nameservers:
        return dns.asyncresolver.Resolver()

    resolver = dns.asyncresolver.Resolver(configure=False)
    servers = []
    for addr in nameservers:
        if ":" in addr:
            host, port = addr.rsplit(":", 1)
            port = int(port)
        else:
            host, port = addr, 53
        servers.append(dns.nameserver.Do53Nameserver(host, port))
    resolver.nameservers = servers
    return resolver


class ExitListResolver:
    """Asynchronous exit-list lookups over a shared dnspython resolver.

    The resolver handle is created once and only read afterwards, so any
    number of lookups may be outstanding at the same time.
    """

    def __init__(
        self,
        nameservers: Optional[List[str]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        retries: int = 0,
        sink: Optional[AuthEventSink] = None,
        resolver: Optional[dns.asyncresolver.Resolver] = None,
    ):
        self.timeout = timeout
        self.retries = retries
        self.sink = sink or NULL_SINK
        self.resolver = resolver or create_dns_resolver(nameservers)

    @classmethod
    def from_config(cls, config, sink: Optional[AuthEventSink] = None):
        """Create a resolver from a ResolverConfig section."""
        return cls(
            nameservers=config.nameservers,
            timeout=config.timeout,
            retries=config.retries,
            sink=sink,
        )

    async def resolve(self, name: str) -> LookupResult:
        """Look up a probe name and classify the reply.

        Never raises for DNS or network failures; those are reported as
        INDETERMINATE.
        """
        qname = dns.name.from_text(name)
        attempts = self.retries + 1

        for attempt in range(1, attempts + 1):
            try:
                answer = await self.resolver.resolve(qname, "A", lifetime=self.timeout)

            except dns.resolver.NXDOMAIN:
                return LookupResult(LookupOutcome.NOT_EXIT_NODE)

            except dns.resolver.NoAnswer:
                return self._empty_reply(name)

            except dns.exception.Timeout as e:
                if attempt < attempts:
                    logger.debug(
                        f"Exit-list query for {name} timed out "
                        f"(attempt {attempt}/{attempts}), retrying"
                    )
                    continue
                return self._failure(name, e)

            except (dns.exception.DNSException, OSError) as e:
                return self._failure(name, e)

            # Only reachable with raise_on_no_answer disabled
            if len(answer) == 0:
                return self._empty_reply(name)

            return LookupResult(LookupOutcome.IS_EXIT_NODE)

    def _empty_reply(self, name: str) -> LookupResult:
        # Likely a malformed probe; not treated as NXDOMAIN
        logger.debug(f"Exit-list reply for {name} has no answer records")
        self.sink.empty_reply(name)
        return LookupResult(LookupOutcome.INDETERMINATE, EMPTY_REPLY_DIAGNOSTIC)

    def _failure(self, name: str, error: Exception) -> LookupResult:
        description = f"{type(error).__name__}: {error}"
        logger.debug(f"Exit-list query for {name} failed: {description}")
        self.sink.resolver_error(name, description)
        return LookupResult(LookupOutcome.INDETERMINATE, description)
