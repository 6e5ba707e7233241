"""
Public address discovery.

When the ingress address is not configured, this host's publicly routable
address is looked up once at startup: OpenDNS answers ``myip.opendns.com``
with the address the query came from.
"""

import logging
from typing import List, Optional

import dns.asyncresolver
import dns.exception
import dns.name

from .probe import is_valid_ipv4
from .resolver import create_dns_resolver

logger = logging.getLogger(__name__)

DISCOVERY_NAME = "myip.opendns.com"

DISCOVERY_NAMESERVERS = ["208.67.222.222", "208.67.220.220"]


class DiscoveryError(Exception):
    """Raised when the public address cannot be determined."""


async def discover_public_address(
    name: str = DISCOVERY_NAME,
    nameservers: Optional[List[str]] = None,
    timeout: float = 5.0,
    resolver: Optional[dns.asyncresolver.Resolver] = None,
) -> str:
    """Return this host's public IPv4 address.

    Raises:
        DiscoveryError: If the lookup fails or returns no IPv4 address
    """
    resolver = resolver or create_dns_resolver(nameservers or DISCOVERY_NAMESERVERS)

    try:
        answer = await resolver.resolve(dns.name.from_text(name), "A", lifetime=timeout)
    except dns.exception.DNSException as e:
        raise DiscoveryError(
            f"Public address lookup of {name} failed: {type(e).__name__}: {e}"
        ) from e

    for rdata in answer:
        address = rdata.to_text()
        if is_valid_ipv4(address):
            logger.debug(f"Discovered public address {address}")
            return address

    raise DiscoveryError(f"Public address lookup of {name} returned no IPv4 address")
