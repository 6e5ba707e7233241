"""
Exit-list probe names.

TorDNSEL answers "ip-port" queries of the form

    <client-octets-reversed>.<port>.<ingress-octets-reversed>.ip-port.<zone>

with an A record when the client is a Tor exit that allows exiting to
ingress:port, and NXDOMAIN otherwise.
"""

import ipaddress

EXIT_LIST_ZONE = "exitlist.torproject.org"

QUERY_TYPE = "ip-port"


class InvalidAddress(ValueError):
    """Raised when an address or port cannot be used in a probe name."""


def is_valid_ipv4(address: str) -> bool:
    """Validate if string is a dotted-quad IPv4 address.

    Examples:
        >>> is_valid_ipv4("203.0.113.9")
        True
        >>> is_valid_ipv4("256.0.0.1")
        False
        >>> is_valid_ipv4("::1")
        False
    """
    if not isinstance(address, str):
        return False

    try:
        return isinstance(ipaddress.ip_address(address), ipaddress.IPv4Address)
    except ValueError:
        return False


def reverse_ipv4(address: str) -> str:
    """Reverse the octets of an IPv4 address.

    Raises:
        InvalidAddress: If address is not a valid IPv4 address.

    Examples:
        >>> reverse_ipv4("203.0.113.9")
        '9.113.0.203'
    """
    if not is_valid_ipv4(address):
        raise InvalidAddress(f"Invalid IPv4 address: {address!r}")

    return ".".join(reversed(address.split(".")))


def build_probe_name(
    client_address: str,
    ingress_address: str,
    ingress_port: int,
    zone: str = EXIT_LIST_ZONE,
) -> str:
    """Build the exit-list query name for a client reaching ingress:port.

    Args:
        client_address: Address the request originated from.
        ingress_address: Address of the protected service.
        ingress_port: Port of the protected service.
        zone: Exit-list zone to query.

    Returns:
        str: Probe name, without trailing dot.

    Raises:
        InvalidAddress: If either address is not IPv4 or the port is out of range.

    Examples:
        >>> build_probe_name("1.2.3.4", "5.6.7.8", 443)
        '4.3.2.1.443.8.7.6.5.ip-port.exitlist.torproject.org'
    """
    if (
        isinstance(ingress_port, bool)
        or not isinstance(ingress_port, int)
        or not 1 <= ingress_port <= 65535
    ):
        raise InvalidAddress(f"Invalid ingress port: {ingress_port!r}")

    return ".".join(
        (
            reverse_ipv4(client_address),
            str(ingress_port),
            reverse_ipv4(ingress_address),
            QUERY_TYPE,
            zone.strip("."),
        )
    )
