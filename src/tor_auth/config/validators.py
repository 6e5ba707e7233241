"""
Configuration Validators

This module provides validation and parsing helpers for tor-auth configuration
parameters.
"""

import ipaddress
import re
from pathlib import Path
from typing import List, Optional, Tuple


def validate_ipv4_address(address: str) -> bool:
    """Validate dotted-quad IPv4 address format."""
    if not isinstance(address, str) or not address:
        return False

    try:
        return isinstance(ipaddress.ip_address(address), ipaddress.IPv4Address)
    except ValueError:
        return False


def validate_bind_address(address: str) -> bool:
    """Validate bind address format."""
    if not address:
        return False

    # Allow 0.0.0.0 for all interfaces
    if address == "0.0.0.0":
        return True

    return validate_ipv4_address(address)


def validate_file_path(path: str) -> bool:
    """Validate file path format."""
    if not path:
        return False

    try:
        Path(path)
        return True
    except (TypeError, ValueError):
        return False


def validate_log_level(level: str) -> bool:
    """Validate log level."""
    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    return isinstance(level, str) and level.upper() in valid_levels


def validate_positive_float(value: float) -> bool:
    """Validate positive float."""
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and value > 0
    )


def validate_positive_int(value: int) -> bool:
    """Validate positive integer."""
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_non_negative_int(value: int) -> bool:
    """Validate non-negative integer."""
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def validate_port(port: int) -> bool:
    """Validate port number."""
    return isinstance(port, int) and not isinstance(port, bool) and 1 <= port <= 65535


def validate_domain_name(name: str) -> bool:
    """Validate a DNS name made of dot-separated labels."""
    if not isinstance(name, str) or not name or len(name) > 253:
        return False

    labels = name.rstrip(".").split(".")
    return all(
        re.match(r"^[a-zA-Z0-9_]([a-zA-Z0-9_-]{0,61}[a-zA-Z0-9_])?$", label)
        for label in labels
    )


def validate_nameserver(address: str) -> bool:
    """Validate nameserver address format (IP:port or IP)."""
    try:
        host, port = parse_host_port(address, require_port=False)
    except ValueError:
        return False

    return validate_ipv4_address(host)


def validate_nameservers(servers: List[str]) -> bool:
    """Validate list of nameservers. An empty list means system default."""
    if not isinstance(servers, list):
        return False

    return all(validate_nameserver(server) for server in servers)


def parse_port(value) -> int:
    """Parse a decimal port number.

    Raises:
        ValueError: If the value is not a port in [1, 65535]
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid port: {value!r}")

    text = str(value).strip()
    if not text.isdigit():
        raise ValueError(f"Invalid port: {value!r}")

    port = int(text)
    if not validate_port(port):
        raise ValueError(f"Port out of range: {port}")
    return port


def parse_host_port(
    spec, require_port: bool = True
) -> Tuple[Optional[str], Optional[int]]:
    """Parse an ``[address:]port`` (or ``address[:port]``) specification.

    Args:
        spec: Specification string, or a bare integer port
        require_port: When True a lone token is a port, otherwise an address

    Returns:
        Tuple of (address or None, port or None)

    Raises:
        ValueError: If the specification is empty or malformed
    """
    if isinstance(spec, int) and not isinstance(spec, bool):
        return None, parse_port(spec)

    if not isinstance(spec, str) or not spec.strip():
        raise ValueError("Empty address specification")

    spec = spec.strip()
    if ":" in spec:
        host, port_str = spec.rsplit(":", 1)
        if not host:
            raise ValueError(f"Missing address in {spec!r}")
        return host, parse_port(port_str)

    if require_port:
        return None, parse_port(spec)

    return spec, None
