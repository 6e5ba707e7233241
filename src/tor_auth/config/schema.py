"""
tor-auth Configuration Schema

Configuration sections for the listener endpoint, the protected ingress
endpoint, the exit-list resolver, public address discovery and logging.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..core.probe import EXIT_LIST_ZONE
from .validators import (
    parse_host_port,
    validate_bind_address,
    validate_domain_name,
    validate_file_path,
    validate_ipv4_address,
    validate_log_level,
    validate_nameservers,
    validate_non_negative_int,
    validate_port,
    validate_positive_float,
    validate_positive_int,
)

DEFAULT_BIND_ADDRESS = "127.0.0.1"


class ConfigurationError(ValueError):
    """Raised for a missing or invalid configuration value."""


@dataclass
class ListenConfig:
    """Listener endpoint: either a Unix socket path or a TCP address/port."""

    path: Optional[str] = None
    address: Optional[str] = None
    port: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate listener configuration."""
        if self.path:
            if self.address is not None or self.port is not None:
                raise ConfigurationError(
                    "Listen endpoint must be either a socket path or "
                    "an [address:]port, not both"
                )
            if not validate_file_path(self.path):
                raise ConfigurationError(f"Invalid socket path: {self.path}")
            return

        if self.port is None:
            raise ConfigurationError("Listen endpoint is not configured")

        if not validate_port(self.port):
            raise ConfigurationError(f"Invalid listen port: {self.port}")

        if self.address is None:
            self.address = DEFAULT_BIND_ADDRESS

        if not validate_bind_address(self.address):
            raise ConfigurationError(f"Invalid bind address: {self.address}")

    @property
    def is_unix(self) -> bool:
        return bool(self.path)

    @classmethod
    def from_string(cls, spec) -> "ListenConfig":
        """Parse ``/path/to/socket``, ``unix:path`` or ``[address:]port``."""
        if isinstance(spec, str):
            spec = spec.strip()
            if spec.startswith("unix:"):
                return cls(path=spec[len("unix:") :])
            if "/" in spec:
                return cls(path=spec)

        try:
            address, port = parse_host_port(spec)
        except ValueError as e:
            hint = ""
            if isinstance(spec, str) and not spec.isdigit() and ":" not in spec:
                hint = " (socket paths need a '/' or the 'unix:' prefix)"
            raise ConfigurationError(f"Invalid listen specification: {e}{hint}") from e

        return cls(address=address, port=port)

    def describe(self) -> str:
        if self.is_unix:
            return f"unix:{self.path}"
        return f"{self.address}:{self.port}"


@dataclass
class IngressConfig:
    """Protected ingress endpoint; a missing address is discovered at startup."""

    port: Optional[int] = None
    address: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate ingress configuration."""
        if self.port is None:
            raise ConfigurationError("Ingress endpoint is not configured")

        if not validate_port(self.port):
            raise ConfigurationError(f"Invalid ingress port: {self.port}")

        if self.address is not None and not validate_ipv4_address(self.address):
            raise ConfigurationError(f"Invalid ingress address: {self.address}")

    @classmethod
    def from_string(cls, spec) -> "IngressConfig":
        """Parse ``[address:]port``."""
        try:
            address, port = parse_host_port(spec)
        except ValueError as e:
            raise ConfigurationError(f"Invalid ingress specification: {e}") from e

        return cls(address=address, port=port)


@dataclass
class ResolverConfig:
    """Exit-list resolver configuration section."""

    nameservers: List[str] = field(default_factory=list)
    timeout: float = 5.0
    retries: int = 0
    zone: str = EXIT_LIST_ZONE

    def __post_init__(self) -> None:
        """Validate resolver configuration."""
        if not validate_nameservers(self.nameservers):
            raise ConfigurationError(f"Invalid nameservers: {self.nameservers}")

        if not validate_positive_float(self.timeout):
            raise ConfigurationError(
                f"Resolver timeout must be positive: {self.timeout}"
            )

        if not validate_non_negative_int(self.retries):
            raise ConfigurationError(
                f"Resolver retries must be non-negative: {self.retries}"
            )

        if not validate_domain_name(self.zone):
            raise ConfigurationError(f"Invalid exit-list zone: {self.zone}")


@dataclass
class DiscoveryConfig:
    """Public address discovery, used when the ingress address is omitted."""

    name: str = "myip.opendns.com"
    nameservers: List[str] = field(
        default_factory=lambda: ["208.67.222.222", "208.67.220.220"]
    )
    timeout: float = 5.0

    def __post_init__(self) -> None:
        """Validate discovery configuration."""
        if not validate_domain_name(self.name):
            raise ConfigurationError(f"Invalid discovery name: {self.name}")

        if not self.nameservers or not validate_nameservers(self.nameservers):
            raise ConfigurationError(
                f"Invalid discovery nameservers: {self.nameservers}"
            )

        if not validate_positive_float(self.timeout):
            raise ConfigurationError(
                f"Discovery timeout must be positive: {self.timeout}"
            )


@dataclass
class LoggingConfig:
    """Logging configuration section."""

    level: str = "INFO"
    format: str = "console"
    file: Optional[str] = None
    max_size_mb: int = 10
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate logging configuration."""
        if not validate_log_level(self.level):
            raise ConfigurationError(f"Invalid log level: {self.level}")

        if self.format not in ["console", "json"]:
            raise ConfigurationError(f"Invalid log format: {self.format}")

        if self.file is not None and not validate_file_path(self.file):
            raise ConfigurationError(f"Invalid log file path: {self.file}")

        if not validate_positive_int(self.max_size_mb):
            raise ConfigurationError(
                f"Max size MB must be positive: {self.max_size_mb}"
            )

        if not validate_positive_int(self.backup_count):
            raise ConfigurationError(
                f"Backup count must be positive: {self.backup_count}"
            )


@dataclass
class TorAuthConfig:
    """Main tor-auth configuration."""

    listen: Optional[ListenConfig] = None
    ingress: Optional[IngressConfig] = None
    client_header: str = "X-Real-IP"
    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self) -> None:
        """Validate the entire configuration."""
        if self.listen is None:
            raise ConfigurationError("Listen endpoint is not configured")

        if self.ingress is None:
            raise ConfigurationError("Ingress endpoint is not configured")

        if not isinstance(self.client_header, str) or not self.client_header:
            raise ConfigurationError(
                f"Client header must be a non-empty string: {self.client_header!r}"
            )
