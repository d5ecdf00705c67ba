"""Runtime configuration for the proxy, read from the environment."""

from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Optional

from ide_mcp_proxy import env_config

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PATH_PREFIX = "/api"
DEFAULT_SCAN_BASE = 63342
DEFAULT_SCAN_COUNT = 11
DEFAULT_REFRESH_INTERVAL = 10.0
DEFAULT_PROBE_TIMEOUT = 2.0
DEFAULT_CALL_TIMEOUT = 120.0

TRANSPORT_MODES = ("stdio", "http")


@dataclass(frozen=True)
class ProxyConfig:
    """
    Effective proxy settings.

    Discovery:
    - explicit_port: IDE port override; disables scanning when set
    - host / path_prefix: where the IDE API lives
    - scan_base / scan_count: candidate ports scanned in ascending order

    Refresh:
    - refresh_interval: seconds between endpoint revalidations
    - evict_after: drop the cached endpoint after this many failed
      refreshes in a row (0 keeps it forever)
    """

    explicit_port: Optional[int] = None
    host: str = DEFAULT_HOST
    path_prefix: str = DEFAULT_PATH_PREFIX
    scan_base: int = DEFAULT_SCAN_BASE
    scan_count: int = DEFAULT_SCAN_COUNT
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    call_timeout: float = DEFAULT_CALL_TIMEOUT
    evict_after: int = 0
    shutdown_grace: float = 5.0
    transport_mode: str = "stdio"
    http_host: str = "0.0.0.0"
    http_port: int = 3000
    log_enabled: bool = False
    log_level: str = "INFO"
    log_file: Optional[str] = None
    sentry_dsn: Optional[str] = None

    def __post_init__(self):
        if self.explicit_port is not None and not 0 < self.explicit_port < 65536:
            raise ValueError(f"IDE_PORT must be a valid TCP port, got {self.explicit_port}")
        if self.scan_count < 1:
            raise ValueError("IDE_PORT_SCAN_COUNT must be at least 1")
        if not 0 < self.scan_base or self.scan_base + self.scan_count - 1 > 65535:
            raise ValueError(
                f"Port scan range {self.scan_base}+{self.scan_count} is outside 1-65535"
            )
        if self.refresh_interval <= 0:
            raise ValueError("REFRESH_INTERVAL must be positive")
        if self.probe_timeout <= 0 or self.call_timeout <= 0:
            raise ValueError("PROBE_TIMEOUT and CALL_TIMEOUT must be positive")
        if self.evict_after < 0:
            raise ValueError("EVICT_AFTER_FAILURES must not be negative")
        if self.transport_mode not in TRANSPORT_MODES:
            raise ValueError(
                f"TRANSPORT_MODE must be one of {', '.join(TRANSPORT_MODES)}, "
                f"got {self.transport_mode!r}"
            )

    @property
    def scan_ports(self) -> range:
        return range(self.scan_base, self.scan_base + self.scan_count)

    @classmethod
    def from_env(cls) -> "ProxyConfig":
        """Build a config from environment variables (and the .env file)."""
        return cls(
            explicit_port=env_config.get_int("IDE_PORT"),
            host=env_config.get_env("HOST", DEFAULT_HOST),
            path_prefix=env_config.get_env("IDE_API_PREFIX", DEFAULT_PATH_PREFIX),
            scan_base=env_config.get_int("IDE_PORT_SCAN_BASE", DEFAULT_SCAN_BASE),
            scan_count=env_config.get_int("IDE_PORT_SCAN_COUNT", DEFAULT_SCAN_COUNT),
            refresh_interval=env_config.get_float("REFRESH_INTERVAL", DEFAULT_REFRESH_INTERVAL),
            probe_timeout=env_config.get_float("PROBE_TIMEOUT", DEFAULT_PROBE_TIMEOUT),
            call_timeout=env_config.get_float("CALL_TIMEOUT", DEFAULT_CALL_TIMEOUT),
            evict_after=env_config.get_int("EVICT_AFTER_FAILURES", 0),
            shutdown_grace=env_config.get_float("SHUTDOWN_GRACE", 5.0),
            transport_mode=env_config.get_env("TRANSPORT_MODE", "stdio").lower(),
            http_host=env_config.get_env("HTTP_HOST", "0.0.0.0"),
            http_port=env_config.get_int("HTTP_PORT", 3000),
            log_enabled=env_config.get_bool("LOG_ENABLED"),
            log_level=env_config.get_env("LOG_LEVEL", "INFO").upper(),
            log_file=env_config.get_env("LOG_FILE"),
            sentry_dsn=env_config.get_env("SENTRY_DSN"),
        )

    def with_overrides(self, **overrides: Any) -> "ProxyConfig":
        """Return a copy with the non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["sentry_dsn"] = bool(self.sentry_dsn)
        return data
