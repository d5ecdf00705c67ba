"""Logging and Sentry setup shared by every entry point."""

import logging
import sys
from pathlib import Path
from typing import Optional

import sentry_sdk

from ide_mcp_proxy import env_config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def configure_logging(enabled: bool = False, level: str = "INFO", log_file: Optional[str] = None):
    """
    Configure root logging.

    Always logs to stderr: in stdio mode stdout carries the MCP protocol.
    When logging is not enabled only errors are emitted.
    """
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO) if enabled else logging.ERROR,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def init_sentry(dsn: Optional[str], release: str) -> bool:
    """Initialize Sentry monitoring if a DSN is configured."""
    if not dsn:
        return False
    sentry_sdk.init(
        dsn=dsn,
        traces_sample_rate=1.0,
        environment=env_config.get_env("SENTRY_ENVIRONMENT", "development"),
        release=env_config.get_env("SENTRY_RELEASE", release),
    )
    logger.info("Sentry monitoring enabled")
    return True
