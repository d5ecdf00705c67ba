"""
Environment configuration for ide-mcp-proxy.

Loads environment variables from:
1. A .env file (IDE_MCP_PROXY_ENV_FILE, default ./.env) if it exists
2. System environment variables (which override .env values)
"""

import os
from pathlib import Path
from typing import Optional

ENV_FILE = Path(os.environ.get("IDE_MCP_PROXY_ENV_FILE", ".env"))

TRUE_VALUES = ("1", "true", "yes", "on")


def load_env_file(path: Optional[Path] = None):
    """Load environment variables from .env file if it exists."""
    env_file = path or ENV_FILE
    if not env_file.is_file():
        return

    with open(env_file) as f:
        for line in f:
            line = line.strip()

            # Skip comments and empty lines
            if not line or line.startswith("#"):
                continue

            if "=" in line:
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip().strip('"').strip("'")

                # Only set if not already in environment
                if key not in os.environ:
                    os.environ[key] = value


# Load .env file when module is imported
load_env_file()


def get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """Get environment variable with optional default."""
    value = os.getenv(key)
    if value is None or value == "":
        return default
    return value


def require_env(key: str) -> str:
    """Get required environment variable or raise ValueError."""
    value = os.getenv(key)
    if value is None:
        raise ValueError(f"{key} environment variable is required but not set")
    return value


def get_int(key: str, default: Optional[int] = None) -> Optional[int]:
    """Get an integer environment variable, raising ValueError on junk."""
    value = get_env(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {value!r}")


def get_float(key: str, default: Optional[float] = None) -> Optional[float]:
    """Get a float environment variable, raising ValueError on junk."""
    value = get_env(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {value!r}")


def get_bool(key: str, default: bool = False) -> bool:
    """Get a boolean environment variable ('true', '1', 'yes', 'on')."""
    value = get_env(key)
    if value is None:
        return default
    return value.strip().lower() in TRUE_VALUES
