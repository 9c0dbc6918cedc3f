"""Default values and declared types for every configuration key."""

from __future__ import annotations

from typing import Any, Dict

APP_NAME = "discord-command-executor"
ENV_PREFIX = "DCE"

# Default timeouts in seconds
DEFAULT_DOCKER_TIMEOUT = 30
DEFAULT_MAX_RUNTIME = 300  # 5 minutes

_DEFAULTS: Dict[str, Any] = {
    "bot.prefix": "!",
    "bot.max_concurrent_commands": 10,
    "docker.host": "unix:///var/run/docker.sock",
    "docker.default_timeout": DEFAULT_DOCKER_TIMEOUT,
    "docker.max_runtime": DEFAULT_MAX_RUNTIME,
    "docker.memory_limit": 128,  # MB
    "docker.cpu_limit": 0.5,  # 50% of one CPU
    "docker.network_name": "discord-executor",
    "logging.level": "info",
    "logging.format": "text",
    "logging.report_caller": False,
    "server.host": "0.0.0.0",
    "server.port": 8080,
    "server.read_timeout": 10,
    "server.write_timeout": 10,
}

# Every key the loader binds to the environment, including the ones without a default.
SETTING_TYPES: Dict[str, type] = {
    "bot.token": str,
    "bot.prefix": str,
    "bot.guild_id": str,
    "bot.max_concurrent_commands": int,
    "docker.host": str,
    "docker.default_timeout": int,
    "docker.max_runtime": int,
    "docker.memory_limit": int,
    "docker.cpu_limit": float,
    "docker.network_name": str,
    "logging.level": str,
    "logging.format": str,
    "logging.output_file": str,
    "logging.report_caller": bool,
    "server.host": str,
    "server.port": int,
    "server.read_timeout": int,
    "server.write_timeout": int,
}


def default_settings() -> Dict[str, Any]:
    """Return a fresh flat mapping of dotted key -> default value."""
    return dict(_DEFAULTS)


def get_default(key: str) -> Any:
    return _DEFAULTS.get(key.lower())


def env_var_name(key: str) -> str:
    """Map a dotted key to its environment variable, e.g. ``bot.token`` -> ``DCE_BOT_TOKEN``."""
    return f"{ENV_PREFIX}_{key.upper().replace('.', '_')}"


__all__ = [
    "APP_NAME",
    "DEFAULT_DOCKER_TIMEOUT",
    "DEFAULT_MAX_RUNTIME",
    "ENV_PREFIX",
    "SETTING_TYPES",
    "default_settings",
    "env_var_name",
    "get_default",
]
