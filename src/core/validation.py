"""Semantic validation of a resolved configuration.

Every section is checked and every rule inside a section is evaluated, so a
configuration with several independent problems reports all of them at once.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from src.core.errors import ConfigValidationError, Violation

if TYPE_CHECKING:
    from src.core.config_loader import AppConfig, BotConfig, DockerConfig, LoggingConfig, ServerConfig

# Timeout limits in seconds
MAX_DEFAULT_TIMEOUT_SECONDS = 3600  # 1 hour
MAX_RUNTIME_SECONDS = 7200  # 2 hours
MAX_READ_WRITE_TIMEOUT = 300  # 5 minutes

MAX_CONCURRENT_COMMANDS = 100
MIN_MEMORY_LIMIT_MB = 16
MAX_MEMORY_LIMIT_MB = 4096
MAX_CPU_LIMIT = 8.0

MIN_TOKEN_LENGTH = 10  # test tokens
MIN_REAL_TOKEN_LENGTH = 50

VALID_LOG_LEVELS = ("debug", "info", "warn", "error", "fatal", "panic")
VALID_LOG_FORMATS = ("json", "text")

_TOKEN_CHARS = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789._-")


def is_valid_bot_token(token: str) -> bool:
    """Heuristic shape check for a Discord bot token.

    Tokens containing ``test`` are synthetic and only need ``MIN_TOKEN_LENGTH``
    characters. Anything else must be at least ``MIN_REAL_TOKEN_LENGTH`` long and
    use only letters, digits, dots, dashes and underscores. Discord is never
    contacted; a real check happens when the bot connects.
    """
    if "test" in token:
        return len(token) >= MIN_TOKEN_LENGTH

    if len(token) < MIN_REAL_TOKEN_LENGTH:
        return False

    return all(char in _TOKEN_CHARS for char in token)


def validate_bot_config(config: BotConfig) -> List[Violation]:
    violations: List[Violation] = []

    def fail(field: str, message: str) -> None:
        violations.append(Violation("bot", field, message))

    if not config.token:
        fail("token", "bot token is required (set DCE_BOT_TOKEN environment variable)")
    elif not is_valid_bot_token(config.token):
        fail("token", "bot token appears to be invalid format")

    if not config.prefix:
        fail("prefix", "command prefix cannot be empty")

    if config.max_concurrent_commands < 1:
        fail("max_concurrent_commands", "max concurrent commands must be at least 1")
    if config.max_concurrent_commands > MAX_CONCURRENT_COMMANDS:
        fail("max_concurrent_commands", "max concurrent commands should not exceed 100")

    return violations


def validate_docker_config(config: DockerConfig) -> List[Violation]:
    violations: List[Violation] = []

    def fail(field: str, message: str) -> None:
        violations.append(Violation("docker", field, message))

    if not config.host:
        fail("host", "docker host cannot be empty")

    if config.default_timeout < 1:
        fail("default_timeout", "default timeout must be at least 1 second")
    if config.default_timeout > MAX_DEFAULT_TIMEOUT_SECONDS:
        fail("default_timeout", "default timeout should not exceed 1 hour")

    if config.max_runtime < 1:
        fail("max_runtime", "max runtime must be at least 1 second")
    if config.max_runtime > MAX_RUNTIME_SECONDS:
        fail("max_runtime", "max runtime should not exceed 2 hours")

    if config.memory_limit < MIN_MEMORY_LIMIT_MB:
        fail("memory_limit", "memory limit must be at least 16 MB")
    if config.memory_limit > MAX_MEMORY_LIMIT_MB:
        fail("memory_limit", "memory limit should not exceed 4096 MB")

    # NaN fails every comparison, so the lower bound is written as a negation.
    if not config.cpu_limit > 0:
        fail("cpu_limit", "CPU limit must be greater than 0")
    if config.cpu_limit > MAX_CPU_LIMIT:
        fail("cpu_limit", "CPU limit should not exceed 8.0")

    if not config.network_name:
        fail("network_name", "network name cannot be empty")

    return violations


def validate_logging_config(config: LoggingConfig) -> List[Violation]:
    violations: List[Violation] = []

    if config.level.lower() not in VALID_LOG_LEVELS:
        violations.append(
            Violation("logging", "level", "log level must be one of: debug, info, warn, error, fatal, panic")
        )
    if config.format.lower() not in VALID_LOG_FORMATS:
        violations.append(Violation("logging", "format", "log format must be either 'json' or 'text'"))

    return violations


def validate_server_config(config: ServerConfig) -> List[Violation]:
    violations: List[Violation] = []

    def fail(field: str, message: str) -> None:
        violations.append(Violation("server", field, message))

    if not 1 <= config.port <= 65535:
        fail("port", "server port must be between 1 and 65535")

    if config.read_timeout < 1:
        fail("read_timeout", "read timeout must be at least 1 second")
    if config.read_timeout > MAX_READ_WRITE_TIMEOUT:
        fail("read_timeout", "read timeout should not exceed 300 seconds")

    if config.write_timeout < 1:
        fail("write_timeout", "write timeout must be at least 1 second")
    if config.write_timeout > MAX_READ_WRITE_TIMEOUT:
        fail("write_timeout", "write timeout should not exceed 300 seconds")

    return violations


def collect_violations(config: AppConfig) -> List[Violation]:
    """Run every section validator and return all violations in section order."""
    return [
        *validate_bot_config(config.bot),
        *validate_docker_config(config.docker),
        *validate_logging_config(config.logging),
        *validate_server_config(config.server),
    ]


def validate_config(config: AppConfig) -> None:
    violations = collect_violations(config)
    if violations:
        raise ConfigValidationError(violations)


__all__ = [
    "collect_violations",
    "is_valid_bot_token",
    "validate_bot_config",
    "validate_config",
    "validate_docker_config",
    "validate_logging_config",
    "validate_server_config",
]
