from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

import structlog
import yaml
from dotenv import dotenv_values

from src.core.defaults import APP_NAME, SETTING_TYPES, default_settings, env_var_name
from src.core.errors import ConfigError, ConfigFileError, ConfigParseError, ConfigValidationError
from src.core.validation import validate_config

logger = structlog.get_logger("dce.config")

CONFIG_BASENAME = "config"
CONFIG_EXTENSIONS = (".yaml", ".yml")
DEFAULT_SEARCH_PATHS: tuple[Path, ...] = (
    Path("./configs"),
    Path("."),
    Path("/etc") / APP_NAME,
)
SECTIONS = ("bot", "docker", "logging", "server")

_TRUE_VALUES = {"1", "true", "yes", "on", "t"}
_FALSE_VALUES = {"0", "false", "no", "off", "f"}


@dataclass(frozen=True)
class BotConfig:
    token: str = ""
    prefix: str = ""
    guild_id: str = ""
    max_concurrent_commands: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BotConfig":
        return cls(
            token=_coerce_str(data.get("token"), "bot.token"),
            prefix=_coerce_str(data.get("prefix"), "bot.prefix"),
            guild_id=_coerce_str(data.get("guild_id"), "bot.guild_id"),
            max_concurrent_commands=_coerce_int(data.get("max_concurrent_commands"), "bot.max_concurrent_commands"),
        )


@dataclass(frozen=True)
class DockerConfig:
    host: str = ""
    network_name: str = ""
    cpu_limit: float = 0.0  # fraction of one CPU
    default_timeout: int = 0  # seconds
    max_runtime: int = 0  # seconds
    memory_limit: int = 0  # MB

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DockerConfig":
        return cls(
            host=_coerce_str(data.get("host"), "docker.host"),
            network_name=_coerce_str(data.get("network_name"), "docker.network_name"),
            cpu_limit=_coerce_float(data.get("cpu_limit"), "docker.cpu_limit"),
            default_timeout=_coerce_int(data.get("default_timeout"), "docker.default_timeout"),
            max_runtime=_coerce_int(data.get("max_runtime"), "docker.max_runtime"),
            memory_limit=_coerce_int(data.get("memory_limit"), "docker.memory_limit"),
        )


@dataclass(frozen=True)
class LoggingConfig:
    level: str = ""
    format: str = ""
    output_file: str = ""  # empty means stderr
    report_caller: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LoggingConfig":
        return cls(
            level=_coerce_str(data.get("level"), "logging.level"),
            format=_coerce_str(data.get("format"), "logging.format"),
            output_file=_coerce_str(data.get("output_file"), "logging.output_file"),
            report_caller=_coerce_bool(data.get("report_caller"), "logging.report_caller"),
        )


@dataclass(frozen=True)
class ServerConfig:
    host: str = ""
    port: int = 0
    read_timeout: int = 0  # seconds
    write_timeout: int = 0  # seconds

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ServerConfig":
        return cls(
            host=_coerce_str(data.get("host"), "server.host"),
            port=_coerce_int(data.get("port"), "server.port"),
            read_timeout=_coerce_int(data.get("read_timeout"), "server.read_timeout"),
            write_timeout=_coerce_int(data.get("write_timeout"), "server.write_timeout"),
        )


@dataclass(frozen=True)
class AppConfig:
    bot: BotConfig = field(default_factory=BotConfig)
    docker: DockerConfig = field(default_factory=DockerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AppConfig":
        return cls(
            bot=BotConfig.from_dict(_get_section(data, "bot")),
            docker=DockerConfig.from_dict(_get_section(data, "docker")),
            logging=LoggingConfig.from_dict(_get_section(data, "logging")),
            server=ServerConfig.from_dict(_get_section(data, "server")),
        )

    def validate(self) -> None:
        validate_config(self)


class ConfigResolver:
    """Layered settings store: defaults < config file < environment.

    Each instance owns its store, so building one per load keeps repeated or
    concurrent loads with different environments independent of each other.
    """

    def __init__(
        self,
        *,
        config_file: Path | str | None = None,
        search_paths: Optional[Sequence[Path | str]] = None,
        environ: Optional[Mapping[str, str]] = None,
        dotenv_path: Path | str | None = None,
    ) -> None:
        self._store: Dict[str, Any] = default_settings()
        self._config_file = Path(config_file) if config_file is not None else None
        self._search_paths = tuple(Path(p) for p in search_paths) if search_paths is not None else DEFAULT_SEARCH_PATHS
        self._environ = environ
        self._dotenv_path = Path(dotenv_path) if dotenv_path is not None else None
        self.config_file_used: Path | None = None

    def get(self, key: str) -> Any:
        return self._store.get(key.lower())

    def settings(self) -> Dict[str, Any]:
        """Snapshot of the merged flat store."""
        return dict(self._store)

    def find_config_file(self) -> Path | None:
        if self._config_file is not None:
            if not self._config_file.is_file():
                raise ConfigFileError(f"config file not found: {self._config_file}")
            return self._config_file

        for directory in self._search_paths:
            for extension in CONFIG_EXTENSIONS:
                candidate = directory / f"{CONFIG_BASENAME}{extension}"
                if candidate.is_file():
                    return candidate
        return None

    def read_config_file(self) -> None:
        path = self.find_config_file()
        if path is None:
            logger.info(
                "config-file-not-found",
                detail="using defaults and environment variables",
                search_paths=[str(p) for p in self._search_paths],
            )
            return

        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigFileError(f"failed to read config file {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigFileError(f"failed to parse config file {path}: {exc}") from exc

        if raw is None:
            raw = {}
        if not isinstance(raw, Mapping):
            raise ConfigFileError(f"config file {path}: configuration root must be a mapping")
        for section in SECTIONS:
            value = _lookup_case_insensitive(raw, section)
            if value is not None and not isinstance(value, Mapping):
                raise ConfigFileError(f"config file {path}: {section} section must be a mapping")

        self._store.update(_flatten(raw))
        self.config_file_used = path
        logger.info("config-file-loaded", file=str(path))

    def apply_environment(self) -> None:
        env: Dict[str, str] = {}
        if self._dotenv_path is not None and self._dotenv_path.is_file():
            env.update({k: v for k, v in dotenv_values(self._dotenv_path).items() if v is not None})
        env.update(self._environ if self._environ is not None else os.environ)

        for key, expected in SETTING_TYPES.items():
            name = env_var_name(key)
            raw = env.get(name)
            # Empty variables count as unset.
            if raw is None or raw == "":
                continue
            self._store[key] = _coerce(raw, expected, key, source=name)

    def build(self) -> AppConfig:
        return AppConfig.from_dict(_unflatten(self._store))

    def resolve(self) -> AppConfig:
        self.read_config_file()
        self.apply_environment()
        config = self.build()
        config.validate()
        return config


def load_config(
    config_path: Path | str | None = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    search_paths: Optional[Sequence[Path | str]] = None,
    dotenv_path: Path | str | None = None,
) -> AppConfig:
    """Resolve defaults, config file and environment into a validated AppConfig.

    ``config_path`` replaces the directory search when given. Raises
    ``ConfigFileError``, ``ConfigParseError`` or ``ConfigValidationError``.
    """
    resolver = ConfigResolver(
        config_file=config_path,
        search_paths=search_paths,
        environ=environ,
        dotenv_path=dotenv_path,
    )
    return resolver.resolve()


def _lookup_case_insensitive(data: Mapping[Any, Any], key: str) -> Any:
    for candidate, value in data.items():
        if str(candidate).lower() == key:
            return value
    return None


def _flatten(data: Mapping[Any, Any], prefix: str = "") -> Dict[str, Any]:
    flat: Dict[str, Any] = {}
    for raw_key, value in data.items():
        key = f"{prefix}{str(raw_key).lower()}"
        if isinstance(value, Mapping):
            flat.update(_flatten(value, f"{key}."))
        elif value is not None:
            # null in the file leaves the lower layer in place
            flat[key] = value
    return flat


def _unflatten(flat: Mapping[str, Any]) -> Dict[str, Dict[str, Any]]:
    nested: Dict[str, Dict[str, Any]] = {section: {} for section in SECTIONS}
    for key, value in flat.items():
        section, _, leaf = key.partition(".")
        if section in nested and leaf and "." not in leaf:
            nested[section][leaf] = value
    return nested


def _get_section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    section = data.get(key, {})
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise ConfigError(f"{key} section must be a mapping")
    return section


def _coerce(value: Any, expected: type, key: str, *, source: str = "file") -> Any:
    if expected is bool:
        return _coerce_bool(value, key, source=source)
    if expected is int:
        return _coerce_int(value, key, source=source)
    if expected is float:
        return _coerce_float(value, key, source=source)
    return _coerce_str(value, key, source=source)


def _parse_error(key: str, source: str, expected: str, value: Any) -> ConfigParseError:
    where = key if source == "file" else f"{source} ({key})"
    return ConfigParseError(f"{where} must be {expected}, got {value!r}", key=key, source=source)


def _coerce_str(value: Any, key: str, *, source: str = "file") -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    raise _parse_error(key, source, "a string", value)


def _coerce_int(value: Any, key: str, *, source: str = "file") -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        raise _parse_error(key, source, "an integer", value)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            raise _parse_error(key, source, "an integer", value) from exc
    raise _parse_error(key, source, "an integer", value)


def _coerce_float(value: Any, key: str, *, source: str = "file") -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool):
        raise _parse_error(key, source, "a number", value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as exc:
            raise _parse_error(key, source, "a number", value) from exc
    raise _parse_error(key, source, "a number", value)


def _coerce_bool(value: Any, key: str, *, source: str = "file") -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in _TRUE_VALUES:
            return True
        if normalized in _FALSE_VALUES:
            return False
    raise _parse_error(key, source, "a boolean value", value)


__all__ = [
    "AppConfig",
    "BotConfig",
    "ConfigError",
    "ConfigFileError",
    "ConfigParseError",
    "ConfigResolver",
    "ConfigValidationError",
    "DEFAULT_SEARCH_PATHS",
    "DockerConfig",
    "LoggingConfig",
    "ServerConfig",
    "load_config",
]
