from __future__ import annotations

import dataclasses
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional

import pytest
import yaml

from src.core.config_loader import (
    AppConfig,
    BotConfig,
    DockerConfig,
    LoggingConfig,
    ServerConfig,
)

TEST_TOKEN = "valid.test.token.for.unit.testing.purposes.only.not.real"


def _build_base_app_config() -> AppConfig:
    return AppConfig(
        bot=BotConfig(
            token=TEST_TOKEN,
            prefix="!",
            max_concurrent_commands=5,
        ),
        docker=DockerConfig(
            host="unix:///var/run/docker.sock",
            network_name="test-network",
            cpu_limit=0.5,
            default_timeout=30,
            max_runtime=300,
            memory_limit=128,
        ),
        logging=LoggingConfig(level="info", format="text"),
        server=ServerConfig(
            host="localhost",
            port=8080,
            read_timeout=10,
            write_timeout=10,
        ),
    )


def _apply_dotted_overrides(config: AppConfig, overrides: Dict[str, Any]) -> AppConfig:
    for path, value in overrides.items():
        section_name, field_name = path.split(".")
        section = dataclasses.replace(getattr(config, section_name), **{field_name: value})
        config = dataclasses.replace(config, **{section_name: section})
    return config


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Run every test in an empty directory with no DCE_* variables set."""
    for key in list(os.environ):
        if key.startswith("DCE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def app_config_factory() -> Callable[..., AppConfig]:
    def factory(*, overrides: Optional[Dict[str, Any]] = None) -> AppConfig:
        config = _build_base_app_config()
        if overrides:
            config = _apply_dotted_overrides(config, overrides)
        return config

    return factory


@pytest.fixture
def config_env(monkeypatch: pytest.MonkeyPatch) -> Callable[..., None]:
    def apply(**env: Any) -> None:
        for key, value in env.items():
            if value is None:
                monkeypatch.delenv(key, raising=False)
            else:
                monkeypatch.setenv(key, str(value))

    return apply


@pytest.fixture
def write_config_file(tmp_path: Path) -> Callable[..., Path]:
    def write(data: Any = None, *, directory: str = ".", name: str = "config.yaml", raw: str | None = None) -> Path:
        target_dir = tmp_path / directory
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / name
        text = raw if raw is not None else yaml.safe_dump(data or {}, sort_keys=False)
        path.write_text(text, encoding="utf-8")
        return path

    return write


@pytest.fixture
def reset_structlog() -> Iterable[None]:
    import structlog

    structlog.reset_defaults()
    yield
    structlog.reset_defaults()


@pytest.fixture
def restore_root_logging() -> Iterable[None]:
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in saved_handlers:
            handler.close()
    for handler in saved_handlers:
        root.addHandler(handler)
    root.setLevel(saved_level)
