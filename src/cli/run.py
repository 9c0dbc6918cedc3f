from __future__ import annotations

import argparse
import asyncio
import contextlib
import signal
import sys
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence

import structlog

from src.core import config_loader
from src.core.log_setup import configure_bootstrap_logging, configure_logging
from src.core.version import BUILD_TIME, GIT_COMMIT, get_version

logger = structlog.get_logger("dce.cli")

PROG = "discord-command-executor"

_DEFAULT_SIGNALS: tuple[signal.Signals, ...] = tuple(
    getattr(signal, name)
    for name in ("SIGINT", "SIGTERM")
    if hasattr(signal, name)
)


def _build_parser() -> argparse.ArgumentParser:
    # Single-dash long flags are kept for compatibility with existing deployments.
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Discord bot that executes commands inside sandboxed containers.",
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument(
        "-config",
        "--config",
        type=Path,
        default=None,
        help="Path to the configuration file (default: search ./configs, . and /etc/discord-command-executor).",
    )
    parser.add_argument(
        "-env-file",
        "--env-file",
        type=Path,
        default=Path(".env"),
        help="Optional .env file read below the process environment (default: .env).",
    )
    parser.add_argument("-h", "-help", "--help", dest="show_help", action="store_true", help="Show help message.")
    parser.add_argument("-version", "--version", dest="show_version", action="store_true", help="Show version information.")
    parser.add_argument("-health", "--health", dest="health", action="store_true", help="Health check command.")
    return parser


def _show_help(parser: argparse.ArgumentParser) -> None:
    print(f"Discord Command Executor v{get_version()}\n")
    print(parser.format_help())
    print("Commands:")
    print("  health    Perform health check")
    print("  version   Show version information")


def _show_version() -> None:
    print("Discord Command Executor")
    print(f"Version:    {get_version()}")
    print(f"Build Time: {BUILD_TIME}")
    print(f"Git Commit: {GIT_COMMIT}")


def _health_check() -> int:
    # Only proves the process starts.
    print("Health check: OK")
    return 0


@contextlib.contextmanager
def _signal_handler_context(
    loop: asyncio.AbstractEventLoop,
    shutdown_event: asyncio.Event,
    signals_to_handle: Iterable[signal.Signals],
) -> Iterator[None]:
    installed: list[signal.Signals] = []

    def _make_handler(sig: signal.Signals):
        def handler() -> None:
            if not shutdown_event.is_set():
                logger.info("shutdown-signal-received", signal=sig.name)
                shutdown_event.set()

        return handler

    for sig in signals_to_handle:
        try:
            loop.add_signal_handler(sig, _make_handler(sig))
        except NotImplementedError:
            # Unsupported on Windows event loops.
            continue
        installed.append(sig)

    try:
        yield
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


async def _async_main(
    config_path: Optional[Path | str] = None,
    *,
    env_file: Optional[Path | str] = None,
    shutdown_event: Optional[asyncio.Event] = None,
    register_signal_handlers: bool = True,
) -> int:
    loop = asyncio.get_running_loop()
    event = shutdown_event or asyncio.Event()

    resolver = config_loader.ConfigResolver(config_file=config_path, dotenv_path=env_file)
    config = resolver.resolve()
    configure_logging(config.logging)

    source = resolver.config_file_used or "defaults and environment"
    print(f"Discord Command Executor v{get_version()}")
    print(f"Starting bot with config: {source}")
    print(f"Bot token configured: {bool(config.bot.token)}")

    logger.info(
        "bot-starting",
        prefix=config.bot.prefix,
        guild_id=config.bot.guild_id or None,
        max_concurrent_commands=config.bot.max_concurrent_commands,
        docker_host=config.docker.host,
    )
    # TODO: start the Discord session and the container executor once they exist.
    print("Bot initialization would happen here...")
    print("Press Ctrl+C to stop")

    with contextlib.ExitStack() as cleanup_stack:
        if register_signal_handlers:
            cleanup_stack.enter_context(_signal_handler_context(loop, event, _DEFAULT_SIGNALS))
        await event.wait()

    logger.info("bot-stopped")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.show_help:
        _show_help(parser)
        return 0
    if args.show_version:
        _show_version()
        return 0
    if args.health:
        return _health_check()

    configure_bootstrap_logging()
    try:
        return asyncio.run(_async_main(config_path=args.config, env_file=args.env_file))
    except config_loader.ConfigError as exc:
        print(f"Failed to load configuration: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    except Exception as exc:  # pragma: no cover - defensive
        print(f"Unexpected error: {exc}", file=sys.stderr)
        return 2


__all__ = ["_async_main", "main"]


if __name__ == "__main__":
    sys.exit(main())
