"""Version information for discord-command-executor."""

import importlib.metadata
import os
from typing import Dict

# Stamped by the release build through the environment.
BUILD_TIME = os.environ.get("DCE_BUILD_TIME", "unknown")
GIT_COMMIT = os.environ.get("DCE_GIT_COMMIT", "unknown")


def get_version() -> str:
    """Return the installed package version."""
    try:
        return importlib.metadata.version("discord-command-executor")
    except importlib.metadata.PackageNotFoundError:
        # Fallback for development/uninstalled package
        return "dev"


def get_version_info() -> Dict[str, str]:
    return {
        "version": get_version(),
        "build_time": BUILD_TIME,
        "git_commit": GIT_COMMIT,
    }
