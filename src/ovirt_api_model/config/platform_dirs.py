"""Directory discovery for configuration, logs and generated output."""

import os
from pathlib import Path
from typing import Optional

CONFIG_FILE_NAMES = ("config.yaml", "config.yml", "config.json")


def find_project_root(start: Optional[Path] = None) -> Optional[Path]:
    """Return the nearest directory containing ``pyproject.toml``."""
    start = start or Path.cwd()
    for parent in [start] + list(start.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return None


def get_config_location() -> Path:
    """Get config location.

    Priority:
    1. APIMODEL_CONFIG_DIR environment variable
    2. Development: ./config beside the nearest pyproject.toml
    3. Fallback: ./config in the current directory
    """
    if env_dir := os.environ.get("APIMODEL_CONFIG_DIR"):
        return Path(env_dir)

    if project_root := find_project_root():
        return project_root / "config"

    return Path.cwd() / "config"


def get_config_file() -> Optional[Path]:
    """Find the config file, or ``None`` when only defaults apply.

    APIMODEL_CONFIG_FILE wins over the files of the config location.
    """
    if env_file := os.environ.get("APIMODEL_CONFIG_FILE"):
        return Path(env_file)

    config_dir = get_config_location()
    for name in CONFIG_FILE_NAMES:
        candidate = config_dir / name
        if candidate.exists():
            return candidate
    return None


def get_logs_location() -> Path:
    """Get logs directory location.

    Priority:
    1. APIMODEL_LOG_DIR environment variable
    2. Sibling to config directory
    """
    if env_dir := os.environ.get("APIMODEL_LOG_DIR"):
        return Path(env_dir)

    return get_config_location().parent / "logs"
