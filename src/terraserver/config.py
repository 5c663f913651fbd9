"""
Load the deployment config and the gateway password from the home directory.

Layout under ``~/.terraserver`` (or ``$TERRASERVER_HOME``):

    config.yaml   ServerConfig fields, all optional
    password      the shared secret, generated once if PASSWORD is unset
                  in both the environment and a project .env file
"""

from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path
from typing import Optional

import yaml
from dotenv import dotenv_values, find_dotenv

from . import TERRASERVER_HOME
from .models import ServerConfig

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.yaml"
PASSWORD_FILE = "password"


def home_dir(home: Optional[Path] = None) -> Path:
    """Resolve the terraserver home directory."""
    return (home or Path(TERRASERVER_HOME)).expanduser()


def load_config(home: Optional[Path] = None) -> ServerConfig:
    """Load server configuration from disk.

    Args:
        home: Override home directory. Defaults to ~/.terraserver/.

    Returns:
        ServerConfig loaded from config.yaml, or defaults.
    """
    config_file = home_dir(home) / CONFIG_FILE
    if config_file.exists():
        try:
            data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
            return ServerConfig(**data)
        except (yaml.YAMLError, ValueError, TypeError) as exc:
            logger.warning("Failed to load config: %s, using defaults", exc)
    return ServerConfig()


def save_config(config: ServerConfig, home: Optional[Path] = None) -> Path:
    """Write the config back to config.yaml, skipping unset fields."""
    path = home_dir(home)
    path.mkdir(parents=True, exist_ok=True)
    config_file = path / CONFIG_FILE
    config_file.write_text(
        yaml.dump(config.model_dump(exclude_none=True), default_flow_style=False),
        encoding="utf-8",
    )
    return config_file


def resolve_password(home: Optional[Path] = None) -> str:
    """Return the gateway password.

    The PASSWORD environment variable wins, then PASSWORD from a
    project ``.env`` file (searched upward from the working directory).
    Otherwise the persisted password file is used, and if that does not
    exist a new random value is generated and written there so redeploys
    keep it.

    Args:
        home: Override home directory.

    Returns:
        The shared secret the authorizer compares against.
    """
    from_env = os.environ.get("PASSWORD")
    if from_env:
        return from_env

    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        from_dotenv = dotenv_values(dotenv_path).get("PASSWORD")
        if from_dotenv:
            return from_dotenv

    password_file = home_dir(home) / PASSWORD_FILE
    if password_file.exists():
        stored = password_file.read_text(encoding="utf-8").strip()
        if stored:
            return stored

    generated = str(uuid.uuid4())
    password_file.parent.mkdir(parents=True, exist_ok=True)
    password_file.write_text(generated + "\n", encoding="utf-8")
    password_file.chmod(0o600)
    logger.info("Generated new gateway password at %s", password_file)
    return generated
