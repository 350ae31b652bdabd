"""
Configuration for valclip.

Values come from ``config.json`` in the working directory (created with
defaults on first run) and can be overridden with environment variables,
optionally loaded from a ``.env`` file.
"""

import json
import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, ValidationError

from valclip.errors import ValclipError
from valclip.logger import get_logger

logger = get_logger(__name__)

CONFIG_FILENAME = "config.json"

# Environment variable -> config field
ENV_OVERRIDES = {
    "VALCLIP_LOCKFILE": "lockfile_path",
    "VALCLIP_LOG_PATH": "log_path",
    "VALCLIP_LOG_LEVEL": "log_level",
}


def _local_app_data() -> Path:
    local = os.getenv("LOCALAPPDATA")
    if local:
        return Path(local)
    # Non-Windows hosts only matter for development and tests
    return Path.home() / "AppData" / "Local"


def default_lockfile_path() -> Path:
    return _local_app_data() / "Riot Games" / "Riot Client" / "Config" / "lockfile"


def default_log_path() -> Path:
    return _local_app_data() / "VALORANT" / "Saved" / "Logs" / "ShooterGame.log"


class Config(BaseModel):
    """Runtime settings."""

    lockfile_path: Path = Field(default_factory=default_lockfile_path)
    log_path: Path = Field(default_factory=default_log_path)
    retry_delay_seconds: float = Field(default=2.0, gt=0)
    log_poll_interval_seconds: float = Field(default=0.25, gt=0)
    log_level: str = "INFO"

    def to_json(self) -> str:
        return json.dumps(self.model_dump(mode="json"), indent=4)


def load_config(path: Path | None = None) -> Config:
    """
    Load configuration from disk, creating the file with defaults if missing.

    Args:
        path: Config file location. Defaults to ``config.json`` in the cwd.

    Raises:
        ValclipError: If the file exists but is not valid JSON or fails validation.
    """
    load_dotenv(find_dotenv(usecwd=True))
    path = path or Path(CONFIG_FILENAME)

    data: dict = {}
    if path.exists():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValclipError(f"Invalid config file {path}: {e}") from e
    else:
        logger.info(f"Creating default config at {path}")
        path.write_text(Config().to_json(), encoding="utf-8")

    for env_name, field_name in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            data[field_name] = value

    try:
        return Config(**data)
    except ValidationError as e:
        raise ValclipError(f"Invalid config file {path}: {e}") from e
