"""
Configuration loader for CourseDeck.

Settings come from an optional YAML file, overridden by environment
variables (a .env file in the working directory is loaded first).
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv


DEFAULT_CONFIG_FILE = Path("coursedeck.yaml")

ENV_OVERRIDES = {
    "COURSEDECK_DATA_DIR": "data_dir",
    "COURSEDECK_COURSES_DIR": "courses_dir",
    "COURSEDECK_AUDIO_DIR": "audio_dir",
    "COURSEDECK_PROGRESS_DB": "progress_db",
    "COURSEDECK_STUDENT_ID": "student_id",
    "COURSEDECK_LOG_LEVEL": "log_level",
}


@dataclass
class PlayerConfig:
    """Resolved player settings."""
    data_dir: Path = Path("data")
    courses_dir: Optional[Path] = None    # default: <data_dir>/courses
    audio_dir: Optional[Path] = None      # default: <data_dir>/audio
    progress_db: Optional[Path] = None    # default: ~/.coursedeck/progress.db
    student_id: str = "default"
    log_level: str = "INFO"

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)
        self.courses_dir = Path(self.courses_dir) if self.courses_dir else self.data_dir / "courses"
        self.audio_dir = Path(self.audio_dir) if self.audio_dir else self.data_dir / "audio"
        if self.progress_db:
            self.progress_db = Path(self.progress_db)


def _read_config_file(path: Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    unknown = set(data) - set(ENV_OVERRIDES.values())
    if unknown:
        raise ValueError(f"Unknown config keys in {path}: {sorted(unknown)}")
    return data


def load_config(path: Optional[Path] = None, env: Optional[dict[str, str]] = None) -> PlayerConfig:
    """
    Load player configuration.

    Args:
        path: YAML config file (default: ./coursedeck.yaml if present)
        env: Environment mapping (default: os.environ after loading .env)

    Returns:
        PlayerConfig with environment overrides applied

    Raises:
        FileNotFoundError: If an explicit config path doesn't exist
        ValueError: If the config file is malformed
    """
    if env is None:
        load_dotenv()
        env = dict(os.environ)

    values: dict[str, Any] = {}
    if path is not None:
        if not Path(path).exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        values.update(_read_config_file(Path(path)))
    elif DEFAULT_CONFIG_FILE.exists():
        values.update(_read_config_file(DEFAULT_CONFIG_FILE))

    for env_key, field_name in ENV_OVERRIDES.items():
        if env.get(env_key):
            values[field_name] = env[env_key]

    return PlayerConfig(**values)


def configure_logging(level: str = "INFO"):
    """Set up root logging for entry points."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s"
    )
