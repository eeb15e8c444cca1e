"""CourseDeck utilities."""

from .config import PlayerConfig, load_config, configure_logging

__all__ = ["PlayerConfig", "load_config", "configure_logging"]
