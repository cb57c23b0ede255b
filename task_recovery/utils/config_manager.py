"""Configuration management utilities."""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from ..core.constants import CONFIG_FILE_NAME
from ..models.config import RecoveryConfig
from ..services.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages per-workspace recovery configuration."""

    def __init__(self, data_dir: Path):
        """Initialize config manager."""
        self.data_dir = data_dir
        self.config_file = data_dir / CONFIG_FILE_NAME

    def load_config(self) -> RecoveryConfig:
        """Load configuration, falling back to defaults when no file exists.

        Raises:
            InvalidArgumentError: If the config file is not valid
        """
        if not self.config_file.exists():
            return RecoveryConfig()
        try:
            data = json.loads(self.config_file.read_text())
            return RecoveryConfig.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise InvalidArgumentError(f"Invalid config file {self.config_file}: {e}") from e

    def save_config(self, config: RecoveryConfig) -> None:
        """Save configuration."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.config_file.write_text(config.model_dump_json(indent=2))
        logger.info(f"Saved recovery config to {self.config_file}")

    def update_config(self, **changes) -> RecoveryConfig:
        """Update selected settings and save."""
        config = self.load_config()
        try:
            updated = RecoveryConfig.model_validate({**config.model_dump(), **changes})
        except ValidationError as e:
            raise InvalidArgumentError(f"Invalid config value: {e}") from e
        self.save_config(updated)
        return updated
