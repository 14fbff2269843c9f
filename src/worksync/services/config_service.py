"""Configuration service for loading worksync.yml."""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..models import WorksyncConfig

logger = logging.getLogger(__name__)


class ConfigService:
    """Loads worksync.yml once and resolves paths against the project root.

    A missing file means defaults. A file that cannot be used also yields
    defaults, with the reason kept in ``config_error`` so commands can warn.
    """

    CONFIG_FILE = "worksync.yml"

    def __init__(self, project_root: Path) -> None:
        self.project_root = project_root
        self.config_error: str | None = None
        self._config: WorksyncConfig | None = None

    def get_config(self) -> WorksyncConfig:
        if self._config is None:
            self._config = self._load_config()
        return self._config

    def tracking_path(self, override: Path | None = None) -> Path:
        """Resolve the tracking file path against the project root."""
        path = override if override is not None else Path(self.get_config().tracking_path)
        return path if path.is_absolute() else self.project_root / path

    def _load_config(self) -> WorksyncConfig:
        config_path = self.project_root / self.CONFIG_FILE
        if not config_path.exists():
            logger.debug("No %s found, using defaults", self.CONFIG_FILE)
            return WorksyncConfig.default()

        try:
            with config_path.open() as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            return self._fallback(f"Invalid YAML in {self.CONFIG_FILE}: {e}")

        if data is None:
            return self._fallback(f"{self.CONFIG_FILE} is empty")
        try:
            config = WorksyncConfig.model_validate(data)
        except ValidationError as e:
            return self._fallback(f"Error loading {self.CONFIG_FILE}: {e}")

        logger.info("Loaded %s", config_path)
        return config

    def _fallback(self, message: str) -> WorksyncConfig:
        self.config_error = message
        logger.warning(message)
        return WorksyncConfig.default()
