"""
Alerting Configuration Provider
================================

Loads the alerting configuration (recipients, send threshold, owner aliases,
team roster) from a YAML file once, at startup.
"""

from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import ValidationError

from backlog_sla.core import ConfigurationException
from backlog_sla.shared.infrastructure.logging import get_logger
from backlog_sla.sla.application.services import IAlertingConfigProvider
from backlog_sla.sla.domain import AlertingConfig

logger = get_logger(__name__)


class YAMLAlertingConfigProvider(IAlertingConfigProvider):
    """
    Alerting configuration provider backed by a YAML file.

    A missing file is not an error: deployments without alerting simply get
    the defaults. A file that exists but cannot be parsed is.
    """

    def __init__(self, config_path: Union[str, Path], default_send_threshold: int = 1):
        self._config_path = Path(config_path)
        self._default_send_threshold = default_send_threshold
        self._config: Optional[AlertingConfig] = None

    def _load_config(self) -> AlertingConfig:
        """Load configuration from YAML file."""
        if not self._config_path.exists():
            logger.warning(
                "Alerting config file not found, using defaults",
                extra={"path": str(self._config_path)}
            )
            return AlertingConfig(send_threshold=self._default_send_threshold)

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationException(
                f"Invalid alerting config file: {self._config_path}",
                {"error": str(e)}
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationException(
                f"Alerting config must be a mapping: {self._config_path}"
            )

        data.setdefault("send_threshold", self._default_send_threshold)
        try:
            config = AlertingConfig(**data)
        except ValidationError as e:
            raise ConfigurationException(
                f"Invalid alerting config file: {self._config_path}",
                {"errors": e.errors(include_url=False)}
            ) from e

        logger.info(
            "Alerting configuration loaded",
            extra={
                "path": str(self._config_path),
                "send_threshold": config.send_threshold,
                "roster_size": len(config.team_roster),
            }
        )
        return config

    def get_config(self) -> AlertingConfig:
        """Get the alerting configuration, loading it on first use."""
        if self._config is None:
            self._config = self._load_config()
        return self._config

    def reload(self) -> AlertingConfig:
        """Reload configuration from file."""
        self._config = self._load_config()
        return self._config


class StaticAlertingConfigProvider(IAlertingConfigProvider):
    """Provider wrapping an in-memory configuration."""

    def __init__(self, config: Optional[AlertingConfig] = None):
        self._config = config or AlertingConfig()

    def get_config(self) -> AlertingConfig:
        return self._config
