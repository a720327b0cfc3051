"""File-backed deployment config holder. Reloads on mtime change."""

import os

from agent_ops.config.deployment import DeploymentConfig, load_deployment_config
from agent_ops.config.settings import get_settings
from agent_ops.errors import ConfigError


class DeploymentConfigStore:

    def __init__(self, path: str):
        self._path = path
        self._config: DeploymentConfig | None = None
        self._last_mtime: float = 0.0

    @property
    def path(self) -> str:
        return self._path

    def get(self) -> DeploymentConfig:
        """Return the current config, re-reading the file if it changed.

        Raises ConfigError when the file is missing or invalid; a
        previously loaded config is not served once the file breaks.
        """
        try:
            mtime = os.path.getmtime(self._path)
        except OSError:
            self._config = None
            raise ConfigError(f"Deployment config not found: {self._path}")

        if self._config is not None and mtime == self._last_mtime:
            return self._config

        self._config = None
        self._config = load_deployment_config(self._path)
        self._last_mtime = mtime
        return self._config


_store: DeploymentConfigStore | None = None


def get_config_store() -> DeploymentConfigStore:
    """Singleton store for the configured DEPLOYMENT_CONFIG_PATH."""
    global _store
    path = get_settings().deployment_config_path
    if _store is None or _store.path != path:
        _store = DeploymentConfigStore(path)
    return _store
