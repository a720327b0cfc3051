"""Process settings loaded from environment variables."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Service credential reference (path to a service-account JSON key)
    google_application_credentials: str = ""
    google_cloud_project: str = ""
    key_rotation_days: int = 90

    # HTTP surface
    port: int = 8080
    # Comma-separated keys accepted in X-API-Key
    service_api_keys: str = "dev-key-1"

    # Deployment configuration (YAML)
    deployment_config_path: str = "config/deployment.yaml"

    # Conversation memory snapshots
    memory_dir: str = "memory"

    # Logging
    log_level: str = "INFO"
    audit_log_file: str = ""  # Empty = stdout only

    # Extra packages checked by `agent-ops check-env`
    required_packages: list[str] = Field(
        default_factory=lambda: ["google-adk", "google-auth", "pyyaml"]
    )

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def api_keys_list(self) -> list[str]:
        return [k.strip() for k in self.service_api_keys.split(",") if k.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
