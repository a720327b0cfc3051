"""Deployment configuration contract.

The deployment file is YAML::

    version: "1.0"
    agent:
      name: production-agent
      model: gemini-1.5-pro
      timeout_seconds: 30
      rate_limit:
        requests_per_minute: 60
        requests_per_day: 10000
    monitoring:
      enable_logging: true
      metrics: [latency, error_rate, token_usage]
      alerting:
        thresholds:
          error_rate: 0.05
          p99_latency: 2000
    deployment:            # optional
      machine_type: n1-standard-4
      min_replicas: 1
      max_replicas: 10

Numeric and boolean fields are strict: `"60"`, `true` for a count or
`"yes"` for a flag are rejected rather than coerced. Validation errors
are collected and raised together as a ConfigError.
"""

from enum import Enum
from pathlib import Path

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    ValidationError,
    field_serializer,
    field_validator,
    model_validator,
)

from agent_ops.errors import ConfigError


class ModelName(str, Enum):
    GEMINI_15_PRO = "gemini-1.5-pro"
    GEMINI_15_FLASH = "gemini-1.5-flash"
    GEMINI_20_FLASH = "gemini-2.0-flash"
    GEMINI_25_PRO = "gemini-2.5-pro"
    GEMINI_25_FLASH = "gemini-2.5-flash"


class MetricKind(str, Enum):
    LATENCY = "latency"
    ERROR_RATE = "error_rate"
    TOKEN_USAGE = "token_usage"
    REQUEST_COUNT = "request_count"
    GPU_UTILIZATION = "gpu_utilization"


class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid")


class RateLimitConfig(_Strict):
    requests_per_minute: StrictInt = Field(gt=0)
    requests_per_day: StrictInt = Field(gt=0)

    @model_validator(mode="after")
    def _day_covers_minute(self):
        if self.requests_per_day < self.requests_per_minute:
            raise ValueError("requests_per_day must be >= requests_per_minute")
        return self


class AgentConfig(_Strict):
    name: str = Field(pattern=r"^[A-Za-z][A-Za-z0-9_-]*$", max_length=63)
    model: ModelName
    timeout_seconds: StrictInt = Field(gt=0)
    rate_limit: RateLimitConfig


class AlertThresholds(_Strict):
    # StrictFloat still takes YAML integers such as 0 or 1
    error_rate: StrictFloat = Field(ge=0.0, le=1.0)
    p99_latency: StrictInt = Field(gt=0)  # milliseconds


class AlertingConfig(_Strict):
    thresholds: AlertThresholds


class MonitoringConfig(_Strict):
    enable_logging: StrictBool = True
    metrics: frozenset[MetricKind] = frozenset()
    alerting: AlertingConfig

    @field_serializer("metrics")
    def _sorted_metrics(self, metrics: frozenset[MetricKind]) -> list[str]:
        return sorted(m.value for m in metrics)


class DeploymentTarget(_Strict):
    machine_type: str = "n1-standard-4"
    min_replicas: StrictInt = Field(default=1, ge=1)
    max_replicas: StrictInt = Field(default=10, ge=1)
    region: str = "us-central1"

    @model_validator(mode="after")
    def _replica_range(self):
        if self.max_replicas < self.min_replicas:
            raise ValueError("max_replicas must be >= min_replicas")
        return self


class DeploymentConfig(_Strict):
    version: str = Field(min_length=1)
    agent: AgentConfig
    monitoring: MonitoringConfig
    deployment: DeploymentTarget = Field(default_factory=DeploymentTarget)

    @field_validator("version", mode="before")
    @classmethod
    def _version_as_text(cls, v):
        # `version: 1.0` unquoted in YAML arrives as a float
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    def to_yaml(self) -> str:
        data = self.model_dump(mode="json")
        return yaml.safe_dump(data, sort_keys=False)


def _format_problems(exc: ValidationError) -> list[str]:
    problems = []
    for err in exc.errors():
        path = ".".join(str(p) for p in err["loc"]) or "<root>"
        problems.append(f"{path}: {err['msg']}")
    return problems


def parse_deployment_config(data: dict) -> DeploymentConfig:
    if not isinstance(data, dict):
        raise ConfigError("Deployment config must be a mapping at the root")
    try:
        return DeploymentConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError("Invalid deployment config", problems=_format_problems(e)) from e


def load_deployment_config(path: str | Path) -> DeploymentConfig:
    """Read and validate a deployment YAML file."""
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Deployment config not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Deployment config {path} is not valid YAML: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read deployment config {path}: {e}") from e

    if data is None:
        raise ConfigError(f"Deployment config {path} is empty")
    if not isinstance(data, dict):
        raise ConfigError(f"Deployment config {path} must contain a mapping at the root")

    return parse_deployment_config(data)


def default_deployment_config(name: str = "production-agent") -> DeploymentConfig:
    """The reference configuration operators start from."""
    return parse_deployment_config({
        "version": "1.0",
        "agent": {
            "name": name,
            "model": ModelName.GEMINI_15_PRO.value,
            "timeout_seconds": 30,
            "rate_limit": {"requests_per_minute": 60, "requests_per_day": 10000},
        },
        "monitoring": {
            "enable_logging": True,
            "metrics": ["latency", "error_rate", "token_usage"],
            "alerting": {"thresholds": {"error_rate": 0.05, "p99_latency": 2000}},
        },
    })
