"""Container build recipe for the agent service."""

from dataclasses import dataclass, field

from agent_ops.config.deployment import DeploymentConfig


@dataclass
class DockerfileOptions:
    base_image: str = "python:3.11-slim"
    user: str = "agent"
    workdir: str = "/app"
    credentials_path: str = "/secrets/service-account.json"
    port: int = 8080
    system_packages: list[str] = field(default_factory=lambda: ["ca-certificates"])
    entrypoint: list[str] | None = None  # None = uvicorn on `port`


def render_dockerfile(options: DockerfileOptions | None = None) -> str:
    """Render the Dockerfile text.

    The key file is not copied into the image; it is mounted at
    ``credentials_path`` at runtime.
    """
    o = options or DockerfileOptions()
    if not (0 < o.port < 65536):
        raise ValueError(f"Invalid port: {o.port}")
    if o.user == "root":
        raise ValueError("The container must not run as root")

    command = o.entrypoint or [
        "uvicorn", "agent_ops.main:app", "--host", "0.0.0.0", "--port", str(o.port),
    ]
    entrypoint = ", ".join(f'"{part}"' for part in command)
    lines = [f"FROM {o.base_image}", ""]

    if o.system_packages:
        lines += [
            "RUN apt-get update \\",
            f"    && apt-get install -y --no-install-recommends {' '.join(o.system_packages)} \\",
            "    && rm -rf /var/lib/apt/lists/*",
            "",
        ]

    lines += [
        f"WORKDIR {o.workdir}",
        "",
        "COPY . .",
        "RUN pip install --no-cache-dir .",
        "",
        f"RUN useradd --create-home --shell /usr/sbin/nologin {o.user} \\",
        f"    && chown -R {o.user}:{o.user} {o.workdir}",
        "",
        f"ENV GOOGLE_APPLICATION_CREDENTIALS={o.credentials_path}",
        f"ENV PYTHONPATH={o.workdir}",
        f"ENV PORT={o.port}",
        "",
        f"EXPOSE {o.port}",
        "",
        f"USER {o.user}",
        "",
        f"CMD [{entrypoint}]",
    ]
    return "\n".join(lines) + "\n"


def deployment_parameters(config: DeploymentConfig) -> dict:
    """Machine type and autoscaling settings for the managed deployment target."""
    target = config.deployment
    return {
        "display_name": config.agent.name,
        "model": config.agent.model.value,
        "machine_type": target.machine_type,
        "min_replica_count": target.min_replicas,
        "max_replica_count": target.max_replicas,
        "region": target.region,
    }
