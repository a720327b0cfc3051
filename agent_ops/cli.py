"""`agent-ops` command line: the operator checklist as commands."""

from pathlib import Path

import click

from agent_ops.config.deployment import default_deployment_config, load_deployment_config
from agent_ops.config.settings import get_settings
from agent_ops.credentials.service_account import (
    audit_credential,
    load_service_account_key,
    resolve_credential_path,
)
from agent_ops.deploy.container import DockerfileOptions, deployment_parameters, render_dockerfile
from agent_ops.deploy.environment import check_environment, environment_ready
from agent_ops.deploy.gcloud import DEFAULT_ROLES, gcloud_setup_commands
from agent_ops.errors import AgentOpsError
from agent_ops.ops.troubleshooting import all_entries, diagnose


def _fail(e: Exception) -> click.ClickException:
    return click.ClickException(str(e))


@click.group()
@click.version_option(package_name="agent-ops")
def cli():
    """Set up, check and deploy an ADK agent."""


@cli.command("validate-config")
@click.argument("path", required=False, type=click.Path(dir_okay=False))
def validate_config(path):
    """Validate a deployment YAML file (default: DEPLOYMENT_CONFIG_PATH)."""
    path = path or get_settings().deployment_config_path
    try:
        config = load_deployment_config(path)
    except AgentOpsError as e:
        raise _fail(e)

    params = deployment_parameters(config)
    click.echo(f"OK {path}")
    click.echo(f"  agent:    {config.agent.name} ({config.agent.model.value})")
    click.echo(f"  limits:   {config.agent.rate_limit.requests_per_minute}/min, "
               f"{config.agent.rate_limit.requests_per_day}/day")
    click.echo(f"  replicas: {params['min_replica_count']}-{params['max_replica_count']} "
               f"on {params['machine_type']}")


@cli.command("init-config")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--name", default="production-agent", show_default=True, help="Agent name.")
@click.option("--force", is_flag=True, help="Overwrite an existing file.")
def init_config(path, name, force):
    """Write the reference deployment config to PATH."""
    target = Path(path)
    if target.exists() and not force:
        raise click.ClickException(f"{target} already exists (use --force to overwrite)")
    try:
        config = default_deployment_config(name)
    except AgentOpsError as e:
        raise _fail(e)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(config.to_yaml(), encoding="utf-8")
    click.echo(f"Wrote {target}")


@cli.command("render-dockerfile")
@click.option("--base-image", default="python:3.11-slim", show_default=True)
@click.option("--user", default="agent", show_default=True)
@click.option("--port", default=8080, show_default=True, type=int)
@click.option("--credentials-path", default="/secrets/service-account.json", show_default=True)
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="Write to file instead of stdout.")
def render_dockerfile_cmd(base_image, user, port, credentials_path, output):
    """Print the container build recipe."""
    try:
        text = render_dockerfile(DockerfileOptions(
            base_image=base_image, user=user, port=port, credentials_path=credentials_path,
        ))
    except ValueError as e:
        raise _fail(e)
    if output:
        Path(output).write_text(text, encoding="utf-8")
        click.echo(f"Wrote {output}")
    else:
        click.echo(text, nl=False)


@cli.command("gcloud-setup")
@click.option("--project", "project_id", help="GCP project id (default: GOOGLE_CLOUD_PROJECT).")
@click.option("--account", default="agent-service", show_default=True, help="Service account name.")
@click.option("--role", "roles", multiple=True, help="IAM role to grant (repeatable).")
def gcloud_setup(project_id, account, roles):
    """Print the project and service-account setup commands."""
    project_id = project_id or get_settings().google_cloud_project
    if not project_id:
        raise click.ClickException("Pass --project or set GOOGLE_CLOUD_PROJECT")
    try:
        commands = gcloud_setup_commands(project_id, account, roles or DEFAULT_ROLES)
    except ValueError as e:
        raise _fail(e)
    for command in commands:
        click.echo(command)


@cli.command("check-env")
@click.option("--path", default=".", show_default=True, type=click.Path(file_okay=False))
def check_env(path):
    """Check host prerequisites."""
    results = check_environment(path)
    for r in results:
        mark = "PASS" if r.passed else "FAIL"
        click.echo(f"[{mark}] {r.name}: {r.detail}")
    if not environment_ready(results):
        raise click.ClickException("Environment is not ready")


@cli.command("check-credentials")
@click.argument("path", required=False, type=click.Path(dir_okay=False))
def check_credentials(path):
    """Validate and audit the service-account key."""
    settings = get_settings()
    try:
        key_path = Path(path) if path else resolve_credential_path(settings)
        key = load_service_account_key(key_path)
        audit = audit_credential(key_path, rotation_days=settings.key_rotation_days)
    except AgentOpsError as e:
        raise _fail(e)

    click.echo(f"Service account: {key.client_email} (project {key.project_id})")
    click.echo(f"Key age: {audit.age_days} days")
    for finding in audit.findings:
        click.echo(f"WARNING: {finding}")
    if not audit.ok:
        raise click.ClickException("Credential policy check failed")
    click.echo("Credential policy check passed")


@cli.command("diagnose")
@click.argument("message", required=False)
@click.option("--list", "list_all", is_flag=True, help="List every known scenario.")
def diagnose_cmd(message, list_all):
    """Suggest a remediation for an error MESSAGE."""
    if list_all:
        for entry in all_entries():
            click.echo(f"{entry.key}: {entry.symptom}\n  -> {entry.remediation}")
        return
    if not message:
        raise click.UsageError("Provide an error MESSAGE or --list")

    entry = diagnose(message)
    if entry is None:
        click.echo("No known scenario matches this error.")
        return
    click.echo(f"{entry.key}: {entry.symptom}")
    click.echo(f"Fix: {entry.remediation}")


@cli.command("serve")
@click.option("--host", default="0.0.0.0", show_default=True)
@click.option("--port", type=int, help="Listening port (default: PORT, 8080).")
def serve(host, port):
    """Run the HTTP service."""
    import uvicorn

    uvicorn.run("agent_ops.main:app", host=host, port=port or get_settings().port)


if __name__ == "__main__":
    cli()
