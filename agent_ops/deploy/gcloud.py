"""gcloud command checklist for project, API and service-account setup.

Commands are rendered, not executed: the operator runs them with their
own identity. Roles follow least privilege; broad primitive roles are
refused.
"""

import re
import shlex

DEFAULT_ROLES = ("roles/aiplatform.user",)
REQUIRED_APIS = ("aiplatform.googleapis.com",)

_FORBIDDEN_ROLES = {"roles/owner", "roles/editor"}
_ACCOUNT_NAME = re.compile(r"^[a-z][a-z0-9-]{4,28}[a-z0-9]$")
_PROJECT_ID = re.compile(r"^[a-z][a-z0-9-]{4,28}[a-z0-9]$")


def service_account_email(account_name: str, project_id: str) -> str:
    return f"{account_name}@{project_id}.iam.gserviceaccount.com"


def gcloud_setup_commands(
    project_id: str,
    account_name: str = "agent-service",
    roles: tuple[str, ...] | list[str] = DEFAULT_ROLES,
    key_file: str | None = None,
) -> list[str]:
    """Ordered shell commands: project, APIs, service account, IAM bindings, key export."""
    if not _PROJECT_ID.match(project_id):
        raise ValueError(f"Invalid project id: {project_id!r}")
    if not _ACCOUNT_NAME.match(account_name):
        raise ValueError(
            f"Invalid service account name: {account_name!r} (6-30 chars, lowercase, digits, hyphens)"
        )
    if not roles:
        raise ValueError("At least one IAM role is required")
    broad = sorted(set(roles) & _FORBIDDEN_ROLES)
    if broad:
        raise ValueError(f"Refusing broad roles {', '.join(broad)}; grant scoped roles instead")

    email = service_account_email(account_name, project_id)
    key_file = key_file or f"{account_name}-key.json"
    q = shlex.quote

    commands = [
        f"gcloud config set project {q(project_id)}",
        f"gcloud services enable {' '.join(REQUIRED_APIS)}",
        (
            f"gcloud iam service-accounts create {q(account_name)} "
            f"--display-name={q(account_name + ' (agent deployment)')}"
        ),
    ]
    for role in roles:
        commands.append(
            f"gcloud projects add-iam-policy-binding {q(project_id)} "
            f"--member={q('serviceAccount:' + email)} --role={q(role)}"
        )
    commands.append(
        f"gcloud iam service-accounts keys create {q(key_file)} --iam-account={q(email)}"
    )
    return commands
