"""Service credential reference.

The credential is a service-account JSON key whose path is held in
GOOGLE_APPLICATION_CREDENTIALS. Issuance and rotation happen in the
cloud IAM service; this module only resolves, validates and audits the
local key file:

- the variable must be set and point at a readable JSON key
- the key must be rotated every KEY_ROTATION_DAYS (90 by default)
- the key must never sit inside a git working tree
- the key file should be readable by its owner only
"""

import json
import os
import stat
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from agent_ops.config.settings import Settings, get_settings
from agent_ops.errors import CredentialError

CREDENTIALS_ENV_VAR = "GOOGLE_APPLICATION_CREDENTIALS"
CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"

_REQUIRED_FIELDS = ("project_id", "private_key_id", "private_key", "client_email")


@dataclass
class ServiceAccountKey:
    project_id: str
    client_email: str
    private_key_id: str
    path: Path

    def __repr__(self) -> str:
        # Never render key material
        return (
            f"ServiceAccountKey(project_id={self.project_id!r}, "
            f"client_email={self.client_email!r}, path={str(self.path)!r})"
        )


@dataclass
class CredentialAudit:
    path: Path
    age_days: int
    rotation_due: bool
    inside_git_repo: bool
    permissions_too_open: bool
    findings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.findings


def resolve_credential_path(settings: Settings | None = None) -> Path:
    settings = settings or get_settings()
    raw = settings.google_application_credentials.strip()
    if not raw:
        raise CredentialError(f"{CREDENTIALS_ENV_VAR} is not set")
    return Path(raw).expanduser()


def load_service_account_key(path: str | Path) -> ServiceAccountKey:
    """Read and sanity-check a service-account key file."""
    path = Path(path)
    if not path.is_file():
        raise CredentialError(f"Credential file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise CredentialError(f"Credential file {path} is not valid JSON: {e}") from e
    except OSError as e:
        raise CredentialError(f"Cannot read credential file {path}: {e}") from e

    if not isinstance(data, dict):
        raise CredentialError(f"Credential file {path} must contain a JSON object")
    if data.get("type") != "service_account":
        raise CredentialError(
            f"Credential file {path} is not a service-account key (type={data.get('type')!r})"
        )

    missing = [name for name in _REQUIRED_FIELDS if not data.get(name)]
    if missing:
        raise CredentialError(f"Credential file {path} is missing fields: {', '.join(missing)}")

    return ServiceAccountKey(
        project_id=data["project_id"],
        client_email=data["client_email"],
        private_key_id=data["private_key_id"],
        path=path,
    )


def _find_git_root(path: Path) -> Path | None:
    for parent in [path.parent, *path.parent.parents]:
        if (parent / ".git").exists():
            return parent
    return None


def audit_credential(
    path: str | Path,
    rotation_days: int = 90,
    now: datetime | None = None,
) -> CredentialAudit:
    """Check a key file against the rotation and storage policy."""
    path = Path(path).resolve()
    if not path.is_file():
        raise CredentialError(f"Credential file not found: {path}")

    now = now or datetime.now(timezone.utc)
    st = path.stat()
    modified = datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)
    age_days = max(0, (now - modified).days)

    findings = []

    rotation_due = age_days >= rotation_days
    if rotation_due:
        findings.append(
            f"Key is {age_days} days old; rotate keys every {rotation_days} days"
        )

    git_root = _find_git_root(path)
    if git_root is not None:
        findings.append(
            f"Key file is inside the git working tree at {git_root}; move it out of version control"
        )

    permissions_too_open = False
    if os.name == "posix" and st.st_mode & (stat.S_IRWXG | stat.S_IRWXO):
        permissions_too_open = True
        findings.append(
            f"Key file mode is {stat.filemode(st.st_mode)}; restrict it with chmod 600"
        )

    return CredentialAudit(
        path=path,
        age_days=age_days,
        rotation_due=rotation_due,
        inside_git_repo=git_root is not None,
        permissions_too_open=permissions_too_open,
        findings=findings,
    )


def load_google_credentials(path: str | Path | None = None):
    """Build google-auth credentials for the agent SDK from the key file."""
    from google.oauth2 import service_account

    path = Path(path) if path is not None else resolve_credential_path()
    load_service_account_key(path)
    return service_account.Credentials.from_service_account_file(
        str(path), scopes=[CLOUD_PLATFORM_SCOPE]
    )
