"""Operational failure lookup.

Maps an exception or error message to one of the known failure
scenarios and its remediation. Matching is by exception type first,
then by message pattern.

Scenarios:
- authentication_failure: missing/invalid service-account credentials
- missing_dependency: agent SDK or one of its packages not installed
- quota_exceeded: model API quota or rate limit hit
- wsl_memory: WSL2 VM starved of memory on Windows hosts
- context_out_of_memory: conversation context too large for the host
"""

import re
from dataclasses import dataclass

from google.auth.exceptions import DefaultCredentialsError, RefreshError


@dataclass(frozen=True)
class Remediation:
    key: str
    symptom: str
    remediation: str


_ENTRIES: dict[str, Remediation] = {
    entry.key: entry
    for entry in (
        Remediation(
            key="authentication_failure",
            symptom="Requests fail with 401/403 or DefaultCredentialsError",
            remediation=(
                "Check GOOGLE_APPLICATION_CREDENTIALS points at a valid service-account key, "
                "run `agent-ops check-credentials`, and confirm the account holds roles/aiplatform.user."
            ),
        ),
        Remediation(
            key="missing_dependency",
            symptom="ModuleNotFoundError / ImportError on startup",
            remediation=(
                "Activate the project virtualenv and reinstall: `pip install -e .[adk]`; "
                "run `agent-ops check-env` to list missing packages."
            ),
        ),
        Remediation(
            key="quota_exceeded",
            symptom="429 / RESOURCE_EXHAUSTED from the model API",
            remediation=(
                "Lower agent.rate_limit in the deployment config, add retry with backoff, "
                "or request a quota increase for the project in the Cloud console."
            ),
        ),
        Remediation(
            key="wsl_memory",
            symptom="WSL2 host runs out of memory (vmmem grows until processes are killed)",
            remediation=(
                "Set memory= (e.g. memory=8GB) and swap= under [wsl2] in %UserProfile%\\.wslconfig, "
                "then run `wsl --shutdown` and restart the distribution."
            ),
        ),
        Remediation(
            key="context_out_of_memory",
            symptom="MemoryError or context length exceeded on long conversations",
            remediation=(
                "Cap conversation memory (ConversationMemory(max_turns=...)), summarise older turns, "
                "or move to a larger machine_type."
            ),
        ),
    )
}

_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"defaultcredentialserror|could not automatically determine credentials|\b401\b|unauthenticated|permission[ _]denied|\b403\b", re.I), "authentication_failure"),
    (re.compile(r"no module named|modulenotfounderror|importerror", re.I), "missing_dependency"),
    (re.compile(r"\b429\b|resource[ _]exhausted|quota|rate limit", re.I), "quota_exceeded"),
    (re.compile(r"vmmem|\.wslconfig|\bwsl2?\b", re.I), "wsl_memory"),
    (re.compile(r"context length|context window|too many tokens|out of memory|memoryerror", re.I), "context_out_of_memory"),
]


def lookup(key: str) -> Remediation:
    if key not in _ENTRIES:
        raise KeyError(f"Unknown failure scenario: {key}")
    return _ENTRIES[key]


def all_entries() -> list[Remediation]:
    return list(_ENTRIES.values())


def diagnose(error: BaseException | str) -> Remediation | None:
    """Match an exception or error message to a known failure scenario."""
    if isinstance(error, BaseException):
        if isinstance(error, (DefaultCredentialsError, RefreshError)):
            return _ENTRIES["authentication_failure"]
        if isinstance(error, ImportError):
            return _ENTRIES["missing_dependency"]
        if isinstance(error, MemoryError):
            return _ENTRIES["context_out_of_memory"]
        text = f"{type(error).__name__}: {error}"
    else:
        text = error

    for pattern, key in _PATTERNS:
        if pattern.search(text):
            return _ENTRIES[key]
    return None
