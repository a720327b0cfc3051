"""Exception hierarchy shared by the config, credential and tool layers."""


class AgentOpsError(Exception):
    """Base class for errors raised by agent-ops."""


class ConfigError(AgentOpsError):
    """Deployment configuration could not be read or failed validation.

    ``problems`` holds one ``"<dotted.path>: <message>"`` entry per field.
    """

    def __init__(self, message: str, problems: list[str] | None = None):
        super().__init__(message)
        self.problems = problems or []

    def __str__(self) -> str:
        base = super().__str__()
        if not self.problems:
            return base
        return base + "\n" + "\n".join(f"  - {p}" for p in self.problems)


class CredentialError(AgentOpsError):
    """Service credential reference is missing, unreadable or malformed."""


class ToolError(AgentOpsError):
    """A tool rejected its input."""
