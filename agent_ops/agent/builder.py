"""Assemble the external SDK agent from a deployment config.

Google ADK is imported lazily so config validation, the CLI and the
HTTP service work on hosts without the SDK installed.
"""

from agent_ops.config.deployment import DeploymentConfig
from agent_ops.tools.registry import agent_tools

DEFAULT_INSTRUCTION = (
    "You are a helpful assistant. Use the calculate tool for arithmetic "
    "and the format_date tool to present dates."
)

ADK_INSTALL_HINT = "google-adk is not installed; run `pip install agent-ops[adk]`"


def _load_agent_class():
    try:
        from google.adk.agents import Agent
    except ImportError as e:
        raise ModuleNotFoundError(ADK_INSTALL_HINT, name="google.adk") from e
    return Agent


def build_agent(
    config: DeploymentConfig,
    instruction: str = DEFAULT_INSTRUCTION,
    description: str = "",
):
    """Return an ADK ``Agent`` wired with the registered tools."""
    agent_cls = _load_agent_class()
    return agent_cls(
        name=config.agent.name.replace("-", "_"),
        model=config.agent.model.value,
        description=description or f"{config.agent.name} ({config.version})",
        instruction=instruction,
        tools=agent_tools(),
    )
