"""Agent session: deployment config + tools + memory around an external responder.

The responder is whatever produces the agent's reply. In production it
is backed by the agent SDK runner; tests pass a plain function. A
responder may return plain text or an ``AgentReply`` carrying the
token count the model reported, which feeds the token_usage metric.
"""

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from agent_ops.agent.memory import ConversationMemory, Turn
from agent_ops.config.deployment import DeploymentConfig
from agent_ops.config.settings import get_settings
from agent_ops.logging.audit import RequestTimer, get_audit_logger
from agent_ops.monitoring.metrics import MetricsRecorder, get_recorder
from agent_ops.tools.registry import ToolSpec, list_tools


@dataclass
class AgentReply:
    text: str
    tokens: int = 0


Responder = Callable[[list[Turn]], "str | AgentReply"]


class AgentSession:

    def __init__(
        self,
        config: DeploymentConfig,
        responder: Responder,
        memory: ConversationMemory | None = None,
        tools: list[ToolSpec] | None = None,
        recorder: MetricsRecorder | None = None,
    ):
        self.config = config
        self.responder = responder
        self.memory = memory if memory is not None else ConversationMemory()
        self.tools = tools if tools is not None else list_tools()
        self.recorder = recorder if recorder is not None else get_recorder()

    @property
    def name(self) -> str:
        return self.config.agent.name

    @property
    def initialized(self) -> bool:
        return bool(self.name) and bool(self.tools) and isinstance(self.memory, ConversationMemory)

    def send(self, message: str) -> str:
        """Record the user turn, ask the responder, record and return the reply.

        Every turn is counted in the metrics recorder; a responder that
        raises is recorded as a failed request and the error propagates.
        """
        if not message.strip():
            raise ValueError("Message must not be empty")

        self.memory.add_user(message)
        timer = RequestTimer()
        try:
            with timer:
                reply = self.responder(self.memory.history())
        except Exception:
            self.recorder.record(success=False, latency_ms=timer.elapsed_ms)
            raise

        if isinstance(reply, AgentReply):
            text, tokens = reply.text, reply.tokens
        else:
            text, tokens = reply, 0
        self.memory.add_agent(text)
        self.recorder.record(success=True, latency_ms=timer.elapsed_ms, tokens=tokens)

        get_audit_logger().debug(
            "Agent turn completed",
            extra={"audit_data": {
                "agent": self.name,
                "model": self.config.agent.model.value,
                "latency_ms": timer.elapsed_ms,
                "tokens": tokens,
                "turns": len(self.memory),
            }},
        )
        return text

    def snapshot_path(self, directory: str | Path | None = None) -> Path:
        """Memory snapshot location; defaults to MEMORY_DIR."""
        base = Path(directory) if directory is not None else Path(get_settings().memory_dir)
        return base / f"{self.name}.json"

    def save(self, directory: str | Path | None = None) -> Path:
        return self.memory.save(self.snapshot_path(directory))

    def restore(self, directory: str | Path | None = None) -> None:
        self.memory = ConversationMemory.load(self.snapshot_path(directory))
