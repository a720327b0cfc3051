"""Agent session and SDK assembly.

Covers the three operator checks: the agent initialises, it recalls
earlier turns in a multi-turn conversation, and its memory survives a
save/load round trip.
"""

from unittest.mock import MagicMock, patch

import pytest

from agent_ops.agent.builder import ADK_INSTALL_HINT, build_agent
from agent_ops.agent.memory import ConversationMemory
from agent_ops.agent.session import AgentReply, AgentSession
from agent_ops.config.deployment import default_deployment_config
from agent_ops.monitoring.metrics import MetricsRecorder
from agent_ops.ops.troubleshooting import diagnose
from agent_ops.tools.calculator import calculate
from agent_ops.tools.dates import format_date


def echo_name_responder(history):
    """Answers 'what is my name' from earlier turns, otherwise acknowledges."""
    last = history[-1].content.lower()
    if "what is my name" in last:
        for turn in history:
            if turn.role == "user" and "my name is" in turn.content.lower():
                name = turn.content.lower().split("my name is", 1)[1].strip(" .!")
                return f"Your name is {name.title()}."
        return "I don't know your name."
    return "Noted."


@pytest.fixture
def session() -> AgentSession:
    return AgentSession(default_deployment_config("test-agent"), echo_name_responder)


class TestAgentSession:

    def test_initialization(self, session):
        assert session.initialized
        assert session.name == "test-agent"
        assert len(session.memory) == 0
        assert {t.name for t in session.tools} == {"calculate", "format_date"}

    def test_multi_turn_memory(self, session):
        session.send("Hello, my name is Alice.")
        reply = session.send("What is my name?")
        assert reply == "Your name is Alice."
        assert len(session.memory) == 4

    def test_save_load_round_trip(self, session, tmp_path):
        session.send("Hello, my name is Bob.")
        session.save(tmp_path)

        fresh = AgentSession(default_deployment_config("test-agent"), echo_name_responder)
        fresh.restore(tmp_path)
        assert fresh.memory == session.memory
        assert fresh.send("What is my name?") == "Your name is Bob."

    def test_save_defaults_to_memory_dir(self, session, tmp_path, override_settings):
        override_settings(MEMORY_DIR=str(tmp_path / "snapshots"))
        session.send("Hello")
        path = session.save()
        assert path == tmp_path / "snapshots" / "test-agent.json"
        assert path.exists()

    def test_not_initialized_without_memory(self, session):
        session.memory = None
        assert not session.initialized

    def test_turns_recorded_in_metrics(self):
        recorder = MetricsRecorder()
        s = AgentSession(
            default_deployment_config(),
            lambda history: AgentReply("ok", tokens=42),
            recorder=recorder,
        )
        assert s.send("hello") == "ok"
        s.send("again")
        snap = recorder.snapshot()
        assert snap.request_count == 2
        assert snap.token_usage == 84
        assert snap.error_rate == 0.0
        assert s.memory.last()[0].content == "ok"

    def test_responder_failure_recorded(self):
        recorder = MetricsRecorder()
        s = AgentSession(default_deployment_config(), MagicMock(side_effect=RuntimeError("boom")), recorder=recorder)
        with pytest.raises(RuntimeError):
            s.send("hello")
        snap = recorder.snapshot()
        assert snap.request_count == 1
        assert snap.error_rate == 1.0

    def test_responder_sees_history(self):
        responder = MagicMock(return_value="ok")
        s = AgentSession(default_deployment_config(), responder)
        s.send("first")
        s.send("second")
        history = responder.call_args.args[0]
        assert [t.content for t in history] == ["first", "ok", "second"]

    def test_empty_message_rejected(self, session):
        with pytest.raises(ValueError):
            session.send("   ")

    def test_capped_memory(self):
        s = AgentSession(default_deployment_config(), lambda h: "ok", memory=ConversationMemory(max_turns=2))
        s.send("a")
        s.send("b")
        assert [t.content for t in s.memory.history()] == ["b", "ok"]


class TestBuildAgent:

    def test_wires_config_and_tools(self):
        agent_cls = MagicMock(name="Agent")
        with patch("agent_ops.agent.builder._load_agent_class", return_value=agent_cls):
            build_agent(default_deployment_config("support-agent"), instruction="Be brief.")

        kwargs = agent_cls.call_args.kwargs
        assert kwargs["name"] == "support_agent"
        assert kwargs["model"] == "gemini-1.5-pro"
        assert kwargs["instruction"] == "Be brief."
        assert kwargs["tools"] == [calculate, format_date]

    def test_missing_sdk(self):
        with patch.dict("sys.modules", {"google.adk": None, "google.adk.agents": None}):
            with pytest.raises(ModuleNotFoundError) as exc_info:
                build_agent(default_deployment_config())
        assert ADK_INSTALL_HINT in str(exc_info.value)
        assert diagnose(exc_info.value).key == "missing_dependency"
