"""Tests for agent_ops/agent/memory.py — conversation memory and persistence."""

import json

import pytest

from agent_ops.agent.memory import AGENT, USER, ConversationMemory, Turn
from agent_ops.errors import ConfigError


@pytest.fixture
def memory() -> ConversationMemory:
    m = ConversationMemory()
    m.add_user("My name is Ada and I work on compilers.")
    m.add_agent("Nice to meet you, Ada.")
    m.add_user("What is 2 + 2?")
    m.add_agent("4")
    return m


class TestConversationMemory:

    def test_order_and_roles(self, memory):
        roles = [t.role for t in memory.history()]
        assert roles == [USER, AGENT, USER, AGENT]
        assert len(memory) == 4

    def test_last(self, memory):
        assert [t.content for t in memory.last(2)] == ["What is 2 + 2?", "4"]
        assert memory.last(0) == []

    def test_recall_case_insensitive(self, memory):
        hits = memory.recall("ada")
        assert len(hits) == 2
        assert hits[0].role == USER

    def test_history_is_a_copy(self, memory):
        memory.history().clear()
        assert len(memory) == 4

    def test_max_turns_drops_oldest(self):
        m = ConversationMemory(max_turns=3)
        for i in range(5):
            m.add_user(f"message {i}")
        assert [t.content for t in m.history()] == ["message 2", "message 3", "message 4"]

    def test_invalid_max_turns(self):
        with pytest.raises(ValueError):
            ConversationMemory(max_turns=0)

    def test_clear(self, memory):
        memory.clear()
        assert len(memory) == 0


class TestPersistence:

    def test_save_and_load(self, memory, tmp_path):
        path = memory.save(tmp_path / "sessions" / "agent.json")
        restored = ConversationMemory.load(path)
        assert restored == memory
        assert restored.recall("compilers")[0].content.startswith("My name is Ada")

    def test_file_format(self, memory, tmp_path):
        path = memory.save(tmp_path / "agent.json")
        data = json.loads(path.read_text())
        assert data["version"] == 1
        assert data["turns"][0]["role"] == "user"
        assert "timestamp" in data["turns"][0]

    def test_max_turns_preserved(self, tmp_path):
        m = ConversationMemory(max_turns=10)
        m.add_user("hi")
        assert ConversationMemory.load(m.save(tmp_path / "m.json")).max_turns == 10

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            ConversationMemory.load(tmp_path / "nope.json")

    def test_unknown_version(self, tmp_path):
        path = tmp_path / "m.json"
        path.write_text(json.dumps({"version": 99, "turns": []}))
        with pytest.raises(ConfigError, match="version"):
            ConversationMemory.load(path)

    def test_malformed_turn(self, tmp_path):
        path = tmp_path / "m.json"
        path.write_text(json.dumps({"version": 1, "turns": [{"speaker": "x"}]}))
        with pytest.raises(ConfigError, match="Malformed"):
            ConversationMemory.load(path)

    def test_turn_equality_includes_timestamp(self):
        assert Turn("user", "a", "t1") != Turn("user", "a", "t2")

    @pytest.mark.parametrize("max_turns", ["x", 0, -3, True, 2.5])
    def test_malformed_max_turns(self, tmp_path, max_turns):
        path = tmp_path / "m.json"
        path.write_text(json.dumps({"version": 1, "max_turns": max_turns, "turns": []}))
        with pytest.raises(ConfigError, match="max_turns"):
            ConversationMemory.load(path)

    @pytest.mark.parametrize("turn", [
        {"role": "user", "content": 42, "timestamp": "t"},
        {"role": "user", "content": "hi", "timestamp": None},
        {"role": "system", "content": "hi", "timestamp": "t"},
        "just text",
    ])
    def test_malformed_turn_fields(self, tmp_path, turn):
        path = tmp_path / "m.json"
        path.write_text(json.dumps({"version": 1, "turns": [turn]}))
        with pytest.raises(ConfigError, match="Malformed"):
            ConversationMemory.load(path)

    def test_turns_not_a_list(self, tmp_path):
        path = tmp_path / "m.json"
        path.write_text(json.dumps({"version": 1, "turns": {"role": "user"}}))
        with pytest.raises(ConfigError, match="list"):
            ConversationMemory.load(path)

    def test_invalid_utf8(self, tmp_path):
        path = tmp_path / "m.json"
        path.write_bytes(b'{"version": 1, "turns": ["\xff\xfe"]}')
        with pytest.raises(ConfigError):
            ConversationMemory.load(path)

    def test_directory_instead_of_file(self, tmp_path):
        with pytest.raises(ConfigError):
            ConversationMemory.load(tmp_path)

    def test_load_trims_to_max_turns(self, tmp_path):
        turns = [{"role": "user", "content": f"message {i}", "timestamp": "t"} for i in range(5)]
        path = tmp_path / "m.json"
        path.write_text(json.dumps({"version": 1, "max_turns": 2, "turns": turns}))
        memory = ConversationMemory.load(path)
        assert len(memory) == 2
        assert [t.content for t in memory.history()] == ["message 3", "message 4"]
