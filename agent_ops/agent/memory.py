"""Conversation memory record with JSON save/load."""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from agent_ops.errors import ConfigError

MEMORY_FORMAT_VERSION = 1

USER = "user"
AGENT = "agent"


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Turn:
    role: str  # "user" | "agent"
    content: str
    timestamp: str = field(default_factory=_utcnow)


class ConversationMemory:
    """Ordered dialogue turns, optionally capped to the newest ``max_turns``."""

    def __init__(self, max_turns: int | None = None):
        if max_turns is not None and max_turns < 1:
            raise ValueError("max_turns must be >= 1")
        self.max_turns = max_turns
        self._turns: list[Turn] = []

    def __len__(self) -> int:
        return len(self._turns)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConversationMemory):
            return NotImplemented
        return self.max_turns == other.max_turns and self._turns == other._turns

    def _append(self, turn: Turn) -> Turn:
        self._turns.append(turn)
        if self.max_turns is not None and len(self._turns) > self.max_turns:
            del self._turns[: len(self._turns) - self.max_turns]
        return turn

    def add_user(self, content: str) -> Turn:
        return self._append(Turn(role=USER, content=content))

    def add_agent(self, content: str) -> Turn:
        return self._append(Turn(role=AGENT, content=content))

    def history(self) -> list[Turn]:
        return list(self._turns)

    def last(self, n: int = 1) -> list[Turn]:
        if n <= 0:
            return []
        return self._turns[-n:]

    def recall(self, query: str) -> list[Turn]:
        """Turns whose content mentions ``query`` (case-insensitive)."""
        needle = query.lower()
        return [t for t in self._turns if needle in t.content.lower()]

    def clear(self) -> None:
        self._turns.clear()

    def to_dict(self) -> dict:
        return {
            "version": MEMORY_FORMAT_VERSION,
            "max_turns": self.max_turns,
            "turns": [asdict(t) for t in self._turns],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ConversationMemory":
        if not isinstance(data, dict) or data.get("version") != MEMORY_FORMAT_VERSION:
            raise ConfigError(f"Unsupported memory format version: {data.get('version') if isinstance(data, dict) else data!r}")

        max_turns = data.get("max_turns")
        if max_turns is not None and (
            isinstance(max_turns, bool) or not isinstance(max_turns, int) or max_turns < 1
        ):
            raise ConfigError(f"Malformed memory: max_turns must be a positive integer, got {max_turns!r}")

        turns = data.get("turns", [])
        if not isinstance(turns, list):
            raise ConfigError("Malformed memory: turns must be a list")

        memory = cls(max_turns=max_turns)
        for i, raw in enumerate(turns):
            try:
                turn = Turn(**raw)
            except TypeError as e:
                raise ConfigError(f"Malformed memory turn {i}: {e}") from e
            if turn.role not in (USER, AGENT):
                raise ConfigError(f"Malformed memory turn {i}: unknown role {turn.role!r}")
            if not isinstance(turn.content, str) or not isinstance(turn.timestamp, str):
                raise ConfigError(f"Malformed memory turn {i}: content and timestamp must be text")
            # Snapshots written with a larger cap come back trimmed to this one
            memory._append(turn)
        return memory

    def save(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        return path

    @classmethod
    def load(cls, path: str | Path) -> "ConversationMemory":
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise ConfigError(f"Memory file not found: {path}") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ConfigError(f"Memory file {path} is not valid JSON: {e}") from e
        except OSError as e:
            raise ConfigError(f"Cannot read memory file {path}: {e}") from e
        return cls.from_dict(data)
