"""Session records — immutable, already-loaded replay data.

A session is one recorded Battleship game in which several agents each
played against their own hidden fleet. Every agent has a board history
(one snapshot per turn) and, for LLM agents, per-turn transcript data.

Usage:
    collection = SessionCollection.from_dicts([game_1_json, game_2_json])
    collection.count()           # 2
    collection.at(0)             # SessionRecord
    collection.max_turns_of(0)   # longest board history in game 1
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator, Mapping

Board = tuple[tuple[str, ...], ...]

EMPTY_BOARD: Board = ()


def _freeze_board(rows: list[list[str]]) -> Board:
    return tuple(tuple(row) for row in rows)


@dataclass(frozen=True)
class MoveMetadataEntry:
    """One turn of an LLM agent's transcript."""

    prompt: str
    reasoning: str
    move: str | None = None
    result: str | None = None  # "HIT", "MISS", "SUNK"

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> MoveMetadataEntry:
        return cls(
            prompt=record.get("prompt") or "",
            reasoning=record.get("reasoning") or "",
            move=record.get("move"),
            result=record.get("result"),
        )


@dataclass(frozen=True)
class AgentRecord:
    """Per-agent data for one session."""

    name: str
    board_history: tuple[Board, ...] = ()
    turns: int = 0
    hits: int = 0
    move_metadata: tuple[MoveMetadataEntry, ...] = ()
    cost_usd: float = 0.0

    @classmethod
    def from_dict(cls, name: str, record: Mapping[str, Any]) -> AgentRecord:
        return cls(
            name=name,
            board_history=tuple(
                _freeze_board(board) for board in record.get("board_history") or []
            ),
            turns=record.get("turns", 0) or 0,
            hits=record.get("hits", 0) or 0,
            move_metadata=tuple(
                MoveMetadataEntry.from_dict(m) for m in record.get("move_metadata") or []
            ),
            cost_usd=record.get("cost_usd", 0.0) or 0.0,
        )

    @property
    def num_boards(self) -> int:
        return len(self.board_history)

    @property
    def transcript_turns(self) -> int:
        """Number of turns with transcript data (0 for non-LLM agents)."""
        return len(self.move_metadata)

    @property
    def has_transcript(self) -> bool:
        return bool(self.move_metadata)


@dataclass(frozen=True)
class SessionRecord:
    """One recorded game: agent name -> AgentRecord, in file order."""

    game_number: int
    agents: Mapping[str, AgentRecord] = field(default_factory=dict)
    source: Path | None = None

    def __post_init__(self):
        object.__setattr__(self, "agents", MappingProxyType(dict(self.agents)))

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        game_number: int,
        source: Path | None = None,
    ) -> SessionRecord:
        agents = {
            name: AgentRecord.from_dict(name, record)
            for name, record in data.items()
        }
        return cls(game_number=game_number, agents=agents, source=source)

    @property
    def agent_names(self) -> list[str]:
        return list(self.agents)

    def agent(self, name: str | None) -> AgentRecord | None:
        if name is None:
            return None
        return self.agents.get(name)

    @property
    def max_turns(self) -> int:
        """Longest board history across all agents."""
        return max((a.num_boards for a in self.agents.values()), default=0)


class SessionCollection:
    """Ordered, read-only sequence of loaded sessions.

    An empty collection is valid: every query answers "nothing there"
    and the playback layer treats it as inert.
    """

    def __init__(self, sessions: list[SessionRecord] | tuple[SessionRecord, ...] = ()):
        self._sessions = tuple(sessions)

    @classmethod
    def from_dicts(cls, games: list[Mapping[str, Any]]) -> SessionCollection:
        """Build a collection from raw per-game dicts, numbering games from 1."""
        return cls(
            [SessionRecord.from_dict(g, game_number=i) for i, g in enumerate(games, 1)]
        )

    def count(self) -> int:
        return len(self._sessions)

    def at(self, index: int) -> SessionRecord | None:
        """Return the session at *index*, or None when out of range."""
        if 0 <= index < len(self._sessions):
            return self._sessions[index]
        return None

    def max_turns_of(self, index: int) -> int:
        session = self.at(index)
        if session is None:
            return 0
        return session.max_turns

    @property
    def is_empty(self) -> bool:
        return not self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[SessionRecord]:
        return iter(self._sessions)

    def __repr__(self) -> str:
        return f"SessionCollection({len(self._sessions)} sessions)"
