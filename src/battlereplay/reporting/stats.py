"""Running statistics across the games watched so far.

Usage:
    rows = running_summary(collection, up_to_index=3)   # games 1..4
    rows[0].name, rows[0].avg_efficiency
"""

from __future__ import annotations

from dataclasses import dataclass

from battlereplay.core.session import AgentRecord, SessionCollection
from battlereplay.core.timeline import board_at, count_hits, is_finished, turns_shown


@dataclass(frozen=True)
class AgentSummary:
    """Per-agent averages over a prefix of the collection."""

    name: str
    avg_turns: float
    avg_hits: float
    avg_efficiency: float
    games: int


@dataclass(frozen=True)
class BoardSnapshot:
    """Figures shown next to one agent's board at a timeline position."""

    turns: int
    hits: int
    efficiency: float
    finished: bool


def efficiency(hits: int, turns: int) -> float:
    return hits / turns if turns > 0 else 0.0


def running_summary(collection: SessionCollection, up_to_index: int) -> list[AgentSummary]:
    """Average turns, hits and efficiency for games ``0..up_to_index``.

    Efficiency is averaged per game, not computed from the summed totals.
    Sorted best efficiency first.
    """
    totals: dict[str, dict[str, float]] = {}
    for index in range(min(up_to_index + 1, collection.count())):
        for name, agent in collection.at(index).agents.items():
            t = totals.setdefault(name, {"turns": 0, "hits": 0, "eff": 0.0, "games": 0})
            t["turns"] += agent.turns
            t["hits"] += agent.hits
            t["eff"] += efficiency(agent.hits, agent.turns)
            t["games"] += 1

    rows = [
        AgentSummary(
            name=name,
            avg_turns=t["turns"] / t["games"],
            avg_hits=t["hits"] / t["games"],
            avg_efficiency=t["eff"] / t["games"],
            games=int(t["games"]),
        )
        for name, t in totals.items()
    ]
    rows.sort(key=lambda r: r.avg_efficiency, reverse=True)
    return rows


def agent_snapshot(agent: AgentRecord, turn: int, include_sunk: bool = False) -> BoardSnapshot:
    """Turn counter, hits on the shown board, efficiency and done flag."""
    shown = turns_shown(agent, turn)
    hits = count_hits(board_at(agent, turn), include_sunk=include_sunk)
    return BoardSnapshot(
        turns=shown,
        hits=hits,
        efficiency=efficiency(hits, shown),
        finished=is_finished(agent, turn),
    )
