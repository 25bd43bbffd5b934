"""Board timeline — turn bounds and per-agent board lookup.

Agents in the same game finish at different turn counts. The timeline
length of a session is the longest board history; an agent whose history
is exhausted keeps showing its last board ("frozen on completion").
"""

from __future__ import annotations

from functools import lru_cache

from battlereplay.core.session import EMPTY_BOARD, AgentRecord, Board, SessionCollection

HIT_CELLS = frozenset("h")
HIT_OR_SUNK_CELLS = frozenset("hs")


@lru_cache(maxsize=256)
def max_turns(collection: SessionCollection, session_index: int) -> int:
    """Maximum board-history length over all agents of one session.

    Memoized on (collection identity, session index); collections are
    immutable so entries never go stale.
    """
    return collection.max_turns_of(session_index)


def clear_cache() -> None:
    """Drop memoized turn counts and the collections they reference."""
    max_turns.cache_clear()


def clamp_turn(turn: int, total_turns: int) -> int:
    """Clamp *turn* into ``[0, total_turns - 1]`` (0 for an empty timeline)."""
    return max(0, min(turn, max(total_turns - 1, 0)))


def board_at(agent: AgentRecord | None, turn: int) -> Board:
    """Board shown for *agent* at *turn*, holding the last board once exhausted."""
    if agent is None or not agent.board_history:
        return EMPTY_BOARD
    history = agent.board_history
    return history[max(0, min(turn, len(history) - 1))]


def is_finished(agent: AgentRecord, turn: int) -> bool:
    """True once *turn* has reached the agent's final board."""
    n = agent.num_boards
    return n > 0 and turn >= n - 1


def turns_shown(agent: AgentRecord, turn: int) -> int:
    """Turn counter displayed for *agent* at timeline position *turn*."""
    return min(turn + 1, agent.turns)


def count_hits(board: Board, include_sunk: bool = False) -> int:
    cells = HIT_OR_SUNK_CELLS if include_sunk else HIT_CELLS
    return sum(1 for row in board for cell in row if cell in cells)
