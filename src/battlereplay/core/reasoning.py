"""ReasoningPhaseMachine — prompt → typing → linger cycle for LLM transcripts.

Each transcript turn plays in three phases:

    PROMPT  the prompt is shown, the response is hidden
    TYPING  the response is revealed one chunk boundary per tick
    LINGER  the full response stays up for a fixed number of ticks

then the machine moves to the agent's next turn, the next game, or stops.
Every tick is a single step transition on the state it is handed, so a
late or skipped tick only delays the animation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from battlereplay.core.agents import resolve_reasoning_agent
from battlereplay.core.chunking import boundary_count, is_fully_revealed, revealed_text
from battlereplay.core.session import MoveMetadataEntry, SessionCollection
from battlereplay.core.state import Phase, ReasoningState, TickOutcome

logger = logging.getLogger(__name__)

DEFAULT_LINGER_TICKS = 60


@lru_cache(maxsize=256)
def _active_agent(
    collection: SessionCollection,
    session_index: int,
    selected: str | None,
    priority: tuple[str, ...],
) -> str | None:
    return resolve_reasoning_agent(collection.at(session_index), selected, list(priority))


def clear_cache() -> None:
    _active_agent.cache_clear()


@dataclass(frozen=True)
class ReasoningView:
    """What the transcript panel shows at one instant."""

    agent: str
    game_index: int
    turn_index: int
    phase: Phase
    prompt: str
    response: str          # visible part of the reasoning text
    response_visible: bool
    typing: bool           # response still incomplete (show a cursor)
    move: str | None
    result: str | None     # only set once the move is revealed


class ReasoningPhaseMachine:
    """Drives a ReasoningState through transcript turns of one collection."""

    def __init__(
        self,
        collection: SessionCollection,
        priority: list[str],
        linger_ticks: int = DEFAULT_LINGER_TICKS,
    ):
        if linger_ticks < 0:
            raise ValueError(f"linger_ticks must be >= 0, got {linger_ticks}")
        self._collection = collection
        self._priority = tuple(priority)
        self._linger_ticks = linger_ticks

    @property
    def linger_ticks(self) -> int:
        return self._linger_ticks

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def active_agent(self, state: ReasoningState, game_index: int | None = None) -> str | None:
        """Agent shown for the state's game (or *game_index*), None for an empty state."""
        index = state.game_index if game_index is None else game_index
        return _active_agent(self._collection, index, state.selected_agent, self._priority)

    def transcript_turns(self, state: ReasoningState, game_index: int | None = None) -> int:
        """Number of transcript turns of the active agent in a game."""
        index = state.game_index if game_index is None else game_index
        name = self.active_agent(state, index)
        session = self._collection.at(index)
        if name is None or session is None:
            return 0
        return session.agents[name].transcript_turns

    def current_entry(self, state: ReasoningState) -> MoveMetadataEntry | None:
        name = self.active_agent(state)
        if name is None:
            return None
        metadata = self._collection.at(state.game_index).agents[name].move_metadata
        if 0 <= state.turn_index < len(metadata):
            return metadata[state.turn_index]
        return None

    def current_text(self, state: ReasoningState) -> str:
        entry = self.current_entry(state)
        return entry.reasoning if entry else ""

    def view(self, state: ReasoningState) -> ReasoningView | None:
        """Snapshot for rendering, or None when no agent has transcripts."""
        name = self.active_agent(state)
        if name is None:
            return None
        entry = self.current_entry(state)
        prompt = entry.prompt if entry and entry.prompt else "(No prompt available)"
        text = entry.reasoning if entry else ""

        visible = state.phase is not Phase.PROMPT and bool(text)
        revealed = state.phase is Phase.LINGER
        return ReasoningView(
            agent=name,
            game_index=state.game_index,
            turn_index=state.turn_index,
            phase=state.phase,
            prompt=prompt,
            response=revealed_text(text, state.reveal_index) if visible else "",
            response_visible=visible,
            typing=visible and not is_fully_revealed(text, state.reveal_index),
            move=entry.move if entry and revealed else None,
            result=entry.result if entry and revealed else None,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def tick(self, state: ReasoningState) -> TickOutcome:
        """Apply one step to *state* and report what happened."""
        if self.active_agent(state) is None:
            return self._skip_empty_game(state)

        if state.phase is Phase.PROMPT:
            state.phase = Phase.TYPING
            state.reveal_index = 1
            return TickOutcome.ADVANCE

        if state.phase is Phase.TYPING:
            if state.reveal_index < boundary_count(self.current_text(state)):
                state.reveal_index += 1
                return TickOutcome.ADVANCE
            state.phase = Phase.LINGER
            state.linger_remaining = self._linger_ticks
            if self._linger_ticks == 0:
                return self._advance(state)
            return TickOutcome.LINGER

        state.linger_remaining -= 1
        if state.linger_remaining > 0:
            return TickOutcome.LINGER
        return self._advance(state)

    def _advance(self, state: ReasoningState) -> TickOutcome:
        if state.turn_index + 1 < self.transcript_turns(state):
            state.turn_index += 1
            state.reset_phase()
            return TickOutcome.NEXT_TURN

        if state.game_index + 1 < self._collection.count():
            state.game_index += 1
            state.turn_index = 0
            state.reset_phase()
            return TickOutcome.NEXT_GAME

        state.linger_remaining = 0
        state.is_playing = False
        return TickOutcome.STOPPED

    def _skip_empty_game(self, state: ReasoningState) -> TickOutcome:
        # A game with no transcripts has nothing to type; move past it.
        if state.is_playing and state.game_index + 1 < self._collection.count():
            logger.debug("Game %d has no transcripts, skipping", state.game_index + 1)
            state.game_index += 1
            state.turn_index = 0
            state.reset_phase()
            return TickOutcome.NEXT_GAME
        if state.is_playing:
            state.is_playing = False
            return TickOutcome.STOPPED
        return TickOutcome.IDLE
