"""Playback state — the mutable position of one playback mode."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Mode(Enum):
    OVERVIEW = "overview"
    REASONING = "reasoning"


class Phase(Enum):
    PROMPT = "prompt"
    TYPING = "typing"
    LINGER = "linger"


class TickOutcome(Enum):
    ADVANCE = "advance"      # overview turn step, or one more chunk revealed
    LINGER = "linger"
    NEXT_TURN = "next_turn"
    NEXT_GAME = "next_game"
    STOPPED = "stopped"
    IDLE = "idle"            # nothing to play in this mode


@dataclass
class PlaybackState:
    game_index: int = 0
    turn_index: int = 0
    is_playing: bool = False
    tick_interval_ms: int = 500

    @property
    def position(self) -> tuple[int, int]:
        return (self.game_index, self.turn_index)


@dataclass
class ReasoningState(PlaybackState):
    phase: Phase = Phase.PROMPT
    reveal_index: int = 0
    linger_remaining: int = 0
    selected_agent: str | None = None

    def reset_phase(self) -> None:
        """Back to the start of the current turn: prompt shown, response hidden."""
        self.phase = Phase.PROMPT
        self.reveal_index = 0
        self.linger_remaining = 0
