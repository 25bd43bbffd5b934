"""PlaybackCoordinator — the single owner of replay position and timing.

Two playback modes share one coordinator:

    OVERVIEW   every agent's board, one turn per tick across all games
    REASONING  one LLM agent's transcript, typed out by the phase machine

Each mode keeps its own PlaybackState, but only one mode plays at a time
and there is exactly one timer handle. Every control operation cancels
the pending tick before it changes anything, then reschedules if the
mode is still playing, so user input always lands between ticks.

Usage:
    coordinator = PlaybackCoordinator(collection, config)
    coordinator.play(Mode.OVERVIEW)
    while coordinator.is_playing(Mode.OVERVIEW):
        coordinator.scheduler.run_pending()
        time.sleep(0.01)
"""

from __future__ import annotations

import logging

from battlereplay.config import ViewerConfig, default_config
from battlereplay.core.clock import TickScheduler, TimerHandle
from battlereplay.core import reasoning, timeline
from battlereplay.core.reasoning import ReasoningPhaseMachine, ReasoningView
from battlereplay.core.session import SessionCollection, SessionRecord
from battlereplay.core.state import Mode, PlaybackState, ReasoningState, TickOutcome
from battlereplay.core.timeline import clamp_turn, max_turns

logger = logging.getLogger(__name__)


class PlaybackCoordinator:
    """Index arithmetic, play state and the tick timer for both modes.

    Navigation never fails: anything that would leave the collection's
    bounds is a no-op, and every method returns whether it changed the
    position.
    """

    def __init__(
        self,
        collection: SessionCollection | None = None,
        config: ViewerConfig | None = None,
        scheduler: TickScheduler | None = None,
        summary: str | None = None,
    ):
        self._config = config or default_config()
        self._scheduler = scheduler or TickScheduler()
        self._handle: TimerHandle | None = None
        self._active_mode: Mode | None = None
        self.attach(collection or SessionCollection(), summary)

    # ------------------------------------------------------------------
    # Collection lifecycle
    # ------------------------------------------------------------------

    def attach(self, collection: SessionCollection, summary: str | None = None) -> None:
        """Install a new collection and reset both modes to their defaults."""
        self._cancel_timer()
        self._active_mode = None
        # cached lookups are keyed on the collection
        timeline.clear_cache()
        reasoning.clear_cache()
        self._collection = collection
        self._summary = summary
        playback = self._config.playback
        self._states: dict[Mode, PlaybackState] = {
            Mode.OVERVIEW: PlaybackState(tick_interval_ms=playback.overview_speed_ms),
            Mode.REASONING: ReasoningState(tick_interval_ms=playback.reasoning_speed_ms),
        }
        self._machine = ReasoningPhaseMachine(
            collection,
            self._config.agents.reasoning_priority,
            playback.linger_ticks,
        )
        logger.debug("Attached %r", collection)

    @property
    def collection(self) -> SessionCollection:
        return self._collection

    @property
    def summary(self) -> str | None:
        return self._summary

    @property
    def config(self) -> ViewerConfig:
        return self._config

    @property
    def scheduler(self) -> TickScheduler:
        return self._scheduler

    @property
    def active_mode(self) -> Mode | None:
        """Mode whose timer is running, or None when nothing plays."""
        return self._active_mode

    @property
    def overview(self) -> PlaybackState:
        return self._states[Mode.OVERVIEW]

    @property
    def reasoning(self) -> ReasoningState:
        return self._states[Mode.REASONING]

    @property
    def machine(self) -> ReasoningPhaseMachine:
        return self._machine

    def state(self, mode: Mode) -> PlaybackState:
        return self._states[mode]

    def is_playing(self, mode: Mode) -> bool:
        return self._states[mode].is_playing

    def current_session(self, mode: Mode) -> SessionRecord | None:
        return self._collection.at(self._states[mode].game_index)

    def turn_count(self, mode: Mode, game_index: int | None = None) -> int:
        """Turns in a game for *mode*: board turns, or the transcript length."""
        state = self._states[mode]
        index = state.game_index if game_index is None else game_index
        if mode is Mode.REASONING:
            return self._machine.transcript_turns(self.reasoning, index)
        return max_turns(self._collection, index)

    def reasoning_view(self) -> ReasoningView | None:
        return self._machine.view(self.reasoning)

    # ------------------------------------------------------------------
    # Play / pause / speed
    # ------------------------------------------------------------------

    def play(self, mode: Mode) -> bool:
        """Start *mode*, pausing the other one. No-op with nothing to play."""
        if self._collection.is_empty:
            return False
        if mode is Mode.REASONING and self._machine.active_agent(self.reasoning) is None:
            logger.info("No transcript data in game %d", self.reasoning.game_index + 1)
            return False

        for other in Mode:
            if other is not mode:
                self._states[other].is_playing = False
        self._cancel_timer()
        self._states[mode].is_playing = True
        self._active_mode = mode
        self._schedule()
        return True

    def pause(self, mode: Mode) -> bool:
        state = self._states[mode]
        was_playing = state.is_playing
        state.is_playing = False
        if self._active_mode is mode:
            self._cancel_timer()
            self._active_mode = None
        return was_playing

    def toggle(self, mode: Mode) -> bool:
        """Play/pause switch. Returns the new playing flag."""
        if self._states[mode].is_playing:
            self.pause(mode)
        else:
            self.play(mode)
        return self._states[mode].is_playing

    def stop_all(self) -> None:
        for mode in Mode:
            self.pause(mode)

    def set_speed(self, mode: Mode, interval_ms: int) -> None:
        """Change the tick interval; the already scheduled tick keeps its time."""
        if interval_ms <= 0:
            raise ValueError(f"Tick interval must be positive, got {interval_ms}ms")
        self._states[mode].tick_interval_ms = interval_ms

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def step_forward(self, mode: Mode) -> bool:
        """One turn ahead, rolling into turn 0 of the next game at the end."""
        state = self._states[mode]
        if self._collection.is_empty:
            return False
        if state.turn_index < self.turn_count(mode) - 1:
            state.turn_index += 1
        elif state.game_index < self._collection.count() - 1:
            state.game_index += 1
            state.turn_index = 0
        else:
            return False
        self._position_changed(mode)
        return True

    def step_backward(self, mode: Mode) -> bool:
        """One turn back, rolling into the last turn of the previous game."""
        state = self._states[mode]
        if self._collection.is_empty:
            return False
        if state.turn_index > 0:
            state.turn_index -= 1
        elif state.game_index > 0:
            state.game_index -= 1
            state.turn_index = max(self.turn_count(mode) - 1, 0)
        else:
            return False
        self._position_changed(mode)
        return True

    def skip_to_next_game(self, mode: Mode) -> bool:
        return self._jump_game(mode, 1)

    def skip_to_prev_game(self, mode: Mode) -> bool:
        return self._jump_game(mode, -1)

    def seek(self, mode: Mode, turn: int) -> bool:
        """Jump to *turn* of the current game, clamped to its bounds."""
        state = self._states[mode]
        if self._collection.is_empty:
            return False
        target = clamp_turn(turn, self.turn_count(mode))
        changed = target != state.turn_index
        state.turn_index = target
        self._position_changed(mode)
        return changed

    def select_agent(self, agent: str | None) -> None:
        """Choose the transcript agent; restarts the current turn's animation."""
        state = self.reasoning
        state.selected_agent = agent
        state.turn_index = clamp_turn(state.turn_index, self.turn_count(Mode.REASONING))
        self._position_changed(Mode.REASONING)
        if state.is_playing and self._machine.active_agent(state) is None:
            self.pause(Mode.REASONING)

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------

    def tick(self, mode: Mode) -> TickOutcome:
        """One animation step for *mode*. The timer calls this; tests may too."""
        if self._collection.is_empty:
            return TickOutcome.IDLE

        if mode is Mode.REASONING:
            outcome = self._machine.tick(self.reasoning)
        else:
            outcome = self._tick_overview(self.overview)

        if outcome is TickOutcome.STOPPED:
            logger.info("Playback finished (%s)", mode.value)
            self.pause(mode)
        return outcome

    def _tick_overview(self, state: PlaybackState) -> TickOutcome:
        if state.turn_index < self.turn_count(Mode.OVERVIEW) - 1:
            state.turn_index += 1
            return TickOutcome.ADVANCE
        if state.game_index < self._collection.count() - 1:
            state.game_index += 1
            state.turn_index = 0
            return TickOutcome.NEXT_GAME
        state.is_playing = False
        return TickOutcome.STOPPED

    def _on_timer(self, mode: Mode) -> None:
        self._handle = None
        if self._active_mode is not mode or not self._states[mode].is_playing:
            return
        self.tick(mode)
        if self._states[mode].is_playing:
            self._schedule()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _jump_game(self, mode: Mode, delta: int) -> bool:
        state = self._states[mode]
        target = state.game_index + delta
        if self._collection.at(target) is None:
            return False
        self.pause(mode)
        state.game_index = target
        state.turn_index = 0
        if isinstance(state, ReasoningState):
            state.reset_phase()
        return True

    def _position_changed(self, mode: Mode) -> None:
        state = self._states[mode]
        if isinstance(state, ReasoningState):
            state.reset_phase()
        if self._active_mode is mode and state.is_playing:
            self._cancel_timer()
            self._schedule()

    def _schedule(self) -> None:
        mode = self._active_mode
        interval = self._states[mode].tick_interval_ms
        self._handle = self._scheduler.call_later(interval, lambda: self._on_timer(mode))

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
