"""Tests for PlaybackCoordinator — navigation, play state and the tick timer."""

import gc
import weakref

import pytest

from battlereplay.core.chunking import boundary_count
from battlereplay.core.playback import PlaybackCoordinator
from battlereplay.core.session import SessionCollection
from battlereplay.core.state import Mode, Phase, TickOutcome

OV = Mode.OVERVIEW
RS = Mode.REASONING
SCOUT = "Llama-4-Scout"
TUNED = "Llama 3.1 8B- FINE-TUNED"

REASONING = (
    "Nothing hit yet. Parity search: pick a dark square in the densest "
    "region of the probability map, C3."
)


def _plain(n):
    return {"board_history": [[[str(i)]] for i in range(n)], "turns": n}


def _llm(texts, boards=None):
    boards = boards or len(texts)
    return {
        "board_history": [[[str(i)]] for i in range(boards)],
        "turns": boards,
        "move_metadata": [
            {"prompt": f"prompt {i}", "reasoning": t, "move": "C3", "result": "MISS"}
            for i, t in enumerate(texts)
        ],
    }


@pytest.fixture
def games():
    """Two games with max turns [3, 2]."""
    return SessionCollection.from_dicts(
        [
            {"HeuristicAgent": _plain(3), "MLPAgent": _plain(1)},
            {"HeuristicAgent": _plain(2)},
        ]
    )


@pytest.fixture
def coordinator(games, config, scheduler):
    return PlaybackCoordinator(games, config, scheduler)


@pytest.fixture
def llm_games():
    return SessionCollection.from_dicts(
        [
            {"HeuristicAgent": _plain(6), SCOUT: _llm([REASONING, REASONING], boards=6)},
            {"HeuristicAgent": _plain(4), TUNED: _llm([REASONING])},
        ]
    )


@pytest.fixture
def llm_coordinator(llm_games, config, scheduler):
    return PlaybackCoordinator(llm_games, config, scheduler)


# ------------------------------------------------------------------
# Stepping
# ------------------------------------------------------------------


class TestStepForward:
    def test_crosses_into_next_game(self, coordinator):
        coordinator.seek(OV, 2)
        assert coordinator.overview.position == (0, 2)
        assert coordinator.step_forward(OV)
        assert coordinator.overview.position == (1, 0)
        assert coordinator.step_forward(OV)
        assert coordinator.overview.position == (1, 1)
        assert not coordinator.step_forward(OV)
        assert coordinator.overview.position == (1, 1)

    def test_max_turns_steps_reach_next_game(self, coordinator):
        for _ in range(3):
            coordinator.step_forward(OV)
        assert coordinator.overview.position == (1, 0)

    def test_last_game_steps_end_in_noop(self, coordinator):
        coordinator.skip_to_next_game(OV)
        results = [coordinator.step_forward(OV) for _ in range(2)]
        assert results == [True, False]
        assert coordinator.overview.position == (1, 1)


class TestStepBackward:
    def test_inverse_across_game_boundary(self, coordinator):
        coordinator.skip_to_next_game(OV)
        assert coordinator.step_backward(OV)
        assert coordinator.overview.position == (0, 2)

    def test_within_game(self, coordinator):
        coordinator.seek(OV, 2)
        coordinator.step_backward(OV)
        assert coordinator.overview.position == (0, 1)

    def test_noop_at_start(self, coordinator):
        assert not coordinator.step_backward(OV)
        assert coordinator.overview.position == (0, 0)

    def test_round_trip(self, coordinator):
        positions = [coordinator.overview.position]
        while coordinator.step_forward(OV):
            positions.append(coordinator.overview.position)
        back = [coordinator.overview.position]
        while coordinator.step_backward(OV):
            back.append(coordinator.overview.position)
        assert back == list(reversed(positions))


class TestSkipAndSeek:
    def test_skip_resets_turn_and_pauses(self, coordinator):
        coordinator.seek(OV, 2)
        coordinator.play(OV)
        assert coordinator.skip_to_next_game(OV)
        assert coordinator.overview.position == (1, 0)
        assert coordinator.is_playing(OV) is False
        assert coordinator.scheduler.pending == 0

    def test_skip_prev(self, coordinator):
        coordinator.skip_to_next_game(OV)
        coordinator.step_forward(OV)
        assert coordinator.skip_to_prev_game(OV)
        assert coordinator.overview.position == (0, 0)

    def test_skip_at_ends_is_noop(self, coordinator):
        assert not coordinator.skip_to_prev_game(OV)
        coordinator.skip_to_next_game(OV)
        coordinator.play(OV)
        assert not coordinator.skip_to_next_game(OV)
        assert coordinator.is_playing(OV)

    def test_seek_clamps(self, coordinator):
        coordinator.seek(OV, 99)
        assert coordinator.overview.turn_index == 2
        coordinator.seek(OV, -5)
        assert coordinator.overview.turn_index == 0

    def test_seek_reports_change(self, coordinator):
        assert coordinator.seek(OV, 1)
        assert not coordinator.seek(OV, 1)


# ------------------------------------------------------------------
# Play / pause / timer
# ------------------------------------------------------------------


class TestTimer:
    def test_tick_after_interval(self, coordinator, clock):
        coordinator.play(OV)
        clock.advance_ms(499)
        coordinator.scheduler.run_pending()
        assert coordinator.overview.turn_index == 0
        clock.advance_ms(2)
        coordinator.scheduler.run_pending()
        assert coordinator.overview.turn_index == 1

    def test_plays_through_every_game_then_stops(self, coordinator, clock):
        coordinator.play(OV)
        seen = []
        for _ in range(10):
            clock.advance_ms(500)
            coordinator.scheduler.run_pending()
            seen.append(coordinator.overview.position)
        assert seen[:4] == [(0, 1), (0, 2), (1, 0), (1, 1)]
        assert coordinator.is_playing(OV) is False
        assert coordinator.active_mode is None
        assert coordinator.scheduler.pending == 0

    def test_pause_cancels_pending_tick(self, coordinator, clock):
        coordinator.play(OV)
        coordinator.pause(OV)
        clock.advance_ms(1000)
        assert coordinator.scheduler.run_pending() == 0
        assert coordinator.overview.turn_index == 0

    def test_toggle(self, coordinator):
        assert coordinator.toggle(OV) is True
        assert coordinator.toggle(OV) is False

    def test_only_one_timer_ever_pending(self, coordinator):
        coordinator.play(OV)
        coordinator.play(OV)
        coordinator.step_forward(OV)
        coordinator.seek(OV, 0)
        assert coordinator.scheduler.pending == 1

    def test_control_op_reschedules_tick(self, coordinator, clock):
        coordinator.play(OV)
        clock.advance_ms(400)
        coordinator.seek(OV, 1)
        clock.advance_ms(100)
        assert coordinator.scheduler.run_pending() == 0
        assert coordinator.overview.turn_index == 1
        clock.advance_ms(500)
        coordinator.scheduler.run_pending()
        assert coordinator.overview.turn_index == 2

    def test_set_speed_applies_from_next_tick(self, coordinator, clock):
        coordinator.play(OV)
        coordinator.set_speed(OV, 100)
        clock.advance_ms(100)
        assert coordinator.scheduler.run_pending() == 0
        clock.advance_ms(401)
        assert coordinator.scheduler.run_pending() == 1
        clock.advance_ms(100)
        assert coordinator.scheduler.run_pending() == 1
        assert coordinator.overview.turn_index == 2

    def test_set_speed_rejects_non_positive(self, coordinator):
        with pytest.raises(ValueError):
            coordinator.set_speed(OV, 0)

    def test_stop_all(self, coordinator):
        coordinator.play(OV)
        coordinator.stop_all()
        assert coordinator.active_mode is None
        assert coordinator.scheduler.pending == 0


class TestModeExclusion:
    def test_playing_one_mode_pauses_other(self, llm_coordinator):
        llm_coordinator.play(OV)
        assert llm_coordinator.play(RS)
        assert llm_coordinator.is_playing(OV) is False
        assert llm_coordinator.active_mode is RS
        assert llm_coordinator.scheduler.pending == 1

    def test_modes_keep_separate_positions(self, llm_coordinator):
        llm_coordinator.skip_to_next_game(OV)
        assert llm_coordinator.overview.game_index == 1
        assert llm_coordinator.reasoning.game_index == 0

    def test_pausing_inactive_mode_keeps_timer(self, llm_coordinator):
        llm_coordinator.play(OV)
        llm_coordinator.pause(RS)
        assert llm_coordinator.is_playing(OV)
        assert llm_coordinator.scheduler.pending == 1


# ------------------------------------------------------------------
# Reasoning mode
# ------------------------------------------------------------------


class TestReasoningMode:
    def test_turn_count_is_transcript_length(self, llm_coordinator):
        assert llm_coordinator.turn_count(RS) == 2
        assert llm_coordinator.turn_count(OV) == 6

    def test_step_wraps_on_transcript_length(self, llm_coordinator):
        llm_coordinator.step_forward(RS)
        llm_coordinator.step_forward(RS)
        assert llm_coordinator.reasoning.position == (1, 0)
        llm_coordinator.step_backward(RS)
        assert llm_coordinator.reasoning.position == (0, 1)

    def test_seek_resets_phase(self, llm_coordinator):
        for _ in range(4):
            llm_coordinator.tick(RS)
        assert llm_coordinator.reasoning.phase is Phase.TYPING
        llm_coordinator.seek(RS, 1)
        assert llm_coordinator.reasoning.phase is Phase.PROMPT
        assert llm_coordinator.reasoning.reveal_index == 0

    def test_step_resets_phase(self, llm_coordinator):
        llm_coordinator.tick(RS)
        llm_coordinator.step_forward(RS)
        assert llm_coordinator.reasoning.phase is Phase.PROMPT

    def test_select_agent_resets_phase(self, llm_coordinator):
        for _ in range(3):
            llm_coordinator.tick(RS)
        llm_coordinator.select_agent(SCOUT)
        assert llm_coordinator.reasoning.selected_agent == SCOUT
        assert llm_coordinator.reasoning.phase is Phase.PROMPT
        assert llm_coordinator.reasoning.reveal_index == 0

    def test_select_agent_without_transcript_falls_back(self, llm_coordinator):
        llm_coordinator.select_agent(TUNED)
        assert llm_coordinator.reasoning.selected_agent == TUNED
        assert llm_coordinator.reasoning_view().agent == SCOUT
        assert llm_coordinator.turn_count(RS) == 2

    def test_deselecting_only_agent_pauses(self, config, scheduler):
        c = SessionCollection.from_dicts(
            [{"HeuristicAgent": _plain(3), "CustomLLM": _llm([REASONING])}]
        )
        coordinator = PlaybackCoordinator(c, config, scheduler)
        coordinator.select_agent("CustomLLM")
        assert coordinator.play(RS)
        assert scheduler.pending == 1

        coordinator.select_agent(TUNED)
        assert coordinator.reasoning_view() is None
        assert coordinator.is_playing(RS) is False
        assert coordinator.active_mode is None
        assert scheduler.pending == 0

    def test_play_noop_without_llm(self, config, scheduler):
        c = SessionCollection.from_dicts([{"HeuristicAgent": _plain(3)}])
        coordinator = PlaybackCoordinator(c, config, scheduler)
        assert coordinator.play(RS) is False
        assert coordinator.is_playing(RS) is False
        assert coordinator.reasoning_view() is None

    def test_last_turn_plays_out_and_stops(self, llm_coordinator, config, clock):
        llm_coordinator.skip_to_next_game(RS)
        llm_coordinator.play(RS)
        interval = llm_coordinator.reasoning.tick_interval_ms
        b = boundary_count(REASONING)

        def tick():
            clock.advance_ms(interval)
            llm_coordinator.scheduler.run_pending()

        tick()  # prompt -> typing
        for _ in range(b):
            assert llm_coordinator.reasoning.phase is Phase.TYPING
            tick()
        assert llm_coordinator.reasoning.phase is Phase.LINGER
        for _ in range(config.playback.linger_ticks - 1):
            tick()
            assert llm_coordinator.is_playing(RS)
        tick()
        assert llm_coordinator.is_playing(RS) is False
        assert llm_coordinator.scheduler.pending == 0

    def test_manual_tick_outcomes(self, llm_coordinator):
        assert llm_coordinator.tick(RS) is TickOutcome.ADVANCE
        assert llm_coordinator.reasoning_view().response_visible


# ------------------------------------------------------------------
# Collection lifecycle
# ------------------------------------------------------------------


class TestCollectionLifecycle:
    def test_empty_collection_inert(self, config, scheduler):
        coordinator = PlaybackCoordinator(SessionCollection(), config, scheduler)
        assert coordinator.play(OV) is False
        assert coordinator.step_forward(OV) is False
        assert coordinator.step_backward(OV) is False
        assert coordinator.skip_to_next_game(OV) is False
        assert coordinator.seek(OV, 3) is False
        assert coordinator.tick(OV) is TickOutcome.IDLE
        assert coordinator.current_session(OV) is None

    def test_default_collection_is_empty(self):
        assert PlaybackCoordinator().collection.is_empty

    def test_attach_resets_state_and_timer(self, coordinator, llm_games):
        coordinator.seek(OV, 2)
        coordinator.play(OV)
        coordinator.attach(llm_games, summary="run summary")
        assert coordinator.overview.position == (0, 0)
        assert coordinator.is_playing(OV) is False
        assert coordinator.active_mode is None
        assert coordinator.scheduler.pending == 0
        assert coordinator.summary == "run summary"
        assert coordinator.turn_count(OV) == 6

    def test_speeds_come_from_config(self, coordinator, config):
        assert coordinator.overview.tick_interval_ms == config.playback.overview_speed_ms
        assert coordinator.reasoning.tick_interval_ms == config.playback.reasoning_speed_ms

    def test_attach_releases_previous_collection(self, config, scheduler, games):
        old = SessionCollection.from_dicts(
            [{"HeuristicAgent": _plain(3), SCOUT: _llm([REASONING])}]
        )
        coordinator = PlaybackCoordinator(old, config, scheduler)
        assert coordinator.turn_count(OV) == 3
        assert coordinator.turn_count(RS) == 1
        ref = weakref.ref(old)
        del old

        coordinator.attach(games)
        gc.collect()
        assert ref() is None
        assert coordinator.turn_count(OV) == 3
