"""Terminal replay viewer for recorded Battleship games.

Renders the coordinator's current position with rich: a status line,
every agent's board grouped by category with a running summary, or one
LLM agent's transcript being "typed" turn by turn.
"""

from __future__ import annotations

import logging
import time

from rich.align import Align
from rich.columns import Columns
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from battlereplay.core.agents import available_reasoning_agents, display_name, group_agents
from battlereplay.core.playback import PlaybackCoordinator
from battlereplay.core.session import AgentRecord, Board
from battlereplay.core.state import Mode, Phase
from battlereplay.core.timeline import board_at
from battlereplay.reporting.stats import agent_snapshot, running_summary

logger = logging.getLogger(__name__)

MAX_POLL_S = 0.05
COLUMN_LABELS = "ABCDEFGHIJ"

CELL_GLYPHS = {".": "·", "_": "·", "m": "○", "h": "✖", "s": "■"}
CELL_STYLES = {"m": "blue", "h": "bold red", "s": "bold yellow"}

RESULT_STYLES = {"hit": "bold red", "miss": "blue", "sunk": "bold yellow"}


# ── Boards ──────────────────────────────────────────────────────────


def board_text(board: Board) -> Text:
    """Grid with column letters and row numbers."""
    text = Text()
    if not board:
        text.append("No board data", style="dim")
        return text
    width = max(len(row) for row in board)
    text.append("   " + " ".join(COLUMN_LABELS[:width]) + "\n", style="dim")
    for r, row in enumerate(board):
        text.append(f"{r:>2} ", style="dim")
        for c, cell in enumerate(row):
            text.append(CELL_GLYPHS.get(cell, cell), style=CELL_STYLES.get(cell, "dim"))
            if c < len(row) - 1:
                text.append(" ")
        if r < len(board) - 1:
            text.append("\n")
    return text


def build_board_panel(name: str, agent: AgentRecord, turn: int, label: str | None = None) -> Panel:
    snap = agent_snapshot(agent, turn)
    sub = Text()
    sub.append(f"Hits: {snap.hits}", style="bold")
    sub.append("  ")
    sub.append(f"Eff: {snap.efficiency:.2f}", style="bold")
    status = "✓ DONE" if snap.finished else f"Turn {snap.turns}"
    return Panel(
        Group(sub, board_text(board_at(agent, turn))),
        title=f"[bold]{label or name}[/bold]",
        subtitle=status,
        border_style="green" if snap.finished else "bright_white",
        padding=(0, 1),
    )


# ── Header / status ─────────────────────────────────────────────────


def build_status_line(coordinator: PlaybackCoordinator, mode: Mode) -> Text:
    state = coordinator.state(mode)
    total_games = coordinator.collection.count()
    line = Text()
    line.append(f"game: {state.game_index + 1:03d}/{total_games}", style="bold")
    line.append(" | ", style="dim")
    line.append(f"turn: {state.turn_index + 1:03d}/{coordinator.turn_count(mode)}", style="bold")
    line.append(" | ", style="dim")
    line.append(f"speed: {state.tick_interval_ms}ms", style="bold")
    line.append("  ")
    if state.is_playing:
        line.append("▶ PLAYING", style="bold green")
    else:
        line.append("‖ PAUSED", style="bold yellow")
    return line


# ── Overview ────────────────────────────────────────────────────────


def build_overview(coordinator: PlaybackCoordinator) -> Group:
    session = coordinator.current_session(Mode.OVERVIEW)
    if session is None:
        return Group(Text("No game data loaded.", style="dim"))

    turn = coordinator.overview.turn_index
    agents_cfg = coordinator.config.agents
    sections = []
    for title, names in group_agents(session.agent_names, agents_cfg.categories):
        sections.append(Text(title, style="bold underline"))
        sections.append(
            Columns(
                [
                    build_board_panel(
                        name, session.agents[name], turn,
                        display_name(name, agents_cfg.display_names),
                    )
                    for name in names
                ]
            )
        )
    return Group(*sections)


def build_stats_table(coordinator: PlaybackCoordinator) -> Panel:
    game_index = coordinator.overview.game_index
    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 1))
    table.add_column("AGENT")
    table.add_column("TRN", justify="right")
    table.add_column("HIT", justify="right")
    table.add_column("EFF", justify="right", style="bold cyan")
    names = coordinator.config.agents.display_names
    for row in running_summary(coordinator.collection, game_index):
        table.add_row(
            display_name(row.name, names),
            f"{row.avg_turns:.1f}",
            f"{row.avg_hits:.1f}",
            f"{row.avg_efficiency:.3f}",
        )
    return Panel(table, title="RUNNING SUMMARY", subtitle=f"games: {game_index + 1}")


# ── Reasoning ───────────────────────────────────────────────────────


def build_agent_selector(coordinator: PlaybackCoordinator) -> Text:
    session = coordinator.current_session(Mode.REASONING)
    agents_cfg = coordinator.config.agents
    available = available_reasoning_agents(session, agents_cfg.reasoning_priority)
    line = Text()
    if not available:
        line.append("No LLM agents available", style="dim")
        return line
    line.append("// SELECT MODEL: ", style="dim")
    active = coordinator.machine.active_agent(coordinator.reasoning)
    for name in available:
        style = "bold reverse" if name == active else ""
        line.append(f" {display_name(name, agents_cfg.display_names)} ", style=style)
        cost = session.agents[name].cost_usd
        if cost > 0:
            line.append(f"${cost:.4f}", style="dim")
        line.append("  ")
    return line


def build_reasoning_panel(coordinator: PlaybackCoordinator) -> Panel:
    view = coordinator.reasoning_view()
    if view is None:
        turn = coordinator.reasoning.turn_index
        return Panel(
            Text(f"// No LLM data available for turn {turn + 1}", style="dim"),
            title="REASONING",
        )

    names = coordinator.config.agents.display_names
    body = Text()
    body.append(f"{display_name(view.agent, names)}\n\n", style="bold magenta")
    body.append("USER: ", style="bold cyan")
    body.append(view.prompt + "\n")
    if view.response_visible:
        body.append("\nLLM: ", style="bold green")
        body.append(view.response)
        if view.typing:
            body.append("|", style="blink")
    if view.move:
        body.append("\n\n→ MOVE: ", style="bold")
        body.append(view.move, style="bold yellow")
        if view.result:
            body.append(f"  {view.result}", style=RESULT_STYLES.get(view.result.lower(), "bold"))

    session = coordinator.current_session(Mode.REASONING)
    board = board_text(board_at(session.agents[view.agent], view.turn_index))
    return Panel(
        Columns([body, Panel(board, title=f"T{view.turn_index + 1}")]),
        title=f"// LLM Reasoning Chain (Turn {view.turn_index + 1})",
        subtitle=view.phase.value,
    )


def build_summary_panel(summary: str | None) -> Panel:
    if not summary:
        return Panel(
            Text(
                "No summary data available.\n"
                "Summary files are generated when running multiple games with the --games option.",
                style="dim",
            ),
            title="SUMMARY",
        )
    return Panel(Text(summary), title="SUMMARY")


def render(coordinator: PlaybackCoordinator, mode: Mode) -> Group:
    header = Panel(
        Align.center(build_status_line(coordinator, mode)),
        title="BATTLESHIP AI VIEWER",
        border_style="bright_white",
        padding=(0, 1),
    )
    if mode is Mode.REASONING:
        return Group(header, build_agent_selector(coordinator), build_reasoning_panel(coordinator))
    return Group(header, build_overview(coordinator), build_stats_table(coordinator))


# ── Main loop ───────────────────────────────────────────────────────


def run_viewer(
    coordinator: PlaybackCoordinator,
    mode: Mode,
    console: Console | None = None,
    autoplay: bool = True,
) -> None:
    """Play *mode* inside a live display until it stops or Ctrl-C."""
    console = console or Console()
    scheduler = coordinator.scheduler

    if autoplay and not coordinator.play(mode):
        console.print(render(coordinator, mode))
        return

    with Live(render(coordinator, mode), console=console, refresh_per_second=20) as live:
        try:
            while coordinator.is_playing(mode):
                if scheduler.run_pending():
                    live.update(render(coordinator, mode))
                due = scheduler.next_due()
                wait = MAX_POLL_S if due is None else due - scheduler.now()
                time.sleep(min(max(wait, 0.0), MAX_POLL_S))
        except KeyboardInterrupt:
            coordinator.pause(mode)
        live.update(render(coordinator, mode))

    state = coordinator.state(mode)
    logger.info("Stopped at game %d, turn %d", state.game_index + 1, state.turn_index + 1)
