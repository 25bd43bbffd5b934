"""Battle Replay reporting module.

Usage:
    from battlereplay.reporting import running_summary, agent_snapshot

    rows = running_summary(collection, up_to_index=coordinator.overview.game_index)
    snap = agent_snapshot(session.agents["HeuristicAgent"], turn=12)
"""

from .stats import AgentSummary, BoardSnapshot, agent_snapshot, efficiency, running_summary

__all__ = [
    "AgentSummary",
    "BoardSnapshot",
    "agent_snapshot",
    "efficiency",
    "running_summary",
]
