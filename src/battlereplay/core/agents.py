"""Agent grouping, display names, and transcript-agent selection.

Usage:
    group_agents(session.agent_names, config.agents.categories)
    # [("CLASSIC HEURISTIC", ["HeuristicAgent"]), ("LARGE LANGUAGE MODELS", [...])]

    resolve_reasoning_agent(session, "Claude", ["Llama-4-Scout", ...])
    # "Claude" if it has transcripts in this session, else the first
    # priority agent that does, else None
"""

from __future__ import annotations

from battlereplay.core.session import SessionRecord


def group_agents(
    agent_names: list[str],
    categories: dict[str, list[str]],
) -> list[tuple[str, list[str]]]:
    """Group session agents by category, in category order.

    Agents not listed in any category go to the final category. Categories
    with no agent present in the session are dropped.
    """
    if not categories:
        return [("AGENTS", list(agent_names))] if agent_names else []

    titles = list(categories)
    present = set(agent_names)
    known = {name for title in titles[:-1] for name in categories[title]}

    groups = []
    for title in titles[:-1]:
        members = [name for name in categories[title] if name in present]
        if members:
            groups.append((title, members))

    last = titles[-1]
    catch_all = [name for name in categories[last] if name in present]
    catch_all += [
        name for name in agent_names if name not in known and name not in catch_all
    ]
    if catch_all:
        groups.append((last, catch_all))
    return groups


def display_name(agent: str, mapping: dict[str, str] | None = None) -> str:
    if not mapping:
        return agent
    return mapping.get(agent, agent)


def available_reasoning_agents(
    session: SessionRecord | None,
    priority: list[str],
) -> list[str]:
    """Priority agents that have at least one transcript turn in *session*."""
    if session is None:
        return []
    return [
        name for name in priority
        if (agent := session.agent(name)) is not None and agent.has_transcript
    ]


def resolve_reasoning_agent(
    session: SessionRecord | None,
    selected: str | None,
    priority: list[str],
) -> str | None:
    """Agent whose transcript the reasoning view shows.

    The selected agent wins when it has transcripts in this session;
    otherwise the first agent of the fixed *priority* list that does.
    """
    if session is None:
        return None
    chosen = session.agent(selected)
    if chosen is not None and chosen.has_transcript:
        return selected
    for name in priority:
        agent = session.agent(name)
        if agent is not None and agent.has_transcript:
            return name
    return None
