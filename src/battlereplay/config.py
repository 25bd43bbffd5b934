"""Viewer configuration loader."""

import yaml
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_ASSETS_DIR = Path("public/assets")

DEFAULT_REASONING_PRIORITY = ["Llama-4-Scout", "Llama 3.1 8B- FINE-TUNED"]

# Title -> agents. The last category is the catch-all for unlisted agents.
DEFAULT_CATEGORIES = {
    "CLASSIC HEURISTIC": ["RuleBasedAgent", "HeuristicAgent"],
    "TRADITIONAL ML": [
        "LogisticRegressionAgent",
        "HitGradientBoostedAgent",
        "LightGBMAgent",
        "MLPAgent",
    ],
    "ENSEMBLE ML": ["VotingEnsembleAgent", "StackingEnsembleAgent"],
    "REINFORCEMENT LEARNING": ["QLearningAgent", "SARSAAgent"],
    "LARGE LANGUAGE MODELS": [],
}

DEFAULT_SPEED_PRESETS = {"1x": 1000, "2x": 500, "max": 100}


@dataclass
class PlaybackConfig:
    overview_speed_ms: int = 500
    reasoning_speed_ms: int = 50
    linger_ticks: int = 60
    speed_presets: dict[str, int] = field(
        default_factory=lambda: dict(DEFAULT_SPEED_PRESETS)
    )


@dataclass
class AgentConfig:
    reasoning_priority: list[str] = field(
        default_factory=lambda: list(DEFAULT_REASONING_PRIORITY)
    )
    categories: dict[str, list[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_CATEGORIES.items()}
    )
    display_names: dict[str, str] = field(default_factory=dict)


@dataclass
class ViewerConfig:
    assets_dir: Path = DEFAULT_ASSETS_DIR
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
    agents: AgentConfig = field(default_factory=AgentConfig)


def default_config() -> ViewerConfig:
    return ViewerConfig()


def resolve_speed(value: str | int, presets: dict[str, int]) -> int:
    """Turn a preset label ("2x") or a millisecond count into milliseconds."""
    if isinstance(value, int):
        ms = value
    elif value in presets:
        ms = presets[value]
    else:
        try:
            ms = int(value)
        except ValueError:
            raise ValueError(
                f"Unknown speed {value!r}; use milliseconds or one of {sorted(presets)}"
            ) from None
    if ms <= 0:
        raise ValueError(f"Speed must be positive, got {ms}ms")
    return ms


def load_config(path: Path) -> ViewerConfig:
    """Load viewer config from YAML file. Missing keys take defaults."""
    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    p = raw.get("playback", {}) or {}
    playback = PlaybackConfig(
        overview_speed_ms=p.get("overview_speed_ms", 500),
        reasoning_speed_ms=p.get("reasoning_speed_ms", 50),
        linger_ticks=p.get("linger_ticks", 60),
        speed_presets=dict(p.get("speed_presets") or DEFAULT_SPEED_PRESETS),
    )
    if playback.linger_ticks < 0:
        raise ValueError(f"linger_ticks must be >= 0, got {playback.linger_ticks}")
    for key in ("overview_speed_ms", "reasoning_speed_ms"):
        if getattr(playback, key) <= 0:
            raise ValueError(f"{key} must be positive, got {getattr(playback, key)}")

    a = raw.get("agents", {}) or {}
    categories_raw = a.get("categories")
    if categories_raw:
        # YAML mappings keep file order; a null list means "catch-all"
        categories = {title: list(names or []) for title, names in categories_raw.items()}
    else:
        categories = {k: list(v) for k, v in DEFAULT_CATEGORIES.items()}
    agents = AgentConfig(
        reasoning_priority=list(a.get("reasoning_priority") or DEFAULT_REASONING_PRIORITY),
        categories=categories,
        display_names=dict(a.get("display_names", {}) or {}),
    )

    assets_dir = raw.get("assets_dir")
    return ViewerConfig(
        assets_dir=Path(assets_dir) if assets_dir else DEFAULT_ASSETS_DIR,
        playback=playback,
        agents=agents,
    )
