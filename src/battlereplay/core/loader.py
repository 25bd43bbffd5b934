"""Asset loader — manifest plus per-game board files.

An assets directory holds one JSON file per game and an optional text
summary of the whole run:

    game_001_boards_20251122_195519.json
    game_002_boards_20251122_195519.json
    game_summary_20251122_195519.txt
    manifest.json              # {"games": [...], "summary": "..."}

Loading never raises for bad data. Unreadable or invalid game files are
skipped with a warning, and a missing directory gives an empty collection.

Usage:
    write_manifest(Path("public/assets"))
    assets = load_assets(Path("public/assets"))
    assets.collection.count()
    assets.summary
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path

from battlereplay.core.schemas import SESSION_SCHEMA_PATH, load_schema, validate_session
from battlereplay.core.session import SessionCollection, SessionRecord

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"
_GAME_FILE_RE = re.compile(r"^game_(\d+)_boards_.*\.json$")
_SUMMARY_PREFIX = "game_summary_"


@dataclass
class LoadedAssets:
    collection: SessionCollection
    summary: str | None = None


def scan_assets(assets_dir: Path) -> dict:
    """Find game files and the summary file by name, like the manifest does."""
    names = sorted(p.name for p in Path(assets_dir).iterdir() if p.is_file())
    games = [n for n in names if _GAME_FILE_RE.match(n)]
    summary = next(
        (n for n in names if n.startswith(_SUMMARY_PREFIX) and n.endswith(".txt")),
        None,
    )
    return {"games": games, "summary": summary}


def write_manifest(assets_dir: Path) -> dict:
    """Write manifest.json for *assets_dir* and return its contents."""
    assets_dir = Path(assets_dir)
    manifest = scan_assets(assets_dir)
    with open(assets_dir / MANIFEST_NAME, "w") as f:
        json.dump(manifest, f, indent=2)
    logger.info(
        "Wrote %s: %d games, summary=%s",
        assets_dir / MANIFEST_NAME, len(manifest["games"]), manifest["summary"],
    )
    return manifest


def load_manifest(assets_dir: Path) -> dict:
    """Read manifest.json, falling back to a directory scan when absent."""
    assets_dir = Path(assets_dir)
    path = assets_dir / MANIFEST_NAME
    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                raw = json.load(f)
            return {"games": list(raw.get("games") or []), "summary": raw.get("summary")}
        except (ValueError, OSError, AttributeError) as exc:
            logger.warning("Unreadable manifest %s, scanning directory: %s", path, exc)
    return scan_assets(assets_dir)


def game_number_from_name(name: str, default: int) -> int:
    m = _GAME_FILE_RE.match(name)
    return int(m.group(1)) if m else default


def load_session(path: Path, game_number: int, schema: dict | None = None) -> SessionRecord:
    """Parse and validate one game file.

    Raises ValueError for invalid content and OSError for unreadable files.
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"{path.name}: invalid JSON: {e}") from e

    error = validate_session(data, schema)
    if error:
        raise ValueError(f"{path.name}: {error}")

    session = SessionRecord.from_dict(data, game_number=game_number, source=path)
    for agent in session.agents.values():
        if agent.transcript_turns > agent.num_boards:
            logger.warning(
                "%s: %s has %d transcript turns but only %d boards",
                path.name, agent.name, agent.transcript_turns, agent.num_boards,
            )
    return session


def load_assets(assets_dir: Path) -> LoadedAssets:
    """Load every game listed for *assets_dir*, plus the summary text."""
    assets_dir = Path(assets_dir)
    if not assets_dir.is_dir():
        logger.warning("Assets directory not found: %s", assets_dir)
        return LoadedAssets(collection=SessionCollection())

    manifest = load_manifest(assets_dir)
    schema = load_schema(SESSION_SCHEMA_PATH)

    sessions = []
    for i, name in enumerate(manifest["games"], 1):
        try:
            sessions.append(
                load_session(assets_dir / name, game_number_from_name(name, i), schema)
            )
        except (OSError, ValueError) as exc:
            logger.warning("Skipping game file %s: %s", name, exc)

    summary = None
    if manifest["summary"]:
        try:
            summary = (assets_dir / manifest["summary"]).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Unreadable summary file %s: %s", manifest["summary"], exc)

    logger.info("Loaded %d games from %s", len(sessions), assets_dir)
    return LoadedAssets(collection=SessionCollection(sessions), summary=summary)
