"""CLI entry point: python -m battlereplay <command> [assets-dir]"""

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console

from battlereplay.config import default_config, load_config, resolve_speed
from battlereplay.core.loader import load_assets, write_manifest
from battlereplay.core.playback import PlaybackCoordinator
from battlereplay.core.state import Mode
from battlereplay.viewer import build_summary_panel, run_viewer

ASSETS_ENV = "BATTLEREPLAY_ASSETS_DIR"


def _resolve_assets_dir(arg: Path | None, config) -> Path:
    if arg is not None:
        return arg
    env = os.environ.get(ASSETS_ENV)
    if env:
        return Path(env)
    return config.assets_dir


def _cmd_play(args, config) -> None:
    console = Console()
    assets_dir = _resolve_assets_dir(args.assets_dir, config)
    assets = load_assets(assets_dir)
    if assets.collection.is_empty:
        console.print(f"[bold red]No games found in {assets_dir}[/bold red]")
        sys.exit(1)

    mode = Mode(args.mode)
    coordinator = PlaybackCoordinator(assets.collection, config, summary=assets.summary)
    if args.speed is not None:
        coordinator.set_speed(mode, resolve_speed(args.speed, config.playback.speed_presets))
    for _ in range(max(args.game - 1, 0)):
        coordinator.skip_to_next_game(mode)
    if args.agent:
        coordinator.select_agent(args.agent)
    if args.turn:
        coordinator.seek(mode, args.turn - 1)

    console.print(f"[bold]Replaying:[/bold] {assets.collection.count()} games")
    console.print(f"[dim]Assets: {assets_dir}[/dim]")
    run_viewer(coordinator, mode, console=console, autoplay=not args.paused)


def _cmd_manifest(args, config) -> None:
    assets_dir = _resolve_assets_dir(args.assets_dir, config)
    if not assets_dir.is_dir():
        print(f"Error: assets directory not found: {assets_dir}", file=sys.stderr)
        sys.exit(1)
    manifest = write_manifest(assets_dir)
    print(f"Generated manifest.json: games={len(manifest['games'])} summary={manifest['summary']}")


def _cmd_summary(args, config) -> None:
    assets = load_assets(_resolve_assets_dir(args.assets_dir, config))
    Console().print(build_summary_panel(assets.summary))


def main() -> None:
    load_dotenv()

    parser = argparse.ArgumentParser(
        prog="battlereplay",
        description="Replay recorded Battleship AI games in the terminal",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to viewer YAML config file",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=False,
        help="Debug logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    play = sub.add_parser("play", help="Animate the recorded games")
    play.add_argument("assets_dir", type=Path, nargs="?", default=None)
    play.add_argument(
        "--mode",
        choices=[m.value for m in Mode],
        default=Mode.OVERVIEW.value,
        help="overview: all boards; reasoning: LLM transcripts",
    )
    play.add_argument("--speed", default=None, help="Tick interval in ms, or a preset (1x, 2x, max)")
    play.add_argument("--game", type=int, default=1, help="Start at game N (1-based)")
    play.add_argument("--turn", type=int, default=0, help="Start at turn N (1-based)")
    play.add_argument("--agent", default=None, help="LLM agent for reasoning mode")
    play.add_argument("--paused", action="store_true", default=False, help="Render once without playing")
    play.set_defaults(func=_cmd_play)

    manifest = sub.add_parser("manifest", help="Write manifest.json for an assets directory")
    manifest.add_argument("assets_dir", type=Path, nargs="?", default=None)
    manifest.set_defaults(func=_cmd_manifest)

    summary = sub.add_parser("summary", help="Print the run summary text")
    summary.add_argument("assets_dir", type=Path, nargs="?", default=None)
    summary.set_defaults(func=_cmd_summary)

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.config is not None:
        if not args.config.exists():
            print(f"Error: config file not found: {args.config}", file=sys.stderr)
            sys.exit(1)
        config = load_config(args.config)
    else:
        config = default_config()

    try:
        args.func(args, config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
