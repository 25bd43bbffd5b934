"""Battle Replay — step through recorded Battleship AI games."""

__version__ = "0.1.0"
