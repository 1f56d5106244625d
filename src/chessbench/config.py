"""Runtime settings for the live monitor."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class LiveSettings:
    """All user-configurable settings."""

    # Match server
    base_url: str = "http://127.0.0.1:3000"
    simulated: bool = True  # use the built-in simulator instead of the server

    # Match request
    white_engine_id: str = "stockfish-16"
    black_engine_id: str = "lc0-0.30"
    initial_ms: int = 300_000

    # Timing
    reconnect_delay_ms: int = 1500
    clock_interval_ms: int = 200  # simulator only
    move_interval_ms: int = 1200  # simulator only

    def validate(self) -> None:
        if not self.base_url.strip():
            raise ValueError("base_url must not be empty")
        for name in ("reconnect_delay_ms", "clock_interval_ms", "move_interval_ms"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
