"""Shared notation-layer data models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class MoveRow:
    """One numbered row of a move list: White's move and Black's reply."""

    move_number: int
    white: str
    black: str = ""
