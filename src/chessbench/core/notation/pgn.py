"""PGN-style move-list parsing and accumulation helpers."""

from __future__ import annotations

import re

from chessbench.core.notation.models import MoveRow

PGN_RESULT_TOKENS = frozenset({"1-0", "0-1", "1/2-1/2", "*"})
_MOVE_NUMBER_RE = re.compile(r"^\d+\.+$")


def _strip_annotations(movetext: str) -> str:
    """Replace ``{...}`` comments and ``(...)`` variations with whitespace."""
    out: list[str] = []
    variation_depth = 0
    idx = 0
    total = len(movetext)

    while idx < total:
        ch = movetext[idx]

        if ch == "{":
            end = movetext.find("}", idx + 1)
            idx = total if end < 0 else end + 1
            out.append(" ")
            continue

        if ch == "(":
            variation_depth += 1
            idx += 1
            out.append(" ")
            continue

        if ch == ")":
            variation_depth = max(0, variation_depth - 1)
            idx += 1
            out.append(" ")
            continue

        if variation_depth == 0:
            out.append(ch)
        idx += 1

    return "".join(out)


def move_tokens(movetext: str) -> list[str]:
    """Return the SAN tokens of *movetext* in order."""
    sans: list[str] = []
    for token in _strip_annotations(movetext).split():
        if _MOVE_NUMBER_RE.match(token):
            continue
        if token in PGN_RESULT_TOKENS:
            continue
        sans.append(token)
    return sans


def parse_move_list(movetext: str) -> list[MoveRow]:
    """Pair the moves of *movetext* into numbered rows.

    A trailing White move without a reply yields a row whose ``black``
    slot is empty.
    """
    sans = move_tokens(movetext)
    rows: list[MoveRow] = []
    for idx in range(0, len(sans), 2):
        black = sans[idx + 1] if idx + 1 < len(sans) else ""
        rows.append(MoveRow(move_number=idx // 2 + 1, white=sans[idx], black=black))
    return rows


def append_move_text(movetext: str, ply_index: int, san: str) -> str:
    """Extend accumulated move-list text with the move at *ply_index* (0-based).

    White moves (even index) open a new numbered row; Black moves are
    appended to the current row.
    """
    if ply_index % 2 == 0:
        entry = f"{ply_index // 2 + 1}. {san}"
        return f"{movetext} {entry}" if movetext else entry
    return f"{movetext} {san}" if movetext else san
