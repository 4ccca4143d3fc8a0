from __future__ import annotations

from gobblers.moves import Move

EXPLANATION_NAMESPACE = "aiReasons"


def explain_move(move: Move | None) -> str | None:
    """Map an AI move's reason tag to a lookup key such as ``aiReasons.winMove``."""
    if move is None or not move.reason:
        return None
    return f"{EXPLANATION_NAMESPACE}.{move.reason}"


get_move_explanation = explain_move
