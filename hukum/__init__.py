"""Rules engine package for Hukum (Court Piece with Vakkai)."""

__all__ = [
    "cards",
    "deck",
    "trick",
    "scoring",
    "phases",
    "state",
    "game",
    "config",
    "service",
]
