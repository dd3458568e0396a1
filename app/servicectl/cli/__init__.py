"""CLI layer for servicectl."""
