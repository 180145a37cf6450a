"""Sequencing of every player-facing progression operation."""

from .coordinator import CompletionResult, ProgressionCoordinator

__all__ = ["CompletionResult", "ProgressionCoordinator"]
