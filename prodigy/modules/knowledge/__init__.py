"""Knowledge tree unlock rules and the default catalog."""

from .catalog import build_default_subjects, build_default_tree
from .unlock_engine import UnlockEngine

__all__ = ["UnlockEngine", "build_default_subjects", "build_default_tree"]
