from .policy import MasteryPolicy, Thresholds

__all__ = ["MasteryPolicy", "Thresholds"]
