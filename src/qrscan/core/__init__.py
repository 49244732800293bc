"""Core scanning logic: geometry, classification and action building."""

from .actions import ActionBuilder, EffectHandlers, perform_action
from .classifier import classify, detect_kind
from .geometry import distance_from_center, most_centered

__all__ = [
    "ActionBuilder",
    "EffectHandlers",
    "classify",
    "detect_kind",
    "distance_from_center",
    "most_centered",
    "perform_action",
]
