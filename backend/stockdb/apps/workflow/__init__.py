from .engine import TransitionError, allowed_targets, apply_transition
from .registry import WORKFLOWS

__all__ = ["TransitionError", "WORKFLOWS", "allowed_targets", "apply_transition"]
