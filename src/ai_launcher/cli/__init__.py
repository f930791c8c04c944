"""CLI helpers exposed for other modules."""

from .ui import fuzzy_select, prompt_for_input

__all__ = ["fuzzy_select", "prompt_for_input"]
