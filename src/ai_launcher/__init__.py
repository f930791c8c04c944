"""ai-launcher: pick and start AI coding assistant CLIs."""

__version__ = "0.1.0"

__all__ = ["__version__"]
