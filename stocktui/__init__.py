"""stocktui - terminal stock portfolio dashboard."""

__version__ = "0.1.0"
