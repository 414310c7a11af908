"""Goal-driven nutrition targets and transformation progress."""

__version__ = "0.1.0"
