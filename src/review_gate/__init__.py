"""Review Gate - quality-gate review engine for code changes."""

__version__ = "0.1.0"
