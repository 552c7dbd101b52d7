"""Multi-role session manager for the Stockship dashboard."""

__version__ = "1.0.0"
