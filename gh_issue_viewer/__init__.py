"""Terminal viewer for the issues of one GitHub repository."""

__version__ = "0.1.0"
