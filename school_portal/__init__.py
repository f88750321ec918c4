"""Client-side logic for the school website and its admin dashboard."""

__version__ = "1.0.0"
