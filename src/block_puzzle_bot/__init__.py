"""Placement engine for a versus falling-block puzzle bot."""

__version__ = "0.1.0"
