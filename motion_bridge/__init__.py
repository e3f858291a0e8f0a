"""Motion sensor to LED bridge for the home display."""

__version__ = "0.1.0"
