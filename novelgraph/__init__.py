"""Character interaction graph analysis for long-form text."""

__version__ = "0.1.0"
