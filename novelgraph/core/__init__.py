"""Core configuration and utilities."""

from novelgraph.core.config import settings

__all__ = ["settings"]
