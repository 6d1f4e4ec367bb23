"""Configuration and per-user paths."""

from .global_paths import GlobalPath

__all__ = ["GlobalPath"]
