"""Configuration module for snapkv."""

from .settings import Settings, parse_duration

__all__ = ["Settings", "parse_duration"]
