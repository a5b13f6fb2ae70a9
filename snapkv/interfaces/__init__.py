"""
Abstract base classes and protocols for the key-value engine.
"""

from snapkv.interfaces.lock_strategy import LockStrategy

__all__ = ["LockStrategy"]
