"""
Adapters layer - Access to stored salon data.
"""

from .json_store import JsonSalonStore

__all__ = ["JsonSalonStore"]
