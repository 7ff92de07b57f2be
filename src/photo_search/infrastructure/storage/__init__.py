"""
Storage Infrastructure

String key/value stores implementing the Storage port.
"""

from .key_value import JsonFileStorage, MemoryStorage

__all__ = [
    "JsonFileStorage",
    "MemoryStorage",
]
