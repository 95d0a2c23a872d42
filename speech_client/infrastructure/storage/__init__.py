"""
Local storage infrastructure module.
"""
from .key_value import (
    AUTH_STORAGE_ID,
    LANGUAGE_STORAGE_ID,
    KeyValueStore,
    load_or_create_encryption_key,
)

__all__ = [
    "AUTH_STORAGE_ID",
    "LANGUAGE_STORAGE_ID",
    "KeyValueStore",
    "load_or_create_encryption_key",
]
