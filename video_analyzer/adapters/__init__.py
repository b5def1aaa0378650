"""
Cache adapters for sampled frames and OCR results.

This module provides the abstract cache interface and the filesystem
implementation used by the pipeline.
"""

from .base import CacheStore
from .file_cache import FileCacheStore

__all__ = [
    'CacheStore',
    'FileCacheStore'
]
