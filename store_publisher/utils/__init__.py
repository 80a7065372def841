"""
Utilities package for the static store publisher.

Exports shared helpers for logging, profiling, and hashing.
Keep this package lightweight and free of catalog-specific logic.
"""

from store_publisher.utils.hashing import file_digest, stream_digest
from store_publisher.utils.logging import configure_logging, get_logger
from store_publisher.utils.profiler import ProfileStats, profile_block

__all__ = [
    "configure_logging",
    "get_logger",
    "file_digest",
    "stream_digest",
    "ProfileStats",
    "profile_block",
]
