"""
Streaming file digests.

Package artifacts and update tarballs run to tens of megabytes, so digests are
computed over fixed-size blocks instead of reading whole files into memory.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import BinaryIO, Union

BLOCK_SIZE = 1024 * 1024


def stream_digest(fileobj: BinaryIO, algorithm: str = "sha256") -> str:
    """Hex digest of everything readable from `fileobj`."""
    digest = hashlib.new(algorithm)
    for block in iter(lambda: fileobj.read(BLOCK_SIZE), b""):
        digest.update(block)
    return digest.hexdigest()


def file_digest(path: Union[str, Path], algorithm: str = "sha256") -> str:
    """Hex digest of the file at `path`."""
    with open(path, "rb") as f:
        return stream_digest(f, algorithm)


__all__ = ["BLOCK_SIZE", "file_digest", "stream_digest"]
