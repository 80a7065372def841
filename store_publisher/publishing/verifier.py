"""
Publish verifier: last check that nothing in the tree exceeds the size limit.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator, List

from store_publisher.domain.errors import IntegrityError
from store_publisher.domain.results import OversizedFile
from store_publisher.utils.logging import get_logger

log = get_logger(__name__)

VCS_DIR = ".git"


def iter_tree_files(root: Path | str) -> Iterator[Path]:
    """Every regular file under `root` in sorted order, skipping `.git/`."""
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d != VCS_DIR)
        for name in sorted(filenames):
            path = Path(dirpath) / name
            if path.is_file() and not path.is_symlink():
                yield path


def find_oversized(root: Path | str, threshold: int) -> List[OversizedFile]:
    return [
        OversizedFile(path=path, size=size)
        for path in iter_tree_files(root)
        if (size := path.stat().st_size) > threshold
    ]


def verify_tree(root: Path | str, threshold: int) -> None:
    """
    Raise `IntegrityError` listing every file larger than `threshold`.
    """
    violations = find_oversized(root, threshold)
    if violations:
        for violation in violations:
            log.error(
                f"{violation.path} is still {violation.size // (1024 * 1024)} MB ({violation.size} bytes)",
                extra={"path": str(violation.path), "size": violation.size},
            )
        raise IntegrityError(violations, threshold)
    log.info(
        f"All files under {threshold // (1024 * 1024)} MB ({threshold} bytes)",
        extra={"root": str(root), "threshold": threshold},
    )


__all__ = ["VCS_DIR", "find_oversized", "iter_tree_files", "verify_tree"]
