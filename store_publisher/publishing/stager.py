"""
Publish stager: lays the assembled tree into the publish target.

The publish target is an opaque directory (in practice the checkout of the
hosting branch). Its previous contents are replaced, except version-control
metadata; oversized files are split; and the result is verified before the
caller commits and pushes it.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from store_publisher.domain.errors import PrerequisiteMissingError, StorePublisherError
from store_publisher.domain.results import SplitResult
from store_publisher.publishing.assembler import NO_PROCESSING_MARKER
from store_publisher.publishing.splitter import split_large_files
from store_publisher.publishing.verifier import VCS_DIR, verify_tree
from store_publisher.utils.logging import get_logger

log = get_logger(__name__)

# LFS attributes would make the host serve pointer files instead of content.
VCS_ATTRIBUTES = ".gitattributes"


@dataclass(frozen=True)
class PublishResult:
    target_dir: Path
    split: SplitResult


def clear_target(target: Path) -> None:
    """Remove everything in `target` except `.git`."""
    for entry in target.iterdir():
        if entry.name == VCS_DIR:
            continue
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()


def stage_publish(
    output_dir: Path | str,
    target_dir: Path | str,
    threshold: int,
    chunk_size: int,
    suffix_width: int = 2,
    update_pattern: Optional[str] = None,
    extra_dirs: Iterable[Path | str] = (),
) -> PublishResult:
    """
    Copy `output_dir` (plus `extra_dirs`) into `target_dir`, split, and verify.

    Raises
    ------
    PrerequisiteMissingError
        If `output_dir` does not exist.
    IntegrityError
        If any file in the staged tree still exceeds `threshold`.
    """
    output = Path(output_dir)
    target = Path(target_dir)
    if not output.is_dir():
        raise PrerequisiteMissingError(output, hint="run a build first")
    resolved_output, resolved_target = output.resolve(), target.resolve()
    if (
        resolved_output == resolved_target
        or resolved_target in resolved_output.parents
        or resolved_output in resolved_target.parents
    ):
        raise StorePublisherError(f"Publish target {target} overlaps the build output {output}")

    target.mkdir(parents=True, exist_ok=True)
    clear_target(target)
    log.info(f"Staging {output}/ -> {target}/", extra={"output_dir": str(output), "target_dir": str(target)})
    shutil.copytree(output, target, dirs_exist_ok=True)

    for extra in extra_dirs:
        extra_path = Path(extra)
        if extra_path.is_dir():
            log.info(f"Staging {extra_path}/", extra={"extra_dir": str(extra_path)})
            shutil.copytree(extra_path, target / extra_path.name, dirs_exist_ok=True)

    split = split_large_files(
        target,
        threshold=threshold,
        chunk_size=chunk_size,
        suffix_width=suffix_width,
        update_pattern=update_pattern,
    )

    (target / NO_PROCESSING_MARKER).touch()
    (target / VCS_ATTRIBUTES).unlink(missing_ok=True)

    verify_tree(target, threshold)
    return PublishResult(target_dir=target, split=split)


__all__ = ["PublishResult", "clear_target", "stage_publish"]
