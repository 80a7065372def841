"""
Large-file splitter.

Any file strictly larger than the threshold is cut into fixed-size byte
ranges named ``<name>.part00``, ``<name>.part01``, ... and replaced by those
parts plus a ``<name>.parts.json`` `SplitManifest`. Splitting is pure byte
partitioning: concatenating the parts in numeric order reproduces the
original, and the manifest records SHA-256 digests to prove it.

Usage:
    from store_publisher.publishing.splitter import split_large_files

    result = split_large_files(Path("staging"), threshold=95 * MIB, chunk_size=90 * MIB)
"""

from __future__ import annotations

import hashlib
import json
import math
import re
from pathlib import Path
from typing import Dict, List, Optional

from store_publisher.domain.errors import ReassemblyError, SplitConfigurationError
from store_publisher.domain.models import SplitManifest, SplitPart
from store_publisher.domain.results import SplitResult
from store_publisher.publishing.update import MANIFEST_FILE, load_update_manifest, merge_split_info
from store_publisher.publishing.verifier import iter_tree_files
from store_publisher.utils.hashing import BLOCK_SIZE, file_digest
from store_publisher.utils.logging import get_logger

log = get_logger(__name__)

PARTS_MANIFEST_SUFFIX = ".parts.json"


def part_name(original_name: str, index: int, suffix_width: int) -> str:
    return f"{original_name}.part{index:0{suffix_width}d}"


def part_count(size: int, chunk_size: int) -> int:
    return max(1, math.ceil(size / chunk_size))


def _check_fits(path: Path, size: int, chunk_size: int, suffix_width: int) -> None:
    count = part_count(size, chunk_size)
    if count > 10**suffix_width:
        raise SplitConfigurationError(
            f"{path} needs {count} parts but a {suffix_width}-digit suffix allows "
            f"{10**suffix_width}; raise suffix_width or chunk_size"
        )


def _remove(paths: List[Path]) -> None:
    for path in paths:
        path.unlink(missing_ok=True)


def split_file(
    path: Path, chunk_size: int, suffix_width: int = 2, threshold: Optional[int] = None
) -> SplitManifest:
    """
    Split one file into parts, delete it, and write its parts manifest.

    When `threshold` is given and the manifest itself would exceed it, the
    parts are removed again and `SplitConfigurationError` is raised; the
    original file is left in place.
    """
    size = path.stat().st_size
    _check_fits(path, size, chunk_size, suffix_width)
    original_sha = file_digest(path)

    parts: List[SplitPart] = []
    written_paths: List[Path] = []
    with path.open("rb") as src:
        for index in range(part_count(size, chunk_size)):
            target = path.with_name(part_name(path.name, index, suffix_width))
            written_paths.append(target)
            digest = hashlib.sha256()
            written = 0
            with target.open("wb") as dst:
                while written < chunk_size:
                    block = src.read(min(BLOCK_SIZE, chunk_size - written))
                    if not block:
                        break
                    dst.write(block)
                    digest.update(block)
                    written += len(block)
            parts.append(SplitPart(file=target.name, sha256=digest.hexdigest(), size=written))

    manifest = SplitManifest(
        original_file=path.name,
        original_sha256=original_sha,
        original_size=size,
        parts=parts,
    )
    payload = (json.dumps(manifest.model_dump(by_alias=True), indent=2) + "\n").encode("utf-8")

    if sum(part.size for part in parts) != size:
        _remove(written_paths)
        raise ReassemblyError(f"{path} changed size while being split")
    if threshold is not None and len(payload) > threshold:
        _remove(written_paths)
        raise SplitConfigurationError(
            f"{path.name}{PARTS_MANIFEST_SUFFIX} would be {len(payload)} bytes, over the "
            f"{threshold}-byte limit; raise chunk_size"
        )

    path.unlink()
    path.with_name(path.name + PARTS_MANIFEST_SUFFIX).write_bytes(payload)
    return manifest


def split_large_files(
    root: Path | str,
    threshold: int,
    chunk_size: int,
    suffix_width: int = 2,
    update_pattern: Optional[str] = None,
) -> SplitResult:
    """
    Split every file under `root` larger than `threshold`.

    Every oversized file is checked against the suffix width, and every update
    manifest that will be patched is read, before the first file is touched.
    A tree with nothing over the threshold is left unchanged.

    Parameters
    ----------
    root : Path | str
        Tree to scan; ``.git/`` is skipped.
    threshold : int
        Files strictly larger than this many bytes are split.
    chunk_size : int
        Part size in bytes; must be positive and smaller than `threshold`.
    suffix_width : int
        Digits in the ``.partNN`` suffix.
    update_pattern : str | None
        Regex for update tarballs; a matching file with a sibling
        ``manifest.json`` gets its parts merged into that manifest.
    """
    if not 0 < chunk_size < threshold:
        raise SplitConfigurationError(
            f"chunk_size ({chunk_size}) must be positive and smaller than the threshold ({threshold})"
        )

    oversized = [(path, path.stat().st_size) for path in iter_tree_files(root)]
    oversized = [(path, size) for path, size in oversized if size > threshold]
    update_manifests: Dict[Path, Path] = {}
    for path, size in oversized:
        _check_fits(path, size, chunk_size, suffix_width)
        sibling = path.parent / MANIFEST_FILE
        if update_pattern and re.match(update_pattern, path.name) and sibling.is_file():
            load_update_manifest(sibling)
            update_manifests[path] = sibling

    result = SplitResult()
    for path, size in oversized:
        log.info(
            f"Splitting {path} ({size // (1024 * 1024)} MB) into {chunk_size}-byte chunks",
            extra={"path": str(path), "size": size},
        )
        manifest = split_file(path, chunk_size, suffix_width, threshold)
        result.manifests.append(manifest)
        log.info(f"Split {path.name} -> {len(manifest.parts)} parts + manifest")

        if path in update_manifests:
            merge_split_info(update_manifests[path], manifest, path.name + PARTS_MANIFEST_SUFFIX)

    if not result.split_count:
        log.info("No files exceed the size limit", extra={"threshold": threshold})
    return result


def reassemble(manifest_path: Path | str, destination: Optional[Path | str] = None) -> Path:
    """
    Rebuild a split file from its parts manifest and verify every digest.

    Returns the path of the reassembled file (next to the parts by default).
    Nothing is left at the destination when verification fails.
    """
    manifest_path = Path(manifest_path)
    manifest = SplitManifest.model_validate(json.loads(manifest_path.read_text(encoding="utf-8")))
    target = Path(destination) if destination else manifest_path.with_name(manifest.original_file)
    partial = target.with_name(target.name + ".partial")

    whole = hashlib.sha256()
    total = 0
    try:
        with partial.open("wb") as dst:
            for part in manifest.parts:
                data = (manifest_path.parent / part.file).read_bytes()
                if hashlib.sha256(data).hexdigest() != part.sha256 or len(data) != part.size:
                    raise ReassemblyError(f"Part {part.file} does not match its manifest entry")
                dst.write(data)
                whole.update(data)
                total += len(data)
        if total != manifest.original_size or whole.hexdigest() != manifest.original_sha256:
            raise ReassemblyError(f"Reassembled {target.name} does not match {manifest_path.name}")
    except BaseException:
        partial.unlink(missing_ok=True)
        raise

    partial.replace(target)
    return target


__all__ = [
    "PARTS_MANIFEST_SUFFIX",
    "part_count",
    "part_name",
    "reassemble",
    "split_file",
    "split_large_files",
]
