"""
Binary update packaging.

Copies the newest ``<prefix>-<build>.tar.xz`` from the update source tree into
``update/``, signs it when the signing tool and keyring are available, writes
one channel file per release channel holding the build number, and records an
`UpdateManifest` in ``update/manifest.json``. When the splitter later chunks
the tarball, `merge_split_info` patches the parts list into that manifest
in place, keeping whatever other keys it already carries.
"""

from __future__ import annotations

import json
import os
import re
import shutil
import subprocess
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

from store_publisher.domain.errors import SplitConfigurationError, StorePublisherError
from store_publisher.domain.models import SplitManifest, UpdateManifest
from store_publisher.utils.hashing import file_digest
from store_publisher.utils.logging import get_logger

log = get_logger(__name__)

UPDATE_DIR = "update"
MANIFEST_FILE = "manifest.json"
INSTALL_SCRIPT = "install.sh"
DEFAULT_CHANNELS = ("dev", "stable")


class UpdateSigningError(StorePublisherError):
    """The external update-signing tool failed."""


@dataclass(frozen=True)
class UpdateSource:
    """Where release tarballs come from and how to sign them."""

    source_dir: Path
    prefix: str = "sandstorm"
    keyring: Optional[Path] = None
    tool: Optional[Path] = None


def find_update_tarball(source_dir: Path | str, prefix: str) -> Optional[Tuple[Path, int]]:
    """
    Newest release tarball in `source_dir` and its build number.

    Only ``<prefix>-<digits>.tar.xz`` qualifies; the ``-fast`` variants are
    skipped. The highest build number wins.
    """
    pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)\.tar\.xz$")
    best: Optional[Tuple[Path, int]] = None
    for candidate in Path(source_dir).iterdir():
        match = pattern.match(candidate.name)
        if not match or not candidate.is_file():
            continue
        build = int(match.group(1))
        if best is None or build > best[1]:
            best = (candidate, build)
    return best


def _sign(tool: Path, keyring: Path, tarball: Path, signature: Path) -> None:
    with signature.open("wb") as out:
        try:
            subprocess.run([str(tool), "sign", str(keyring), str(tarball)], stdout=out, check=True)
        except (OSError, subprocess.CalledProcessError) as exc:
            raise UpdateSigningError(f"Signing {tarball.name} failed: {exc}") from exc


def package_update(
    update_source: UpdateSource,
    output_dir: Path | str,
    channels: Sequence[str] = DEFAULT_CHANNELS,
    now: Optional[datetime] = None,
) -> Optional[UpdateManifest]:
    """
    Package the newest update tarball into ``<output_dir>/update/``.

    Returns the written manifest, or None when there is nothing to package
    (missing source dir or no tarball), which is not an error.
    """
    source = Path(update_source.source_dir)
    prefix = update_source.prefix
    if not source.is_dir():
        log.warning(f"Update source dir not found: {source}; skipping binary update packaging")
        return None

    found = find_update_tarball(source, prefix)
    if found is None:
        log.warning(f"No {prefix} tarball found in {source}/")
        return None
    tarball, build = found
    log.info(f"Found {prefix} build {build}: {tarball}", extra={"build": build})

    update_out = Path(output_dir) / UPDATE_DIR
    update_out.mkdir(parents=True, exist_ok=True)
    tarball_name = f"{prefix}-{build}.tar.xz"
    shutil.copyfile(tarball, update_out / tarball_name)

    keyring_path = update_source.keyring
    tool_path = update_source.tool
    if keyring_path and tool_path and keyring_path.is_file() and os.access(tool_path, os.X_OK):
        _sign(tool_path, keyring_path, tarball, update_out / f"{tarball_name}.update-sig")
        log.info(f"Signed update: {tarball_name}.update-sig")
    else:
        log.warning(
            "Skipping update signature (keyring or update-tool not found)",
            extra={"keyring": str(keyring_path), "tool": str(tool_path)},
        )

    for channel in channels:
        (update_out / channel).write_text(str(build), encoding="utf-8")

    install_script = source / INSTALL_SCRIPT
    if install_script.is_file():
        shutil.copyfile(install_script, update_out / INSTALL_SCRIPT)

    timestamp = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H:%M:%SZ")
    manifest = UpdateManifest(
        build=build,
        channel=channels[0] if channels else "dev",
        tarball=tarball_name,
        sha256=file_digest(tarball),
        size=tarball.stat().st_size,
        timestamp=timestamp,
    )
    write_update_manifest(update_out / MANIFEST_FILE, manifest)
    log.info(f"Wrote {update_out / MANIFEST_FILE}", extra={"build": build, "channels": list(channels)})
    return manifest


def write_update_manifest(path: Path | str, manifest: UpdateManifest) -> None:
    payload = manifest.model_dump(by_alias=True, exclude_none=True)
    Path(path).write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def load_update_manifest(manifest_path: Path | str) -> Dict[str, Any]:
    """
    Read an update manifest as a plain JSON object.

    Manifests staged from another tree may predate the current schema, so only
    the shape (a JSON object) is enforced here.
    """
    path = Path(manifest_path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise SplitConfigurationError(f"Cannot read update manifest {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise SplitConfigurationError(f"Update manifest {path} must contain a JSON object")
    return data


def merge_split_info(
    manifest_path: Path | str, split: SplitManifest, parts_manifest_name: str
) -> Dict[str, Any]:
    """
    Patch split details into an existing update manifest and rewrite it.
    Keys the manifest already has are kept as they are.
    """
    path = Path(manifest_path)
    data = load_update_manifest(path)
    data["split"] = True
    data["partsManifest"] = parts_manifest_name
    data["parts"] = [part.model_dump() for part in split.parts]
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    log.info(
        f"Updated {path} with {len(split.parts)} parts",
        extra={"manifest": str(path), "parts": len(split.parts)},
    )
    return data


__all__ = [
    "DEFAULT_CHANNELS",
    "MANIFEST_FILE",
    "UPDATE_DIR",
    "UpdateSigningError",
    "UpdateSource",
    "find_update_tarball",
    "load_update_manifest",
    "merge_split_info",
    "package_update",
    "write_update_manifest",
]
