"""
Bundle-building helpers shared by unit and integration tests.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

# Small thresholds so split/redirect behavior is exercised with tiny files
TEST_MAX_FILE_SIZE = 4096
TEST_CHUNK_SIZE = 1500
TEST_REDIRECT_THRESHOLD = 2048
TEST_RELEASES_URL = "https://releases.example.org/packages-v1"

SVG_ICON = b'<svg xmlns="http://www.w3.org/2000/svg"><circle r="4"/></svg>\n'
PNG_ICON = b"\x89PNG\r\n\x1a\nnot-really-a-png"


def valid_metadata(**overrides: Any) -> Dict[str, Any]:
    """
    A metadata.json payload that passes validation.
    """
    metadata: Dict[str, Any] = {
        "appId": "wekan-abc123",
        "name": "Wekan",
        "version": "7.10.0",
        "versionNumber": 212,
        "packageId": "0123456789abcdef",
        "shortDescription": "Kanban boards",
        "categories": ["Productivity"],
        "isOpenSource": True,
        "webLink": "https://wekan.github.io",
        "codeLink": "https://github.com/wekan/wekan",
        "upstreamAuthor": "Wekan Team",
        "createdAt": 1_700_000_000,
        "author": {"name": "Packager", "githubUsername": "packager"},
    }
    metadata.update(overrides)
    return metadata


def bundle_files(
    metadata: Optional[Dict[str, Any]] = None,
    *,
    icon: Optional[str] = "icon.svg",
    icon_bytes: bytes = SVG_ICON,
    package_bytes: Optional[bytes] = b"spk-bytes",
    screenshots: Iterable[str] = (),
    description: Optional[str] = None,
) -> Dict[str, bytes]:
    """
    File mapping for an `InMemoryBundle`.
    """
    payload = valid_metadata() if metadata is None else metadata
    files: Dict[str, bytes] = {"metadata.json": json.dumps(payload).encode("utf-8")}
    if icon:
        files[icon] = icon_bytes
    if package_bytes is not None:
        files["app.spk"] = package_bytes
    for name in screenshots:
        files[f"screenshots/{name}"] = f"shot:{name}".encode()
    if description is not None:
        files["description.md"] = description.encode("utf-8")
    return files


def write_bundle(
    root: Path,
    label: str,
    metadata: Optional[Dict[str, Any]] = None,
    *,
    raw_metadata: Optional[str] = None,
    **kwargs: Any,
) -> Path:
    """
    Write one bundle at ``root/<label>`` (label is ``developer/group/app``).
    """
    bundle = root / label
    files = bundle_files(metadata, **kwargs)
    if raw_metadata is not None:
        files["metadata.json"] = raw_metadata.encode("utf-8")
    for name, data in files.items():
        target = bundle / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
    return bundle


def write_sized(path: Path, size: int, seed: int = 0) -> bytes:
    """
    Write `size` deterministic, non-repeating-looking bytes to `path`.
    """
    data = bytes((i * 31 + seed) % 251 for i in range(size))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return data
