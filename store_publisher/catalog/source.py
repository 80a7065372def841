"""
Bundle sources: where the aggregator gets app bundles from.

A bundle is one directory holding an app's `metadata.json`, icon, optional
package artifact, optional screenshots, and optional long-form description.
The aggregator only talks to the `BundleHandle` / `BundleSource` interfaces,
so the same validation and normalization code runs against the real
`packages/<developer>/<group>/<bundle>/` tree or an in-memory fixture.
"""

from __future__ import annotations

import abc
import io
from pathlib import Path
from typing import BinaryIO, Dict, Iterable, Iterator, List, Protocol, runtime_checkable

from store_publisher.utils.logging import get_logger

log = get_logger(__name__)

METADATA_FILE = "metadata.json"
ICON_FILES = ("icon.svg", "icon.png")  # preference order
PACKAGE_FILE = "app.spk"
DESCRIPTION_FILE = "description.md"
SCREENSHOTS_DIR = "screenshots"
SCREENSHOT_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp")


def is_screenshot(filename: str) -> bool:
    return filename.lower().endswith(SCREENSHOT_EXTENSIONS)


@runtime_checkable
class BundleHandle(Protocol):
    """
    Read-only view of one bundle's files, addressed by bundle-relative names
    such as ``"metadata.json"`` or ``"screenshots"``.
    """

    label: str

    def has_file(self, name: str) -> bool: ...

    def has_dir(self, name: str) -> bool: ...

    def size(self, name: str) -> int: ...

    def open(self, name: str) -> BinaryIO: ...

    def read_text(self, name: str) -> str: ...

    def list_dir(self, name: str) -> List[str]:
        """Names of the regular files directly inside `name`, unsorted."""
        ...


@runtime_checkable
class BundleSource(Protocol):
    def iter_bundles(self) -> Iterator[BundleHandle]:
        """Yield candidate bundles; each one has a metadata file."""
        ...


class AbstractBundle(abc.ABC):
    """
    Optional ABC helper for bundle implementations; derives `read_text`
    from `open`.
    """

    label: str

    @abc.abstractmethod
    def has_file(self, name: str) -> bool:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def has_dir(self, name: str) -> bool:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def size(self, name: str) -> int:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def open(self, name: str) -> BinaryIO:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def list_dir(self, name: str) -> List[str]:  # pragma: no cover - interface only
        raise NotImplementedError

    def read_text(self, name: str) -> str:
        with self.open(name) as f:
            return f.read().decode("utf-8")


class FilesystemBundle(AbstractBundle):
    def __init__(self, path: Path, label: str) -> None:
        self.path = Path(path)
        self.label = label

    def __repr__(self) -> str:
        return f"FilesystemBundle({self.label!r})"

    def has_file(self, name: str) -> bool:
        return (self.path / name).is_file()

    def has_dir(self, name: str) -> bool:
        return (self.path / name).is_dir()

    def size(self, name: str) -> int:
        return (self.path / name).stat().st_size

    def open(self, name: str) -> BinaryIO:
        return (self.path / name).open("rb")

    def list_dir(self, name: str) -> List[str]:
        directory = self.path / name
        if not directory.is_dir():
            return []
        return [entry.name for entry in directory.iterdir() if entry.is_file()]


class FilesystemBundleSource:
    """
    Walks ``<root>/<developer>/<group>/<bundle>/``.

    Hidden bundle directories (``.git`` and friends) and directories without a
    metadata file are skipped silently; not every directory in a submodule is
    an app bundle.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def iter_bundles(self) -> Iterator[FilesystemBundle]:
        if not self.root.is_dir():
            log.warning(f"No {self.root}/ directory found; catalog will be empty")
            return
        for developer_dir in _subdirs(self.root):
            for group_dir in _subdirs(developer_dir):
                for bundle_dir in _subdirs(group_dir):
                    if bundle_dir.name.startswith("."):
                        continue
                    if not (bundle_dir / METADATA_FILE).is_file():
                        continue
                    label = f"{developer_dir.name}/{group_dir.name}/{bundle_dir.name}"
                    yield FilesystemBundle(bundle_dir, label)


def _subdirs(path: Path) -> List[Path]:
    return sorted((p for p in path.iterdir() if p.is_dir()), key=lambda p: p.name)


class InMemoryBundle(AbstractBundle):
    """
    Bundle backed by a ``{relative_name: bytes}`` mapping. Nested names use
    ``/`` (``"screenshots/01.png"``).
    """

    def __init__(self, label: str, files: Dict[str, bytes]) -> None:
        self.label = label
        self.files = dict(files)

    def __repr__(self) -> str:
        return f"InMemoryBundle({self.label!r})"

    def has_file(self, name: str) -> bool:
        return name in self.files

    def has_dir(self, name: str) -> bool:
        prefix = name.rstrip("/") + "/"
        return any(key.startswith(prefix) for key in self.files)

    def size(self, name: str) -> int:
        return len(self.files[name])

    def open(self, name: str) -> BinaryIO:
        if name not in self.files:
            raise FileNotFoundError(f"{self.label}: {name}")
        return io.BytesIO(self.files[name])

    def list_dir(self, name: str) -> List[str]:
        prefix = name.rstrip("/") + "/"
        return [
            key[len(prefix):]
            for key in self.files
            if key.startswith(prefix) and "/" not in key[len(prefix):]
        ]


class InMemoryBundleSource:
    """Yields the given bundles that carry a metadata file, in the given order."""

    def __init__(self, bundles: Iterable[InMemoryBundle]) -> None:
        self.bundles = list(bundles)

    def iter_bundles(self) -> Iterator[InMemoryBundle]:
        for bundle in self.bundles:
            if bundle.has_file(METADATA_FILE):
                yield bundle


__all__ = [
    "AbstractBundle",
    "BundleHandle",
    "BundleSource",
    "DESCRIPTION_FILE",
    "FilesystemBundle",
    "FilesystemBundleSource",
    "ICON_FILES",
    "InMemoryBundle",
    "InMemoryBundleSource",
    "METADATA_FILE",
    "PACKAGE_FILE",
    "SCREENSHOTS_DIR",
    "SCREENSHOT_EXTENSIONS",
    "is_screenshot",
]
