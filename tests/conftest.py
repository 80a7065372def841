"""
Pytest configuration for the static store publisher.

Provides fixtures for:
- Writing app bundles into a temporary packages tree
- Settings with small size thresholds pointed at temporary directories
- A pre-built UI bundle for assembly tests
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Optional

import pytest

from store_publisher.config import Settings, get_settings
from tests.helpers import (
    TEST_CHUNK_SIZE,
    TEST_MAX_FILE_SIZE,
    TEST_REDIRECT_THRESHOLD,
    TEST_RELEASES_URL,
    write_bundle,
)


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """
    `get_settings` is cached per process; keep tests independent of each other.
    """
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def packages_dir(tmp_path: Path) -> Path:
    path = tmp_path / "packages"
    path.mkdir()
    return path


@pytest.fixture
def bundle_writer(packages_dir: Path) -> Callable[..., Path]:
    """
    Factory fixture: ``bundle_writer("dev/repo/app", metadata, ...)``.
    """

    def _write(label: str, metadata: Optional[Dict[str, Any]] = None, **kwargs: Any) -> Path:
        return write_bundle(packages_dir, label, metadata, **kwargs)

    return _write


@pytest.fixture
def ui_dist(tmp_path: Path) -> Path:
    """
    A pre-built UI bundle as the front-end build would leave it.
    """
    dist = tmp_path / "dist"
    (dist / "assets").mkdir(parents=True)
    (dist / "index.html").write_text("<!doctype html><div id=app></div>", encoding="utf-8")
    (dist / "assets" / "main.js").write_text("console.log('store')", encoding="utf-8")
    return dist


@pytest.fixture
def test_settings(tmp_path: Path, packages_dir: Path, ui_dist: Path) -> Settings:
    """
    Settings with test-specific overrides; nothing points outside `tmp_path`.
    """
    return Settings(
        packages_dir=str(packages_dir),
        output_dir=str(tmp_path / "dist-publish"),
        ui_dist_dir=str(ui_dist),
        ui_catalog_path=str(tmp_path / "src" / "apps.json"),
        ui_build_command="",
        verifier_dir=str(tmp_path / "verifier"),
        update_source_dir=str(tmp_path / "no-update-source"),
        publish_extra_dirs=[],
        max_file_size=TEST_MAX_FILE_SIZE,
        chunk_size=TEST_CHUNK_SIZE,
        redirect_threshold=TEST_REDIRECT_THRESHOLD,
        releases_base_url=TEST_RELEASES_URL,
        log_level="DEBUG",
    )
