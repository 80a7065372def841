"""
End-to-end tests for the build and publish pipelines.

These run the orchestrator against real temporary directories: a packages
tree written by the fixtures, a fake pre-built UI bundle, and a publish
target. No external commands are involved except where a test sets one.
"""

from __future__ import annotations

import json
import shlex
import sys
from pathlib import Path

import pytest

from store_publisher.config import Settings
from store_publisher.domain.errors import (
    CatalogValidationError,
    PrerequisiteMissingError,
    StorePublisherError,
    UIBuildError,
)
from store_publisher.orchestrator import BuildMode, run_build, run_publish
from store_publisher.publishing.splitter import reassemble
from tests.helpers import TEST_MAX_FILE_SIZE, TEST_REDIRECT_THRESHOLD, valid_metadata, write_sized

EXPECTED_APPS = 2
BIG_ASSET_SIZE = 10_000
UPDATE_TARBALL_SIZE = 5000


@pytest.fixture
def two_apps(bundle_writer) -> None:
    bundle_writer("dev-a/apps/wekan", valid_metadata(), screenshots=["board.png"])
    bundle_writer(
        "dev-b/apps/etherpad",
        valid_metadata(appId="etherpad-1", name="Etherpad", packageId="fedcba9876543210"),
        package_bytes=b"p" * (TEST_REDIRECT_THRESHOLD + 10),
    )


def _catalog(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


class TestBuildGating:
    def test_dry_run_writes_nothing(self, test_settings: Settings, two_apps) -> None:
        result = run_build(BuildMode.DRY_RUN, test_settings)

        assert result.aggregation.counts.valid == EXPECTED_APPS
        assert result.assembly is None
        assert not Path(test_settings.output_dir).exists()
        assert not Path(test_settings.ui_catalog_path).exists()

    @pytest.mark.parametrize("mode", [BuildMode.FULL, BuildMode.AGGREGATE, BuildMode.DRY_RUN])
    def test_invalid_bundle_aborts_before_any_output(
        self, test_settings: Settings, two_apps, bundle_writer, mode: BuildMode
    ) -> None:
        broken = valid_metadata(appId="broken")
        del broken["version"]
        bundle_writer("dev-c/apps/broken", broken)

        with pytest.raises(CatalogValidationError) as excinfo:
            run_build(mode, test_settings)

        assert excinfo.value.counts.errors == 1
        assert [r.bundle for r in excinfo.value.reports] == ["dev-c/apps/broken"]
        assert not Path(test_settings.output_dir).exists()
        assert not Path(test_settings.ui_catalog_path).exists()


class TestAssembly:
    def test_aggregate_mode_assembles_output_tree(self, test_settings: Settings, two_apps, tmp_path: Path) -> None:
        verifier = tmp_path / "verifier"
        verifier.mkdir()
        (verifier / "index.html").write_text("<html>verify</html>", encoding="utf-8")

        result = run_build(BuildMode.AGGREGATE, test_settings)

        out = Path(test_settings.output_dir)
        assert (out / "index.html").exists()
        assert (out / "assets" / "main.js").exists()
        assert (out / ".nojekyll").exists()
        assert (out / "verifier" / "index.html").read_text(encoding="utf-8") == "<html>verify</html>"
        assert not Path(test_settings.ui_catalog_path).exists()

        apps = _catalog(out / "apps" / "index.json")["apps"]
        assert [app["name"] for app in apps] == ["Etherpad", "Wekan"]
        etherpad, wekan = apps
        assert etherpad["packageUrl"].endswith("/fedcba9876543210")
        assert "packageUrl" not in wekan
        assert (out / "images" / wekan["imageId"]).exists()
        assert (out / "packages" / wekan["packageId"]).exists()
        assert not (out / "packages" / etherpad["packageId"]).exists()
        assert (out / "screenshots" / wekan["appId"] / "board.png").exists()

        assert result.assembly.assets.redirected == 1
        assert [stage.label for stage in result.stages] == ["aggregate", "assemble"]

    def test_rebuild_replaces_stale_output_and_is_deterministic(self, test_settings: Settings, two_apps) -> None:
        run_build(BuildMode.AGGREGATE, test_settings)
        out = Path(test_settings.output_dir)
        first = (out / "apps" / "index.json").read_bytes()
        (out / "stale.txt").write_text("old", encoding="utf-8")

        run_build(BuildMode.AGGREGATE, test_settings)

        assert not (out / "stale.txt").exists()
        assert (out / "apps" / "index.json").read_bytes() == first

    def test_full_mode_writes_ui_catalog_first(self, test_settings: Settings, two_apps) -> None:
        result = run_build(BuildMode.FULL, test_settings)

        ui_catalog = Path(test_settings.ui_catalog_path).read_text(encoding="utf-8")
        assert ui_catalog == (Path(test_settings.output_dir) / "apps" / "index.json").read_text(encoding="utf-8")
        assert [stage.label for stage in result.stages] == ["aggregate", "ui-build", "assemble"]

    def test_failing_ui_build_raises(self, test_settings: Settings, two_apps) -> None:
        command = f"{shlex.quote(sys.executable)} -c 'import sys; sys.exit(3)'"
        settings = test_settings.model_copy(update={"ui_build_command": command})

        with pytest.raises(UIBuildError):
            run_build(BuildMode.FULL, settings)

        assert not Path(test_settings.output_dir).exists()

    def test_missing_ui_bundle_leaves_existing_output_alone(
        self, test_settings: Settings, two_apps, tmp_path: Path
    ) -> None:
        out = Path(test_settings.output_dir)
        out.mkdir()
        (out / "keep.txt").write_text("previous deploy", encoding="utf-8")
        settings = test_settings.model_copy(update={"ui_dist_dir": str(tmp_path / "never-built")})

        with pytest.raises(PrerequisiteMissingError):
            run_build(BuildMode.AGGREGATE, settings)

        assert (out / "keep.txt").read_text(encoding="utf-8") == "previous deploy"

    def test_empty_packages_tree_builds_empty_catalog(self, test_settings: Settings) -> None:
        run_build(BuildMode.AGGREGATE, test_settings)

        assert _catalog(Path(test_settings.output_dir) / "apps" / "index.json") == {"apps": []}


class TestPublish:
    def test_publish_splits_and_verifies(self, test_settings: Settings, two_apps, ui_dist: Path, tmp_path: Path) -> None:
        big = write_sized(ui_dist / "assets" / "vendor.js", BIG_ASSET_SIZE)
        target = tmp_path / "publish"
        (target / ".git").mkdir(parents=True)
        (target / ".git" / "HEAD").write_text("ref: refs/heads/gh-pages", encoding="utf-8")
        (target / "old-page.html").write_text("stale", encoding="utf-8")
        (target / ".gitattributes").write_text("*.spk filter=lfs", encoding="utf-8")

        outcome = run_publish(target, BuildMode.AGGREGATE, test_settings)

        assert outcome.publish.split.split_count == 1
        assert (target / ".git" / "HEAD").exists()
        assert not (target / "old-page.html").exists()
        assert not (target / ".gitattributes").exists()
        assert (target / ".nojekyll").exists()
        assert not (target / "assets" / "vendor.js").exists()
        assert (target / "assets" / "vendor.js.parts.json").exists()
        assert all(
            p.stat().st_size <= TEST_MAX_FILE_SIZE
            for p in target.rglob("*")
            if p.is_file() and ".git" not in p.parts
        )
        rebuilt = reassemble(target / "assets" / "vendor.js.parts.json", tmp_path / "vendor.js")
        assert rebuilt.read_bytes() == big
        assert outcome.stages[-1].label == "stage-split-verify"

    def test_deploy_only_uses_existing_output(self, test_settings: Settings, two_apps, tmp_path: Path) -> None:
        run_build(BuildMode.AGGREGATE, test_settings)
        target = tmp_path / "publish"

        outcome = run_publish(target, None, test_settings)

        assert outcome.build is None
        assert (target / "apps" / "index.json").exists()

    def test_deploy_only_without_output_fails(self, test_settings: Settings, tmp_path: Path) -> None:
        with pytest.raises(PrerequisiteMissingError):
            run_publish(tmp_path / "publish", None, test_settings)

    @pytest.mark.parametrize("relative", ["dist-publish", "dist-publish/nested", "."])
    def test_target_overlapping_output_is_rejected(
        self, test_settings: Settings, two_apps, tmp_path: Path, relative: str
    ) -> None:
        run_build(BuildMode.AGGREGATE, test_settings)

        with pytest.raises(StorePublisherError):
            run_publish(tmp_path / relative, None, test_settings)

        assert (Path(test_settings.output_dir) / "apps" / "index.json").exists()

    def test_dry_run_mode_is_rejected(self, test_settings: Settings, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            run_publish(tmp_path / "publish", BuildMode.DRY_RUN, test_settings)

    def test_update_tarball_is_packaged_split_and_merged(
        self, test_settings: Settings, two_apps, tmp_path: Path
    ) -> None:
        source = tmp_path / "sandstorm"
        write_sized(source / "sandstorm-321.tar.xz", UPDATE_TARBALL_SIZE)
        settings = test_settings.model_copy(update={"update_source_dir": str(source)})
        target = tmp_path / "publish"

        run_publish(target, BuildMode.AGGREGATE, settings)

        update = target / "update"
        assert (update / "stable").read_text(encoding="utf-8") == "321"
        manifest = _catalog(update / "manifest.json")
        assert manifest["split"] is True
        assert manifest["partsManifest"] == "sandstorm-321.tar.xz.parts.json"
        assert len(manifest["parts"]) == 4
        assert not (update / "sandstorm-321.tar.xz").exists()
