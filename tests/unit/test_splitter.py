from __future__ import annotations

import hashlib
import json
from pathlib import Path

import pytest

from store_publisher.domain.errors import ReassemblyError, SplitConfigurationError
from store_publisher.publishing.splitter import (
    part_count,
    part_name,
    reassemble,
    split_file,
    split_large_files,
)
from tests.helpers import TEST_CHUNK_SIZE, TEST_MAX_FILE_SIZE, write_sized

UPDATE_PATTERN = r"^sandstorm-.*\.tar\.xz$"
BIG_SIZE = 10_000
TARBALL_SIZE = 5000


def _split(root: Path, **kwargs):
    kwargs.setdefault("threshold", TEST_MAX_FILE_SIZE)
    kwargs.setdefault("chunk_size", TEST_CHUNK_SIZE)
    return split_large_files(root, **kwargs)


def _update_manifest(**overrides) -> str:
    manifest = {
        "build": 300,
        "channel": "dev",
        "tarball": "sandstorm-300.tar.xz",
        "sha256": "abc",
        "size": TARBALL_SIZE,
        "timestamp": "2026-01-01T00:00:00Z",
    }
    manifest.update(overrides)
    return json.dumps(manifest)


@pytest.mark.parametrize(
    ("size", "expected"),
    [(1, 1), (TEST_CHUNK_SIZE, 1), (TEST_CHUNK_SIZE + 1, 2), (TEST_CHUNK_SIZE * 3, 3), (BIG_SIZE, 7)],
)
def test_part_count_is_ceiling(size: int, expected: int) -> None:
    assert part_count(size, TEST_CHUNK_SIZE) == expected


def test_part_name_is_zero_padded() -> None:
    assert part_name("app.spk", 3, 2) == "app.spk.part03"
    assert part_name("app.spk", 3, 3) == "app.spk.part003"


def test_oversized_file_is_replaced_by_parts_and_manifest(tmp_path: Path) -> None:
    data = write_sized(tmp_path / "packages" / "big", BIG_SIZE)

    result = _split(tmp_path)

    folder = tmp_path / "packages"
    assert not (folder / "big").exists()
    assert sorted(p.name for p in folder.iterdir()) == [
        "big.part00",
        "big.part01",
        "big.part02",
        "big.part03",
        "big.part04",
        "big.part05",
        "big.part06",
        "big.parts.json",
    ]
    manifest = result.manifests[0]
    assert [part.size for part in manifest.parts] == [TEST_CHUNK_SIZE] * 6 + [1000]
    assert manifest.original_size == len(data)
    assert manifest.original_sha256 == hashlib.sha256(data).hexdigest()
    joined = b"".join((folder / part.file).read_bytes() for part in manifest.parts)
    assert joined == data
    assert all(p.stat().st_size <= TEST_MAX_FILE_SIZE for p in folder.iterdir())


def test_manifest_file_uses_camel_case_keys(tmp_path: Path) -> None:
    write_sized(tmp_path / "big", TEST_MAX_FILE_SIZE + 1)

    _split(tmp_path)

    payload = json.loads((tmp_path / "big.parts.json").read_text(encoding="utf-8"))
    assert payload["originalFile"] == "big"
    assert payload["originalSize"] == TEST_MAX_FILE_SIZE + 1
    assert set(payload["parts"][0]) == {"file", "sha256", "size"}


def test_file_at_exactly_the_threshold_is_untouched(tmp_path: Path) -> None:
    write_sized(tmp_path / "edge", TEST_MAX_FILE_SIZE)

    result = _split(tmp_path)

    assert result.split_count == 0
    assert [p.name for p in tmp_path.iterdir()] == ["edge"]


def test_second_run_is_a_no_op(tmp_path: Path) -> None:
    write_sized(tmp_path / "big", BIG_SIZE)
    _split(tmp_path)
    before = {p.name: p.read_bytes() for p in tmp_path.iterdir()}

    result = _split(tmp_path)

    assert result.split_count == 0
    assert {p.name: p.read_bytes() for p in tmp_path.iterdir()} == before


def test_git_directory_is_skipped(tmp_path: Path) -> None:
    write_sized(tmp_path / ".git" / "objects" / "pack", TEST_MAX_FILE_SIZE * 3)

    result = _split(tmp_path)

    assert result.split_count == 0
    assert (tmp_path / ".git" / "objects" / "pack").exists()


def test_suffix_overflow_fails_before_touching_anything(tmp_path: Path) -> None:
    write_sized(tmp_path / "a_small_over", TEST_MAX_FILE_SIZE + 200)
    write_sized(tmp_path / "z_huge", TEST_CHUNK_SIZE * 11)

    with pytest.raises(SplitConfigurationError):
        _split(tmp_path, suffix_width=1)

    assert sorted(p.name for p in tmp_path.iterdir()) == ["a_small_over", "z_huge"]


def test_chunk_size_must_be_below_threshold(tmp_path: Path) -> None:
    with pytest.raises(SplitConfigurationError):
        _split(tmp_path, chunk_size=TEST_MAX_FILE_SIZE)
    with pytest.raises(SplitConfigurationError):
        _split(tmp_path, chunk_size=0)


def test_parts_manifest_over_threshold_keeps_original(tmp_path: Path) -> None:
    data = write_sized(tmp_path / "big", 1000)

    with pytest.raises(SplitConfigurationError, match="big.parts.json"):
        split_file(tmp_path / "big", chunk_size=100, threshold=300)

    assert [p.name for p in tmp_path.iterdir()] == ["big"]
    assert (tmp_path / "big").read_bytes() == data


class TestUpdateManifestMerge:
    def test_update_tarball_split_is_merged_into_update_manifest(self, tmp_path: Path) -> None:
        update = tmp_path / "update"
        write_sized(update / "sandstorm-300.tar.xz", TARBALL_SIZE)
        (update / "manifest.json").write_text(_update_manifest(), encoding="utf-8")

        _split(tmp_path, update_pattern=UPDATE_PATTERN)

        manifest = json.loads((update / "manifest.json").read_text(encoding="utf-8"))
        assert manifest["split"] is True
        assert manifest["partsManifest"] == "sandstorm-300.tar.xz.parts.json"
        assert [part["file"] for part in manifest["parts"]] == [
            "sandstorm-300.tar.xz.part00",
            "sandstorm-300.tar.xz.part01",
            "sandstorm-300.tar.xz.part02",
            "sandstorm-300.tar.xz.part03",
        ]
        assert manifest["build"] == 300
        assert manifest["timestamp"] == "2026-01-01T00:00:00Z"

    def test_partial_update_manifest_is_patched_not_rejected(self, tmp_path: Path) -> None:
        update = tmp_path / "update"
        write_sized(update / "sandstorm-5.tar.xz", TARBALL_SIZE)
        (update / "manifest.json").write_text('{"build": 5, "channel": "dev"}', encoding="utf-8")

        result = _split(tmp_path, update_pattern=UPDATE_PATTERN)

        assert result.split_count == 1
        manifest = json.loads((update / "manifest.json").read_text(encoding="utf-8"))
        assert manifest["build"] == 5
        assert manifest["channel"] == "dev"
        assert manifest["split"] is True
        assert len(manifest["parts"]) == 4

    def test_unreadable_update_manifest_fails_before_splitting(self, tmp_path: Path) -> None:
        update = tmp_path / "update"
        data = write_sized(update / "sandstorm-5.tar.xz", TARBALL_SIZE)
        (update / "manifest.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(SplitConfigurationError):
            _split(tmp_path, update_pattern=UPDATE_PATTERN)

        assert sorted(p.name for p in update.iterdir()) == ["manifest.json", "sandstorm-5.tar.xz"]
        assert (update / "sandstorm-5.tar.xz").read_bytes() == data

    def test_non_matching_file_leaves_update_manifest_alone(self, tmp_path: Path) -> None:
        write_sized(tmp_path / "other.bin", TARBALL_SIZE)
        original = '{"build": 1}'
        (tmp_path / "manifest.json").write_text(original, encoding="utf-8")

        _split(tmp_path, update_pattern=UPDATE_PATTERN)

        assert (tmp_path / "manifest.json").read_text(encoding="utf-8") == original


class TestReassemble:
    def test_round_trip(self, tmp_path: Path) -> None:
        data = write_sized(tmp_path / "big", 5555, seed=7)
        _split(tmp_path)

        rebuilt = reassemble(tmp_path / "big.parts.json", tmp_path / "rebuilt")

        assert rebuilt.read_bytes() == data

    def test_defaults_to_original_name(self, tmp_path: Path) -> None:
        data = write_sized(tmp_path / "big", TARBALL_SIZE)
        _split(tmp_path)

        rebuilt = reassemble(tmp_path / "big.parts.json")

        assert rebuilt == tmp_path / "big"
        assert rebuilt.read_bytes() == data

    def test_corrupt_part_is_detected(self, tmp_path: Path) -> None:
        write_sized(tmp_path / "big", TARBALL_SIZE)
        _split(tmp_path)
        (tmp_path / "big.part01").write_bytes(b"\x00" * TEST_CHUNK_SIZE)

        with pytest.raises(ReassemblyError):
            reassemble(tmp_path / "big.parts.json", tmp_path / "rebuilt")

    def test_failed_reassembly_leaves_no_output(self, tmp_path: Path) -> None:
        write_sized(tmp_path / "big", TARBALL_SIZE)
        _split(tmp_path)
        (tmp_path / "big.part02").write_bytes(b"\x00" * TEST_CHUNK_SIZE)
        out = tmp_path / "out"
        out.mkdir()

        with pytest.raises(ReassemblyError):
            reassemble(tmp_path / "big.parts.json", out / "big")

        assert list(out.iterdir()) == []
