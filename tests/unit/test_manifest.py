"""Unit tests for deployment manifests."""

import json
from pathlib import Path

import pytest

from deploy_orchestrator.exceptions import ConfigError, ConfigNotFoundError
from deploy_orchestrator.manifest import (
    build_manifest,
    load_continuation,
    manifest_addresses,
    write_manifest,
)
from deploy_orchestrator.types import ContinuationRef

CHECKPOINT = {
    "startedAt": 1700000000000,
    "network": "sepolia",
    "continuationRef": "sepolia-1690000000000",
    "Token": "0xAAA",
    "Splitter": "0xBBB",
}


class TestBuildManifest:
    """Test the build_manifest function."""

    def test_fields(self):
        manifest = build_manifest("sepolia", "0xD", CHECKPOINT, 1700000005000)

        assert manifest == {
            "network": "sepolia",
            "deployerAddress": "0xD",
            "startedAt": 1700000000000,
            "completedAt": 1700000005000,
            "Token": "0xAAA",
            "Splitter": "0xBBB",
        }

    def test_previous_reference(self):
        previous = ContinuationRef("sepolia", 1690000000000)
        manifest = build_manifest("sepolia", "0xD", CHECKPOINT, 1, previous=previous)

        assert manifest["previous"] == {"network": "sepolia", "completedAt": 1690000000000}


class TestWriteManifest:
    """Test the write_manifest function."""

    def test_writes_named_file(self, tmp_path: Path):
        path = write_manifest(tmp_path / "deployments", "sepolia", "0xD", CHECKPOINT, completed_at=42)

        assert path == tmp_path / "deployments" / "sepolia-42.json"
        with open(path) as f:
            assert json.load(f)["Token"] == "0xAAA"

    def test_creates_directory(self, tmp_path: Path):
        target = tmp_path / "a" / "b"
        write_manifest(target, "sepolia", "0xD", CHECKPOINT)
        assert target.is_dir()

    def test_never_overwrites(self, tmp_path: Path):
        first = write_manifest(tmp_path, "sepolia", "0xD", CHECKPOINT, completed_at=42)
        second = write_manifest(tmp_path, "sepolia", "0xD", CHECKPOINT, completed_at=42)

        assert first != second
        assert second.name == "sepolia-43.json"
        with open(second) as f:
            assert json.load(f)["completedAt"] == 43


class TestLoadContinuation:
    """Test the load_continuation function."""

    def test_round_trip_from_written_manifest(self, tmp_path: Path):
        path = write_manifest(tmp_path, "sepolia", "0xD", CHECKPOINT, completed_at=99)

        ref, addresses = load_continuation(path)

        assert ref == ContinuationRef("sepolia", 99)
        assert ref.identity == "sepolia-99"
        assert addresses == {"Token": "0xAAA", "Splitter": "0xBBB"}

    def test_strips_previous(self, tmp_path: Path):
        path = write_manifest(
            tmp_path, "sepolia", "0xD", CHECKPOINT, previous=ContinuationRef("sepolia", 1), completed_at=5
        )
        _, addresses = load_continuation(path)
        assert "previous" not in addresses

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigNotFoundError):
            load_continuation(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text("{ nope")
        with pytest.raises(ConfigError):
            load_continuation(path)

    @pytest.mark.parametrize("completed_at", ["yesterday", "1700000000000", 1.5, None, True])
    def test_invalid_completed_at(self, tmp_path: Path, completed_at):
        """Test that a non-integer completedAt raises ConfigError."""
        path = tmp_path / "sepolia-1.json"
        path.write_text(json.dumps({"network": "sepolia", "completedAt": completed_at, "Token": "0xAAA"}))

        with pytest.raises(ConfigError) as exc_info:
            load_continuation(path)
        assert "completedAt" in str(exc_info.value)

    def test_invalid_network(self, tmp_path: Path):
        path = tmp_path / "sepolia-1.json"
        path.write_text(json.dumps({"network": 5, "completedAt": 1}))

        with pytest.raises(ConfigError):
            load_continuation(path)

    def test_not_a_manifest(self, tmp_path: Path):
        path = tmp_path / "other.json"
        path.write_text('{"Token": "0xAAA"}')
        with pytest.raises(ConfigError):
            load_continuation(path)


def test_manifest_addresses():
    assert manifest_addresses({"network": "x", "completedAt": 1, "previous": {}, "A": "0x1"}) == {"A": "0x1"}
