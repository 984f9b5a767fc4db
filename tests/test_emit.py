"""Tests for all-or-nothing document emission."""

import os

import pytest

from hw2nixcfg.emit import write_documents
from hw2nixcfg.errors import EmissionError
from hw2nixcfg.pipeline import render_documents


@pytest.fixture
def documents(ext4_profile, identity):
    return render_documents(ext4_profile, identity)


class TestWriteDocuments:
    def test_writes_every_document(self, documents, tmp_path):
        output_dir = tmp_path / "hosts" / "calculon"
        paths = write_documents(documents, output_dir)

        assert [p.name for p in paths] == [
            "bootloader.nix", "default.nix", "devices.nix",
            "env.json", "filesystems.nix", "secrets.nix",
        ]
        for document in documents.values():
            assert (output_dir / document.filename).read_text() == document.text

    def test_no_staging_left_behind(self, documents, tmp_path):
        write_documents(documents, tmp_path / "calculon")
        assert sorted(p.name for p in tmp_path.iterdir()) == ["calculon"]

    def test_directory_permissions(self, documents, tmp_path):
        write_documents(documents, tmp_path / "calculon")
        assert (tmp_path / "calculon").stat().st_mode & 0o777 == 0o755

    def test_replaces_previous_output(self, documents, tmp_path):
        output_dir = tmp_path / "calculon"
        output_dir.mkdir()
        (output_dir / "stale.nix").write_text("{ }\n")

        write_documents(documents, output_dir)

        assert not (output_dir / "stale.nix").exists()
        assert (output_dir / "devices.nix").exists()
        assert sorted(p.name for p in tmp_path.iterdir()) == ["calculon"]


class TestWriteFailures:
    def test_write_failure_leaves_nothing(self, documents, tmp_path, monkeypatch):
        def fail(self, *args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr("pathlib.Path.write_text", fail)
        with pytest.raises(EmissionError, match="disk full"):
            write_documents(documents, tmp_path / "calculon")
        assert list(tmp_path.iterdir()) == []

    def test_rename_failure_keeps_previous_output(self, documents, tmp_path, monkeypatch):
        output_dir = tmp_path / "calculon"
        output_dir.mkdir()
        (output_dir / "devices.nix").write_text("old\n")

        real_replace = os.replace
        calls = []

        def flaky_replace(src, dst):
            calls.append((src, dst))
            # Second call publishes the staging directory.
            if len(calls) == 2:
                raise OSError("rename failed")
            real_replace(src, dst)

        monkeypatch.setattr("hw2nixcfg.emit.os.replace", flaky_replace)
        with pytest.raises(EmissionError) as excinfo:
            write_documents(documents, output_dir)

        assert excinfo.value.path == output_dir
        assert (output_dir / "devices.nix").read_text() == "old\n"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["calculon"]

    def test_unwritable_parent(self, documents, tmp_path):
        blocker = tmp_path / "hosts"
        blocker.write_text("not a directory")
        with pytest.raises(EmissionError, match="cannot prepare"):
            write_documents(documents, blocker / "calculon")
