from pathlib import Path

import pytest

from undofile.runtime.settings import StoreSettings


def test_from_env_reads_prefixed_variables(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("UNDOFILE_UNDO_DIR", str(tmp_path / "undo"))
    monkeypatch.setenv("UNDOFILE_BACKUP_SUFFIX", ".prev")
    monkeypatch.setenv("UNDOFILE_ENABLED", "off")
    monkeypatch.setenv("UNDOFILE_FSYNC", "0")
    monkeypatch.setenv("UNDOFILE_CLIENT_ID", "editor-1")

    settings = StoreSettings.from_env()

    assert settings.undo_dir == tmp_path / "undo"
    assert settings.backup_suffix == ".prev"
    assert settings.enabled is False
    assert settings.fsync is False
    assert settings.client_id == "editor-1"


def test_defaults_keep_undo_file_next_to_document(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    for name in ("UNDO_DIR", "BACKUP_SUFFIX", "ENABLED", "FSYNC", "CLIENT_ID"):
        monkeypatch.delenv(f"UNDOFILE_{name}", raising=False)
    document = Path("/work/notes.txt")

    settings = StoreSettings.from_env()

    assert settings.enabled is True
    assert settings.client_id
    assert settings.undo_path_for(document) == Path("/work/notes.txt.undo")
    assert settings.session_path_for(document, "c1") == Path(
        "/work/.sessions/notes.txt.c1.json"
    )
    assert settings.blob_dir_for(document) == Path("/work/.blobs")


def test_with_overrides_returns_new_settings(tmp_path: Path) -> None:
    base = StoreSettings(client_id="a")

    moved = base.with_overrides(undo_dir=tmp_path)

    assert base.undo_dir is None
    assert moved.undo_path_for(Path("/x/doc.md")) == tmp_path / "doc.md.undo"


@pytest.mark.parametrize("suffix", ["", ".undo"])
def test_backup_suffix_must_be_distinct(suffix: str) -> None:
    with pytest.raises(ValueError):
        StoreSettings(backup_suffix=suffix)
