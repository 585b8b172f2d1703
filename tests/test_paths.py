"""Tests for snapshot path validation."""

from pathlib import Path

import pytest

from kiodb.errors import InvalidPath
from kiodb.paths import MAX_PATH, is_invalid_path, validate_snapshot_path


class TestIsInvalidPath:
    """Tests for is_invalid_path."""

    @pytest.mark.parametrize("path", ["", None, 42, b"a.kiod", "a\0b.kiod"])
    def test_always_invalid(self, path):
        assert is_invalid_path(path)
        assert is_invalid_path(path, windows=True)

    def test_posix_accepts_anything_else(self):
        assert not is_invalid_path("data/people.kiod", windows=False)
        assert not is_invalid_path('odd<name>?.kiod', windows=False)

    def test_accepts_path_objects(self):
        assert not is_invalid_path(Path("people.kiod"), windows=False)

    @pytest.mark.parametrize("path", ["a<b.kiod", "a>b", "what?.kiod", 'quote".kiod', "pipe|x", "star*"])
    def test_windows_reserved_characters(self, path):
        assert is_invalid_path(path, windows=True)

    def test_windows_drive_colon_allowed(self):
        assert not is_invalid_path("C:\\data\\people.kiod", windows=True)
        assert is_invalid_path("C:\\data\\peo:ple.kiod", windows=True)

    def test_windows_length_limit(self):
        assert not is_invalid_path("a" * (MAX_PATH - 12), windows=True)
        assert is_invalid_path("a" * (MAX_PATH - 11), windows=True)
        assert not is_invalid_path("a" * 1000, windows=True, extended=True)

    def test_file_mode_rejects_separators(self):
        assert not is_invalid_path("data\\people.kiod", windows=True)
        assert is_invalid_path("data\\people.kiod", windows=True, file=True)
        assert is_invalid_path("data/people.kiod", windows=True, file=True)


class TestValidateSnapshotPath:
    """Tests for validate_snapshot_path."""

    def test_returns_path(self, tmp_path):
        assert validate_snapshot_path(str(tmp_path / "a.kiod")) == tmp_path / "a.kiod"

    @pytest.mark.parametrize("name", ["a.json", "a", "a.kiod.bak", "a.KIOD", ".kiod"])
    def test_requires_suffix(self, tmp_path, name):
        with pytest.raises(InvalidPath, match="extension"):
            validate_snapshot_path(tmp_path / name)

    def test_rejects_invalid(self):
        with pytest.raises(InvalidPath, match="invalid"):
            validate_snapshot_path("")

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            validate_snapshot_path("a.txt")
