"""Tests for building destination slots from local audio files."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import mutagen
import pytest

from trackimport.core.file_slots import FileSlotBuilder, is_audio_file


def _fake_audio(length: float) -> MagicMock:
    audio = MagicMock()
    audio.info.length = length
    return audio


@pytest.fixture
def album_dir(tmp_path: Path) -> Path:
    album = tmp_path / "album"
    album.mkdir()
    (album / "02 - Second.mp3").write_bytes(b"")
    (album / "01 - First.flac").write_bytes(b"")
    (album / "cover.jpg").write_bytes(b"")
    disc2 = album / "CD2"
    disc2.mkdir()
    (disc2 / "01 - Bonus.mp3").write_bytes(b"")
    return album


class TestIsAudioFile:
    def test_supported(self):
        assert is_audio_file(Path("track.MP3"))
        assert is_audio_file(Path("track.flac"))

    def test_unsupported(self):
        assert not is_audio_file(Path("cover.jpg"))


class TestReadDuration:
    @patch("trackimport.core.file_slots.mutagen.File")
    def test_rounds_length(self, mock_file):
        mock_file.return_value = _fake_audio(225.6)
        assert FileSlotBuilder.read_duration(Path("a.mp3")) == 226

    @patch("trackimport.core.file_slots.mutagen.File")
    def test_unknown_format(self, mock_file):
        mock_file.return_value = None
        assert FileSlotBuilder.read_duration(Path("a.mp3")) == 0

    @patch("trackimport.core.file_slots.mutagen.File")
    def test_unreadable(self, mock_file):
        mock_file.side_effect = mutagen.MutagenError("corrupt")
        assert FileSlotBuilder.read_duration(Path("a.mp3")) == 0

    @patch("trackimport.core.file_slots.mutagen.File")
    def test_missing_file(self, mock_file):
        mock_file.side_effect = OSError("gone")
        assert FileSlotBuilder.read_duration(Path("a.mp3")) == 0


class TestBuild:
    @patch("trackimport.core.file_slots.mutagen.File")
    def test_directory_expansion(self, mock_file, album_dir: Path):
        mock_file.return_value = _fake_audio(100)
        sequence = FileSlotBuilder().build([album_dir])
        assert [e.file_path.name for e in sequence] == [
            "01 - First.flac", "02 - Second.mp3", "01 - Bonus.mp3",
        ]
        assert [e.file_duration for e in sequence] == [100, 100, 100]
        assert all(e.record.is_empty() for e in sequence)

    @patch("trackimport.core.file_slots.mutagen.File")
    def test_explicit_files_keep_order(self, mock_file, album_dir: Path):
        mock_file.return_value = _fake_audio(60)
        sequence = FileSlotBuilder().build([
            album_dir / "02 - Second.mp3",
            album_dir / "cover.jpg",
            album_dir / "01 - First.flac",
        ])
        assert [e.file_stem for e in sequence] == ["02 - Second", "01 - First"]

    @patch("trackimport.core.file_slots.mutagen.File")
    def test_progress_callback(self, mock_file, album_dir: Path):
        mock_file.return_value = _fake_audio(60)
        callback = MagicMock()
        FileSlotBuilder(progress_callback=callback).build([album_dir / "02 - Second.mp3"])
        callback.assert_called_once_with(1, 1, "02 - Second.mp3")

    def test_nonexistent_path(self, tmp_path: Path):
        assert len(FileSlotBuilder().build([tmp_path / "missing"])) == 0
