"""File slots -- builds a destination sequence from local audio files."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Generator

import mutagen

from trackimport.models.track_data import TrackDataEntry, TrackDataSequence
from trackimport.utils.constants import SUPPORTED_EXTENSIONS
from trackimport.utils.logger import get_logger

logger = get_logger("core.file_slots")


def is_audio_file(path: Path) -> bool:
    """Check if a file has a supported audio extension."""
    return path.suffix.lower() in SUPPORTED_EXTENSIONS


class FileSlotBuilder:
    """Creates one destination entry per audio file, with its duration.

    Usage:
        builder = FileSlotBuilder()
        destination = builder.build(["/music/album"])
    """

    def __init__(
        self,
        progress_callback: Callable[[int, int, str], None] | None = None,
    ) -> None:
        """Initialize the builder.

        Args:
            progress_callback: Optional callback(current, total, filename)
                called for each file read.
        """
        self._progress_callback = progress_callback

    def build(self, paths: list[Path | str]) -> TrackDataSequence:
        """Build a destination sequence from files and/or directories.

        Directories are scanned recursively in sorted order. Files without a
        supported extension are ignored. Files whose duration cannot be read
        get a file duration of 0.

        Args:
            paths: File or directory paths, in the desired slot order.

        Returns:
            One entry per audio file.
        """
        audio_files: list[Path] = []
        for p in paths:
            path = Path(p)
            if path.is_dir():
                discovered = list(self._discover_audio_files(path))
                logger.info("Found %d audio files in directory: %s", len(discovered), path)
                audio_files.extend(discovered)
            elif path.is_file() and is_audio_file(path):
                audio_files.append(path)
            else:
                logger.debug("Skipping non-audio path: %s", path)

        total = len(audio_files)
        sequence = TrackDataSequence()
        for idx, file_path in enumerate(audio_files, start=1):
            sequence.append(TrackDataEntry(
                file_duration=self.read_duration(file_path),
                file_path=file_path,
            ))
            if self._progress_callback:
                self._progress_callback(idx, total, file_path.name)

        logger.info("Built %d file slot(s) from %d input path(s)", total, len(paths))
        return sequence

    @staticmethod
    def read_duration(path: Path) -> int:
        """Read a file's duration in whole seconds, 0 if unknown.

        Args:
            path: Audio file.

        Returns:
            Rounded duration in seconds.
        """
        try:
            audio = mutagen.File(path)
        except (mutagen.MutagenError, OSError, ValueError) as e:
            logger.warning("Cannot read duration of %s: %s", path, e)
            return 0
        if audio is None or audio.info is None:
            logger.debug("Unrecognized audio format: %s", path)
            return 0
        return int(round(getattr(audio.info, "length", 0) or 0))

    def _discover_audio_files(self, root: Path) -> Generator[Path, None, None]:
        try:
            for entry in sorted(root.rglob("*")):
                if entry.is_file() and is_audio_file(entry):
                    yield entry
        except PermissionError as e:
            logger.warning("Permission denied during scan: %s", e)
