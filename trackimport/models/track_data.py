"""Track data models -- destination slots and the sequences they live in."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from trackimport.models.fields import FieldRecord


@dataclass
class TrackDataEntry:
    """One destination slot: a metadata record aligned with a local file.

    Attributes:
        record: Metadata to be written to the file.
        file_duration: Duration of the local file in seconds, 0 if the entry
            has no file behind it.
        import_duration: Duration reported by the import source, 0 if unknown.
        enabled: Disabled entries are skipped by every import operation.
        virtual: True for entries appended because the import had more
            records than there were local files.
        file_path: Path of the local file (used for title matching).
        duration_mismatch: Advisory flag set by the duration validation pass.
    """

    record: FieldRecord = field(default_factory=FieldRecord)
    file_duration: int = 0
    import_duration: int = 0
    enabled: bool = True
    virtual: bool = False
    file_path: Path | None = None
    duration_mismatch: bool = False

    @property
    def file_stem(self) -> str:
        """File name without extension, or empty string."""
        return self.file_path.stem if self.file_path else ""

    def assign(self, record: FieldRecord, import_duration: int) -> None:
        """Replace the record and import duration with imported data."""
        self.record = record
        self.import_duration = import_duration

    def clear_import(self) -> None:
        """Turn the entry into a placeholder without imported metadata."""
        self.record.clear()
        self.import_duration = 0


@dataclass
class TrackDataSequence:
    """Ordered list of track data entries.

    Attributes:
        entries: Entries in file list (or document) order.
        cover_art_url: Cover art URL found by the last import, if any.
    """

    entries: list[TrackDataEntry] = field(default_factory=list)
    cover_art_url: str | None = None

    @classmethod
    def from_durations(cls, durations: list[int]) -> TrackDataSequence:
        """Build a sequence of empty entries with the given file durations."""
        return cls([TrackDataEntry(file_duration=d) for d in durations])

    def append(self, entry: TrackDataEntry) -> None:
        self.entries.append(entry)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[TrackDataEntry]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> TrackDataEntry:
        return self.entries[index]

    def __delitem__(self, index: int) -> None:
        del self.entries[index]


@dataclass
class AlbumListItem:
    """One entry of a search result listing.

    Attributes:
        text: Display text, usually "Artist - Album".
        category: Source-specific category (CDDB genre, Amazon URL kind).
        id: Source-specific identifier used to request the track list.
    """

    text: str
    category: str
    id: str
