"""freedb-style sources: gnudb.org search pages, TrackType CDDB search
responses and CDDB read records."""

from __future__ import annotations

import re

from trackimport.core.source_extractor import (
    ExtractionResult,
    SearchCandidate,
    SearchResultExtractor,
)
from trackimport.models.config import SourceOptions
from trackimport.models.fields import FieldRecord, FieldType
from trackimport.models.track_data import AlbumListItem
from trackimport.utils.constants import CDDB_FRAMES_PER_SECOND
from trackimport.utils.genres import genre_name
from trackimport.utils.html_utils import replace_html_entities
from trackimport.utils.logger import get_logger

logger = get_logger("core.freedb_extractor")

# ------------------------------------------------------------------
# Search responses
# ------------------------------------------------------------------

_GNUDB_ENTRY_RE = re.compile(
    r'<a href="[^"]+/cd/[^"]+"><b>([^<]+)</b></a>.*?Discid: ([a-z]+)[\s/]+([0-9a-f]+)',
    re.DOTALL,
)
_CDDB_MATCH_RE = re.compile(r"^([a-z]+)\s+([0-9a-f]+)\s+([^/]+ / .+)$")


def _gnudb_item(match: re.Match) -> AlbumListItem:
    return AlbumListItem(replace_html_entities(match.group(1)), match.group(2), match.group(3))


def _cddb_item(match: re.Match) -> AlbumListItem:
    return AlbumListItem(match.group(3), match.group(1), match.group(2))


class GnudbSearchParser:
    """Parses the HTML search page of gnudb.org.

    Each entry is a ``/cd/`` link with the album title followed by a
    "Discid: category / id" line::

        <a href="http://www.gnudb.org/cd/ro920b810c"><b>Catharsis / Imago</b></a><br>
        Tracks: 12, total time: 49:07, year: 2002, genre: Metal<br>
        <a href="http://www.gnudb.org/gnudb/rock/920b810c">Discid: rock / 920b810c</a>
    """

    def __init__(self) -> None:
        self._extractor = SearchResultExtractor(
            r'(?=<a href="[^"]+/cd/)',
            [SearchCandidate(_GNUDB_ENTRY_RE, _gnudb_item)],
            start_marker=" albums found:",
        )

    def parse_search_results(self, text: str) -> list[AlbumListItem]:
        return self._extractor.parse_search_results(text)


class TrackTypeSearchParser:
    """Parses a CDDB protocol ``query`` response.

    Either a ``210``/``211`` status line followed by one
    "category discid artist / album" line per match and a terminating
    ``.``, or a single ``200 category discid artist / album`` line.
    """

    def __init__(self) -> None:
        self._extractor = SearchResultExtractor(
            r"[\r\n]+",
            [SearchCandidate(_CDDB_MATCH_RE, _cddb_item)],
            stop_fragment=".",
        )

    def parse_search_results(self, text: str) -> list[AlbumListItem]:
        lines = re.split(r"[\r\n]+", text)
        for index, line in enumerate(lines):
            if line.startswith("21") and " match" in line:
                body = "\n".join(lines[index + 1:])
                return self._extractor.parse_search_results(body)
            if line.startswith("200 "):
                match = _CDDB_MATCH_RE.match(line[4:])
                return [_cddb_item(match)] if match else []
            if line == ".":
                break
        return []


# ------------------------------------------------------------------
# Read records
# ------------------------------------------------------------------

_DTITLE_RE = re.compile(r"DTITLE=\s*(\S[^\r\n]*\S)\s*/\s*(\S[^\r\n]*\S)[\r\n]")
_DYEAR_RE = re.compile(r"DYEAR=\s*(\d+)")
_DGENRE_RE = re.compile(r"DGENRE=\s*(\S[^\r\n]*\S)")
_EXTD_YEAR_RE = re.compile(r"EXTD=[^\r\n]*YEAR:\s*(\d+)\D")
_EXTD_GENRE_RE = re.compile(r"EXTD=[^\r\n]*ID3G:\s*(\d+)\D")
_TTITLE_RE = re.compile(r"TTITLE(\d+)=([^\r\n]*)")
_DISC_LENGTH_RE = re.compile(r"Disc length:\s*(\d+)")
_OFFSET_RE = re.compile(r"#\s*(\d+)")


def parse_track_durations(text: str) -> list[int]:
    """Compute track durations from the frame offsets comment block.

    The offsets between "Track frame offsets" and "Disc length" are frame
    positions (75 per second); the last track runs to the end of the disc.

    Returns:
        Durations in seconds, empty if the block is missing.
    """
    disc_match = _DISC_LENGTH_RE.search(text)
    offsets_pos = text.find("Track frame offsets")
    if disc_match is None or offsets_pos < 0 or offsets_pos > disc_match.start():
        return []

    offsets = [
        int(match.group(1))
        for match in _OFFSET_RE.finditer(text, offsets_pos, disc_match.start())
    ]
    if not offsets:
        return []
    durations = [
        (offset - previous) // CDDB_FRAMES_PER_SECOND
        for previous, offset in zip(offsets, offsets[1:])
    ]
    disc_frames = int(disc_match.group(1)) * CDDB_FRAMES_PER_SECOND
    durations.append((disc_frames - offsets[-1]) // CDDB_FRAMES_PER_SECOND)
    return durations


def parse_album_data(text: str) -> FieldRecord:
    """Read artist, album, year and genre from a CDDB record."""
    header = FieldRecord()
    match = _DTITLE_RE.search(text)
    if match:
        header.set(FieldType.ARTIST, match.group(1))
        header.set(FieldType.ALBUM, match.group(2))

    match = _DYEAR_RE.search(text) or _EXTD_YEAR_RE.search(text)
    if match:
        header.set(FieldType.DATE, int(match.group(1)))

    match = _DGENRE_RE.search(text)
    if match:
        header.set(FieldType.GENRE, match.group(1))
    else:
        match = _EXTD_GENRE_RE.search(text)
        if match:
            name = genre_name(int(match.group(1)))
            if name:
                header.set(FieldType.GENRE, name)
    return header


class CddbRecordExtractor:
    """Extracts album and track data from a CDDB read record (xmcd format).

    Long titles may be split over several ``TTITLEn=`` lines, which are
    concatenated. Track numbers are ``n + 1``.
    """

    def __init__(self, options: SourceOptions | None = None) -> None:
        self._options = options or SourceOptions()

    def extract(self, text: str) -> ExtractionResult:
        durations = parse_track_durations(text)
        header = parse_album_data(text) if self._options.standard_tags else FieldRecord()

        titles: dict[int, str] = {}
        for match in _TTITLE_RE.finditer(text):
            number = int(match.group(1))
            titles[number] = titles.get(number, "") + match.group(2)

        tracks: list[FieldRecord] = []
        number = 0
        while number in titles:
            record = FieldRecord()
            if self._options.standard_tags:
                record.set(FieldType.TRACK, number + 1)
                if titles[number]:
                    record.set(FieldType.TITLE, titles[number])
            if number < len(durations):
                record.set(FieldType.DURATION, durations[number])
            tracks.append(record)
            number += 1

        logger.debug("CDDB record: %d track(s), %d duration(s)", len(tracks), len(durations))
        return ExtractionResult(
            header=None if header.is_empty() else header,
            tracks=tracks,
        )
