"""Tests for gnudb/TrackType search parsing and CDDB record extraction."""

from __future__ import annotations

import pytest

from trackimport.core.freedb_extractor import (
    CddbRecordExtractor,
    GnudbSearchParser,
    TrackTypeSearchParser,
    parse_album_data,
    parse_track_durations,
)
from trackimport.models.config import SourceOptions
from trackimport.models.fields import FieldType
from trackimport.models.track_data import AlbumListItem

CDDB_RECORD = """\
# xmcd
#
# Track frame offsets:
#\t150
#\t2390
#\t23387
#
# Disc length: 520 seconds
#
DISCID=920b810c
DTITLE=Catharsis / Imago
DYEAR=2002
DGENRE=Metal
TTITLE0=Intro
TTITLE1=Ashes
TTITLE2=A Very Long Title That Was Split Over
TTITLE2= Two Lines
EXTD= YEAR: 1999 ID3G: 9
EXTT0=
PLAYORDER=
"""

GNUDB_PAGE = """\
<html><head><meta charset="utf-8"></head><body>
<a href="http://www.gnudb.org/cd/ignored"><b>Not / In Results</b></a><br>
<h2>Search Results, 2 albums found:</h2>
<br><br>
<a href="http://www.gnudb.org/cd/ro920b810c"><b>Catharsis / Imago</b></a><br>
Tracks: 12, total time: 49:07, year: 2002, genre: Metal<br>
<a href="http://www.gnudb.org/gnudb/rock/920b810c" target=_blank>Discid: rock / 920b810c</a><br>
<a href="http://www.gnudb.org/cd/mi0a0b0c0d"><b>Simon &amp; Garfunkel / Bookends</b></a><br>
Tracks: 12, total time: 29:51, year: 1968, genre: Folk<br>
<a href="http://www.gnudb.org/gnudb/misc/0a0b0c0d" target=_blank>Discid: misc / 0a0b0c0d</a><br>
</body></html>
"""


class TestGnudbSearch:
    def test_entries_after_marker(self):
        assert GnudbSearchParser().parse_search_results(GNUDB_PAGE) == [
            AlbumListItem("Catharsis / Imago", "rock", "920b810c"),
            AlbumListItem("Simon & Garfunkel / Bookends", "misc", "0a0b0c0d"),
        ]

    def test_missing_marker(self):
        assert GnudbSearchParser().parse_search_results("<html>no hits</html>") == []


class TestTrackTypeSearch:
    def test_multiple_matches(self):
        response = (
            "211 close matches found\r\n"
            "rock 920b810c Catharsis / Imago\r\n"
            "misc 0a0b0c0d Simon & Garfunkel / Bookends\r\n"
            "garbage line\r\n"
            ".\r\n"
            "rock 12345678 After / Terminator\r\n"
        )
        assert TrackTypeSearchParser().parse_search_results(response) == [
            AlbumListItem("Catharsis / Imago", "rock", "920b810c"),
            AlbumListItem("Simon & Garfunkel / Bookends", "misc", "0a0b0c0d"),
        ]

    def test_single_exact_match(self):
        response = "200 rock 920b810c Catharsis / Imago\r\n"
        assert TrackTypeSearchParser().parse_search_results(response) == [
            AlbumListItem("Catharsis / Imago", "rock", "920b810c"),
        ]

    def test_no_match(self):
        assert TrackTypeSearchParser().parse_search_results("202 No match found\r\n") == []


class TestCddbRecord:
    def test_track_durations(self):
        # (2390-150)/75, (23387-2390)/75, (520*75-23387)/75
        assert parse_track_durations(CDDB_RECORD) == [29, 279, 208]

    def test_durations_missing(self):
        assert parse_track_durations("DTITLE=A / B\n") == []

    def test_album_data_prefers_dyear_and_dgenre(self):
        header = parse_album_data(CDDB_RECORD)
        assert header.as_dict() == {
            "artist": "Catharsis", "album": "Imago", "date": "2002", "genre": "Metal",
        }

    def test_album_data_from_extd(self):
        header = parse_album_data("DTITLE=A / B\nEXTD= YEAR: 1999 ID3G: 9\n")
        assert header.year == 1999
        assert header.get(FieldType.GENRE) == "Metal"

    def test_extract(self):
        result = CddbRecordExtractor().extract(CDDB_RECORD)
        assert result.header.artist == "Catharsis"
        assert [(r.track, r.title, r.duration) for r in result.tracks] == [
            (1, "Intro", 29),
            (2, "Ashes", 279),
            (3, "A Very Long Title That Was Split Over Two Lines", 208),
        ]

    @pytest.mark.parametrize("options", [SourceOptions(standard_tags=False)])
    def test_without_standard_tags(self, options: SourceOptions):
        result = CddbRecordExtractor(options).extract(CDDB_RECORD)
        assert result.header is None
        assert [r.as_dict() for r in result.tracks] == [
            {"duration": "29"}, {"duration": "279"}, {"duration": "208"},
        ]

    def test_empty_response(self):
        assert CddbRecordExtractor().extract("").is_empty
