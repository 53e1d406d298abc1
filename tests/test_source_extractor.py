"""Tests for the source registry and the fragment-wise search scanner."""

from __future__ import annotations

import re

import pytest

from trackimport.core.amazon_extractor import AmazonDetailExtractor, AmazonSearchParser
from trackimport.core.freedb_extractor import (
    CddbRecordExtractor,
    GnudbSearchParser,
    TrackTypeSearchParser,
)
from trackimport.core.source_extractor import (
    ExtractionResult,
    SearchCandidate,
    SearchResultExtractor,
    get_extractor,
    get_search_parser,
)
from trackimport.models.fields import FieldRecord, FieldType
from trackimport.models.track_data import AlbumListItem


def _item_from(match: re.Match) -> AlbumListItem | None:
    if match.group("id") == "skip":
        return None
    return AlbumListItem(match.group("title"), "cat", match.group("id"))


@pytest.fixture
def extractor() -> SearchResultExtractor:
    candidates = [
        SearchCandidate(re.compile(r"<b>(?P<title>[^<]+)</b> id=(?P<id>\w+)"), _item_from),
        SearchCandidate(re.compile(r"<i>(?P<title>[^<]+)</i> #(?P<id>\w+)"), _item_from),
    ]
    return SearchResultExtractor(r"\n{2,}", candidates, stop_fragment="END", start_marker="Results:")


class TestRegistry:
    @pytest.mark.parametrize("source, expected", [
        ("amazon", AmazonDetailExtractor),
        ("gnudb", CddbRecordExtractor),
        ("tracktype", CddbRecordExtractor),
    ])
    def test_get_extractor(self, source: str, expected: type):
        assert isinstance(get_extractor(source), expected)

    @pytest.mark.parametrize("source, expected", [
        ("amazon", AmazonSearchParser),
        ("gnudb", GnudbSearchParser),
        ("tracktype", TrackTypeSearchParser),
    ])
    def test_get_search_parser(self, source: str, expected: type):
        assert isinstance(get_search_parser(source), expected)

    def test_unknown_source(self):
        with pytest.raises(KeyError):
            get_extractor("discogs")
        with pytest.raises(KeyError):
            get_search_parser("discogs")


class TestSearchResultExtractor:
    def test_candidates_tried_in_order(self, extractor: SearchResultExtractor):
        text = "Results:\n\n<b>One</b> id=a1\n\n<i>Two</i> #b2\n\nnoise\n\n<b>Gone</b> id=skip"
        assert extractor.parse_search_results(text) == [
            AlbumListItem("One", "cat", "a1"),
            AlbumListItem("Two", "cat", "b2"),
        ]

    def test_text_before_marker_ignored(self, extractor: SearchResultExtractor):
        text = "<b>Early</b> id=e0\n\nResults:\n\n<b>Late</b> id=l1"
        assert [item.id for item in extractor.parse_search_results(text)] == ["l1"]

    def test_missing_marker(self, extractor: SearchResultExtractor):
        assert extractor.parse_search_results("<b>One</b> id=a1") == []

    def test_stop_fragment(self, extractor: SearchResultExtractor):
        text = "Results:\n\n<b>One</b> id=a1\n\n END \n\n<b>Two</b> id=b2"
        assert [item.id for item in extractor.parse_search_results(text)] == ["a1"]


class TestExtractionResult:
    def test_is_empty(self):
        assert ExtractionResult().is_empty
        header = FieldRecord()
        header.set(FieldType.ALBUM, "Odin")
        assert not ExtractionResult(header=header).is_empty
        assert not ExtractionResult(tracks=[FieldRecord()]).is_empty
