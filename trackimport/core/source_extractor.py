"""Common contract for specialized import sources.

Every source offers one or both capabilities:

- ``SearchParser.parse_search_results(text)`` turns a search response into
  a list of ``AlbumListItem`` the user can pick from.
- ``SourceExtractor.extract(text)`` turns one album's detail response into
  an ``ExtractionResult`` (optional header + ordered track records).

Concrete sources are selected by name through ``get_extractor`` and
``get_search_parser``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Protocol

from trackimport.models.config import SourceOptions
from trackimport.models.fields import FieldRecord
from trackimport.models.track_data import AlbumListItem
from trackimport.utils.constants import SOURCE_AMAZON, SOURCE_GNUDB, SOURCE_TRACKTYPE
from trackimport.utils.logger import get_logger

logger = get_logger("core.source_extractor")


@dataclass
class ExtractionResult:
    """Output shape shared by all extractors.

    Attributes:
        header: Album-level fields, None if the document has none.
        tracks: Per-track records in document order. A record's DURATION
            field, when present, holds the import duration in seconds.
        cover_art_url: Cover art URL, if found and requested.
    """

    header: FieldRecord | None = None
    tracks: list[FieldRecord] = field(default_factory=list)
    cover_art_url: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.header is None and not self.tracks


class SourceExtractor(Protocol):
    def extract(self, text: str) -> ExtractionResult:
        ...


class SearchParser(Protocol):
    def parse_search_results(self, text: str) -> list[AlbumListItem]:
        ...


@dataclass(frozen=True)
class SearchCandidate:
    """One markup variant of a search result entry.

    Attributes:
        regex: Expression searched in each fragment.
        build: Turns a match into a list item, or None to reject it.
    """

    regex: re.Pattern
    build: Callable[[re.Match], AlbumListItem | None]


class SearchResultExtractor:
    """Fragment-wise search result scanner.

    The text is split into independent fragments; each fragment is tried
    against the candidates in order and the first match yields one list
    item. Fragments that match no candidate are skipped.

    Usage:
        extractor = SearchResultExtractor(r"\\n{2,}", [candidate])
        items = extractor.parse_search_results(page)
    """

    def __init__(
        self,
        fragment_separator: str,
        candidates: list[SearchCandidate],
        stop_fragment: str | None = None,
        start_marker: str | None = None,
    ) -> None:
        """Initialize the extractor.

        Args:
            fragment_separator: Regex splitting the text into fragments.
            candidates: Markup variants, most specific first.
            stop_fragment: Fragment (compared stripped) ending the listing.
            start_marker: If set, only text after its first occurrence is
                scanned, and nothing is returned when it is missing.
        """
        self._separator = re.compile(fragment_separator)
        self._candidates = candidates
        self._stop_fragment = stop_fragment
        self._start_marker = start_marker

    def parse_search_results(self, text: str) -> list[AlbumListItem]:
        if self._start_marker is not None:
            start = text.find(self._start_marker)
            if start < 0:
                return []
            text = text[start + len(self._start_marker):]

        items: list[AlbumListItem] = []
        for fragment in self._separator.split(text):
            if self._stop_fragment is not None and fragment.strip() == self._stop_fragment:
                break
            item = self._match_fragment(fragment)
            if item is not None:
                items.append(item)
        logger.debug("Search results: %d item(s)", len(items))
        return items

    def _match_fragment(self, fragment: str) -> AlbumListItem | None:
        for candidate in self._candidates:
            match = candidate.regex.search(fragment)
            if match:
                return candidate.build(match)
        return None


# ------------------------------------------------------------------
# Registry
# ------------------------------------------------------------------

KNOWN_SOURCES = (SOURCE_AMAZON, SOURCE_GNUDB, SOURCE_TRACKTYPE)


def get_extractor(source: str, options: SourceOptions | None = None) -> SourceExtractor:
    """Return the detail extractor for a source.

    Args:
        source: Source name (``amazon``, ``gnudb`` or ``tracktype``).
        options: Which fields to produce; defaults to standard tags only.

    Raises:
        KeyError: If the source is unknown.
    """
    from trackimport.core.amazon_extractor import AmazonDetailExtractor
    from trackimport.core.freedb_extractor import CddbRecordExtractor

    options = options or SourceOptions()
    if source == SOURCE_AMAZON:
        return AmazonDetailExtractor(options)
    if source in (SOURCE_GNUDB, SOURCE_TRACKTYPE):
        # Both serve CDDB read records
        return CddbRecordExtractor(options)
    raise KeyError(f"Unknown import source {source!r}, known: {', '.join(KNOWN_SOURCES)}")


def get_search_parser(source: str) -> SearchParser:
    """Return the search result parser for a source.

    Raises:
        KeyError: If the source is unknown.
    """
    from trackimport.core.amazon_extractor import AmazonSearchParser
    from trackimport.core.freedb_extractor import GnudbSearchParser, TrackTypeSearchParser

    parsers = {
        SOURCE_AMAZON: AmazonSearchParser,
        SOURCE_GNUDB: GnudbSearchParser,
        SOURCE_TRACKTYPE: TrackTypeSearchParser,
    }
    if source not in parsers:
        raise KeyError(f"Unknown import source {source!r}, known: {', '.join(KNOWN_SOURCES)}")
    return parsers[source]()
