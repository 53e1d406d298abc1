"""Amazon music pages -- search result listings and album detail pages.

The detail page is scanned with a transition table (see ``scan_machine``):

    SEARCHING  --id="productTitle" / id="btAsinTitle"-->  IN_HEADER
    SEARCHING  --(always)-->                              IN_HEADER
    IN_HEADER  --class="titleCol"-->                      IN_TRACKS_TITLE_COLUMN
    IN_HEADER  --class="listRow-->                        IN_TRACKS_LIST_ROW
    IN_HEADER  --id="a-popover-trackTitlePopover-->       IN_TRACKS_POPOVER
    IN_TRACKS_* --(same marker)-->                        IN_TRACKS_*

Once a track layout variant is detected the scanner stays in it until
its row marker is no longer found.
"""

from __future__ import annotations

import re

from trackimport.core.scan_machine import ScanContext, Transition, run_scanner
from trackimport.core.source_extractor import (
    ExtractionResult,
    SearchCandidate,
    SearchResultExtractor,
)
from trackimport.models.config import SourceOptions
from trackimport.models.fields import FieldRecord, FieldType
from trackimport.models.reconcile_state import ScanState
from trackimport.models.track_data import AlbumListItem
from trackimport.utils.constants import AMAZON_PRODUCT_URL, SECONDS_PER_MINUTE
from trackimport.utils.html_utils import remove_html, replace_html_entities
from trackimport.utils.logger import get_logger

logger = get_logger("core.amazon_extractor")

# ------------------------------------------------------------------
# Search results
# ------------------------------------------------------------------

_DETAIL_LINK_RE = re.compile(
    r'<a class="[^"]*s-access-detail-page[^"]*"[^>]+title="([^"]+)"[^>]+'
    r'href="[^"]+/(dp|ASIN|images|product|-)/([A-Z0-9]+)[^"]+">'
)
_NEXT_ELEMENT_RE = re.compile(r">([^<]+)<")
_SR_TITLE_RE = re.compile(
    r'<a href="[^"]+/(dp|ASIN|images|product|-)/([A-Z0-9]+)[^"]+">'
    r'<span class="srTitle">([^<]+)<.*>\s*by\s*(?:<[^>]+>)?([^<]+)<'
)
_PRODUCT_TITLE_RE = re.compile(
    r'<div class="productTitle"><a href="[^"]+/(dp|ASIN|images|product|-)/([A-Z0-9]+)[^"]+">'
    r'\s*([^<]+)</a>.*>\s*by\s*(?:<[^>]+>)?([^<]+)<'
)


def _legacy_item(match: re.Match) -> AlbumListItem:
    text = f"{remove_html(match.group(4))} - {remove_html(match.group(3))}"
    return AlbumListItem(text, match.group(1), match.group(2))


class AmazonSearchParser:
    """Parses Amazon music search result pages.

    Current pages link each product with an ``s-access-detail-page`` anchor
    followed by ``>by <`` and the artist; older pages put one product per
    paragraph with an ``srTitle`` or ``productTitle`` element.
    """

    def __init__(self) -> None:
        self._legacy = SearchResultExtractor(
            r"\n{2,}",
            [
                SearchCandidate(_SR_TITLE_RE, _legacy_item),
                SearchCandidate(_PRODUCT_TITLE_RE, _legacy_item),
            ],
        )

    def parse_search_results(self, text: str) -> list[AlbumListItem]:
        text = text.replace("\r", "")
        items = self._parse_detail_links(text)
        if items:
            return items
        # Legacy entries may span lines within a paragraph
        paragraphs = "\n\n".join(
            part.replace("\n", "") for part in re.split(r"\n{2,}", text)
        )
        return self._legacy.parse_search_results(paragraphs)

    def _parse_detail_links(self, text: str) -> list[AlbumListItem]:
        items: list[AlbumListItem] = []
        end = 0
        while True:
            link = _DETAIL_LINK_RE.search(text, end)
            if link is None:
                break
            by_pos = text.find(">by <", link.end())
            if by_pos < 0:
                break
            artist = _NEXT_ELEMENT_RE.search(text, by_pos + 4)
            if artist is None:
                break
            end = artist.end()
            items.append(AlbumListItem(
                f"{replace_html_entities(artist.group(1))} - "
                f"{replace_html_entities(link.group(1))}",
                link.group(2),
                link.group(3),
            ))
        return items


# ------------------------------------------------------------------
# Album detail page
# ------------------------------------------------------------------

_YEAR_RE = re.compile(r"(\d{4})")
_LABEL_RE = re.compile(r">\s*([^<]+)<")
_DURATION_RE = re.compile(r"(\d+):(\d+)")
_NUMBERED_TITLE_RE = re.compile(r"\s*\d+\.\s+(.*\S)")

_TITLE_COL = 'class="titleCol"'
_RUNTIME_COL = 'class="runtimeCol"'
_LIST_ROW = 'class="listRow'
_POPOVER = 'id="a-popover-trackTitlePopover'
_POPOVER_DURATION = '<td id="dmusic_tracklist_duration'

# (marker, field) pairs in the product details list, read up to </li>
_CREDIT_MARKERS = (
    (">Performer:<", FieldType.PERFORMER),
    (">Orchestra:<", FieldType.ALBUM_ARTIST),
    (">Conductor:<", FieldType.CONDUCTOR),
    (">Composer:<", FieldType.COMPOSER),
)


def _text_between(text: str, open_char: str, close_char: str, start: int) -> tuple[str, int] | None:
    """Text after the next ``open_char`` at/after ``start`` until ``close_char``.

    Returns:
        (text, index of close_char), or None.
    """
    begin = text.find(open_char, start)
    if begin < 0:
        return None
    end = text.find(close_char, begin + 1)
    if end < 0:
        return None
    return text[begin + 1:end], end


def _parse_duration(text: str) -> int:
    match = _DURATION_RE.search(text)
    if not match:
        return 0
    return int(match.group(1)) * SECONDS_PER_MINUTE + int(match.group(2))


class AmazonDetailExtractor:
    """Extracts album metadata and the track list from an Amazon detail page.

    Usage:
        extractor = AmazonDetailExtractor(SourceOptions(additional_tags=True))
        result = extractor.extract(page_html)
    """

    def __init__(self, options: SourceOptions | None = None) -> None:
        self._options = options or SourceOptions()
        self._table = [
            Transition(ScanState.SEARCHING, 'id="productTitle"', self._read_album, ScanState.IN_HEADER),
            Transition(ScanState.SEARCHING, 'id="btAsinTitle"', self._read_album, ScanState.IN_HEADER),
            Transition(ScanState.SEARCHING, None, self._read_details, ScanState.IN_HEADER),
            Transition(ScanState.IN_HEADER, _TITLE_COL, self._enter_tracks, ScanState.IN_TRACKS_TITLE_COLUMN),
            Transition(ScanState.IN_HEADER, _LIST_ROW, self._enter_tracks, ScanState.IN_TRACKS_LIST_ROW),
            Transition(ScanState.IN_HEADER, _POPOVER, self._enter_tracks, ScanState.IN_TRACKS_POPOVER),
            Transition(
                ScanState.IN_TRACKS_TITLE_COLUMN, _TITLE_COL,
                self._read_title_col_row, ScanState.IN_TRACKS_TITLE_COLUMN,
            ),
            Transition(
                ScanState.IN_TRACKS_LIST_ROW, _LIST_ROW,
                self._read_list_row, ScanState.IN_TRACKS_LIST_ROW,
            ),
            Transition(
                ScanState.IN_TRACKS_POPOVER, _POPOVER,
                self._read_popover_row, ScanState.IN_TRACKS_POPOVER,
            ),
        ]

    def extract(self, text: str) -> ExtractionResult:
        """Scan a detail page.

        Args:
            text: Page HTML.

        Returns:
            Header fields, one record per track row (numbered 1..n) and the
            cover art URL if requested and found.
        """
        ctx = ScanContext(text)
        ctx.extras["has_artist"] = "<td>Song Title</td><td>Artist</td>" in text
        ctx.extras["album_artist"] = ""
        run_scanner(self._table, ctx)

        album_artist = ctx.extras["album_artist"]
        if album_artist and self._options.additional_tags:
            ctx.header.set(FieldType.ALBUM_ARTIST, album_artist)

        logger.info(
            "Amazon page: %d header field(s), %d track(s)", len(ctx.header), len(ctx.tracks)
        )
        return ExtractionResult(
            header=None if ctx.header.is_empty() else ctx.header,
            tracks=ctx.tracks,
            cover_art_url=ctx.cover_art_url,
        )

    # ------------------------------------------------------------------
    # Header
    # ------------------------------------------------------------------

    def _read_album(self, ctx: ScanContext, pos: int) -> bool:
        """Album title from the title element, artist from the author link."""
        text = ctx.text
        found = _text_between(text, ">", "<", pos)
        if found is not None and self._options.standard_tags:
            album, end = found
            bracket = album.find(" [")
            if bracket >= 0:
                album = album[:bracket]
            ctx.header.set(FieldType.ALBUM, replace_html_entities(album))

            author = text.find('class="author', end)
            author_end = text.find(">", author) if author >= 0 else -1
            if author_end >= 0:
                link = text.find("<a", author_end)
                if link >= 0:
                    artist = _text_between(text, ">", "<", link)
                    if artist is not None and artist[0]:
                        ctx.header.set(FieldType.ARTIST, replace_html_entities(artist[0]))
        return self._read_details(ctx, pos)

    def _read_details(self, ctx: ScanContext, pos: int) -> bool:
        """Year and credits from "Product Details", cover art from the ASIN."""
        text = ctx.text
        details = text.find(">Product Details<")
        if details >= 0:
            if self._options.standard_tags:
                self._read_year(ctx, details)
            if self._options.additional_tags:
                self._read_credits(ctx, details)
        if self._options.cover_art:
            self._read_cover_art(ctx)
        # Track layout markers are probed from the top of the page
        ctx.cursor = 0
        return True

    def _read_year(self, ctx: ScanContext, details: int) -> None:
        text = ctx.text
        marker = ">Original Release Date:<"
        start = text.find(marker, details)
        if start < 0:
            marker = ">Audio CD<"
            start = text.find(marker, details)
        if start < 0:
            return
        end = text.find("\n", start)
        line = text[start + len(marker):end if end >= 0 else len(text)]
        match = _YEAR_RE.search(line)
        if match:
            ctx.header.set(FieldType.DATE, int(match.group(1)))

    def _read_credits(self, ctx: ScanContext, details: int) -> None:
        text = ctx.text
        start = text.find(">Label:<", details)
        if start >= 0:
            end = text.find("\n", start)
            line = text[start + len(">Label:"):end if end >= 0 else len(text)]
            match = _LABEL_RE.search(line)
            if match:
                ctx.header.set(FieldType.PUBLISHER, remove_html(match.group(1)))

        for marker, field_type in _CREDIT_MARKERS:
            start = text.find(marker, details)
            if start < 0:
                continue
            end = text.find("</li>", start + len(marker))
            if end < 0:
                continue
            # Keep the closing '<' so that the label's </b> is stripped too
            value = remove_html(text[start + len(marker) - 1:end])
            if not value:
                continue
            if field_type is FieldType.ALBUM_ARTIST:
                ctx.extras["album_artist"] = value
            else:
                ctx.header.set(field_type, value)

    def _read_cover_art(self, ctx: ScanContext) -> None:
        text = ctx.text
        start = text.find('id="ASIN"')
        if start < 0:
            return
        value = text.find('value="', start)
        if value < 0:
            return
        end = text.find('"', value + 7)
        if end > value + 7:
            ctx.cover_art_url = AMAZON_PRODUCT_URL + text[value + 7:end]

    # ------------------------------------------------------------------
    # Track rows
    # ------------------------------------------------------------------

    def _enter_tracks(self, ctx: ScanContext, pos: int) -> bool:
        ctx.cursor = pos
        return True

    def _add_track(self, ctx: ScanContext, title: str, artist: str = "", duration: int = 0) -> None:
        record = FieldRecord()
        if self._options.standard_tags:
            record.set(FieldType.TITLE, replace_html_entities(title))
            if artist:
                record.set(FieldType.ARTIST, replace_html_entities(artist))
            record.set(FieldType.TRACK, len(ctx.tracks) + 1)
        if duration:
            record.set(FieldType.DURATION, duration)
        ctx.tracks.append(record)

    def _read_title_col_row(self, ctx: ScanContext, pos: int) -> bool:
        text = ctx.text
        line_end = text.find("\n", pos)
        if line_end < 0:
            line_end = len(text)
        line = text[pos:line_end]
        ctx.cursor = line_end

        link = line.find("<a href=")
        if link < 0:
            return True
        found = _text_between(line, ">", "<", link)
        if found is None or not found[0]:
            return False
        title, title_end = found

        artist = ""
        if ctx.extras["has_artist"]:
            artist_col = line.find(_TITLE_COL, title_end)
            if artist_col >= 0:
                artist_link = line.find("<a href=", artist_col)
                if artist_link >= 0:
                    found_artist = _text_between(line, ">", "<", artist_link)
                    if found_artist is not None and found_artist[0]:
                        artist = found_artist[0]
                        if not ctx.extras["album_artist"]:
                            ctx.extras["album_artist"] = ctx.header.get(FieldType.ARTIST) or ""

        duration = 0
        runtime = line.find(_RUNTIME_COL, title_end)
        if runtime >= 0:
            found_runtime = _text_between(line, ">", "<", runtime + len(_RUNTIME_COL))
            if found_runtime is not None:
                duration = _parse_duration(found_runtime[0])

        self._add_track(ctx, title, artist, duration)
        return True

    def _read_list_row(self, ctx: ScanContext, pos: int) -> bool:
        text = ctx.text
        cell = text.find("<td>", pos)
        if cell < 0:
            return False
        end = text.find("</td>", cell)
        if end < 0:
            return False
        match = _NUMBERED_TITLE_RE.match(text[cell + 4:end])
        if not match:
            return False
        ctx.cursor = end
        self._add_track(ctx, match.group(1))
        return True

    def _read_popover_row(self, ctx: ScanContext, pos: int) -> bool:
        text = ctx.text
        link = text.find("<a", pos)
        if link < 0:
            return False
        found = _text_between(text, ">", "<", link)
        if found is None:
            return False
        title, end = found
        ctx.cursor = end

        duration = 0
        runtime = text.find(_POPOVER_DURATION, end)
        if runtime >= 0:
            runtime_end = text.find("</td>", runtime)
            if runtime_end > runtime:
                duration = _parse_duration(text[runtime + 1:runtime_end].replace("\n", "").replace("\r", ""))

        if title:
            self._add_track(ctx, title, duration=duration)
        return True
