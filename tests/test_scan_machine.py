"""Tests for the table-driven scanner interpreter."""

from __future__ import annotations

from trackimport.core.scan_machine import ScanContext, Transition, run_scanner
from trackimport.models.fields import FieldRecord, FieldType
from trackimport.models.reconcile_state import ScanState


def _read_item(ctx: ScanContext, pos: int) -> bool:
    start = pos + len("<li>")
    end = ctx.text.find("</li>", start)
    if end < 0:
        return False
    record = FieldRecord()
    record.set(FieldType.TITLE, ctx.text[start:end])
    ctx.tracks.append(record)
    ctx.cursor = end
    return True


def _read_album(ctx: ScanContext, pos: int) -> bool:
    start = pos + len("<h1>")
    end = ctx.text.find("</h1>", start)
    ctx.header.set(FieldType.ALBUM, ctx.text[start:end])
    ctx.cursor = end
    return True


def _skip(ctx: ScanContext, pos: int) -> bool:
    return True


TABLE = [
    Transition(ScanState.SEARCHING, "<h1>", _read_album, ScanState.IN_HEADER),
    Transition(ScanState.SEARCHING, None, _skip, ScanState.IN_HEADER),
    Transition(ScanState.IN_HEADER, "<ol>", _skip, ScanState.IN_TRACKS_LIST_ROW),
    Transition(ScanState.IN_TRACKS_LIST_ROW, "<li>", _read_item, ScanState.IN_TRACKS_LIST_ROW),
]


class TestRunScanner:
    def test_header_and_rows(self):
        ctx = ScanContext("<h1>Album</h1><ol><li>One</li><li>Two</li></ol>")
        assert run_scanner(TABLE, ctx) is ScanState.DONE
        assert ctx.header.album == "Album"
        assert [r.title for r in ctx.tracks] == ["One", "Two"]

    def test_unconditional_fallback(self):
        ctx = ScanContext("<ol><li>Only</li></ol>")
        run_scanner(TABLE, ctx)
        assert ctx.header.is_empty()
        assert [r.title for r in ctx.tracks] == ["Only"]

    def test_no_marker_ends_scan(self):
        ctx = ScanContext("<h1>Album</h1> no list")
        assert run_scanner(TABLE, ctx) is ScanState.DONE
        assert ctx.tracks == []

    def test_action_can_stop(self):
        ctx = ScanContext("<ol><li>One</li><li>broken")
        state = run_scanner(TABLE, ctx)
        assert state is ScanState.IN_TRACKS_LIST_ROW
        assert [r.title for r in ctx.tracks] == ["One"]

    def test_marker_before_cursor_is_ignored(self):
        ctx = ScanContext("<li>Early</li><h1>Album</h1><ol><li>Late</li>")
        run_scanner(TABLE, ctx)
        assert [r.title for r in ctx.tracks] == ["Late"]

    def test_self_loop_without_progress_terminates(self):
        table = [Transition(ScanState.SEARCHING, "x", _skip, ScanState.SEARCHING)]
        assert run_scanner(table, ScanContext("xxx")) is ScanState.DONE

    def test_start_state(self):
        ctx = ScanContext("<li>A</li>")
        run_scanner(TABLE, ctx, start=ScanState.IN_TRACKS_LIST_ROW)
        assert [r.title for r in ctx.tracks] == ["A"]


class TestScanState:
    def test_track_listing_states(self):
        assert ScanState.IN_TRACKS_POPOVER.is_track_listing()
        assert not ScanState.IN_HEADER.is_track_listing()
        assert not ScanState.DONE.is_track_listing()
