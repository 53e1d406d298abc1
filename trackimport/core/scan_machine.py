"""Table-driven scanner for documents that a single pattern cannot describe.

A scanner is a list of ``Transition`` rows. In the current state the rows
are probed in table order; the first row whose marker occurs at or after
the cursor fires. Its action consumes text (moving the cursor) and returns
whether scanning should continue, then the machine enters the row's next
state. A row with ``marker=None`` fires unconditionally, which is used for
fallbacks. If no row of the current state fires, the scan is done.

Usage::

    table = [
        Transition(ScanState.SEARCHING, "<h1>", read_album, ScanState.IN_HEADER),
        ...
    ]
    ctx = ScanContext(text)
    run_scanner(table, ctx)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from trackimport.models.fields import FieldRecord
from trackimport.models.reconcile_state import ScanState
from trackimport.utils.logger import get_logger

logger = get_logger("core.scan_machine")


@dataclass
class ScanContext:
    """Mutable state shared by the actions of one scan.

    Attributes:
        text: Document being scanned.
        cursor: Current position in ``text``.
        header: Album-level fields found so far.
        tracks: Per-track records in document order.
        cover_art_url: Cover art URL, if the source provides one.
        extras: Scratch space for source-specific flags.
    """

    text: str
    cursor: int = 0
    header: FieldRecord = field(default_factory=FieldRecord)
    tracks: list[FieldRecord] = field(default_factory=list)
    cover_art_url: str | None = None
    extras: dict[str, Any] = field(default_factory=dict)

    def find(self, marker: str, start: int | None = None) -> int:
        """Position of ``marker`` at or after ``start`` (default: cursor), -1 if absent."""
        return self.text.find(marker, self.cursor if start is None else start)


# action(ctx, marker_pos) -> continue scanning?
ScanAction = Callable[[ScanContext, int], bool]


@dataclass(frozen=True)
class Transition:
    """One row of a scanner table.

    Attributes:
        state: State in which the row is considered.
        marker: Substring that must occur at/after the cursor, None to
            fire unconditionally.
        action: Called with the context and the marker position
            (the cursor for unconditional rows).
        next_state: State entered after the action.
    """

    state: ScanState
    marker: str | None
    action: ScanAction
    next_state: ScanState


def run_scanner(
    table: list[Transition],
    ctx: ScanContext,
    start: ScanState = ScanState.SEARCHING,
) -> ScanState:
    """Run a scanner table to completion.

    Args:
        table: Transition rows.
        ctx: Scan context, updated in place.
        start: Initial state.

    Returns:
        The final state (``ScanState.DONE`` unless an action stopped early).
    """
    state = start
    while state is not ScanState.DONE:
        for row in table:
            if row.state is not state:
                continue
            pos = ctx.cursor if row.marker is None else ctx.find(row.marker)
            if pos < 0:
                continue
            previous_cursor = ctx.cursor
            keep_going = row.action(ctx, pos)
            logger.debug("%s --%r--> %s", state.name, row.marker, row.next_state.name)
            if not keep_going:
                return state
            if row.next_state is state and ctx.cursor <= previous_cursor:
                # A self-loop that consumed nothing would never terminate
                return ScanState.DONE
            state = row.next_state
            break
        else:
            if state.is_track_listing():
                logger.debug("Track listing ended after %d row(s)", len(ctx.tracks))
            state = ScanState.DONE
    return state
