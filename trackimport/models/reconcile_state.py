"""State enums for the reconciliation engine and the source scanners."""

from enum import Enum


class ReconcileState(Enum):
    """Cursor state while merging imported records into a destination."""

    ALIGNING = "aligning"
    EXTRACTED_EXHAUSTED = "extracted_exhausted"
    DESTINATION_EXHAUSTED = "destination_exhausted"
    DONE = "done"

    def is_terminal(self) -> bool:
        return self is ReconcileState.DONE


class ScanState(Enum):
    """Position of a source scanner within a detail page."""

    SEARCHING = "searching"
    IN_HEADER = "in_header"
    IN_TRACKS_TITLE_COLUMN = "in_tracks_title_column"
    IN_TRACKS_LIST_ROW = "in_tracks_list_row"
    IN_TRACKS_POPOVER = "in_tracks_popover"
    DONE = "done"

    def is_track_listing(self) -> bool:
        """Check if the scanner has committed to a track layout variant."""
        return self in {
            ScanState.IN_TRACKS_TITLE_COLUMN,
            ScanState.IN_TRACKS_LIST_ROW,
            ScanState.IN_TRACKS_POPOVER,
        }
