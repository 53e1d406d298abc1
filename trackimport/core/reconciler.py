"""Reconciliation engine -- merges imported records into destination slots.

Destination entries are matched with imported records by position. When
the import runs out first, the remaining placeholder entries (file
duration 0) are removed and the remaining real files are cleared. When the
destination runs out first, the surplus records are appended as virtual
entries. Disabled entries are skipped and never modified.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from trackimport.models.fields import FieldRecord, FieldType
from trackimport.models.reconcile_state import ReconcileState
from trackimport.models.track_data import TrackDataEntry, TrackDataSequence
from trackimport.utils.logger import get_logger

logger = get_logger("core.reconciler")


@dataclass
class ReconcileReport:
    """Outcome of one reconciliation.

    Attributes:
        state: Final state, always ``ReconcileState.DONE``.
        exhausted: Which side ran out first (``EXTRACTED_EXHAUSTED`` or
            ``DESTINATION_EXHAUSTED``), None if both ended together.
        matched: Entries that received an imported record.
        appended: Virtual entries added for surplus records.
        cleared: Real entries left without imported data.
        removed: Placeholder entries deleted.
        dropped: Surplus records discarded because growth was not allowed.
        unmatched_slots: Final indices of the cleared entries.
    """

    state: ReconcileState = ReconcileState.ALIGNING
    exhausted: ReconcileState | None = None
    matched: int = 0
    appended: int = 0
    cleared: int = 0
    removed: int = 0
    dropped: int = 0
    unmatched_slots: list[int] = field(default_factory=list)


def merge_with_header(record: FieldRecord, header: FieldRecord | None) -> FieldRecord:
    """Return a copy of ``record`` with header fields layered underneath."""
    merged = record.copy()
    if header is not None:
        merged.merge(header, only_if_empty=True)
    return merged


class Reconciler:
    """Aligns an imported record sequence with a destination sequence.

    Usage:
        reconciler = Reconciler()
        report = reconciler.reconcile(destination, records, header)
    """

    def __init__(self, allow_growth: bool = True, keep_edited_placeholders: bool = False) -> None:
        """Initialize the reconciler.

        Args:
            allow_growth: Append virtual entries for records beyond the end
                of the destination. If False they are dropped.
            keep_edited_placeholders: Keep zero-duration entries whose record
                has user edits (changed flag) instead of removing them.
        """
        self._allow_growth = allow_growth
        self._keep_edited_placeholders = keep_edited_placeholders

    def reconcile(
        self,
        destination: TrackDataSequence,
        records: list[FieldRecord],
        header: FieldRecord | None = None,
    ) -> ReconcileReport:
        """Merge records into the destination in place.

        Args:
            destination: Destination sequence, mutated in place.
            records: Imported per-track records in document order.
            header: Album-level fields applied under every record.

        Returns:
            Report with counts and the indices of unmatched slots.
        """
        report = ReconcileReport()
        dest_index = 0
        record_index = 0
        state = ReconcileState.ALIGNING

        while not state.is_terminal():
            if state is ReconcileState.ALIGNING:
                while dest_index < len(destination) and not destination[dest_index].enabled:
                    dest_index += 1
                dest_done = dest_index >= len(destination)
                records_done = record_index >= len(records)
                if records_done and dest_done:
                    state = ReconcileState.DONE
                elif records_done:
                    state = report.exhausted = ReconcileState.EXTRACTED_EXHAUSTED
                elif dest_done:
                    state = report.exhausted = ReconcileState.DESTINATION_EXHAUSTED
                else:
                    merged = merge_with_header(records[record_index], header)
                    destination[dest_index].assign(merged, self._import_duration(merged))
                    report.matched += 1
                    dest_index += 1
                    record_index += 1

            elif state is ReconcileState.EXTRACTED_EXHAUSTED:
                self._release_remaining(destination, dest_index, report)
                state = ReconcileState.DONE

            elif state is ReconcileState.DESTINATION_EXHAUSTED:
                for record in records[record_index:]:
                    if not self._allow_growth:
                        report.dropped += 1
                        continue
                    merged = merge_with_header(record, header)
                    destination.append(TrackDataEntry(
                        record=merged,
                        import_duration=self._import_duration(merged),
                        virtual=True,
                    ))
                    report.appended += 1
                state = ReconcileState.DONE

        report.state = state
        logger.info(
            "Reconciled %d record(s) into %d slot(s): matched=%d appended=%d "
            "cleared=%d removed=%d dropped=%d",
            len(records), len(destination), report.matched, report.appended,
            report.cleared, report.removed, report.dropped,
        )
        return report

    def apply_header(self, destination: TrackDataSequence, header: FieldRecord) -> int:
        """Give every enabled entry a copy of the header.

        Used when a source provides album metadata but no track rows.

        Returns:
            Number of entries updated.
        """
        updated = 0
        for entry in destination:
            if entry.enabled:
                entry.record = header.copy()
                updated += 1
        logger.info("Applied album header to %d entries", updated)
        return updated

    def _release_remaining(
        self,
        destination: TrackDataSequence,
        start: int,
        report: ReconcileReport,
    ) -> None:
        index = start
        while index < len(destination):
            entry = destination[index]
            if not entry.enabled:
                index += 1
                continue
            if entry.file_duration == 0:
                if self._keep_edited_placeholders and entry.record.is_changed():
                    # User edits survive; the entry just gets no import
                    entry.import_duration = 0
                    report.unmatched_slots.append(index)
                    index += 1
                    continue
                del destination[index]
                report.removed += 1
                continue
            entry.clear_import()
            report.cleared += 1
            report.unmatched_slots.append(index)
            index += 1

    @staticmethod
    def _import_duration(record: FieldRecord) -> int:
        return record.get_int(FieldType.DURATION) or 0


def check_durations(destination: TrackDataSequence, tolerance: int) -> list[bool]:
    """Flag entries whose file and import durations differ beyond a tolerance.

    Only entries with both durations known (non-zero) can be flagged. The
    flag is advisory and stored in ``entry.duration_mismatch``.

    Args:
        destination: Sequence to check.
        tolerance: Maximum allowed difference in seconds.

    Returns:
        Mismatch flags parallel to the destination entries.
    """
    flags: list[bool] = []
    for entry in destination:
        mismatch = (
            entry.file_duration > 0
            and entry.import_duration > 0
            and abs(entry.file_duration - entry.import_duration) > tolerance
        )
        entry.duration_mismatch = mismatch
        flags.append(mismatch)
    return flags
