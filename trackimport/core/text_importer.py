"""Text importer -- one call from raw text to an updated destination."""

from __future__ import annotations

from dataclasses import dataclass, field

from trackimport.core.import_parser import (
    SkippedRecord,
    import_from_tags,
    match_header,
    match_tracks,
)
from trackimport.core.pattern_compiler import compile_pattern
from trackimport.core.reconciler import ReconcileReport, Reconciler, check_durations
from trackimport.core.source_extractor import get_extractor
from trackimport.models.config import ImportConfig
from trackimport.models.fields import FieldRecord
from trackimport.models.reconcile_state import ReconcileState
from trackimport.models.track_data import TrackDataSequence
from trackimport.utils.logger import get_logger

logger = get_logger("core.text_importer")


@dataclass
class ImportResult:
    """Summary of one import operation.

    Attributes:
        report: Reconciliation report.
        header: Album-level fields found, if any.
        record_count: Number of track records extracted.
        skipped: Records dropped because of a numeric conversion error.
        mismatches: Duration mismatch flags parallel to the destination,
            empty when the time difference check is disabled.
    """

    report: ReconcileReport
    header: FieldRecord | None = None
    record_count: int = 0
    skipped: list[SkippedRecord] = field(default_factory=list)
    mismatches: list[bool] = field(default_factory=list)

    @property
    def mismatch_count(self) -> int:
        return sum(self.mismatches)


class TextImporter:
    """Imports track lists from text using patterns or source extractors.

    Usage:
        importer = TextImporter(ImportConfig())
        result = importer.import_with_pattern_set(text, destination, "Track Title Time")
    """

    def __init__(self, config: ImportConfig, reconciler: Reconciler | None = None) -> None:
        """Initialize the importer.

        Args:
            config: Import configuration.
            reconciler: Reconciler to use; built from the config if None.
        """
        self._config = config
        self._reconciler = reconciler or Reconciler(
            allow_growth=config.allow_growth,
            keep_edited_placeholders=config.keep_edited_placeholders,
        )

    def import_text(
        self,
        text: str,
        destination: TrackDataSequence,
        header_format: str,
        track_format: str,
    ) -> ImportResult:
        """Import text described by a header and a track pattern.

        Args:
            text: Raw text.
            destination: Sequence updated in place.
            header_format: Header DSL pattern (may be empty).
            track_format: Track DSL pattern.

        Returns:
            Import summary. When neither pattern matches, the destination
            is left unchanged and the report shows nothing matched.

        Raises:
            PatternError: If either pattern does not compile.
        """
        header_pattern = compile_pattern(header_format)
        track_pattern = compile_pattern(track_format)

        skipped: list[SkippedRecord] = []
        header = match_header(header_pattern, text, on_skip=skipped.append)
        records = match_tracks(
            track_pattern,
            text,
            on_skip=skipped.append,
            track_increment=self._config.enable_track_increment,
        )
        if skipped:
            logger.warning("%d record(s) skipped due to invalid numbers", len(skipped))

        if not records and header is None:
            return self._nothing_found(skipped)

        report = self._reconciler.reconcile(destination, records, header)
        return self._finish(destination, report, header, len(records), skipped)

    def import_with_pattern_set(
        self,
        text: str,
        destination: TrackDataSequence,
        name: str | None = None,
    ) -> ImportResult:
        """Import text with a named pattern set from the configuration.

        Args:
            text: Raw text.
            destination: Sequence updated in place.
            name: Pattern set name; the configured selection if None.

        Raises:
            KeyError: If no pattern set has this name.
            PatternError: If the pattern set does not compile.
        """
        pattern_set = self._config.get_pattern_set(name or self._config.selected_pattern)
        logger.info("Importing with pattern set '%s'", pattern_set.name)
        return self.import_text(text, destination, pattern_set.header, pattern_set.track)

    def import_with_tags_pattern_set(self, destination: TrackDataSequence, name: str) -> int:
        """Derive fields from existing fields with a named tags pattern set.

        Returns:
            Number of entries updated.

        Raises:
            KeyError: If no tags pattern set has this name.
            PatternError: If the extraction pattern does not compile.
        """
        tags_set = self._config.get_tags_pattern_set(name)
        logger.info("Importing from tags with '%s'", tags_set.name)
        return import_from_tags(tags_set.source, tags_set.extraction, destination)

    def import_source_document(
        self,
        source: str,
        text: str,
        destination: TrackDataSequence,
    ) -> ImportResult:
        """Import a detail document with a specialized source extractor.

        Args:
            source: Source name, e.g. ``"amazon"`` or ``"gnudb"``.
            text: Raw response text.
            destination: Sequence updated in place.

        Raises:
            KeyError: If the source is unknown.
        """
        extractor = get_extractor(source, self._config.options_for(source))
        result = extractor.extract(text)
        if result.is_empty:
            return self._nothing_found([])
        destination.cover_art_url = result.cover_art_url

        if not result.tracks and result.header is not None:
            updated = self._reconciler.apply_header(destination, result.header)
            report = ReconcileReport(state=ReconcileState.DONE, matched=updated)
        else:
            report = self._reconciler.reconcile(destination, result.tracks, result.header)
        return self._finish(destination, report, result.header, len(result.tracks), [])

    def _nothing_found(self, skipped: list[SkippedRecord]) -> ImportResult:
        """Result for an import without header or records; nothing is committed."""
        logger.warning("Import found no header and no track records, destination left unchanged")
        return ImportResult(report=ReconcileReport(state=ReconcileState.DONE), skipped=skipped)

    def _finish(
        self,
        destination: TrackDataSequence,
        report: ReconcileReport,
        header: FieldRecord | None,
        record_count: int,
        skipped: list[SkippedRecord],
    ) -> ImportResult:
        mismatches: list[bool] = []
        if self._config.enable_time_difference_check:
            mismatches = check_durations(destination, self._config.max_time_difference)
            flagged = sum(mismatches)
            if flagged:
                logger.warning("%d track(s) differ in duration by more than %ds",
                               flagged, self._config.max_time_difference)
        return ImportResult(
            report=report,
            header=header,
            record_count=record_count,
            skipped=skipped,
            mismatches=mismatches,
        )
