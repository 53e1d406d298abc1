"""Generic header/track matcher -- applies compiled patterns to raw text."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from trackimport.core.pattern_compiler import CompiledPattern, PlaceholderGroup, compile_pattern
from trackimport.models.fields import FieldRecord, FieldType
from trackimport.models.track_data import TrackDataSequence
from trackimport.utils.constants import SECONDS_PER_HOUR, SECONDS_PER_MINUTE
from trackimport.utils.logger import get_logger

logger = get_logger("core.import_parser")

_CLOCK_RE = re.compile(r"^\s*(?:(\d+):)?(\d+):(\d{1,2})\s*$")
_INTEGER_RE = re.compile(r"^\s*(\d+)\s*$")
_TRACK_RE = re.compile(r"^\s*(\d+)\s*(?:/\s*(\d*)\s*)?$")

# Placeholder names that must be written as a plain number of seconds
_SECONDS_PLACEHOLDERS = frozenset({"duration-seconds", "durationseconds", "duration_seconds"})


@dataclass(frozen=True)
class SkippedRecord:
    """A candidate record dropped because a numeric capture did not parse.

    Attributes:
        index: Zero-based ordinal of the match in the document.
        field: Name of the field that failed to convert.
        raw_value: The captured text.
        reason: Human-readable description.
    """

    index: int
    field: str
    raw_value: str
    reason: str


SkipCallback = Callable[[SkippedRecord], None]


class _ConversionError(ValueError):
    pass


def parse_duration(text: str) -> int | None:
    """Convert ``[H:]M:SS`` or a plain number of seconds to seconds.

    Returns:
        Total seconds, or None if the text is neither form.
    """
    match = _CLOCK_RE.match(text)
    if match:
        hours = int(match.group(1) or 0)
        return hours * SECONDS_PER_HOUR + int(match.group(2)) * SECONDS_PER_MINUTE + int(match.group(3))
    match = _INTEGER_RE.match(text)
    if match:
        return int(match.group(1))
    return None


def _normalize(group: PlaceholderGroup, raw: str) -> str:
    """Convert a capture into the canonical text stored in the record.

    Raises:
        _ConversionError: If a numeric field has non-numeric text.
    """
    field_type = group.field_id.type
    if field_type is FieldType.DURATION:
        if group.placeholder in _SECONDS_PLACEHOLDERS:
            match = _INTEGER_RE.match(raw)
            if not match:
                raise _ConversionError("expected a number of seconds")
            return str(int(match.group(1)))
        seconds = parse_duration(raw)
        if seconds is None:
            raise _ConversionError("expected a duration like M:SS")
        return str(seconds)
    if field_type is FieldType.TRACK:
        match = _TRACK_RE.match(raw)
        if not match:
            raise _ConversionError("expected a track number")
        return str(int(match.group(1)))
    if field_type.is_numeric():
        match = _INTEGER_RE.match(raw)
        if not match:
            raise _ConversionError("expected an integer")
        return str(int(match.group(1)))
    return raw


def _record_from_match(
    pattern: CompiledPattern,
    match: re.Match,
    index: int,
    on_skip: SkipCallback | None,
) -> FieldRecord | None:
    """Build a record from one match, None if it was skipped or empty."""
    record = FieldRecord()
    for group in pattern.fields:
        raw = match.group(group.group)
        if not raw:
            continue
        try:
            value = _normalize(group, raw)
        except _ConversionError as exc:
            skipped = SkippedRecord(index, str(group.field_id), raw, str(exc))
            logger.debug("Skipping record %d: %s=%r (%s)", index, skipped.field, raw, skipped.reason)
            if on_skip:
                on_skip(skipped)
            return None
        record.add(group.field_id, value)
    return None if record.is_empty() else record


def match_header(
    pattern: CompiledPattern,
    text: str,
    on_skip: SkipCallback | None = None,
) -> FieldRecord | None:
    """Match the header pattern once against the text.

    Args:
        pattern: Compiled header pattern.
        text: Raw document text.
        on_skip: Optional callback for a header dropped by a numeric error.

    Returns:
        Album-level fields, or None if the pattern is empty, does not match
        or captured nothing.
    """
    if pattern.is_empty:
        return None
    match = pattern.regex.search(text)
    if match is None:
        return None
    return _record_from_match(pattern, match, 0, on_skip)


def match_tracks(
    pattern: CompiledPattern,
    text: str,
    on_skip: SkipCallback | None = None,
    track_increment: bool = False,
) -> list[FieldRecord]:
    """Match the track pattern repeatedly in document order.

    Args:
        pattern: Compiled track pattern.
        text: Raw document text.
        on_skip: Optional callback receiving every dropped record.
        track_increment: Number records 1..n if the pattern has no track
            placeholder.

    Returns:
        One record per successful, non-empty match. Empty if nothing matches.
    """
    records: list[FieldRecord] = []
    if pattern.is_empty:
        return records

    number_tracks = track_increment and not pattern.has_field(FieldType.TRACK)
    for index, match in enumerate(pattern.regex.finditer(text)):
        if match.end() == match.start():
            # An empty match means the pattern no longer consumes input
            break
        record = _record_from_match(pattern, match, index, on_skip)
        if record is None:
            continue
        if number_tracks:
            record.set(FieldType.TRACK, len(records) + 1)
        records.append(record)

    logger.debug("Track pattern %r produced %d record(s)", pattern.source, len(records))
    return records


def import_from_tags(
    source_format: str,
    extraction_pattern: str,
    sequence: TrackDataSequence,
) -> int:
    """Derive fields from fields already present in each record.

    For every enabled entry, ``source_format`` is rendered from the entry's
    record (see ``FieldRecord.format_string``) and the extraction pattern
    is matched once against the result. Captured fields are set on the
    record, replacing existing values.

    Args:
        source_format: Format string such as ``"%{title}"``.
        extraction_pattern: DSL pattern such as ``"%{track}(\\d+) %{title}(.+)"``.
        sequence: Entries to update in place.

    Returns:
        Number of entries that received at least one field.

    Raises:
        PatternError: If the extraction pattern does not compile.
    """
    pattern = compile_pattern(extraction_pattern)
    updated = 0
    for entry in sequence:
        if not entry.enabled:
            continue
        text = entry.record.format_string(source_format)
        extracted = match_header(pattern, text)
        if extracted is None:
            continue
        for fld in extracted:
            entry.record.set(fld.id, fld.value)
        updated += 1
    logger.info("Import from tags updated %d of %d entries", updated, len(sequence))
    return updated
