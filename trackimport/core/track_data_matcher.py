"""Re-order imported data across destination entries.

After a reconcile, imported data sits in document order. These helpers
permute the (record, import duration) pairs so that they line up with the
local files by duration, by track number or by title similarity. File
durations and paths stay where they are. Each function returns False and
leaves the sequence unchanged if no complete assignment can be made.
"""

from __future__ import annotations

from typing import Callable

from rapidfuzz import fuzz

from trackimport.models.track_data import TrackDataSequence
from trackimport.utils.constants import DEFAULT_MAX_TIME_DIFFERENCE
from trackimport.utils.logger import get_logger

logger = get_logger("core.track_data_matcher")

_UNASSIGNED = -1


def _apply_assignment(sequence: TrackDataSequence, assigned_from: list[int]) -> None:
    """Give entry i the imported data previously held by entry assigned_from[i]."""
    old = [(entry.record, entry.import_duration) for entry in sequence]
    for entry, source in zip(sequence, assigned_from):
        entry.record, entry.import_duration = old[source]


def _greedy_assign(
    count: int,
    score: Callable[[int, int], float],
    assigned_to: list[int],
    assigned_from: list[int],
    files_first: bool,
) -> bool:
    """Greedily pair files with imports by best score.

    Args:
        count: Number of entries.
        score: score(file_index, import_index), higher is better.
        assigned_to: Import index -> file index, updated in place.
        assigned_from: File index -> import index, updated in place.
        files_first: Walk the imports and pick the best free file for
            each (used when there are more files than imports); otherwise
            walk the files and pick the best free import.

    Returns:
        True if every entry was paired.
    """
    for i in range(count):
        if files_first:
            if assigned_to[i] != _UNASSIGNED:
                continue
            candidates = [j for j in range(count) if assigned_from[j] == _UNASSIGNED]
            if not candidates:
                logger.debug("No match for track %d", i)
                return False
            best = max(candidates, key=lambda j: score(j, i))
            assigned_to[i] = best
            assigned_from[best] = i
        else:
            if assigned_from[i] != _UNASSIGNED:
                continue
            candidates = [j for j in range(count) if assigned_to[j] == _UNASSIGNED]
            if not candidates:
                logger.debug("No match for track %d", i)
                return False
            best = max(candidates, key=lambda j: score(i, j))
            assigned_from[i] = best
            assigned_to[best] = i
    return True


def match_with_length(
    sequence: TrackDataSequence,
    diff_check: bool = False,
    max_diff: int = DEFAULT_MAX_TIME_DIFFERENCE,
) -> bool:
    """Pair files and imported data by closest duration.

    Args:
        sequence: Entries to re-order in place.
        diff_check: Keep imported data on entries whose durations already
            agree within ``max_diff`` seconds.
        max_diff: Tolerance in seconds used with ``diff_check``.

    Returns:
        True on success, False if the sequence was left unchanged.
    """
    count = len(sequence)
    file_lengths = [entry.file_duration for entry in sequence]
    import_lengths = [entry.import_duration for entry in sequence]
    assigned_to = [_UNASSIGNED] * count
    assigned_from = [_UNASSIGNED] * count

    if diff_check:
        for i in range(count):
            if (
                file_lengths[i] and import_lengths[i]
                and abs(file_lengths[i] - import_lengths[i]) <= max_diff
            ):
                assigned_to[i] = assigned_from[i] = i

    num_files = sum(1 for length in file_lengths if length > 0)
    num_imports = sum(1 for length in import_lengths if length > 0)
    ok = _greedy_assign(
        count,
        lambda f, i: -abs(file_lengths[f] - import_lengths[i]),
        assigned_to,
        assigned_from,
        files_first=num_files > num_imports,
    )
    if ok:
        _apply_assignment(sequence, assigned_from)
    return ok


def match_with_track(sequence: TrackDataSequence) -> bool:
    """Move imported data to the position given by its track number.

    Records without a usable track number fill the remaining positions in
    order.
    """
    count = len(sequence)
    positions: list[int] = []
    assigned_to = [_UNASSIGNED] * count
    assigned_from = [_UNASSIGNED] * count

    # Keep records that are already in place
    for i, entry in enumerate(sequence):
        track = entry.record.track
        position = track - 1 if track is not None and 0 < track <= count else _UNASSIGNED
        positions.append(position)
        if position == i:
            assigned_to[i] = assigned_from[i] = i

    for i, position in enumerate(positions):
        if assigned_to[i] == _UNASSIGNED and position != _UNASSIGNED:
            if assigned_from[position] == _UNASSIGNED:
                assigned_from[position] = i
                assigned_to[i] = position

    unassigned = 0
    for i in range(count):
        if assigned_from[i] != _UNASSIGNED:
            continue
        while unassigned < count and assigned_to[unassigned] != _UNASSIGNED:
            unassigned += 1
        if unassigned >= count:
            logger.debug("No track assigned to %d", i)
            return False
        assigned_from[i] = unassigned
        assigned_to[unassigned] = i
        unassigned += 1

    _apply_assignment(sequence, assigned_from)
    return True


def _normalize_words(text: str) -> str:
    return " ".join("".join(c if c.isalnum() else " " for c in text.lower()).split())


def match_with_title(sequence: TrackDataSequence) -> bool:
    """Pair files and imported data by similarity of file name and title.

    Similarity is the ``rapidfuzz`` token set ratio, so word order and
    extra words such as track numbers in the file name do not matter.
    """
    count = len(sequence)
    file_words = [_normalize_words(entry.file_stem) for entry in sequence]
    title_words = [_normalize_words(entry.record.title or "") for entry in sequence]
    assigned_to = [_UNASSIGNED] * count
    assigned_from = [_UNASSIGNED] * count

    def score(file_index: int, import_index: int) -> float:
        if not file_words[file_index] or not title_words[import_index]:
            return 0.0
        return fuzz.token_set_ratio(file_words[file_index], title_words[import_index])

    num_files = sum(1 for words in file_words if words)
    num_imports = sum(1 for words in title_words if words)
    ok = _greedy_assign(
        count, score, assigned_to, assigned_from, files_first=num_files > num_imports
    )
    if ok:
        _apply_assignment(sequence, assigned_from)
    return ok
