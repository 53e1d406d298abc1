"""Typed configuration model for Track Import.

Pattern definitions start from the built-in tables in
``trackimport.utils.constants`` and are then overridden by the user's
configuration file: a user set with the same name replaces the built-in
one, new names are appended in file order.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

from trackimport.utils.constants import (
    DEFAULT_MAX_TIME_DIFFERENCE,
    DEFAULT_PATTERN_SETS,
    DEFAULT_TAGS_PATTERN_SETS,
)


@dataclass(frozen=True)
class PatternSet:
    """A named pair of header and track patterns.

    Attributes:
        name: Display name, unique within the configuration.
        header: Pattern matched once for album-level fields (may be empty).
        track: Pattern matched repeatedly for per-track fields.
    """

    name: str
    header: str = ""
    track: str = ""


@dataclass(frozen=True)
class TagsPatternSet:
    """A named rule for deriving fields from other fields.

    Attributes:
        name: Display name.
        source: Format string rendered from the existing record.
        extraction: Pattern applied to the rendered text.
    """

    name: str
    source: str = ""
    extraction: str = ""


@dataclass
class SourceOptions:
    """Which fields a specialized source extractor should produce.

    Attributes:
        standard_tags: Title, artist, album, year, track number.
        additional_tags: Publisher, performer, conductor, composer, album artist.
        cover_art: Cover art URL.
    """

    standard_tags: bool = True
    additional_tags: bool = False
    cover_art: bool = False


def _default_pattern_sets() -> list[PatternSet]:
    return [PatternSet(*row) for row in DEFAULT_PATTERN_SETS]


def _default_tags_pattern_sets() -> list[TagsPatternSet]:
    return [TagsPatternSet(*row) for row in DEFAULT_TAGS_PATTERN_SETS]


def _override_by_name(defaults: list, overrides: list) -> list:
    """Replace defaults that share a name with an override, append the rest."""
    merged = {item.name: item for item in defaults}
    for item in overrides:
        merged[item.name] = item
    return list(merged.values())


@dataclass
class ImportConfig:
    """Strongly-typed configuration for track list imports.

    Attributes:
        pattern_sets: Available text import formats.
        tags_pattern_sets: Available import-from-tags rules.
        selected_pattern: Name of the pattern set used when none is given.
        enable_track_increment: Number tracks 1..n when the track pattern
            has no track placeholder.
        enable_time_difference_check: Flag entries whose file and import
            durations differ by more than ``max_time_difference``.
        max_time_difference: Duration tolerance in seconds.
        allow_growth: Append virtual entries for surplus imported records.
        keep_edited_placeholders: Keep zero-duration entries with user-edited
            records instead of removing them when an import is short.
        source_options: Per-source extractor options, keyed by source name.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        log_file: Path to log file (None = console only).
    """

    # --- Patterns ---
    pattern_sets: list[PatternSet] = field(default_factory=_default_pattern_sets)
    tags_pattern_sets: list[TagsPatternSet] = field(
        default_factory=_default_tags_pattern_sets
    )
    selected_pattern: str = "CSV unquoted"
    enable_track_increment: bool = True

    # --- Reconciliation ---
    enable_time_difference_check: bool = True
    max_time_difference: int = DEFAULT_MAX_TIME_DIFFERENCE
    allow_growth: bool = True
    keep_edited_placeholders: bool = False

    # --- Sources ---
    source_options: dict[str, SourceOptions] = field(default_factory=dict)

    # --- Logging ---
    log_level: str = "INFO"
    log_file: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> ImportConfig:
        """Create an ImportConfig from a raw dictionary (e.g., from YAML).

        Unknown keys are silently ignored. Pattern lists are layered on top
        of the built-in defaults.

        Args:
            data: Dictionary of configuration values.

        Returns:
            Populated ImportConfig instance.
        """
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in known_fields and v is not None}

        if "pattern_sets" in filtered:
            filtered["pattern_sets"] = _override_by_name(
                _default_pattern_sets(),
                [PatternSet(**item) for item in filtered["pattern_sets"]],
            )
        if "tags_pattern_sets" in filtered:
            filtered["tags_pattern_sets"] = _override_by_name(
                _default_tags_pattern_sets(),
                [TagsPatternSet(**item) for item in filtered["tags_pattern_sets"]],
            )
        if "source_options" in filtered:
            filtered["source_options"] = {
                name: SourceOptions(**(options or {}))
                for name, options in filtered["source_options"].items()
            }
        return cls(**filtered)

    def to_dict(self) -> dict:
        """Serialize the config to a dictionary.

        Returns:
            Dictionary of all configuration values.
        """
        return asdict(self)

    def get_pattern_set(self, name: str) -> PatternSet:
        """Look up a pattern set by name.

        Raises:
            KeyError: If no pattern set has this name.
        """
        for pattern_set in self.pattern_sets:
            if pattern_set.name == name:
                return pattern_set
        raise KeyError(f"Unknown pattern set: {name!r}")

    def get_tags_pattern_set(self, name: str) -> TagsPatternSet:
        """Look up an import-from-tags rule by name.

        Raises:
            KeyError: If no rule has this name.
        """
        for tags_set in self.tags_pattern_sets:
            if tags_set.name == name:
                return tags_set
        raise KeyError(f"Unknown tags pattern set: {name!r}")

    def options_for(self, source: str) -> SourceOptions:
        """Return the extractor options for a source, defaults if unset."""
        return self.source_options.get(source) or SourceOptions()
