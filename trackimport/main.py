"""Track Import -- Entry point: load config, set up logging, run one import."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import yaml

from trackimport.core.pattern_compiler import PatternError, compile_pattern
from trackimport.utils.constants import (
    APP_NAME,
    APP_VERSION,
    DEFAULT_CONFIG_FILENAME,
    DEFAULT_MAX_TIME_DIFFERENCE,
)
from trackimport.utils.logger import get_logger, setup_logger

_BOOL_KEYS = (
    "enable_track_increment",
    "enable_time_difference_check",
    "allow_growth",
    "keep_edited_placeholders",
)
_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
_SOURCE_OPTION_KEYS = frozenset({"standard_tags", "additional_tags", "cover_art"})


def _validate_patterns(config: dict, key: str, pattern_keys: tuple[str, ...]) -> list[str]:
    """Report malformed or non-compiling pattern entries, dropping them."""
    warnings: list[str] = []
    entries = config.get(key)
    if entries is None:
        return warnings
    if not isinstance(entries, list):
        warnings.append(f"{key} must be a list, got {type(entries).__name__}. Ignoring it.")
        config.pop(key)
        return warnings

    valid: list[dict] = []
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get("name"):
            warnings.append(f"{key} entry {entry!r} has no name. Ignoring it.")
            continue
        unknown = set(entry) - {"name", *pattern_keys}
        if unknown:
            warnings.append(
                f"{key} '{entry['name']}' has unknown keys {sorted(unknown)}. Ignoring it."
            )
            continue
        try:
            for pattern_key in pattern_keys:
                if pattern_key != "source":
                    compile_pattern(str(entry.get(pattern_key) or ""))
        except PatternError as e:
            warnings.append(f"{key} '{entry['name']}': {e.reason}. Ignoring it.")
            continue
        valid.append(entry)
    config[key] = valid
    return warnings


def validate_config(config: dict) -> list[str]:
    """Validate configuration values and return a list of warnings.

    Checks:
    - max_time_difference is a non-negative integer
    - Boolean switches are booleans
    - log_level is a known level
    - Pattern sets compile

    Invalid values are replaced with defaults (or dropped) in place.

    Args:
        config: Configuration dictionary.

    Returns:
        List of human-readable warning strings. Empty if all checks pass.
    """
    warnings: list[str] = []

    max_diff = config.get("max_time_difference", DEFAULT_MAX_TIME_DIFFERENCE)
    if isinstance(max_diff, bool) or not isinstance(max_diff, int) or max_diff < 0:
        warnings.append(
            f"max_time_difference must be a non-negative integer, got {max_diff!r}. "
            f"Using default ({DEFAULT_MAX_TIME_DIFFERENCE})."
        )
        config["max_time_difference"] = DEFAULT_MAX_TIME_DIFFERENCE

    for key in _BOOL_KEYS:
        if key in config and not isinstance(config[key], bool):
            warnings.append(f"{key} must be true or false, got {config[key]!r}. Using default.")
            config.pop(key)

    log_level = config.get("log_level")
    if log_level is not None and str(log_level).upper() not in _LOG_LEVELS:
        warnings.append(f"log_level '{log_level}' is not a logging level. Using INFO.")
        config["log_level"] = "INFO"

    warnings.extend(_validate_patterns(config, "pattern_sets", ("header", "track")))
    warnings.extend(
        _validate_patterns(config, "tags_pattern_sets", ("source", "extraction"))
    )

    source_options = config.get("source_options")
    if source_options is not None and not isinstance(source_options, dict):
        warnings.append("source_options must be a mapping of source name to options. Ignoring it.")
        config.pop("source_options")
    elif source_options:
        for name, options in list(source_options.items()):
            if options is None:
                continue
            if not isinstance(options, dict) or set(options) - _SOURCE_OPTION_KEYS:
                warnings.append(
                    f"source_options '{name}' must only set {sorted(_SOURCE_OPTION_KEYS)}. "
                    f"Using defaults."
                )
                source_options.pop(name)

    return warnings


def load_config(path: Path | str | None = None) -> dict:
    """Load configuration from a YAML file.

    Args:
        path: Config file; defaults to ``config/config.yaml`` next to the
            package. A missing file yields an empty config.

    Returns:
        Configuration dictionary (suitable for ``ImportConfig.from_dict()``).
    """
    config: dict = {}

    config_path = (
        Path(path) if path
        else Path(__file__).parent.parent / "config" / DEFAULT_CONFIG_FILENAME
    )
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}

    return config


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trackimport",
        description="Import a track list from text and align it with local audio files.",
    )
    parser.add_argument("textfile", type=Path, help="Text or HTML document to import")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--pattern", help="Name of the pattern set to use")
    mode.add_argument("--source", help="Source extractor to use (amazon, gnudb, tracktype)")
    parser.add_argument(
        "--files", nargs="*", default=[], type=Path,
        help="Audio files or directories forming the destination slots",
    )
    parser.add_argument("--config", type=Path, help="Path to a YAML configuration file")
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")
    return parser


def _format_duration(seconds: int) -> str:
    return f"{seconds // 60}:{seconds % 60:02d}" if seconds else "-"


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point. Returns the process exit code."""
    from trackimport.core.file_slots import FileSlotBuilder
    from trackimport.core.text_importer import TextImporter
    from trackimport.models.config import ImportConfig

    args = _build_parser().parse_args(argv)

    raw_config = load_config(args.config)

    # Validate the raw dict first (mutates to fix invalid values)
    config_warnings = validate_config(raw_config)

    config = ImportConfig.from_dict(raw_config)

    setup_logger(log_level=config.log_level, log_file=config.log_file)
    logger = get_logger("main")
    logger.info("%s v%s starting", APP_NAME, APP_VERSION)

    for warning in config_warnings:
        logger.warning("Config: %s", warning)

    try:
        text = args.textfile.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.error("Cannot read %s: %s", args.textfile, e)
        return 1

    destination = FileSlotBuilder().build(args.files)
    importer = TextImporter(config)
    try:
        if args.source:
            result = importer.import_source_document(args.source, text, destination)
        else:
            result = importer.import_with_pattern_set(text, destination, args.pattern)
    except KeyError as e:
        logger.error("%s", e.args[0] if e.args else e)
        return 2
    except PatternError as e:
        logger.error("Pattern error: %s", e)
        return 2

    for index, entry in enumerate(destination):
        record = entry.record
        flag = " !" if index < len(result.mismatches) and result.mismatches[index] else ""
        print(
            f"{record.track or index + 1:>3}  {_format_duration(entry.import_duration):>6}  "
            f"{record.artist or ''} - {record.title or ''}{flag}"
        )
    if destination.cover_art_url:
        print(f"Cover art: {destination.cover_art_url}")

    logger.info(
        "Imported %d record(s), %d skipped, %d duration mismatch(es)",
        result.record_count, len(result.skipped), result.mismatch_count,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
