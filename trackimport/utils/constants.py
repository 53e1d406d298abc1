"""Named constants for Track Import. No magic numbers."""

# --- Application ---
APP_NAME = "Track Import"
APP_VERSION = "0.1.0"

# --- Supported Audio Extensions ---
SUPPORTED_EXTENSIONS = frozenset({
    ".mp3",
    ".flac",
    ".m4a",
    ".aac",
    ".ogg",
    ".opus",
    ".wma",
    ".aiff",
    ".aif",
    ".wav",
    ".ape",
    ".wv",
})

# --- Duration Match Tolerance ---
DEFAULT_MAX_TIME_DIFFERENCE = 3  # Seconds between file and import duration
SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600

# --- CDDB ---
CDDB_FRAMES_PER_SECOND = 75

# --- Paths ---
DEFAULT_CONFIG_FILENAME = "config.yaml"

# --- Pattern Compiler ---
# Short codes are rewritten to their long placeholder names before compiling.
SHORT_PLACEHOLDER_CODES = {
    "s": "title",
    "l": "album",
    "a": "artist",
    "c": "comment",
    "y": "year",
    "t": "track",
    "g": "genre",
    "d": "duration",
}

# --- Import Sources ---
SOURCE_AMAZON = "amazon"
SOURCE_GNUDB = "gnudb"
SOURCE_TRACKTYPE = "tracktype"
AMAZON_PRODUCT_URL = "http://www.amazon.com/dp/"

# --- Default Import Formats ---
# (name, header pattern, track pattern), loaded before user-defined sets.
DEFAULT_PATTERN_SETS = (
    (
        "CSV unquoted",
        "",
        r"%{track}(\d+)\t%{title}([^\r\n\t]*)\t%{artist}([^\r\n\t]*)\t"
        r"%{album}([^\r\n\t]*)\t%{year}(\d+)\t%{genre}([^\r\n\t]*)\t"
        r"%{comment}([^\r\n\t]*)\t(?:\d+:)?%{duration}(\d+:\d+)",
    ),
    (
        "CSV quoted",
        "",
        r'"?%{track}(\d+)"?\t"?%{title}([^\r\n\t"]*)"?\t"?%{artist}([^\r\n\t"]*)"?\t'
        r'"?%{album}([^\r\n\t"]*)"?\t"?%{year}(\d+)"?\t"?%{genre}([^\r\n\t"]*)"?\t'
        r'"?%{comment}([^\r\n\t"]*)"?\t"?(?:\d+:)?%{duration}(\d+:\d+)',
    ),
    (
        "freedb HTML text",
        r"%{artist}(\S[^\r\n/]*\S)\s*/\s*%{album}(\S[^\r\n]*\S)[\r\n]+\s*"
        r"tracks:\s+\d+.*year:\s*%{year}(\d+)?.*genre:\s*%{genre}(\S[^\r\n]*\S)?[\r\n]",
        r"[\r\n]%{track}(\d+)[\.\s]+%{duration}(\d+:\d+)\s+%{title}(\S[^\r\n]*\S)",
    ),
    (
        "freedb HTML source",
        r"<[^>]+>%{artist}([^<\s][^\r\n/]*\S)\s*/\s*%{album}(\S[^\r\n]*[^\s>])<[^>]+>"
        r"[\r\n]+\s*tracks:\s+\d+.*year:\s*%{year}(\d+)?.*genre:\s*"
        r"%{genre}(\S[^\r\n>]*\S)?<[^>]+>[\r\n]",
        r"<td[^>]*>\s*%{track}(\d+).</td><td[^>]*>\s*%{duration}(\d+:\d+)</td>"
        r"<td[^>]*>(?:<[^>]+>)?%{title}([^<\r\n]+)",
    ),
    ("Title", "", r"\s*%{title}(\S[^\r\n]*\S)\s*"),
    ("Track Title", "", r"\s*%{track}(\d+)[\.\s]+%{title}(\S[^\r\n]*\S)\s*"),
    (
        "Track Title Time",
        "",
        r"\s*%{track}(\d+)[\.\s]+%{title}(\S[^\r\n]*\S)\s+%{duration}(\d+:\d+)\s*",
    ),
    ("Custom Format", "", ""),
)

# (name, source format, extraction pattern) for importing tags from other tags.
DEFAULT_TAGS_PATTERN_SETS = (
    ("Artist to Album Artist", "%{artist}", r"%{albumartist}(.+)"),
    ("Album Artist to Artist", "%{albumartist}", r"%{artist}(.+)"),
    ("Artist to Composer", "%{artist}", r"%{composer}(.+)"),
    ("Artist to Conductor", "%{artist}", r"%{conductor}(.+)"),
    (
        "Track Number from Title",
        "%{title}",
        r"\s*%{track}(\d+)[\.\s]+%{title}(\S.*\S)\s*",
    ),
    ("Track Number to Title", "%{track} %{title}", r"%{title}(.+)"),
    (
        "Title Annotation to Comment",
        "%{title}",
        r"%{title}(.+) +\(%{comment}((?:Bonus|Remix)[^)]*)\)",
    ),
    ("Custom Format", "", ""),
)
