"""Field model -- ordered metadata records keyed by semantic field identifiers."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Iterator, Union

from trackimport.utils.constants import SHORT_PLACEHOLDER_CODES


class FieldType(Enum):
    """Semantic identifiers for metadata fields."""

    TITLE = "title"
    ARTIST = "artist"
    ALBUM = "album"
    COMMENT = "comment"
    DATE = "date"
    TRACK = "track number"
    TRACK_TOTAL = "total tracks"
    GENRE = "genre"
    ALBUM_ARTIST = "album artist"
    COMPOSER = "composer"
    CONDUCTOR = "conductor"
    PERFORMER = "performer"
    PUBLISHER = "publisher"
    PICTURE_URL = "picture url"
    WEBSITE = "website"
    DURATION = "duration"
    FILE_NAME = "file name"
    FILE_PATH = "file path"
    OTHER = "other"

    def is_numeric(self) -> bool:
        """Check if values of this type are stored as decimal integers."""
        return self in _NUMERIC_TYPES

    def is_multi_valued(self) -> bool:
        """Check if a record may hold several values of this type."""
        return self in _MULTI_VALUED_TYPES

    def is_tag(self) -> bool:
        """Check if this field is written to destination tags."""
        return self not in _NON_TAG_TYPES


_NUMERIC_TYPES = frozenset({
    FieldType.DATE, FieldType.TRACK, FieldType.TRACK_TOTAL, FieldType.DURATION,
})
_MULTI_VALUED_TYPES = frozenset({FieldType.PERFORMER, FieldType.COMPOSER})
_NON_TAG_TYPES = frozenset({
    FieldType.DURATION, FieldType.FILE_NAME, FieldType.FILE_PATH,
})

# Normalized names (lowercase, no blanks, dashes or underscores) -> type
_NAME_ALIASES = {
    "title": FieldType.TITLE,
    "artist": FieldType.ARTIST,
    "album": FieldType.ALBUM,
    "comment": FieldType.COMMENT,
    "year": FieldType.DATE,
    "date": FieldType.DATE,
    "track": FieldType.TRACK,
    "tracknumber": FieldType.TRACK,
    "tracktotal": FieldType.TRACK_TOTAL,
    "totaltracks": FieldType.TRACK_TOTAL,
    "trackscount": FieldType.TRACK_TOTAL,
    "genre": FieldType.GENRE,
    "albumartist": FieldType.ALBUM_ARTIST,
    "composer": FieldType.COMPOSER,
    "conductor": FieldType.CONDUCTOR,
    "performer": FieldType.PERFORMER,
    "publisher": FieldType.PUBLISHER,
    "label": FieldType.PUBLISHER,
    "pictureurl": FieldType.PICTURE_URL,
    "coverarturl": FieldType.PICTURE_URL,
    "url": FieldType.WEBSITE,
    "website": FieldType.WEBSITE,
    "duration": FieldType.DURATION,
    "durationmmss": FieldType.DURATION,
    "durationseconds": FieldType.DURATION,
    "file": FieldType.FILE_NAME,
    "filename": FieldType.FILE_NAME,
    "filepath": FieldType.FILE_PATH,
}

_NAME_NOISE_RE = re.compile(r"[\s\-_]+")
_TRACK_NUMBER_RE = re.compile(r"^\s*(\d+)\s*(?:/\s*\d*\s*)?$")
_FORMAT_CODE_RE = re.compile(r"%%|%\{([^}]+)\}|%([" + "".join(SHORT_PLACEHOLDER_CODES) + r"])")


def normalize_field_name(name: str) -> str:
    """Normalize a user-supplied field name for alias lookup."""
    return _NAME_NOISE_RE.sub("", name).lower()


@dataclass(frozen=True)
class FieldId:
    """Hashable field identifier.

    Attributes:
        type: Semantic field type.
        name: Free-form name, only used for ``FieldType.OTHER``.
    """

    type: FieldType
    name: str = ""

    @classmethod
    def from_name(cls, name: str) -> FieldId:
        """Resolve a placeholder or configuration name to an identifier.

        Unknown names become custom identifiers so that user patterns can
        capture fields this module does not know about.
        """
        field_type = _NAME_ALIASES.get(normalize_field_name(name))
        if field_type is not None:
            return cls(field_type)
        return cls(FieldType.OTHER, " ".join(name.split()).lower())

    def __str__(self) -> str:
        return self.name if self.type is FieldType.OTHER else self.type.value


FieldKey = Union[FieldId, FieldType, str]


def to_field_id(key: FieldKey) -> FieldId:
    """Coerce a FieldId, FieldType or name into a FieldId."""
    if isinstance(key, FieldId):
        return key
    if isinstance(key, FieldType):
        return FieldId(key)
    return FieldId.from_name(key)


def _canonical(value: object) -> str:
    if isinstance(value, bool):
        return str(int(value))
    return str(value)


@dataclass
class Field:
    """One metadata value.

    Attributes:
        id: Field identifier.
        value: Value as text; numeric fields hold canonical decimal text.
        enabled: Whether the field should be written to a destination.
        changed: Set by callers when the value differs from a known baseline.
    """

    id: FieldId
    value: str
    enabled: bool = True
    changed: bool = False


class FieldRecord:
    """Insertion-ordered collection of fields with O(1) identifier lookup.

    Identifiers are unique except for multi-valued types (performer,
    composer), which can carry several values added with ``add()``.

    Usage::

        record = FieldRecord()
        record.set(FieldType.TITLE, "Opener")
        record.set("track", 1)
        record.get("track number")  # -> "1"
    """

    def __init__(self, fields: Iterable[Field] | None = None) -> None:
        self._fields: dict[FieldId, list[Field]] = {}
        for fld in fields or ():
            self._fields.setdefault(fld.id, []).append(replace(fld))

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def set(self, key: FieldKey, value: object) -> None:
        """Insert or overwrite a field. Existing flags are kept."""
        field_id = to_field_id(key)
        text = _canonical(value)
        existing = self._fields.get(field_id)
        if existing:
            existing[0].value = text
            del existing[1:]
        else:
            self._fields[field_id] = [
                Field(field_id, text, enabled=field_id.type.is_tag())
            ]

    def add(self, key: FieldKey, value: object) -> None:
        """Append a value for multi-valued identifiers, else behave like set()."""
        field_id = to_field_id(key)
        existing = self._fields.get(field_id)
        if existing and field_id.type.is_multi_valued():
            existing.append(
                Field(field_id, _canonical(value), enabled=field_id.type.is_tag())
            )
        else:
            self.set(field_id, value)

    def remove(self, key: FieldKey) -> None:
        """Remove all values of a field (no-op if absent)."""
        self._fields.pop(to_field_id(key), None)

    def merge(self, other: FieldRecord, only_if_empty: bool = False) -> None:
        """Copy the fields of another record into this one.

        Args:
            other: Source record.
            only_if_empty: If True, fields already present here are kept,
                which layers ``other`` underneath this record.
        """
        for field_id, fields in other._fields.items():
            if only_if_empty and field_id in self._fields:
                continue
            self._fields[field_id] = [replace(fld) for fld in fields]

    def clear(self) -> None:
        """Remove all fields."""
        self._fields.clear()

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def get(self, key: FieldKey) -> str | None:
        """Return the (first) value of a field, or None if absent."""
        fields = self._fields.get(to_field_id(key))
        return fields[0].value if fields else None

    def get_all(self, key: FieldKey) -> list[str]:
        """Return all values of a field in insertion order."""
        return [fld.value for fld in self._fields.get(to_field_id(key), ())]

    def get_field(self, key: FieldKey) -> Field | None:
        """Return the (first) Field object, e.g. to toggle its flags."""
        fields = self._fields.get(to_field_id(key))
        return fields[0] if fields else None

    def get_int(self, key: FieldKey) -> int | None:
        """Parse a field as integer; ``"5/12"`` yields 5.

        Returns:
            The integer value, or None if absent or not numeric.
        """
        value = self.get(key)
        if value is None:
            return None
        match = _TRACK_NUMBER_RE.match(value)
        return int(match.group(1)) if match else None

    def is_empty(self) -> bool:
        return not self._fields

    def is_changed(self) -> bool:
        """Check if any field carries the changed flag."""
        return any(fld.changed for fld in self)

    def copy(self) -> FieldRecord:
        return FieldRecord(self)

    def as_dict(self) -> dict[str, str]:
        """Serialize to ``{field name: value}``; multiple values are comma-joined."""
        return {
            str(field_id): ", ".join(fld.value for fld in fields)
            for field_id, fields in self._fields.items()
        }

    def format_string(self, fmt: str) -> str:
        """Substitute ``%{name}`` placeholders and short codes with field values.

        Missing fields are replaced with an empty string, ``%%`` with ``%``.
        """

        def _substitute(match: re.Match) -> str:
            if match.group(0) == "%%":
                return "%"
            name = match.group(1) or SHORT_PLACEHOLDER_CODES[match.group(2)]
            return self.get(name) or ""

        return _FORMAT_CODE_RE.sub(_substitute, fmt)

    # ------------------------------------------------------------------
    # Convenience accessors
    # ------------------------------------------------------------------

    @property
    def title(self) -> str | None:
        return self.get(FieldType.TITLE)

    @property
    def artist(self) -> str | None:
        return self.get(FieldType.ARTIST)

    @property
    def album(self) -> str | None:
        return self.get(FieldType.ALBUM)

    @property
    def track(self) -> int | None:
        return self.get_int(FieldType.TRACK)

    @property
    def year(self) -> int | None:
        return self.get_int(FieldType.DATE)

    @property
    def duration(self) -> int | None:
        return self.get_int(FieldType.DURATION)

    # ------------------------------------------------------------------
    # Container protocol
    # ------------------------------------------------------------------

    def __iter__(self) -> Iterator[Field]:
        for fields in self._fields.values():
            yield from fields

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (FieldId, FieldType, str)):
            return False
        return to_field_id(key) in self._fields

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FieldRecord):
            return NotImplemented
        return [(f.id, f.value) for f in self] == [(f.id, f.value) for f in other]

    def __repr__(self) -> str:
        return f"FieldRecord({self.as_dict()!r})"
