"""Data models for Track Import."""

from trackimport.models.fields import Field, FieldId, FieldRecord, FieldType
from trackimport.models.track_data import AlbumListItem, TrackDataEntry, TrackDataSequence
from trackimport.models.reconcile_state import ReconcileState, ScanState
from trackimport.models.config import ImportConfig, PatternSet, SourceOptions, TagsPatternSet

__all__ = [
    "Field",
    "FieldId",
    "FieldRecord",
    "FieldType",
    "AlbumListItem",
    "TrackDataEntry",
    "TrackDataSequence",
    "ReconcileState",
    "ScanState",
    "ImportConfig",
    "PatternSet",
    "SourceOptions",
    "TagsPatternSet",
]
