"""Core types, configuration and errors for midiraster."""

from .note import Note, Track, Document
from .config import Dimensions, PitchPolicy, PreprocessConfig
from .constants import (
    PITCH_NAMES,
    PITCHED_PROGRAMS,
    DEFAULT_TIME_SIGNATURE,
)
from .errors import (
    PreprocessingError,
    ConfigError,
    DocumentError,
    DecodeError,
    DecodeTimeoutError,
    NoValidTrackError,
    EmptyDocumentError,
    EmptyTrackError,
)

__all__ = [
    "Note",
    "Track",
    "Document",
    "Dimensions",
    "PitchPolicy",
    "PreprocessConfig",
    "PITCH_NAMES",
    "PITCHED_PROGRAMS",
    "DEFAULT_TIME_SIGNATURE",
    "PreprocessingError",
    "ConfigError",
    "DocumentError",
    "DecodeError",
    "DecodeTimeoutError",
    "NoValidTrackError",
    "EmptyDocumentError",
    "EmptyTrackError",
]
