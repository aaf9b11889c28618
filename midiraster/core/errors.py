"""Exception hierarchy.

``ConfigError`` is a caller mistake and aborts a batch. Everything derived
from ``DocumentError`` concerns a single input file: the batch logs it,
records it and moves on to the next document.
"""

from typing import Optional


class PreprocessingError(Exception):
    """Base class for all midiraster errors."""


class ConfigError(PreprocessingError, ValueError):
    """Invalid preprocessing configuration."""


class DocumentError(PreprocessingError):
    """A single document could not be turned into matrices."""

    def __init__(self, message: str, document: Optional[str] = None):
        super().__init__(message)
        self.document = document

    def __str__(self) -> str:
        message = super().__str__()
        if self.document:
            return f"{self.document}: {message}"
        return message

    def __reduce__(self):
        # Keep the document name when crossing process boundaries
        return (self.__class__, (self.args[0], self.document))


class DecodeError(DocumentError):
    """The byte stream is not a readable MIDI file."""


class DecodeTimeoutError(DecodeError):
    """Decoding took longer than the configured timeout."""


class NoValidTrackError(DocumentError):
    """No track plays a pitched General MIDI instrument."""


class EmptyDocumentError(DecodeError, NoValidTrackError):
    """The file decoded but contains no tracks at all."""


class EmptyTrackError(DocumentError):
    """The selected track has no notes left after quantization."""
