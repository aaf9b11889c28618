"""Pipeline layer - batch orchestration.

Drives decoding, selection, quantization, segmentation, rasterization and
validation over a collection of files, with progress reporting and
cooperative cancellation.
"""

from .preprocessor import (
    BatchPreprocessor,
    DocumentOutcome,
    DocumentStats,
    PreprocessResult,
    render_document,
)
from .progress import CancellationToken, ProgressSink, StatusMessage, null_progress

__all__ = [
    "BatchPreprocessor",
    "DocumentOutcome",
    "DocumentStats",
    "PreprocessResult",
    "render_document",
    "CancellationToken",
    "ProgressSink",
    "StatusMessage",
    "null_progress",
]
