"""midiraster - MIDI files to fixed-size training matrices.

Architecture Layers:
    1. core/       - Note/Track/Document types, configuration, errors
    2. input/      - MIDI file collection and decoding
    3. processing/ - Track selection, quantization, segmentation, transposition
    4. raster/     - Rasterization and matrix validation
    5. pipeline/   - Batch orchestration, progress, cancellation
    6. output/     - Export (.npz)
"""

__version__ = "0.1.0"

# Core types
from .core import (
    Note,
    Track,
    Document,
    Dimensions,
    PitchPolicy,
    PreprocessConfig,
    PreprocessingError,
    ConfigError,
    DocumentError,
    DecodeError,
    NoValidTrackError,
    EmptyTrackError,
)

# Input layer
from .input import MidiDecoder, MidiLoader

# Processing layer
from .processing import TrackSelector, Quantizer, Segmenter, Transposer

# Raster layer
from .raster import Rasterizer, MatrixValidator

# Pipeline layer
from .pipeline import (
    BatchPreprocessor,
    PreprocessResult,
    CancellationToken,
    StatusMessage,
)

# Output layer
from .output import MatrixExporter, save_matrices, load_matrices

__all__ = [
    # Core
    "Note",
    "Track",
    "Document",
    "Dimensions",
    "PitchPolicy",
    "PreprocessConfig",
    "PreprocessingError",
    "ConfigError",
    "DocumentError",
    "DecodeError",
    "NoValidTrackError",
    "EmptyTrackError",
    # Input
    "MidiDecoder",
    "MidiLoader",
    # Processing
    "TrackSelector",
    "Quantizer",
    "Segmenter",
    "Transposer",
    # Raster
    "Rasterizer",
    "MatrixValidator",
    # Pipeline
    "BatchPreprocessor",
    "PreprocessResult",
    "CancellationToken",
    "StatusMessage",
    # Output
    "MatrixExporter",
    "save_matrices",
    "load_matrices",
]
