"""Processing layer - Note-level preparation before rasterization.

This layer shapes decoded tracks into rasterizable windows:
- Track selection (densest pitched instrument)
- Quantization (snap to grid)
- Segmentation (measure-aligned windows)
- Transposition (pitch-shift augmentation)
"""

from .selection import TrackSelector
from .quantize import Quantizer
from .segment import Segmenter, Window, ticks_per_measure
from .transpose import Transposer

__all__ = [
    "TrackSelector",
    "Quantizer",
    "Segmenter",
    "Window",
    "ticks_per_measure",
    "Transposer",
]
