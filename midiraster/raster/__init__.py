"""Raster layer - notes to matrices.

- Rasterization (pitch rows x time columns, velocity intensity)
- Validation (shape, emptiness and sparsity checks)
"""

from .rasterizer import Rasterizer
from .validator import MatrixValidator, Rejection

__all__ = [
    "Rasterizer",
    "MatrixValidator",
    "Rejection",
]
