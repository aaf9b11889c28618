"""Output layer - Export matrices for model training."""

from .npz import MatrixExporter, load_matrices, save_matrices

__all__ = [
    "MatrixExporter",
    "load_matrices",
    "save_matrices",
]
