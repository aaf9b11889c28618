"""Matrix validation - reject degenerate training examples."""

import logging
from enum import Enum
from typing import Iterable, List, Optional

import numpy as np

from ..core import PreprocessConfig

logger = logging.getLogger(__name__)


class Rejection(str, Enum):
    """Why a matrix was rejected."""

    SHAPE = "shape"
    EMPTY = "empty"
    TOO_FEW_PITCHES = "too_few_pitches"
    TOO_FEW_NOTES = "too_few_notes"


class MatrixValidator:
    """Accept or reject rendered matrices.

    A matrix is rejected when its shape differs from the configured
    dimensions, when it is all zeros, when fewer rows than
    ``minimum_different_pitches`` are occupied, or when it has fewer than
    ``minimum_notes`` non-zero cells.
    """

    def __init__(self, config: Optional[PreprocessConfig] = None):
        self.config = config or PreprocessConfig()

    def rejection_reason(self, matrix: np.ndarray) -> Optional[Rejection]:
        """First failed check, or None if the matrix is valid."""
        if np.ndim(matrix) != 2 or np.shape(matrix) != self.config.dimensions.shape:
            return Rejection.SHAPE

        nonzero = np.count_nonzero(matrix)
        if nonzero == 0:
            return Rejection.EMPTY

        occupied_rows = np.count_nonzero(np.any(matrix != 0, axis=1))
        if occupied_rows < self.config.minimum_different_pitches:
            return Rejection.TOO_FEW_PITCHES

        if nonzero < self.config.minimum_notes:
            return Rejection.TOO_FEW_NOTES

        return None

    def is_valid(self, matrix: np.ndarray) -> bool:
        return self.rejection_reason(matrix) is None

    def filter(self, matrices: Iterable[np.ndarray]) -> List[np.ndarray]:
        """Keep only valid matrices, preserving order."""
        accepted = []
        for matrix in matrices:
            reason = self.rejection_reason(matrix)
            if reason is None:
                accepted.append(matrix)
            else:
                logger.debug("Rejected matrix: %s", reason.value)
        return accepted
