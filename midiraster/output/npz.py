"""Matrix export to compressed numpy archives."""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np

from ..core import PreprocessConfig


class MatrixExporter:
    """Save and load training matrices as ``.npz`` files."""

    MATRICES_KEY = "matrices"
    CONFIG_KEY = "config"

    def export(
        self,
        matrices,
        output_path: Union[str, Path],
        config: Optional[PreprocessConfig] = None,
    ) -> Path:
        """
        Write matrices to a compressed .npz file.

        Args:
            matrices: PreprocessResult, (N, Y, X) array or list of 2-D arrays
            output_path: Target file; '.npz' is appended when missing
            config: Configuration stored next to the data for reference

        Returns:
            Path of the written file
        """
        array = self.to_array(matrices)
        output_path = Path(output_path)
        if output_path.suffix != ".npz":
            output_path = output_path.with_name(output_path.name + ".npz")

        # Ensure output directory exists
        output_path.parent.mkdir(parents=True, exist_ok=True)

        arrays = {self.MATRICES_KEY: array}
        if config is not None:
            arrays[self.CONFIG_KEY] = np.array(json.dumps(config.to_dict()))

        np.savez_compressed(output_path, **arrays)
        return output_path

    def load(self, path: Union[str, Path]) -> Tuple[np.ndarray, Optional[Dict[str, Any]]]:
        """
        Read matrices written by export().

        Returns:
            Tuple of (matrices array, config dict or None)
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Matrix file not found: {path}")

        with np.load(path, allow_pickle=False) as data:
            matrices = data[self.MATRICES_KEY]
            config = None
            if self.CONFIG_KEY in data.files:
                config = json.loads(str(data[self.CONFIG_KEY]))
        return matrices, config

    @staticmethod
    def to_array(matrices) -> np.ndarray:
        """Coerce supported inputs to an (N, Y, X) float32 array."""
        if hasattr(matrices, "to_array"):
            return matrices.to_array()
        if isinstance(matrices, np.ndarray):
            array = matrices
        else:
            matrices = list(matrices)
            if not matrices:
                raise ValueError("No matrices to export; pass an array to write an empty file")
            array = np.stack(matrices)
        if array.ndim != 3:
            raise ValueError(f"Expected a stack of 2-D matrices, got shape {array.shape}")
        return array.astype(np.float32, copy=False)


def save_matrices(matrices, output_path, config: Optional[PreprocessConfig] = None) -> Path:
    """Shortcut for MatrixExporter().export()."""
    return MatrixExporter().export(matrices, output_path, config=config)


def load_matrices(path) -> Tuple[np.ndarray, Optional[Dict[str, Any]]]:
    """Shortcut for MatrixExporter().load()."""
    return MatrixExporter().load(path)
