"""Rasterization - render a window of notes into a pitch x time matrix."""

from typing import Iterable, Optional

import numpy as np

from ..core import Note, PitchPolicy, PreprocessConfig


class Rasterizer:
    """Render notes as a 2-D intensity grid.

    Rows are pitches (row 0 = ``start_octave * 12``), columns are time steps
    spread evenly over the window. Cells hold ``velocity * intensity_scale``;
    where notes overlap the louder value wins.
    """

    def __init__(self, config: Optional[PreprocessConfig] = None):
        self.config = config or PreprocessConfig()

    def empty(self) -> np.ndarray:
        """A zero matrix of the configured shape."""
        return np.zeros(self.config.dimensions.shape, dtype=np.float32)

    def row_for(self, pitch: int) -> Optional[int]:
        """Matrix row for a MIDI pitch, None when clipped away."""
        rows = self.config.dimensions.y
        row = pitch - self.config.base_pitch
        if self.config.pitch_policy is PitchPolicy.WRAP:
            return row % rows
        if 0 <= row < rows:
            return row
        return None

    def columns_for(self, note: Note, window_ticks: int) -> range:
        """Columns covered by a note, always at least one."""
        columns = self.config.dimensions.x
        x_start = min(max(note.onset * columns // window_ticks, 0), columns - 1)
        # ceil division on integers
        x_end = -(-note.end * columns // window_ticks)
        x_end = min(max(x_end, x_start + 1), columns)
        return range(x_start, x_end)

    def render(self, notes: Iterable[Note], window_ticks: int) -> np.ndarray:
        """
        Render one window.

        Args:
            notes: Notes in window-local ticks
            window_ticks: Window length in ticks (one measure times step_size_x)

        Returns:
            float32 array of shape (dimensions.y, dimensions.x)
        """
        if window_ticks <= 0:
            raise ValueError(f"window_ticks must be positive, got {window_ticks}")

        matrix = self.empty()
        scale = self.config.intensity_scale

        for note in notes:
            row = self.row_for(note.pitch)
            if row is None:
                continue
            cols = self.columns_for(note, window_ticks)
            cells = matrix[row, cols.start:cols.stop]
            np.maximum(cells, note.velocity * scale, out=cells)

        return matrix
