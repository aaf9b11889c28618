"""Note quantization - Snap note ticks to a rhythmic grid."""

from fractions import Fraction
from typing import Iterable, List, Optional

from ..core import Note
from ..core.errors import EmptyTrackError


class Quantizer:
    """Quantize note timings to a tick grid."""

    def __init__(self, ppq: int, resolution: Fraction = Fraction(1, 16)):
        """
        Initialize Quantizer.

        Args:
            ppq: Ticks per quarter note of the document
            resolution: Grid step as a fraction of a whole note (1/16 = 16th notes)
        """
        self.ppq = ppq
        self.resolution = Fraction(resolution)

    @property
    def step_ticks(self) -> int:
        """Grid step in ticks, never below one tick."""
        # A quarter note is ppq ticks, so a whole note is 4 * ppq
        return max(1, round(self.ppq * 4 * self.resolution))

    def quantize(
        self,
        notes: Optional[Iterable[Note]],
        document: Optional[str] = None,
    ) -> List[Note]:
        """
        Floor note onsets and ends to the grid.

        Applying this twice with the same grid gives the same result.

        Args:
            notes: Notes to quantize
            document: Source name reported in errors

        Returns:
            List of quantized notes

        Raises:
            EmptyTrackError: If there is no note sequence at all
        """
        if notes is None:
            raise EmptyTrackError("No track to quantize", document=document)

        step = self.step_ticks
        quantized = []

        for note in notes:
            q_onset = self._snap_to_grid(note.onset, step)
            q_end = self._snap_to_grid(note.end, step)

            quantized.append(
                Note(
                    onset=q_onset,
                    duration=q_end - q_onset,
                    pitch=note.pitch,
                    velocity=note.velocity,
                )
            )

        return quantized

    @staticmethod
    def _snap_to_grid(ticks: int, step: int) -> int:
        """Snap ticks to the grid position at or below them."""
        return (ticks // step) * step
