"""Measure-aligned segmentation of a note sequence into fixed windows."""

from dataclasses import dataclass
from fractions import Fraction
from typing import Iterator, List, Sequence, Tuple

from ..core import Note
from ..core.constants import DEFAULT_TIME_SIGNATURE


def ticks_per_measure(ppq: int, time_signature: Tuple[int, int] = DEFAULT_TIME_SIGNATURE) -> int:
    """Length of one measure in ticks.

    Args:
        ppq: Ticks per quarter note
        time_signature: (beats per measure, beat unit)
    """
    beats, unit = time_signature
    return max(1, round(Fraction(beats, unit) * ppq * 4))


@dataclass(frozen=True)
class Window:
    """A slice of the piece, with notes in window-local ticks."""

    index: int
    start: int  # Absolute start tick
    end: int  # Absolute end tick (exclusive)
    notes: Tuple[Note, ...]

    @property
    def length(self) -> int:
        return self.end - self.start


class Segmenter:
    """Cut a quantized note list into windows of whole measures."""

    def __init__(
        self,
        ppq: int,
        time_signature: Tuple[int, int] = DEFAULT_TIME_SIGNATURE,
        step_size_x: int = 1,
    ):
        """
        Initialize Segmenter.

        Args:
            ppq: Ticks per quarter note
            time_signature: Signature used for every measure of the piece
            step_size_x: Window length in measures
        """
        self.ppq = ppq
        self.time_signature = time_signature
        self.step_size_x = step_size_x

    @property
    def measure_ticks(self) -> int:
        return ticks_per_measure(self.ppq, self.time_signature)

    @property
    def window_ticks(self) -> int:
        return self.measure_ticks * self.step_size_x

    def segment(self, notes: Sequence[Note], total_ticks: int = 0) -> Iterator[Window]:
        """
        Yield windows in temporal order.

        A note belongs to the window containing its onset and is never split,
        even when it sounds past the window end.

        Args:
            notes: Quantized notes in absolute ticks
            total_ticks: Length of the piece; extended to cover the last onset
        """
        window_ticks = self.window_ticks
        if notes:
            total_ticks = max(total_ticks, max(note.onset for note in notes) + 1)

        buckets: List[List[Note]] = [[] for _ in range(0, total_ticks, window_ticks)]
        for note in notes:
            buckets[note.onset // window_ticks].append(note)

        for index, bucket in enumerate(buckets):
            start = index * window_ticks
            bucket.sort(key=lambda n: (n.onset, n.pitch))
            yield Window(
                index=index,
                start=start,
                end=start + window_ticks,
                notes=tuple(
                    Note(
                        onset=note.onset - start,
                        duration=note.duration,
                        pitch=note.pitch,
                        velocity=note.velocity,
                    )
                    for note in bucket
                ),
            )
