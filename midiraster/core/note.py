"""Note, Track and Document - the units the pipeline works on."""

from dataclasses import dataclass, field, replace
from typing import Iterable, Optional, Tuple

from .constants import DEFAULT_TIME_SIGNATURE, PITCH_NAMES


@dataclass(frozen=True)
class Note:
    """Represents a musical note in tick time."""

    onset: int  # Start in ticks
    duration: int  # Length in ticks
    pitch: int  # MIDI pitch (0-127)
    velocity: float = 1.0  # Normalized velocity (0-1)

    @property
    def end(self) -> int:
        """End tick (onset + duration)."""
        return self.onset + self.duration

    @property
    def pitch_class(self) -> int:
        """Get pitch class (0-11, where 0=C)."""
        return self.pitch % 12

    @property
    def octave(self) -> int:
        """Scientific pitch octave (MIDI 60 is octave 4)."""
        return (self.pitch // 12) - 1

    @property
    def pitch_name(self) -> str:
        """Get note name (e.g., 'C4', 'A#3')."""
        return f"{PITCH_NAMES[self.pitch_class]}{self.octave}"

    def shifted(self, semitones: int) -> "Note":
        """Copy of this note moved by a number of semitones."""
        return replace(self, pitch=self.pitch + semitones)


@dataclass(frozen=True)
class Track:
    """A decoded instrument track."""

    notes: Tuple[Note, ...] = ()
    program: int = 0  # General MIDI program (0-127)
    is_drum: bool = False
    name: str = ""

    @property
    def note_count(self) -> int:
        return len(self.notes)

    def with_notes(self, notes: Iterable[Note]) -> "Track":
        """Return a copy with the note sequence replaced."""
        return replace(self, notes=tuple(notes))


@dataclass(frozen=True)
class Document:
    """A decoded MIDI file."""

    tracks: Tuple[Track, ...]
    ppq: int  # Ticks per quarter note
    time_signatures: Tuple[Tuple[int, int], ...] = field(default_factory=tuple)
    total_duration_ticks: int = 0
    name: Optional[str] = None

    @property
    def time_signature(self) -> Tuple[int, int]:
        """First declared time signature, 4/4 when none is present."""
        if self.time_signatures:
            return self.time_signatures[0]
        return DEFAULT_TIME_SIGNATURE
