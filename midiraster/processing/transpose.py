"""Pitch transposition for data augmentation."""

from typing import Iterable, List

from ..core import Note
from ..core.constants import MIDI_MAX, MIDI_MIN


class Transposer:
    """Shift every pitch of a note list by a fixed number of semitones."""

    def transpose(self, notes: Iterable[Note], semitones: int) -> List[Note]:
        """
        Transpose notes.

        The input is left untouched. Notes shifted outside the MIDI range
        (0-127) are dropped.

        Args:
            notes: Notes to shift
            semitones: Shift in semitones, positive is up

        Returns:
            New list of shifted notes
        """
        shifted = (note.shifted(semitones) for note in notes)
        return [note for note in shifted if MIDI_MIN <= note.pitch <= MIDI_MAX]
