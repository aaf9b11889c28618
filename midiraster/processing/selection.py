"""Track selection - pick the track to rasterize."""

from typing import Iterable, List, Optional

from ..core import Document, Track
from ..core.constants import PITCHED_PROGRAMS
from ..core.errors import NoValidTrackError


class TrackSelector:
    """Select the densest pitched track of a document.

    Stage 1 keeps non-drum tracks whose General MIDI program is in the
    allow-list. Stage 2 takes the track with the most notes; ties go to the
    track that comes first.
    """

    def __init__(self, pitched_programs: Optional[Iterable[int]] = None):
        """
        Initialize TrackSelector.

        Args:
            pitched_programs: Allowed GM programs (default: 0-111)
        """
        if pitched_programs is None:
            pitched_programs = PITCHED_PROGRAMS
        self.pitched_programs = frozenset(pitched_programs)

    def is_pitched(self, track: Track) -> bool:
        """Whether the track plays an allowed pitched instrument."""
        return not track.is_drum and track.program in self.pitched_programs

    def candidates(self, document: Document) -> List[Track]:
        """Tracks passing the instrument filter, in document order."""
        return [track for track in document.tracks if self.is_pitched(track)]

    def select(self, document: Document) -> Track:
        """
        Pick one track to rasterize.

        Raises:
            NoValidTrackError: If no track plays a pitched instrument
        """
        candidates = self.candidates(document)
        if not candidates:
            raise NoValidTrackError(
                f"No pitched track among {len(document.tracks)} tracks",
                document=document.name,
            )
        # max() returns the first maximal element
        return max(candidates, key=lambda track: track.note_count)
