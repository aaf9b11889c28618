"""Input layer - MIDI file loading and decoding.

This layer turns files on disk into Documents:
- Collecting MIDI bytes from files, directories and zip archives
- Decoding bytes into tick-based tracks and notes
"""

from .decoder import MidiDecoder
from .loader import MidiLoader

__all__ = [
    "MidiDecoder",
    "MidiLoader",
]
