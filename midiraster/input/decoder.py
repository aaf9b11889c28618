"""MIDI decoding - raw bytes to a tick-based Document."""

import io
import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import List, Optional

import pretty_midi

from ..core import Document, Note, Track
from ..core.constants import MIDI_VELOCITY_MAX
from ..core.errors import DecodeError, DecodeTimeoutError, EmptyDocumentError

logger = logging.getLogger(__name__)


class MidiDecoder:
    """Decode Standard MIDI File bytes with pretty_midi."""

    def __init__(self, timeout: Optional[float] = None):
        """
        Initialize MidiDecoder.

        Args:
            timeout: Seconds allowed per file; None disables the limit
        """
        self.timeout = timeout

    def decode(self, raw: bytes, name: str = "<bytes>") -> Document:
        """
        Decode one MIDI file.

        Args:
            raw: File contents
            name: Label used in errors and logs

        Returns:
            Decoded Document

        Raises:
            DecodeError: If the bytes are not a readable MIDI file
            DecodeTimeoutError: If decoding exceeds the timeout
            EmptyDocumentError: If the file contains no tracks
        """
        if self.timeout is None:
            midi = self._parse(raw, name)
        else:
            midi = self._parse_with_timeout(raw, name)

        document = self.to_document(midi, name)
        if not document.tracks:
            raise EmptyDocumentError("MIDI file contains no tracks", document=name)

        logger.debug(
            "Decoded %s: %d tracks, ppq=%d, %d ticks",
            name,
            len(document.tracks),
            document.ppq,
            document.total_duration_ticks,
        )
        return document

    def _parse(self, raw: bytes, name: str) -> pretty_midi.PrettyMIDI:
        if not raw:
            raise DecodeError("Empty byte stream", document=name)
        try:
            return pretty_midi.PrettyMIDI(io.BytesIO(raw))
        except Exception as e:
            # mido/pretty_midi raise a wide range of types on malformed input
            raise DecodeError(f"Failed to parse MIDI file: {e}", document=name) from e

    def _parse_with_timeout(self, raw: bytes, name: str) -> pretty_midi.PrettyMIDI:
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="midi-decode")
        future = executor.submit(self._parse, raw, name)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError:
            raise DecodeTimeoutError(
                f"Decoding exceeded {self.timeout:.1f}s", document=name
            ) from None
        finally:
            # A timed-out parse keeps running in the background thread
            executor.shutdown(wait=False)

    @staticmethod
    def to_document(midi: pretty_midi.PrettyMIDI, name: Optional[str] = None) -> Document:
        """Convert a PrettyMIDI object to a tick-based Document."""
        tracks = tuple(
            Track(
                notes=tuple(_instrument_notes(midi, instrument)),
                program=instrument.program,
                is_drum=instrument.is_drum,
                name=instrument.name,
            )
            for instrument in midi.instruments
        )
        time_signatures = tuple(
            (ts.numerator, ts.denominator) for ts in midi.time_signature_changes
        )
        return Document(
            tracks=tracks,
            ppq=midi.resolution,
            time_signatures=time_signatures,
            total_duration_ticks=midi.time_to_tick(midi.get_end_time()),
            name=name,
        )


def _instrument_notes(midi: pretty_midi.PrettyMIDI, instrument: pretty_midi.Instrument) -> List[Note]:
    """Instrument notes in tick time, sorted by onset then pitch."""
    notes = []
    for note in instrument.notes:
        onset = midi.time_to_tick(note.start)
        end = midi.time_to_tick(note.end)
        notes.append(
            Note(
                onset=onset,
                duration=max(end - onset, 0),
                pitch=note.pitch,
                velocity=note.velocity / MIDI_VELOCITY_MAX,
            )
        )
    notes.sort(key=lambda n: (n.onset, n.pitch))
    return notes
