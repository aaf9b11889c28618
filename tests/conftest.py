"""Shared fixtures: synthetic MIDI files with known contents."""

import io
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import pretty_midi
import pytest

PPQ = 480
TEMPO = 120.0


@dataclass
class TrackData:
    """A track to synthesize; notes are (onset, duration, pitch, velocity) in ticks."""

    notes: List[Tuple[int, int, int, int]] = field(default_factory=list)
    program: int = 0
    is_drum: bool = False
    name: str = ""


def ticks_to_seconds(ticks: int, resolution: int = PPQ, tempo: float = TEMPO) -> float:
    return ticks * 60.0 / (tempo * resolution)


def make_midi(
    tracks: Sequence[TrackData],
    resolution: int = PPQ,
    tempo: float = TEMPO,
    time_signatures: Sequence[Tuple[int, int, int]] = ((4, 4, 0),),
) -> bytes:
    """Write a MIDI file to bytes.

    Args:
        tracks: Tracks to include
        resolution: Ticks per quarter note
        tempo: Constant tempo in BPM
        time_signatures: (numerator, denominator, tick) triples
    """
    midi = pretty_midi.PrettyMIDI(resolution=resolution, initial_tempo=tempo)
    for numerator, denominator, tick in time_signatures:
        midi.time_signature_changes.append(
            pretty_midi.TimeSignature(numerator, denominator, ticks_to_seconds(tick, resolution, tempo))
        )

    for track in tracks:
        instrument = pretty_midi.Instrument(program=track.program, is_drum=track.is_drum, name=track.name)
        for onset, duration, pitch, velocity in track.notes:
            instrument.notes.append(
                pretty_midi.Note(
                    velocity=velocity,
                    pitch=pitch,
                    start=ticks_to_seconds(onset, resolution, tempo),
                    end=ticks_to_seconds(onset + duration, resolution, tempo),
                )
            )
        midi.instruments.append(instrument)

    buffer = io.BytesIO()
    midi.write(buffer)
    return buffer.getvalue()


def melody(measures: int = 2, pitches: Sequence[int] = (60, 62, 64, 65), velocity: int = 100):
    """Quarter-note melody repeating the given pitches, 4 notes per 4/4 measure."""
    return [
        (i * PPQ, PPQ, pitches[i % len(pitches)], velocity)
        for i in range(measures * 4)
    ]


@pytest.fixture
def single_note_midi() -> bytes:
    """One quarter note, middle C, full velocity."""
    return make_midi([TrackData(notes=[(0, PPQ, 60, 127)], name="Piano")])


@pytest.fixture
def melody_midi() -> bytes:
    """Two measures of a four-note melody on piano."""
    return make_midi([TrackData(notes=melody(2), name="Piano")])


@pytest.fixture
def band_midi() -> bytes:
    """Drums, sparse bass and a dense lead."""
    return make_midi([
        TrackData(notes=[(i * PPQ, PPQ // 2, 36, 100) for i in range(16)], is_drum=True, name="Drums"),
        TrackData(notes=[(0, 4 * PPQ, 40, 90), (4 * PPQ, 4 * PPQ, 43, 90)], program=33, name="Bass"),
        TrackData(notes=melody(2, pitches=(64, 67, 71, 72)), program=80, name="Lead"),
    ])


@pytest.fixture
def empty_midi() -> bytes:
    """A valid MIDI file without any tracks."""
    return make_midi([])
