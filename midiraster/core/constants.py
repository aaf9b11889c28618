"""Global constants for midiraster."""

# Pitch names
PITCH_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# MIDI ranges
MIDI_MIN = 0
MIDI_MAX = 127
MIDI_VELOCITY_MAX = 127

# General MIDI program ranges (0-based program numbers)
GM_PERCUSSIVE_PROGRAMS = range(112, 120)  # Tinkle Bell .. Reverse Cymbal
GM_SOUND_EFFECT_PROGRAMS = range(120, 128)  # Guitar Fret Noise .. Gunshot
PITCHED_PROGRAMS = frozenset(range(0, 112))

# Musical defaults
DEFAULT_TIME_SIGNATURE = (4, 4)
DEFAULT_QUANTIZE_RESOLUTION = "1/16"  # 16th notes

# Matrix defaults
DEFAULT_DIMENSIONS = (64, 64)  # (x: time steps, y: pitch rows)
DEFAULT_START_OCTAVE = 3
DEFAULT_TRANSPOSITIONS = (7, -7)

MIDI_SUFFIXES = {".mid", ".midi"}
