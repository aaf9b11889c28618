"""Preprocessing configuration."""

import json
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from fractions import Fraction
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Tuple, Union

from .constants import (
    DEFAULT_DIMENSIONS,
    DEFAULT_QUANTIZE_RESOLUTION,
    DEFAULT_START_OCTAVE,
    DEFAULT_TRANSPOSITIONS,
    MIDI_MAX,
    MIDI_MIN,
    PITCHED_PROGRAMS,
)
from .errors import ConfigError


class PitchPolicy(str, Enum):
    """How pitches outside the row window are mapped onto rows."""

    CLIP = "clip"  # drop notes whose row falls outside the matrix
    WRAP = "wrap"  # fold rows modulo the matrix height


@dataclass(frozen=True)
class Dimensions:
    """Matrix shape: x time steps (columns) by y pitch rows."""

    x: int
    y: int

    @property
    def shape(self) -> Tuple[int, int]:
        """numpy shape, rows first."""
        return (self.y, self.x)


@dataclass(frozen=True)
class PreprocessConfig:
    """Configuration for MIDI-to-matrix preprocessing.

    Attributes:
        dimensions: Output matrix size (default: 64 x 64)
        start_octave: Row 0 is MIDI pitch ``start_octave * 12`` (default: 3)
        horizontal_resolution: Quantization step as a fraction of a whole
            note, e.g. 1/16 for a sixteenth grid (default: 1/16)
        step_size_x: Window length in measures (default: 1)
        transpositions: Extra semitone shifts rendered per window; the
            untransposed render is always produced (default: +7, -7)
        minimum_notes: Minimum non-zero cells for a matrix to be kept
        minimum_different_pitches: Minimum occupied rows for a matrix to be kept
        pitch_policy: Row mapping for out-of-window pitches (default: clip)
        intensity_scale: Intensity of a full-velocity note; 1.0 keeps values
            in [0, 1], 255 gives 8-bit grayscale (default: 1.0)
        pitched_programs: General MIDI programs eligible for selection
            (default: 0-111, no percussive or sound-effect programs)
        decode_timeout: Seconds allowed to decode one file (default: no limit)
    """

    dimensions: Dimensions = field(default_factory=lambda: Dimensions(*DEFAULT_DIMENSIONS))
    start_octave: int = DEFAULT_START_OCTAVE
    horizontal_resolution: Optional[Fraction] = Fraction(DEFAULT_QUANTIZE_RESOLUTION)
    step_size_x: int = 1
    transpositions: Tuple[int, ...] = DEFAULT_TRANSPOSITIONS
    minimum_notes: int = 0
    minimum_different_pitches: int = 0
    pitch_policy: PitchPolicy = PitchPolicy.CLIP
    intensity_scale: float = 1.0
    pitched_programs: FrozenSet[int] = PITCHED_PROGRAMS
    decode_timeout: Optional[float] = None

    def __post_init__(self):
        # Coerce convenient input types; range checks live in validate()
        if not isinstance(self.dimensions, Dimensions):
            dims = self.dimensions
            if isinstance(dims, dict):
                dims = Dimensions(x=dims["x"], y=dims["y"])
            else:
                x, y = dims
                dims = Dimensions(x=x, y=y)
            object.__setattr__(self, "dimensions", dims)

        object.__setattr__(
            self,
            "horizontal_resolution",
            _parse_resolution(self.horizontal_resolution),
        )

        shifts = []
        for shift in self.transpositions:
            shift = int(shift)
            if shift != 0 and shift not in shifts:
                shifts.append(shift)
        object.__setattr__(self, "transpositions", tuple(shifts))

        try:
            policy = PitchPolicy(self.pitch_policy)
        except ValueError:
            raise ConfigError(f"Unknown pitch policy: {self.pitch_policy!r}") from None
        object.__setattr__(self, "pitch_policy", policy)

        object.__setattr__(self, "pitched_programs", frozenset(self.pitched_programs))

    @property
    def base_pitch(self) -> int:
        """MIDI pitch mapped to row 0."""
        return self.start_octave * 12

    @property
    def shifts(self) -> Tuple[int, ...]:
        """Every shift rendered per window, untransposed first."""
        return (0,) + self.transpositions

    def validate(self) -> "PreprocessConfig":
        """Check option types and value ranges.

        Returns:
            self, so calls can be chained

        Raises:
            ConfigError: If any option has the wrong type or is out of range
        """
        integers = {
            "dimensions.x": self.dimensions.x,
            "dimensions.y": self.dimensions.y,
            "start_octave": self.start_octave,
            "step_size_x": self.step_size_x,
            "minimum_notes": self.minimum_notes,
            "minimum_different_pitches": self.minimum_different_pitches,
        }
        for option, value in integers.items():
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{option} must be an integer, got {value!r}")
        numbers = {"intensity_scale": self.intensity_scale, "decode_timeout": self.decode_timeout}
        for option, value in numbers.items():
            if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
                raise ConfigError(f"{option} must be a number, got {value!r}")

        if self.dimensions.x <= 0 or self.dimensions.y <= 0:
            raise ConfigError(
                f"Dimensions must be positive, got {self.dimensions.x}x{self.dimensions.y}"
            )
        if self.horizontal_resolution is None or self.horizontal_resolution <= 0:
            raise ConfigError("Horizontal resolution must be a positive fraction")
        if self.step_size_x < 1:
            raise ConfigError(f"step_size_x must be >= 1, got {self.step_size_x}")
        if self.minimum_notes < 0 or self.minimum_different_pitches < 0:
            raise ConfigError("Minimum thresholds must be >= 0")
        if self.intensity_scale <= 0:
            raise ConfigError(f"intensity_scale must be positive, got {self.intensity_scale}")
        if self.decode_timeout is not None and self.decode_timeout <= 0:
            raise ConfigError(f"decode_timeout must be positive, got {self.decode_timeout}")
        if any(isinstance(p, bool) or not isinstance(p, int) for p in self.pitched_programs):
            raise ConfigError(f"Programs must be integers, got {sorted(map(repr, self.pitched_programs))}")
        bad = sorted(p for p in self.pitched_programs if not MIDI_MIN <= p <= MIDI_MAX)
        if bad:
            raise ConfigError(f"Programs outside 0-127: {bad}")
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Plain JSON-serializable representation."""
        data = asdict(self)
        data["horizontal_resolution"] = str(self.horizontal_resolution)
        data["transpositions"] = list(self.transpositions)
        data["pitch_policy"] = self.pitch_policy.value
        data["pitched_programs"] = sorted(self.pitched_programs)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PreprocessConfig":
        """Build a config from plain data (e.g. parsed JSON)."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config options: {', '.join(unknown)}")
        try:
            return cls(**data)
        except ConfigError:
            raise
        except (TypeError, KeyError, ValueError) as e:
            raise ConfigError(f"Invalid config: {e}") from e

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "PreprocessConfig":
        """Load a config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise ConfigError(f"Config file {path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object")
        return cls.from_dict(data)


def _parse_resolution(value) -> Optional[Fraction]:
    """Parse '1/16', 0.0625 or Fraction(1, 16); empty values become None."""
    if value is None or value == "":
        return None
    if isinstance(value, Fraction):
        return value
    try:
        return Fraction(value)
    except (ValueError, TypeError, ZeroDivisionError) as e:
        raise ConfigError(f"Invalid horizontal resolution: {value!r}") from e
