"""Pitch systems and scale-degree to frequency conversion.

Two kinds of scale are supported:

- :class:`SemitoneScale` - degree offsets in equal-tempered semitones from the
  octave root. Offsets may be fractional (the quarter-tone scale uses
  halves).
- :class:`RatioScale` - just-intonation frequency ratios relative to the
  octave root.

Both are dispatched by :func:`degree_to_frequency`. Octaves are numbered so
that the root of octave ``O`` is always MIDI semitone ``12 * O`` (octave 5
starts at middle C, 60), which keeps ratio scales in the same register as
their equal-tempered counterparts.
"""

import dataclasses
import fractions
import math
import typing

import dennewitz.constants
import dennewitz.constants.midi


@dataclasses.dataclass(frozen=True)
class SemitoneScale:

	"""A scale defined by semitone offsets from the octave root."""

	offsets: typing.Tuple[float, ...]
	label: str = ""
	description: str = ""

	def __len__ (self) -> int:
		return len(self.offsets)


@dataclasses.dataclass(frozen=True)
class RatioScale:

	"""A scale defined by frequency ratios relative to the octave root."""

	ratios: typing.Tuple[float, ...]
	label: str = ""
	description: str = ""

	def __len__ (self) -> int:
		return len(self.ratios)


ScaleDefinition = typing.Union[SemitoneScale, RatioScale]


def _ratios (*values: str) -> typing.Tuple[float, ...]:

	"""Parse ``"5/4"``-style ratio strings."""

	return tuple(float(fractions.Fraction(v)) for v in values)


SCALES: typing.Dict[str, ScaleDefinition] = {
	"diatonic": SemitoneScale((0, 2, 4, 5, 7, 9, 11), "Diatonic", "Standard 7-note major scale"),
	"pentatonic": SemitoneScale((0, 2, 4, 7, 9), "Pentatonic", "Universal 5-note scale"),
	"chromatic": SemitoneScale(tuple(range(12)), "Chromatic", "All 12 semitones"),
	"dorian": SemitoneScale((0, 2, 3, 5, 7, 9, 10), "Dorian", "Minor scale with raised 6th"),
	"phrygian": SemitoneScale((0, 1, 3, 5, 7, 8, 10), "Phrygian", "Minor scale with flat 2nd"),
	"lydian": SemitoneScale((0, 2, 4, 6, 7, 9, 11), "Lydian", "Major scale with raised 4th"),
	"mixolydian": SemitoneScale((0, 2, 4, 5, 7, 9, 10), "Mixolydian", "Major scale with flat 7th"),
	"aeolian": SemitoneScale((0, 2, 3, 5, 7, 8, 10), "Aeolian", "Natural minor"),
	"locrian": SemitoneScale((0, 1, 3, 5, 6, 8, 10), "Locrian", "Diminished 5th, unstable tonic"),
	"harmonic-minor": SemitoneScale((0, 2, 3, 5, 7, 8, 11), "Harmonic Minor", "Minor with raised 7th"),
	"whole-tone": SemitoneScale((0, 2, 4, 6, 8, 10), "Whole Tone", "Six equal whole steps"),
	"minor-pentatonic": SemitoneScale((0, 3, 5, 7, 10), "Minor Pentatonic", "5-note minor scale"),
	"just-simple": RatioScale(
		_ratios("1", "9/8", "5/4", "4/3", "3/2", "5/3", "15/8"),
		"Just Simple",
		"Pure ratios (3:2, 5:4, 6:5)",
	),
	"just-extended": RatioScale(
		_ratios("1", "9/8", "7/6", "11/8", "3/2", "13/8", "7/4"),
		"Just Extended",
		"Higher primes (7, 11, 13-limit)",
	),
	"quarter-tone": SemitoneScale(
		tuple(i / 2 for i in range(24)),
		"Quarter-tone (24-EDO)",
		"24 equal divisions of the octave",
	),
}


def get_scale (name: str) -> ScaleDefinition:

	"""Look up a scale by identifier.

	Raises:
		ValueError: If the identifier is not registered. This is a
			configuration error and should be surfaced before playback starts.
	"""

	if name not in SCALES:
		raise ValueError(f"Unknown scale '{name}'. Available: {sorted(SCALES)}")

	return SCALES[name]


def scale_length (scale: ScaleDefinition) -> int:

	"""Number of degrees per octave."""

	return len(scale)


def is_microtonal (scale: ScaleDefinition) -> bool:

	"""True when the scale needs pitch bend to be rendered on a 12-tone instrument."""

	if isinstance(scale, RatioScale):
		return True

	return any(offset % 1 != 0 for offset in scale.offsets)


def round_half_up (value: float) -> int:

	"""Round to the nearest integer, halves away from negative infinity."""

	return math.floor(value + 0.5)


def clamp_pitch (pitch: int) -> int:

	"""Saturate a pitch number to the MIDI note range."""

	return max(dennewitz.constants.midi.MIN_NOTE, min(dennewitz.constants.midi.MAX_NOTE, pitch))


def semitone_to_frequency (semitone: float) -> float:

	"""Equal-tempered frequency of a (possibly fractional) MIDI semitone number."""

	return dennewitz.constants.A4_FREQUENCY * 2 ** ((semitone - dennewitz.constants.A4_MIDI) / 12)


def frequency_to_semitone (frequency: float) -> float:

	"""Fractional MIDI semitone number of a frequency."""

	return 12 * math.log2(frequency / dennewitz.constants.A4_FREQUENCY) + dennewitz.constants.A4_MIDI


def degree_to_frequency (scale: ScaleDefinition, octave: int, degree: int) -> typing.Tuple[float, int]:

	"""
	Convert a scale degree in an octave to a frequency and nearest semitone.

	Degrees outside ``[0, len(scale))`` roll over into neighbouring octaves,
	so ``degree_to_frequency(s, 4, 7)`` on a 7-note scale equals
	``degree_to_frequency(s, 5, 0)``.

	Parameters:
		scale: A semitone or ratio scale.
		octave: Octave number; its root is MIDI semitone ``12 * octave``.
		degree: Scale degree.

	Returns:
		``(frequency_hz, approximate_semitone)``. The semitone is clamped to
		the MIDI note range and is what interval scoring operates on.

	Example:
		```python
		degree_to_frequency(SCALES["diatonic"], 5, 6)     # (493.88..., 71)
		degree_to_frequency(SCALES["just-simple"], 5, 4)  # (392.43..., 67)
		```
	"""

	length = len(scale)
	octave += degree // length
	degree %= length

	if isinstance(scale, SemitoneScale):
		semitone = scale.offsets[degree] + 12 * octave
		return semitone_to_frequency(semitone), clamp_pitch(round_half_up(semitone))

	root = semitone_to_frequency(12 * octave)
	frequency = root * scale.ratios[degree]

	return frequency, clamp_pitch(round_half_up(frequency_to_semitone(frequency)))
