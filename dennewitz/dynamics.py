"""Density-driven dynamics.

Maps how busy the scan window is (and how suddenly that changed) to a volume,
a MIDI velocity and a rest decision. ``sensitivity`` scales the whole effect:
at 0 everything plays at a flat half volume and never rests, at 1 the volume
spans roughly 0.05-0.95.
"""

import dataclasses
import typing

import dennewitz.constants
import dennewitz.constants.velocity
import dennewitz.scales


SILENCE_DENSITY = 0.03
FULL_DENSITY = 0.5
KNEE_EXPONENT = 0.7

CENTER_VOLUME = 0.5
HALF_RANGE = 0.45

# (density change threshold, accent), strongest last.
CHANGE_ACCENTS: typing.List[typing.Tuple[float, int]] = [
	(0.03, 10),
	(0.06, 20),
	(0.1, 30),
]

BAR_ACCENT = 12
BEAT_ACCENT = 6
STEPS_PER_BAR = 16

REST_SENSITIVITY = 0.3


@dataclasses.dataclass(frozen=True)
class Dynamics:

	"""Volume (0-1), MIDI velocity (0-127) and whether to rest this step."""

	volume: float
	velocity: int
	rest: bool


def normalise_density (density: float) -> float:

	"""Soft-knee curve: 0 below 0.03, 1 above 0.5, a 0.7 power curve between."""

	if density < SILENCE_DENSITY:
		return 0.0

	if density > FULL_DENSITY:
		return 1.0

	return ((density - SILENCE_DENSITY) / (FULL_DENSITY - SILENCE_DENSITY)) ** KNEE_EXPONENT


def compute_dynamics (
	density: float,
	previous_density: typing.Optional[float],
	step: int,
	sensitivity: float,
) -> Dynamics:

	"""
	Compute the dynamics for one step.

	Parameters:
		density: Current scan density (0-1).
		previous_density: Density of the previous step, or ``None`` on the
			first step (no change accent).
		step: Sequencer step, for metric accents (every 16th and 4th step).
		sensitivity: 0-1 depth of the dynamic range.

	Example:
		```python
		compute_dynamics(0.03, 0.03, 0, 0.5)
		# Dynamics(volume=0.275, velocity=34, rest=False)
		```
	"""

	normalised = normalise_density(density)
	half_range = sensitivity * HALF_RANGE
	volume = CENTER_VOLUME - half_range + normalised * half_range * 2

	accent = 0

	if previous_density is not None:
		change = abs(density - previous_density)
		for threshold, value in CHANGE_ACCENTS:
			if change > threshold:
				accent = value

	if step % STEPS_PER_BAR == 0:
		metric_accent = BAR_ACCENT
	elif step % dennewitz.constants.STEPS_PER_BEAT == 0:
		metric_accent = BEAT_ACCENT
	else:
		metric_accent = 0

	base_velocity = dennewitz.scales.round_half_up(volume * dennewitz.constants.velocity.VOLUME_TO_VELOCITY)
	velocity = base_velocity + dennewitz.scales.round_half_up((accent + metric_accent) * sensitivity)
	velocity = max(dennewitz.constants.velocity.MIN_VELOCITY, min(dennewitz.constants.velocity.MAX_VELOCITY, velocity))

	rest = density < SILENCE_DENSITY and sensitivity > REST_SENSITIVITY

	return Dynamics(volume=volume, velocity=velocity, rest=rest)
