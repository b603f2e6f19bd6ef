"""Arpeggio pattern bank.

Five index patterns over four voice slots. The pattern in use is a step
function of scan density, gentle when the grid is quiet and jumpier as it
fills.
"""

import typing


ARP_PATTERNS: typing.Dict[str, typing.List[int]] = {
	"pendulum": [3, 2, 1, 0, 1, 2],
	"ascending": [0, 1, 2, 3],
	"descending": [3, 2, 1, 0],
	"skip": [0, 2, 1, 3, 0, 3],
	"spiral": [0, 3, 1, 2],
}

# (upper density bound, pattern name), checked in order.
DENSITY_BANDS: typing.List[typing.Tuple[float, str]] = [
	(0.05, "pendulum"),
	(0.12, "ascending"),
	(0.22, "spiral"),
	(0.35, "descending"),
]

FALLBACK_PATTERN = "skip"


def pattern_name_for_density (density: float) -> str:

	"""Name of the pattern used at a given density."""

	for bound, name in DENSITY_BANDS:
		if density < bound:
			return name

	return FALLBACK_PATTERN


def select_arp_pattern (density: float) -> typing.List[int]:

	"""Return the index pattern for a density."""

	return ARP_PATTERNS[pattern_name_for_density(density)]


def arp_index (pattern: typing.Sequence[int], step: int, count: int) -> int:

	"""Index into a list of ``count`` notes for this step."""

	return pattern[step % len(pattern)] % count


def arp_duration (age: int) -> float:

	"""Duration multiplier for an arpeggio note from its cell age."""

	if age > 3:
		return 1.4

	if age > 1:
		return 1.0

	return 0.6
