"""Read live cells around the scan cursor and turn them into pitch candidates.

Two sampling strategies exist:

- **Automatic** (centroid and trajectory modes) - a three-column, full-height
  window around the cursor column. Each live cell's row picks a scale degree,
  top of the grid highest, spanning three octaves.
- **Harmonic space** (manual mode) - the cursor's height selects a root
  degree and its distance from the centre spreads the voicing upward. A
  degree near the root is only played when a live cell sits close to that
  degree's row, so the automaton gates a chord shaped by the player.

Both produce a :class:`ScanResult` whose candidates are unique by pitch,
sorted high to low and capped at ``MAX_CANDIDATES``.
"""

import dataclasses
import math
import typing

import dennewitz.constants
import dennewitz.scales


CONTROL_MODES = ("centroid", "manual", "wanderer", "attractor", "bounce")
TRAJECTORY_MODES = ("wanderer", "attractor", "bounce")

# Automatic mode
CENTER_VOLUME = 1.0
FLANK_VOLUME = 0.6

# Harmonic-space mode
VOICING_WINDOW = 7
MAX_LIFT_OCTAVES = 2
GATE_ROWS = 3
GATE_COLS = 1
DENSITY_RADIUS = 5
CHORD_TONE_STEPS = (0, 2, 4, 6)

Position = typing.Tuple[float, float]
CellGrid = typing.Sequence[typing.Sequence[int]]


@dataclasses.dataclass(frozen=True)
class NoteCandidate:

	"""A pitch produced by one live cell."""

	frequency: float
	pitch: int
	volume: float
	row: int
	col: int
	age: int


@dataclasses.dataclass(frozen=True)
class ScanResult:

	"""Everything one scan saw: candidates (high to low), where it looked, and how busy it was."""

	candidates: typing.Tuple[NoteCandidate, ...]
	position: Position
	density: float
	live_count: int


def resolve_position (
	grid: CellGrid,
	size: int,
	control_mode: str,
	manual_position: Position,
	trajectory_position: typing.Optional[Position] = None,
	live_cells: typing.Optional[typing.Iterable[int]] = None,
) -> Position:

	"""
	Decide where the scanner looks this step.

	Manual mode uses the external coordinate, trajectory modes use the
	generator's position, and everything else falls back to the mean
	position of all live cells (the grid centre when nothing is alive).
	"""

	if control_mode == "manual":
		return manual_position

	if control_mode in TRAJECTORY_MODES and trajectory_position is not None:
		return trajectory_position

	if live_cells is None:
		cells: typing.Iterable[typing.Tuple[int, int]] = (
			(x, y) for y in range(size) for x in range(size) if grid[y][x] == 1
		)
	else:
		cells = ((index % size, index // size) for index in live_cells)

	sum_x = 0
	sum_y = 0
	count = 0

	for x, y in cells:
		sum_x += x
		sum_y += y
		count += 1

	if count == 0:
		return (size / 2, size / 2)

	return (sum_x / count, sum_y / count)


def row_to_note_index (row: float, size: int, length: int) -> int:

	"""Map a grid row to a note index across ``NUM_OCTAVES`` octaves (row 0 is highest)."""

	span = length * dennewitz.constants.NUM_OCTAVES
	index = math.floor((1 - row / size) * span)

	return max(0, min(span - 1, index))


def note_index_to_row (note_index: int, size: int, length: int) -> int:

	"""Inverse of :func:`row_to_note_index`: the (wrapped) row at the centre of a note index's band."""

	span = length * dennewitz.constants.NUM_OCTAVES
	row = math.floor((1 - (note_index + 0.5) / span) * size)

	return row % size


def _candidate (
	scale: dennewitz.scales.ScaleDefinition,
	note_index: int,
	lift: int,
	volume: float,
	row: int,
	col: int,
	age: int,
) -> NoteCandidate:

	length = len(scale)
	octave = dennewitz.constants.BASE_OCTAVE + note_index // length + lift
	frequency, pitch = dennewitz.scales.degree_to_frequency(scale, octave, note_index % length)

	return NoteCandidate(frequency=frequency, pitch=pitch, volume=volume, row=row, col=col, age=age)


def _age_at (ages: typing.Optional[CellGrid], row: int, col: int) -> int:

	if ages is None:
		return 1

	return ages[row][col]


def _finish (candidates: typing.List[NoteCandidate]) -> typing.Tuple[NoteCandidate, ...]:

	"""Deduplicate by cent-rounded pitch (first kept), sort high to low, cap."""

	seen: typing.Set[int] = set()
	unique: typing.List[NoteCandidate] = []

	for candidate in candidates:

		cents = round(1200 * math.log2(candidate.frequency / dennewitz.constants.A4_FREQUENCY))

		if cents in seen:
			continue

		seen.add(cents)
		unique.append(candidate)

	unique.sort(key=lambda c: c.frequency, reverse=True)

	return tuple(unique[:dennewitz.constants.MAX_CANDIDATES])


def scan_columns (
	grid: CellGrid,
	size: int,
	scale: dennewitz.scales.ScaleDefinition,
	position: Position,
	ages: typing.Optional[CellGrid] = None,
) -> ScanResult:

	"""Automatic sampling: three columns around the cursor, full height."""

	center_col = dennewitz.scales.round_half_up(position[0])
	length = len(scale)
	found: typing.List[NoteCandidate] = []
	matched = 0

	# Centre column first so it wins deduplication against the flanks.
	for dc in (0, -1, 1):

		col = (center_col + dc) % size
		volume = CENTER_VOLUME if dc == 0 else FLANK_VOLUME

		for row in range(size):

			if grid[row][col] != 1:
				continue

			matched += 1
			note_index = row_to_note_index(row, size, length)
			found.append(_candidate(scale, note_index, 0, volume, row, col, _age_at(ages, row, col)))

	return ScanResult(
		candidates=_finish(found),
		position=position,
		density=matched / (3 * size),
		live_count=matched,
	)


def scan_harmonic_space (
	grid: CellGrid,
	size: int,
	scale: dennewitz.scales.ScaleDefinition,
	position: Position,
	ages: typing.Optional[CellGrid] = None,
) -> ScanResult:

	"""Manual sampling: a root from the cursor height, spread from its distance to centre.

	Degrees from ``root - 7`` to ``root + 7`` are considered. Degrees above
	the root are lifted by up to ``MAX_LIFT_OCTAVES`` octaves in proportion
	to the spread. A degree is emitted only when a live cell lies within
	``GATE_ROWS`` rows and ``GATE_COLS`` columns of that degree's row at the
	cursor column; it takes the age of the oldest such cell. The root and
	every second degree above it are chord tones (full volume).
	"""

	x, y = position
	length = len(scale)
	half = size / 2
	spread = min(1.0, abs(x - half) / half)
	center_col = dennewitz.scales.round_half_up(x) % size
	root_index = row_to_note_index(y, size, length)
	found: typing.List[NoteCandidate] = []

	for k in range(-VOICING_WINDOW, VOICING_WINDOW + 1):

		note_index = root_index + k
		lift = dennewitz.scales.round_half_up(spread * MAX_LIFT_OCTAVES * k / VOICING_WINDOW) if k > 0 else 0
		target_row = note_index_to_row(note_index, size, length)

		gate: typing.Optional[typing.Tuple[int, int, int]] = None

		for dr in range(-GATE_ROWS, GATE_ROWS + 1):
			row = (target_row + dr) % size
			for dc in range(-GATE_COLS, GATE_COLS + 1):
				col = (center_col + dc) % size
				if grid[row][col] != 1:
					continue
				age = _age_at(ages, row, col)
				if gate is None or age > gate[0]:
					gate = (age, row, col)

		if gate is None:
			continue

		age, row, col = gate
		volume = CENTER_VOLUME if k in CHORD_TONE_STEPS else FLANK_VOLUME
		found.append(_candidate(scale, note_index, lift, volume, row, col, age))

	# Density over an 11x11 window around the cursor.
	matched = 0
	cursor_row = dennewitz.scales.round_half_up(y)

	for dr in range(-DENSITY_RADIUS, DENSITY_RADIUS + 1):
		row = (cursor_row + dr) % size
		for dc in range(-DENSITY_RADIUS, DENSITY_RADIUS + 1):
			if grid[row][(center_col + dc) % size] == 1:
				matched += 1

	area = (2 * DENSITY_RADIUS + 1) ** 2

	return ScanResult(
		candidates=_finish(found),
		position=position,
		density=matched / area,
		live_count=matched,
	)


def scan (
	grid: CellGrid,
	size: int,
	scale: dennewitz.scales.ScaleDefinition,
	position: Position,
	harmonic_space: bool = False,
	ages: typing.Optional[CellGrid] = None,
) -> ScanResult:

	"""Sample the grid at ``position`` with the strategy for the current control mode.

	Parameters:
		grid: Cell states.
		size: Grid dimension.
		scale: Pitch system for degree mapping.
		position: Resolved scan coordinate (see :func:`resolve_position`).
		harmonic_space: Use manual-mode sampling instead of the column window.
		ages: Optional age grid; without it every live cell counts as age 1.
	"""

	if harmonic_space:
		return scan_harmonic_space(grid, size, scale, position, ages)

	return scan_columns(grid, size, scale, position, ages)
