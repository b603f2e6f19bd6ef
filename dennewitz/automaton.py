"""Toroidal Game of Life with cell ages and stochastic mutation.

The grid is a square list of rows holding 0 (dead) or 1 (alive). A parallel
age grid counts how many generations each live cell has survived: births
start at 1, survivals add 1, deaths reset to 0. Edges wrap in both
directions, so every cell has exactly eight neighbours.

:func:`advance` is the pure generation step. :class:`Automaton` owns one
grid/age pair for a sequencer and hands out immutable snapshots to the
scanner.
"""

import logging
import random
import typing


logger = logging.getLogger(__name__)

Grid = typing.List[typing.List[int]]
GridSnapshot = typing.Tuple[typing.Tuple[int, ...], ...]

MASK_32 = 0xFFFFFFFF

# Probability threshold for a live cell when seeding a random grid.
RANDOM_FILL_THRESHOLD = 0.82


def empty_grid (size: int) -> Grid:

	"""Return a size x size grid of zeros."""

	return [[0] * size for _ in range(size)]


def ages_from_grid (grid: typing.Sequence[typing.Sequence[int]]) -> Grid:

	"""Build an age grid for a freshly seeded or painted grid (every live cell is age 1)."""

	return [[1 if cell == 1 else 0 for cell in row] for row in grid]


def find_live_cells (grid: typing.Sequence[typing.Sequence[int]], size: int) -> typing.Set[int]:

	"""Return the flat indices (``y * size + x``) of every live cell."""

	return {
		y * size + x
		for y in range(size)
		for x in range(size)
		if grid[y][x] == 1
	}


def advance (
	grid: typing.Sequence[typing.Sequence[int]],
	ages: typing.Sequence[typing.Sequence[int]],
	size: int,
	mutation_rate: float,
	rng: random.Random,
) -> typing.Tuple[Grid, Grid]:

	"""Compute the next generation of a toroidal grid and its age grid.

	Standard B3/S23 rules: a live cell with 2 or 3 live neighbours survives
	and ages by one, any other live cell dies (age 0); a dead cell with
	exactly 3 neighbours is born (age 1). After the rules are applied each
	cell flips state with probability ``mutation_rate``, and the flipped
	cell takes the birth or death age.

	Parameters:
		grid: Current cell states (0 or 1), ``size`` rows of ``size`` cells.
		ages: Current ages, same shape as ``grid``.
		size: Grid dimension.
		mutation_rate: Per-cell flip probability (0.0 disables mutation and
			draws no random numbers).
		rng: Random source for mutation.

	Returns:
		A new ``(grid, ages)`` pair. The inputs are not modified.
	"""

	new_grid = [list(row) for row in grid]
	new_ages = [list(row) for row in ages]

	for y in range(size):

		row = grid[y]
		new_row = new_grid[y]
		new_age_row = new_ages[y]

		for x in range(size):

			neighbours = 0

			for dy in (-1, 0, 1):
				neighbour_row = grid[(y + dy) % size]
				for dx in (-1, 0, 1):
					if dy == 0 and dx == 0:
						continue
					if neighbour_row[(x + dx) % size] == 1:
						neighbours += 1

			if row[x] == 1:
				if neighbours < 2 or neighbours > 3:
					new_row[x] = 0
					new_age_row[x] = 0
				else:
					new_age_row[x] = ages[y][x] + 1

			else:
				if neighbours == 3:
					new_row[x] = 1
					new_age_row[x] = 1
				else:
					new_age_row[x] = 0

			if mutation_rate > 0 and rng.random() < mutation_rate:
				new_row[x] = 0 if new_row[x] else 1
				new_age_row[x] = 1 if new_row[x] else 0

	return new_grid, new_ages


def sfc32 (a: int, b: int, c: int, d: int) -> typing.Callable[[], float]:

	"""Return a Small Fast Counting (sfc32) generator yielding floats in [0, 1).

	Used only for seeding grids from a text seed, so that the same seed
	string always produces the same starting pattern.
	"""

	state = [a & MASK_32, b & MASK_32, c & MASK_32, d & MASK_32]

	def next_value () -> float:

		a, b, c, d = state
		t = (a + b + d) & MASK_32
		d = (d + 1) & MASK_32
		a = b ^ (b >> 9)
		b = (c + (c << 3)) & MASK_32
		c = ((c << 21) | (c >> 11)) & MASK_32
		c = (c + t) & MASK_32
		state[:] = [a, b, c, d]

		return t / 4294967296

	return next_value


def seed_from_string (seed: str) -> int:

	"""Fold a text seed into an integer (sum of code points)."""

	return sum(ord(ch) for ch in seed)


def random_grid (size: int, seed: str) -> Grid:

	"""Fill a grid deterministically from a text seed (roughly 18% alive)."""

	rand = sfc32(0x9E3779B9, 0x243F6A88, 0xB7E15162, seed_from_string(seed))

	return [
		[1 if rand() > RANDOM_FILL_THRESHOLD else 0 for _ in range(size)]
		for _ in range(size)
	]


def snapshot_of (grid: typing.Sequence[typing.Sequence[int]]) -> GridSnapshot:

	"""Freeze a grid into nested tuples."""

	return tuple(tuple(row) for row in grid)


class Automaton:

	"""Owns one grid/age pair and evolves it a generation at a time.

	Example:
		```python
		automaton = Automaton(size=32, mutation_rate=0.001, rng=random.Random(1))
		automaton.randomize("dennewitz")
		automaton.step()
		grid, ages = automaton.snapshot()
		```
	"""

	def __init__ (self, size: int, mutation_rate: float = 0.0, rng: typing.Optional[random.Random] = None) -> None:

		"""Start with an empty grid of the given size."""

		self.size = size
		self.mutation_rate = mutation_rate
		self.rng = rng if rng is not None else random.Random()
		self.generation = 0
		self.grid: Grid = empty_grid(size)
		self.ages: Grid = empty_grid(size)
		self.live_cells: typing.Set[int] = set()

	def randomize (self, seed: str) -> None:

		"""Replace the grid with a seeded random pattern; every live cell starts at age 1."""

		self.grid = random_grid(self.size, seed)
		self.ages = ages_from_grid(self.grid)
		self.live_cells = find_live_cells(self.grid, self.size)
		self.generation = 0

		logger.info(f"Seeded {self.size}x{self.size} grid from '{seed}' ({len(self.live_cells)} live cells)")

	def load (self, grid: typing.Sequence[typing.Sequence[int]], ages: typing.Optional[typing.Sequence[typing.Sequence[int]]] = None) -> None:

		"""Adopt an externally supplied grid (and optionally its ages)."""

		if len(grid) != self.size or any(len(row) != self.size for row in grid):
			raise ValueError(f"Grid must be {self.size}x{self.size}")

		self.grid = [[1 if cell else 0 for cell in row] for row in grid]
		self.ages = [list(row) for row in ages] if ages is not None else ages_from_grid(self.grid)
		self.live_cells = find_live_cells(self.grid, self.size)

	def clear (self) -> None:

		"""Kill every cell."""

		self.grid = empty_grid(self.size)
		self.ages = empty_grid(self.size)
		self.live_cells = set()

	def set_cell (self, x: int, y: int, alive: bool) -> None:

		"""Paint a single cell. Coordinates wrap like the rest of the torus."""

		x %= self.size
		y %= self.size
		self.grid[y][x] = 1 if alive else 0
		self.ages[y][x] = 1 if alive else 0

		index = y * self.size + x
		if alive:
			self.live_cells.add(index)
		else:
			self.live_cells.discard(index)

	def step (self) -> None:

		"""Advance one generation."""

		self.grid, self.ages = advance(self.grid, self.ages, self.size, self.mutation_rate, self.rng)
		self.live_cells = find_live_cells(self.grid, self.size)
		self.generation += 1

		logger.debug(f"Generation {self.generation}: {len(self.live_cells)} live cells")

	def snapshot (self) -> typing.Tuple[GridSnapshot, GridSnapshot]:

		"""Return immutable copies of the grid and age grid."""

		return snapshot_of(self.grid), snapshot_of(self.ages)
