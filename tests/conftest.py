import random
import typing

import pytest

import dennewitz.scales
import dennewitz.scanner


class FixedRandom (random.Random):

	"""Random stub returning fixed values, for tests that need to steer mutation or jitter."""

	def __init__ (self, value: float = 0.0, angle: float = 0.0) -> None:

		"""Store the value returned by random() and the angle returned by uniform()."""

		super().__init__(0)
		self.value = value
		self.angle = angle

	def random (self) -> float:
		return self.value

	def uniform (self, a: float, b: float) -> float:
		return self.angle


def make_note (pitch: int, volume: float = 1.0, age: int = 1, row: int = 0, col: int = 0) -> dennewitz.scanner.NoteCandidate:

	"""Build an equal-tempered candidate for a MIDI pitch."""

	return dennewitz.scanner.NoteCandidate(
		frequency=dennewitz.scales.semitone_to_frequency(pitch),
		pitch=pitch,
		volume=volume,
		row=row,
		col=col,
		age=age,
	)


def grid_with (size: int, cells: typing.Iterable[typing.Tuple[int, int]]) -> typing.List[typing.List[int]]:

	"""A size x size grid with the given (x, y) cells alive."""

	grid = [[0] * size for _ in range(size)]

	for x, y in cells:
		grid[y][x] = 1

	return grid


@pytest.fixture
def fixed_random () -> typing.Type[FixedRandom]:

	"""Factory for deterministic random stubs."""

	return FixedRandom


@pytest.fixture
def note () -> typing.Callable[..., dennewitz.scanner.NoteCandidate]:

	"""Factory for note candidates."""

	return make_note


@pytest.fixture
def make_grid () -> typing.Callable[..., typing.List[typing.List[int]]]:

	"""Factory for grids with chosen live cells."""

	return grid_with
