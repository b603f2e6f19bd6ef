"""Scan-position generators.

Each generator is a small dynamical system that moves the scan cursor one
integration step per sequencer tick:

- **wanderer** - drifts toward nearby live cells under an inverse-square pull,
  with momentum and random jitter.
- **attractor** - the Lorenz system, projected onto the grid.
- **bounce** - straight-line motion reflecting off the grid edges.

States are frozen dataclasses and every step function returns a new state,
so two sequencers never share trajectory state.
"""

import dataclasses
import math
import random
import typing


# Wanderer
GRAVITY_RADIUS = 8.0
MOMENTUM_DECAY = 0.85
GRAVITY_WEIGHT = 0.4
JITTER_WEIGHT = 0.3
WANDER_SPEED = 0.5

# Lorenz attractor
LORENZ_SIGMA = 10.0
LORENZ_RHO = 28.0
LORENZ_BETA = 8.0 / 3.0
LORENZ_DT = 0.008
LORENZ_SUBSTEPS = 3
LORENZ_X_RANGE = (-20.0, 20.0)
LORENZ_Y_RANGE = (-27.0, 27.0)


@dataclasses.dataclass(frozen=True)
class WandererState:

	"""Position and velocity of the gravitational wanderer."""

	x: float
	y: float
	vx: float
	vy: float


@dataclasses.dataclass(frozen=True)
class AttractorState:

	"""Continuous Lorenz state plus its projection onto the grid."""

	x: float
	y: float
	z: float
	grid_x: float
	grid_y: float


@dataclasses.dataclass(frozen=True)
class BounceState:

	"""Position and velocity of the bouncing cursor."""

	x: float
	y: float
	vx: float
	vy: float


def initial_wanderer (size: int) -> WandererState:
	return WandererState(x=size / 2, y=size / 2, vx=0.3, vy=0.3)


def initial_attractor (size: int) -> AttractorState:
	return AttractorState(x=1.0, y=1.0, z=1.0, grid_x=size / 2, grid_y=size / 2)


def initial_bounce (size: int) -> BounceState:
	return BounceState(x=size / 2, y=size / 2, vx=0.37, vy=0.23)


def toroidal_delta (origin: float, target: float, size: int) -> float:

	"""Shortest signed offset from ``origin`` to ``target`` on a ring of length ``size``."""

	half = size / 2
	return ((target - origin + half) % size) - half


def _normalise (x: float, y: float) -> typing.Tuple[float, float]:

	length = math.hypot(x, y)

	if length == 0:
		return 0.0, 0.0

	return x / length, y / length


def step_wanderer (
	state: WandererState,
	live_cells: typing.Iterable[int],
	size: int,
	rng: random.Random,
) -> WandererState:

	"""Advance the wanderer by one tick.

	Every live cell within ``GRAVITY_RADIUS`` (measured across the wrapped
	edges) pulls with strength ``1 / d**2``. The summed pull is normalised,
	then blended with the decayed previous velocity and a random unit
	vector, and the result is rescaled to ``WANDER_SPEED``.

	Parameters:
		state: Current wanderer state.
		live_cells: Flat indices (``y * size + x``) of live cells.
		size: Grid dimension.
		rng: Random source for the jitter direction.
	"""

	gx = 0.0
	gy = 0.0

	for index in live_cells:

		cy, cx = divmod(index, size)
		dx = toroidal_delta(state.x, cx, size)
		dy = toroidal_delta(state.y, cy, size)
		distance_sq = dx * dx + dy * dy

		if distance_sq == 0 or distance_sq > GRAVITY_RADIUS * GRAVITY_RADIUS:
			continue

		distance = math.sqrt(distance_sq)
		gx += dx / distance / distance_sq
		gy += dy / distance / distance_sq

	gx, gy = _normalise(gx, gy)

	angle = rng.uniform(0.0, 2 * math.pi)
	jx = math.cos(angle)
	jy = math.sin(angle)

	vx = state.vx * MOMENTUM_DECAY + gx * GRAVITY_WEIGHT + jx * JITTER_WEIGHT
	vy = state.vy * MOMENTUM_DECAY + gy * GRAVITY_WEIGHT + jy * JITTER_WEIGHT

	vx, vy = _normalise(vx, vy)

	if vx == 0 and vy == 0:
		vx, vy = jx, jy

	vx *= WANDER_SPEED
	vy *= WANDER_SPEED

	return WandererState(
		x=(state.x + vx) % size,
		y=(state.y + vy) % size,
		vx=vx,
		vy=vy,
	)


def _project (value: float, value_range: typing.Tuple[float, float], size: int) -> float:

	low, high = value_range
	position = (value - low) / (high - low) * size

	return max(0.0, min(size - 1.0, position))


def step_attractor (state: AttractorState, size: int) -> AttractorState:

	"""Integrate the Lorenz system for one tick and project x/y onto the grid."""

	x, y, z = state.x, state.y, state.z

	for _ in range(LORENZ_SUBSTEPS):
		dx = LORENZ_SIGMA * (y - x)
		dy = x * (LORENZ_RHO - z) - y
		dz = x * y - LORENZ_BETA * z
		x += dx * LORENZ_DT
		y += dy * LORENZ_DT
		z += dz * LORENZ_DT

	return AttractorState(
		x=x,
		y=y,
		z=z,
		grid_x=_project(x, LORENZ_X_RANGE, size),
		grid_y=_project(y, LORENZ_Y_RANGE, size),
	)


def _reflect (position: float, velocity: float, limit: float) -> typing.Tuple[float, float]:

	if position < 0:
		return min(-position, limit), abs(velocity)

	if position > limit:
		return max(2 * limit - position, 0.0), -abs(velocity)

	return position, velocity


def step_bounce (state: BounceState, size: int) -> BounceState:

	"""Move in a straight line, reflecting off the grid edges."""

	limit = size - 1.0
	x, vx = _reflect(state.x + state.vx, state.vx, limit)
	y, vy = _reflect(state.y + state.vy, state.vy, limit)

	return BounceState(x=x, y=y, vx=vx, vy=vy)
