"""Persistent melodic context for single-voice line generation.

Provides :class:`MelodicState`, a small state machine that picks one note per
step from the scanner's candidates. It prefers stepwise motion that keeps
going in the current direction, throws in a leap when the line has been
stepping for a while, and breathes: rests are forced after long runs,
sooner when the grid offers few notes.

The state must outlive a single step, so each sequencer owns one instance and
passes it the candidates every tick. All distances are absolute pitch
differences, so registral direction is tracked across octaves.
"""

import dataclasses
import typing

import dennewitz.consonance
import dennewitz.scanner


SPARSE_REST_AFTER = 6
SPARSE_CANDIDATES = 3
FORCED_REST_AFTER = 10

STEP_RANGE = 4
NEAR_RANGE = 7
DIRECTION_BONUS = 2
LEAP_AFTER = 8
LEAP_DISTANCE = 5
LEAP_BONUS = 4
CONSONANCE_WEIGHT = 0.5


@dataclasses.dataclass(frozen=True)
class MelodicChoice:

	"""A chosen note (``None`` for a rest) and a duration multiplier."""

	note: typing.Optional[dennewitz.scanner.NoteCandidate]
	duration: float


def age_to_duration (age: int) -> float:

	"""Older cells hold their notes longer."""

	if age > 3:
		return 1.5

	if age > 1:
		return 1.0

	return 0.6


class MelodicState:

	"""Persistent melodic context that scores candidates for a single-note line."""

	def __init__ (self) -> None:

		"""Start with no previous note, heading upward."""

		self.last_pitch: typing.Optional[int] = None
		self.direction: int = 1
		self.steps_since_rest: int = 0
		self.steps_since_leap: int = 0

	def _rest (self) -> MelodicChoice:

		self.steps_since_rest = 0
		return MelodicChoice(note=None, duration=1.0)

	def choose_next (self, candidates: typing.Sequence[dennewitz.scanner.NoteCandidate]) -> MelodicChoice:

		"""Pick the next note of the line, or a rest.

		Parameters:
			candidates: Notes available this step, sorted high to low.

		Returns:
			The choice. A rest has ``note=None`` and a duration of 1.0.
		"""

		if not candidates:
			return self._rest()

		if self.steps_since_rest > SPARSE_REST_AFTER and len(candidates) < SPARSE_CANDIDATES:
			return self._rest()

		if self.steps_since_rest > FORCED_REST_AFTER:
			return self._rest()

		if self.last_pitch is None:
			note = candidates[len(candidates) // 2]
			self.last_pitch = note.pitch
			self.steps_since_rest += 1
			self.steps_since_leap += 1
			return MelodicChoice(note=note, duration=age_to_duration(note.age))

		last = self.last_pitch
		best = candidates[0]
		best_score = float("-inf")

		for candidate in candidates:

			score = self._score_candidate(candidate, last)

			if score > best_score:
				best_score = score
				best = candidate

		if best.pitch != last:
			self.direction = 1 if best.pitch > last else -1

		if abs(best.pitch - last) > STEP_RANGE:
			self.steps_since_leap = 0
		else:
			self.steps_since_leap += 1

		self.last_pitch = best.pitch
		self.steps_since_rest += 1

		return MelodicChoice(note=best, duration=age_to_duration(best.age))

	def _score_candidate (self, candidate: dennewitz.scanner.NoteCandidate, last: int) -> float:

		"""Score one candidate against the last note: proximity, direction, leap incentive, consonance."""

		distance = abs(candidate.pitch - last)

		if distance <= STEP_RANGE:
			score = 10.0 - distance
		elif distance <= NEAR_RANGE:
			score = 3.0
		else:
			score = 1.0

		moves_with_direction = (
			(self.direction == 1 and candidate.pitch > last)
			or (self.direction == -1 and candidate.pitch < last)
		)

		if moves_with_direction:
			score += DIRECTION_BONUS

		if self.steps_since_leap > LEAP_AFTER and distance > LEAP_DISTANCE:
			score += LEAP_BONUS

		score += dennewitz.consonance.interval_score(candidate.pitch - last) * CONSONANCE_WEIGHT

		return score * candidate.volume
