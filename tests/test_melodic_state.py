"""Tests for MelodicState - single-note line generation.

Covers:
- Rests (empty pool, sparse pool after a run, forced rest after a long run)
- First note taken from the middle of the candidates
- _score_candidate() rules: proximity, direction, leap incentive, consonance, volume
- Direction and leap counters
- Age-driven duration multipliers
"""

import pytest

import dennewitz.melodic_state


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _state (
	last_pitch: int = 64,
	direction: int = 1,
	steps_since_rest: int = 1,
	steps_since_leap: int = 1,
) -> dennewitz.melodic_state.MelodicState:

	"""Create a MelodicState mid-phrase."""

	ms = dennewitz.melodic_state.MelodicState()
	ms.last_pitch = last_pitch
	ms.direction = direction
	ms.steps_since_rest = steps_since_rest
	ms.steps_since_leap = steps_since_leap

	return ms


# ---------------------------------------------------------------------------
# Rests
# ---------------------------------------------------------------------------

class TestRests:

	def test_empty_pool_rests (self) -> None:
		"""No candidates means a rest and a fresh phrase."""
		ms = _state(steps_since_rest=5)

		choice = ms.choose_next([])

		assert choice.note is None
		assert choice.duration == 1.0
		assert ms.steps_since_rest == 0

	def test_sparse_pool_rests_after_six_steps (self, note) -> None:
		"""With fewer than three candidates the line breathes after six notes."""
		ms = _state(steps_since_rest=7)

		choice = ms.choose_next([note(67), note(60)])

		assert choice.note is None
		assert ms.steps_since_rest == 0

	def test_rich_pool_keeps_playing (self, note) -> None:
		"""Three or more candidates hold off the early rest."""
		ms = _state(steps_since_rest=7)

		choice = ms.choose_next([note(67), note(64), note(60)])

		assert choice.note is not None
		assert ms.steps_since_rest == 8

	def test_forced_rest_after_ten_steps (self, note) -> None:
		"""Past ten notes the line always rests."""
		ms = _state(steps_since_rest=11)

		choice = ms.choose_next([note(p) for p in (72, 69, 67, 64, 60)])

		assert choice.note is None


# ---------------------------------------------------------------------------
# Note choice
# ---------------------------------------------------------------------------

class TestChoice:

	def test_first_note_from_middle (self, note) -> None:
		"""Without history the line starts from the middle candidate."""
		ms = dennewitz.melodic_state.MelodicState()

		choice = ms.choose_next([note(72), note(67), note(64), note(60)])

		assert choice.note.pitch == 64
		assert ms.last_pitch == 64
		assert ms.steps_since_rest == 1
		assert ms.steps_since_leap == 1
		assert ms.direction == 1

	def test_prefers_small_steps_in_direction (self, note) -> None:
		"""Equal scores go to the first candidate; octave leaps lose to steps."""
		ms = _state(last_pitch=64, direction=1)

		# 67: 7 + 2 + 2.5 = 11.5, 65: 9 + 2 + 0.5 = 11.5, 76: 8, 52: 6
		choice = ms.choose_next([note(76), note(67), note(65), note(52)])

		assert choice.note.pitch == 67
		assert ms.direction == 1
		assert ms.steps_since_leap == 2

	def test_direction_follows_motion (self, note) -> None:
		"""Moving down flips the direction."""
		ms = _state(last_pitch=64, direction=1)

		ms.choose_next([note(62)])

		assert ms.direction == -1
		assert ms.last_pitch == 62

	def test_repeated_pitch_keeps_direction (self, note) -> None:
		"""A repeated note does not change direction."""
		ms = _state(last_pitch=64, direction=-1)

		ms.choose_next([note(64)])

		assert ms.direction == -1

	def test_leap_resets_counter (self, note) -> None:
		"""A move of more than four semitones counts as a leap."""
		ms = _state(last_pitch=60, steps_since_leap=3)

		ms.choose_next([note(70)])

		assert ms.steps_since_leap == 0

	@pytest.mark.parametrize("steps_since_leap,expected", [(9, 67), (0, 62)])
	def test_leap_incentive (self, note, steps_since_leap: int, expected: int) -> None:
		"""After eight stepwise notes a leap of more than five semitones gets a bonus."""
		ms = _state(last_pitch=60, steps_since_leap=steps_since_leap)

		choice = ms.choose_next([note(67), note(62)])

		assert choice.note.pitch == expected

	def test_volume_scales_score (self, note) -> None:
		"""A quiet flank note loses to a loud one that would otherwise score lower."""
		ms = _state(last_pitch=60, direction=1)

		# 62: (8 + 2 + 1.5) * 0.6 = 6.9, 59: 9 + 0 + 0.5 = 9.5
		choice = ms.choose_next([note(62, volume=0.6), note(59)])

		assert choice.note.pitch == 59

	def test_score_candidate_components (self, note) -> None:
		"""Proximity bands give 10 - d, then 3, then 1, before bonuses."""
		ms = _state(last_pitch=60, direction=-1)

		# Up moves get no direction bonus here; consonance is half the interval score.
		assert ms._score_candidate(note(62), 60) == pytest.approx(8 + 1.5)
		assert ms._score_candidate(note(66), 60) == pytest.approx(3 + 0.5)
		assert ms._score_candidate(note(72), 60) == pytest.approx(1 + 5)
		assert ms._score_candidate(note(58), 60) == pytest.approx(8 + 2 + 1.5)


# ---------------------------------------------------------------------------
# Durations
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("age,expected", [(1, 0.6), (2, 1.0), (3, 1.0), (4, 1.5), (10, 1.5)])
def test_age_to_duration (age: int, expected: float) -> None:
	"""Older cells hold their notes longer."""
	assert dennewitz.melodic_state.age_to_duration(age) == expected


def test_choice_duration_from_age (note) -> None:
	"""The chosen note's duration multiplier comes from its cell age."""
	ms = dennewitz.melodic_state.MelodicState()

	choice = ms.choose_next([note(67, age=5)])

	assert choice.duration == 1.5
