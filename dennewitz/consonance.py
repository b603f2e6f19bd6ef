"""Consonance scoring, note selection and chord voicing.

Intervals are scored by a fixed table indexed by semitone distance mod 12.
Two strategies build on it:

- :func:`select_by_consonance` - a greedy pass that thins a scan down to a
  density-dependent number of notes that sound well together.
- :func:`voice_chord` - an exhaustive search over 3-5 note subsets that
  balances consonance against smooth movement from the previous chord.

Example:
	```python
	selected = select_by_consonance(scan.candidates, max_notes=8, density=scan.density)
	state = VoiceLeadingState()
	chord = state.next(selected)
	```
"""

import dataclasses
import itertools
import typing

import dennewitz.scales
import dennewitz.scanner


# Interval (semitones mod 12) -> consonance weight.
INTERVAL_SCORES: typing.Dict[int, int] = {
	0: 10,   # unison / octave
	1: 1,    # minor 2nd
	2: 3,    # major 2nd
	3: 5,    # minor 3rd
	4: 6,    # major 3rd
	5: 7,    # perfect 4th
	6: 1,    # tritone
	7: 8,    # perfect 5th
	8: 4,    # minor 6th
	9: 6,    # major 6th
	10: 3,   # minor 7th
	11: 2,   # major 7th
}

SPREAD_WEIGHT = 0.3
STABILITY_WEIGHT = 0.2
MAX_STABLE_AGE = 5

MIN_VOICES = 3
MAX_VOICES = 5
MOVEMENT_WEIGHT = 1.5
COMMON_TONE_BONUS = 4
MUDDY_PITCH = 59
MUDDY_INTERVAL = 3
MUDDY_PENALTY = 8

Candidate = dennewitz.scanner.NoteCandidate


def interval_score (semitones: float) -> int:

	"""Consonance weight of an interval of any size or sign."""

	return INTERVAL_SCORES[abs(int(round(semitones))) % 12]


def pairwise_consonance (notes: typing.Sequence[Candidate]) -> float:

	"""Sum of volume-weighted interval scores over every pair of notes."""

	score = 0.0

	for a, b in itertools.combinations(notes, 2):
		score += interval_score(a.pitch - b.pitch) * a.volume * b.volume

	return score


def target_note_count (density: float, max_notes: int) -> int:

	"""Fewer notes when the grid is sparse, more when dense: ``clamp(round(2 + 24 * density), 2, max_notes)``."""

	return max(2, min(max_notes, dennewitz.scales.round_half_up(2 + 24 * density)))


def select_by_consonance (
	candidates: typing.Sequence[Candidate],
	max_notes: int,
	density: float,
	min_consonance: float = 0,
) -> typing.List[Candidate]:

	"""
	Greedily pick a consonant subset of the candidates.

	Starting from the highest candidate, each round adds the remaining note
	with the best score: volume-weighted consonance with everything already
	chosen, plus a bonus for widening the register and a bonus for older
	(more stable) cells. Candidates forming any interval scored below
	``min_consonance`` with a chosen note are skipped; when nothing passes
	the floor the selection stops early, except that a second note is always
	chosen so the result never drops below two notes.

	Parameters:
		candidates: Scan candidates, sorted high to low.
		max_notes: Upper bound on the result size.
		density: Scan density (0-1), which sets the target size.
		min_consonance: Interval-score floor (0 disables it).

	Returns:
		The selected notes sorted high to low. When the input already fits the
		target it is returned unchanged.
	"""

	target = target_note_count(density, max_notes)

	if len(candidates) <= target:
		return list(candidates)

	selected: typing.List[Candidate] = [candidates[0]]
	remaining: typing.List[Candidate] = list(candidates[1:])

	while len(selected) < target and remaining:

		best = _best_partner(selected, remaining, min_consonance)

		if best is None and len(selected) < 2:
			best = _best_partner(selected, remaining, 0)

		if best is None:
			break

		selected.append(best)
		remaining.remove(best)

	selected.sort(key=lambda n: n.frequency, reverse=True)

	return selected


def _best_partner (
	selected: typing.Sequence[Candidate],
	remaining: typing.Sequence[Candidate],
	min_consonance: float,
) -> typing.Optional[Candidate]:

	mean_pitch = sum(n.pitch for n in selected) / len(selected)
	best: typing.Optional[Candidate] = None
	best_score = float("-inf")

	for candidate in remaining:

		if min_consonance > 0 and any(interval_score(candidate.pitch - s.pitch) < min_consonance for s in selected):
			continue

		score = 0.0

		for s in selected:
			score += interval_score(candidate.pitch - s.pitch) * candidate.volume * s.volume

		score += abs(candidate.pitch - mean_pitch) * SPREAD_WEIGHT
		score += min(candidate.age, MAX_STABLE_AGE) * STABILITY_WEIGHT

		if score > best_score:
			best_score = score
			best = candidate

	return best


@dataclasses.dataclass(frozen=True)
class VoicedChord:

	"""The chosen voicing (high to low) and its score."""

	notes: typing.Tuple[Candidate, ...]
	consonance: float


def _voicing_score (subset: typing.Sequence[Candidate], previous_pitches: typing.Sequence[int]) -> float:

	score = pairwise_consonance(subset)

	# Voice leading: penalise movement, reward common tones.
	if previous_pitches:

		movement = 0
		common_tones = 0

		for note in subset:
			nearest = min(abs(note.pitch - prev) for prev in previous_pitches)
			common_tones += sum(1 for prev in previous_pitches if prev == note.pitch)
			movement += nearest

		score -= movement * MOVEMENT_WEIGHT
		score += common_tones * COMMON_TONE_BONUS

	# Close intervals in the low register turn to mud.
	for a, b in itertools.combinations(subset, 2):
		if a.pitch < MUDDY_PITCH and b.pitch < MUDDY_PITCH and abs(a.pitch - b.pitch) < MUDDY_INTERVAL:
			score -= MUDDY_PENALTY

	return score


def voice_chord (candidates: typing.Sequence[Candidate], previous_pitches: typing.Sequence[int]) -> VoicedChord:

	"""Choose the best 3-5 note voicing from the candidates.

	Every subset of size 3 up to ``min(5, len(candidates))`` is enumerated in
	lexicographic index order and scored; the first subset reaching the
	maximum score wins. Three or fewer candidates are returned as they are,
	scored by raw pairwise consonance.

	Parameters:
		candidates: Notes to voice (typically the output of
			:func:`select_by_consonance`, at most eight).
		previous_pitches: Pitch numbers of the previous voicing, or empty.
	"""

	if len(candidates) <= MIN_VOICES:
		return VoicedChord(notes=tuple(candidates), consonance=pairwise_consonance(candidates))

	best_subset: typing.Sequence[Candidate] = candidates[:MIN_VOICES]
	best_score = float("-inf")

	for size in range(MIN_VOICES, min(MAX_VOICES, len(candidates)) + 1):

		for subset in itertools.combinations(candidates, size):

			score = _voicing_score(subset, previous_pitches)

			if score > best_score:
				best_score = score
				best_subset = subset

	notes = sorted(best_subset, key=lambda n: n.frequency, reverse=True)

	return VoicedChord(notes=tuple(notes), consonance=best_score)


class VoiceLeadingState:

	"""Track the previous voicing across chord changes.

	Each treatment that voices chords gets its own instance so independent
	sequencers voice-lead independently.
	"""

	def __init__ (self) -> None:

		"""Start with no previous voicing."""

		self.previous_pitches: typing.List[int] = []

	def next (self, candidates: typing.Sequence[Candidate]) -> VoicedChord:

		"""Voice the candidates against the previous chord and remember the result."""

		chord = voice_chord(candidates, self.previous_pitches)
		self.previous_pitches = [n.pitch for n in chord.notes]

		return chord

	def reset (self) -> None:

		"""Forget the previous voicing."""

		self.previous_pitches = []
