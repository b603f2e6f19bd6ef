"""Turn one step's scan into played notes.

A treatment decides how the consonant subset of a scan is sounded:

- ``chord`` - a voice-led 3-5 note chord, two steps long.
- ``line`` - one note chosen by the melodic state machine, three steps long
  scaled by cell age.
- ``arpeggio`` - one note picked by the density-selected arpeggio pattern.

:class:`TreatmentState` carries the cross-step memory (previous voicing,
melodic state, previous density). The live sequencer and loop export each
use their own instance.
"""

import dataclasses
import logging
import typing

import dennewitz.arpeggio
import dennewitz.consonance
import dennewitz.constants
import dennewitz.constants.durations
import dennewitz.dynamics
import dennewitz.melodic_state
import dennewitz.scanner


logger = logging.getLogger(__name__)

TREATMENTS = ("chord", "line", "arpeggio")


@dataclasses.dataclass(frozen=True)
class PlayedNote:

	"""A note ready for playback or recording. ``time`` and ``duration`` are in seconds."""

	frequency: float
	pitch: int
	time: float
	duration: float
	velocity: int


class TreatmentState:

	"""Cross-step memory for one treatment."""

	def __init__ (self, treatment: str, sensitivity: float, max_notes: int = dennewitz.constants.MAX_CANDIDATES) -> None:

		"""Create fresh state.

		Parameters:
			treatment: ``"chord"``, ``"line"`` or ``"arpeggio"``.
			sensitivity: Dynamic sensitivity (0-1).
			max_notes: Upper bound on notes kept by consonance selection.
		"""

		if treatment not in TREATMENTS:
			raise ValueError(f"Unknown treatment '{treatment}'. Available: {list(TREATMENTS)}")

		self.treatment = treatment
		self.sensitivity = sensitivity
		self.max_notes = max_notes
		self.voice_leading = dennewitz.consonance.VoiceLeadingState()
		self.melodic_state = dennewitz.melodic_state.MelodicState()
		self.previous_density: typing.Optional[float] = None

	def render (
		self,
		scan: dennewitz.scanner.ScanResult,
		step: int,
		time: float,
		step_seconds: float,
	) -> typing.Tuple[dennewitz.dynamics.Dynamics, typing.List[PlayedNote]]:

		"""Render one step.

		Parameters:
			scan: This step's scan result.
			step: Sequencer step number (drives metric accents and arpeggio position).
			time: Start time of the step in seconds.
			step_seconds: Length of one step in seconds.

		Returns:
			The step's dynamics and the notes to play (empty on a rest).
		"""

		selected = dennewitz.consonance.select_by_consonance(scan.candidates, self.max_notes, scan.density)
		dynamics = dennewitz.dynamics.compute_dynamics(scan.density, self.previous_density, step, self.sensitivity)
		self.previous_density = scan.density

		if dynamics.rest:
			return dynamics, []

		# Silent steps leave the melodic state alone.
		if not selected:
			return dynamics, []

		if self.treatment == "chord":
			chord = self.voice_leading.next(selected)
			duration = step_seconds * dennewitz.constants.durations.CHORD_STEPS
			notes = [
				PlayedNote(n.frequency, n.pitch, time, duration, dynamics.velocity)
				for n in chord.notes
			]

		elif self.treatment == "line":
			choice = self.melodic_state.choose_next(selected)
			if choice.note is None:
				return dynamics, []
			duration = step_seconds * dennewitz.constants.durations.LINE_STEPS * choice.duration
			notes = [PlayedNote(choice.note.frequency, choice.note.pitch, time, duration, dynamics.velocity)]

		else:
			pattern = dennewitz.arpeggio.select_arp_pattern(scan.density)
			note = selected[dennewitz.arpeggio.arp_index(pattern, step, len(selected))]
			duration = step_seconds * dennewitz.constants.durations.ARPEGGIO_STEPS * dennewitz.arpeggio.arp_duration(note.age)
			notes = [PlayedNote(note.frequency, note.pitch, time, duration, dynamics.velocity)]

		logger.debug(f"Step {step}: {self.treatment} {[n.pitch for n in notes]} velocity {dynamics.velocity}")

		return dynamics, notes
