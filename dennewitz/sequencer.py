"""The step-synchronous engine that ties the pipeline together.

Each call to :meth:`Sequencer.tick` performs one sixteenth-note step in a
fixed order:

1. every fourth step, the automaton advances one generation;
2. the active trajectory generator (if any) moves the cursor;
3. the scanner reads the grid at the resolved position (or, under loop lock
   once the loop is full, a captured scan is replayed);
4. the treatment turns the scan into notes;
5. the notes are recorded when recording is on.

The sequencer never reads a clock. The caller (a real-time scheduler, or
:meth:`Sequencer.render` for offline use) passes the time of every step and
must deliver steps in non-decreasing time order. All state lives on the
instance, so any number of sequencers can run side by side.
"""

import dataclasses
import logging
import random
import typing

import dennewitz.automaton
import dennewitz.config
import dennewitz.constants
import dennewitz.dynamics
import dennewitz.loop_export
import dennewitz.midi_recorder
import dennewitz.scales
import dennewitz.scanner
import dennewitz.trajectories
import dennewitz.treatment


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class StepResult:

	"""What happened on one step, for playback and display."""

	step: int
	time: float
	scan: dennewitz.scanner.ScanResult
	dynamics: dennewitz.dynamics.Dynamics
	notes: typing.Tuple[dennewitz.treatment.PlayedNote, ...]


class Sequencer:

	"""
	Drives the automaton, cursor, scanner, treatment and recorder one step at a time.

	Example:
		```python
		settings = dennewitz.config.Settings(scale="dorian", treatment="line")
		seq = Sequencer(settings, rng=random.Random(7))
		seq.automaton.randomize(settings.seed)
		seq.start_recording(0.0)
		seq.render(64)
		data = seq.export_recording()
		```
	"""

	def __init__ (
		self,
		settings: dennewitz.config.Settings,
		rng: typing.Optional[random.Random] = None,
		record: bool = False,
		record_filename: typing.Optional[str] = None,
	) -> None:

		"""Validate the settings and build fresh pipeline state.

		Parameters:
			settings: Pipeline configuration. Validated here, so a bad scale or
				tempo fails before any step runs.
			rng: Random source for mutation and wanderer jitter (default: a new
				unseeded generator).
			record: Start recording immediately at time 0.
			record_filename: Default filename for :meth:`save_recording`.

		Raises:
			ValueError: If the settings are invalid.
		"""

		settings.validate()

		self.settings = settings
		self.rng = rng if rng is not None else random.Random()
		self.scale = dennewitz.scales.get_scale(settings.scale)
		self.step = 0

		self.automaton = dennewitz.automaton.Automaton(settings.grid_size, settings.mutation_rate, self.rng)
		self.manual_position: dennewitz.scanner.Position = (settings.grid_size / 2, settings.grid_size / 2)
		self.wanderer = dennewitz.trajectories.initial_wanderer(settings.grid_size)
		self.attractor = dennewitz.trajectories.initial_attractor(settings.grid_size)
		self.bounce = dennewitz.trajectories.initial_bounce(settings.grid_size)

		self.treatment = dennewitz.treatment.TreatmentState(settings.treatment, settings.dynamic_sensitivity)

		self.loop_buffer: typing.List[dennewitz.scanner.ScanResult] = []
		self._loop_position = 0

		self.recorder = dennewitz.midi_recorder.MidiRecorder()
		self.record_filename = record_filename

		logger.info(
			f"Sequencer configured: {settings.scale} / {settings.treatment} / {settings.control_mode}, "
			f"{settings.tempo} BPM, {settings.grid_size}x{settings.grid_size} grid"
		)

		if record:
			self.start_recording(0.0)

	@property
	def step_seconds (self) -> float:
		return self.settings.step_seconds

	@property
	def is_loop_full (self) -> bool:
		return len(self.loop_buffer) >= self.settings.loop_steps

	def set_tempo (self, tempo: float) -> None:

		"""Change the tempo. Takes effect from the next step."""

		if tempo <= 0:
			raise ValueError(f"Tempo must be positive, got {tempo}")

		self.settings.tempo = tempo
		logger.info(f"Tempo set to {tempo:.2f} BPM")

	def set_manual_position (self, x: float, y: float) -> None:

		"""Move the manual cursor (grid coordinates)."""

		self.manual_position = (x, y)

	def set_loop_lock (self, locked: bool) -> None:

		"""Turn loop lock on or off. Either way the captured loop starts afresh."""

		self.settings.loop_lock = locked
		self.loop_buffer = []
		self._loop_position = 0

		logger.info(f"Loop lock {'on' if locked else 'off'} ({self.settings.loop_steps} steps)")

	def _trajectory_position (self) -> typing.Optional[dennewitz.scanner.Position]:

		"""Advance the active trajectory generator and return its position."""

		mode = self.settings.control_mode
		size = self.settings.grid_size

		if mode == "wanderer":
			self.wanderer = dennewitz.trajectories.step_wanderer(self.wanderer, self.automaton.live_cells, size, self.rng)
			return (self.wanderer.x, self.wanderer.y)

		if mode == "attractor":
			self.attractor = dennewitz.trajectories.step_attractor(self.attractor, size)
			return (self.attractor.grid_x, self.attractor.grid_y)

		if mode == "bounce":
			self.bounce = dennewitz.trajectories.step_bounce(self.bounce, size)
			return (self.bounce.x, self.bounce.y)

		return None

	def _scan (self) -> dennewitz.scanner.ScanResult:

		"""Scan the current grid, or replay the captured loop when it is locked and full."""

		if self.settings.loop_lock and self.is_loop_full:
			scan = self.loop_buffer[self._loop_position % self.settings.loop_steps]
			self._loop_position += 1
			return scan

		grid, ages = self.automaton.snapshot()
		size = self.settings.grid_size

		position = dennewitz.scanner.resolve_position(
			grid,
			size,
			self.settings.control_mode,
			self.manual_position,
			self._trajectory_position(),
			self.automaton.live_cells,
		)

		scan = dennewitz.scanner.scan(
			grid,
			size,
			self.scale,
			position,
			harmonic_space=self.settings.control_mode == "manual",
			ages=ages,
		)

		if self.settings.loop_lock:
			self.loop_buffer.append(scan)
			if self.is_loop_full:
				logger.info(f"Loop captured ({self.settings.loop_steps} steps)")

		return scan

	def tick (self, time: float) -> StepResult:

		"""Run one step at ``time`` (seconds on the caller's clock)."""

		step = self.step

		if step % dennewitz.constants.STEPS_PER_GENERATION == 0:
			self.automaton.step()

		scan = self._scan()
		dynamics, notes = self.treatment.render(scan, step, time, self.step_seconds)

		if self.recorder.is_active:
			for note in notes:
				self.recorder.record_note(note.frequency, note.time, note.duration, note.velocity)

		self.step += 1

		return StepResult(step=step, time=time, scan=scan, dynamics=dynamics, notes=tuple(notes))

	def render (self, steps: int, start_time: float = 0.0) -> typing.List[StepResult]:

		"""Run ``steps`` consecutive steps as fast as possible, spaced one step length apart."""

		results: typing.List[StepResult] = []

		for i in range(steps):
			results.append(self.tick(start_time + i * self.step_seconds))

		return results

	def start_recording (self, time: float) -> None:

		"""Start a fresh recording at ``time``. Microtonal scales record across channels."""

		self.recorder.single_channel = not dennewitz.scales.is_microtonal(self.scale)
		self.recorder.start(time)

	def stop_recording (self) -> None:

		"""Stop recording; the events are kept for export."""

		self.recorder.stop()

	def export_recording (self) -> bytes:

		"""The current recording as MIDI file bytes."""

		return self.recorder.export_bytes(self.settings.tempo)

	def save_recording (self) -> typing.Optional[str]:

		"""Write the recording to ``record_filename`` (or a timestamped name). Does nothing when empty."""

		if not self.recorder.has_events:
			logger.info("Nothing recorded - skipping save")
			return None

		return self.recorder.save(self.settings.tempo, self.record_filename)

	def export_loop (self) -> typing.Optional[bytes]:

		"""The captured loop as MIDI file bytes, or ``None`` when nothing has been captured."""

		if not self.loop_buffer:
			logger.warning("No loop captured - enable loop lock and play first")
			return None

		return dennewitz.loop_export.export_loop_as_midi(self.loop_buffer[:self.settings.loop_steps], self.settings)
