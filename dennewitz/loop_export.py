"""Export a captured loop of scans as a MIDI file.

When loop lock is on, the sequencer keeps the scans of the first
``loop_steps`` steps. Exporting replays those scans through a fresh
treatment and recorder, starting at time zero, so the file contains exactly
one pass of the loop regardless of what was heard live.
"""

import logging
import typing

import dennewitz.config
import dennewitz.midi_recorder
import dennewitz.scales
import dennewitz.scanner
import dennewitz.treatment


logger = logging.getLogger(__name__)


def render_loop (
	loop_buffer: typing.Sequence[dennewitz.scanner.ScanResult],
	settings: dennewitz.config.Settings,
) -> dennewitz.midi_recorder.MidiRecorder:

	"""Replay the scans into a new, stopped recorder."""

	scale = dennewitz.scales.get_scale(settings.scale)
	step_seconds = settings.step_seconds

	recorder = dennewitz.midi_recorder.MidiRecorder(single_channel=not dennewitz.scales.is_microtonal(scale))
	treatment = dennewitz.treatment.TreatmentState(settings.treatment, settings.dynamic_sensitivity)

	recorder.start(0.0)

	for step, scan in enumerate(loop_buffer):

		time = step * step_seconds
		_, notes = treatment.render(scan, step, time, step_seconds)

		for note in notes:
			recorder.record_note(note.frequency, note.time, note.duration, note.velocity)

	recorder.stop()

	return recorder


def export_loop_as_midi (
	loop_buffer: typing.Sequence[dennewitz.scanner.ScanResult],
	settings: dennewitz.config.Settings,
) -> bytes:

	"""Render a loop of scans to Standard MIDI File bytes.

	Parameters:
		loop_buffer: Scans in step order (one loop).
		settings: Treatment, tempo, sensitivity and scale to render with.

	Raises:
		ValueError: On an unknown scale or treatment, or a non-positive tempo.
	"""

	if not loop_buffer:
		logger.warning("Exporting an empty loop")

	recorder = render_loop(loop_buffer, settings)

	logger.info(f"Exported loop of {len(loop_buffer)} steps ({len(recorder.events)} events)")

	return recorder.export_bytes(settings.tempo)
