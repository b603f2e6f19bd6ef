"""Tests for the step-synchronous sequencer, loop lock and loop export.

Covers:
- Settings validation at construction
- Automaton generations every fourth step
- Scan position per control mode
- Recording a session and decoding it back
- Loop capture, cyclic replay and loop export
- Independence of two sequencers
- The command-line entry point
"""

import io
import random

import mido
import pytest

import dennewitz.__main__
import dennewitz.config
import dennewitz.loop_export
import dennewitz.midi_recorder
import dennewitz.sequencer


# A 2x2 block near the centre: a still life, so every scan sees the same two notes.
BLOCK = [(15, 15), (16, 15), (15, 16), (16, 16)]


def _sequencer (make_grid, **overrides) -> dennewitz.sequencer.Sequencer:

	"""A sequencer on a block still life, without mutation."""

	values = {"scale": "diatonic", "treatment": "chord", "mutation_rate": 0.0}
	values.update(overrides)

	settings = dennewitz.config.Settings(**values)
	seq = dennewitz.sequencer.Sequencer(settings, rng=random.Random(1))
	seq.automaton.load(make_grid(settings.grid_size, BLOCK))

	return seq


# ---------------------------------------------------------------------------
# Stepping
# ---------------------------------------------------------------------------

def test_invalid_settings_rejected () -> None:
	"""Construction validates the settings."""
	with pytest.raises(ValueError):
		dennewitz.sequencer.Sequencer(dennewitz.config.Settings(scale="nope"))


def test_automaton_advances_every_fourth_step (make_grid) -> None:
	"""Generations happen on steps 0, 4, 8 ..."""
	seq = _sequencer(make_grid)

	seq.render(5)

	assert seq.automaton.generation == 2
	assert seq.step == 5


def test_step_times_are_spaced (make_grid) -> None:
	"""render() spaces steps one sixteenth apart from the start time."""
	seq = _sequencer(make_grid, tempo=120)

	results = seq.render(4, start_time=3.0)

	assert [r.step for r in results] == [0, 1, 2, 3]
	assert [r.time for r in results] == pytest.approx([3.0, 3.125, 3.25, 3.375])


def test_block_plays_two_note_chords (make_grid) -> None:
	"""The block lights two scale degrees in the centroid window."""
	seq = _sequencer(make_grid)

	result = seq.tick(0.0)

	assert [n.pitch for n in result.notes] == [55, 53]
	assert result.scan.density == pytest.approx(4 / 96)
	assert result.scan.position == (15.5, 15.5)


def test_set_tempo_changes_step_length (make_grid) -> None:
	"""Tempo changes take effect on the next step; non-positive tempos are refused."""
	seq = _sequencer(make_grid)

	seq.set_tempo(60)

	assert seq.step_seconds == pytest.approx(0.25)

	with pytest.raises(ValueError):
		seq.set_tempo(0)


# ---------------------------------------------------------------------------
# Control modes
# ---------------------------------------------------------------------------

def test_manual_mode_scans_at_manual_position (make_grid) -> None:
	"""Manual mode samples harmonic space at the external coordinate."""
	seq = _sequencer(make_grid, control_mode="manual")
	seq.set_manual_position(15.0, 15.0)

	result = seq.tick(0.0)

	assert result.scan.position == (15.0, 15.0)
	assert result.scan.candidates


@pytest.mark.parametrize("mode", ["wanderer", "attractor", "bounce"])
def test_trajectory_modes_move_the_cursor (make_grid, mode: str) -> None:
	"""Trajectory modes scan wherever the generator has moved to."""
	seq = _sequencer(make_grid, control_mode=mode)

	positions = [r.scan.position for r in seq.render(8)]

	assert len(set(positions)) > 1
	for x, y in positions:
		assert 0 <= x < 32
		assert 0 <= y < 32


# ---------------------------------------------------------------------------
# Recording
# ---------------------------------------------------------------------------

def test_recording_round_trip (make_grid) -> None:
	"""Every played note ends up in the exported file."""
	seq = _sequencer(make_grid)
	seq.start_recording(0.0)

	results = seq.render(8)
	seq.stop_recording()

	played = sum(len(r.notes) for r in results)
	spans = dennewitz.midi_recorder.decode_notes(seq.export_recording())

	assert played == 16
	assert len(spans) == played
	assert {s[0] for s in spans} == {0}


def test_record_from_construction () -> None:
	"""record=True starts recording at time zero."""
	seq = dennewitz.sequencer.Sequencer(dennewitz.config.Settings(), record=True)

	assert seq.recorder.is_active
	assert seq.recorder.single_channel is True


def test_microtonal_scale_records_across_channels (make_grid) -> None:
	"""Ratio scales need a channel per sounding note for pitch bend."""
	seq = _sequencer(make_grid, scale="just-simple")
	seq.start_recording(0.0)

	assert seq.recorder.single_channel is False

	seq.render(2)
	channels = {e.channel for e in seq.recorder.events}

	assert len(channels) > 1


def test_save_recording (make_grid, tmp_path) -> None:
	"""A non-empty recording is written to the configured filename."""
	path = str(tmp_path / "session.mid")
	seq = _sequencer(make_grid)
	seq.record_filename = path
	seq.start_recording(0.0)
	seq.render(4)
	seq.stop_recording()

	assert seq.save_recording() == path
	assert mido.MidiFile(path).type == 0


def test_empty_recording_is_not_saved (tmp_path) -> None:
	"""Nothing recorded means nothing written."""
	seq = dennewitz.sequencer.Sequencer(
		dennewitz.config.Settings(mutation_rate=0.0),
		record_filename=str(tmp_path / "empty.mid"),
	)
	seq.start_recording(0.0)
	seq.render(4)

	assert seq.save_recording() is None
	assert not (tmp_path / "empty.mid").exists()


# ---------------------------------------------------------------------------
# Loop lock
# ---------------------------------------------------------------------------

def test_loop_lock_replays_captured_scans (make_grid) -> None:
	"""Once the loop is full the captured scans repeat in order."""
	seq = _sequencer(make_grid, loop_lock=True, loop_steps=4)

	results = seq.render(10)

	assert len(seq.loop_buffer) == 4
	assert seq.is_loop_full
	for i in range(4, 10):
		assert results[i].scan is results[i % 4].scan


def test_loop_lock_toggle_clears_buffer (make_grid) -> None:
	"""Changing loop lock starts a fresh capture."""
	seq = _sequencer(make_grid, loop_lock=True, loop_steps=4)
	seq.render(6)

	seq.set_loop_lock(False)

	assert seq.loop_buffer == []
	assert seq.settings.loop_lock is False


def test_export_loop (make_grid) -> None:
	"""The captured loop exports as one pass of notes from time zero."""
	seq = _sequencer(make_grid, loop_lock=True, loop_steps=4)
	seq.render(9)

	data = seq.export_loop()
	spans = dennewitz.midi_recorder.decode_notes(data)

	assert len(spans) == 8
	assert spans[0][2] == 0
	assert data == dennewitz.loop_export.export_loop_as_midi(seq.loop_buffer, seq.settings)


def test_export_loop_without_capture (make_grid) -> None:
	"""No captured loop means nothing to export."""
	seq = _sequencer(make_grid)
	seq.render(4)

	assert seq.export_loop() is None


def test_empty_loop_export_is_valid () -> None:
	"""Exporting an empty buffer still yields a well-formed file."""
	data = dennewitz.loop_export.export_loop_as_midi([], dennewitz.config.Settings())
	mid = mido.MidiFile(file=io.BytesIO(data))

	assert mid.type == 0
	assert not any(m.type == "note_on" for m in mid.tracks[0])


# ---------------------------------------------------------------------------
# Independence
# ---------------------------------------------------------------------------

def test_sequencers_are_independent () -> None:
	"""Two sequencers with equal settings and seeds play the same thing without sharing state."""
	def build () -> dennewitz.sequencer.Sequencer:
		settings = dennewitz.config.Settings(treatment="line", control_mode="wanderer", dynamic_sensitivity=0.0)
		seq = dennewitz.sequencer.Sequencer(settings, rng=random.Random(9))
		seq.automaton.randomize(settings.seed)
		return seq

	a = build()
	b = build()

	first = [[n.pitch for n in r.notes] for r in a.render(32)]
	second = [[n.pitch for n in r.notes] for r in b.render(32)]

	assert first == second
	assert a.automaton is not b.automaton
	assert a.treatment.melodic_state is not b.treatment.melodic_state

	a.automaton.clear()

	assert b.automaton.live_cells


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------

def test_cli_exports_loop (tmp_path) -> None:
	"""The --loop option renders one loop and writes it to the output file."""
	output = tmp_path / "loop.mid"

	dennewitz.__main__.main([
		"--config", str(tmp_path / "absent.yaml"),
		"--loop",
		"--output", str(output),
	])

	assert output.exists()
	assert mido.MidiFile(str(output)).type == 0


def test_cli_parses_arguments () -> None:
	"""Defaults match the documented options."""
	args = dennewitz.__main__.parse_args([])

	assert args.config == "config.yaml"
	assert args.steps == 64
	assert args.output is None
	assert args.loop is False
