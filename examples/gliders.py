"""Gliders - a just-intonation chord piece driven by the Lorenz attractor.

Four gliders cross a 32x32 torus while a slow mutation keeps the field
from settling. The scan cursor rides the Lorenz attractor, so it loops
around two lobes of the grid and never quite repeats its path. Each step
the cells under the cursor become a voice-led chord in the just-simple
scale. The result is written to a MIDI file with one channel per sounding
note, so every pitch bend survives.

How to run
----------
1. Run: python examples/gliders.py
2. Open gliders.mid in any DAW or player. Set the pitch-bend range of
   the receiving instrument to +/- 2 semitones.

Tweakable parameters
--------------------
- STEPS: Length of the render in sixteenth notes.
- TEMPO: Slower tempos let the chords ring into each other.
- Scale: try "just-extended" for 7- and 11-limit colour, or "quarter-tone".
- Sensitivity: 0 keeps every step at the same level; 1 lets sparse
  regions fall silent.
"""

import logging
import random

import dennewitz.config
import dennewitz.sequencer


logging.basicConfig(level=logging.INFO)

STEPS = 256
TEMPO = 84
OUTPUT = "gliders.mid"

# One glider, drawn relative to its top-left corner.
GLIDER = [(1, 0), (2, 1), (0, 2), (1, 2), (2, 2)]

# Corners the four gliders start from.
ORIGINS = [(3, 3), (19, 5), (7, 20), (24, 24)]


settings = dennewitz.config.Settings(
	tempo=TEMPO,
	scale="just-simple",
	treatment="chord",
	control_mode="attractor",
	dynamic_sensitivity=0.6,
	mutation_rate=0.0005,
	grid_size=32,
)

seq = dennewitz.sequencer.Sequencer(settings, rng=random.Random(1913), record_filename=OUTPUT)

for ox, oy in ORIGINS:
	for dx, dy in GLIDER:
		seq.automaton.set_cell(ox + dx, oy + dy, True)

seq.start_recording(0.0)
seq.render(STEPS)
seq.stop_recording()
seq.save_recording()
