"""Timing, pitch and scanning constants shared across the pipeline.

The sequencer advances in **steps**, one sixteenth note each. The automaton
evolves once every ``STEPS_PER_GENERATION`` steps; everything else (trajectory,
scan, treatment) runs on every step.

Submodules:
- ``dennewitz.constants.midi`` - file resolution, channels, pitch bend.
- ``dennewitz.constants.velocity`` - velocity limits.
- ``dennewitz.constants.durations`` - note lengths in steps.
"""

STEPS_PER_BEAT = 4
STEPS_PER_GENERATION = 4

# Scanner pitch mapping: the grid spans NUM_OCTAVES octaves from BASE_OCTAVE.
BASE_OCTAVE = 3
NUM_OCTAVES = 3
MAX_CANDIDATES = 8

A4_FREQUENCY = 440.0
A4_MIDI = 69
