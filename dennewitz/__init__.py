"""
Dennewitz - music composed by a cellular automaton.

A toroidal Game of Life grid evolves with slow random mutation while a
cursor roams over it. Every sixteenth note the live cells around the cursor
are read as pitches, thinned to a consonant subset, and sounded as chords,
a melodic line, or an arpeggio whose loudness follows how crowded the grid
is. Everything can be recorded to a Standard MIDI File, including
just-intonation and quarter-tone scales via per-channel pitch bend.

The pipeline:

- **Automaton** (``dennewitz.automaton``) - B3/S23 on a torus with cell ages
  and mutation; grids seeded from a text seed.
- **Cursor** (``dennewitz.trajectories``, ``dennewitz.scanner``) - the live-cell
  centroid, a manual coordinate, or one of three moving generators: a
  wanderer pulled by nearby cells, the Lorenz attractor, or a bouncing point.
- **Scales** (``dennewitz.scales``) - twelve equal-tempered scales, two
  just-intonation scales and a quarter-tone scale.
- **Harmony** (``dennewitz.consonance``, ``dennewitz.melodic_state``,
  ``dennewitz.arpeggio``, ``dennewitz.dynamics``) - consonance-driven note
  selection, voice-led chords, a stepwise melodic state machine, arpeggio
  patterns, density-driven velocity and rests.
- **Output** (``dennewitz.midi_recorder``, ``dennewitz.loop_export``) - a
  format-0 MIDI writer built on mido.

Minimal example:

    ```python
    import random

    import dennewitz

    settings = dennewitz.Settings(scale="just-simple", treatment="chord")
    seq = dennewitz.Sequencer(settings, rng=random.Random(1))
    seq.automaton.randomize(settings.seed)
    seq.start_recording(0.0)
    seq.render(64)
    seq.stop_recording()
    seq.save_recording()
    ```

Package-level exports: ``Sequencer``, ``Settings``, ``MelodicState``,
``MidiRecorder``, ``load_config``.
"""

import dennewitz.config
import dennewitz.melodic_state
import dennewitz.midi_recorder
import dennewitz.sequencer


Sequencer = dennewitz.sequencer.Sequencer
Settings = dennewitz.config.Settings
MelodicState = dennewitz.melodic_state.MelodicState
MidiRecorder = dennewitz.midi_recorder.MidiRecorder
load_config = dennewitz.config.load_config
