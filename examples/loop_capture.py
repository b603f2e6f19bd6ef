"""Loop capture - freeze four bars of a living grid and export them.

A seeded random grid evolves under a wandering cursor that is drawn toward
clusters of live cells. With loop lock on, the sequencer captures the
first LOOP_STEPS scans and then replays them, so the arpeggio settles into
a repeating figure even though the automaton keeps evolving underneath.
The captured loop is exported as a standalone MIDI clip, ready to drop
into a DAW and repeat.

How to run
----------
1. Run: python examples/loop_capture.py [seed]
2. Import loop.mid into a DAW clip and loop it.

Every seed gives a different grid, and so a different loop.
"""

import logging
import random
import sys

import dennewitz.config
import dennewitz.sequencer


logging.basicConfig(level=logging.INFO)

LOOP_STEPS = 64
OUTPUT = "loop.mid"


seed = sys.argv[1] if len(sys.argv) > 1 else "dennewitz"

settings = dennewitz.config.Settings(
	tempo=108,
	scale="dorian",
	treatment="arpeggio",
	control_mode="wanderer",
	loop_lock=True,
	loop_steps=LOOP_STEPS,
	seed=seed,
)

seq = dennewitz.sequencer.Sequencer(settings, rng=random.Random(seed))
seq.automaton.randomize(seed)

# Play the loop through twice: once to capture, once replaying.
results = seq.render(LOOP_STEPS * 2)

played = sum(len(r.notes) for r in results[:LOOP_STEPS])
print(f"Captured {LOOP_STEPS} steps ({played} notes) from seed '{seed}'")

data = seq.export_loop()

if data is not None:
	with open(OUTPUT, "wb") as f:
		f.write(data)
	print(f"Wrote {OUTPUT}")
