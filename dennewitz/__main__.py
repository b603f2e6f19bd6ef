import argparse
import logging
import random
import typing

import dennewitz.config
import dennewitz.sequencer


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def parse_args (argv: typing.Optional[typing.List[str]] = None) -> argparse.Namespace:

	"""
	Parse command-line arguments.
	"""

	parser = argparse.ArgumentParser(description="Render cellular-automaton music to a MIDI file")
	parser.add_argument("--config", default="config.yaml", help="YAML settings file (default: config.yaml)")
	parser.add_argument("--steps", type=int, default=64, help="Number of sixteenth-note steps to render")
	parser.add_argument("--output", default=None, help="Output .mid file (default: timestamped name)")
	parser.add_argument("--loop", action="store_true", help="Export only the first loop_steps steps as a loop")

	return parser.parse_args(argv)


def main (argv: typing.Optional[typing.List[str]] = None) -> None:

	"""
	Main entry point: render a session offline and write it as a MIDI file.
	"""

	args = parse_args(argv)

	logger.info("Dennewitz starting...")

	settings = dennewitz.config.load_config(args.config)

	if args.loop:
		settings.loop_lock = True

	seq = dennewitz.sequencer.Sequencer(settings, rng=random.Random(settings.seed), record_filename=args.output)
	seq.automaton.randomize(settings.seed)

	if args.loop:
		seq.render(settings.loop_steps)
		data = seq.export_loop()
		filename = args.output or "dennewitz_loop.mid"
		if data is not None:
			with open(filename, "wb") as f:
				f.write(data)
			logger.info(f"Saved {filename}")
		return

	seq.start_recording(0.0)
	seq.render(args.steps)
	seq.stop_recording()
	seq.save_recording()


if __name__ == "__main__":
	main()
