"""Sequencer settings and YAML configuration loading.

Example ``config.yaml``::

    tempo: 96
    scale: just-simple
    treatment: chord
    control_mode: attractor
    dynamic_sensitivity: 0.8
    mutation_rate: 0.002
    grid_size: 32
    loop_steps: 16
    seed: dennewitz
"""

import dataclasses
import logging
import os
import typing

import yaml

import dennewitz.scales
import dennewitz.scanner
import dennewitz.treatment


logger = logging.getLogger(__name__)

GRID_SIZES = (16, 24, 32, 48, 64)


@dataclasses.dataclass
class Settings:

	"""Everything the pipeline is configured by."""

	tempo: float = 120
	scale: str = "pentatonic"
	treatment: str = "arpeggio"
	control_mode: str = "centroid"
	dynamic_sensitivity: float = 0.7
	mutation_rate: float = 0.001
	grid_size: int = 32
	loop_steps: int = 16
	loop_lock: bool = False
	seed: str = "dennewitz"

	@property
	def step_seconds (self) -> float:

		"""Length of one sequencer step (a sixteenth note) in seconds."""

		return 60.0 / self.tempo / 4

	def validate (self) -> None:

		"""Reject settings the pipeline cannot run with.

		Raises:
			ValueError: On a value of the wrong type, an unknown scale, treatment
				or control mode, or a numeric setting out of range.
		"""

		for name in ("tempo", "dynamic_sensitivity", "mutation_rate"):
			_require_type(name, getattr(self, name), (int, float))

		for name in ("grid_size", "loop_steps"):
			_require_type(name, getattr(self, name), (int,))

		for name in ("scale", "treatment", "control_mode", "seed"):
			_require_type(name, getattr(self, name), (str,))

		if not isinstance(self.loop_lock, bool):
			raise ValueError(f"loop_lock must be true or false, got {self.loop_lock!r}")

		dennewitz.scales.get_scale(self.scale)

		if self.tempo <= 0:
			raise ValueError(f"Tempo must be positive, got {self.tempo}")

		if self.treatment not in dennewitz.treatment.TREATMENTS:
			raise ValueError(f"Unknown treatment '{self.treatment}'. Available: {list(dennewitz.treatment.TREATMENTS)}")

		if self.control_mode not in dennewitz.scanner.CONTROL_MODES:
			raise ValueError(f"Unknown control mode '{self.control_mode}'. Available: {list(dennewitz.scanner.CONTROL_MODES)}")

		if not 0.0 <= self.dynamic_sensitivity <= 1.0:
			raise ValueError(f"Dynamic sensitivity must be within [0, 1], got {self.dynamic_sensitivity}")

		if not 0.0 <= self.mutation_rate < 1.0:
			raise ValueError(f"Mutation rate must be within [0, 1), got {self.mutation_rate}")

		if self.grid_size <= 0:
			raise ValueError(f"Grid size must be a positive integer, got {self.grid_size}")

		if self.grid_size not in GRID_SIZES:
			logger.warning(f"Grid size {self.grid_size} is not one of the standard sizes {list(GRID_SIZES)}")

		if self.loop_steps <= 0:
			raise ValueError(f"Loop length must be a positive number of steps, got {self.loop_steps}")


def _require_type (name: str, value: typing.Any, types: typing.Tuple[type, ...]) -> None:

	"""Raise ValueError unless ``value`` is one of ``types``. Booleans never pass as numbers."""

	if isinstance(value, bool) or not isinstance(value, types):
		expected = " or ".join(t.__name__ for t in types)
		raise ValueError(f"{name} must be {expected}, got {value!r}")


def settings_from_dict (values: typing.Dict[str, typing.Any]) -> Settings:

	"""Overlay known keys onto the defaults and validate. Unknown keys are logged and ignored."""

	known = {field.name for field in dataclasses.fields(Settings)}
	unknown = sorted(set(values) - known)

	if unknown:
		logger.warning(f"Ignoring unknown config keys: {unknown}")

	settings = Settings(**{k: v for k, v in values.items() if k in known})
	settings.validate()

	return settings


def load_config (config_path: str = "config.yaml") -> Settings:

	"""
	Load settings from a YAML file, falling back to defaults when it is missing.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return settings_from_dict({})

	with open(config_path, 'r') as f:
		values = yaml.safe_load(f) or {}

	if not isinstance(values, dict):
		raise ValueError(f"Config file {config_path} must contain a mapping")

	logger.info(f"Loaded config from {config_path}")

	return settings_from_dict(values)
