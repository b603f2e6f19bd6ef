"""Tests for Settings validation and YAML config loading."""

import logging

import pytest

import dennewitz.config


def test_defaults () -> None:
	"""The defaults describe a playable pentatonic arpeggio at 120 BPM."""
	settings = dennewitz.config.Settings()

	settings.validate()

	assert settings.tempo == 120
	assert settings.scale == "pentatonic"
	assert settings.treatment == "arpeggio"
	assert settings.control_mode == "centroid"
	assert settings.grid_size == 32
	assert settings.loop_steps == 16
	assert settings.step_seconds == pytest.approx(0.125)


@pytest.mark.parametrize("overrides", [
	{"scale": "bohlen-pierce"},
	{"tempo": 0},
	{"tempo": -60},
	{"treatment": "drone"},
	{"control_mode": "mouse"},
	{"dynamic_sensitivity": 1.5},
	{"dynamic_sensitivity": -0.1},
	{"mutation_rate": 1.0},
	{"grid_size": 0},
	{"loop_steps": 0},
])
def test_invalid_settings_raise (overrides) -> None:
	"""Each out-of-range or unknown setting is rejected."""
	settings = dennewitz.config.Settings(**overrides)

	with pytest.raises(ValueError):
		settings.validate()


def test_non_standard_grid_size_warns (caplog) -> None:
	"""Unusual grid sizes are allowed but logged."""
	settings = dennewitz.config.Settings(grid_size=20)

	with caplog.at_level(logging.WARNING, logger="dennewitz.config"):
		settings.validate()

	assert "not one of the standard sizes" in caplog.text


def test_load_config_from_yaml (tmp_path) -> None:
	"""Known keys override the defaults."""
	path = tmp_path / "config.yaml"
	path.write_text(
		"tempo: 96\n"
		"scale: just-simple\n"
		"treatment: chord\n"
		"control_mode: attractor\n"
		"seed: glider\n"
	)

	settings = dennewitz.config.load_config(str(path))

	assert settings.tempo == 96
	assert settings.scale == "just-simple"
	assert settings.treatment == "chord"
	assert settings.control_mode == "attractor"
	assert settings.seed == "glider"
	assert settings.grid_size == 32


def test_missing_config_uses_defaults (tmp_path, caplog) -> None:
	"""A missing file falls back to defaults with a warning."""
	with caplog.at_level(logging.WARNING, logger="dennewitz.config"):
		settings = dennewitz.config.load_config(str(tmp_path / "absent.yaml"))

	assert settings == dennewitz.config.Settings()
	assert "not found" in caplog.text


def test_empty_config_uses_defaults (tmp_path) -> None:
	"""An empty YAML document is the same as no overrides."""
	path = tmp_path / "config.yaml"
	path.write_text("")

	assert dennewitz.config.load_config(str(path)) == dennewitz.config.Settings()


def test_unknown_keys_are_ignored (tmp_path, caplog) -> None:
	"""Unrecognised keys are logged and dropped."""
	path = tmp_path / "config.yaml"
	path.write_text("tempo: 100\nosc_port: 9000\n")

	with caplog.at_level(logging.WARNING, logger="dennewitz.config"):
		settings = dennewitz.config.load_config(str(path))

	assert settings.tempo == 100
	assert "osc_port" in caplog.text


def test_non_mapping_config_raises (tmp_path) -> None:
	"""A YAML list is not a valid config."""
	path = tmp_path / "config.yaml"
	path.write_text("- 1\n- 2\n")

	with pytest.raises(ValueError):
		dennewitz.config.load_config(str(path))


def test_invalid_value_in_file_raises (tmp_path) -> None:
	"""Values from the file are validated."""
	path = tmp_path / "config.yaml"
	path.write_text("scale: nonexistent\n")

	with pytest.raises(ValueError, match="Unknown scale"):
		dennewitz.config.load_config(str(path))


@pytest.mark.parametrize("text", [
	"tempo: \"120\"\n",
	"grid_size: 32.0\n",
	"loop_steps: sixteen\n",
	"dynamic_sensitivity: true\n",
	"seed: 42\n",
	"loop_lock: maybe\n",
])
def test_wrong_type_in_file_raises (tmp_path, text: str) -> None:
	"""Values of the wrong type are configuration errors, not crashes later on."""
	path = tmp_path / "config.yaml"
	path.write_text(text)

	with pytest.raises(ValueError, match="must be"):
		dennewitz.config.load_config(str(path))
