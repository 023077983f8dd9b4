#!/usr/bin/env python3

"""
Tests for the audio_chunker command line.
"""

# Standard Library
import os
import sys

# PIP3 modules
import pytest
import yaml

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
import audio_chunker
from chunklib.core import utils
from chunklib.core.errors import ConfigError

#============================================

def test_input_required_unless_writing_config() -> None:
	with pytest.raises(SystemExit):
		audio_chunker.parse_args([])
	args = audio_chunker.parse_args(["--write-config", "out.yaml"])
	assert args.input_ref is None
	args = audio_chunker.parse_args(["-i", "talk.mp3", "-q"])
	assert args.input_ref == "talk.mp3"
	assert args.quiet is True
	assert args.dump_summary is False

#============================================

def test_overrides_apply_on_top_of_config(tmp_path) -> None:
	config_path = tmp_path / "chunker.yaml"
	config_path.write_text(
		"audio_chunker: 1\n"
		"settings:\n"
		"  limits:\n"
		"    max_size_mb: 10\n"
	)
	args = audio_chunker.parse_args(["-i", "talk.mp3", "-c", str(config_path),
		"-d", "300", "-t", "-45"])
	constraints = audio_chunker.build_constraints_from_args(args)
	assert constraints.max_size_mb == 10.0
	assert constraints.max_duration_seconds == 300.0
	assert constraints.silence_threshold_db == -45.0
	assert constraints.min_silence_duration_seconds == 0.5

#============================================

def test_invalid_override_rejected() -> None:
	args = audio_chunker.parse_args(["-i", "talk.mp3", "-m", "0"])
	with pytest.raises(ConfigError):
		audio_chunker.build_constraints_from_args(args)

#============================================

def test_write_config(tmp_path, capsys) -> None:
	path = str(tmp_path / "chunker.yaml")
	assert audio_chunker.main(["--write-config", path]) == 0
	with open(path, "r") as handle:
		data = yaml.safe_load(handle)
	assert data['audio_chunker'] == 1
	assert "wrote" in capsys.readouterr().out

#============================================

def test_unsupported_file_exits_nonzero(tmp_path, capsys) -> None:
	source = tmp_path / "notes.xyz"
	source.write_bytes(b"not audio")
	code = audio_chunker.main(["-i", str(source), "-w", str(tmp_path / "work"), "-q"])
	utils.set_quiet_mode(False)
	assert code == 1
	assert "unsupported file format" in capsys.readouterr().err
	assert source.exists()

#============================================

def test_missing_file_exits_nonzero(tmp_path, capsys) -> None:
	code = audio_chunker.main(["-i", str(tmp_path / "gone.mp3"), "-w", str(tmp_path), "-q"])
	utils.set_quiet_mode(False)
	assert code == 1
	assert "file not found" in capsys.readouterr().err
