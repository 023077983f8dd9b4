#!/usr/bin/env python3

"""
Tests for config loading and constraint validation.
"""

# Standard Library
import os
import sys
import tempfile
import unittest

# PIP3 modules
import yaml

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from chunklib.core import config
from chunklib.core.errors import ConfigError

#============================================

class ConfigTests(unittest.TestCase):
	def setUp(self):
		self.temp_dir = tempfile.TemporaryDirectory()
		self.addCleanup(self.temp_dir.cleanup)

	#============================
	def _write(self, text: str) -> str:
		path = os.path.join(self.temp_dir.name, "chunker.yaml")
		with open(path, "w") as handle:
			handle.write(text)
		return path

	#============================
	def test_defaults_match_service_limits(self):
		constraints = config.build_constraints(environ={})
		self.assertEqual(constraints, config.Constraints())
		self.assertEqual(constraints.max_duration_seconds, 1200.0)
		self.assertEqual(constraints.max_size_mb, 25.0)
		self.assertEqual(constraints.max_size_bytes, 25 * 1024 * 1024)
		self.assertEqual(constraints.silence_threshold_db, -30.0)
		self.assertEqual(constraints.min_silence_duration_seconds, 0.5)
		self.assertEqual(constraints.target_silence_search_ratio, 0.95)
		self.assertEqual(constraints.canonical_extension, "mp3")
		self.assertIn("webm", constraints.allowed_extensions)
		self.assertNotIn("xyz", constraints.allowed_extensions)

	#============================
	def test_within_limits_is_inclusive(self):
		constraints = config.Constraints()
		self.assertTrue(constraints.within_limits(1200.0, 25.0))
		self.assertFalse(constraints.within_limits(1200.5, 10.0))
		self.assertFalse(constraints.within_limits(60.0, 25.01))

	#============================
	def test_load_partial_config(self):
		path = self._write(
			"audio_chunker: 1\n"
			"settings:\n"
			"  limits:\n"
			"    max_duration_seconds: 600\n"
			"  silence:\n"
			"    threshold_db: -40\n"
			"  formats:\n"
			"    allowed: mp3, .WAV\n"
		)
		raw = config.load_config(path)
		constraints = config.build_constraints(raw, path, environ={})
		self.assertEqual(constraints.max_duration_seconds, 600.0)
		self.assertEqual(constraints.max_size_mb, 25.0)
		self.assertEqual(constraints.silence_threshold_db, -40.0)
		self.assertEqual(constraints.allowed_extensions, frozenset({"mp3", "wav"}))

	#============================
	def test_version_key_required(self):
		path = self._write("settings: {}\n")
		with self.assertRaises(ConfigError):
			config.load_config(path)

	#============================
	def test_missing_file_and_bad_yaml(self):
		with self.assertRaises(ConfigError):
			config.load_config(os.path.join(self.temp_dir.name, "absent.yaml"))
		path = self._write("audio_chunker: [1\n")
		with self.assertRaises(ConfigError):
			config.load_config(path)

	#============================
	def test_environment_overrides_tool_paths(self):
		environ = {'FFMPEG_PATH': "/opt/ffmpeg/bin/ffmpeg"}
		constraints = config.build_constraints(environ=environ)
		self.assertEqual(constraints.ffmpeg_path, "/opt/ffmpeg/bin/ffmpeg")
		self.assertEqual(constraints.ffprobe_path, "ffprobe")

	#============================
	def test_invalid_values_rejected(self):
		bad_settings = [
			{'limits': {'max_size_mb': 0}},
			{'limits': {'max_duration_seconds': "long"}},
			{'limits': {'size_safety_ratio': 1.5}},
			{'silence': {'search_ratio': 0}},
			{'silence': {'hop_seconds': 0.1, 'frame_seconds': 0.05}},
			{'silence': {'min_duration': True}},
			{'formats': {'canonical': "aac"}},
			{'formats': {'allowed': []}},
			{'codecs': {'mp3': True}},
			{'limits': 5},
		]
		for settings in bad_settings:
			raw = {'audio_chunker': 1, 'settings': settings}
			with self.subTest(settings=settings):
				with self.assertRaises(ConfigError):
					config.build_constraints(raw, "test.yaml", environ={})

	#============================
	def test_write_config_round_trip(self):
		path = os.path.join(self.temp_dir.name, "nested", "chunker.yaml")
		config.write_config_file(path)
		with open(path, "r") as handle:
			data = yaml.safe_load(handle)
		self.assertEqual(data, config.default_config())
		constraints = config.build_constraints(config.load_config(path), path, environ={})
		self.assertEqual(constraints, config.Constraints())


if __name__ == "__main__":
	unittest.main()
