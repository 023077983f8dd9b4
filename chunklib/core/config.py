#!/usr/bin/env python3

import copy
import os
from dataclasses import dataclass

import yaml

from chunklib.core.errors import ConfigError

CONFIG_VERSION = 1

ALLOWED_EXTENSIONS = (
	"flac", "m4a", "mp3", "mp4", "mpeg",
	"mpga", "oga", "ogg", "wav", "webm",
)

#============================================

@dataclass(frozen=True)
class Constraints:
	max_duration_seconds: float = 1200.0
	max_size_mb: float = 25.0
	allowed_extensions: frozenset = frozenset(ALLOWED_EXTENSIONS)
	canonical_extension: str = "mp3"
	silence_threshold_db: float = -30.0
	min_silence_duration_seconds: float = 0.5
	target_silence_search_ratio: float = 0.95
	size_safety_ratio: float = 0.95
	min_segment_seconds: float = 1.0
	frame_seconds: float = 0.05
	hop_seconds: float = 0.01
	scan_sample_rate: int = 16000
	transcode_bitrate: str = "128k"
	ffmpeg_path: str = "ffmpeg"
	ffprobe_path: str = "ffprobe"

	#============================
	@property
	def max_size_bytes(self) -> float:
		return self.max_size_mb * 1024 * 1024

	#============================
	def within_limits(self, duration_seconds: float, size_mb: float) -> bool:
		if duration_seconds > self.max_duration_seconds:
			return False
		if size_mb > self.max_size_mb:
			return False
		return True

#============================================

def default_config() -> dict:
	"""
	Build the default config dictionary.

	Returns:
		dict: Default configuration values.
	"""
	return {
		'audio_chunker': CONFIG_VERSION,
		'settings': {
			'limits': {
				'max_duration_seconds': 1200.0,
				'max_size_mb': 25.0,
				'size_safety_ratio': 0.95,
				'min_segment_seconds': 1.0,
			},
			'silence': {
				'threshold_db': -30.0,
				'min_duration': 0.5,
				'search_ratio': 0.95,
				'frame_seconds': 0.05,
				'hop_seconds': 0.01,
				'sample_rate': 16000,
			},
			'formats': {
				'allowed': list(ALLOWED_EXTENSIONS),
				'canonical': "mp3",
			},
			'transcode': {
				'bitrate': "128k",
			},
			'tools': {
				'ffmpeg': "ffmpeg",
				'ffprobe': "ffprobe",
			},
		},
	}

#============================================

def coerce_float(value, config_path: str, key_path: str) -> float:
	if isinstance(value, bool):
		raise ConfigError(f"config {config_path}: {key_path} must be a number")
	if isinstance(value, (int, float)):
		return float(value)
	if isinstance(value, str):
		try:
			return float(value)
		except ValueError:
			pass
	raise ConfigError(f"config {config_path}: {key_path} must be a number")

#============================================

def coerce_int(value, config_path: str, key_path: str) -> int:
	if isinstance(value, bool):
		raise ConfigError(f"config {config_path}: {key_path} must be an integer")
	if isinstance(value, int):
		return value
	if isinstance(value, float):
		return int(value)
	if isinstance(value, str):
		try:
			return int(float(value))
		except ValueError:
			pass
	raise ConfigError(f"config {config_path}: {key_path} must be an integer")

#============================================

def coerce_str(value, config_path: str, key_path: str) -> str:
	if isinstance(value, (str, int, float)) and not isinstance(value, bool):
		text = str(value).strip()
		if text != "":
			return text
	raise ConfigError(f"config {config_path}: {key_path} must be a non-empty string")

#============================================

def coerce_extensions(value, config_path: str, key_path: str) -> frozenset:
	if isinstance(value, str):
		value = value.replace(',', ' ').split()
	if not isinstance(value, (list, tuple, set)) or len(value) == 0:
		raise ConfigError(f"config {config_path}: {key_path} must be a list of extensions")
	extensions = set()
	for item in value:
		extensions.add(coerce_str(item, config_path, key_path).lstrip('.').lower())
	return frozenset(extensions)

#============================================

def load_config(config_path: str) -> dict:
	"""
	Load a config file from disk.

	Args:
		config_path: Config file path.

	Returns:
		dict: Parsed config dictionary.
	"""
	if not os.path.isfile(config_path):
		raise ConfigError(f"config file not found: {config_path}")
	with open(config_path, 'r', encoding='utf-8') as handle:
		try:
			data = yaml.safe_load(handle)
		except yaml.YAMLError as exc:
			raise ConfigError(f"config {config_path}: invalid YAML: {exc}") from exc
	if not isinstance(data, dict):
		raise ConfigError("config file must be a mapping")
	if data.get('audio_chunker') != CONFIG_VERSION:
		raise ConfigError(f"config file must set audio_chunker: {CONFIG_VERSION}")
	return data

#============================================

def write_config_file(config_path: str, config: dict = None) -> None:
	if config is None:
		config = default_config()
	os.makedirs(os.path.dirname(config_path) or '.', exist_ok=True)
	with open(config_path, 'w', encoding='utf-8') as handle:
		yaml.safe_dump(config, handle, sort_keys=False)
	return

#============================================

def build_constraints(config: dict = None, config_path: str = "<defaults>",
	environ: dict = None) -> Constraints:
	"""
	Normalize a raw config into run constraints.

	Values missing from the config fall back to the defaults; FFMPEG_PATH
	and FFPROBE_PATH in the environment override the tool paths.

	Args:
		config: Raw config dictionary, or None for defaults.
		config_path: Config file path used in error messages.
		environ: Environment mapping, defaults to os.environ.

	Returns:
		Constraints: Validated constraints.
	"""
	if environ is None:
		environ = os.environ
	defaults = default_config()['settings']
	overrides = {}
	if isinstance(config, dict):
		overrides = config.get('settings') or {}
	if not isinstance(overrides, dict):
		raise ConfigError(f"config {config_path}: settings must be a mapping")
	merged = copy.deepcopy(defaults)
	for section, values in overrides.items():
		if section not in merged:
			raise ConfigError(f"config {config_path}: unknown section settings.{section}")
		if not isinstance(values, dict):
			raise ConfigError(f"config {config_path}: settings.{section} must be a mapping")
		merged[section].update(values)
	limits = merged['limits']
	silence = merged['silence']
	formats = merged['formats']
	tools = merged['tools']
	constraints = Constraints(
		max_duration_seconds=coerce_float(limits['max_duration_seconds'],
			config_path, "settings.limits.max_duration_seconds"),
		max_size_mb=coerce_float(limits['max_size_mb'],
			config_path, "settings.limits.max_size_mb"),
		size_safety_ratio=coerce_float(limits['size_safety_ratio'],
			config_path, "settings.limits.size_safety_ratio"),
		min_segment_seconds=coerce_float(limits['min_segment_seconds'],
			config_path, "settings.limits.min_segment_seconds"),
		silence_threshold_db=coerce_float(silence['threshold_db'],
			config_path, "settings.silence.threshold_db"),
		min_silence_duration_seconds=coerce_float(silence['min_duration'],
			config_path, "settings.silence.min_duration"),
		target_silence_search_ratio=coerce_float(silence['search_ratio'],
			config_path, "settings.silence.search_ratio"),
		frame_seconds=coerce_float(silence['frame_seconds'],
			config_path, "settings.silence.frame_seconds"),
		hop_seconds=coerce_float(silence['hop_seconds'],
			config_path, "settings.silence.hop_seconds"),
		scan_sample_rate=coerce_int(silence['sample_rate'],
			config_path, "settings.silence.sample_rate"),
		allowed_extensions=coerce_extensions(formats['allowed'],
			config_path, "settings.formats.allowed"),
		canonical_extension=coerce_str(formats['canonical'],
			config_path, "settings.formats.canonical").lstrip('.').lower(),
		transcode_bitrate=coerce_str(merged['transcode']['bitrate'],
			config_path, "settings.transcode.bitrate"),
		ffmpeg_path=environ.get('FFMPEG_PATH') or coerce_str(tools['ffmpeg'],
			config_path, "settings.tools.ffmpeg"),
		ffprobe_path=environ.get('FFPROBE_PATH') or coerce_str(tools['ffprobe'],
			config_path, "settings.tools.ffprobe"),
	)
	validate_constraints(constraints, config_path)
	return constraints

#============================================

def validate_constraints(constraints: Constraints, config_path: str = "<defaults>") -> None:
	if constraints.max_duration_seconds <= 0:
		raise ConfigError(f"config {config_path}: max_duration_seconds must be positive")
	if constraints.max_size_mb <= 0:
		raise ConfigError(f"config {config_path}: max_size_mb must be positive")
	if not 0 < constraints.size_safety_ratio <= 1:
		raise ConfigError(f"config {config_path}: size_safety_ratio must be in (0, 1]")
	if not 0 < constraints.target_silence_search_ratio <= 1:
		raise ConfigError(f"config {config_path}: search_ratio must be in (0, 1]")
	if constraints.min_silence_duration_seconds <= 0:
		raise ConfigError(f"config {config_path}: min_duration must be positive")
	if constraints.min_segment_seconds <= 0:
		raise ConfigError(f"config {config_path}: min_segment_seconds must be positive")
	if constraints.hop_seconds <= 0 or constraints.frame_seconds < constraints.hop_seconds:
		raise ConfigError(f"config {config_path}: need 0 < hop_seconds <= frame_seconds")
	if constraints.scan_sample_rate <= 0:
		raise ConfigError(f"config {config_path}: sample_rate must be positive")
	if constraints.canonical_extension not in constraints.allowed_extensions:
		raise ConfigError(f"config {config_path}: canonical format must be allowed")
	return
