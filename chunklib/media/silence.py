#!/usr/bin/env python3

"""
Amplitude-threshold silence detection.

ffmpeg decodes the requested window to mono 16-bit PCM on a pipe, then numpy
measures RMS level over sliding frames and reports every run of frames below
the threshold that lasts at least the minimum silence duration.
"""

# Standard Library
import asyncio

# PIP3 modules
import numpy

# local repo modules
from chunklib.core import utils
from chunklib.core.errors import SilenceScanError
from chunklib.media.interfaces import SilenceDetector

PCM_MAX_AMPLITUDE = float(2 ** 15)
SILENT_FLOOR_DB = -120.0

#============================================

def frame_levels_db(samples: numpy.ndarray, sample_rate: int,
	frame_seconds: float, hop_seconds: float) -> numpy.ndarray:
	"""
	Compute the RMS level of each analysis frame.

	Args:
		samples: Mono int16 samples.
		sample_rate: Samples per second.
		frame_seconds: Frame window size in seconds.
		hop_seconds: Hop size in seconds.

	Returns:
		numpy.ndarray: Level per frame in dBFS.
	"""
	frame_size = max(1, int(sample_rate * frame_seconds))
	hop_size = max(1, int(sample_rate * hop_seconds))
	usable_frames = (samples.size - frame_size) // hop_size + 1
	if usable_frames <= 0:
		return numpy.array([], dtype=numpy.float64)
	squares = samples.astype(numpy.float64) ** 2
	cumulative = numpy.concatenate((numpy.zeros(1), numpy.cumsum(squares)))
	starts = numpy.arange(usable_frames) * hop_size
	ends = starts + frame_size
	mean_sq = (cumulative[ends] - cumulative[starts]) / frame_size
	rms_norm = numpy.sqrt(numpy.maximum(mean_sq, 0.0)) / PCM_MAX_AMPLITUDE
	frame_db = numpy.full(usable_frames, SILENT_FLOOR_DB, dtype=numpy.float64)
	audible = rms_norm > 0
	frame_db[audible] = 20.0 * numpy.log10(rms_norm[audible])
	return frame_db

#============================================

def scan_samples_for_silence(samples: numpy.ndarray, sample_rate: int,
	threshold_db: float, min_silence: float, frame_seconds: float,
	hop_seconds: float) -> list:
	"""
	Scan mono samples for silence segments.

	Args:
		samples: Mono int16 samples.
		sample_rate: Samples per second.
		threshold_db: Silence threshold in dBFS.
		min_silence: Minimum silence duration in seconds.
		frame_seconds: Frame window size in seconds.
		hop_seconds: Hop size in seconds.

	Returns:
		list: Silence segments with start/end/duration, relative to sample 0.
	"""
	frame_db = frame_levels_db(samples, sample_rate, frame_seconds, hop_seconds)
	if frame_db.size == 0:
		return []
	hop_actual = max(1, int(sample_rate * hop_seconds)) / float(sample_rate)
	frame_actual = max(1, int(sample_rate * frame_seconds)) / float(sample_rate)
	mask = frame_db < threshold_db
	mask_int = mask.astype(numpy.int8)
	diff = numpy.diff(mask_int)
	start_idxs = numpy.where(diff == 1)[0] + 1
	end_idxs = numpy.where(diff == -1)[0] + 1
	if mask[0]:
		start_idxs = numpy.concatenate(
			(numpy.array([0], dtype=numpy.int64), start_idxs)
		)
	if mask[-1]:
		end_idxs = numpy.concatenate(
			(end_idxs, numpy.array([len(mask)], dtype=numpy.int64))
		)
	silences = []
	for start_idx, end_idx in zip(start_idxs, end_idxs):
		run_len = int(end_idx) - int(start_idx)
		run_seconds = run_len * hop_actual + (frame_actual - hop_actual)
		# tolerance for float framing error
		if run_seconds + 1e-9 < min_silence:
			continue
		silences.append({
			'start': int(start_idx) * hop_actual,
			'end': (int(end_idx) - 1) * hop_actual + frame_actual,
			'duration': run_seconds,
		})
	return silences

#============================================

class FfmpegSilenceDetector(SilenceDetector):
	def __init__(self, ffmpeg_path: str = "ffmpeg", threshold_db: float = -30.0,
		min_silence: float = 0.5, frame_seconds: float = 0.05,
		hop_seconds: float = 0.01, sample_rate: int = 16000):
		self.ffmpeg_path = ffmpeg_path
		self.threshold_db = threshold_db
		self.min_silence = min_silence
		self.frame_seconds = frame_seconds
		self.hop_seconds = hop_seconds
		self.sample_rate = sample_rate

	#============================
	def decode_range(self, window_start: float, window_end: float) -> tuple:
		# pad both sides so runs crossing the window edges keep their true bounds
		pad = self.min_silence + self.frame_seconds
		decode_start = max(0.0, window_start - pad)
		decode_end = window_end + pad
		return decode_start, decode_end - decode_start

	#============================
	async def read_samples(self, path: str, start: float, duration: float) -> numpy.ndarray:
		cmd = [
			self.ffmpeg_path, "-hide_banner", "-loglevel", "error",
			"-ss", f"{start:.3f}",
			"-t", f"{duration:.3f}",
			"-i", path,
			"-vn", "-sn",
			"-ac", "1",
			"-ar", str(self.sample_rate),
			"-f", "s16le", "-acodec", "pcm_s16le",
			"pipe:1",
		]
		payload = await utils.run_process(cmd, SilenceScanError)
		usable = len(payload) - (len(payload) % 2)
		return numpy.frombuffer(payload[:usable], dtype=numpy.dtype('<i2'))

	#============================
	async def detect_silence(self, path: str, window_start: float,
		window_end: float) -> list:
		utils.ensure_file_exists(path, SilenceScanError)
		if window_end < window_start:
			raise SilenceScanError(f"invalid scan window {window_start}..{window_end}")
		decode_start, decode_duration = self.decode_range(window_start, window_end)
		samples = await self.read_samples(path, decode_start, decode_duration)
		try:
			silences = await asyncio.to_thread(scan_samples_for_silence,
				samples, self.sample_rate, self.threshold_db, self.min_silence,
				self.frame_seconds, self.hop_seconds)
		except (ValueError, FloatingPointError) as exc:
			raise SilenceScanError(f"silence scan failed for {path}: {exc}") from exc
		points = []
		for silence in silences:
			point = decode_start + silence['start']
			if window_start <= point <= window_end:
				points.append(point)
		return sorted(points)
