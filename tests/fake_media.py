#!/usr/bin/env python3

"""
In-memory stand-ins for the external audio tools.

Every fake file is a small placeholder on disk plus a registry entry that
says which span of a shared source timeline it holds. Durations and sizes
come from the registry, so a 40 MB recording costs a few bytes.
"""

# Standard Library
import os
import sys
from dataclasses import dataclass

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from chunklib.core import utils
from chunklib.core.errors import CutError
from chunklib.core.errors import DownloadError
from chunklib.core.errors import ProbeError
from chunklib.core.errors import SilenceScanError
from chunklib.core.run_state import FileInfo
from chunklib.media import interfaces

MB = 1024 * 1024

#============================================

@dataclass
class FakeClip:
	start: float
	end: float
	bytes_per_second: float
	silences: tuple = ()

	#============================
	@property
	def duration(self) -> float:
		return self.end - self.start

	#============================
	@property
	def size_bytes(self) -> int:
		return int(round(self.duration * self.bytes_per_second))

#============================================

class FakeMedia():
	def __init__(self):
		self.clips = {}
		self.events = []
		# clip assumed for files written outside the fakes, e.g. staged uploads
		self.default_clip = None

	#============================
	def add_source(self, path: str, duration: float, size_mb: float,
		silences: tuple = ()) -> str:
		clip = FakeClip(0.0, duration, size_mb * MB / duration, tuple(silences))
		self.materialize(path, clip)
		return path

	#============================
	def materialize(self, path: str, clip: FakeClip) -> None:
		os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
		with open(path, 'wb') as handle:
			handle.write(b"fake audio")
		self.clips[path] = clip

	#============================
	def clip_for(self, path: str, error_class: type) -> FakeClip:
		if path not in self.clips and self.default_clip is not None and os.path.isfile(path):
			self.clips[path] = self.default_clip
		if not os.path.isfile(path) or path not in self.clips:
			raise error_class(f"file not found: {path}")
		return self.clips[path]

#============================================

class FakeProber(interfaces.MediaProber):
	def __init__(self, media: FakeMedia):
		self.media = media

	#============================
	async def probe(self, path: str) -> FileInfo:
		clip = self.media.clip_for(path, ProbeError)
		self.media.events.append(('probe', path))
		return FileInfo(
			path=path,
			display_name=os.path.basename(path),
			duration_seconds=clip.duration,
			size_bytes=clip.size_bytes,
			original_file_name=utils.original_file_name(path),
		)

#============================================

class FakeTranscoder(interfaces.Transcoder):
	def __init__(self, media: FakeMedia):
		self.media = media
		self.calls = []

	#============================
	async def transcode(self, source_path: str, output_path: str) -> str:
		clip = self.media.clip_for(source_path, ProbeError)
		self.calls.append((source_path, output_path))
		self.media.events.append(('transcode', source_path))
		self.media.materialize(output_path, FakeClip(clip.start, clip.end,
			clip.bytes_per_second, clip.silences))
		return output_path

#============================================

class FakeSilenceDetector(interfaces.SilenceDetector):
	def __init__(self, media: FakeMedia):
		self.media = media
		self.calls = []

	#============================
	async def detect_silence(self, path: str, window_start: float,
		window_end: float) -> list:
		clip = self.media.clip_for(path, SilenceScanError)
		self.calls.append((path, window_start, window_end))
		points = []
		for silence in clip.silences:
			local = silence - clip.start
			if window_start <= local <= window_end:
				points.append(local)
		return sorted(points)

#============================================

class FakeCutter(interfaces.AudioCutter):
	def __init__(self, media: FakeMedia, fail_on: str = None):
		self.media = media
		self.calls = []
		self.fail_on = fail_on

	#============================
	async def cut(self, source_path: str, output_path: str, start_seconds: float,
		duration_seconds: float = None) -> str:
		clip = self.media.clip_for(source_path, CutError)
		self.calls.append((source_path, output_path, start_seconds, duration_seconds))
		if self.fail_on is not None and os.path.basename(output_path) == self.fail_on:
			raise CutError(f"simulated cut failure: {output_path}")
		new_start = clip.start + start_seconds
		new_end = clip.end
		if duration_seconds is not None:
			new_end = min(clip.end, new_start + duration_seconds)
		self.media.materialize(output_path, FakeClip(new_start, new_end,
			clip.bytes_per_second, clip.silences))
		return output_path

#============================================

class FakeDownloader(interfaces.Downloader):
	def __init__(self, media: FakeMedia, file_name: str, duration: float = 60.0,
		size_mb: float = 1.0, silences: tuple = (), fail: bool = False):
		self.media = media
		self.file_name = file_name
		self.duration = duration
		self.size_mb = size_mb
		self.silences = silences
		self.fail = fail
		self.calls = []

	#============================
	async def download(self, url: str, dest_dir: str) -> str:
		self.calls.append((url, dest_dir))
		if self.fail:
			raise DownloadError(f"failed to download audio from URL: {url}")
		path = os.path.join(dest_dir, self.file_name)
		return self.media.add_source(path, self.duration, self.size_mb, self.silences)

#============================================

def make_fakes() -> dict:
	media = FakeMedia()
	return {
		'media': media,
		'prober': FakeProber(media),
		'transcoder': FakeTranscoder(media),
		'detector': FakeSilenceDetector(media),
		'cutter': FakeCutter(media),
	}
