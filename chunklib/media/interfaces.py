#!/usr/bin/env python3

from abc import ABC, abstractmethod

from chunklib.core.run_state import FileInfo

#============================================

class MediaProber(ABC):
	@abstractmethod
	async def probe(self, path: str) -> FileInfo:
		"""
		Measure a file on disk.
		Raise ProbeError if it is missing or unreadable.
		"""
		pass

#============================================

class Transcoder(ABC):
	@abstractmethod
	async def transcode(self, source_path: str, output_path: str) -> str:
		"""
		Re-encode source_path into output_path's format.
		Raise TranscodeError on failure.
		"""
		pass

#============================================

class SilenceDetector(ABC):
	@abstractmethod
	async def detect_silence(self, path: str, window_start: float,
		window_end: float) -> list:
		"""
		Return ascending silence start times inside [window_start, window_end].
		Raise SilenceScanError on failure.
		"""
		pass

#============================================

class AudioCutter(ABC):
	@abstractmethod
	async def cut(self, source_path: str, output_path: str, start_seconds: float,
		duration_seconds: float = None) -> str:
		"""
		Extract [start, start + duration) into output_path, or to the end
		of the file when duration is None. Raise CutError on failure.
		"""
		pass

#============================================

class Downloader(ABC):
	@abstractmethod
	async def download(self, url: str, dest_dir: str) -> str:
		"""
		Fetch url into a uniquely named file under dest_dir.
		Raise DownloadError on failure.
		"""
		pass
