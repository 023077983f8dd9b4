#!/usr/bin/env python3

from chunklib.core import utils
from chunklib.core.errors import CutError
from chunklib.media.interfaces import AudioCutter

#============================================

class FfmpegCutter(AudioCutter):
	"""Stream-copies a time range, so pieces keep the parent's bitrate."""
	def __init__(self, ffmpeg_path: str = "ffmpeg"):
		self.ffmpeg_path = ffmpeg_path

	#============================
	async def cut(self, source_path: str, output_path: str, start_seconds: float,
		duration_seconds: float = None) -> str:
		if start_seconds < 0:
			raise CutError(f"start must not be negative: {start_seconds}")
		if duration_seconds is not None and duration_seconds <= 0:
			raise CutError(f"duration must be positive: {duration_seconds}")
		cmd = [
			self.ffmpeg_path, "-y", "-hide_banner", "-loglevel", "error",
			"-i", source_path,
			"-ss", f"{start_seconds:.3f}",
		]
		if duration_seconds is not None:
			cmd += ["-t", f"{duration_seconds:.3f}"]
		cmd += ["-vn", "-sn", "-codec:a", "copy", output_path]
		await utils.run_process(cmd, CutError)
		utils.ensure_nonempty_output(output_path, CutError)
		return output_path
