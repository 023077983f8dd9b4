#!/usr/bin/env python3

import json
import os

from chunklib.core import utils
from chunklib.core.errors import ProbeError
from chunklib.core.run_state import FileInfo
from chunklib.media.interfaces import MediaProber

#============================================

def parse_format_duration(payload: bytes, path: str) -> float:
	"""
	Read the container duration from ffprobe JSON output.

	Args:
		payload: Raw ffprobe stdout.
		path: Probed file, for error messages.

	Returns:
		float: Duration in seconds.
	"""
	try:
		data = json.loads(payload)
	except ValueError as exc:
		raise ProbeError(f"unreadable ffprobe output for {path}") from exc
	duration = data.get('format', {}).get('duration')
	if duration is None:
		raise ProbeError(f"no duration in container metadata: {path}")
	try:
		seconds = float(duration)
	except ValueError as exc:
		raise ProbeError(f"invalid duration '{duration}' for {path}") from exc
	if seconds <= 0:
		raise ProbeError(f"duration must be positive: {path}")
	return seconds

#============================================

class FfprobeProber(MediaProber):
	def __init__(self, ffprobe_path: str = "ffprobe"):
		self.ffprobe_path = ffprobe_path

	#============================
	async def probe(self, path: str) -> FileInfo:
		utils.ensure_file_exists(path, ProbeError)
		cmd = [
			self.ffprobe_path, "-v", "error",
			"-show_entries", "format=duration",
			"-of", "json",
			path,
		]
		payload = await utils.run_process(cmd, ProbeError)
		duration = parse_format_duration(payload, path)
		return FileInfo(
			path=path,
			display_name=os.path.basename(path),
			duration_seconds=duration,
			size_bytes=os.path.getsize(path),
			original_file_name=utils.original_file_name(path),
		)
