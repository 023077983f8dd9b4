#!/usr/bin/env python3

import os

from chunklib.core import utils
from chunklib.core.errors import MissingFileError
from chunklib.core.errors import TranscodeError
from chunklib.core.errors import UnsupportedFormatError
from chunklib.media.interfaces import Transcoder

#============================================

class FfmpegTranscoder(Transcoder):
	def __init__(self, ffmpeg_path: str = "ffmpeg", bitrate: str = "128k"):
		self.ffmpeg_path = ffmpeg_path
		self.bitrate = bitrate

	#============================
	async def transcode(self, source_path: str, output_path: str) -> str:
		cmd = [
			self.ffmpeg_path, "-y", "-hide_banner", "-loglevel", "error",
			"-i", source_path,
			"-vn", "-sn",
			"-codec:a", "libmp3lame",
			"-b:a", self.bitrate,
			output_path,
		]
		await utils.run_process(cmd, TranscodeError)
		utils.ensure_nonempty_output(output_path, TranscodeError)
		return output_path

#============================================

class FormatNormalizer():
	"""
	Keeps every downstream tool working on one container/codec.

	Files already in the canonical format pass through untouched; anything
	else on the allow-list is transcoded to a sibling with the canonical
	extension. The input file is never deleted and an existing file is never
	overwritten.
	"""
	def __init__(self, transcoder: Transcoder, allowed_extensions,
		canonical_extension: str = "mp3"):
		self.transcoder = transcoder
		self.allowed_extensions = frozenset(ext.lower() for ext in allowed_extensions)
		self.canonical_extension = canonical_extension.lower()

	#============================
	def check_extension(self, path: str) -> str:
		ext = utils.file_extension(path)
		if ext not in self.allowed_extensions:
			allowed = ", ".join(sorted(self.allowed_extensions))
			raise UnsupportedFormatError(
				f"unsupported file format '.{ext}' for {path} (allowed: {allowed})")
		return ext

	#============================
	def needs_transcode(self, path: str) -> bool:
		return self.check_extension(path) != self.canonical_extension

	#============================
	def canonical_path(self, path: str) -> str:
		stem = os.path.splitext(path)[0]
		return f"{stem}.{self.canonical_extension}"

	#============================
	def reserve_output_path(self, path: str) -> str:
		"""
		Claim a canonical-format sibling name that no file uses yet.

		The sibling <stem>.mp3 is preferred; when a file by that name already
		exists it belongs to someone else, so <stem>-converted.mp3,
		<stem>-converted-2.mp3, ... are tried instead. The name is claimed by
		creating an empty placeholder exclusively.

		Args:
			path: Source file path.

		Returns:
			str: Reserved output path.
		"""
		stem = os.path.splitext(path)[0]
		candidate = self.canonical_path(path)
		attempt = 1
		while True:
			try:
				with open(candidate, 'xb'):
					pass
				return candidate
			except FileExistsError:
				suffix = "-converted" if attempt == 1 else f"-converted-{attempt}"
				candidate = f"{stem}{suffix}.{self.canonical_extension}"
				attempt += 1

	#============================
	async def ensure_compatible(self, path: str) -> str:
		utils.ensure_file_exists(path, MissingFileError)
		if not self.needs_transcode(path):
			return path
		output_path = self.reserve_output_path(path)
		utils.echo(f"converting {path} to {self.canonical_extension} for compatibility")
		try:
			await self.transcoder.transcode(path, output_path)
		except BaseException:
			utils.remove_file(output_path)
			raise
		utils.echo(f"conversion complete: {output_path}")
		return output_path
