#!/usr/bin/env python3

import os
import shutil
import tempfile

from chunklib.core import summary
from chunklib.core import utils
from chunklib.core.config import Constraints
from chunklib.core.errors import ChunkerError
from chunklib.core.run_state import RunState
from chunklib.core.segmenter import Segmenter
from chunklib.media import download
from chunklib.media.ffmpeg_cut import FfmpegCutter
from chunklib.media.ffmpeg_transcode import FfmpegTranscoder
from chunklib.media.ffmpeg_transcode import FormatNormalizer
from chunklib.media.ffprobe import FfprobeProber
from chunklib.media.silence import FfmpegSilenceDetector

#============================================

class RunCoordinator():
	def __init__(self, constraints: Constraints = None, prober=None,
		transcoder=None, detector=None, cutter=None, downloader=None,
		work_dir: str = None):
		if constraints is None:
			constraints = Constraints()
		self.constraints = constraints
		self.prober = prober or FfprobeProber(constraints.ffprobe_path)
		self.transcoder = transcoder or FfmpegTranscoder(
			constraints.ffmpeg_path, constraints.transcode_bitrate)
		self.detector = detector or FfmpegSilenceDetector(
			ffmpeg_path=constraints.ffmpeg_path,
			threshold_db=constraints.silence_threshold_db,
			min_silence=constraints.min_silence_duration_seconds,
			frame_seconds=constraints.frame_seconds,
			hop_seconds=constraints.hop_seconds,
			sample_rate=constraints.scan_sample_rate,
		)
		self.cutter = cutter or FfmpegCutter(constraints.ffmpeg_path)
		self.downloader = downloader or download.HttpDownloader()
		self.normalizer = FormatNormalizer(self.transcoder,
			constraints.allowed_extensions, constraints.canonical_extension)
		self.work_dir = work_dir
		self.last_run_state = None
		self.last_summary = None

	#============================
	async def process_all(self, reference: str) -> list:
		"""
		Split one source (local path or HTTP(S) URL) into compliant chunks.

		Args:
			reference: Path or URL of the source audio.

		Returns:
			list: Chunk paths in timeline order.
		"""
		async def stage(work_dir: str) -> str:
			if download.is_url(reference):
				return await self.downloader.download(reference, work_dir)
			return None
		return await self._run(reference, stage)

	#============================
	async def process_upload(self, data: bytes, filename: str) -> list:
		async def stage(work_dir: str) -> str:
			return download.stage_upload(data, filename, work_dir)
		return await self._run(filename, stage)

	#============================
	def _prepare_work_dir(self) -> str:
		"""
		Create the directory one run writes into.

		Every run gets its own fresh directory, inside the configured work
		directory when one is set, so part names never meet files from
		another run or another process.
		"""
		if self.work_dir is None:
			return tempfile.mkdtemp(prefix="audio-chunks-")
		os.makedirs(self.work_dir, exist_ok=True)
		return tempfile.mkdtemp(prefix="audio-chunks-", dir=self.work_dir)

	#============================
	async def _run(self, reference: str, stage) -> list:
		run_state = RunState()
		self.last_run_state = run_state
		self.last_summary = None
		run_dir = self._prepare_work_dir()
		utils.echo(f"starting to process: {reference}")
		utils.echo(f"max duration: {self.constraints.max_duration_seconds / 60:.1f} minutes")
		utils.echo(f"max file size: {self.constraints.max_size_mb:.1f} MB")
		staged_path = None
		try:
			staged_path = await stage(run_dir)
			source_path = staged_path if staged_path is not None else reference
			segmenter = Segmenter(self.constraints, run_state, self.prober,
				self.normalizer, self.detector, self.cutter, work_dir=run_dir)
			chunk_paths = await segmenter.segment(source_path)
			self._verify(run_state, chunk_paths)
		except BaseException:
			self._cleanup_failed_run(run_state, run_dir, staged_path)
			raise
		if staged_path is not None and staged_path not in chunk_paths:
			utils.remove_file(staged_path)
		if len(os.listdir(run_dir)) == 0:
			os.rmdir(run_dir)
		chunks = [run_state.final_chunks[path] for path in chunk_paths]
		self.last_summary = summary.build_summary(chunks, self.constraints)
		utils.echo(summary.format_summary(self.last_summary))
		utils.echo(f"all processing complete, no chunk exceeds "
			f"{self.constraints.max_duration_seconds / 60:.1f} minutes "
			f"or {self.constraints.max_size_mb:.1f} MB")
		return chunk_paths

	#============================
	def _verify(self, run_state: RunState, chunk_paths: list) -> None:
		if len(chunk_paths) == 0:
			raise ChunkerError("segmentation produced no chunks")
		if len(set(chunk_paths)) != len(chunk_paths):
			raise ChunkerError("segmentation returned the same chunk twice")
		for path in chunk_paths:
			info = run_state.final_chunks.get(path)
			if info is None:
				raise ChunkerError(f"chunk was not registered as final: {path}")
			if not self.constraints.within_limits(info.duration_seconds, info.size_mb):
				raise ChunkerError(f"chunk exceeds limits: {path}")
		return

	#============================
	def _cleanup_failed_run(self, run_state: RunState, run_dir: str,
		staged_path: str) -> None:
		for path in sorted(run_state.created_paths):
			utils.remove_file(path)
		run_state.created_paths.clear()
		run_state.final_chunks.clear()
		if staged_path is not None:
			utils.remove_file(staged_path)
		shutil.rmtree(run_dir, ignore_errors=True)
		return
