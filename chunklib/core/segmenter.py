#!/usr/bin/env python3

import os

from chunklib.core import utils
from chunklib.core.config import Constraints
from chunklib.core.errors import CutError
from chunklib.core.errors import MissingFileError
from chunklib.core.run_state import FileInfo
from chunklib.core.run_state import RunState

#============================================

class Segmenter():
	"""
	Recursively splits one audio file until every piece fits the limits.

	A file over either limit is cut in two, at the earliest silence point
	near the effective duration ceiling or exactly at the ceiling when the
	window holds no silence. Both halves are measured; compliant halves
	become final chunks and the rest are split again. Results come back in
	timeline order whatever order the concurrent branches finish in.
	"""
	def __init__(self, constraints: Constraints, run_state: RunState, prober,
		normalizer, detector, cutter, work_dir: str = None):
		self.constraints = constraints
		self.run_state = run_state
		self.prober = prober
		self.normalizer = normalizer
		self.detector = detector
		self.cutter = cutter
		self.work_dir = work_dir

	#============================
	async def segment(self, path: str, cut_piece: bool = False) -> list:
		if await self.run_state.is_processed(path):
			utils.echo(f"skipping already processed file: {path}")
			return []
		utils.ensure_file_exists(path, MissingFileError)
		self.normalizer.check_extension(path)
		work_path = await self.normalizer.ensure_compatible(path)
		if work_path != path:
			await self.run_state.record_created(work_path)
		info = await self.prober.probe(work_path)
		if self.constraints.within_limits(info.duration_seconds, info.size_mb):
			utils.echo(f"file is already under limits, no chunking needed: {work_path}")
			await self.run_state.add_final(info)
			return [work_path]
		if not await self.run_state.mark_processed(path, work_path):
			utils.echo(f"skipping already processed file: {work_path}")
			return []
		utils.echo(f"processing file: {work_path} "
			f"({info.size_mb:.2f} MB, {info.duration_seconds:.2f}s)")
		effective = self.effective_max_duration(info, cut_piece)
		cut_point = await self.choose_cut_point(work_path, effective)
		first_path, second_path = await self.cut_in_two(work_path, cut_point)
		await self.run_state.remove_final(work_path)
		await self.discard_intermediate(work_path)
		pieces = await utils.run_concurrently(
			self.prober.probe(first_path),
			self.prober.probe(second_path),
		)
		for piece in pieces:
			utils.echo(f"  - {piece.display_name}: "
				f"{piece.size_mb:.2f} MB, {piece.duration_seconds:.2f}s")
		results = await utils.run_concurrently(
			*[self.settle_piece(piece) for piece in pieces]
		)
		chunk_paths = []
		for result in results:
			chunk_paths.extend(result)
		return chunk_paths

	#============================
	def effective_max_duration(self, info: FileInfo, cut_piece: bool = False) -> float:
		"""
		Duration ceiling for the next cut.

		When the size limit is the binding one, the observed byte rate turns
		the size budget into a duration budget. Size pressure can only lower
		the ceiling below max_duration_seconds, never raise it.

		For a piece this run cut, the ceiling also leaves at least
		min_segment_seconds for the second half. Stream-copied cuts land on
		codec frame boundaries, so a piece cut at the ceiling can come out a
		few milliseconds long; re-cutting it at the same ceiling would never
		converge.

		Args:
			info: Measurements of the file about to be cut.
			cut_piece: True when the file came out of an earlier cut.

		Returns:
			float: Effective maximum duration in seconds.
		"""
		effective = self.constraints.max_duration_seconds
		if info.size_mb > self.constraints.max_size_mb:
			candidate = (self.constraints.max_size_bytes
				* self.constraints.size_safety_ratio) / info.bytes_per_second
			utils.echo(f"file size limit reached, recommended duration cut: {candidate:.2f}s")
			effective = min(candidate, effective)
		if cut_piece:
			effective = min(effective,
				info.duration_seconds - self.constraints.min_segment_seconds)
		if effective < self.constraints.min_segment_seconds:
			raise CutError(
				f"cannot split {info.path}: effective duration {effective:.3f}s "
				f"is below the {self.constraints.min_segment_seconds:.3f}s minimum")
		return effective

	#============================
	async def choose_cut_point(self, path: str, effective: float) -> float:
		target_start = self.constraints.target_silence_search_ratio * effective
		target_end = effective
		points = await self.detector.detect_silence(path, target_start, target_end)
		points = sorted(point for point in points if target_start <= point <= target_end)
		utils.echo("detected silence points in target range: "
			+ ", ".join(f"{point:.2f}" for point in points))
		if len(points) > 0:
			utils.echo(f"found good silence point at {points[0]:.2f} seconds")
			return points[0]
		utils.echo(f"no silence points found, forcing cut at {effective:.2f} seconds")
		return effective

	#============================
	def part_paths(self, path: str) -> tuple:
		stem, ext = os.path.splitext(os.path.basename(path))
		out_dir = self.work_dir if self.work_dir is not None else os.path.dirname(path)
		first_path = os.path.join(out_dir, f"{stem}_part1{ext}")
		second_path = os.path.join(out_dir, f"{stem}_part2{ext}")
		return first_path, second_path

	#============================
	async def cut_in_two(self, path: str, cut_point: float) -> tuple:
		first_path, second_path = self.part_paths(path)
		# tracked before cutting so a failed run can remove partial outputs
		await self.run_state.record_created(first_path, second_path)
		utils.echo(f"cutting at {cut_point:.2f} seconds...")
		await utils.run_concurrently(
			self.cutter.cut(path, first_path, 0.0, cut_point),
			self.cutter.cut(path, second_path, cut_point, None),
		)
		return first_path, second_path

	#============================
	async def discard_intermediate(self, path: str) -> None:
		if not await self.run_state.was_created(path):
			return
		utils.echo(f"removing intermediate file: {path}")
		utils.remove_file(path)
		await self.run_state.forget_created(path)

	#============================
	async def settle_piece(self, piece: FileInfo) -> list:
		if self.constraints.within_limits(piece.duration_seconds, piece.size_mb):
			await self.run_state.add_final(piece)
			return [piece.path]
		utils.echo(f"recursively processing chunk: {piece.path}")
		return await self.segment(piece.path, cut_piece=True)
