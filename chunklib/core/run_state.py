#!/usr/bin/env python3

import asyncio
from dataclasses import dataclass

#============================================

@dataclass(frozen=True)
class FileInfo:
	path: str
	display_name: str
	duration_seconds: float
	size_bytes: int
	original_file_name: str

	#============================
	@property
	def size_mb(self) -> float:
		return self.size_bytes / (1024 * 1024)

	#============================
	@property
	def bytes_per_second(self) -> float:
		return self.size_bytes / self.duration_seconds

#============================================

class RunState():
	"""
	Bookkeeping for one segmentation run.

	processed_paths guards against splitting a physical file twice,
	final_chunks holds accepted outputs keyed by path, and created_paths
	lists every file the run materialized so cleanup never touches the
	caller's own files. All mutation happens under one asyncio lock.
	"""
	def __init__(self):
		self._lock = asyncio.Lock()
		self.processed_paths = set()
		self.final_chunks = {}
		self.created_paths = set()

	#============================
	async def is_processed(self, path: str) -> bool:
		async with self._lock:
			return path in self.processed_paths

	#============================
	async def mark_processed(self, *paths: str) -> bool:
		"""Claim paths for splitting; False if any was already claimed."""
		async with self._lock:
			if any(path in self.processed_paths for path in paths):
				return False
			self.processed_paths.update(paths)
			return True

	#============================
	async def add_final(self, info: FileInfo) -> None:
		async with self._lock:
			self.final_chunks[info.path] = info

	#============================
	async def remove_final(self, path: str) -> None:
		async with self._lock:
			self.final_chunks.pop(path, None)

	#============================
	async def record_created(self, *paths: str) -> None:
		async with self._lock:
			self.created_paths.update(paths)

	#============================
	async def was_created(self, path: str) -> bool:
		async with self._lock:
			return path in self.created_paths

	#============================
	async def forget_created(self, path: str) -> None:
		async with self._lock:
			self.created_paths.discard(path)
