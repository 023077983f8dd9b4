#!/usr/bin/env python3

import asyncio
import os
import re
import shlex
import time

_QUIET_MODE = False

PART_SUFFIX_RE = re.compile(r"(_part\d+)+$")

#============================================

def set_quiet_mode(quiet: bool) -> None:
	global _QUIET_MODE
	_QUIET_MODE = bool(quiet)
	return

#============================================

def is_quiet_mode() -> bool:
	return _QUIET_MODE

#============================================

def echo(message: str) -> None:
	if not _QUIET_MODE:
		print(message, flush=True)
	return

#============================================

async def run_process(cmd: list, error_class: type = RuntimeError) -> bytes:
	"""
	Run an external command without blocking the event loop.

	Args:
		cmd: Command list to execute.
		error_class: Exception type raised when the command fails.

	Returns:
		bytes: Captured stdout.
	"""
	showcmd = shlex.join(cmd)
	echo(f"CMD: '{showcmd}'")
	try:
		proc = await asyncio.create_subprocess_exec(*cmd,
			stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE)
	except OSError as exc:
		raise error_class(f"command failed to start: {showcmd}\n{exc}") from exc
	try:
		stdout, stderr = await proc.communicate()
	except asyncio.CancelledError:
		if proc.returncode is None:
			proc.kill()
			await proc.wait()
		raise
	if proc.returncode != 0:
		stderr_text = stderr.decode("utf-8", errors="replace").strip()
		raise error_class(f"command failed: {showcmd}\n{stderr_text}")
	return stdout

#============================================

async def run_concurrently(*coros) -> list:
	"""
	Await coroutines together, results in argument order.

	The first failure propagates unwrapped and the remaining tasks are
	cancelled before it does.
	"""
	tasks = [asyncio.ensure_future(coro) for coro in coros]
	try:
		return await asyncio.gather(*tasks)
	except BaseException:
		for task in tasks:
			if not task.done():
				task.cancel()
		await asyncio.gather(*tasks, return_exceptions=True)
		raise

#============================================

def ensure_file_exists(filepath: str, error_class: type = RuntimeError) -> None:
	if not os.path.isfile(filepath):
		raise error_class(f"file not found: {filepath}")
	return

#============================================

def ensure_nonempty_output(filepath: str, error_class: type = RuntimeError) -> None:
	if not os.path.isfile(filepath) or os.path.getsize(filepath) == 0:
		raise error_class(f"output file is missing or empty: {filepath}")
	return

#============================================

def remove_file(filepath: str) -> bool:
	if os.path.isfile(filepath):
		os.remove(filepath)
		return True
	return False

#============================================

def file_extension(filepath: str) -> str:
	return os.path.splitext(filepath)[1].lstrip('.').lower()

#============================================

def original_file_name(filepath: str) -> str:
	"""
	Strip every trailing _partN suffix from a chunk name.

	Args:
		filepath: Chunk path.

	Returns:
		str: Base name of the file the chunk descends from.
	"""
	stem, ext = os.path.splitext(os.path.basename(filepath))
	return PART_SUFFIX_RE.sub("", stem) + ext

#============================================

def format_clock(seconds: float) -> str:
	minutes = int(seconds // 60)
	remainder = int(seconds % 60)
	return f"{minutes}:{remainder:02d}"

#============================================

def make_timestamp() -> str:
	return f"{int(time.time() * 1000)}"
