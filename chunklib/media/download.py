#!/usr/bin/env python3

import asyncio
import mimetypes
import os
import posixpath
import tempfile
import urllib.parse

import requests
from tqdm import tqdm

from chunklib.core import utils
from chunklib.core.errors import DownloadError
from chunklib.media.interfaces import Downloader

# common audio types mimetypes does not map to the extensions we accept
CONTENT_TYPE_EXTENSIONS = {
	'audio/mpeg': '.mp3',
	'audio/mp3': '.mp3',
	'audio/mp4': '.m4a',
	'audio/x-m4a': '.m4a',
	'audio/ogg': '.ogg',
	'audio/wav': '.wav',
	'audio/x-wav': '.wav',
	'audio/wave': '.wav',
	'audio/flac': '.flac',
	'audio/x-flac': '.flac',
	'audio/webm': '.webm',
	'video/mp4': '.mp4',
	'video/webm': '.webm',
}

#============================================

def is_url(reference: str) -> bool:
	return reference.startswith("http://") or reference.startswith("https://")

#============================================

def extension_from_url(url: str) -> str:
	path = urllib.parse.urlparse(url).path
	return posixpath.splitext(posixpath.basename(path))[1].lower()

#============================================

def extension_from_content_type(content_type: str) -> str:
	if not content_type:
		return ""
	mime = content_type.split(';')[0].strip().lower()
	if mime in CONTENT_TYPE_EXTENSIONS:
		return CONTENT_TYPE_EXTENSIONS[mime]
	return mimetypes.guess_extension(mime) or ""

#============================================

def safe_file_name(name: str) -> str:
	base = os.path.basename(name.replace('\\', '/'))
	safe = "".join(char if char.isalnum() or char in "-_." else "_" for char in base)
	safe = safe.strip('.')
	return safe or "upload"

#============================================

def stage_upload(data: bytes, filename: str, dest_dir: str) -> str:
	"""
	Write raw upload bytes to a uniquely named local file.

	Args:
		data: Uploaded file content.
		filename: Client-supplied file name, used for the extension.
		dest_dir: Directory to stage into.

	Returns:
		str: Staged file path.
	"""
	if not data:
		raise DownloadError("upload is missing or empty")
	os.makedirs(dest_dir, exist_ok=True)
	staged_path = os.path.join(dest_dir,
		f"{utils.make_timestamp()}_{safe_file_name(filename)}")
	with open(staged_path, 'wb') as handle:
		handle.write(data)
	utils.echo(f"staged upload to {staged_path}")
	return staged_path

#============================================

class HttpDownloader(Downloader):
	def __init__(self, timeout: float = 60.0, chunk_size: int = 1024 * 1024,
		session: requests.Session = None):
		self.timeout = timeout
		self.chunk_size = chunk_size
		self.session = session

	#============================
	def _fetch(self, url: str, dest_dir: str) -> str:
		getter = self.session if self.session is not None else requests
		try:
			response = getter.get(url, stream=True, timeout=self.timeout)
		except requests.RequestException as exc:
			raise DownloadError(f"failed to download audio from URL: {url}: {exc}") from exc
		with response:
			if not response.ok:
				raise DownloadError(
					f"failed to download audio from URL: {url} "
					f"(HTTP {response.status_code})")
			ext = extension_from_url(url)
			if ext == "":
				ext = extension_from_content_type(response.headers.get('Content-Type'))
			total = int(response.headers.get('Content-Length') or 0) or None
			handle, temp_path = tempfile.mkstemp(prefix="audio_", suffix=ext, dir=dest_dir)
			try:
				with os.fdopen(handle, 'wb') as out_file, tqdm(total=total, unit='B',
					unit_scale=True, desc="download", disable=utils.is_quiet_mode()) as progress:
					for block in response.iter_content(chunk_size=self.chunk_size):
						if block:
							out_file.write(block)
							progress.update(len(block))
			except (requests.RequestException, OSError) as exc:
				utils.remove_file(temp_path)
				raise DownloadError(f"download interrupted: {url}: {exc}") from exc
		if os.path.getsize(temp_path) == 0:
			utils.remove_file(temp_path)
			raise DownloadError(f"downloaded file is empty: {url}")
		return temp_path

	#============================
	async def download(self, url: str, dest_dir: str) -> str:
		os.makedirs(dest_dir, exist_ok=True)
		utils.echo(f"downloading audio from URL: {url}")
		temp_path = await asyncio.to_thread(self._fetch, url, dest_dir)
		utils.echo(f"downloaded audio to temporary file: {temp_path}")
		return temp_path
