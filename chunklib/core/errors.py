#!/usr/bin/env python3

#============================================

class ChunkerError(RuntimeError):
	"""Base class for every failure raised by the chunking engine."""
	pass

#============================================

class ConfigError(ChunkerError):
	pass

#============================================

class MissingFileError(ChunkerError):
	pass

#============================================

class UnsupportedFormatError(ChunkerError):
	pass

#============================================

class TranscodeError(ChunkerError):
	pass

#============================================

class ProbeError(ChunkerError):
	pass

#============================================

class SilenceScanError(ChunkerError):
	pass

#============================================

class CutError(ChunkerError):
	pass

#============================================

class DownloadError(ChunkerError):
	pass
