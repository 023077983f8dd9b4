#!/usr/bin/env python3

from chunklib.core import utils

#============================================

def build_summary(chunks: list, constraints=None) -> dict:
	"""
	Group final chunks by the file they were cut from.

	Args:
		chunks: FileInfo list in output order.
		constraints: Optional run constraints, echoed into the summary.

	Returns:
		dict: Summary mapping, safe for yaml.safe_dump.
	"""
	groups = {}
	for chunk in chunks:
		group = groups.setdefault(chunk.original_file_name, [])
		group.append({
			'name': chunk.display_name,
			'path': chunk.path,
			'size_mb': round(chunk.size_mb, 3),
			'duration_seconds': round(chunk.duration_seconds, 3),
		})
	files = []
	for original_file in sorted(groups):
		files.append({
			'original_file': original_file,
			'chunks': groups[original_file],
			'total_chunks': len(groups[original_file]),
		})
	summary = {
		'files': files,
		'total_files': len(files),
		'total_chunks': len(chunks),
	}
	if constraints is not None:
		summary['limits'] = {
			'max_duration_seconds': constraints.max_duration_seconds,
			'max_size_mb': constraints.max_size_mb,
		}
	return summary

#============================================

def format_summary(summary: dict) -> str:
	lines = []
	lines.append("")
	lines.append("=======================================")
	lines.append("FINAL AUDIO CHUNKS SUMMARY")
	lines.append("=======================================")
	for entry in summary['files']:
		lines.append("")
		lines.append(f"Original file: {entry['original_file']}")
		lines.append("  Resulting chunks:")
		for chunk in entry['chunks']:
			clock = utils.format_clock(chunk['duration_seconds'])
			lines.append(f"  - {chunk['name']} ({chunk['size_mb']:.2f} MB, {clock})")
		lines.append(f"  Total chunks: {entry['total_chunks']}")
	lines.append("")
	lines.append("=======================================")
	lines.append(f"Total original files processed: {summary['total_files']}")
	lines.append(f"Total final chunks generated: {summary['total_chunks']}")
	lines.append("=======================================")
	return "\n".join(lines)
