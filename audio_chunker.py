#!/usr/bin/env python3

import argparse
import asyncio
import dataclasses
import sys

import yaml

from chunklib.core import config
from chunklib.core import utils
from chunklib.core.coordinator import RunCoordinator
from chunklib.core.errors import ChunkerError

#============================================

def parse_args(argv: list = None):
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Split audio into chunks that fit transcription limits, cutting on silence"
	)
	parser.add_argument('-i', '--input', dest='input_ref',
		help='local audio file path or http(s) URL')
	parser.add_argument('-c', '--config', dest='config_file',
		help='audio chunker config YAML')
	parser.add_argument('-w', '--work-dir', dest='work_dir',
		help='directory that holds one new run directory of chunk files (default: system temp)')
	parser.add_argument('-d', '--max-duration', dest='max_duration', type=float,
		help='override maximum chunk duration in seconds')
	parser.add_argument('-s', '--max-size', dest='max_size', type=float,
		help='override maximum chunk size in MB')
	parser.add_argument('-t', '--threshold-db', dest='threshold_db', type=float,
		help='override silence threshold in dBFS')
	parser.add_argument('-m', '--min-silence', dest='min_silence', type=float,
		help='override minimum silence duration in seconds')
	parser.add_argument('-q', '--quiet', dest='quiet', action='store_true',
		help='only print the chunk paths')
	parser.add_argument('-p', '--dump-summary', dest='dump_summary', action='store_true',
		help='print the chunk summary as YAML after processing')
	parser.add_argument('--write-config', dest='write_config',
		help='write the default config to this path and exit')
	parser.set_defaults(quiet=False)
	args = parser.parse_args(argv)
	if args.write_config is None and args.input_ref is None:
		parser.error("the following arguments are required: -i/--input")
	return args

#============================================

def build_constraints_from_args(args) -> config.Constraints:
	raw_config = None
	config_path = "<defaults>"
	if args.config_file is not None:
		raw_config = config.load_config(args.config_file)
		config_path = args.config_file
	constraints = config.build_constraints(raw_config, config_path)
	overrides = {}
	if args.max_duration is not None:
		overrides['max_duration_seconds'] = args.max_duration
	if args.max_size is not None:
		overrides['max_size_mb'] = args.max_size
	if args.threshold_db is not None:
		overrides['silence_threshold_db'] = args.threshold_db
	if args.min_silence is not None:
		overrides['min_silence_duration_seconds'] = args.min_silence
	if overrides:
		constraints = dataclasses.replace(constraints, **overrides)
		config.validate_constraints(constraints, "command line")
	return constraints

#============================================

def main(argv: list = None) -> int:
	args = parse_args(argv)
	if args.write_config is not None:
		config.write_config_file(args.write_config)
		print(f"wrote {args.write_config}")
		return 0
	utils.set_quiet_mode(args.quiet)
	try:
		constraints = build_constraints_from_args(args)
		coordinator = RunCoordinator(constraints, work_dir=args.work_dir)
		chunk_paths = asyncio.run(coordinator.process_all(args.input_ref))
	except ChunkerError as exc:
		print(f"error: {exc}", file=sys.stderr)
		return 1
	if args.dump_summary:
		print(yaml.safe_dump(coordinator.last_summary, sort_keys=False))
	for path in chunk_paths:
		print(path)
	return 0


if __name__ == '__main__':
	sys.exit(main())
