import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from .chunk import Semantics
from .merge import MergedColumn
from .reader import ParseParams, read_dataframe, read_table


def _params_from_args(args: argparse.Namespace) -> ParseParams:
	return ParseParams(
		delimiter=args.delimiter,
		header=not args.no_header,
		num_threads=args.workers,
		block_size=args.block_size,
	)


def format_summary(columns: Dict[str, MergedColumn]) -> List[str]:
	"""One line per column: name, semantics, dtype, rows, dictionary size."""
	lines = []
	for name, col in columns.items():
		n_keys = len(col.keys) if col.semantics is Semantics.CATEGORICAL else 0
		lines.append(f"{name}\t{col.semantics.value}\t{col.dtype}\t{len(col)}\t{n_keys}")
	return lines


def summarize_file(input_path: str, params: ParseParams) -> None:
	columns = read_table(input_path, params)
	print("column\tsemantics\tdtype\trows\tkeys")
	for line in format_summary(columns):
		print(line)


def convert_file(input_path: str, output_path: str, params: ParseParams) -> None:
	df = read_dataframe(input_path, params)
	Path(output_path).write_text(df.to_csv(index=False))


def main(argv: Optional[List[str]] = None) -> None:
	parser = argparse.ArgumentParser(prog="paracol", description="Parallel column-based reader for delimited text")
	sub = parser.add_subparsers(dest="cmd", required=True)

	def add_common(p: argparse.ArgumentParser) -> None:
		p.add_argument("--input", required=True, help="Delimited text file (csv/tsv/txt)")
		p.add_argument("--delimiter", default=",")
		p.add_argument("--no-header", action="store_true", help="Set if the first row is data, not column names")
		p.add_argument("--workers", type=int, default=None, help="Parallel workers scanning row blocks")
		p.add_argument("--block-size", type=int, default=None, help="Rows per worker block (default: split evenly)")
		p.add_argument("--verbose", action="store_true", help="Log promotions and conversions")

	ps = sub.add_parser("summarize", help="Print the inferred type of every column")
	add_common(ps)

	pc = sub.add_parser("convert", help="Parse a file and write the typed table as CSV")
	add_common(pc)
	pc.add_argument("--output", required=True)

	args = parser.parse_args(argv)
	logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s %(name)s: %(message)s")
	params = _params_from_args(args)

	if args.cmd == "summarize":
		summarize_file(args.input, params)
	elif args.cmd == "convert":
		convert_file(args.input, args.output, params)
	else:
		parser.print_help()
		sys.exit(2)

if __name__ == "__main__":
	main()
