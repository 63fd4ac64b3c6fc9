"""
Parallel column-based reader: splits the rows of a delimited text file into
contiguous blocks, scans each block on its own worker with one
ColumnAccumulator per column, then merges the chunks column by column.
"""

import logging
import math
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .chunk import ColumnAccumulator
from .dtypes import NUMERIC_CANDIDATES, fits
from .merge import MergedColumn, merge_chunks

logger = logging.getLogger(__name__)

_INT64 = NUMERIC_CANDIDATES[3]


@dataclass
class ParseParams:
	delimiter: str = ","
	header: bool = True
	num_threads: Optional[int] = None
	block_size: Optional[int] = None  # rows per worker block


def classify_field(text: str) -> Union[int, float, str]:
	"""
	Minimal field classification: int64 literal, float literal, else text.
	Whitespace-only fields count as empty.
	"""
	stripped = text.strip()
	if stripped == "":
		return ""
	if "_" in stripped:
		return text
	try:
		v = int(stripped)
	except ValueError:
		pass
	else:
		return v if fits(v, _INT64) else text
	try:
		return float(stripped)
	except ValueError:
		return text


def process_field(acc: ColumnAccumulator, text: str) -> None:
	v = classify_field(text)
	if isinstance(v, int):
		acc.process_integer(v)
	elif isinstance(v, float):
		acc.process_float(v)
	else:
		acc.process_categorical(v)


def scan_rows(rows: Sequence[Sequence[str]], names: Sequence[str]) -> List[ColumnAccumulator]:
	"""One worker's scan. Missing trailing fields are fed as empty text."""
	accs = [ColumnAccumulator(n) for n in names]
	for row in rows:
		n_fields = len(row)
		for j, acc in enumerate(accs):
			process_field(acc, row[j] if j < n_fields else "")
	for acc in accs:
		acc.finish()
	return accs


def _normalize_delimiter(delimiter: str) -> str:
	# "\t" arrives as a literal backslash-t from the command line
	if delimiter == "\\t":
		return "\t"
	return delimiter


def _load_fields(path: Path, params: ParseParams) -> Tuple[List[str], np.ndarray]:
	"""
	Read every field as raw text. The first line fixes the column count:
	longer rows are cut to it, shorter rows and blank lines are padded with "".
	"""
	options = dict(
		delimiter=_normalize_delimiter(params.delimiter),
		header=None,
		dtype=str,
		keep_default_na=False,
		na_values=[],
		engine="python",
	)
	first = pd.read_csv(path, nrows=1, **options)
	width = first.shape[1]
	if params.header:
		names = ["" if pd.isna(v) else str(v) for v in first.iloc[0].tolist()] if len(first) else []
	else:
		names = [str(j) for j in range(width)]
	df = pd.read_csv(
		path,
		names=list(range(width)),
		usecols=list(range(width)),
		index_col=False,
		skiprows=1 if params.header else 0,
		skip_blank_lines=False,
		**options,
	)
	df = df.fillna("")
	return names, df.astype(object).to_numpy()


def partition_rows(n_rows: int, num_threads: int, block_size: Optional[int] = None) -> List[Tuple[int, int]]:
	"""Contiguous [start, end) row ranges, one per worker task."""
	if n_rows == 0:
		return []
	if block_size is None or block_size < 1:
		block_size = max(1, math.ceil(n_rows / max(1, num_threads)))
	return [(start, min(start + block_size, n_rows)) for start in range(0, n_rows, block_size)]


def read_table(path: Union[str, Path], params: Optional[ParseParams] = None) -> Dict[str, MergedColumn]:
	params = params or ParseParams()
	names, table = _load_fields(Path(path), params)
	n_rows = table.shape[0]
	num_threads = params.num_threads or min(int(os.cpu_count() or 4), 16)
	blocks = partition_rows(n_rows, num_threads, params.block_size)

	def scan_block(block: Tuple[int, int]) -> List[ColumnAccumulator]:
		start, end = block
		return scan_rows(table[start:end], names)

	with ThreadPoolExecutor(max_workers=max(1, num_threads)) as executor:
		chunked = list(executor.map(scan_block, blocks))
	logger.info("scanned %d rows in %d blocks with %d workers", n_rows, len(blocks), num_threads)

	columns: Dict[str, MergedColumn] = {}
	for j, name in enumerate(names):
		col = merge_chunks([chunks[j] for chunks in chunked], name=name)
		logger.debug("column %r: %s %s", name, col.semantics.value, col.dtype)
		columns[name] = col
	return columns


def read_dataframe(path: Union[str, Path], params: Optional[ParseParams] = None) -> pd.DataFrame:
	columns = read_table(path, params)
	return pd.DataFrame({name: col.to_pandas() for name, col in columns.items()})
