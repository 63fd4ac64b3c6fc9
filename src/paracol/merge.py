"""
Assembly of per-worker chunks of one logical column.

Workers build their dictionaries independently, so the same text can carry
different codes in different chunks. Categorical merges therefore rebuild
one dictionary (first-seen order across chunks) and remap every chunk's
codes through a lookup array.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from .chunk import ColumnAccumulator, Semantics
from .dtypes import CATEGORICAL_CANDIDATES, NUMERIC_CANDIDATES, is_string_type, narrowest_fit, render_number
from .errors import InvalidStateError, PromotionFailure


@dataclass
class MergedColumn:
	name: str
	semantics: Semantics
	values: Optional[np.ndarray] = None  # numeric columns
	codes: Optional[np.ndarray] = None  # categorical columns
	keys: Optional[List[str]] = None

	@property
	def dtype(self) -> np.dtype:
		if self.semantics is Semantics.CATEGORICAL:
			return self.codes.dtype
		return self.values.dtype

	def __len__(self) -> int:
		if self.semantics is Semantics.CATEGORICAL:
			return int(self.codes.shape[0])
		return int(self.values.shape[0])

	def to_pandas(self) -> pd.Series:
		if self.semantics is Semantics.CATEGORICAL:
			cat = pd.Categorical.from_codes(self.codes.astype(np.int64), categories=self.keys)
			return pd.Series(cat, name=self.name)
		return pd.Series(self.values, name=self.name)


def merged_type(chunks: Sequence[ColumnAccumulator]) -> np.dtype:
	"""Fold common_type_identifier across chunks."""
	t = NUMERIC_CANDIDATES[0]
	for c in chunks:
		t = c.common_type_identifier(t)
	return t


def _cast_exact(arr: np.ndarray, dtype: np.dtype) -> np.ndarray:
	with np.errstate(over="ignore", invalid="ignore"):
		out = arr.astype(dtype)
		back = out.astype(arr.dtype)
	if not np.array_equal(back, arr, equal_nan=arr.dtype.kind == "f"):
		raise PromotionFailure(f"cannot widen {arr.dtype} chunk to {dtype} without loss")
	return out


def merge_numeric(chunks: Sequence[ColumnAccumulator], dtype: Optional[np.dtype] = None) -> np.ndarray:
	if dtype is None:
		dtype = merged_type(chunks)
	if is_string_type(dtype):
		raise InvalidStateError("chunks hold categorical data; use merge_categorical")
	parts = [_cast_exact(c.to_numpy(), dtype) for c in chunks]
	if not parts:
		return np.empty(0, dtype=dtype)
	return np.concatenate(parts)


def merge_categorical(chunks: Sequence[ColumnAccumulator]):
	"""Return (codes, keys) with one dictionary shared by all chunks."""
	ids: Dict[str, int] = {}
	keys: List[str] = []

	def intern(text: str) -> int:
		code = ids.get(text)
		if code is None:
			code = len(keys)
			ids[text] = code
			keys.append(text)
		return code

	parts = []
	for c in chunks:
		if c.get_semantics() is Semantics.CATEGORICAL:
			remap = np.array([intern(k) for k in c.cat_keys], dtype=np.uint64)
			parts.append(remap[c.codes()])
		else:
			# numeric chunk: textify a copy, the chunk itself is left untouched
			parts.append(np.array([intern(render_number(v)) for v in c.to_numpy()], dtype=np.uint64))

	level = narrowest_fit(max(len(keys) - 1, 0), CATEGORICAL_CANDIDATES)
	code_dtype = CATEGORICAL_CANDIDATES[level]
	if not parts:
		return np.empty(0, dtype=code_dtype), keys
	return np.concatenate(parts).astype(code_dtype), keys


def merge_chunks(chunks: Sequence[ColumnAccumulator], name: Optional[str] = None) -> MergedColumn:
	"""Combine the finished chunks of one column, in row order."""
	for c in chunks:
		if not c.finished:
			raise InvalidStateError(f"chunk of column {c.name!r} is still being written")
	if name is None:
		name = chunks[0].name if chunks else ""
	t = merged_type(chunks)
	if is_string_type(t):
		codes, keys = merge_categorical(chunks)
		return MergedColumn(name, Semantics.CATEGORICAL, codes=codes, keys=keys)
	return MergedColumn(name, Semantics.NUMERIC, values=merge_numeric(chunks, t))
