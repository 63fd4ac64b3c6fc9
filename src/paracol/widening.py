"""
Append-only numeric vector that stores its values in the narrowest of a
fixed ladder of candidate dtypes able to hold every value appended so far.
"""

import logging
import operator
from typing import Any, Iterable, Iterator, Optional, Sequence

import numpy as np

from .dtypes import NUMERIC_CANDIDATES, common_type, narrowest_fit
from .errors import OutOfRangeError, PromotionFailure

logger = logging.getLogger(__name__)

_MIN_CAPACITY = 8


class AdaptiveTypedVector:
	"""Widening vector over an ordered candidate ladder (narrowest first)."""

	def __init__(self, candidates: Sequence[Any] = NUMERIC_CANDIDATES, capacity: int = 0):
		self._candidates = tuple(np.dtype(c) for c in candidates)
		if not self._candidates:
			raise ValueError("at least one candidate type is required")
		if capacity < 0:
			raise ValueError("capacity must be non-negative")
		self._level = 0
		self._size = 0
		self._data = np.empty(capacity, dtype=self._candidates[0])

	@property
	def candidates(self) -> tuple:
		return self._candidates

	@property
	def capacity(self) -> int:
		return int(self._data.shape[0])

	def append(self, value: Any) -> None:
		level = narrowest_fit(value, self._candidates, self._level)
		if level is None:
			raise PromotionFailure(
				f"value {value!r} is not representable in any of {[str(c) for c in self._candidates]}"
			)
		if level > self._level:
			self._promote(level)
		if self._size == self._data.shape[0]:
			self._reserve(self._size + 1)
		self._data[self._size] = value
		self._size += 1

	def extend(self, values: Iterable[Any]) -> None:
		for v in values:
			self.append(v)

	def _reserve(self, needed: int) -> None:
		cap = max(_MIN_CAPACITY, 2 * self._data.shape[0], needed)
		grown = np.empty(cap, dtype=self._data.dtype)
		grown[:self._size] = self._data[:self._size]
		self._data = grown

	def _promote(self, level: int) -> None:
		old_dtype = self._data.dtype
		new_dtype = self._candidates[level]
		old = self._data[:self._size]
		with np.errstate(over="ignore", invalid="ignore"):
			converted = old.astype(new_dtype)
			back = converted.astype(old_dtype)
		if not np.array_equal(back, old, equal_nan=old_dtype.kind == "f"):
			raise PromotionFailure(
				f"promoting {self._size} stored values from {old_dtype} to {new_dtype} would lose precision"
			)
		promoted = np.empty(self._data.shape[0], dtype=new_dtype)
		promoted[:self._size] = converted
		self._data = promoted
		self._level = level
		logger.debug("promoted %s -> %s after %d values", old_dtype, new_dtype, self._size)

	def _check_index(self, index: int) -> int:
		i = operator.index(index)
		if i < 0 or i >= self._size:
			raise OutOfRangeError(f"index {i} out of range for vector of size {self._size}")
		return i

	def get(self, index: int, as_type: Optional[Any] = None) -> Any:
		"""
		Return the value at `index`. With no `as_type` a native Python int or
		float is returned; builtin `int`/`float` convert to that type; any
		other argument is treated as a numpy dtype.
		"""
		raw = self._data[self._check_index(index)]
		if as_type is None:
			return raw.item()
		if as_type is int or as_type is float:
			return as_type(raw.item())
		return np.dtype(as_type).type(raw)

	def __getitem__(self, index: int) -> Any:
		return self.get(index)

	def size(self) -> int:
		return self._size

	def __len__(self) -> int:
		return self._size

	def __iter__(self) -> Iterator[Any]:
		for i in range(self._size):
			yield self._data[i].item()

	def clear(self) -> None:
		"""Drop all values; the active type falls back to the narrowest candidate."""
		self._size = 0
		self._level = 0
		self._data = np.empty(self._data.shape[0], dtype=self._candidates[0])

	def shrink_to_fit(self) -> None:
		self._data = self._data[:self._size].copy()

	def type_identifier(self) -> np.dtype:
		return self._candidates[self._level]

	def common_type_identifier(self, other: Any) -> np.dtype:
		return common_type(self.type_identifier(), other, self._candidates)

	def to_numpy(self, dtype: Optional[Any] = None) -> np.ndarray:
		"""Copy of the stored values, optionally cast to `dtype`."""
		if dtype is None:
			return self._data[:self._size].copy()
		return self._data[:self._size].astype(dtype)

	def __repr__(self) -> str:
		return f"AdaptiveTypedVector(size={self._size}, dtype={self.type_identifier()})"
