"""
Per-column accumulator used by a single worker while it scans its rows.

A column starts out numeric. The first non-empty text value that arrives
after numbers have been stored converts the numeric history into
dictionary codes, after which the column stays categorical for good.
"""

import enum
import logging
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from .dtypes import CATEGORICAL_CANDIDATES, NUMERIC_CANDIDATES, STRING_TYPE, is_string_type, render_number
from .errors import InvalidStateError, OutOfRangeError
from .widening import AdaptiveTypedVector

logger = logging.getLogger(__name__)


class Semantics(enum.Enum):
	NUMERIC = "numeric"
	CATEGORICAL = "categorical"


class ColumnAccumulator:
	"""Chunk of one column's values, stored as numbers or as dictionary codes."""

	def __init__(self, name: str = ""):
		self.name = name
		self._numbers = AdaptiveTypedVector(NUMERIC_CANDIDATES)
		self._codes = AdaptiveTypedVector(CATEGORICAL_CANDIDATES)
		self._ids: Dict[str, int] = {}
		self._keys: List[str] = []
		self._finished = False

	def _check_mutable(self) -> None:
		if self._finished:
			raise InvalidStateError(f"column {self.name!r} is finished and read-only")

	def _is_categorical(self) -> bool:
		return len(self._codes) > 0

	def process_float(self, value: float) -> None:
		self._check_mutable()
		if self._is_categorical():
			self.process_categorical(render_number(float(value)))
		else:
			self._numbers.append(float(value))

	def process_integer(self, value: int) -> None:
		self._check_mutable()
		if self._is_categorical():
			self.process_categorical(render_number(int(value)))
		else:
			self._numbers.append(int(value))

	def process_categorical(self, text: str) -> None:
		self._check_mutable()
		if len(self._numbers) > 0:
			if text == "":
				# blank cell in a numeric column
				self._numbers.append(0)
				return
			self.convert_to_string()
		self._codes.append(self.intern(text))

	def convert_to_string(self) -> None:
		"""Re-encode every stored number as the code of its text form, in order."""
		self._check_mutable()
		n = len(self._numbers)
		if n == 0:
			return
		for v in self._numbers:
			self._codes.append(self.intern(render_number(v)))
		self._numbers.clear()
		self._numbers.shrink_to_fit()
		logger.debug("column %r: converted %d numeric values to categorical", self.name, n)

	def add_cat_data(self, text: str) -> None:
		self._check_mutable()
		self._codes.append(self.intern(text))

	def intern(self, text: str) -> int:
		"""Code for `text`, assigning the next one on first sight."""
		code = self._ids.get(text)
		if code is None:
			code = len(self._keys)
			self._ids[text] = code
			self._keys.append(text)
		return code

	def get_semantics(self) -> Semantics:
		if self._is_categorical():
			return Semantics.CATEGORICAL
		return Semantics.NUMERIC

	def type_identifier(self) -> np.dtype:
		if self._is_categorical():
			return STRING_TYPE
		return self._numbers.type_identifier()

	def common_type_identifier(self, other: Any) -> np.dtype:
		if self._is_categorical() or is_string_type(other):
			return STRING_TYPE
		return self._numbers.common_type_identifier(other)

	def size(self) -> int:
		if self._is_categorical():
			return len(self._codes)
		return len(self._numbers)

	def __len__(self) -> int:
		return self.size()

	def clear(self) -> None:
		self._numbers.clear()
		self._codes.clear()
		self._ids.clear()
		self._keys.clear()
		self._finished = False

	def finish(self) -> None:
		"""Freeze the chunk before handing it to the merge step."""
		self._finished = True

	@property
	def finished(self) -> bool:
		return self._finished

	def get(self, index: int, as_type: Optional[Any] = None) -> Any:
		if self._is_categorical():
			raise InvalidStateError(f"column {self.name!r} is categorical; numeric values are gone")
		return self._numbers.get(index, as_type)

	def to_numpy(self, dtype: Optional[Any] = None) -> np.ndarray:
		if self._is_categorical():
			raise InvalidStateError(f"column {self.name!r} is categorical; numeric values are gone")
		return self._numbers.to_numpy(dtype)

	def insert_numeric(self, out: np.ndarray) -> int:
		"""Copy the numeric values into the front of `out`, cast to its dtype. Returns the count."""
		if self._is_categorical():
			raise InvalidStateError(f"column {self.name!r} is categorical; expected numeric data")
		n = len(self._numbers)
		if n > out.shape[0]:
			raise OutOfRangeError(f"output holds {out.shape[0]} values, column {self.name!r} has {n}")
		out[:n] = self._numbers.to_numpy(out.dtype)
		return n

	def get_code(self, index: int) -> int:
		if not self._is_categorical():
			raise InvalidStateError(f"column {self.name!r} is numeric and has no codes")
		return self._codes.get(index, int)

	def get_string(self, index: int) -> str:
		return self._keys[self.get_code(index)]

	def codes(self) -> np.ndarray:
		return self._codes.to_numpy()

	@property
	def cat_keys(self) -> Tuple[str, ...]:
		"""Decode table: entry i is the text for code i."""
		return tuple(self._keys)

	def __repr__(self) -> str:
		return (
			f"ColumnAccumulator(name={self.name!r}, semantics={self.get_semantics().value}, "
			f"size={self.size()}, dtype={self.type_identifier()})"
		)
