"""
Type identifiers, candidate ladders and common-type resolution.

A type identifier is a numpy dtype. Categorical/string data is identified
by STRING_TYPE so that it can be compared against numeric dtypes with the
same primitive.
"""

import math
from numbers import Integral, Real
from typing import Any, Optional, Sequence

import numpy as np


STRING_TYPE = np.dtype(object)

NUMERIC_CANDIDATES = (
	np.dtype(np.int8),
	np.dtype(np.int16),
	np.dtype(np.int32),
	np.dtype(np.int64),
	np.dtype(np.float64),
)

CATEGORICAL_CANDIDATES = (
	np.dtype(np.uint8),
	np.dtype(np.uint16),
	np.dtype(np.uint32),
	np.dtype(np.uint64),
)


def is_string_type(type_id: np.dtype) -> bool:
	return np.dtype(type_id) == STRING_TYPE


def _as_exact(value: Any) -> Any:
	"""Convert numpy scalars to Python int/float so comparisons are exact."""
	if isinstance(value, (bool, np.bool_)):
		return int(value)
	if isinstance(value, Integral):
		return int(value)
	if isinstance(value, Real):
		return float(value)
	raise TypeError(f"expected a numeric value, got {type(value).__name__}")


def fits(value: Any, dtype: np.dtype) -> bool:
	"""True if `value` is exactly representable in `dtype`."""
	dtype = np.dtype(dtype)
	v = _as_exact(value)
	if dtype.kind in "iu":
		if isinstance(v, float):
			if not math.isfinite(v) or v != int(v):
				return False
			# -0.0 would lose its sign
			if v == 0.0 and math.copysign(1.0, v) < 0:
				return False
			v = int(v)
		info = np.iinfo(dtype)
		return info.min <= v <= info.max
	if dtype.kind == "f":
		if isinstance(v, float) and math.isnan(v):
			return True
		try:
			with np.errstate(over="ignore"):
				converted = dtype.type(v)
		except OverflowError:
			return False
		converted = float(converted)
		if math.isinf(converted) and not (isinstance(v, float) and math.isinf(v)):
			return False
		return converted == v
	return False


def narrowest_fit(value: Any, candidates: Sequence[np.dtype], start: int = 0) -> Optional[int]:
	"""Index of the first candidate at or after `start` that holds `value`."""
	for i in range(start, len(candidates)):
		if fits(value, candidates[i]):
			return i
	return None


def common_type(a: np.dtype, b: np.dtype, candidates: Optional[Sequence[np.dtype]] = None) -> np.dtype:
	"""
	Narrowest type identifier able to hold values of both `a` and `b`.
	Anything paired with STRING_TYPE is STRING_TYPE. Within a candidate
	ladder the wider rung wins; otherwise numpy's promotion rules apply.
	"""
	a = np.dtype(a)
	b = np.dtype(b)
	if is_string_type(a) or is_string_type(b):
		return STRING_TYPE
	if candidates is not None and a in candidates and b in candidates:
		ladder = list(candidates)
		return ladder[max(ladder.index(a), ladder.index(b))]
	return np.promote_types(a, b)


def render_number(value: Any) -> str:
	"""Canonical decimal text for a stored number: 3 -> "3", 1.0 -> "1", 2.5 -> "2.5"."""
	v = _as_exact(value)
	if isinstance(v, int):
		return str(v)
	if math.isnan(v):
		return "nan"
	if math.isinf(v):
		return "inf" if v > 0 else "-inf"
	if v != 0.0 and not (1e-4 <= abs(v) < 1e16):
		return np.format_float_scientific(v, unique=True, trim="-")
	return np.format_float_positional(v, unique=True, trim="-")
