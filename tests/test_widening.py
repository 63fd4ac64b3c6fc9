import numpy as np
import pytest

from paracol.dtypes import CATEGORICAL_CANDIDATES, STRING_TYPE, common_type, fits, render_number
from paracol.errors import OutOfRangeError, PromotionFailure
from paracol.widening import AdaptiveTypedVector


def test_starts_at_narrowest_candidate():
	v = AdaptiveTypedVector()
	assert v.size() == 0
	assert v.type_identifier() == np.dtype(np.int8)


def test_widens_exactly_at_each_threshold():
	v = AdaptiveTypedVector()
	expected = [np.int8, np.int16, np.int32, np.int64]
	for value, dtype in zip([1, 300, 70000, 5_000_000_000], expected):
		v.append(value)
		assert v.type_identifier() == np.dtype(dtype)
	assert list(v) == [1, 300, 70000, 5_000_000_000]


def test_stays_narrow_when_values_fit():
	v = AdaptiveTypedVector()
	v.extend([-128, 127, 0, 3.0])
	assert v.type_identifier() == np.dtype(np.int8)
	assert v.get(3) == 3


def test_promotion_keeps_history():
	v = AdaptiveTypedVector()
	values = [5, -100, 40000, 2.5]
	v.extend(values)
	assert v.type_identifier() == np.dtype(np.float64)
	for i, value in enumerate(values):
		assert v.get(i, float) == value
	assert v.get(2, int) == 40000
	assert isinstance(v.get(0, np.float32), np.float32)


def test_negative_zero_and_nan_need_float():
	v = AdaptiveTypedVector()
	v.append(-0.0)
	assert v.type_identifier() == np.dtype(np.float64)
	v.append(float("nan"))
	assert np.isnan(v.get(1))


def test_lossy_promotion_fails():
	v = AdaptiveTypedVector()
	v.append(2**53 + 1)
	with pytest.raises(PromotionFailure):
		v.append(0.5)
	# history is untouched
	assert v.type_identifier() == np.dtype(np.int64)
	assert v.get(0) == 2**53 + 1


def test_value_outside_every_candidate():
	codes = AdaptiveTypedVector(CATEGORICAL_CANDIDATES)
	with pytest.raises(PromotionFailure):
		codes.append(-1)
	v = AdaptiveTypedVector()
	with pytest.raises(PromotionFailure):
		v.append(2**70 + 1)


def test_out_of_range_reads():
	v = AdaptiveTypedVector()
	with pytest.raises(OutOfRangeError):
		v.get(0)
	v.append(1)
	with pytest.raises(OutOfRangeError):
		v.get(1)
	with pytest.raises(IndexError):
		v.get(-1)


def test_clear_and_shrink():
	v = AdaptiveTypedVector()
	v.extend(range(1000))
	assert v.type_identifier() == np.dtype(np.int16)
	v.clear()
	assert v.size() == 0
	assert v.type_identifier() == np.dtype(np.int8)
	v.extend([1, 2, 3])
	v.shrink_to_fit()
	assert v.capacity == 3
	assert v.to_numpy().tolist() == [1, 2, 3]


def test_common_type_is_symmetric():
	a = AdaptiveTypedVector()
	b = AdaptiveTypedVector()
	a.append(1)
	b.append(100000)
	assert a.common_type_identifier(b.type_identifier()) == np.dtype(np.int32)
	assert b.common_type_identifier(a.type_identifier()) == np.dtype(np.int32)
	assert a.common_type_identifier(STRING_TYPE) == STRING_TYPE


def test_common_type_over_all_pairs():
	types = [np.dtype(t) for t in (np.int8, np.int16, np.int32, np.int64, np.float64)] + [STRING_TYPE]
	for x in types:
		for y in types:
			assert common_type(x, y) == common_type(y, x)
			if STRING_TYPE in (x, y):
				assert common_type(x, y) == STRING_TYPE


def test_fits():
	assert fits(127, np.int8)
	assert not fits(128, np.int8)
	assert not fits(1.5, np.int64)
	assert fits(2**70, np.float64)
	assert not fits(0.1, np.float32)
	assert not fits(-1, np.uint8)


def test_render_number():
	assert render_number(3) == "3"
	assert render_number(np.int16(-7)) == "-7"
	assert render_number(1.0) == "1"
	assert render_number(2.5) == "2.5"
	assert render_number(float("nan")) == "nan"
	assert render_number(float("-inf")) == "-inf"
	assert render_number(1e300) == "1e+300"
	assert render_number(-2.5e-7) == "-2.5e-07"
	assert render_number(123456.75) == "123456.75"
