class ParacolError(Exception):
	"""Base class for errors raised by paracol."""


class InvalidStateError(ParacolError, RuntimeError):
	"""Operation not allowed in the current column mode or lifecycle stage."""


class OutOfRangeError(ParacolError, IndexError):
	"""Index read past the number of stored elements."""


class PromotionFailure(ParacolError, RuntimeError):
	"""A value (or the stored history) has no lossless candidate type."""
