# errors.py
"""Custom exception and warning classes."""


class DimensionalityError(ValueError):  # pragma: no cover
    """Dimension of data not aligned with the reduced basis data."""

    pass


class LoadfileFormatError(Exception):  # pragma: no cover
    """File format inconsistent with a loading routine."""

    pass


class ComputationError(ArithmeticError):  # pragma: no cover
    """Numerical fault in an online or offline computation, e.g., a singular
    reduced system or a non-positive stability lower bound.
    """

    pass


class CRBWarning(UserWarning):  # pragma: no cover
    """Generic warning for package usage."""

    pass
