# theta/_domain.py
"""Box-shaped parameter domains."""

__all__ = [
    "ParameterDomain",
]

import numpy as np

from .. import utils


class ParameterDomain:
    r"""Closed box :math:`[\mu_{\min}, \mu_{\max}] \subset \RR^p` of admissible
    parameter values.

    Parameters
    ----------
    minimum : (p,) ndarray or float
        Lower bounds for each parameter component.
    maximum : (p,) ndarray or float
        Upper bounds for each parameter component.
    """

    def __init__(self, minimum, maximum):
        """Set and check the bounds."""
        minimum = np.atleast_1d(np.asarray(minimum, dtype=float))
        maximum = np.atleast_1d(np.asarray(maximum, dtype=float))
        if minimum.ndim != 1 or minimum.shape != maximum.shape:
            raise ValueError(
                "parameter bounds must be one-dimensional and aligned"
            )
        if np.any(minimum > maximum):
            raise ValueError("parameter minimum exceeds maximum")
        self.__minimum = minimum
        self.__maximum = maximum

    # Properties --------------------------------------------------------------
    @property
    def minimum(self) -> np.ndarray:
        """Lower bounds of the parameter components."""
        return self.__minimum

    @property
    def maximum(self) -> np.ndarray:
        """Upper bounds of the parameter components."""
        return self.__maximum

    @property
    def dimension(self) -> int:
        r"""Number :math:`p` of parameter components."""
        return self.__minimum.size

    def __str__(self):
        return utils.summary_lines(
            self.__class__.__name__,
            {
                "dimension": self.dimension,
                "minimum": self.minimum,
                "maximum": self.maximum,
            },
        )

    def __repr__(self):
        return utils.str2repr(self)

    # Validation --------------------------------------------------------------
    def contains(self, parameter) -> bool:
        """Return ``True`` if ``parameter`` lies in the domain."""
        parameter = np.atleast_1d(parameter)
        if parameter.shape != (self.dimension,):
            return False
        return bool(
            np.all(parameter >= self.minimum)
            and np.all(parameter <= self.maximum)
        )

    def validate(self, parameter) -> np.ndarray:
        """Return ``parameter`` as a float array, or raise a ``ValueError`` if
        it does not lie in the domain.
        """
        parameter = np.atleast_1d(np.asarray(parameter, dtype=float))
        if parameter.shape != (self.dimension,):
            raise ValueError(
                f"expected parameter of shape ({self.dimension:d},), "
                f"got {parameter.shape}"
            )
        if not self.contains(parameter):
            raise ValueError(f"parameter {parameter} outside of the domain")
        return parameter

    def random_sample(self, size: int, seed=None) -> np.ndarray:
        """Draw parameter values uniformly from the domain.

        Parameters
        ----------
        size : int
            Number of parameter values to draw.
        seed : int, np.random.Generator, or None
            Seed for :func:`numpy.random.default_rng`.

        Returns
        -------
        parameters : (size, p) ndarray
            One parameter value per row.
        """
        rng = np.random.default_rng(seed)
        return rng.uniform(self.minimum, self.maximum, (size, self.dimension))
