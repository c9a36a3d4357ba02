# theta/_expansion.py
"""Coefficient functions of affine parameter decompositions."""

__all__ = [
    "ThetaExpansion",
]

import numpy as np

from .. import utils
from ._domain import ParameterDomain


# Helper functions ============================================================
def _is_iterable(obj):
    """Return True if obj is iterable, False, else."""
    try:
        iter(obj)
        return True
    except TypeError:
        return False


def _parse_coeffs(coeffs, label):
    """Translate a coefficient specification into a tuple of callables.

    * An iterable of callables is used as is.
    * A positive integer p means ``theta_i(mu) = mu[i]`` for i < p.
    """
    if isinstance(coeffs, (int, np.integer)) and not isinstance(coeffs, bool):
        if coeffs < 1:
            raise ValueError(f"number of {label} terms must be positive")
        return tuple((lambda mu, i=i: mu[i]) for i in range(coeffs))
    if not _is_iterable(coeffs):
        raise TypeError(
            f"argument '{label}' must be an iterable of callables "
            "or a positive int"
        )
    coeffs = tuple(coeffs)
    if any(not callable(func) for func in coeffs):
        raise TypeError(f"each entry of '{label}' must be callable")
    return coeffs


def _evaluate(functions, parameter):
    """Evaluate scalar coefficient functions at one parameter value."""
    return np.array([func(parameter) for func in functions], dtype=float)


class ThetaExpansion:
    r"""Scalar coefficient functions of an affine parameter decomposition.

    The bilinear form, the right-hand side, and each output functional of the
    problem are written as

    .. math::
       a(\cdot,\cdot;\bfmu) = \sum_{q=0}^{Q_a-1}\theta_a^{(q)}(\bfmu)\,
       a_q(\cdot,\cdot),
       \qquad
       f(\cdot;\bfmu) = \sum_{q=0}^{Q_f-1}\theta_f^{(q)}(\bfmu)\,f_q(\cdot),
       \qquad
       \ell_n(\cdot;\bfmu) = \sum_{q=0}^{Q_{\ell_n}-1}
       \theta_{\ell_n}^{(q)}(\bfmu)\,\ell_{n,q}(\cdot).

    This class stores the coefficient functions :math:`\theta` together with
    the current parameter value at which online computations take place.

    Parameters
    ----------
    A_coeffs : iterable of callables, or int
        Coefficient functions :math:`\theta_a^{(q)}` of the bilinear form.
        An integer :math:`p` means :math:`\theta_a^{(i)}(\bfmu) = \mu_i`.
    F_coeffs : iterable of callables, or int
        Coefficient functions :math:`\theta_f^{(q)}` of the right-hand side.
    output_coeffs : iterable of (iterables of callables, or ints)
        Coefficient functions of each output functional.
    domain : ParameterDomain or None
        Admissible parameter values. If given, :meth:`set_parameters()` and
        the ``eval_*`` methods reject parameters outside of it.
    """

    def __init__(self, A_coeffs, F_coeffs, output_coeffs=(), domain=None):
        """Set the coefficient functions."""
        self.__A_thetas = _parse_coeffs(A_coeffs, "A_coeffs")
        self.__F_thetas = _parse_coeffs(F_coeffs, "F_coeffs")
        if not _is_iterable(output_coeffs):
            raise TypeError("argument 'output_coeffs' must be iterable")
        self.__output_thetas = tuple(
            _parse_coeffs(coeffs, "output_coeffs") for coeffs in output_coeffs
        )
        if domain is not None and not isinstance(domain, ParameterDomain):
            raise TypeError("argument 'domain' must be a ParameterDomain")
        self.__domain = domain
        self.__parameters = None

    # Properties --------------------------------------------------------------
    @property
    def n_A_terms(self) -> int:
        r"""Number :math:`Q_a` of terms in the bilinear form expansion."""
        return len(self.__A_thetas)

    @property
    def n_F_terms(self) -> int:
        r"""Number :math:`Q_f` of terms in the right-hand side expansion."""
        return len(self.__F_thetas)

    @property
    def n_outputs(self) -> int:
        """Number of output functionals."""
        return len(self.__output_thetas)

    def n_output_terms(self, n: int) -> int:
        r"""Number :math:`Q_{\ell_n}` of terms in the expansion of output n."""
        return len(self.__output_thetas[self._check_output_index(n)])

    @property
    def domain(self):
        """Admissible parameter values (``None`` if unconstrained)."""
        return self.__domain

    def is_initialized(self) -> bool:
        """Return ``True`` if the expansion has at least one bilinear form
        term and one right-hand side term.
        """
        return self.n_A_terms > 0 and self.n_F_terms > 0

    def __str__(self):
        return utils.summary_lines(
            self.__class__.__name__,
            {
                "bilinear form terms": self.n_A_terms,
                "right-hand side terms": self.n_F_terms,
                "output terms": [
                    self.n_output_terms(n) for n in range(self.n_outputs)
                ],
                "current parameters": self.__parameters,
            },
        )

    def __repr__(self):
        return utils.str2repr(self)

    # Parameters --------------------------------------------------------------
    def _check_parameter(self, parameter) -> np.ndarray:
        if self.__domain is not None:
            return self.__domain.validate(parameter)
        parameter = np.atleast_1d(np.asarray(parameter, dtype=float))
        if parameter.ndim != 1:
            raise ValueError("parameter must be a scalar or one-dimensional")
        return parameter

    def _check_output_index(self, n: int) -> int:
        if not 0 <= n < self.n_outputs:
            raise IndexError(
                f"output index {n} out of range for {self.n_outputs} outputs"
            )
        return n

    @property
    @utils.requires2("_ThetaExpansion__parameters", "parameters not set")
    def parameters(self) -> np.ndarray:
        """Current parameter value."""
        return self.__parameters

    def set_parameters(self, parameter) -> None:
        """Set the current parameter value for online evaluations."""
        self.__parameters = self._check_parameter(parameter)

    def _resolve(self, parameter):
        if parameter is None:
            return self.parameters
        return self._check_parameter(parameter)

    # Evaluation --------------------------------------------------------------
    def eval_A_theta(self, parameter=None) -> np.ndarray:
        r"""Evaluate :math:`[\theta_a^{(0)}(\bfmu),\ldots,
        \theta_a^{(Q_a-1)}(\bfmu)]`.

        Parameters
        ----------
        parameter : (p,) ndarray or None
            Parameter value. If ``None`` (default), use the current
            parameters.

        Returns
        -------
        thetas : (Q_a,) ndarray
        """
        return _evaluate(self.__A_thetas, self._resolve(parameter))

    def eval_F_theta(self, parameter=None) -> np.ndarray:
        r"""Evaluate :math:`[\theta_f^{(0)}(\bfmu),\ldots,
        \theta_f^{(Q_f-1)}(\bfmu)]`; see :meth:`eval_A_theta()`.
        """
        return _evaluate(self.__F_thetas, self._resolve(parameter))

    def eval_output_theta(self, n: int, parameter=None) -> np.ndarray:
        r"""Evaluate the coefficient functions of output ``n``;
        see :meth:`eval_A_theta()`.
        """
        thetas = self.__output_thetas[self._check_output_index(n)]
        return _evaluate(thetas, self._resolve(parameter))
