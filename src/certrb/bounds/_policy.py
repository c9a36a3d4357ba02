# bounds/_policy.py
"""Stability lower bounds and residual scalings for a posteriori bounds."""

__all__ = [
    "BoundPolicyTemplate",
    "CoerciveBoundPolicy",
    "ComplianceBoundPolicy",
]

import abc
import numpy as np

from .. import errors, utils


class BoundPolicyTemplate(abc.ABC):
    r"""Template class for error bound policies.

    An error bound policy supplies a lower bound :math:`\alpha_{LB}(\bfmu)`
    for the stability constant of the problem and decides how the residual
    dual norm :math:`\varepsilon_N(\bfmu)` and :math:`\alpha_{LB}(\bfmu)` are
    combined into a bound,

    .. math::
       \Delta_N(\bfmu) = \frac{\varepsilon_N(\bfmu)}
       {\texttt{residual\_scaling\_denom}(\alpha_{LB}(\bfmu))}.

    Classes that inherit from this template must implement
    :meth:`residual_scaling_denom` and :meth:`output_error_bound`.

    Parameters
    ----------
    alpha_LB : float or callable
        Stability lower bound, either a constant or a function of the
        parameter vector.
    """

    min_stability = 0.0

    def __init__(self, alpha_LB=1.0):
        """Set the stability lower bound."""
        if not callable(alpha_LB):
            alpha_LB = float(alpha_LB)
        self.__alpha_LB = alpha_LB

    def __str__(self):
        alpha = self.__alpha_LB
        if callable(alpha):
            alpha = "callable"
        return utils.summary_lines(
            self.__class__.__name__,
            {"stability lower bound": alpha},
        )

    def __repr__(self):
        return utils.str2repr(self)

    def stability_lower_bound(self, parameter) -> float:
        r"""Lower bound :math:`\alpha_{LB}(\bfmu)` for the coercivity or
        inf-sup constant at the given parameter value.
        """
        if callable(self.__alpha_LB):
            return float(self.__alpha_LB(parameter))
        return self.__alpha_LB

    def _check_stability(self, alpha_LB) -> float:
        """Raise a ComputationError unless ``alpha_LB`` is finite and
        larger than :attr:`min_stability`.
        """
        if not np.isfinite(alpha_LB) or alpha_LB <= self.min_stability:
            raise errors.ComputationError(
                f"stability lower bound {alpha_LB} is not positive, "
                "cannot scale the residual"
            )
        return alpha_LB

    @abc.abstractmethod
    def residual_scaling_denom(self, alpha_LB: float) -> float:
        """Denominator scaling the residual dual norm in the error bound."""
        raise NotImplementedError  # pragma: no cover

    @abc.abstractmethod
    def output_error_bound(self, error_bound: float, dual_norm: float):
        """Error bound for an output, given the solution error bound and the
        dual norm of the output functional.
        """
        raise NotImplementedError  # pragma: no cover


class CoerciveBoundPolicy(BoundPolicyTemplate):
    r"""Bounds for coercive problems with general outputs.

    The solution error is bounded in the natural norm by
    :math:`\Delta_N = \varepsilon_N / \alpha_{LB}` and the error of output
    :math:`\ell_n` by :math:`\Delta_N\,\|\ell_n(\cdot;\bfmu)\|_{X'}`.
    """

    def residual_scaling_denom(self, alpha_LB: float) -> float:
        r"""Return :math:`\alpha_{LB}`."""
        return self._check_stability(alpha_LB)

    def output_error_bound(self, error_bound: float, dual_norm: float):
        return error_bound * dual_norm


class ComplianceBoundPolicy(BoundPolicyTemplate):
    r"""Bounds for coercive problems with compliant outputs.

    The solution error is bounded in the energy norm by
    :math:`\Delta_N^{en} = \varepsilon_N / \sqrt{\alpha_{LB}}` and the output
    error by :math:`(\Delta_N^{en})^2 = \varepsilon_N^2 / \alpha_{LB}`,
    independently of the output dual norm.
    """

    def residual_scaling_denom(self, alpha_LB: float) -> float:
        r"""Return :math:`\sqrt{\alpha_{LB}}`."""
        return np.sqrt(self._check_stability(alpha_LB))

    def output_error_bound(self, error_bound: float, dual_norm: float):
        return error_bound**2
