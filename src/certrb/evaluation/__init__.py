# evaluation/__init__.py
r"""Online evaluation of certified reduced basis models.

.. currentmodule:: certrb.evaluation

An :class:`RBEvaluation` holds the reduced data of a parametrized linear
problem with affine parameter dependence: the projected affine terms, the
reduced inner product matrix, and the inner products of the Riesz
representors of the residual. For any parameter value :math:`\bfmu` it
solves the small reduced system with :math:`N` basis functions and bounds
the error of the result without touching full-order vectors.

**Classes**

.. autosummary::
    :toctree: _autosummaries

    RBEvaluation
"""

from ._evaluation import *
