# theta/__init__.py
r"""Affine parameter decompositions and parameter domains.

.. currentmodule:: certrb.theta

**Classes**

.. autosummary::
    :toctree: _autosummaries

    ParameterDomain
    ThetaExpansion
"""

from ._domain import *
from ._expansion import *
