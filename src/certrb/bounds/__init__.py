# bounds/__init__.py
"""Policies turning residual dual norms into certified error bounds."""

from ._policy import *
