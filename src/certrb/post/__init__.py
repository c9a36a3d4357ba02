# post/__init__.py
"""Tools for post-processing online evaluations."""

from ._bounds import *
