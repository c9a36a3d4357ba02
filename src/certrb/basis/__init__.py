# basis/__init__.py
"""Storage for full-order reduced basis functions."""

from ._storage import *
