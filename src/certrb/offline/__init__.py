# offline/__init__.py
"""Offline assembly of reduced basis data from full-order operators."""

from ._construction import *
