# system/__init__.py
"""Full-order vector I/O helpers."""

from ._base import *
from ._array import *
