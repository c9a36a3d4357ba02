# __init__.py
"""Online/offline evaluation of certified reduced basis models."""

__version__ = "0.1.0"

from . import (
    basis,
    bounds,
    errors,
    evaluation,
    offline,
    post,
    system,
    theta,
    utils,
)

from .basis import *
from .bounds import *
from .evaluation import *
from .offline import *
from .system import *
from .theta import *
