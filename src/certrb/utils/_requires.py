# utils/_requires.py
"""Wrappers for methods that require an attribute to be initialized."""

__all__ = [
    "requires2",
]

import functools


def requires2(attr: str, message: str) -> callable:
    """Wrapper for methods that require an attribute to be initialized.

    The attribute counts as missing if it does not exist, is ``None``, or is
    an empty container.

    Parameters
    ----------
    attr : str
        Name of the required attribute.
    message : str
        Message in the ``AttributeError`` raised when the attribute is
        missing.
    """

    def _wrapper(func):
        @functools.wraps(func)
        def _decorator(self, *args, **kwargs):
            value = getattr(self, attr, None)
            if value is None:
                raise AttributeError(message)
            if hasattr(value, "__len__") and len(value) == 0:
                raise AttributeError(message)
            return func(self, *args, **kwargs)

        return _decorator

    return _wrapper
