# system/_base.py
"""Template for full-order vector I/O helpers."""

__all__ = [
    "SystemTemplate",
]

import abc

from .. import utils


class SystemTemplate(abc.ABC):
    """Template class for the full-order system used to store and retrieve
    full-order vectors (basis functions) on disk.

    The system has no algorithmic role in online evaluations; it only knows
    how to move vectors of its discretization to and from files.

    Classes that inherit from this template must implement the property
    :attr:`n_dofs` and the methods :meth:`write_vector` and
    :meth:`read_vector`.

    See :class:`ArraySystem` for an example.
    """

    @property
    @abc.abstractmethod
    def n_dofs(self) -> int:
        """Number of degrees of freedom of a full-order vector."""
        raise NotImplementedError  # pragma: no cover

    def __str__(self):
        return utils.summary_lines(
            self.__class__.__name__,
            {"degrees of freedom": self.n_dofs},
        )

    def __repr__(self):
        return utils.str2repr(self)

    def vector_filename(self, i: int, binary: bool) -> str:
        """Name of the file storing the ``i``-th vector of a collection.

        Parameters
        ----------
        i : int
            Index of the vector.
        binary : bool
            If ``True``, name a binary file, else a text file.
        """
        return f"bf{i:d}.{'h5' if binary else 'txt'}"

    @abc.abstractmethod
    def write_vector(self, vector, filename: str, binary: bool,
                     overwrite: bool = False) -> None:
        """Write a full-order vector to ``filename``.

        Parameters
        ----------
        vector : (n_dofs,) ndarray
            Vector to write.
        filename : str
            Path of the file to write.
        binary : bool
            If ``True``, use a binary encoding, else a text encoding.
        overwrite : bool
            If ``False``, raise a ``FileExistsError`` if the file exists.
        """
        raise NotImplementedError  # pragma: no cover

    @abc.abstractmethod
    def read_vector(self, filename: str, binary: bool):
        """Read a full-order vector written by :meth:`write_vector`.

        Parameters
        ----------
        filename : str
            Path of the file to read.
        binary : bool
            If ``True``, expect a binary encoding, else a text encoding.

        Returns
        -------
        vector : (n_dofs,) ndarray
        """
        raise NotImplementedError  # pragma: no cover
