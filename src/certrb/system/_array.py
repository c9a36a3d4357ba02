# system/_array.py
"""Full-order vector I/O for plain NumPy discretizations."""

__all__ = [
    "ArraySystem",
]

import os
import numpy as np

from .. import errors, utils
from ._base import SystemTemplate


class ArraySystem(SystemTemplate):
    """Full-order vector I/O for discretizations whose vectors are plain
    one-dimensional arrays.

    Binary files are HDF5 files with a single dataset ``vector``; text files
    hold one entry per line in full double precision.

    Parameters
    ----------
    n_dofs : int
        Number of degrees of freedom of a full-order vector.
    """

    def __init__(self, n_dofs: int):
        """Set the number of degrees of freedom."""
        if n_dofs < 1:
            raise ValueError("number of degrees of freedom must be positive")
        self.__n_dofs = int(n_dofs)

    @property
    def n_dofs(self) -> int:
        """Number of degrees of freedom of a full-order vector."""
        return self.__n_dofs

    def _check_vector(self, vector, filename):
        vector = np.asarray(vector, dtype=float).ravel()
        if vector.size != self.n_dofs:
            raise errors.DimensionalityError(
                f"vector for '{filename}' has {vector.size} entries, "
                f"expected {self.n_dofs}"
            )
        return vector

    def write_vector(self, vector, filename: str, binary: bool,
                     overwrite: bool = False) -> None:
        vector = self._check_vector(vector, filename)
        if binary:
            with utils.hdf5_savehandle(filename, overwrite) as hf:
                hf.create_dataset("vector", data=vector)
            return
        if os.path.isfile(filename) and not overwrite:
            raise FileExistsError(f"{filename} (overwrite=True to ignore)")
        np.savetxt(filename, vector, fmt="%.17e")

    def read_vector(self, filename: str, binary: bool):
        if not os.path.isfile(filename):
            raise FileNotFoundError(filename)
        if binary:
            with utils.hdf5_loadhandle(filename) as hf:
                vector = utils.load_dataset(hf, "vector", ndim=1)
        else:
            try:
                vector = np.loadtxt(filename, dtype=float, ndmin=1)
            except ValueError as ex:
                raise errors.LoadfileFormatError(
                    f"{ex.args[0]} (reading '{filename}')"
                ) from ex
        if vector.size != self.n_dofs:
            raise errors.LoadfileFormatError(
                f"vector in '{filename}' has {vector.size} entries, "
                f"expected {self.n_dofs}"
            )
        return vector
