# basis/_storage.py
"""Contiguous storage of full-order basis functions."""

__all__ = [
    "BasisFunctions",
]

import numpy as np
import matplotlib.pyplot as plt

from .. import errors, utils


requires_entries = utils.requires2(
    "entries",
    "no basis functions stored",
)


class BasisFunctions:
    r"""Ordered collection of full-order basis functions
    :math:`\zeta_0,\ldots,\zeta_{N-1}\in\RR^n`.

    The vectors are stored as the columns of one contiguous
    :math:`n \times N` array that grows as basis functions are appended.
    Accessing a basis function returns a view into this array.

    Parameters
    ----------
    vectors : (n, N) ndarray, iterable of (n,) ndarrays, or None
        Initial basis functions.
    """

    def __init__(self, vectors=None):
        """Store the initial basis functions."""
        self.__entries = None
        if vectors is not None:
            if isinstance(vectors, np.ndarray) and vectors.ndim == 2:
                vectors = vectors.T
            for vector in vectors:
                self.append(vector)

    # Properties --------------------------------------------------------------
    @property
    def entries(self):
        r"""Basis matrix :math:`[~\zeta_0~~\cdots~~\zeta_{N-1}~]`, or ``None``
        if empty.
        """
        return self.__entries

    @property
    def full_state_dimension(self):
        """Dimension :math:`n` of the full-order vectors."""
        return None if self.__entries is None else self.__entries.shape[0]

    def __len__(self) -> int:
        """Number of stored basis functions."""
        return 0 if self.__entries is None else self.__entries.shape[1]

    def __getitem__(self, i: int) -> np.ndarray:
        """Return the ``i``-th basis function as a read-only view."""
        if not isinstance(i, (int, np.integer)):
            raise TypeError("basis functions are indexed by integers")
        if not 0 <= i < len(self):
            raise IndexError(
                f"basis function index {i} out of range "
                f"for {len(self)} basis functions"
            )
        vector = self.__entries[:, i]
        vector.flags.writeable = False
        return vector

    def __iter__(self):
        for i in range(len(self)):
            yield self[i]

    def __eq__(self, other) -> bool:
        if not isinstance(other, self.__class__) or len(self) != len(other):
            return False
        if len(self) == 0:
            return True
        return np.array_equal(self.entries, other.entries)

    def __str__(self):
        return utils.summary_lines(
            self.__class__.__name__,
            {
                "Full state dimension    n": self.full_state_dimension,
                "Number of functions     N": len(self),
            },
        )

    def __repr__(self):
        return utils.str2repr(self)

    # Modification ------------------------------------------------------------
    def append(self, vector) -> None:
        """Add a basis function at the end of the collection.

        Parameters
        ----------
        vector : (n,) ndarray
            Full-order basis function. It is copied.
        """
        vector = np.array(vector, dtype=float).ravel()
        if self.__entries is None:
            self.__entries = vector.reshape((-1, 1))
            return
        if vector.size != (n := self.full_state_dimension):
            raise errors.DimensionalityError(
                f"basis function has {vector.size} entries, expected {n}"
            )
        self.__entries = np.column_stack((self.__entries, vector))

    def clear(self) -> None:
        """Release all basis functions."""
        self.__entries = None

    # Reconstruction ----------------------------------------------------------
    @requires_entries
    def decompress(self, coefficients) -> np.ndarray:
        r"""Form :math:`\sum_{i=0}^{N-1} u_i\zeta_i` from the first
        :math:`N` basis functions.

        Parameters
        ----------
        coefficients : (N,) ndarray
            Coefficients :math:`u_0,\ldots,u_{N-1}` with :math:`N` at most the
            number of stored basis functions.

        Returns
        -------
        vector : (n,) ndarray
            Full-order vector.
        """
        coefficients = np.asarray(coefficients)
        if (N := coefficients.shape[0]) > len(self):
            raise errors.DimensionalityError(
                f"{N} coefficients but only {len(self)} basis functions"
            )
        return self.__entries[:, :N] @ coefficients

    # Visualization -----------------------------------------------------------
    @requires_entries
    def plot1D(self, x=None, num_vectors=None, ax=None, **kwargs):
        """Plot the basis functions over a one-dimensional domain.

        Parameters
        ----------
        x : (n,) ndarray or None
            One-dimensional spatial domain over which to plot the vectors.
            Defaults to [0, 1] with `n` points.
        num_vectors : int or None
            Number of basis functions to plot.
            If ``None`` (default), plot all basis functions.
        ax : plt.Axes or None
            Matplotlib Axes to plot on.
            If ``None`` (default), a new figure is created.
        kwargs : dict
            Other keyword arguments to pass to ``plt.plot()``.

        Returns
        -------
        ax : plt.Axes
            Matplotlib Axes for the plot.
        """
        if x is None:
            x = np.linspace(0, 1, self.full_state_dimension)
        if num_vectors is None:
            num_vectors = len(self)
        num_vectors = min(num_vectors, len(self))
        if ax is None:
            ax = plt.figure().add_subplot(111)

        for j in range(num_vectors):
            ax.plot(x, self.entries[:, j], **kwargs)
        ax.set_xlim(x[0], x[-1])
        ax.set_xlabel("spatial domain")
        ax.set_ylabel("basis functions")

        return ax
