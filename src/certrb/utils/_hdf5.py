# utils/_hdf5.py
"""Utilities for HDF5 file interaction."""

__all__ = [
    "hdf5_savehandle",
    "hdf5_loadhandle",
    "save_array_list",
    "load_array_list",
    "load_dataset",
]

import os
import h5py
import warnings
import numpy as np

from .. import errors


# File handle classes =========================================================
class _hdf5_filehandle:
    """Get a handle to an open HDF5 file to read or write to.

    Parameters
    ----------
    filename : str or h5py File/Group handle
        * str : Name of the file to interact with.
        * h5py File/Group handle : handle to part of an already open HDF5 file.
    mode : str
        Type of interaction for the HDF5 file.
        * "save" : Open the file for writing only.
        * "load" : Open the file for reading only.
    overwrite : bool
        If True, overwrite the file if it already exists. If False,
        raise a FileExistsError if the file already exists.
        Only applies when ``mode = "save"``.
    """

    def __init__(self, filename, mode, overwrite=False):
        """Open the file handle."""
        if isinstance(filename, h5py.HLObject):
            # `filename` is already an open HDF5 file.
            self.file_handle = filename
            self.close_when_done = False

        elif mode == "save":
            # `filename` is the name of a file to create for writing.
            if not filename.endswith(".h5"):
                warnings.warn(
                    "expected file with extension '.h5'",
                    errors.CRBWarning,
                )
            if os.path.isfile(filename) and not overwrite:
                raise FileExistsError(f"{filename} (overwrite=True to ignore)")
            self.file_handle = h5py.File(filename, "w")
            self.close_when_done = True

        elif mode == "load":
            # `filename` is the name of an existing file to read from.
            if not os.path.isfile(filename):
                raise FileNotFoundError(filename)
            self.file_handle = h5py.File(filename, "r")
            self.close_when_done = True

        else:
            raise ValueError(f"invalid mode '{mode}'")

    def __enter__(self):
        """Return the handle to the open HDF5 file."""
        return self.file_handle

    def __exit__(self, exc_type, exc_value, exc_traceback):
        """Close the file if needed."""
        if self.close_when_done:
            self.file_handle.close()
        if exc_type:
            raise


class hdf5_savehandle(_hdf5_filehandle):
    """Get a handle to an open HDF5 file to write to.

    Parameters
    ----------
    savefile : str or h5py File/Group handle
        * str : Name of the file to save to.
        * h5py File/Group handle : handle to part of an already open HDF5 file
          to save data to.
    overwrite : bool
        If ``True``, overwrite the file if it already exists.
        If ``False``, raise a ``FileExistsError`` if the file already exists.

    Examples
    --------
    >>> with hdf5_savehandle("offline_data.h5", False) as hf:
    ...     hf.create_dataset("RB_inner_product_matrix", data=M)
    """

    def __init__(self, savefile, overwrite):
        return _hdf5_filehandle.__init__(self, savefile, "save", overwrite)


class hdf5_loadhandle(_hdf5_filehandle):
    """Get a handle to an open HDF5 file to read from.

    Any exception raised while the file is open, other than a
    :class:`certrb.errors.LoadfileFormatError`, is re-raised as a
    :class:`certrb.errors.LoadfileFormatError` naming the file.

    Parameters
    ----------
    loadfile : str or h5py File/Group handle
        * str : Name of the file to read from.
        * h5py File/Group handle : handle to part of an already open HDF5 file
          to read data from.

    Examples
    --------
    >>> with hdf5_loadhandle("offline_data.h5") as hf:
    ...    M = hf["RB_inner_product_matrix"][:]
    """

    def __init__(self, loadfile):
        self.__label = getattr(loadfile, "filename", loadfile)
        return _hdf5_filehandle.__init__(self, loadfile, "load")

    def __exit__(self, exc_type, exc_value, exc_traceback):
        """Close the file if needed. Raise a LoadfileFormatError if needed."""
        try:
            _hdf5_filehandle.__exit__(self, exc_type, exc_value, exc_traceback)
        except errors.LoadfileFormatError:
            raise
        except Exception as ex:
            message = ex.args[0] if ex.args else type(ex).__name__
            raise errors.LoadfileFormatError(
                f"{message} (reading '{self.__label}')"
            ) from ex


# Dataset helpers =============================================================
def load_dataset(hf, name: str, ndim: int = None) -> np.ndarray:
    """Read a dataset from an open HDF5 file, with a readable error message
    if the dataset is missing or has the wrong number of dimensions.

    Parameters
    ----------
    hf : h5py File/Group handle
        Open file or group to read from.
    name : str
        Name of the dataset.
    ndim : int or None
        Expected number of dimensions. If ``None``, do not check.

    Returns
    -------
    data : ndarray
        Contents of the dataset.
    """
    path = f"{hf.name.rstrip('/')}/{name}"
    if name not in hf:
        raise errors.LoadfileFormatError(
            f"dataset '{path}' missing from '{hf.file.filename}'"
        )
    data = hf[name][...]
    if ndim is not None and data.ndim != ndim:
        raise errors.LoadfileFormatError(
            f"dataset '{path}' in '{hf.file.filename}' has {data.ndim} "
            f"dimension(s), expected {ndim}"
        )
    return data


def save_array_list(group: h5py.Group, arrays) -> None:
    """Save a list of ndarrays as datasets ``0``, ``1``, ... in a group.

    Parameters
    ----------
    group : h5py.Group
        HDF5 group to save the arrays to.
    arrays : list of ndarrays
        Arrays to save, in order.
    """
    group.attrs["length"] = len(arrays)
    for i, arr in enumerate(arrays):
        group.create_dataset(f"{i:d}", data=arr)


def load_array_list(hf, name: str, ndim: int = None) -> list:
    """Load a list of ndarrays saved with :func:`save_array_list()`.

    Parameters
    ----------
    hf : h5py File/Group handle
        Open file or group containing the group ``name``.
    name : str
        Name of the group holding the arrays.
    ndim : int or None
        Expected number of dimensions of each array.

    Returns
    -------
    arrays : list of ndarrays
    """
    if name not in hf:
        raise errors.LoadfileFormatError(
            f"group '{hf.name.rstrip('/')}/{name}' "
            f"missing from '{hf.file.filename}'"
        )
    group = hf[name]
    length = int(group.attrs.get("length", len(group)))
    return [load_dataset(group, f"{i:d}", ndim) for i in range(length)]
