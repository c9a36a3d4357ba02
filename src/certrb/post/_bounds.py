# post/_bounds.py
"""Error bound behavior as the reduced basis grows."""

__all__ = [
    "error_bound_decay",
    "plot_error_bound_decay",
]

import numpy as np
import matplotlib.pyplot as plt


def error_bound_decay(evaluation, parameter, Nmax=None) -> np.ndarray:
    """Compute the error bound of an online solve for N = 0, ..., Nmax.

    The current parameters of the theta expansion are set to ``parameter``
    and the online state of ``evaluation`` is left at the solve with
    ``Nmax`` basis functions.

    Parameters
    ----------
    evaluation : RBEvaluation
        Model to solve with.
    parameter : (p,) ndarray
        Parameter value to solve at.
    Nmax : int or None
        Largest number of basis functions. If ``None`` (default), use all
        basis functions.

    Returns
    -------
    bounds : (Nmax + 1,) ndarray
        Error bound for each basis size.
    """
    if not evaluation.evaluate_RB_error_bound:
        raise ValueError("error bounds disabled (evaluate_RB_error_bound)")
    if Nmax is None:
        Nmax = evaluation.get_n_basis_functions()
    evaluation.get_rb_theta_expansion().set_parameters(parameter)
    return np.array([evaluation.rb_solve(N) for N in range(Nmax + 1)])


def plot_error_bound_decay(evaluation, parameter, Nmax=None, ax=None,
                           **kwargs):
    """Plot the error bound against the number of basis functions.

    Parameters
    ----------
    evaluation : RBEvaluation
        Model to solve with.
    parameter : (p,) ndarray
        Parameter value to solve at.
    Nmax : int or None
        Largest number of basis functions. If ``None`` (default), use all
        basis functions.
    ax : plt.Axes or None
        Matplotlib Axes to plot on.
        If ``None`` (default), a new figure is created.
    kwargs : dict
        Other keyword arguments to pass to ``ax.semilogy()``.

    Returns
    -------
    ax : plt.Axes
        Matplotlib Axes for the plot.
    """
    bounds = error_bound_decay(evaluation, parameter, Nmax)
    if ax is None:
        ax = plt.figure().add_subplot(111)
    kwargs.setdefault("marker", ".")
    ax.semilogy(np.arange(bounds.size), bounds, **kwargs)
    ax.set_xlabel("number of basis functions $N$")
    ax.set_ylabel(r"error bound $\Delta_N(\mu)$")
    return ax
