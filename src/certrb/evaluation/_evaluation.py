# evaluation/_evaluation.py
"""Online evaluation of certified reduced basis models."""

__all__ = [
    "RBEvaluation",
]

import os
import warnings
import numpy as np
import scipy.linalg as la

from .. import errors, utils
from ..basis import BasisFunctions
from ..bounds import BoundPolicyTemplate, CoerciveBoundPolicy


requires_theta = utils.requires2(
    "_RBEvaluation__theta",
    "theta expansion not associated, call set_rb_theta_expansion() first",
)

requires_basis_functions = utils.requires2(
    "basis_functions",
    "basis functions not available, call read_in_basis_functions() first",
)


def _grow(array, shape):
    """Zero-pad ``array`` to ``shape``, keeping the existing entries in the
    leading block.
    """
    new = np.zeros(shape)
    new[tuple(slice(0, k) for k in array.shape)] = array
    return new


class RBEvaluation:
    r"""Reduced basis model for a parametrized linear problem with affine
    parameter dependence, together with the data needed to certify it.

    For a parameter :math:`\bfmu` the reduced basis (RB) approximation
    :math:`u_N(\bfmu) = \sum_{j=0}^{N-1} u_j(\bfmu)\,\zeta_j` solves the
    :math:`N \times N` system

    .. math::
       \sum_{q=0}^{Q_a-1}\theta_a^{(q)}(\bfmu)\,\mathbf{A}_N^{(q)}\u
       = \sum_{q=0}^{Q_f-1}\theta_f^{(q)}(\bfmu)\,\mathbf{f}_N^{(q)},

    where :math:`\mathbf{A}_N^{(q)}` and :math:`\mathbf{f}_N^{(q)}` are the
    leading blocks of the projected affine terms :attr:`RB_A_q_vector` and
    :attr:`RB_F_q_vector`. The a posteriori error bound is the dual norm of
    the full-order residual, computed from precomputed Riesz representor
    inner products without forming full-order vectors, scaled by a stability
    lower bound supplied by the ``bound_policy``.

    Parameters
    ----------
    theta_expansion : ThetaExpansion or None
        Coefficient functions of the affine decomposition, shared with the
        caller. Can also be set later with :meth:`set_rb_theta_expansion()`.
    bound_policy : BoundPolicyTemplate or None
        Stability lower bound and residual scaling. Defaults to
        ``CoerciveBoundPolicy(1.0)``.
    evaluate_RB_error_bound : bool
        If ``True`` (default), :meth:`rb_solve()` computes error bounds.
    compute_RB_inner_product : bool
        If ``True`` (default), the reduced inner product matrix is computed
        offline and stored with the offline data.

    Notes
    -----
    The Riesz representors stored in :attr:`A_q_representor` are lifts of
    :math:`-\mathbf{A}^{(q)}\zeta_i`, so the residual dual norm expansion
    has a positive cross term.
    """

    RESIDUAL_CLAMP_RTOL = 1e-8
    OFFLINE_DATA_FILE = "offline_data.h5"

    def __init__(
        self,
        theta_expansion=None,
        bound_policy=None,
        evaluate_RB_error_bound: bool = True,
        compute_RB_inner_product: bool = True,
    ):
        """Initialize an empty model."""
        self.__theta = None
        if theta_expansion is not None:
            self.set_rb_theta_expansion(theta_expansion)
        if bound_policy is None:
            bound_policy = CoerciveBoundPolicy()
        self.bound_policy = bound_policy
        self.evaluate_RB_error_bound = bool(evaluate_RB_error_bound)
        self.compute_RB_inner_product = bool(compute_RB_inner_product)
        self.basis_functions = BasisFunctions()
        self.clear()

    def clear(self) -> None:
        """Release the basis functions and representors and empty all reduced
        data. The theta expansion and the bound policy are kept.
        """
        self.basis_functions.clear()
        self.__n_bfs = 0
        self.__Nmax = 0
        self.greedy_param_list = []

        self.RB_inner_product_matrix = np.zeros((0, 0))
        self.RB_A_q_vector = []
        self.RB_F_q_vector = []
        self.RB_output_vectors = []

        self.Fq_representor_norms = np.zeros((0, 0))
        self.Fq_Aq_representor_norms = np.zeros((0, 0, 0))
        self.Aq_Aq_representor_norms = np.zeros((0, 0, 0, 0))
        self.output_dual_norms = []
        self.A_q_representor = []

        self.RB_solution = np.zeros(0)
        self.RB_outputs = np.zeros(0)
        self.RB_output_error_bounds = np.zeros(0)

    # Properties --------------------------------------------------------------
    @property
    def bound_policy(self) -> BoundPolicyTemplate:
        """Stability lower bound and residual scaling for error bounds."""
        return self.__bound_policy

    @bound_policy.setter
    def bound_policy(self, policy):
        if not isinstance(policy, BoundPolicyTemplate):
            raise TypeError("bound_policy must be a BoundPolicyTemplate")
        self.__bound_policy = policy

    @property
    def Nmax(self) -> int:
        """Number of basis functions the reduced data is sized for."""
        return self.__Nmax

    def __str__(self):
        return utils.summary_lines(
            self.__class__.__name__,
            {
                "basis functions": self.get_n_basis_functions(),
                "basis functions in memory": len(self.basis_functions),
                "reduced data size": self.Nmax,
                "bilinear form terms": len(self.RB_A_q_vector),
                "right-hand side terms": len(self.RB_F_q_vector),
                "outputs": len(self.RB_output_vectors),
                "theta expansion associated": self.__theta is not None,
                "error bounds": self.evaluate_RB_error_bound,
            },
        )

    def __repr__(self):
        return utils.str2repr(self)

    # Theta expansion ---------------------------------------------------------
    def set_rb_theta_expansion(self, theta_expansion) -> None:
        """Associate the theta expansion. It is shared, not copied."""
        if theta_expansion is None:
            raise TypeError("theta expansion cannot be None")
        self.__theta = theta_expansion

    @requires_theta
    def get_rb_theta_expansion(self):
        """Return the associated theta expansion."""
        return self.__theta

    def is_rb_theta_expansion_initialized(self) -> bool:
        """Return ``True`` if an initialized theta expansion is associated."""
        return self.__theta is not None and self.__theta.is_initialized()

    # Basis management --------------------------------------------------------
    def get_n_basis_functions(self) -> int:
        """Number of basis functions of the model, whether or not their
        full-order vectors are in memory.
        """
        return self.__n_bfs

    def set_n_basis_functions(self, n_bfs: int) -> None:
        """Record the number of basis functions, e.g., when reading stored
        data. Vectors read later must match this number.
        """
        if not isinstance(n_bfs, (int, np.integer)) or isinstance(n_bfs, bool):
            raise TypeError("number of basis functions must be an integer")
        if n_bfs < 0:
            raise ValueError("number of basis functions must be nonnegative")
        if n_bfs < len(self.basis_functions):
            raise ValueError(
                f"cannot set {n_bfs} basis functions with "
                f"{len(self.basis_functions)} in memory, call clear() first"
            )
        self.__n_bfs = int(n_bfs)

    def add_basis_function(self, vector, parameter=None) -> None:
        """Append a basis function and the parameter it was computed at.

        Parameters
        ----------
        vector : (n,) ndarray
            Full-order basis function.
        parameter : (p,) ndarray or None
            Parameter value selected by the offline procedure.
        """
        if len(self.basis_functions) != self.__n_bfs:
            raise ValueError(
                f"only {len(self.basis_functions)} of {self.__n_bfs} basis "
                "functions in memory, call read_in_basis_functions() first"
            )
        self.basis_functions.append(vector)
        if parameter is not None:
            parameter = np.atleast_1d(np.asarray(parameter, dtype=float))
        self.greedy_param_list.append(parameter)
        self.__n_bfs += 1

    def get_basis_function(self, i: int) -> np.ndarray:
        """Return the ``i``-th full-order basis function."""
        if not 0 <= i < self.__n_bfs:
            raise IndexError(
                f"basis function index {i} out of range "
                f"for {self.__n_bfs} basis functions"
            )
        if i >= len(self.basis_functions):
            raise IndexError(
                f"basis function {i} not in memory, "
                "call read_in_basis_functions() first"
            )
        return self.basis_functions[i]

    def clear_riesz_representors(self) -> None:
        """Release the full-order representors in :attr:`A_q_representor`.
        The representor inner products used by :meth:`rb_solve()` are kept.
        """
        self.A_q_representor = [[] for _ in self.A_q_representor]

    @requires_theta
    def resize_data_structures(self, Nmax: int) -> None:
        """Grow the reduced data to hold ``Nmax`` basis functions, keeping the
        entries computed so far.

        Parameters
        ----------
        Nmax : int
            New number of basis functions, at least the current one.
        """
        if not isinstance(Nmax, (int, np.integer)) or isinstance(Nmax, bool):
            raise TypeError("Nmax must be an integer")
        current = max(self.__n_bfs, self.__Nmax)
        if Nmax < current:
            raise ValueError(
                f"cannot resize to Nmax = {Nmax} < {current} = current "
                "number of basis functions"
            )

        theta = self.__theta
        Q_a, Q_f = theta.n_A_terms, theta.n_F_terms
        Q_l = [theta.n_output_terms(n) for n in range(theta.n_outputs)]
        self._check_expansion_sizes(Q_a, Q_f, Q_l)

        self.RB_inner_product_matrix = _grow(
            self.RB_inner_product_matrix, (Nmax, Nmax)
        )
        self.RB_A_q_vector = [
            _grow(A, (Nmax, Nmax))
            for A in self.RB_A_q_vector or [np.zeros((0, 0))] * Q_a
        ]
        self.RB_F_q_vector = [
            _grow(F, (Nmax,))
            for F in self.RB_F_q_vector or [np.zeros(0)] * Q_f
        ]
        self.RB_output_vectors = [
            [_grow(L, (Nmax,)) for L in (vectors or [np.zeros(0)] * Q)]
            for vectors, Q in zip(
                self.RB_output_vectors or [[]] * len(Q_l), Q_l
            )
        ]

        if self.Fq_representor_norms.size == 0:
            self.Fq_representor_norms = np.zeros((Q_f, Q_f))
        self.Fq_Aq_representor_norms = _grow(
            self.Fq_Aq_representor_norms, (Q_f, Q_a, Nmax)
        )
        self.Aq_Aq_representor_norms = _grow(
            self.Aq_Aq_representor_norms, (Q_a, Q_a, Nmax, Nmax)
        )
        if not self.output_dual_norms:
            self.output_dual_norms = [np.zeros((Q, Q)) for Q in Q_l]
        if not self.A_q_representor:
            self.A_q_representor = [[] for _ in range(Q_a)]

        self.__Nmax = int(Nmax)

    def _check_expansion_sizes(self, Q_a, Q_f, Q_l):
        """Raise a DimensionalityError if existing reduced data does not
        match the number of terms of the theta expansion.
        """
        if self.RB_A_q_vector and len(self.RB_A_q_vector) != Q_a:
            raise errors.DimensionalityError(
                f"{len(self.RB_A_q_vector)} reduced bilinear form terms "
                f"!= {Q_a} theta expansion terms"
            )
        if self.RB_F_q_vector and len(self.RB_F_q_vector) != Q_f:
            raise errors.DimensionalityError(
                f"{len(self.RB_F_q_vector)} reduced right-hand side terms "
                f"!= {Q_f} theta expansion terms"
            )
        if self.RB_output_vectors and [
            len(vectors) for vectors in self.RB_output_vectors
        ] != list(Q_l):
            raise errors.DimensionalityError(
                "reduced output terms do not match the theta expansion"
            )

    # Online solve ------------------------------------------------------------
    def _check_N(self, N) -> int:
        if not isinstance(N, (int, np.integer)) or isinstance(N, bool):
            raise TypeError("N must be an integer")
        if N < 0:
            raise ValueError(f"N = {N} must be nonnegative")
        if N > self.__n_bfs:
            raise ValueError(
                f"N = {N} exceeds the {self.__n_bfs} available "
                "basis functions"
            )
        if N > self.__Nmax:
            raise ValueError(
                f"N = {N} exceeds the size {self.__Nmax} of the reduced data"
            )
        if not self.RB_A_q_vector or not self.RB_F_q_vector:
            raise AttributeError(
                "reduced data not initialized, call resize_data_structures() "
                "or read_offline_data_from_files() first"
            )
        return int(N)

    @requires_theta
    def _current_parameters(self):
        if not self.__theta.is_initialized():
            raise AttributeError("theta expansion not initialized")
        return self.__theta.parameters

    @requires_theta
    def rb_solve(self, N: int) -> float:
        r"""Solve the reduced problem with the first ``N`` basis functions at
        the current parameters of the theta expansion.

        Overwrites :attr:`RB_solution`, :attr:`RB_outputs`, and
        :attr:`RB_output_error_bounds`.

        Parameters
        ----------
        N : int
            Number of basis functions to use, ``0 <= N <=
            get_n_basis_functions()``. With ``N = 0`` the solution is zero but
            the bound still accounts for the forcing.

        Returns
        -------
        error_bound : float
            Absolute a posteriori error bound for the solution, or ``-1`` if
            :attr:`evaluate_RB_error_bound` is ``False``.
        """
        N = self._check_N(N)
        parameter = self._current_parameters()
        theta_A = self.__theta.eval_A_theta()
        theta_F = self.__theta.eval_F_theta()

        # Assemble and solve the reduced system.
        A_N = np.zeros((N, N))
        for theta, A in zip(theta_A, self.RB_A_q_vector):
            A_N += theta * A[:N, :N]
        F_N = np.zeros(N)
        for theta, F in zip(theta_F, self.RB_F_q_vector):
            F_N += theta * F[:N]
        self.RB_solution = self._solve_reduced_system(A_N, F_N)

        # Outputs.
        n_outputs = len(self.RB_output_vectors)
        self.RB_outputs = np.zeros(n_outputs)
        for n, vectors in enumerate(self.RB_output_vectors):
            theta_L = self.__theta.eval_output_theta(n)
            for theta, L in zip(theta_L, vectors):
                self.RB_outputs[n] += theta * (L[:N] @ self.RB_solution)
        if not np.all(np.isfinite(self.RB_outputs)):
            raise errors.ComputationError("reduced outputs are not finite")

        if not self.evaluate_RB_error_bound:
            self.RB_output_error_bounds = np.full(n_outputs, -1.0)
            return -1.0

        # Error bounds.
        epsilon_N = self.compute_residual_dual_norm(N)
        alpha_LB = self.get_stability_lower_bound()
        error_bound = epsilon_N / self.residual_scaling_denom(alpha_LB)
        if not np.isfinite(error_bound):
            raise errors.ComputationError("error bound is not finite")
        output_bounds = np.array(
            [
                self.bound_policy.output_error_bound(
                    error_bound, self.eval_output_dual_norm(n, parameter)
                )
                for n in range(n_outputs)
            ],
            dtype=float,
        )
        if not np.all(np.isfinite(output_bounds)):
            raise errors.ComputationError("output error bounds are not finite")
        self.RB_output_error_bounds = output_bounds
        return float(error_bound)

    @staticmethod
    def _solve_reduced_system(A_N, F_N):
        """Solve the dense reduced system, raising a ComputationError if it is
        singular, ill-conditioned, or not finite.
        """
        if A_N.shape[0] == 0:
            return np.zeros(0)
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("error", la.LinAlgWarning)
                solution = la.solve(A_N, F_N)
        except (la.LinAlgError, la.LinAlgWarning, ValueError) as ex:
            raise errors.ComputationError(
                f"reduced system could not be solved ({ex})"
            ) from ex
        if not np.all(np.isfinite(solution)):
            raise errors.ComputationError("reduced solution is not finite")
        return solution

    def get_rb_solution_norm(self) -> float:
        r"""Norm :math:`\sqrt{\u\trp\mathbf{M}_N\u}` of the current RB solution
        in the natural inner product, where :math:`\mathbf{M}_N` is the
        leading block of :attr:`RB_inner_product_matrix`.
        """
        if not self.compute_RB_inner_product:
            raise AttributeError(
                "reduced inner product matrix not computed "
                "(compute_RB_inner_product=False)"
            )
        u = self.RB_solution
        N = u.shape[0]
        norm_sq = u @ self.RB_inner_product_matrix[:N, :N] @ u
        return float(np.sqrt(max(norm_sq, 0.0)))

    @requires_basis_functions
    def get_full_order_solution(self) -> np.ndarray:
        r"""Full-order vector :math:`\sum_{j=0}^{N-1}u_j\zeta_j` of the current
        RB solution.
        """
        return self.basis_functions.decompress(self.RB_solution)

    # Error bounds ------------------------------------------------------------
    @requires_theta
    def compute_residual_dual_norm(self, N: int) -> float:
        r"""Dual norm of the residual of the current RB solution.

        With :math:`\u` = :attr:`RB_solution`,

        .. math::
           \|r_N\|_{X'}^2
           = \sum_{q,q'}\theta_f^{(q)}\theta_f^{(q')}F_{q,q'}
           + 2\sum_{q,q',j}\theta_f^{(q)}\theta_a^{(q')}u_j\,C_{q,q',j}
           + \sum_{q,q',i,j}\theta_a^{(q)}\theta_a^{(q')}u_iu_j\,
           G_{q,q',i,j},

        where :math:`F, C, G` are :attr:`Fq_representor_norms`,
        :attr:`Fq_Aq_representor_norms`, and :attr:`Aq_Aq_representor_norms`.
        A negative sum caused by cancellation is clamped to zero; a
        :class:`certrb.errors.CRBWarning` is issued if it is more negative
        than ``RESIDUAL_CLAMP_RTOL`` times the size of the terms.

        Parameters
        ----------
        N : int
            Number of basis functions of the current RB solution.

        Returns
        -------
        norm : float
        """
        N = self._check_N(N)
        if (n_sol := self.RB_solution.shape[0]) != N:
            raise ValueError(
                f"RB_solution has {n_sol} entries, call rb_solve({N}) first"
            )
        self._current_parameters()
        theta_A = self.__theta.eval_A_theta()
        theta_F = self.__theta.eval_F_theta()
        u = self.RB_solution

        ff = theta_F @ self.Fq_representor_norms @ theta_F
        fa = 2 * np.einsum(
            "p,q,j,pqj->",
            theta_F,
            theta_A,
            u,
            self.Fq_Aq_representor_norms[:, :, :N],
        )
        aa = np.einsum(
            "p,q,i,j,pqij->",
            theta_A,
            theta_A,
            u,
            u,
            self.Aq_Aq_representor_norms[:, :, :N, :N],
        )

        norm_sq = ff + fa + aa
        if not np.isfinite(norm_sq):
            raise errors.ComputationError("residual dual norm is not finite")
        if norm_sq < 0:
            scale = abs(ff) + abs(fa) + abs(aa)
            if -norm_sq > self.RESIDUAL_CLAMP_RTOL * scale:
                warnings.warn(
                    f"residual dual norm squared {norm_sq:.3e} clamped to 0",
                    errors.CRBWarning,
                )
            norm_sq = 0.0
        return float(np.sqrt(norm_sq))

    @requires_theta
    def eval_output_dual_norm(self, n: int, parameter) -> float:
        r"""Dual norm :math:`\|\ell_n(\cdot;\bfmu)\|_{X'}` of output ``n``.

        Independent of :math:`N` and of the current RB solution.

        Parameters
        ----------
        n : int
            Output index.
        parameter : (p,) ndarray
            Parameter value :math:`\bfmu`.
        """
        if not 0 <= n < len(self.output_dual_norms):
            raise IndexError(
                f"output index {n} out of range "
                f"for {len(self.output_dual_norms)} outputs"
            )
        theta_L = self.__theta.eval_output_theta(n, parameter)
        norm_sq = theta_L @ self.output_dual_norms[n] @ theta_L
        if not np.isfinite(norm_sq):
            raise errors.ComputationError(
                f"dual norm of output {n} is not finite"
            )
        return float(np.sqrt(max(norm_sq, 0.0)))

    def get_stability_lower_bound(self) -> float:
        """Stability lower bound at the current parameters, provided by the
        bound policy.
        """
        return self.bound_policy.stability_lower_bound(
            self._current_parameters()
        )

    def residual_scaling_denom(self, alpha_LB: float) -> float:
        """Denominator of the error bound, provided by the bound policy."""
        return self.bound_policy.residual_scaling_denom(alpha_LB)

    # Persistence -------------------------------------------------------------
    def write_offline_data_to_files(
        self,
        directory_name: str = "offline_data",
        overwrite: bool = False,
    ) -> None:
        """Write the reduced (basis-size) data to ``directory_name``.

        The full-order basis functions are not included; see
        :meth:`write_out_basis_functions()`.

        Parameters
        ----------
        directory_name : str
            Directory to write to. Created if it does not exist.
        overwrite : bool
            If ``True``, overwrite existing offline data in the directory.
            If ``False`` (default), raise a ``FileExistsError`` instead.
        """
        n_bfs = self.__n_bfs
        if self.__Nmax < n_bfs:
            raise ValueError(
                f"reduced data sized for {self.__Nmax} < {n_bfs} basis "
                "functions, call resize_data_structures() first"
            )
        params = self.greedy_param_list[:n_bfs]
        if any(mu is None for mu in params):
            raise ValueError("greedy_param_list has unknown parameter values")
        os.makedirs(directory_name, exist_ok=True)
        filename = os.path.join(directory_name, self.OFFLINE_DATA_FILE)
        n = slice(0, n_bfs)

        with utils.TimedBlock(f"Writing offline data to '{filename}'"):
            with utils.hdf5_savehandle(filename, overwrite) as hf:
                meta = hf.create_dataset("meta", data=np.zeros(0))
                meta.attrs["n_bfs"] = n_bfs
                meta.attrs["Q_a"] = len(self.RB_A_q_vector)
                meta.attrs["Q_f"] = len(self.RB_F_q_vector)
                meta.attrs["n_outputs"] = len(self.RB_output_vectors)
                meta.attrs["compute_RB_inner_product"] = (
                    self.compute_RB_inner_product
                )

                if self.compute_RB_inner_product:
                    hf.create_dataset(
                        "RB_inner_product_matrix",
                        data=self.RB_inner_product_matrix[n, n],
                    )
                utils.save_array_list(
                    hf.create_group("RB_A_q_vector"),
                    [A[n, n] for A in self.RB_A_q_vector],
                )
                utils.save_array_list(
                    hf.create_group("RB_F_q_vector"),
                    [F[n] for F in self.RB_F_q_vector],
                )
                group = hf.create_group("RB_output_vectors")
                group.attrs["length"] = len(self.RB_output_vectors)
                for i, vectors in enumerate(self.RB_output_vectors):
                    utils.save_array_list(
                        group.create_group(f"{i:d}"),
                        [L[n] for L in vectors],
                    )

                hf.create_dataset(
                    "Fq_representor_norms",
                    data=self.Fq_representor_norms,
                )
                hf.create_dataset(
                    "Fq_Aq_representor_norms",
                    data=self.Fq_Aq_representor_norms[:, :, n],
                )
                hf.create_dataset(
                    "Aq_Aq_representor_norms",
                    data=self.Aq_Aq_representor_norms[:, :, n, n],
                )
                utils.save_array_list(
                    hf.create_group("output_dual_norms"),
                    self.output_dual_norms,
                )

                hf.create_dataset(
                    "greedy_param_list",
                    data=np.array(params) if params else np.zeros((0, 0)),
                )

    def read_offline_data_from_files(
        self,
        directory_name: str = "offline_data",
    ) -> None:
        """Read the reduced data written by
        :meth:`write_offline_data_to_files()`.

        All data of this object (including basis functions in memory) is
        replaced once the files have been validated. If reading fails, the
        object is left unchanged. Afterwards,
        :meth:`get_n_basis_functions()` returns the number of basis functions
        recorded in the files.

        Parameters
        ----------
        directory_name : str
            Directory to read from.
        """
        filename = os.path.join(directory_name, self.OFFLINE_DATA_FILE)
        if not os.path.isfile(filename):
            raise FileNotFoundError(filename)

        with utils.TimedBlock(f"Reading offline data from '{filename}'"):
            with utils.hdf5_loadhandle(filename) as hf:
                if "meta" not in hf:
                    raise errors.LoadfileFormatError(
                        f"metadata missing from '{filename}'"
                    )
                meta = hf["meta"].attrs
                n_bfs = int(meta["n_bfs"])
                Q_a, Q_f = int(meta["Q_a"]), int(meta["Q_f"])
                n_outputs = int(meta["n_outputs"])
                inner_product = bool(meta["compute_RB_inner_product"])

                def check(name, array, shape):
                    if array.shape != shape:
                        raise errors.LoadfileFormatError(
                            f"dataset '{name}' in '{filename}' has shape "
                            f"{array.shape}, expected {shape} for "
                            f"{n_bfs} basis functions"
                        )
                    return array

                if inner_product:
                    M = utils.load_dataset(hf, "RB_inner_product_matrix")
                    check("RB_inner_product_matrix", M, (n_bfs, n_bfs))
                else:
                    M = np.zeros((n_bfs, n_bfs))
                RB_A_q = utils.load_array_list(hf, "RB_A_q_vector")
                RB_F_q = utils.load_array_list(hf, "RB_F_q_vector")
                if len(RB_A_q) != Q_a or len(RB_F_q) != Q_f:
                    raise errors.LoadfileFormatError(
                        f"number of affine terms in '{filename}' "
                        "inconsistent with metadata"
                    )
                for q, A in enumerate(RB_A_q):
                    check(f"RB_A_q_vector/{q}", A, (n_bfs, n_bfs))
                for q, F in enumerate(RB_F_q):
                    check(f"RB_F_q_vector/{q}", F, (n_bfs,))
                outputs = hf["RB_output_vectors"] if (
                    "RB_output_vectors" in hf
                ) else None
                if outputs is None or len(outputs) != n_outputs:
                    raise errors.LoadfileFormatError(
                        f"output vectors in '{filename}' "
                        "inconsistent with metadata"
                    )
                RB_outputs = [
                    utils.load_array_list(outputs, f"{i:d}")
                    for i in range(n_outputs)
                ]
                for i, vectors in enumerate(RB_outputs):
                    for q, L in enumerate(vectors):
                        check(f"RB_output_vectors/{i}/{q}", L, (n_bfs,))

                Fq = check(
                    "Fq_representor_norms",
                    utils.load_dataset(hf, "Fq_representor_norms"),
                    (Q_f, Q_f),
                )
                FqAq = check(
                    "Fq_Aq_representor_norms",
                    utils.load_dataset(hf, "Fq_Aq_representor_norms"),
                    (Q_f, Q_a, n_bfs),
                )
                AqAq = check(
                    "Aq_Aq_representor_norms",
                    utils.load_dataset(hf, "Aq_Aq_representor_norms"),
                    (Q_a, Q_a, n_bfs, n_bfs),
                )
                dual_norms = utils.load_array_list(hf, "output_dual_norms")
                if len(dual_norms) != n_outputs:
                    raise errors.LoadfileFormatError(
                        f"output dual norms in '{filename}' "
                        "inconsistent with metadata"
                    )
                for i, (G, vectors) in enumerate(zip(dual_norms, RB_outputs)):
                    Q = len(vectors)
                    check(f"output_dual_norms/{i}", G, (Q, Q))

                params = utils.load_dataset(hf, "greedy_param_list")
                if params.shape[0] != n_bfs:
                    raise errors.LoadfileFormatError(
                        f"dataset 'greedy_param_list' in '{filename}' has "
                        f"{params.shape[0]} entries, expected {n_bfs}"
                    )

        if self.__theta is not None:
            theta = self.__theta
            Q_l = [theta.n_output_terms(i) for i in range(theta.n_outputs)]
            if (
                Q_a != theta.n_A_terms
                or Q_f != theta.n_F_terms
                or [len(vectors) for vectors in RB_outputs] != Q_l
            ):
                raise errors.LoadfileFormatError(
                    f"affine terms in '{filename}' do not match "
                    "the associated theta expansion"
                )

        self.clear()
        self.compute_RB_inner_product = inner_product
        self.RB_inner_product_matrix = M
        self.RB_A_q_vector = RB_A_q
        self.RB_F_q_vector = RB_F_q
        self.RB_output_vectors = RB_outputs
        self.Fq_representor_norms = Fq
        self.Fq_Aq_representor_norms = FqAq
        self.Aq_Aq_representor_norms = AqAq
        self.output_dual_norms = dual_norms
        self.A_q_representor = [[] for _ in range(Q_a)]
        self.greedy_param_list = [mu for mu in params]
        self.set_n_basis_functions(n_bfs)
        self.__Nmax = n_bfs

    @requires_basis_functions
    def write_out_basis_functions(
        self,
        system,
        directory_name: str = "offline_data",
        write_binary_basis_functions: bool = True,
        overwrite: bool = False,
    ) -> None:
        """Write the full-order basis functions, one file per function.

        Parameters
        ----------
        system : SystemTemplate
            Full-order I/O helper.
        directory_name : str
            Directory to write to. Created if it does not exist.
        write_binary_basis_functions : bool
            If ``True`` (default), write binary files, else text files.
        overwrite : bool
            If ``True``, overwrite existing files.
        """
        binary = write_binary_basis_functions
        if (n := self.basis_functions.full_state_dimension) != system.n_dofs:
            raise errors.DimensionalityError(
                f"basis functions have {n} entries, "
                f"system has {system.n_dofs} degrees of freedom"
            )
        os.makedirs(directory_name, exist_ok=True)
        with utils.TimedBlock(
            f"Writing {len(self.basis_functions)} basis functions "
            f"to '{directory_name}'"
        ):
            for i, vector in enumerate(self.basis_functions):
                filename = os.path.join(
                    directory_name, system.vector_filename(i, binary)
                )
                system.write_vector(vector, filename, binary, overwrite)

    def read_in_basis_functions(
        self,
        system,
        directory_name: str = "offline_data",
        read_binary_basis_functions: bool = True,
    ) -> None:
        """Read the full-order basis functions written by
        :meth:`write_out_basis_functions()`.

        The number of files must match :meth:`get_n_basis_functions()`, which
        :meth:`read_offline_data_from_files()` sets.

        Parameters
        ----------
        system : SystemTemplate
            Full-order I/O helper.
        directory_name : str
            Directory to read from.
        read_binary_basis_functions : bool
            If ``True`` (default), expect binary files, else text files.
        """
        binary = read_binary_basis_functions
        n_bfs = self.__n_bfs

        def path(i):
            filename = system.vector_filename(i, binary)
            return os.path.join(directory_name, filename)

        vectors = []
        with utils.TimedBlock(
            f"Reading {n_bfs} basis functions from '{directory_name}'"
        ):
            for i in range(n_bfs):
                if not os.path.isfile(filename := path(i)):
                    raise errors.LoadfileFormatError(
                        f"basis function file '{filename}' missing, "
                        f"offline data records {n_bfs} basis functions"
                    )
                vectors.append(system.read_vector(filename, binary))
            if os.path.isfile(path(n_bfs)):
                raise errors.LoadfileFormatError(
                    f"found '{path(n_bfs)}' but offline data records "
                    f"only {n_bfs} basis functions"
                )
        if len(self.greedy_param_list) != n_bfs:
            raise errors.LoadfileFormatError(
                f"{len(self.greedy_param_list)} greedy parameters "
                f"!= {n_bfs} basis functions"
            )

        self.basis_functions.clear()
        for vector in vectors:
            self.basis_functions.append(vector)
