# offline/_construction.py
"""Offline assembly of reduced basis data from full-order affine terms."""

__all__ = [
    "RBConstruction",
]

import numpy as np
import scipy.linalg as la
import scipy.sparse as sparse
import scipy.sparse.linalg as spla

from .. import errors, utils
from ..evaluation import RBEvaluation


class RBConstruction:
    r"""Fill an :class:`RBEvaluation` with reduced data computed from the
    full-order affine terms of a linear problem

    .. math::
       \sum_{q=0}^{Q_a-1}\theta_a^{(q)}(\bfmu)\,\mathbf{A}^{(q)}\mathbf{u}
       = \sum_{q=0}^{Q_f-1}\theta_f^{(q)}(\bfmu)\,\mathbf{f}^{(q)},
       \qquad
       s_n(\bfmu) = \sum_{q}\theta_{\ell_n}^{(q)}(\bfmu)\,
       \mathbf{l}_n^{(q)}\cdot\mathbf{u}.

    Each call to :meth:`enrich_basis()` appends one basis function and
    extends every reduced operator and every representor inner product by
    one row / column. Choosing the parameters to enrich at (e.g., with a
    greedy search over a training set) is left to the caller.

    Parameters
    ----------
    evaluation : RBEvaluation
        Model to fill. Its theta expansion must be associated and must have
        as many terms as the full-order affine decomposition.
    A_q : list of (n, n) ndarrays or sparse arrays
        Full-order bilinear form terms :math:`\mathbf{A}^{(q)}`.
    F_q : list of (n,) ndarrays
        Full-order right-hand side terms :math:`\mathbf{f}^{(q)}`.
    outputs : list of lists of (n,) ndarrays
        Full-order output terms :math:`\mathbf{l}_n^{(q)}`, one list per
        output.
    inner_product : (n, n) ndarray, sparse array, or None
        Symmetric positive definite matrix :math:`\mathbf{X}` of the natural
        inner product. If ``None`` (default), the Euclidean inner product.
    """

    LINEAR_DEPENDENCE_TOL = 1e-10

    def __init__(self, evaluation, A_q, F_q, outputs=(), inner_product=None):
        """Store the full-order data and compute the basis-independent
        representor inner products.
        """
        if not isinstance(evaluation, RBEvaluation):
            raise TypeError("evaluation must be an RBEvaluation")
        self.__evaluation = evaluation
        self.__A_q = list(A_q)
        self.__F_q = [np.asarray(F, dtype=float).ravel() for F in F_q]
        self.__outputs = [
            [np.asarray(L, dtype=float).ravel() for L in terms]
            for terms in outputs
        ]

        n = self.__F_q[0].size if self.__F_q else None
        if n is None:
            raise ValueError("at least one right-hand side term required")
        self.__check_dimensions(n)

        theta = evaluation.get_rb_theta_expansion()
        Q_l = [theta.n_output_terms(i) for i in range(theta.n_outputs)]
        if (
            len(self.__A_q) != theta.n_A_terms
            or len(self.__F_q) != theta.n_F_terms
            or [len(terms) for terms in self.__outputs] != Q_l
        ):
            raise errors.DimensionalityError(
                "full-order affine terms do not match the theta expansion"
            )

        if inner_product is None:
            inner_product = sparse.identity(n, format="csc")
        if inner_product.shape != (n, n):
            raise errors.DimensionalityError(
                f"inner product matrix has shape {inner_product.shape}, "
                f"expected {(n, n)}"
            )
        self.__X = inner_product
        if sparse.issparse(inner_product):
            self.__X_solver = spla.splu(sparse.csc_matrix(inner_product)).solve
        else:
            factor = la.cho_factor(inner_product)
            self.__X_solver = lambda rhs: la.cho_solve(factor, rhs)

        if not evaluation.RB_A_q_vector:
            evaluation.resize_data_structures(
                evaluation.get_n_basis_functions()
            )
        self.compute_Fq_representor_norms()
        self.compute_output_dual_norms()

    def __check_dimensions(self, n):
        for q, A in enumerate(self.__A_q):
            if A.shape != (n, n):
                raise errors.DimensionalityError(
                    f"A_q[{q}] has shape {A.shape}, expected {(n, n)}"
                )
        for q, F in enumerate(self.__F_q):
            if F.size != n:
                raise errors.DimensionalityError(
                    f"F_q[{q}] has {F.size} entries, expected {n}"
                )
        for i, terms in enumerate(self.__outputs):
            for q, L in enumerate(terms):
                if L.size != n:
                    raise errors.DimensionalityError(
                        f"outputs[{i}][{q}] has {L.size} entries, "
                        f"expected {n}"
                    )

    # Properties --------------------------------------------------------------
    @property
    def evaluation(self) -> RBEvaluation:
        """Model being filled."""
        return self.__evaluation

    @property
    def n_dofs(self) -> int:
        """Dimension :math:`n` of the full-order problem."""
        return self.__F_q[0].size

    def __str__(self):
        return utils.summary_lines(
            self.__class__.__name__,
            {
                "degrees of freedom": self.n_dofs,
                "bilinear form terms": len(self.__A_q),
                "right-hand side terms": len(self.__F_q),
                "outputs": len(self.__outputs),
                "basis functions": self.evaluation.get_n_basis_functions(),
            },
        )

    def __repr__(self):
        return utils.str2repr(self)

    # Inner products ----------------------------------------------------------
    def inner_product(self, u, v) -> float:
        r"""Natural inner product :math:`\mathbf{u}\trp\mathbf{X}\mathbf{v}`.
        """
        return float(u @ (self.__X @ v))

    def norm(self, u) -> float:
        r"""Natural norm :math:`\sqrt{\mathbf{u}\trp\mathbf{X}\mathbf{u}}`."""
        return float(np.sqrt(self.inner_product(u, u)))

    def riesz_representor(self, functional) -> np.ndarray:
        r"""Riesz representor :math:`\mathbf{r} = \mathbf{X}^{-1}\mathbf{g}`
        of the functional :math:`\mathbf{v}\mapsto\mathbf{g}\cdot\mathbf{v}`.
        """
        return self.__X_solver(np.asarray(functional, dtype=float))

    # Full-order solves -------------------------------------------------------
    def truth_solve(self, parameter=None) -> np.ndarray:
        """Solve the full-order problem.

        Parameters
        ----------
        parameter : (p,) ndarray or None
            Parameter value. If ``None`` (default), use the current
            parameters of the theta expansion.

        Returns
        -------
        solution : (n,) ndarray
        """
        theta = self.evaluation.get_rb_theta_expansion()
        theta_A = theta.eval_A_theta(parameter)
        theta_F = theta.eval_F_theta(parameter)
        A = sum(t * A_q for t, A_q in zip(theta_A, self.__A_q))
        F = sum(t * F_q for t, F_q in zip(theta_F, self.__F_q))
        if sparse.issparse(A):
            return spla.spsolve(sparse.csc_matrix(A), F)
        return la.solve(A, F)

    def truth_outputs(self, solution, parameter=None) -> np.ndarray:
        """Evaluate the full-order outputs of a full-order solution."""
        theta = self.evaluation.get_rb_theta_expansion()
        return np.array([
            sum(
                t * (L @ solution)
                for t, L in zip(theta.eval_output_theta(i, parameter), terms)
            )
            for i, terms in enumerate(self.__outputs)
        ], dtype=float)

    # Basis-independent representor inner products ----------------------------
    def compute_Fq_representor_norms(self) -> None:
        """Compute the inner products of the right-hand side representors."""
        self.__Fq_representors = [
            self.riesz_representor(F) for F in self.__F_q
        ]
        Q_f = len(self.__F_q)
        norms = np.empty((Q_f, Q_f))
        for q1 in range(Q_f):
            for q2 in range(q1, Q_f):
                norms[q1, q2] = norms[q2, q1] = self.inner_product(
                    self.__Fq_representors[q1], self.__Fq_representors[q2]
                )
        self.evaluation.Fq_representor_norms = norms

    def compute_output_dual_norms(self) -> None:
        """Compute the inner products of the output representors."""
        dual_norms = []
        for terms in self.__outputs:
            representors = [self.riesz_representor(L) for L in terms]
            Q = len(terms)
            norms = np.empty((Q, Q))
            for q1 in range(Q):
                for q2 in range(q1, Q):
                    norms[q1, q2] = norms[q2, q1] = self.inner_product(
                        representors[q1], representors[q2]
                    )
            dual_norms.append(norms)
        self.evaluation.output_dual_norms = dual_norms

    # Basis enrichment --------------------------------------------------------
    def enrich_basis(self, snapshot, parameter=None, orthogonalize=True):
        """Append a basis function and extend the reduced data.

        Parameters
        ----------
        snapshot : (n,) ndarray
            Full-order vector to add, typically a truth solution.
        parameter : (p,) ndarray or None
            Parameter value of the snapshot, recorded in
            ``evaluation.greedy_param_list``.
        orthogonalize : bool
            If ``True`` (default), orthonormalize the snapshot against the
            current basis in the natural inner product (Gram-Schmidt).

        Returns
        -------
        vector : (n,) ndarray
            The basis function that was added.
        """
        ev = self.evaluation
        N = ev.get_n_basis_functions()
        if any(len(reps) != N for reps in ev.A_q_representor):
            raise ValueError(
                "Riesz representors of the current basis not available "
                "(cleared with clear_riesz_representors()?)"
            )

        vector = np.array(snapshot, dtype=float).ravel()
        if vector.size != self.n_dofs:
            raise errors.DimensionalityError(
                f"snapshot has {vector.size} entries, expected {self.n_dofs}"
            )
        if orthogonalize:
            original_norm = self.norm(vector)
            for zeta in ev.basis_functions:
                vector -= self.inner_product(vector, zeta) * zeta
            norm = self.norm(vector)
            if norm <= self.LINEAR_DEPENDENCE_TOL * max(original_norm, 1):
                raise ValueError(
                    "snapshot is linearly dependent on the current basis"
                )
            vector /= norm

        with utils.TimedBlock(f"Enriching reduced basis to N = {N + 1}"):
            # The evaluation is only modified once the Riesz solves succeed.
            representors = [
                self.riesz_representor(-(A @ vector)) for A in self.__A_q
            ]
            ev.resize_data_structures(max(N + 1, ev.Nmax))
            ev.add_basis_function(vector, parameter)
            self._update_reduced_operators(N)
            self._update_residual_terms(N, representors)
        return ev.get_basis_function(N)

    def train(self, parameters, orthogonalize=True) -> None:
        """Enrich the basis with truth solutions at each of the given
        parameter values, in order.

        Parameters
        ----------
        parameters : (s, p) ndarray or list of (p,) ndarrays
            Parameter values to compute snapshots at.
        """
        for parameter in parameters:
            self.enrich_basis(
                self.truth_solve(parameter),
                parameter,
                orthogonalize=orthogonalize,
            )

    def _update_reduced_operators(self, i):
        """Fill row and column ``i`` of the projected affine terms."""
        ev = self.evaluation
        Z = ev.basis_functions.entries[:, : i + 1]
        zeta = Z[:, i]
        for q, A in enumerate(self.__A_q):
            ev.RB_A_q_vector[q][: i + 1, i] = Z.T @ (A @ zeta)
            ev.RB_A_q_vector[q][i, : i + 1] = (A.T @ zeta) @ Z
        for q, F in enumerate(self.__F_q):
            ev.RB_F_q_vector[q][i] = zeta @ F
        for n, terms in enumerate(self.__outputs):
            for q, L in enumerate(terms):
                ev.RB_output_vectors[n][q][i] = zeta @ L
        if ev.compute_RB_inner_product:
            column = Z.T @ (self.__X @ zeta)
            ev.RB_inner_product_matrix[: i + 1, i] = column
            ev.RB_inner_product_matrix[i, : i + 1] = column

    def _update_residual_terms(self, i, representors):
        """Store the representors of basis function ``i`` and fill the
        representor inner products that involve them.
        """
        ev = self.evaluation
        for q, representor in enumerate(representors):
            ev.A_q_representor[q].append(representor)

        Q_a = len(self.__A_q)
        for q_f, F_rep in enumerate(self.__Fq_representors):
            for q_a in range(Q_a):
                ev.Fq_Aq_representor_norms[q_f, q_a, i] = self.inner_product(
                    F_rep, ev.A_q_representor[q_a][i]
                )

        T = ev.Aq_Aq_representor_norms
        for q1 in range(Q_a):
            for q2 in range(Q_a):
                for j in range(i + 1):
                    value = self.inner_product(
                        ev.A_q_representor[q1][i], ev.A_q_representor[q2][j]
                    )
                    T[q1, q2, i, j] = T[q2, q1, j, i] = value
