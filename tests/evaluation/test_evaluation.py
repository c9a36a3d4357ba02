# evaluation/test_evaluation.py
"""Tests for evaluation._evaluation (everything but persistence)."""

import pytest
import warnings
import numpy as np
import scipy.linalg as la

import certrb


def _scalar_model(A=2.0, F=4.0, **kwargs):
    """Q_a = Q_f = 1, theta = 1, a single basis function."""
    theta = certrb.ThetaExpansion([(lambda mu: 1.0)], [(lambda mu: 1.0)])
    evaluation = certrb.RBEvaluation(theta, **kwargs)
    evaluation.add_basis_function(np.ones(3), [0.0])
    evaluation.resize_data_structures(1)
    evaluation.RB_A_q_vector[0][0, 0] = A
    evaluation.RB_F_q_vector[0][0] = F
    theta.set_parameters([0.0])
    return evaluation


class TestRBEvaluation:
    """Test evaluation._evaluation.RBEvaluation."""

    Evaluation = certrb.RBEvaluation

    # Lifecycle ---------------------------------------------------------------
    def test_init(self, problem):
        """Test __init__(), clear(), and the theta expansion association."""
        evaluation = self.Evaluation()
        assert evaluation.get_n_basis_functions() == 0
        assert evaluation.Nmax == 0
        assert len(evaluation.basis_functions) == 0
        assert evaluation.greedy_param_list == []
        assert evaluation.evaluate_RB_error_bound is True
        assert evaluation.compute_RB_inner_product is True
        assert isinstance(evaluation.bound_policy, certrb.CoerciveBoundPolicy)
        assert not evaluation.is_rb_theta_expansion_initialized()

        with pytest.raises(AttributeError) as ex:
            evaluation.get_rb_theta_expansion()
        assert ex.value.args[0] == (
            "theta expansion not associated, "
            "call set_rb_theta_expansion() first"
        )
        for method in (
            evaluation.rb_solve,
            evaluation.resize_data_structures,
            evaluation.compute_residual_dual_norm,
        ):
            with pytest.raises(AttributeError) as ex:
                method(0)
            assert ex.value.args[0].startswith("theta expansion not")

        with pytest.raises(TypeError) as ex:
            evaluation.set_rb_theta_expansion(None)
        assert ex.value.args[0] == "theta expansion cannot be None"
        evaluation.set_rb_theta_expansion(problem.theta)
        assert evaluation.get_rb_theta_expansion() is problem.theta
        assert evaluation.is_rb_theta_expansion_initialized()

        with pytest.raises(TypeError) as ex:
            evaluation.bound_policy = 1.0
        assert ex.value.args[0] == "bound_policy must be a BoundPolicyTemplate"

        assert str(evaluation).startswith("RBEvaluation\n  basis functions:")
        assert repr(evaluation).endswith(str(evaluation))

    def test_clear(self, trained, problem):
        """Test clear()."""
        assert trained.get_n_basis_functions() == 5
        trained.clear()
        assert trained.get_n_basis_functions() == 0
        assert trained.Nmax == 0
        assert len(trained.basis_functions) == 0
        assert trained.greedy_param_list == []
        assert trained.RB_A_q_vector == []
        assert trained.RB_F_q_vector == []
        assert trained.RB_output_vectors == []
        assert trained.output_dual_norms == []
        assert trained.A_q_representor == []
        assert trained.Fq_representor_norms.size == 0
        assert trained.Aq_Aq_representor_norms.size == 0
        assert trained.RB_solution.size == 0
        # The association survives.
        assert trained.get_rb_theta_expansion() is problem.theta

    def test_resize_data_structures(self, problem):
        """Test resize_data_structures()."""
        evaluation = self.Evaluation(problem.theta)
        evaluation.resize_data_structures(0)
        assert len(evaluation.RB_A_q_vector) == 2
        assert len(evaluation.RB_F_q_vector) == 2
        assert len(evaluation.RB_output_vectors) == 1
        assert evaluation.Fq_representor_norms.shape == (2, 2)
        assert evaluation.Aq_Aq_representor_norms.shape == (2, 2, 0, 0)
        assert evaluation.output_dual_norms[0].shape == (1, 1)

        evaluation.resize_data_structures(2)
        assert evaluation.Nmax == 2
        A = np.random.random((2, 2))
        evaluation.RB_A_q_vector[1][:] = A
        evaluation.Aq_Aq_representor_norms[0, 1] = A
        evaluation.Fq_Aq_representor_norms[1, 0] = A[0]
        evaluation.RB_output_vectors[0][0][:] = A[1]

        # Growth keeps existing entries and pads with zeros.
        evaluation.resize_data_structures(4)
        for B in (
            evaluation.RB_A_q_vector[1],
            evaluation.Aq_Aq_representor_norms[0, 1],
        ):
            assert B.shape == (4, 4)
            assert np.all(B[:2, :2] == A)
            assert np.all(B[2:] == 0) and np.all(B[:, 2:] == 0)
        assert np.all(evaluation.Fq_Aq_representor_norms[1, 0, :2] == A[0])
        assert np.all(evaluation.RB_output_vectors[0][0][:2] == A[1])
        assert evaluation.RB_inner_product_matrix.shape == (4, 4)
        assert evaluation.RB_F_q_vector[0].shape == (4,)

        # Shrinking fails.
        with pytest.raises(ValueError) as ex:
            evaluation.resize_data_structures(3)
        assert ex.value.args[0] == (
            "cannot resize to Nmax = 3 < 4 = current number of basis functions"
        )
        with pytest.raises(TypeError) as ex:
            evaluation.resize_data_structures(4.5)
        assert ex.value.args[0] == "Nmax must be an integer"

    def test_resize_smaller_than_basis(self, trained):
        """Resizing below the number of basis functions fails."""
        before = [A.copy() for A in trained.RB_A_q_vector]
        with pytest.raises(ValueError) as ex:
            trained.resize_data_structures(3)
        assert ex.value.args[0] == (
            "cannot resize to Nmax = 3 < 5 = current number of basis functions"
        )
        for A, B in zip(before, trained.RB_A_q_vector):
            assert np.array_equal(A, B)

    def test_resize_mismatched_expansion(self, trained):
        """Existing data must match the theta expansion."""
        trained.set_rb_theta_expansion(
            certrb.ThetaExpansion(3, 2, [[(lambda mu: 1.0)]])
        )
        with pytest.raises(certrb.errors.DimensionalityError) as ex:
            trained.resize_data_structures(6)
        assert ex.value.args[0] == (
            "2 reduced bilinear form terms != 3 theta expansion terms"
        )

    def test_basis_functions(self, trained):
        """Test add_basis_function(), get_basis_function(), and
        set_n_basis_functions().
        """
        assert len(trained.greedy_param_list) == 5
        zeta = trained.get_basis_function(4)
        assert np.array_equal(zeta, trained.basis_functions.entries[:, 4])
        assert not zeta.flags.writeable

        for i in (5, -1):
            with pytest.raises(IndexError) as ex:
                trained.get_basis_function(i)
            assert ex.value.args[0] == (
                f"basis function index {i} out of range "
                "for 5 basis functions"
            )

        trained.set_n_basis_functions(7)
        with pytest.raises(IndexError) as ex:
            trained.get_basis_function(6)
        assert ex.value.args[0] == (
            "basis function 6 not in memory, "
            "call read_in_basis_functions() first"
        )
        with pytest.raises(ValueError) as ex:
            trained.add_basis_function(zeta)
        assert ex.value.args[0] == (
            "only 5 of 7 basis functions in memory, "
            "call read_in_basis_functions() first"
        )
        with pytest.raises(ValueError) as ex:
            trained.set_n_basis_functions(-1)
        assert ex.value.args[0] == (
            "number of basis functions must be nonnegative"
        )
        with pytest.raises(TypeError) as ex:
            trained.set_n_basis_functions(2.5)
        assert ex.value.args[0] == (
            "number of basis functions must be an integer"
        )
        with pytest.raises(ValueError) as ex:
            trained.set_n_basis_functions(4)
        assert ex.value.args[0] == (
            "cannot set 4 basis functions with 5 in memory, call clear() first"
        )
        assert trained.get_n_basis_functions() == 7
        trained.set_n_basis_functions(np.int64(5))
        assert trained.get_n_basis_functions() == 5

    # Online solve ------------------------------------------------------------
    def test_rb_solve_scalar(self):
        """A 1x1 system with A = 2 and F = 4 has the solution 2."""
        evaluation = _scalar_model()
        bound = evaluation.rb_solve(1)
        assert evaluation.RB_solution.shape == (1,)
        assert evaluation.RB_solution[0] == 2.0
        assert bound == 0
        assert evaluation.RB_outputs.shape == (0,)

    def test_rb_solve_preconditions(self, trained, problem):
        """Test rb_solve() with invalid N or missing parameters."""
        with pytest.raises(AttributeError) as ex:
            trained.rb_solve(2)
        assert ex.value.args[0] == "parameters not set"

        problem.theta.set_parameters([1.0, 0.0])
        with pytest.raises(ValueError) as ex:
            trained.rb_solve(6)
        assert ex.value.args[0] == (
            "N = 6 exceeds the 5 available basis functions"
        )
        with pytest.raises(ValueError) as ex:
            trained.rb_solve(-1)
        assert ex.value.args[0] == "N = -1 must be nonnegative"
        with pytest.raises(TypeError) as ex:
            trained.rb_solve(2.0)
        assert ex.value.args[0] == "N must be an integer"

        trained.set_n_basis_functions(6)
        with pytest.raises(ValueError) as ex:
            trained.rb_solve(6)
        assert ex.value.args[0] == (
            "N = 6 exceeds the size 5 of the reduced data"
        )

        empty = self.Evaluation(problem.theta)
        with pytest.raises(AttributeError) as ex:
            empty.rb_solve(0)
        assert ex.value.args[0] == (
            "reduced data not initialized, call resize_data_structures() "
            "or read_offline_data_from_files() first"
        )

        uninitialized = self.Evaluation(certrb.ThetaExpansion([], []))
        uninitialized.resize_data_structures(0)
        with pytest.raises(AttributeError) as ex:
            uninitialized.rb_solve(0)
        assert ex.value.args[0].startswith("reduced data not initialized")

    def test_rb_solve_zero_basis(self, trained, problem, test_parameters):
        """With N = 0 the solution is zero but the bound is not."""
        for mu in test_parameters:
            problem.theta.set_parameters(mu)
            bound = trained.rb_solve(0)
            assert trained.RB_solution.shape == (0,)
            assert np.all(trained.RB_outputs == 0)
            assert np.isfinite(bound)
            assert bound > 0

            # The bound is the dual norm of the right-hand side over alpha.
            F = sum(
                t * F_q
                for t, F_q in zip(problem.theta.eval_F_theta(), problem.F_q)
            )
            dual_norm = np.sqrt(F @ la.solve(problem.inner_product, F))
            assert np.isclose(bound * min(1, mu[0]), dual_norm)

    def test_rb_solve_singular(self):
        """A singular reduced system raises a ComputationError."""
        evaluation = _scalar_model(A=0.0)
        with pytest.raises(certrb.errors.ComputationError) as ex:
            evaluation.rb_solve(1)
        assert ex.value.args[0].startswith("reduced system could not")

        evaluation = _scalar_model(A=np.nan)
        with pytest.raises(certrb.errors.ComputationError):
            evaluation.rb_solve(1)

    def test_rb_solve_nonpositive_stability(self):
        """A nonpositive stability lower bound raises a ComputationError."""
        for alpha in (0.0, -1.0, np.inf):
            evaluation = _scalar_model(
                bound_policy=certrb.CoerciveBoundPolicy(alpha)
            )
            with pytest.raises(certrb.errors.ComputationError) as ex:
                evaluation.rb_solve(1)
            assert ex.value.args[0] == (
                f"stability lower bound {float(alpha)} is not positive, "
                "cannot scale the residual"
            )

    def test_rb_solve_nonfinite(self):
        """Infinite or NaN bounds raise a ComputationError."""
        # Unbounded right-hand side coefficient with no basis functions.
        theta = certrb.ThetaExpansion([(lambda mu: 1.0)],
                                      [(lambda mu: np.inf)])
        evaluation = self.Evaluation(theta)
        evaluation.add_basis_function(np.ones(3), [0.0])
        evaluation.resize_data_structures(1)
        evaluation.Fq_representor_norms[0, 0] = 1.0
        theta.set_parameters([0.0])
        with pytest.raises(certrb.errors.ComputationError) as ex:
            evaluation.rb_solve(0)
        assert ex.value.args[0] == "residual dual norm is not finite"

        # Corrupt representor inner products.
        evaluation = _scalar_model()
        evaluation.Aq_Aq_representor_norms[0, 0, 0, 0] = np.nan
        with pytest.raises(certrb.errors.ComputationError) as ex:
            evaluation.rb_solve(1)
        assert ex.value.args[0] == "residual dual norm is not finite"

    def test_rb_solve_against_truth(self, construction, problem,
                                    test_parameters):
        """The bounds exceed the true errors of the solution and outputs."""
        trained = construction.evaluation
        theta = problem.theta
        for mu in test_parameters:
            theta.set_parameters(mu)
            truth = construction.truth_solve()
            s_truth = construction.truth_outputs(truth)
            A = sum(t * A_q for t, A_q in zip(theta.eval_A_theta(),
                                               problem.A_q))
            F = sum(t * F_q for t, F_q in zip(theta.eval_F_theta(),
                                               problem.F_q))
            for N in range(trained.get_n_basis_functions() + 1):
                bound = trained.rb_solve(N)
                uN = trained.get_full_order_solution()
                error = construction.norm(truth - uN)
                assert error <= bound * (1 + 1e-6) + 1e-8
                output_error = np.abs(s_truth - trained.RB_outputs)
                assert np.all(
                    output_error
                    <= trained.RB_output_error_bounds * (1 + 1e-6) + 1e-8
                )

                # Residual dual norm from full-order vectors.
                r = F - A @ uN
                direct = np.sqrt(r @ construction.riesz_representor(r))
                assert np.isclose(
                    trained.compute_residual_dual_norm(N),
                    direct,
                    rtol=1e-5,
                    atol=1e-6,
                )

    def test_rb_solve_without_bound(self, trained, problem):
        """Disabling error bounds does not change the solution."""
        problem.theta.set_parameters([2.0, 0.5])
        trained.rb_solve(4)
        solution = trained.RB_solution.copy()
        outputs = trained.RB_outputs.copy()

        trained.evaluate_RB_error_bound = False
        assert trained.rb_solve(4) == -1
        assert np.array_equal(trained.RB_solution, solution)
        assert np.array_equal(trained.RB_outputs, outputs)
        assert np.all(trained.RB_output_error_bounds == -1)

    def test_rb_solve_compliant(self, problem, train_parameters):
        """Compliant output bounds with the ComplianceBoundPolicy."""
        theta = certrb.ThetaExpansion(
            [(lambda mu: 1.0), (lambda mu: mu[0])],
            [(lambda mu: 1.0), (lambda mu: mu[1])],
            output_coeffs=[[(lambda mu: 1.0), (lambda mu: mu[1])]],
        )
        evaluation = self.Evaluation(
            theta,
            bound_policy=certrb.ComplianceBoundPolicy(
                lambda mu: min(1, mu[0])
            ),
        )
        rbc = certrb.RBConstruction(
            evaluation, problem.A_q, problem.F_q, [problem.F_q],
            problem.inner_product,
        )
        rbc.train(train_parameters[:3])
        for mu in ([0.3, 0.7], [4.0, -0.2]):
            theta.set_parameters(mu)
            s_truth = rbc.truth_outputs(rbc.truth_solve())[0]
            for N in range(4):
                bound = evaluation.rb_solve(N)
                output_error = s_truth - evaluation.RB_outputs[0]
                bound_s = evaluation.RB_output_error_bounds[0]
                assert output_error >= -1e-10
                assert output_error <= bound_s * (1 + 1e-6) + 1e-8
                assert np.isclose(
                    evaluation.RB_output_error_bounds[0], bound**2
                )

    def test_get_rb_solution_norm(self, construction, problem):
        """Test get_rb_solution_norm() and get_full_order_solution()."""
        trained = construction.evaluation
        problem.theta.set_parameters([0.7, -0.3])
        trained.rb_solve(5)
        u = trained.get_full_order_solution()
        assert u.shape == (construction.n_dofs,)
        assert np.isclose(trained.get_rb_solution_norm(), construction.norm(u))

        # The basis is orthonormal in the natural inner product.
        assert np.allclose(trained.RB_inner_product_matrix, np.eye(5))

        trained.compute_RB_inner_product = False
        with pytest.raises(AttributeError) as ex:
            trained.get_rb_solution_norm()
        assert ex.value.args[0] == (
            "reduced inner product matrix not computed "
            "(compute_RB_inner_product=False)"
        )

        trained.basis_functions.clear()
        with pytest.raises(AttributeError) as ex:
            trained.get_full_order_solution()
        assert ex.value.args[0] == (
            "basis functions not available, "
            "call read_in_basis_functions() first"
        )

    # Error bounds ------------------------------------------------------------
    def test_compute_residual_dual_norm(self, trained, problem,
                                        test_parameters):
        """The residual dual norm is nonnegative for every N and mu."""
        for mu in test_parameters:
            problem.theta.set_parameters(mu)
            for N in range(trained.get_n_basis_functions() + 1):
                trained.rb_solve(N)
                norm = trained.compute_residual_dual_norm(N)
                assert np.isfinite(norm)
                assert norm >= 0

        problem.theta.set_parameters(test_parameters[0])
        trained.rb_solve(3)
        with pytest.raises(ValueError) as ex:
            trained.compute_residual_dual_norm(2)
        assert ex.value.args[0] == (
            "RB_solution has 3 entries, call rb_solve(2) first"
        )

    def test_residual_clamp(self):
        """Negative squared residual norms are clamped to zero."""
        evaluation = _scalar_model()
        evaluation.rb_solve(1)
        u = evaluation.RB_solution[0]
        assert u == 2

        # ff + 2 fa u + aa u^2 = 1 - 4 + 4 * 0.5 = -1: clamp with a warning.
        evaluation.Fq_representor_norms[0, 0] = 1.0
        evaluation.Fq_Aq_representor_norms[0, 0, 0] = -1.0
        evaluation.Aq_Aq_representor_norms[0, 0, 0, 0] = 0.5
        with pytest.warns(certrb.errors.CRBWarning) as wn:
            norm = evaluation.compute_residual_dual_norm(1)
        assert norm == 0
        assert wn[0].message.args[0] == (
            "residual dual norm squared -1.000e+00 clamped to 0"
        )

        # Cancellation at round-off level: clamp silently.
        evaluation.Aq_Aq_representor_norms[0, 0, 0, 0] = 0.75 - 1e-14
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            norm = evaluation.compute_residual_dual_norm(1)
        assert 0 <= norm < 1e-6

    def test_representor_symmetry(self, trained):
        """Aq_Aq[q, q', i, j] == Aq_Aq[q', q, j, i]."""
        T = trained.Aq_Aq_representor_norms
        assert T.shape == (2, 2, 5, 5)
        assert np.array_equal(T, T.transpose(1, 0, 3, 2))
        F = trained.Fq_representor_norms
        assert np.array_equal(F, F.T)
        assert np.all(np.diag(F) > 0)

    def test_eval_output_dual_norm(self, trained, problem, test_parameters):
        """Output dual norms do not depend on N or on the RB solution."""
        ell = problem.outputs[0][0]
        expected = np.sqrt(ell @ la.solve(problem.inner_product, ell))
        for mu in test_parameters:
            problem.theta.set_parameters(mu)
            values = []
            for N in range(trained.get_n_basis_functions() + 1):
                trained.rb_solve(N)
                values.append(trained.eval_output_dual_norm(0, mu))
            assert all(value == values[0] for value in values)
            assert np.isclose(values[0], expected)

        with pytest.raises(IndexError) as ex:
            trained.eval_output_dual_norm(1, test_parameters[0])
        assert ex.value.args[0] == "output index 1 out of range for 1 outputs"

        trained.output_dual_norms[0][0, 0] = np.nan
        with pytest.raises(certrb.errors.ComputationError) as ex:
            trained.eval_output_dual_norm(0, test_parameters[0])
        assert ex.value.args[0] == "dual norm of output 0 is not finite"
        with pytest.raises(certrb.errors.ComputationError):
            trained.rb_solve(2)

    def test_clear_riesz_representors(self, trained, problem):
        """Releasing the representors does not change the bound."""
        assert all(len(reps) == 5 for reps in trained.A_q_representor)
        problem.theta.set_parameters([0.4, 0.9])
        bound = trained.rb_solve(3)
        solution = trained.RB_solution.copy()

        trained.clear_riesz_representors()
        assert trained.A_q_representor == [[], []]
        assert trained.rb_solve(3) == bound
        assert np.array_equal(trained.RB_solution, solution)
        assert trained.get_n_basis_functions() == 5

    def test_stability_and_scaling(self, trained, problem):
        """Test get_stability_lower_bound() and residual_scaling_denom()."""
        problem.theta.set_parameters([0.25, 0.0])
        assert trained.get_stability_lower_bound() == 0.25
        assert trained.residual_scaling_denom(0.25) == 0.25
        trained.bound_policy = certrb.ComplianceBoundPolicy(0.25)
        assert trained.residual_scaling_denom(0.25) == 0.5
