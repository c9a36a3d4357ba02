# conftest.py
"""Fixtures shared by the test suite.

The model problem is the one-dimensional reaction-diffusion equation
-u'' + mu_0 u = 1 + mu_1 delta_{1/4} on (0, 1) with homogeneous Dirichlet
conditions, discretized with linear finite elements. Its affine terms are

    A(mu) = K + mu_0 M,    F(mu) = f_0 + mu_1 f_1,    s(mu) = l . u,

and the natural inner product is X = K + M, so min(1, mu_0) is a valid
coercivity lower bound.
"""

import pytest
import numpy as np
from collections import namedtuple

import certrb


Problem = namedtuple(
    "Problem",
    ["theta", "domain", "A_q", "F_q", "outputs", "inner_product"],
)


def _assemble(n):
    """Stiffness matrix, lumped mass matrix, loads, and output vector."""
    h = 1 / (n + 1)
    K = np.zeros((n + 2, n + 2))
    for e in range(n + 1):
        K[e:e + 2, e:e + 2] += np.array([[1.0, -1.0], [-1.0, 1.0]]) / h
    K = K[1:-1, 1:-1]
    M = h * np.eye(n)
    f0 = h * np.ones(n)
    f1 = np.zeros(n)
    f1[n // 4] = 1.0
    ell = h * np.ones(n)
    return K, M, f0, f1, ell


def alpha_LB(mu):
    """Coercivity lower bound with respect to X = K + M."""
    return min(1.0, mu[0])


@pytest.fixture
def problem():
    n = 40
    K, M, f0, f1, ell = _assemble(n)
    domain = certrb.ParameterDomain([0.1, -1.0], [10.0, 1.0])
    theta = certrb.ThetaExpansion(
        A_coeffs=[(lambda mu: 1.0), (lambda mu: mu[0])],
        F_coeffs=[(lambda mu: 1.0), (lambda mu: mu[1])],
        output_coeffs=[[(lambda mu: 1.0)]],
        domain=domain,
    )
    return Problem(theta, domain, [K, M], [f0, f1], [[ell]], K + M)


@pytest.fixture
def train_parameters():
    return np.array([
        [0.1, -1.0],
        [10.0, 1.0],
        [1.0, 0.5],
        [3.0, -0.5],
        [0.5, 1.0],
    ])


@pytest.fixture
def test_parameters():
    return np.array([
        [0.2, 0.3],
        [5.0, -0.8],
        [1.7, 1.0],
        [0.1, 0.0],
    ])


@pytest.fixture
def construction(problem, train_parameters):
    """Model trained on the training parameters, with its construction."""
    evaluation = certrb.RBEvaluation(
        problem.theta,
        bound_policy=certrb.CoerciveBoundPolicy(alpha_LB),
    )
    rbc = certrb.RBConstruction(
        evaluation,
        problem.A_q,
        problem.F_q,
        problem.outputs,
        problem.inner_product,
    )
    rbc.train(train_parameters)
    return rbc


@pytest.fixture
def trained(construction):
    """Model trained on the training parameters."""
    return construction.evaluation
