import numpy as np
import pytest
from scipy.linalg import solve

from grayfit.analysis.linalg import solve_linear_system


def test_known_3x3_system():
    A = [[2, 1, -1], [-3, -1, 2], [-2, 1, 2]]
    b = [8, -11, -3]
    sol = solve_linear_system(A, b)
    np.testing.assert_allclose(sol, [2, 3, -1], atol=1e-12)


def test_known_4x4_system():
    A = [
        [4, 1, 0, 0],
        [1, 4, 1, 0],
        [0, 1, 4, 1],
        [0, 0, 1, 4],
    ]
    b = [6, 12, 18, 19]
    sol = solve_linear_system(A, b)
    np.testing.assert_allclose(sol, [1, 2, 3, 4], atol=1e-12)


def test_requires_row_swap():
    sol = solve_linear_system([[0, 1], [1, 0]], [2, 3])
    np.testing.assert_allclose(sol, [3, 2])


def test_identical_rows_are_singular():
    A = [[1, 2, 3], [1, 2, 3], [0, 1, 1]]
    assert solve_linear_system(A, [1, 1, 2]) is None


def test_zero_matrix_is_singular():
    assert solve_linear_system(np.zeros((4, 4)), np.ones(4)) is None


def test_pivot_threshold():
    assert solve_linear_system([[1e-11]], [1.0]) is None
    sol = solve_linear_system([[1e-9]], [1.0])
    assert sol[0] == pytest.approx(1e9)


def test_matches_scipy_on_random_systems(rng):
    for n in (2, 3, 4):
        A = rng.normal(size=(n, n)) + n * np.eye(n)
        b = rng.normal(size=n)
        np.testing.assert_allclose(
            solve_linear_system(A, b), solve(A, b), rtol=1e-10, atol=1e-12
        )


def test_inputs_not_mutated():
    A = np.array([[3.0, 2.0], [1.0, 4.0]])
    b = np.array([5.0, 6.0])
    A0, b0 = A.copy(), b.copy()
    solve_linear_system(A, b)
    np.testing.assert_array_equal(A, A0)
    np.testing.assert_array_equal(b, b0)


@pytest.mark.parametrize(
    "A, b",
    [
        ([[1, 2, 3], [4, 5, 6]], [1, 2]),
        ([[1, 0], [0, 1]], [1, 2, 3]),
    ],
)
def test_shape_errors(A, b):
    with pytest.raises(ValueError):
        solve_linear_system(A, b)
