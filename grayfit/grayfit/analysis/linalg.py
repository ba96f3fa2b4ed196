"""Dense linear solver for the polynomial normal equations."""
from __future__ import annotations
from typing import Optional, Sequence
import numpy as np

from grayfit.constants import SINGULAR_TOLERANCE


def solve_linear_system(
    A: Sequence[Sequence[float]],
    b: Sequence[float],
    tol: float = SINGULAR_TOLERANCE,
) -> Optional[np.ndarray]:
    """Solve ``A @ c = b`` by Gaussian elimination with partial pivoting.

    Returns the solution vector, or ``None`` when a pivot falls below
    ``tol`` in absolute value (numerically singular system). Inputs are
    copied and left untouched.
    """
    a = np.array(A, dtype=float)
    rhs = np.array(b, dtype=float)
    if a.ndim != 2 or a.shape[0] != a.shape[1]:
        raise ValueError(f"Coefficient matrix must be square, got {a.shape}")
    n = a.shape[0]
    if rhs.shape != (n,):
        raise ValueError(
            f"Right-hand side must have length {n}, got shape {rhs.shape}"
        )
    aug = np.column_stack([a, rhs])

    for i in range(n):
        # Partial pivoting; ties keep the upper row
        pivot = i + int(np.argmax(np.abs(aug[i:, i])))
        if pivot != i:
            aug[[i, pivot]] = aug[[pivot, i]]
        if abs(aug[i, i]) < tol:
            return None
        for k in range(i + 1, n):
            factor = aug[k, i] / aug[i, i]
            aug[k, i:] -= factor * aug[i, i:]

    solution = np.zeros(n)
    for i in range(n - 1, -1, -1):
        acc = aug[i, n] - np.dot(aug[i, i + 1:n], solution[i + 1:])
        solution[i] = acc / aug[i, i]
    return solution


__all__ = ["solve_linear_system"]
