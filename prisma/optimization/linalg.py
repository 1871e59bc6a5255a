"""Linear algebra helpers for the least squares solver.

- normal_equations: JᵀJ and Jᵀr for a Jacobian and residual vector
- solve_damped_normal_equations: Marquardt-scaled damped system solve
- pseudo_inverse: SVD pseudo-inverse with a relative singular value cutoff
"""

from __future__ import annotations

import numpy as np
import scipy.linalg

from prisma.optimization.exceptions import NumericalDegeneracyError
from prisma.utils.logging import get_logger

logger = get_logger(__name__)


def normal_equations(
    jacobian: np.ndarray, residuals: np.ndarray
) -> tuple[np.ndarray, np.ndarray]:
    """Build the normal equations of a linearized least squares problem.

    Parameters
    ----------
    jacobian : np.ndarray
        Jacobian matrix, shape (n, p)
    residuals : np.ndarray
        Observed minus theoretical values, shape (n,)

    Returns
    -------
    jtj : np.ndarray
        JᵀJ, shape (p, p)
    jtr : np.ndarray
        Jᵀr, shape (p,)
    """
    jacobian = np.asarray(jacobian, dtype=float)
    return jacobian.T @ jacobian, jacobian.T @ np.asarray(residuals, dtype=float)


def reciprocal_condition(matrix: np.ndarray) -> float:
    """Reciprocal 2-norm condition number of a symmetric matrix (0 if singular)."""
    eigenvalues = np.abs(np.linalg.eigvalsh(matrix))
    largest = eigenvalues.max()
    if largest == 0 or not np.isfinite(largest):
        return 0.0
    return float(eigenvalues.min() / largest)


def solve_damped_normal_equations(
    jtj: np.ndarray,
    jtr: np.ndarray,
    damping: float,
    singularity_threshold: float = 1e-14,
) -> np.ndarray:
    """Solve (JᵀJ + λ·diag(JᵀJ)) Δ = Jᵀr.

    Scaling the damping term by the diagonal of JᵀJ (Marquardt's variant)
    makes the step invariant to the units of each parameter.

    Parameters
    ----------
    jtj : np.ndarray
        Normal matrix JᵀJ, shape (p, p)
    jtr : np.ndarray
        Right hand side Jᵀr, shape (p,)
    damping : float
        Damping factor λ
    singularity_threshold : float
        Reciprocal condition number below which the system is singular

    Returns
    -------
    np.ndarray
        Step Δ, shape (p,)

    Raises
    ------
    NumericalDegeneracyError
        If the damped matrix is singular or not positive definite
    """
    damped = jtj + damping * np.diag(np.diag(jtj))

    rcond = reciprocal_condition(damped)
    if rcond < singularity_threshold:
        raise NumericalDegeneracyError(
            "singular damped normal equations matrix",
            detection_point="linear_solve",
            error_context={"rcond": rcond, "damping": damping},
        )

    try:
        factor = scipy.linalg.cho_factor(damped)
        step = scipy.linalg.cho_solve(factor, jtr)
    except np.linalg.LinAlgError as e:
        raise NumericalDegeneracyError(
            f"damped normal equations matrix is not positive definite: {e}",
            detection_point="linear_solve",
            error_context={"damping": damping},
        ) from e

    if not np.all(np.isfinite(step)):
        raise NumericalDegeneracyError(
            "non-finite step from damped normal equations",
            detection_point="linear_solve",
            error_context={"damping": damping},
        )
    return step


def pseudo_inverse(matrix: np.ndarray, rcond: float = 1e-10) -> np.ndarray:
    """SVD pseudo-inverse ignoring small singular values.

    Singular values smaller than ``rcond`` times the largest one are
    treated as zero, so nearly dependent columns do not blow up the result.

    Parameters
    ----------
    matrix : np.ndarray
        Matrix to invert, shape (m, n)
    rcond : float
        Relative cutoff for small singular values

    Returns
    -------
    np.ndarray
        Pseudo-inverse, shape (n, m)
    """
    u, s, vt = scipy.linalg.svd(np.asarray(matrix, dtype=float), full_matrices=False)
    if s.size == 0 or s[0] == 0:
        return np.zeros((vt.shape[1], u.shape[0]))

    cutoff = rcond * s[0]
    kept = s > cutoff
    if not np.all(kept):
        logger.debug(
            f"Pseudo-inverse rank {int(kept.sum())}/{s.size} "
            f"(cutoff {cutoff:.3e})"
        )
    s_inv = np.where(kept, 1.0 / np.where(kept, s, 1.0), 0.0)
    return (vt.T * s_inv) @ u.T
