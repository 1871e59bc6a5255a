"""Parameter uncertainty estimation at the least squares optimum.

The covariance of the fitted parameters is estimated from the Jacobian J at
the optimum and the residual root mean square:

    C = RMS² · (JᵀJ)⁺

where (JᵀJ)⁺ is an SVD pseudo-inverse with a relative singular value
cutoff, so that nearly dependent Jacobian columns (for example when every
measurement uses the same pin diameter and spacer height) do not produce
meaningless huge variances. The standard deviations are the square roots of
the diagonal of C.
"""

from __future__ import annotations

import numpy as np

from prisma.optimization.linalg import pseudo_inverse


def compute_rms(residuals: np.ndarray) -> float:
    """Root mean square of the residuals, sqrt(Σrᵢ²/n)."""
    residuals = np.asarray(residuals, dtype=float)
    if residuals.size == 0:
        raise ValueError("cannot compute RMS of an empty residual vector")
    return float(np.sqrt(residuals @ residuals / residuals.size))


def compute_covariance(
    jacobian: np.ndarray, residuals: np.ndarray, rcond: float = 1e-10
) -> np.ndarray:
    """Estimate the parameters covariance matrix.

    Parameters
    ----------
    jacobian : np.ndarray
        Jacobian at the optimum, shape (n, p)
    residuals : np.ndarray
        Residuals at the optimum, shape (n,)
    rcond : float
        Relative singular value cutoff of the pseudo-inverse

    Returns
    -------
    np.ndarray
        Covariance matrix, shape (p, p)
    """
    jacobian = np.asarray(jacobian, dtype=float)
    rms = compute_rms(residuals)
    return rms**2 * pseudo_inverse(jacobian.T @ jacobian, rcond)


def compute_sigma(
    jacobian: np.ndarray, residuals: np.ndarray, rcond: float = 1e-10
) -> np.ndarray:
    """Standard deviation of each fitted parameter.

    Parameters
    ----------
    jacobian : np.ndarray
        Jacobian at the optimum, shape (n, p)
    residuals : np.ndarray
        Residuals at the optimum, shape (n,)
    rcond : float
        Relative singular value cutoff of the pseudo-inverse

    Returns
    -------
    np.ndarray
        Standard deviations, shape (p,)
    """
    return sigma_from_covariance(compute_covariance(jacobian, residuals, rcond))


def sigma_from_covariance(covariance: np.ndarray) -> np.ndarray:
    """Square roots of the covariance diagonal."""
    # Round-off can leave tiny negative diagonal entries on rank deficient problems
    return np.sqrt(np.clip(np.diag(covariance), 0.0, None))
