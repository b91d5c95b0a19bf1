"""
Matrix exponential of sparse HEOM matrices for fixed-step propagation.
"""

__all__ = ['fast_expm', 'propagator']

import numpy as np
import scipy.linalg
import scipy.sparse as sp
import scipy.sparse.linalg

from .logging_utils import get_logger

logger = get_logger(__name__)


def _drop_small(A, tol):
    """ Remove the entries of the csr matrix ``A`` smaller than ``tol``. """
    A.data[np.abs(A.data) < tol] = 0
    A.eliminate_zeros()
    return A


def fast_expm(A, threshold=1e-6, nonzero_tol=1e-14):
    """
    Matrix exponential of a sparse matrix.

    Dense matrices (more than a quarter of the entries stored) are passed to
    ``scipy.linalg.expm``. Otherwise the matrix is scaled by ``2**s`` so that
    its 1-norm is at most one, the Taylor series is summed until the 1-norm
    of the last term drops below ``threshold`` and the result is squared
    ``s`` times. Entries smaller than ``nonzero_tol`` are dropped after every
    product to bound the fill-in.

    Parameters
    ----------
    A : scipy sparse matrix
        Square matrix.

    threshold : float, default 1e-6
        Truncation threshold of the Taylor series.

    nonzero_tol : float, default 1e-14
        Entries with a smaller magnitude are removed.

    Returns
    -------
    csr_matrix
        ``exp(A)``.
    """
    A = sp.csr_matrix(A, dtype=complex)
    n = A.shape[0]
    if A.shape != (n, n):
        raise ValueError(f"Expected a square matrix, got shape {A.shape}.")
    if n == 0:
        return A.copy()

    density = A.nnz / n**2
    if density > 0.25:
        logger.debug("Using dense expm, density %.3f.", density)
        return sp.csr_matrix(scipy.linalg.expm(A.toarray()))

    norm1 = scipy.sparse.linalg.norm(A, 1)
    s = max(0, int(np.ceil(np.log2(norm1)))) if norm1 > 0 else 0
    if s:
        A = A / 2**s

    P = sp.identity(n, dtype=complex, format="csr")
    term = P.copy()
    k = 0
    while True:
        k += 1
        term = _drop_small((term @ A) / k, nonzero_tol)
        P = P + term
        if term.nnz == 0 or scipy.sparse.linalg.norm(term, 1) < threshold:
            break
    for _ in range(s):
        P = _drop_small(P @ P, nonzero_tol)
    logger.debug(
        "Sparse expm: %d Taylor terms, %d squarings, nnz %d.", k, s, P.nnz,
    )
    return P


def propagator(M, dt, threshold=1e-6, nonzero_tol=1e-14):
    """
    The propagator ``exp(M * dt)`` of a HEOM matrix.

    Parameters
    ----------
    M : HEOMMatrix
        The HEOM Liouvillian.

    dt : float
        The time step.

    threshold, nonzero_tol : float
        See :func:`fast_expm`.

    Returns
    -------
    csr_matrix
    """
    logger.info("Computing propagator for dt=%g, shape %s.", dt, M.shape)
    return fast_expm(M.data * dt, threshold=threshold, nonzero_tol=nonzero_tol)
