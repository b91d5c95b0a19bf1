"""
Operator coercion and superoperator construction.

Operators are vectorized by stacking columns, i.e. ``vec(A)[i + j*n]`` is
``A[i, j]``, so that ``vec(A @ X @ B) == kron(B.T, A) @ vec(X)``.

All superoperators are returned as ``scipy.sparse.csr_matrix`` instances.
Sums and differences of CSR matrices never store exact zeros, which keeps
the nonzero structure of assembled HEOM matrices deterministic.
"""

__all__ = [
    'to_operator', 'spre', 'spost', 'liouvillian', 'lindblad_dissipator',
]

import numpy as np
import scipy.sparse as sp


def to_operator(op, dim=None, name="operator"):
    """
    Convert ``op`` to a square ``csr_matrix`` of complex type.

    Parameters
    ----------
    op : array_like, scipy sparse matrix or object with a ``full()`` method
        The operator.
    dim : int, optional
        The expected dimension. If given, a mismatch raises ``ValueError``.
    name : str
        Name of the operator, used in error messages.

    Returns
    -------
    csr_matrix
        The operator with all explicit zeros removed.
    """
    if sp.issparse(op):
        mat = sp.csr_matrix(op, dtype=complex)
    else:
        if hasattr(op, "full") and callable(op.full):
            op = op.full()
        arr = np.asarray(op)
        if arr.dtype == object or not np.issubdtype(arr.dtype, np.number):
            raise TypeError(
                f"Unsupported type {type(op).__name__!r} for {name}."
            )
        if arr.ndim != 2:
            raise TypeError(
                f"The {name} must be a matrix, but an array with"
                f" {arr.ndim} dimension(s) of type {arr.dtype} was given."
            )
        mat = sp.csr_matrix(arr.astype(complex))
    if mat.shape[0] != mat.shape[1]:
        raise ValueError(
            f"The {name} must be square, but has shape {mat.shape}."
        )
    if dim is not None and mat.shape != (dim, dim):
        raise ValueError(
            f"The {name} has shape {mat.shape} but the system dimension"
            f" is {dim}."
        )
    mat.eliminate_zeros()
    mat.sort_indices()
    return mat


def _identity(n):
    return sp.identity(n, dtype=complex, format="csr")


def spre(op):
    """ Superoperator for left multiplication, ``X -> op @ X``. """
    op = to_operator(op)
    return sp.kron(_identity(op.shape[0]), op, format="csr")


def spost(op):
    """ Superoperator for right multiplication, ``X -> X @ op``. """
    op = to_operator(op)
    return sp.kron(op.T, _identity(op.shape[0]), format="csr")


def lindblad_dissipator(J, sign=1):
    """
    Lindblad dissipator of the jump operator ``J``::

        D[J] X = sign * J X J^dag - 0.5 * (J^dag J X + X J^dag J)

    ``sign`` is ``-1`` for fermionic jump operators acting on odd-parity
    operators and ``1`` otherwise.
    """
    J = to_operator(J, name="jump operator")
    Jdag = J.conj().T.tocsr()
    JdJ = (Jdag @ J).tocsr()
    return (
        (sign * spre(J)) @ spost(Jdag)
        - 0.5 * (spre(JdJ) + spost(JdJ))
    ).tocsr()


def liouvillian(H, c_ops=()):
    """
    Assemble the Liouvillian ``-i[H, .]`` plus one Lindblad dissipator for
    each operator in ``c_ops``.
    """
    H = to_operator(H, name="Hamiltonian")
    L = -1j * (spre(H) - spost(H))
    for J in c_ops:
        L = L + lindblad_dissipator(J)
    return L.tocsr()
