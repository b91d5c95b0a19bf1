"""
The auxiliary density operators (ADOs) of a hierarchy and the observables
evaluated on them.
"""

import collections
import enum

import numpy as np
import scipy.sparse as sp

from .parity import Parity, EVEN
from .superoperator import spre, spost, to_operator

__all__ = [
    "ADOs",
    "HEOMSuperOp",
    "get_rho",
    "get_ado",
    "expect",
    "trace_functional",
]


class ADOs:
    """
    The vectorized state of a whole hierarchy.

    The vector is split into ``N`` consecutive blocks of length ``dim**2``.
    Block ``i`` is the column-stacked ``i``'th ADO; block 0 is the reduced
    density matrix of the system.

    Parameters
    ----------
    data : array_like
        The vector of length ``N * dim**2``.

    N : int
        The number of ADOs.

    parity : Parity, default EVEN
        The parity of the ADOs.

    Attributes
    ----------
    data : ndarray
        The complex vector. It may be replaced by a vector of the same
        length, the remaining attributes are read-only.

    dim : int
        The dimension of the system Hilbert space.

    N : int
        The number of ADOs.

    parity : Parity
        The parity of the ADOs.
    """

    def __init__(self, data, N, parity=EVEN):
        data = np.asarray(data, dtype=complex)
        if data.ndim == 2 and 1 in data.shape:
            data = data.ravel()
        if data.ndim != 1:
            raise ValueError(
                f"The ADOs must be a vector, but an array of shape"
                f" {data.shape} was given."
            )
        if N < 1 or len(data) % N:
            raise ValueError(
                f"The ADOs vector of length {len(data)} can not be split into"
                f" {N} blocks."
            )
        dim = int(round(np.sqrt(len(data) // N)))
        if dim**2 * N != len(data):
            raise ValueError(
                f"The blocks of the ADOs vector have length {len(data) // N}"
                " which is not the square of a dimension."
            )
        self._data = data
        self._dim = dim
        self._N = N
        self._parity = Parity.coerce(parity)

    @classmethod
    def from_rho(cls, rho, N=1, parity=EVEN):
        """
        Create the ADOs of a hierarchy of ``N`` ADOs whose reduced density
        matrix is ``rho`` and whose other ADOs are zero.
        """
        rho = to_operator(rho, name="density matrix").toarray()
        dim = rho.shape[0]
        data = np.zeros(N * dim**2, dtype=complex)
        data[:dim**2] = rho.ravel(order="F")
        return cls(data, N, parity)

    @property
    def data(self):
        return self._data

    @data.setter
    def data(self, data):
        data = np.asarray(data, dtype=complex).ravel()
        if data.shape != self._data.shape:
            raise ValueError(
                f"The ADOs vector has length {len(self._data)}, but a vector"
                f" of length {len(data)} was given."
            )
        self._data = data

    @property
    def dim(self):
        return self._dim

    @property
    def N(self):
        return self._N

    @property
    def parity(self):
        return self._parity

    def __len__(self):
        return self._N

    def _block(self, idx):
        sup_dim = self._dim**2
        return self._data[idx * sup_dim:(idx + 1) * sup_dim].reshape(
            (self._dim, self._dim), order="F",
        )

    def __getitem__(self, idx):
        if isinstance(idx, slice):
            return [self._block(i) for i in range(self._N)[idx]]
        if not isinstance(idx, (int, np.integer)) or isinstance(idx, bool):
            raise TypeError(
                f"ADOs indices must be integers or slices, not"
                f" {type(idx).__name__}."
            )
        if not 0 <= idx < self._N:
            raise IndexError(
                f"ADO index {idx} is out of range, the valid range is"
                f" 0 <= idx < {self._N}."
            )
        return self._block(idx)

    def __iter__(self):
        return (self._block(i) for i in range(self._N))

    def __repr__(self):
        return (
            f"<{self.__class__.__name__} dim={self.dim} N={self.N}"
            f" parity={self.parity}>"
        )


def get_rho(ados):
    """ Return the reduced density matrix, i.e. ``ados[0]``. """
    return ados[0]


def get_ado(ados, idx):
    """ Return the ADO with index ``idx`` as a ``dim x dim`` array. """
    return ados[idx]


def trace_functional(dim, N):
    """
    Return the ``1 x N * dim**2`` row vector that maps an ADOs vector to the
    trace of its reduced density matrix.
    """
    cols = [k * (dim + 1) for k in range(dim)]
    return sp.csr_matrix(
        (np.ones(dim, dtype=complex), ([0] * dim, cols)),
        shape=(1, N * dim**2),
    )


def _dim_and_N(ref):
    if isinstance(ref, ADOs):
        return ref.dim, ref.N
    if isinstance(ref, tuple) and len(ref) == 2:
        return ref
    if hasattr(ref, "dim") and hasattr(ref, "N"):
        return ref.dim, ref.N
    raise TypeError(
        "The reference must be a HEOM matrix, ADOs or a (dim, N) pair, not"
        f" {type(ref).__name__}."
    )


class HEOMSuperOp:
    """
    A system superoperator applied to every ADO of a hierarchy.

    Parameters
    ----------
    op : array_like or scipy sparse matrix
        The system operator.

    parity : Parity
        The parity of ``op``.

    ref : HEOMMatrix, ADOs or (dim, N)
        Provides the system dimension and the number of ADOs.

    mode : {"L", "R"}, default "L"
        Whether ``op`` multiplies the ADOs from the left or from the right.

    Attributes
    ----------
    data : csr_matrix
        The matrix of shape ``(N * dim**2, N * dim**2)``.
    """

    def __init__(self, op, parity, ref, mode="L"):
        dim, N = _dim_and_N(ref)
        op = to_operator(op, dim, "operator")
        if mode == "L":
            sup = spre(op)
        elif mode == "R":
            sup = spost(op)
        else:
            raise ValueError(
                f"Unsupported mode {mode!r}, expected 'L' or 'R'."
            )
        self.data = sp.kron(
            sp.identity(N, dtype=complex, format="csr"), sup, format="csr",
        )
        self.dim = dim
        self.N = N
        self.parity = Parity.coerce(parity)
        self.mode = mode

    def __mul__(self, other):
        if not isinstance(other, ADOs):
            return NotImplemented
        _check_compatible(self, other)
        return ADOs(self.data @ other.data, self.N, self.parity * other.parity)

    def __repr__(self):
        return (
            f"<{self.__class__.__name__} mode={self.mode} dim={self.dim}"
            f" N={self.N} parity={self.parity}>"
        )


def _check_compatible(a, b):
    if a.dim != b.dim or a.N != b.N:
        raise ValueError(
            f"Mismatched dimensions: dim={a.dim}, N={a.N} and dim={b.dim},"
            f" N={b.N}."
        )


class _ObservableKind(enum.Enum):
    PLAIN = enum.auto()
    SUPEROP = enum.auto()


_Observable = collections.namedtuple("_Observable", ["kind", "op"])

_Shape = collections.namedtuple("_Shape", ["dim", "N"])


def _observable(op, dim):
    """ Classify ``op`` as a plain operator or a HEOM superoperator. """
    if isinstance(op, HEOMSuperOp):
        return _Observable(_ObservableKind.SUPEROP, op)
    return _Observable(
        _ObservableKind.PLAIN, to_operator(op, dim, "observable"),
    )


def _trace_row(op, dim, N):
    """
    The ``1 x N * dim**2`` row ``Tr(op @ rho)`` pre-contracted against the
    whole ADOs vector. Plain operators are lifted onto the hierarchy first so
    that both kinds of observable share one code path.
    """
    obs = _observable(op, dim)
    if obs.kind is _ObservableKind.SUPEROP:
        _check_compatible(obs.op, _Shape(dim, N))
        superop = obs.op
    else:
        superop = HEOMSuperOp(obs.op, EVEN, (dim, N), "L")
    return (trace_functional(dim, N) @ superop.data).tocsr()


def expect(op, ados, take_real=True):
    """
    Expectation value ``Tr(op @ rho)`` of ``op`` in the reduced density
    matrix of ``ados``.

    Parameters
    ----------
    op : array_like, scipy sparse matrix or HEOMSuperOp
        The observable. A ``HEOMSuperOp`` is applied to the whole hierarchy
        before the reduced density matrix is traced.

    ados : ADOs or list of ADOs
        The state(s).

    take_real : bool, default True
        Whether to return only the real part.

    Returns
    -------
    float, complex or ndarray
        One value, or an array with one value per ADOs when a list is given.
    """
    if isinstance(ados, ADOs):
        value = (_trace_row(op, ados.dim, ados.N) @ ados.data)[0]
        return np.real(value) if take_real else value

    ados_list = list(ados)
    if not ados_list:
        raise ValueError("The list of ADOs is empty.")
    first = ados_list[0]
    for other in ados_list[1:]:
        _check_compatible(first, other)
    tr_op = _trace_row(op, first.dim, first.N)
    values = np.array([(tr_op @ a.data)[0] for a in ados_list])
    return np.real(values) if take_real else values
