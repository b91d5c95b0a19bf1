"""
This module provides the HEOM Liouvillian superoperator matrices.

A HEOM matrix acts on the vectorized hierarchy of auxiliary density
operators (ADOs). Its ``N x N`` blocks of size ``dim**2`` are: on the
diagonal, the system Liouvillian minus the damping of the excited exponents;
off the diagonal, the couplings between ADOs whose tier vectors differ by
one excitation of one exponent.

The implementation is derived from the BoFiN library (see
https://github.com/tehruhn/bofin).
"""

import concurrent.futures
import copy
from time import time

import numpy as np
import scipy.sparse as sp

from .bath import BathExponent
from .hierarchy import HierarchyDict, MixHierarchyDict
from .logging_utils import get_logger
from .options import SolverOptions
from .parity import Parity, EVEN, ODD
from .settings import settings
from .superoperator import (
    liouvillian, lindblad_dissipator, spre, spost, to_operator,
)
from .ui.progressbar import make_progress_bar

__all__ = [
    "HEOMMatrix",
    "SystemMatrix",
    "BosonMatrix",
    "FermionMatrix",
    "BosonFermionMatrix",
    "add_dissipator",
    "add_fermion_dissipator",
    "add_terminator",
]

logger = get_logger(__name__)

_default_options = SolverOptions({
    "progress_bar": "text",
    "progress_kwargs": {"chunk_size": 10},
    "num_workers": 1,
}, "HEOM matrix construction", """
    progress_bar : str, bool, None or BaseProgressBar
        Progress reporting while the hierarchy blocks are assembled.

    progress_kwargs : dict
        Keyword arguments passed to the progress bar.

    num_workers : int
        Number of threads used to assemble the blocks. ``0`` uses all
        available cpus.
""")


def _system_liouvillian(H, dim=None):
    """
    Return the system Liouvillian and the system dimension. ``H`` may be a
    Hamiltonian or an already formed Liouvillian.
    """
    op = to_operator(H, name="system Hamiltonian or Liouvillian")
    if dim is None:
        dim = op.shape[0]
    if op.shape == (dim, dim):
        return liouvillian(op), dim
    if op.shape == (dim**2, dim**2):
        return op, dim
    raise ValueError(
        f"The system Hamiltonian or Liouvillian has shape {op.shape}, which"
        f" matches neither the system dimension {dim} nor its square."
    )


def _coupling_dim(hierarchies):
    """ The common dimension of the coupling operators of the baths. """
    dims = {
        exp.Q.shape[0]
        for hierarchy in hierarchies
        for exp in hierarchy.exponents
        if exp.Q is not None
    }
    if len(dims) > 1:
        raise ValueError(
            "All bath exponents must have system coupling operators"
            " with the same dimensions but a mixture of dimensions"
            f" {sorted(dims)} was given."
        )
    return dims.pop() if dims else None


def _system_dim(hierarchies, dim):
    """
    The system dimension: ``dim`` if given, checked against the coupling
    operators, otherwise the coupling dimension. ``None`` if the hierarchies
    have no coupling operators and ``dim`` is not given, in which case a
    square ``H`` is read as a Hamiltonian.
    """
    coupling_dim = _coupling_dim(hierarchies)
    if dim is None:
        return coupling_dim
    if coupling_dim is not None and coupling_dim != dim:
        raise ValueError(
            f"dim={dim} was given but the bath coupling operators have"
            f" dimension {coupling_dim}."
        )
    return dim


class _HEOMGradients:
    """
    The blocks of the HEOM matrix contributed by a list of exponents.

    Parameters
    ----------
    exponents : list of BathExponent
        The exponents of one hierarchy.
    parity : Parity
        The parity of the operators the matrix acts on.
    """

    def __init__(self, exponents, parity):
        self.exponents = exponents
        self.odd_parity = int(parity)
        self.vk = [exp.vk for exp in exponents]
        self.ck = [exp.ck for exp in exponents]
        self.ck2 = [exp.ck2 for exp in exponents]
        self.sigma_bar_k_offset = [
            exp.sigma_bar_k_offset for exp in exponents
        ]

        # pre-calculate the superoperators required by _grad_prev and
        # _grad_next:
        Qs = [exp.Q for exp in exponents]
        self._spreQ = [spre(op) for op in Qs]
        self._spostQ = [spost(op) for op in Qs]
        self._s_pre_minus_post_Q = [
            self._spreQ[k] - self._spostQ[k] for k in range(len(Qs))
        ]
        self._s_pre_plus_post_Q = [
            self._spreQ[k] + self._spostQ[k] for k in range(len(Qs))
        ]
        if any(exp.fermionic for exp in exponents):
            Qdags = [op.conj().T.tocsr() for op in Qs]
            self._spreQdag = [spre(op) for op in Qdags]
            self._spostQdag = [spost(op) for op in Qdags]
            self._s_pre_minus_post_Qdag = [
                self._spreQdag[k] - self._spostQdag[k]
                for k in range(len(Qs))
            ]
            self._s_pre_plus_post_Qdag = [
                self._spreQdag[k] + self._spostQdag[k]
                for k in range(len(Qs))
            ]

    def damping(self, he_n):
        """ Sum of the frequencies of the excitations of ``he_n``. """
        vk = self.vk
        return sum(he_n[i] * vk[i] for i in range(len(vk)) if he_n[i])

    def _grad_prev(self, he_n, k):
        """ Coupling to the ADO with one fewer excitation of exponent k. """
        if self.exponents[k].fermionic:
            return self._grad_prev_fermionic(he_n, k)
        else:
            return self._grad_prev_bosonic(he_n, k)

    def _grad_prev_bosonic(self, he_n, k):
        exp_type = self.exponents[k].type
        if exp_type == BathExponent.types.R:
            op = (-1j * he_n[k] * self.ck[k]) * self._s_pre_minus_post_Q[k]
        elif exp_type == BathExponent.types.I:
            op = (
                (-1j * he_n[k] * 1j * self.ck[k])
                * self._s_pre_plus_post_Q[k]
            )
        elif exp_type == BathExponent.types.RI:
            term1 = (he_n[k] * -1j * self.ck[k]) * self._s_pre_minus_post_Q[k]
            term2 = (he_n[k] * self.ck2[k]) * self._s_pre_plus_post_Q[k]
            op = term1 + term2
        else:
            raise ValueError(
                f"Unsupported type {exp_type} for exponent {k}"
            )
        return op

    def _fermionic_signs(self, he_n, k):
        n_excite = sum(he_n)
        sign1 = (-1) ** (n_excite + 1 - self.odd_parity)
        n_excite_before_m = sum(he_n[:k])
        sign2 = (-1) ** (n_excite_before_m + self.odd_parity)
        return sign1, sign2

    def _grad_prev_fermionic(self, he_n, k):
        ck = self.ck
        sign1, sign2 = self._fermionic_signs(he_n, k)
        sigma_bar_k = k + self.sigma_bar_k_offset[k]

        exp_type = self.exponents[k].type
        if exp_type == BathExponent.types["+"]:
            op = (
                (-1j * sign2 * ck[k]) * self._spreQdag[k]
                - (-1j * sign2 * sign1 * np.conj(ck[sigma_bar_k]))
                * self._spostQdag[k]
            )
        elif exp_type == BathExponent.types["-"]:
            op = (
                (-1j * sign2 * ck[k]) * self._spreQ[k]
                - (-1j * sign2 * sign1 * np.conj(ck[sigma_bar_k]))
                * self._spostQ[k]
            )
        else:
            raise ValueError(
                f"Unsupported type {exp_type} for exponent {k}"
            )
        return op

    def _grad_next(self, he_n, k):
        """ Coupling to the ADO with one more excitation of exponent k. """
        if self.exponents[k].fermionic:
            return self._grad_next_fermionic(he_n, k)
        else:
            return self._grad_next_bosonic(he_n, k)

    def _grad_next_bosonic(self, he_n, k):
        return -1j * self._s_pre_minus_post_Q[k]

    def _grad_next_fermionic(self, he_n, k):
        sign1, sign2 = self._fermionic_signs(he_n, k)

        exp_type = self.exponents[k].type
        if exp_type == BathExponent.types["+"]:
            if sign1 == -1:
                op = (-1j * sign2) * self._s_pre_minus_post_Q[k]
            else:
                op = (-1j * sign2) * self._s_pre_plus_post_Q[k]
        elif exp_type == BathExponent.types["-"]:
            if sign1 == -1:
                op = (-1j * sign2) * self._s_pre_minus_post_Qdag[k]
            else:
                op = (-1j * sign2) * self._s_pre_plus_post_Qdag[k]
        else:
            raise ValueError(
                f"Unsupported type {exp_type} for exponent {k}"
            )
        return op

    def edges(self, hierarchy, he_n):
        """
        Yield ``(he_idx, op)`` for every ADO coupled to ``he_n`` within
        ``hierarchy``.
        """
        for k in range(len(self.exponents)):
            next_he = hierarchy.next(he_n, k)
            if next_he is not None:
                yield hierarchy.idx(next_he), self._grad_next(he_n, k)
            prev_he = hierarchy.prev(he_n, k)
            if prev_he is not None:
                yield hierarchy.idx(prev_he), self._grad_prev(he_n, k)


class _GatherHEOMRHS:
    """ A class for collecting the blocks of the HEOM matrix.

        Parameters
        ----------
        block : int
            The size of a single ADO Liouvillian operator in the hierarchy.
        nhe : int
            The number of ADOs in the hierarchy.
    """

    def __init__(self, block, nhe):
        self._block_size = block
        self._n_blocks = nhe
        self._ops = []

    def add_op(self, row_he, col_he, op):
        """ Add a block operator to the list. """
        self._ops.append((row_he, col_he, op))

    def extend(self, ops):
        self._ops.extend(ops)

    def gather(self):
        """ Create the HEOM Liouvillian from the list of blocks.

            .. note::

                The list of operators contains tuples of the form
                ``(row_idx, col_idx, op)``. The row_idx and col_idx give the
                *block* row and column for each op. An operator with
                block indices ``(N, M)`` is placed at position
                ``[N * block: (N + 1) * block, M * block: (M + 1) * block]``
                in the output matrix.

            Returns
            -------
            rhs : csr_matrix
                A combined matrix of shape ``(block * nhe, block * nhe)``.
        """
        block = self._block_size
        size = block * self._n_blocks
        rows, cols, vals = [], [], []
        for row_he, col_he, op in self._ops:
            op = op.tocoo()
            rows.append(op.row + row_he * block)
            cols.append(op.col + col_he * block)
            vals.append(op.data)
        if not self._ops:
            return sp.csr_matrix((size, size), dtype=complex)
        rhs = sp.coo_matrix(
            (
                np.concatenate(vals).astype(complex),
                (np.concatenate(rows), np.concatenate(cols)),
            ),
            shape=(size, size),
        ).tocsr()
        rhs.eliminate_zeros()
        rhs.sort_indices()
        return rhs


def _check_slice(key, size, axis):
    if isinstance(key, slice):
        for bound in (key.start, key.stop):
            if bound is not None and not -size <= bound <= size:
                raise IndexError(
                    f"Slice bound {bound} on axis {axis} is out of range"
                    f" for size {size}."
                )
    elif isinstance(key, (int, np.integer)):
        if not 0 <= key < size:
            raise IndexError(
                f"Index {key} on axis {axis} is out of range, the valid range"
                f" is 0 <= index < {size}."
            )
    else:
        raise TypeError(
            f"Matrix indices must be integers or slices, not"
            f" {type(key).__name__}."
        )


class HEOMMatrix:
    """
    Base class of the HEOM Liouvillian superoperator matrices.

    Attributes
    ----------
    data : csr_matrix
        The matrix of shape ``(N * dim**2, N * dim**2)``.

    dim : int
        The dimension of the system Hilbert space.

    N : int
        The number of ADOs.

    sup_dim : int
        ``dim**2``, the size of a single block.

    parity : Parity
        The parity of the operators the matrix acts on.

    btier, ftier : int
        The tiers of the bosonic and fermionic hierarchies (0 when absent).

    stats : dict
        Construction timings.
    """
    btier = 0
    ftier = 0

    def __init__(self, data, dim, N, parity=EVEN):
        self.data = data
        self._dim = dim
        self._N = N
        self._parity = Parity.coerce(parity)
        self.stats = {}

    @property
    def dim(self):
        return self._dim

    @property
    def N(self):
        return self._N

    @property
    def parity(self):
        return self._parity

    @property
    def sup_dim(self):
        return self._dim ** 2

    @property
    def shape(self):
        return self.data.shape

    @property
    def nnz(self):
        return self.data.nnz

    def __getitem__(self, key):
        if not isinstance(key, tuple) or len(key) != 2:
            raise IndexError("HEOM matrices are indexed by a pair [i, j].")
        for axis, (k, size) in enumerate(zip(key, self.shape)):
            _check_slice(k, size, axis)
        return self.data[key]

    def __repr__(self):
        return (
            f"<{self.__class__.__name__} shape={self.shape} nnz={self.nnz}"
            f" dim={self.dim} N={self.N} parity={self.parity}"
            f" btier={self.btier} ftier={self.ftier}>"
        )

    def _assemble(self, node_ops, options):
        """
        Build the matrix from ``node_ops(idx) -> list of (row, col, op)``
        applied to every ADO index.
        """
        _time_start = time()
        options = _default_options.merge(options)
        N = self._N
        ops = _GatherHEOMRHS(self.sup_dim, N)
        pbar = make_progress_bar(
            options["progress_bar"], N, **options["progress_kwargs"]
        )

        num_workers = options["num_workers"] or settings.num_cpus
        num_workers = max(1, min(num_workers, N))
        if num_workers == 1:
            for idx in range(N):
                ops.extend(node_ops(idx))
                pbar.update()
        else:
            bounds = np.linspace(0, N, num_workers + 1).astype(int)
            chunks = [
                range(start, stop)
                for start, stop in zip(bounds[:-1], bounds[1:])
            ]

            def _chunk_ops(chunk):
                chunk_ops = []
                for idx in chunk:
                    chunk_ops.extend(node_ops(idx))
                return chunk_ops

            with concurrent.futures.ThreadPoolExecutor(
                max_workers=num_workers
            ) as executor:
                futures = [
                    executor.submit(_chunk_ops, chunk) for chunk in chunks
                ]
                # concatenating in chunk order keeps the serial block order
                for chunk, future in zip(chunks, futures):
                    ops.extend(future.result())
                    for _ in chunk:
                        pbar.update()
        pbar.finished()

        self.data = ops.gather()
        self.stats["init rhs time"] = time() - _time_start
        self.stats["num_workers"] = num_workers
        logger.info(
            "Constructed %s with %d ADOs, shape %s and %d nonzeros.",
            self.__class__.__name__, N, self.shape, self.nnz,
        )


class SystemMatrix(HEOMMatrix):
    """
    The Liouvillian of the system alone, i.e. a hierarchy with a single ADO.

    Parameters
    ----------
    H : array_like or scipy sparse matrix
        The system Hamiltonian or Liouvillian. A Liouvillian requires
        ``dim``.

    parity : Parity, default EVEN
        The parity of the operators the matrix acts on.

    dim : int, optional
        The system dimension.
    """

    def __init__(self, H, parity=EVEN, *, dim=None):
        L_sys, dim = _system_liouvillian(H, dim)
        super().__init__(L_sys, dim, 1, parity)
        logger.info("Constructed SystemMatrix with dim %d.", dim)


class BosonMatrix(HEOMMatrix):
    """
    The HEOM Liouvillian for a system coupled to bosonic baths.

    Parameters
    ----------
    H : array_like or scipy sparse matrix
        The system Hamiltonian or Liouvillian.

    tier : int
        The maximum level of the hierarchy.

    baths : BosonicBath or list of BosonicBath
        The baths.

    parity : Parity, default EVEN
        The parity of the operators the matrix acts on.

    options : dict, optional
        Construction options, see ``heom_matrix._default_options``.

    dim : int, optional
        The system dimension. Required to pass a Liouvillian when there are
        no bath exponents to take it from.

    Attributes
    ----------
    hierarchy : HierarchyDict
        The ADO labels.

    baths : list of Bath
        The baths.
    """

    def __init__(
        self, H, tier, baths, *, parity=EVEN, options=None, dim=None,
    ):
        _time_start = time()
        self.hierarchy = HierarchyDict(baths, tier, fermionic=False)
        self.baths = self.hierarchy.baths
        self.btier = self.hierarchy.tier
        L_sys, dim = _system_liouvillian(
            H, _system_dim([self.hierarchy], dim),
        )
        super().__init__(None, dim, self.hierarchy.N, parity)
        self.stats["init ados time"] = time() - _time_start

        self.L_sys = L_sys
        self._sId = sp.identity(self.sup_dim, dtype=complex, format="csr")
        self._grads = _HEOMGradients(self.hierarchy.exponents, self.parity)
        self._assemble(self._node_ops, options)

    def _node_ops(self, idx):
        hierarchy = self.hierarchy
        he_n = hierarchy.idx2nvec[idx]
        vk_sum = self._grads.damping(he_n)
        ops = [(idx, idx, self.L_sys - vk_sum * self._sId)]
        for col, op in self._grads.edges(hierarchy, he_n):
            ops.append((idx, col, op))
        return ops


class FermionMatrix(HEOMMatrix):
    """
    The HEOM Liouvillian for a system coupled to fermionic baths.

    Parameters
    ----------
    H : array_like or scipy sparse matrix
        The system Hamiltonian or Liouvillian.

    tier : int
        The maximum level of the hierarchy.

    baths : FermionicBath or list of FermionicBath
        The baths.

    parity : Parity, default EVEN
        The parity of the operators the matrix acts on.

    options : dict, optional
        Construction options, see ``heom_matrix._default_options``.

    dim : int, optional
        The system dimension. Required to pass a Liouvillian when there are
        no bath exponents to take it from.
    """

    def __init__(
        self, H, tier, baths, *, parity=EVEN, options=None, dim=None,
    ):
        _time_start = time()
        self.hierarchy = HierarchyDict(baths, tier, fermionic=True)
        self.baths = self.hierarchy.baths
        self.ftier = self.hierarchy.tier
        L_sys, dim = _system_liouvillian(
            H, _system_dim([self.hierarchy], dim),
        )
        super().__init__(None, dim, self.hierarchy.N, parity)
        self.stats["init ados time"] = time() - _time_start

        self.L_sys = L_sys
        self._sId = sp.identity(self.sup_dim, dtype=complex, format="csr")
        self._grads = _HEOMGradients(self.hierarchy.exponents, self.parity)
        self._assemble(self._node_ops, options)

    def _node_ops(self, idx):
        hierarchy = self.hierarchy
        he_n = hierarchy.idx2nvec[idx]
        vk_sum = self._grads.damping(he_n)
        ops = [(idx, idx, self.L_sys - vk_sum * self._sId)]
        for col, op in self._grads.edges(hierarchy, he_n):
            ops.append((idx, col, op))
        return ops


class BosonFermionMatrix(HEOMMatrix):
    """
    The HEOM Liouvillian for a system coupled to both bosonic and fermionic
    baths. The bosonic and fermionic hierarchies are truncated at their own
    tiers and the ADO with bosonic index ``ib`` and fermionic index ``if_``
    has index ``ib * Nf + if_``.

    Parameters
    ----------
    H : array_like or scipy sparse matrix
        The system Hamiltonian or Liouvillian.

    btier, ftier : int
        The maximum levels of the bosonic and fermionic hierarchies.

    bbaths : BosonicBath or list of BosonicBath
        The bosonic baths.

    fbaths : FermionicBath or list of FermionicBath
        The fermionic baths.

    parity : Parity, default EVEN
        The parity of the operators the matrix acts on.

    options : dict, optional
        Construction options, see ``heom_matrix._default_options``.

    dim : int, optional
        The system dimension. Required to pass a Liouvillian when there are
        no bath exponents to take it from.
    """

    def __init__(
        self, H, btier, ftier, bbaths, fbaths, *, parity=EVEN, options=None,
        dim=None,
    ):
        _time_start = time()
        self.hierarchy_b = HierarchyDict(bbaths, btier, fermionic=False)
        self.hierarchy_f = HierarchyDict(fbaths, ftier, fermionic=True)
        self.hierarchy = MixHierarchyDict(self.hierarchy_b, self.hierarchy_f)
        self.bbaths = self.hierarchy_b.baths
        self.fbaths = self.hierarchy_f.baths
        self.btier = self.hierarchy_b.tier
        self.ftier = self.hierarchy_f.tier
        L_sys, dim = _system_liouvillian(
            H, _system_dim([self.hierarchy_b, self.hierarchy_f], dim),
        )
        super().__init__(None, dim, self.hierarchy.N, parity)
        self.stats["init ados time"] = time() - _time_start

        self.L_sys = L_sys
        self._sId = sp.identity(self.sup_dim, dtype=complex, format="csr")
        self._grads_b = _HEOMGradients(
            self.hierarchy_b.exponents, self.parity,
        )
        self._grads_f = _HEOMGradients(
            self.hierarchy_f.exponents, self.parity,
        )
        self._assemble(self._node_ops, options)

    @property
    def Nb(self):
        return self.hierarchy.Nb

    @property
    def Nf(self):
        return self.hierarchy.Nf

    def _node_ops(self, idx):
        join = self.hierarchy.join
        ib, if_ = self.hierarchy.split(idx)
        he_b = self.hierarchy_b.idx2nvec[ib]
        he_f = self.hierarchy_f.idx2nvec[if_]
        vk_sum = self._grads_b.damping(he_b) + self._grads_f.damping(he_f)
        ops = [(idx, idx, self.L_sys - vk_sum * self._sId)]
        for col_b, op in self._grads_b.edges(self.hierarchy_b, he_b):
            ops.append((idx, join(col_b, if_), op))
        for col_f, op in self._grads_f.edges(self.hierarchy_f, he_f):
            ops.append((idx, join(ib, col_f), op))
        return ops


def _lift(M, op):
    """ Repeat the ``dim**2`` superoperator ``op`` on every diagonal block. """
    return sp.kron(
        sp.identity(M.N, dtype=complex, format="csr"), op, format="csr",
    )


def _jump_list(jump_ops):
    if isinstance(jump_ops, (list, tuple)):
        return list(jump_ops)
    return [jump_ops]


def add_dissipator(M, jump_ops):
    """
    Add Lindblad dissipators to every diagonal block of ``M``, in place.

    Parameters
    ----------
    M : HEOMMatrix
        The matrix to modify.

    jump_ops : operator or list of operators
        The jump operators, each of shape ``(dim, dim)``.
    """
    D = sp.csr_matrix((M.sup_dim, M.sup_dim), dtype=complex)
    for J in _jump_list(jump_ops):
        D = D + lindblad_dissipator(to_operator(J, M.dim, "jump operator"))
    M.data = (M.data + _lift(M, D)).tocsr()
    logger.debug("Added dissipator, nnz is now %d.", M.nnz)


def add_fermion_dissipator(M, jump_ops):
    """
    Add fermionic Lindblad dissipators to every diagonal block of ``M``, in
    place. The ``J rho J^dag`` term changes sign when ``M`` acts on
    odd-parity operators.

    Parameters
    ----------
    M : HEOMMatrix
        The matrix to modify.

    jump_ops : operator or list of operators
        The fermionic jump operators, each of shape ``(dim, dim)``.
    """
    sign = -1 if M.parity == ODD else 1
    D = sp.csr_matrix((M.sup_dim, M.sup_dim), dtype=complex)
    for J in _jump_list(jump_ops):
        D = D + lindblad_dissipator(
            to_operator(J, M.dim, "jump operator"), sign=sign,
        )
    M.data = (M.data + _lift(M, D)).tocsr()
    logger.debug("Added fermionic dissipator, nnz is now %d.", M.nnz)


def add_terminator(M, bath):
    """
    Return a copy of ``M`` with the terminator of ``bath`` added to every
    diagonal block. The terminator approximates the contribution of the
    exponents beyond the truncation of the bath expansion.

    Parameters
    ----------
    M : BosonMatrix or BosonFermionMatrix
        The matrix.

    bath : DrudeLorentzPadeBath
        A bath that provides ``terminator()``.

    Returns
    -------
    HEOMMatrix
        A new matrix of the same class as ``M``.
    """
    if not isinstance(M, (BosonMatrix, BosonFermionMatrix)):
        raise TypeError(
            f"Terminators can only be added to matrices with a bosonic"
            f" hierarchy, not {type(M).__name__}."
        )
    terminator = getattr(bath, "terminator", None)
    if not callable(terminator):
        raise ValueError(
            f"The bath {type(bath).__name__} does not provide a terminator."
        )
    _, L_bnd = terminator()
    if L_bnd.shape != (M.sup_dim, M.sup_dim):
        raise ValueError(
            f"The terminator has shape {L_bnd.shape} but the system"
            f" dimension is {M.dim}."
        )
    new = copy.copy(M)
    new.stats = dict(M.stats)
    new.data = (M.data + _lift(M, L_bnd)).tocsr()
    return new
