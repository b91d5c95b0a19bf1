"""
Enumeration and indexing of the auxiliary density operators (ADOs) of the
hierarchy.

Each ADO is labelled by a tier vector ``nvec`` that lists the number of
"excitations" of each bath exponent. The level of a label is the sum of its
entries. The label ``(0, 0, ..., 0)`` is the system density matrix and always
has index 0. Labels are enumerated level by level so that the indices of a
level form a contiguous range.
"""

import itertools
from math import comb

import numpy as np

from .bath import Bath
from .logging_utils import get_logger

__all__ = [
    "HierarchyDict",
    "MixHierarchyDict",
    "boson_hierarchy_size",
    "fermion_hierarchy_size",
]

logger = get_logger(__name__)


def boson_hierarchy_size(n_terms, tier):
    """
    Number of bosonic tier vectors with ``n_terms`` entries summing to at
    most ``tier``.
    """
    return comb(n_terms + tier, tier)


def fermion_hierarchy_size(n_terms, tier):
    """
    Number of fermionic tier vectors (entries 0 or 1) with ``n_terms``
    entries summing to at most ``tier``.
    """
    return sum(comb(n_terms, k) for k in range(min(tier, n_terms) + 1))


def _check_tier(tier):
    if isinstance(tier, bool) or not isinstance(tier, (int, np.integer)):
        raise TypeError(
            f"The hierarchy tier must be an integer, not"
            f" {type(tier).__name__}."
        )
    if tier < 0:
        raise ValueError(
            f"The hierarchy tier must be non-negative, but {tier} was given."
        )
    return int(tier)


def _bath_list(baths):
    if isinstance(baths, Bath):
        return [baths]
    baths = list(baths)
    for bath in baths:
        if not isinstance(bath, Bath):
            raise TypeError(
                f"Expected a Bath or a list of Bath, but got an item of type"
                f" {type(bath).__name__}."
            )
    return baths


class HierarchyDict:
    """
    The ADO labels of a purely bosonic or purely fermionic hierarchy.

    Parameters
    ----------
    baths : Bath or list of Bath
        The baths of the hierarchy. All exponents must be bosonic, or all
        fermionic if ``fermionic`` is True.

    tier : int
        The maximum level of the hierarchy.

    fermionic : bool, default False
        Whether this is a fermionic hierarchy. Fermionic exponents can be
        excited at most once.

    Attributes
    ----------
    baths : list of Bath
        The baths of the hierarchy.

    tier : int
        The maximum level of the hierarchy.

    exponents : list of BathExponent
        The exponents of all baths, in order. These are the same objects as
        those held by the baths.

    bath_ptr : list of (int, int)
        For each entry of a tier vector, the index of its bath and the index
        of the exponent within that bath.

    idx2nvec : list of tuple
        The tier vectors, by index.

    nvec2idx : dict
        The index of each tier vector.

    lvl2idx : dict
        The indices of the tier vectors of each level.

    N : int
        The number of ADOs.
    """

    def __init__(self, baths, tier, fermionic=False):
        self.tier = _check_tier(tier)
        self.fermionic = bool(fermionic)
        self.baths = _bath_list(baths)

        for b, bath in enumerate(self.baths):
            expected = bath.fermionic if self.fermionic else bath.bosonic
            if len(bath) and not expected:
                raise ValueError(
                    f"Bath {b} is not "
                    f"{'fermionic' if self.fermionic else 'bosonic'}."
                )

        self.bath_ptr = [
            (b, k) for b, bath in enumerate(self.baths)
            for k in range(len(bath))
        ]
        self.exponents = [exp for bath in self.baths for exp in bath]

        n_terms = len(self.exponents)
        choose = (
            itertools.combinations if self.fermionic
            else itertools.combinations_with_replacement
        )
        self.idx2nvec = []
        self.lvl2idx = {}
        for level in range(self.tier + 1):
            start = len(self.idx2nvec)
            for excited in choose(range(n_terms), level):
                nvec = [0] * n_terms
                for k in excited:
                    nvec[k] += 1
                self.idx2nvec.append(tuple(nvec))
            self.lvl2idx[level] = list(range(start, len(self.idx2nvec)))
        self.nvec2idx = {nvec: i for i, nvec in enumerate(self.idx2nvec)}

        logger.debug(
            "%s hierarchy with %d exponents and tier %d has %d ADOs.",
            "Fermionic" if self.fermionic else "Bosonic",
            n_terms, self.tier, self.N,
        )

    @property
    def N(self):
        return len(self.idx2nvec)

    def __len__(self):
        return len(self.idx2nvec)

    def __repr__(self):
        return (
            f"<{self.__class__.__name__}"
            f" {'fermionic' if self.fermionic else 'bosonic'}"
            f" tier={self.tier} terms={len(self.exponents)} N={self.N}>"
        )

    def idx(self, nvec):
        """
        Return the index of the tier vector ``nvec``. Raises ``KeyError`` if
        ``nvec`` is not part of the hierarchy.
        """
        return self.nvec2idx[tuple(nvec)]

    def nvec(self, idx):
        """ Return the tier vector with index ``idx``. """
        if not 0 <= idx < self.N:
            raise IndexError(
                f"Hierarchy index {idx} is out of range, the valid range is"
                f" 0 <= idx < {self.N}."
            )
        return self.idx2nvec[idx]

    def level(self, nvec):
        return sum(nvec)

    def next(self, nvec, k):
        """
        Return the tier vector with one more excitation of the k'th exponent
        or ``None`` if it would exceed the tier (or, for a fermionic
        hierarchy, excite the exponent twice).
        """
        if sum(nvec) >= self.tier:
            return None
        if self.fermionic and nvec[k] >= 1:
            return None
        return nvec[:k] + (nvec[k] + 1,) + nvec[k + 1:]

    def prev(self, nvec, k):
        """
        Return the tier vector with one fewer excitation of the k'th exponent
        or ``None`` if the exponent is not excited.
        """
        if nvec[k] <= 0:
            return None
        return nvec[:k] + (nvec[k] - 1,) + nvec[k + 1:]

    def ensemble(self, nvec):
        """
        Return the bath pointers ``(bath_index, term_index)`` of the
        excitations of ``nvec``, with one entry per excitation.

        Examples
        --------
        For two baths with two exponents each, ``ensemble((0, 2, 1, 0))``
        returns ``[(0, 1), (0, 1), (1, 0)]``.
        """
        return [
            ptr for n, ptr in zip(nvec, self.bath_ptr) for _ in range(n)
        ]


class MixHierarchyDict:
    """
    The ADO labels of a hierarchy with both bosonic and fermionic baths.

    The labels are pairs of a bosonic and a fermionic tier vector. Each
    sub-hierarchy is truncated at its own tier. Indices are boson-major,
    i.e. the pair with bosonic index ``ib`` and fermionic index ``if_`` has
    index ``ib * Nf + if_``.

    Parameters
    ----------
    bosonic : HierarchyDict
        The bosonic sub-hierarchy.

    fermionic : HierarchyDict
        The fermionic sub-hierarchy.
    """

    def __init__(self, bosonic, fermionic):
        if bosonic.fermionic or not fermionic.fermionic:
            raise ValueError(
                "MixHierarchyDict requires a bosonic and a fermionic"
                " hierarchy, in that order."
            )
        self.bosonic = bosonic
        self.fermionic = fermionic
        self.Nb = bosonic.N
        self.Nf = fermionic.N

        self.idx2nvec = [
            (nvec_b, nvec_f)
            for nvec_b in bosonic.idx2nvec
            for nvec_f in fermionic.idx2nvec
        ]
        self.nvec2idx = {pair: i for i, pair in enumerate(self.idx2nvec)}

        self.lvl2idx = {}
        for lb, b_indices in bosonic.lvl2idx.items():
            for lf, f_indices in fermionic.lvl2idx.items():
                self.lvl2idx[(lb, lf)] = [
                    self.join(ib, if_) for ib in b_indices for if_ in f_indices
                ]

        logger.debug(
            "Mixed hierarchy has %d x %d = %d ADOs.", self.Nb, self.Nf, self.N,
        )

    @property
    def N(self):
        return self.Nb * self.Nf

    def __len__(self):
        return self.N

    def __repr__(self):
        return (
            f"<{self.__class__.__name__} btier={self.bosonic.tier}"
            f" ftier={self.fermionic.tier} Nb={self.Nb} Nf={self.Nf}"
            f" N={self.N}>"
        )

    def join(self, ib, if_):
        """ Combined index of bosonic index ``ib`` and fermionic ``if_``. """
        return ib * self.Nf + if_

    def split(self, idx):
        """ Return the ``(ib, if_)`` pair of the combined index ``idx``. """
        if not 0 <= idx < self.N:
            raise IndexError(
                f"Hierarchy index {idx} is out of range, the valid range is"
                f" 0 <= idx < {self.N}."
            )
        return divmod(idx, self.Nf)

    def idx(self, nvec_b, nvec_f):
        return self.nvec2idx[(tuple(nvec_b), tuple(nvec_f))]

    def nvec(self, idx):
        self.split(idx)
        return self.idx2nvec[idx]
