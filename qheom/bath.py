"""
Bath descriptions consumed by the HEOM matrix builders. A bath is an ordered
list of exponents ``c_k exp(-v_k t)`` whose sum approximates its correlation
function.

The Padé decompositions follow Hu, Xu and Yan, J. Chem. Phys. 134, 244106
(2011); https://doi.org/10.1063/1.3602466
"""

import enum

import numpy as np
from scipy.linalg import eigvalsh

from .superoperator import spre, spost, to_operator

__all__ = [
    "BathExponent",
    "Bath",
    "BosonicBath",
    "DrudeLorentzPadeBath",
    "FermionicBath",
    "LorentzianPadeBath",
]


class BathExponent:
    """
    One term ``ck * exp(-vk * t)`` of a bath correlation function.

    Parameters
    ----------
    type : {"R", "I", "RI", "+", "-"} or BathExponent.types
        Bosonic terms belong to the real ("R") or imaginary ("I") part of the
        correlation function, or to both ("RI", with the imaginary
        coefficient in ``ck2``). Fermionic terms are absorption ("+") or
        emission ("-") terms.

    dim : int or None
        Maximum occupation of the mode, ``2`` for fermions and ``None``
        (unbounded) for bosons.

    Q : array_like, sparse matrix or None
        The system coupling operator, stored as CSR.

    ck, vk : complex
        Coefficient and decay rate.

    ck2 : complex, optional
        Imaginary-part coefficient. Required for, and only allowed on, "RI"
        terms.

    sigma_bar_k_offset : int, optional
        Position of the partner term of opposite sign relative to this one
        in its bath. Required for, and only allowed on, "+" and "-" terms.

    tag : object, optional
        A label, usually naming the bath.
    """
    types = enum.Enum(
        "ExponentType", ["R", "I", "RI", "+", "-"],
        module=__name__, qualname="BathExponent.types",
    )

    def __init__(
            self, type, dim, Q, ck, vk, ck2=None, sigma_bar_k_offset=None,
            tag=None,
    ):
        if not isinstance(type, self.types):
            type = self.types[type]
        fermionic = type in (self.types["+"], self.types["-"])
        if (type is self.types.RI) != (ck2 is not None):
            raise ValueError(
                f"ck2 is required for RI exponents and not accepted for"
                f" {type.name} exponents."
            )
        if fermionic != (sigma_bar_k_offset is not None):
            raise ValueError(
                f"sigma_bar_k_offset is required for + and - exponents and"
                f" not accepted for {type.name} exponents."
            )
        self.type = type
        self.dim = dim
        if Q is not None:
            Q = to_operator(Q, name="coupling operator Q")
        self.Q = Q
        self.ck = ck
        self.vk = vk
        self.ck2 = ck2
        self.sigma_bar_k_offset = sigma_bar_k_offset
        self.tag = tag

    @property
    def fermionic(self):
        return self.type in (self.types["+"], self.types["-"])

    def __repr__(self):
        return (
            f"<{self.__class__.__name__} type={self.type.name}"
            f" dim={self.dim!r}"
            f" Q.shape={getattr(self.Q, 'shape', None)!r}"
            f" ck={self.ck!r} vk={self.vk!r} ck2={self.ck2!r}"
            f" sigma_bar_k_offset={self.sigma_bar_k_offset!r}"
            f" tag={self.tag!r}>"
        )


class Bath:
    """
    An ordered sequence of :class:`BathExponent`. ``len``, indexing and
    iteration go through to ``exponents``.
    """
    def __init__(self, exponents):
        self.exponents = list(exponents)

    @property
    def fermionic(self):
        """ True for a non-empty bath of "+"/"-" exponents only. """
        return bool(self.exponents) and all(
            exp.fermionic for exp in self.exponents
        )

    @property
    def bosonic(self):
        """ True for a non-empty bath without "+"/"-" exponents. """
        return bool(self.exponents) and not any(
            exp.fermionic for exp in self.exponents
        )

    def __len__(self):
        return len(self.exponents)

    def __getitem__(self, k):
        return self.exponents[k]

    def __iter__(self):
        return iter(self.exponents)

    def __repr__(self):
        return f"<{self.__class__.__name__} with {len(self)} exponents>"


def _merge_real_imag(Q, real_terms, imag_terms, tag, rtol=1e-5, atol=1e-7):
    """
    Build the bosonic exponents of ``real_terms`` and ``imag_terms`` (lists of
    ``(ck, vk)``), summing terms of the same part with equal rates and
    turning a real and an imaginary term with equal rates into one "RI" term.
    The order of first appearance is kept, real terms first.
    """
    merged = []  # [vk, ck_real or None, ck_imag or None]
    for part, terms in ((1, real_terms), (2, imag_terms)):
        for ck, vk in terms:
            for entry in merged:
                if np.isclose(entry[0], vk, rtol=rtol, atol=atol):
                    if entry[part] is not None:
                        ck = entry[part] + ck
                    entry[part] = ck
                    break
            else:
                entry = [vk, None, None]
                entry[part] = ck
                merged.append(entry)

    exponents = []
    for vk, ck_r, ck_i in merged:
        if ck_i is None:
            exponents.append(BathExponent("R", None, Q, ck_r, vk, tag=tag))
        elif ck_r is None:
            exponents.append(BathExponent("I", None, Q, ck_i, vk, tag=tag))
        else:
            exponents.append(
                BathExponent("RI", None, Q, ck_r, vk, ck2=ck_i, tag=tag)
            )
    return exponents


class BosonicBath(Bath):
    """
    A bosonic bath with correlation function ``C(t) = C_R(t) + i C_I(t)``
    where::

        C_R(t) = sum(ck_real * exp(-vk_real * t))
        C_I(t) = sum(ck_imag * exp(-vk_imag * t))

    Parameters
    ----------
    Q : array_like or sparse matrix
        The system coupling operator.

    ck_real, vk_real, ck_imag, vk_imag : list of complex
        Coefficients and rates of the two expansions.

    combine : bool, default True
        Merge terms with equal rates. A real and an imaginary term with the
        same rate become a single "RI" exponent, which keeps the hierarchy
        small.

    tag : object, optional
        A label stored on every exponent.
    """
    def __init__(
            self, Q, ck_real, vk_real, ck_imag, vk_imag, combine=True,
            tag=None,
    ):
        if len(ck_real) != len(vk_real) or len(ck_imag) != len(vk_imag):
            raise ValueError(
                "ck_real and vk_real must have the same length, as must"
                " ck_imag and vk_imag."
            )
        Q = to_operator(Q, name="coupling operator Q")
        real_terms = list(zip(ck_real, vk_real))
        imag_terms = list(zip(ck_imag, vk_imag))
        if combine:
            exponents = _merge_real_imag(Q, real_terms, imag_terms, tag)
        else:
            exponents = [
                BathExponent("R", None, Q, ck, vk, tag=tag)
                for ck, vk in real_terms
            ] + [
                BathExponent("I", None, Q, ck, vk, tag=tag)
                for ck, vk in imag_terms
            ]
        super().__init__(exponents)


def _pade_kappa_epsilon(Nk, fermionic):
    """
    Residues ``kappa`` and poles ``epsilon`` of the ``[N-1/N]`` Padé
    decomposition of the Bose or Fermi function. Both lists carry a leading
    zero so that pole ``l`` is at index ``l``.
    """
    shift = 0 if fermionic else 1

    def _poles(size, offset):
        if size <= 1:
            return []
        band = np.array([
            1. / np.sqrt((2 * k + 3 + offset) * (2 * k + 1 + offset))
            for k in range(size - 1)
        ])
        evals = eigvalsh(np.diag(band, 1) + np.diag(band, -1))
        return [-2. / val for val in evals[:size // 2]]

    eps = _poles(2 * Nk, 2 * shift)
    chi = _poles(2 * Nk - 1, 2 + 2 * shift)

    kappa = [0]
    prefactor = 0.5 * Nk * (2 * (Nk + 1) + (1 if shift else -1))
    for j in range(Nk):
        term = prefactor
        for k in range(Nk):
            denom = eps[k]**2 - eps[j]**2 + (1.0 if j == k else 0.0)
            if k < Nk - 1:
                term *= (chi[k]**2 - eps[j]**2) / denom
            else:
                term /= denom
        kappa.append(term)

    return kappa, [0] + eps


class DrudeLorentzPadeBath(BosonicBath):
    """
    A Drude-Lorentz bath, ``J(w) = 2 lam gamma w / (gamma**2 + w**2)``,
    expanded with ``Nk`` Padé terms.

    Parameters
    ----------
    Q : array_like or sparse matrix
        The system coupling operator.

    lam : float
        Reorganization energy (coupling strength).

    gamma : float
        Cutoff frequency.

    T : float
        Temperature.

    Nk : int
        Number of Padé terms.

    combine : bool, default True
        See :class:`BosonicBath`.

    tag : object, optional
        A label stored on every exponent.
    """
    def __init__(self, Q, lam, gamma, T, Nk, combine=True, tag=None):
        beta = 1. / T
        kappa, epsilon = _pade_kappa_epsilon(Nk, fermionic=False)

        ck_real = [lam * gamma / np.tan(gamma * beta / 2.)]
        vk_real = [gamma]
        for l in range(1, Nk + 1):
            nu = epsilon[l] / beta
            ck_real.append(
                4 * kappa[l] * lam * gamma * nu / (beta * (nu**2 - gamma**2))
            )
            vk_real.append(nu)

        super().__init__(
            Q, ck_real, vk_real, [-lam * gamma], [gamma],
            combine=combine, tag=tag,
        )
        self.lam = lam
        self.gamma = gamma
        self.T = T

    def terminator(self):
        """
        Return ``(delta, L)``. ``2 * delta * dirac(t)`` is the part of the
        Drude-Lorentz correlation function missed by the kept exponents, and
        ``L`` is the Liouvillian term that accounts for it.
        """
        delta = 2 * self.lam * self.T / self.gamma - 1j * self.lam
        for exp in self.exponents:
            if exp.type is BathExponent.types.R:
                delta -= exp.ck / exp.vk
            elif exp.type is BathExponent.types.I:
                delta -= 1j * exp.ck / exp.vk
            else:
                delta -= (exp.ck + 1j * exp.ck2) / exp.vk

        Q = self.exponents[0].Q
        Qdag = Q.conj().T.tocsr()
        QdQ = Qdag @ Q
        op = -2 * spre(Q) @ spost(Qdag) + spre(QdQ) + spost(QdQ)
        return delta, (-delta * op).tocsr()


class FermionicBath(Bath):
    """
    A fermionic bath with absorption and emission correlation functions::

        C_+(t) = sum(ck_plus * exp(-vk_plus * t))
        C_-(t) = sum(ck_minus * exp(-vk_minus * t))

    The i-th plus term is paired with the i-th minus term, and the pairs are
    stored interleaved as ``+, -, +, -, ...``.

    Parameters
    ----------
    Q : array_like or sparse matrix
        The system coupling operator (typically an annihilation operator).

    ck_plus, vk_plus, ck_minus, vk_minus : list of complex
        Coefficients and rates of the two expansions.

    tag : object, optional
        A label stored on every exponent.
    """
    def __init__(self, Q, ck_plus, vk_plus, ck_minus, vk_minus, tag=None):
        if len(ck_plus) != len(vk_plus) or len(ck_minus) != len(vk_minus):
            raise ValueError(
                "ck_plus and vk_plus must have the same length, as must"
                " ck_minus and vk_minus."
            )
        if len(ck_plus) != len(ck_minus):
            raise ValueError(
                f"Every plus term needs a minus partner, but {len(ck_plus)}"
                f" plus and {len(ck_minus)} minus terms were given."
            )
        Q = to_operator(Q, name="coupling operator Q")
        exponents = []
        for ckp, vkp, ckm, vkm in zip(ck_plus, vk_plus, ck_minus, vk_minus):
            exponents.append(BathExponent(
                "+", 2, Q, ckp, vkp, sigma_bar_k_offset=1, tag=tag,
            ))
            exponents.append(BathExponent(
                "-", 2, Q, ckm, vkm, sigma_bar_k_offset=-1, tag=tag,
            ))
        super().__init__(exponents)


class LorentzianPadeBath(FermionicBath):
    """
    A fermionic bath with a Lorentzian spectral density of width ``w`` and
    coupling ``gamma``, centred on chemical potential ``mu``, expanded with
    ``Nk`` Padé terms per sign (``Nk + 1`` pairs in total).
    """
    def __init__(self, Q, gamma, w, mu, T, Nk, tag=None):
        beta = 1. / T
        kappa, epsilon = _pade_kappa_epsilon(Nk, fermionic=True)

        # Padé approximant of the Fermi function at the Lorentzian pole
        x = 1.0j * beta * w
        fermi = 0.5 - sum(
            2 * kappa[l] * x / (x**2 + epsilon[l]**2) for l in range(1, Nk + 1)
        )
        cks = [0.5 * gamma * w * fermi]
        rates = [w]
        for l in range(1, Nk + 1):
            nu = epsilon[l] / beta
            cks.append(
                -1.0j * kappa[l] * gamma * w**2 / (beta * (w**2 - nu**2))
            )
            rates.append(nu)

        super().__init__(
            Q,
            cks, [v - 1.0j * mu for v in rates],
            cks, [v + 1.0j * mu for v in rates],
            tag=tag,
        )
