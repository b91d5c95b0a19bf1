"""
Tests for qheom.heom_matrix.
"""

import numpy as np
import pytest
import scipy.sparse as sp

from qheom import (
    BosonMatrix,
    BosonFermionMatrix,
    FermionMatrix,
    SystemMatrix,
    HEOMMatrix,
    BosonicBath,
    add_dissipator,
    add_fermion_dissipator,
    add_terminator,
    lindblad_dissipator,
    liouvillian,
    EVEN,
    ODD,
)
from qheom.heom_matrix import _GatherHEOMRHS


def build_boson(model, options):
    return BosonMatrix(
        model.H, model.tier, model.bosonic_bath(), options=options,
    )


def build_boson_two_baths(model, options):
    bath = model.bosonic_bath()
    return BosonMatrix(model.H, model.tier, [bath, bath], options=options)


def build_fermion(model, options):
    return FermionMatrix(
        model.H, model.tier, model.fermionic_bath(), options=options,
    )


def build_fermion_two_baths(model, options):
    bath = model.fermionic_bath()
    return FermionMatrix(model.H, model.tier, [bath, bath], options=options)


def build_mixed(model, options):
    return BosonFermionMatrix(
        model.H, 2, 2, model.bosonic_bath(Nk=3), model.fermionic_bath(Nk=3),
        options=options,
    )


def build_mixed_two_bosonic_baths(model, options):
    bbath = model.bosonic_bath(Nk=3)
    return BosonFermionMatrix(
        model.H, 2, 2, [bbath, bbath], model.fermionic_bath(Nk=3),
        options=options,
    )


def build_mixed_two_fermionic_baths(model, options):
    fbath = model.fermionic_bath(Nk=3)
    return BosonFermionMatrix(
        model.H, 2, 2, model.bosonic_bath(Nk=3), [fbath, fbath],
        options=options,
    )


# (builder, N, nnz, nnz after adding the dissipator of model.J)
MATRIX_CASES = [
    pytest.param(build_boson, 84, 4422, 4760, id="boson"),
    pytest.param(build_boson_two_baths, 455, 27662, 29484, id="boson-x2"),
    pytest.param(build_fermion, 299, 21318, 22516, id="fermion"),
    pytest.param(
        build_fermion_two_baths, 2325, 174338, 183640, id="fermion-x2",
        marks=pytest.mark.slow,
    ),
    pytest.param(build_mixed, 555, 43368, 45590, id="mixed"),
    pytest.param(
        build_mixed_two_bosonic_baths, 1665, 139210, 145872,
        id="mixed-boson-x2", marks=pytest.mark.slow,
    ),
    pytest.param(
        build_mixed_two_fermionic_baths, 2055, 167108, 175330,
        id="mixed-fermion-x2", marks=pytest.mark.slow,
    ),
]


class TestMatrixStructure:
    @pytest.mark.parametrize(
        ["builder", "N", "nnz", "nnz_diss"], MATRIX_CASES,
    )
    def test_size_and_nonzeros(
        self, model, quiet, builder, N, nnz, nnz_diss,
    ):
        M = builder(model, quiet)
        assert M.N == N
        assert M.dim == 2
        assert M.sup_dim == 4
        assert M.shape == (4 * N, 4 * N)
        assert M.nnz == nnz
        assert M.parity == EVEN

        add_dissipator(M, model.J)
        assert M.shape == (4 * N, 4 * N)
        assert M.nnz == nnz_diss

    def test_tiers(self, model, quiet):
        M = build_boson(model, quiet)
        assert (M.btier, M.ftier) == (3, 0)
        M = build_fermion(model, quiet)
        assert (M.btier, M.ftier) == (0, 3)
        M = build_mixed(model, quiet)
        assert (M.btier, M.ftier) == (2, 2)
        assert (M.Nb, M.Nf) == (15, 37)

    def test_first_block_is_system_liouvillian(self, model, quiet):
        M = build_boson(model, quiet)
        np.testing.assert_allclose(
            M[0:4, 0:4].toarray(), liouvillian(model.H).toarray(),
        )

    def test_damping_on_diagonal_blocks(self, model, quiet):
        M = build_boson(model, quiet)
        L_sys = liouvillian(model.H).toarray()
        hierarchy = M.hierarchy
        for idx in [1, 7, M.N - 1]:
            nvec = hierarchy.nvec(idx)
            vk_sum = sum(
                n * exp.vk for n, exp in zip(nvec, hierarchy.exponents)
            )
            block = M[4 * idx:4 * idx + 4, 4 * idx:4 * idx + 4].toarray()
            np.testing.assert_allclose(
                block, L_sys - vk_sum * np.eye(4), atol=1e-12,
            )

    def test_couplings_only_between_neighbours(self, model, quiet):
        M = build_boson(model, quiet)
        hierarchy = M.hierarchy
        blocks = sp.csr_matrix(
            (np.ones(M.nnz), M.data.indices, M.data.indptr), shape=M.shape,
        ).tocoo()
        for row, col in zip(blocks.row // 4, blocks.col // 4):
            n1 = np.array(hierarchy.nvec(row))
            n2 = np.array(hierarchy.nvec(col))
            assert np.abs(n1 - n2).sum() in (0, 1)

    def test_hamiltonian_and_liouvillian_input_agree(self, model, quiet):
        bath = model.bosonic_bath()
        M_H = BosonMatrix(model.H, 2, bath, options=quiet)
        M_L = BosonMatrix(liouvillian(model.H), 2, bath, options=quiet)
        assert M_L.dim == 2
        assert (M_H.data != M_L.data).nnz == 0

    def test_parity_changes_fermionic_matrix(self, model, quiet):
        bath = model.fermionic_bath(Nk=2)
        M_even = FermionMatrix(model.H, 2, bath, options=quiet)
        M_odd = FermionMatrix(model.H, 2, bath, parity=ODD, options=quiet)
        assert M_odd.parity == ODD
        assert M_even.shape == M_odd.shape
        assert abs(M_even.data - M_odd.data).max() > 0.1

    def test_parity_from_name(self, model, quiet):
        M = FermionMatrix(
            model.H, 1, model.fermionic_bath(Nk=1), parity="odd",
            options=quiet,
        )
        assert M.parity == ODD

    def test_parallel_assembly_matches_serial(self, model):
        serial = build_mixed(
            model, {"progress_bar": False, "num_workers": 1},
        )
        parallel = build_mixed(
            model, {"progress_bar": False, "num_workers": 3},
        )
        assert serial.stats["num_workers"] == 1
        assert parallel.stats["num_workers"] == 3
        assert parallel.nnz == serial.nnz
        assert (parallel.data != serial.data).nnz == 0

    def test_progress_bar_output(self, model, capsys):
        BosonMatrix(
            model.H, 1, model.bosonic_bath(Nk=1),
            options={"progress_bar": "text"},
        )
        assert "Total run time" in capsys.readouterr().out

    def test_stats(self, model, quiet):
        M = build_boson(model, quiet)
        assert set(M.stats) >= {"init ados time", "init rhs time"}

    def test_repr(self, model, quiet):
        M = build_boson(model, quiet)
        assert repr(M) == (
            "<BosonMatrix shape=(336, 336) nnz=4422 dim=2 N=84 parity=EVEN"
            " btier=3 ftier=0>"
        )


class TestMatrixIndexing:
    def test_element_access(self, model, quiet):
        M = build_boson(model, quiet)
        assert M[0, 1] == M.data[0, 1]
        assert M[0:4, 0:4].shape == (4, 4)

    def test_out_of_bounds(self, model, quiet):
        M = build_boson(model, quiet)
        with pytest.raises(IndexError):
            M[0, 336]
        with pytest.raises(IndexError):
            M[0:337, 335]
        with pytest.raises(IndexError):
            M[336, 0]

    def test_single_index_rejected(self, model, quiet):
        M = build_boson(model, quiet)
        with pytest.raises(IndexError):
            M[0]

    def test_non_integer_index(self, model, quiet):
        M = build_boson(model, quiet)
        with pytest.raises(TypeError):
            M[0.5, 0]


class TestMatrixErrors:
    def test_hamiltonian_not_a_matrix(self, model, quiet):
        with pytest.raises(TypeError):
            BosonMatrix([0, 0], 3, model.bosonic_bath(), options=quiet)

    def test_hamiltonian_dimension_mismatch(self, model, quiet):
        with pytest.raises(ValueError) as err:
            BosonMatrix(np.eye(3), 1, model.bosonic_bath(), options=quiet)
        assert str(err.value) == (
            "The system Hamiltonian or Liouvillian has shape (3, 3), which"
            " matches neither the system dimension 2 nor its square."
        )

    def test_coupling_dimension_mismatch(self, model, quiet):
        bath_2 = model.bosonic_bath(Nk=1)
        bath_3 = BosonicBath(np.eye(3), [1.0], [0.5], [], [])
        with pytest.raises(ValueError) as err:
            BosonMatrix(np.eye(2), 1, [bath_2, bath_3], options=quiet)
        assert str(err.value) == (
            "All bath exponents must have system coupling operators"
            " with the same dimensions but a mixture of dimensions"
            " [2, 3] was given."
        )

    @pytest.mark.parametrize("build", [
        pytest.param(
            lambda H, **kw: BosonMatrix(H, 2, [], **kw), id="boson",
        ),
        pytest.param(
            lambda H, **kw: FermionMatrix(H, 2, [], **kw), id="fermion",
        ),
        pytest.param(
            lambda H, **kw: BosonFermionMatrix(H, 2, 2, [], [], **kw),
            id="mixed",
        ),
    ])
    def test_liouvillian_without_baths(self, model, quiet, build):
        L = liouvillian(model.H)
        M = build(L, dim=2, options=quiet)
        assert (M.dim, M.N) == (2, 1)
        np.testing.assert_array_equal(M.data.toarray(), L.toarray())

        # without dim a 4x4 input is read as a 4-level Hamiltonian
        M = build(L, options=quiet)
        assert (M.dim, M.N) == (4, 1)

    def test_dim_must_match_coupling(self, model, quiet):
        with pytest.raises(ValueError) as err:
            BosonMatrix(
                np.eye(3), 1, model.bosonic_bath(), dim=3, options=quiet,
            )
        assert str(err.value) == (
            "dim=3 was given but the bath coupling operators have"
            " dimension 2."
        )
        M = BosonMatrix(
            liouvillian(model.H), 1, model.bosonic_bath(), dim=2,
            options=quiet,
        )
        assert M.dim == 2

    def test_wrong_bath_kind(self, model, quiet):
        with pytest.raises(ValueError) as err:
            BosonMatrix(model.H, 1, model.fermionic_bath(), options=quiet)
        assert str(err.value) == "Bath 0 is not bosonic."
        with pytest.raises(ValueError) as err:
            FermionMatrix(model.H, 1, model.bosonic_bath(), options=quiet)
        assert str(err.value) == "Bath 0 is not fermionic."

    def test_not_a_bath(self, model, quiet):
        with pytest.raises(TypeError):
            BosonMatrix(model.H, 1, ["bath"], options=quiet)

    @pytest.mark.parametrize(["tier", "error"], [
        pytest.param(-1, ValueError, id="negative"),
        pytest.param(1.5, TypeError, id="float"),
        pytest.param(True, TypeError, id="bool"),
    ])
    def test_invalid_tier(self, model, quiet, tier, error):
        with pytest.raises(error):
            BosonMatrix(model.H, tier, model.bosonic_bath(), options=quiet)

    def test_unknown_option(self, model):
        with pytest.raises(KeyError):
            BosonMatrix(
                model.H, 1, model.bosonic_bath(), options={"batman": True},
            )


class TestSystemMatrix:
    def test_from_hamiltonian(self, model):
        M = SystemMatrix(model.H)
        assert M.N == 1
        assert M.dim == 2
        assert M.shape == (4, 4)
        assert isinstance(M, HEOMMatrix)
        np.testing.assert_allclose(
            M.data.toarray(), liouvillian(model.H).toarray(),
        )

    def test_from_liouvillian(self, model):
        L = liouvillian(model.H, [model.J])
        M = SystemMatrix(L, dim=2)
        assert M.dim == 2
        assert M.N == 1
        assert (M.data != L).nnz == 0


class TestDissipators:
    def test_dissipator_on_every_block(self, model, quiet):
        M = BosonMatrix(model.H, 1, model.bosonic_bath(Nk=1), options=quiet)
        before = M.data.copy()
        assert add_dissipator(M, [model.J]) is None
        D = lindblad_dissipator(model.J).toarray()
        diff = (M.data - before).toarray()
        for idx in range(M.N):
            np.testing.assert_allclose(
                diff[4 * idx:4 * idx + 4, 4 * idx:4 * idx + 4], D,
                atol=1e-14,
            )
        off_diagonal = diff.copy()
        for idx in range(M.N):
            off_diagonal[4 * idx:4 * idx + 4, 4 * idx:4 * idx + 4] = 0
        assert np.all(off_diagonal == 0)

    def test_several_jump_operators(self, model):
        Ja = np.array([[0, 1], [0, 0]])
        Jb = np.array([[0, 0], [1, 0]])
        M = SystemMatrix(model.H)
        add_dissipator(M, [Ja, Jb])
        expected = liouvillian(model.H, [Ja, Jb])
        np.testing.assert_allclose(M.data.toarray(), expected.toarray())

    @pytest.mark.parametrize(["parity", "sign"], [
        pytest.param(EVEN, 1, id="even"),
        pytest.param(ODD, -1, id="odd"),
    ])
    def test_fermion_dissipator_sign(self, model, parity, sign):
        M = SystemMatrix(model.H, parity)
        add_fermion_dissipator(M, model.J)
        expected = (
            liouvillian(model.H) + lindblad_dissipator(model.J, sign=sign)
        )
        np.testing.assert_allclose(M.data.toarray(), expected.toarray())

    def test_jump_operator_dimension_mismatch(self, model):
        M = SystemMatrix(model.H)
        with pytest.raises(ValueError):
            add_dissipator(M, np.eye(3))


class TestTerminator:
    def test_add_terminator(self, model, quiet):
        bath = model.bosonic_bath()
        M = BosonMatrix(model.H, model.tier, bath, options=quiet)
        before = M.data.copy()
        M_term = add_terminator(M, bath)
        assert M_term is not M
        assert isinstance(M_term, BosonMatrix)
        assert (M.data != before).nnz == 0
        assert M_term.shape == M.shape

        _, L_bnd = bath.terminator()
        diff = (M_term.data - M.data).toarray()
        for idx in [0, 1, M.N - 1]:
            np.testing.assert_allclose(
                diff[4 * idx:4 * idx + 4, 4 * idx:4 * idx + 4],
                L_bnd.toarray(), atol=1e-14,
            )

    def test_add_terminator_to_mixed(self, model, quiet):
        bbath = model.bosonic_bath(Nk=3)
        M = BosonFermionMatrix(
            model.H, 2, 2, bbath, model.fermionic_bath(Nk=3), options=quiet,
        )
        M_term = add_terminator(M, bbath)
        assert isinstance(M_term, BosonFermionMatrix)
        assert M_term.N == M.N

    def test_fermion_matrix_rejected(self, model, quiet):
        M = FermionMatrix(model.H, 1, model.fermionic_bath(), options=quiet)
        with pytest.raises(TypeError):
            add_terminator(M, model.bosonic_bath())

    def test_bath_without_terminator(self, model, quiet):
        M = BosonMatrix(model.H, 1, model.bosonic_bath(), options=quiet)
        with pytest.raises(ValueError) as err:
            add_terminator(M, model.fermionic_bath())
        assert str(err.value) == (
            "The bath LorentzianPadeBath does not provide a terminator."
        )


class Test_GatherHEOMRHS:
    def test_simple_gather(self):
        gather_heoms = _GatherHEOMRHS(block=2, nhe=3)

        for i in range(3):
            for j in range(3):
                base = 10 * (j * 2) + (i * 2)
                block_op = sp.csr_matrix(np.array([
                    [base, base + 10],
                    [base + 1, base + 11],
                ]))
                gather_heoms.add_op(i, j, block_op)

        op = gather_heoms.gather()

        expected_op = np.array([
            [10 * i + j for i in range(2 * 3)]
            for j in range(2 * 3)
        ], dtype=np.complex128)

        np.testing.assert_array_equal(op.toarray(), expected_op)
        assert isinstance(op, sp.csr_matrix)

    def test_empty_gather(self):
        op = _GatherHEOMRHS(block=4, nhe=2).gather()
        assert op.shape == (8, 8)
        assert op.nnz == 0
