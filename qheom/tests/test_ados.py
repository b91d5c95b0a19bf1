"""
Tests for qheom.ados and qheom.parity.
"""

import numpy as np
import pytest

from qheom import (
    ADOs,
    HEOMSuperOp,
    BosonMatrix,
    EVEN,
    ODD,
    Parity,
    expect,
    get_ado,
    get_rho,
    trace_functional,
)


def mk_ados(dim=2, N=3, parity=EVEN):
    data = np.arange(N * dim**2, dtype=complex) + 1j
    return ADOs(data, N, parity)


class TestParity:
    def test_multiplication(self):
        assert EVEN * EVEN == EVEN
        assert EVEN * ODD == ODD
        assert ODD * EVEN == ODD
        assert ODD * ODD == EVEN

    def test_int_and_str(self):
        assert int(EVEN) == 0
        assert int(ODD) == 1
        assert str(ODD) == "ODD"
        assert repr(EVEN) == "EVEN"

    @pytest.mark.parametrize(["value", "expected"], [
        pytest.param(EVEN, EVEN, id="member"),
        pytest.param("odd", ODD, id="name"),
        pytest.param("EVEN", EVEN, id="upper-name"),
        pytest.param(1, ODD, id="value"),
        pytest.param(False, EVEN, id="bool"),
    ])
    def test_coerce(self, value, expected):
        assert Parity.coerce(value) is expected

    @pytest.mark.parametrize("value", ["batman", 2, None, 0.5])
    def test_coerce_invalid(self, value):
        with pytest.raises(ValueError):
            Parity.coerce(value)


class TestADOs:
    def test_create(self):
        ados = ADOs(np.zeros(20), 5)
        assert ados.dim == 2
        assert ados.N == len(ados) == 5
        assert ados.parity == EVEN
        assert ados.data.dtype == complex
        assert repr(ados) == "<ADOs dim=2 N=5 parity=EVEN>"

    def test_iterate_zero_blocks(self):
        ados = ADOs(np.zeros(20), 5)
        blocks = list(ados)
        assert len(blocks) == 5
        for ado in blocks:
            np.testing.assert_array_equal(ado, np.zeros((2, 2)))

    def test_column_stacked_blocks(self):
        ados = mk_ados()
        np.testing.assert_array_equal(
            ados[1], np.array([[4, 6], [5, 7]]) + 1j,
        )
        np.testing.assert_array_equal(get_ado(ados, 1), ados[1])
        np.testing.assert_array_equal(get_rho(ados), ados[0])

    def test_slice(self):
        ados = mk_ados()
        blocks = ados[1:]
        assert len(blocks) == 2
        np.testing.assert_array_equal(blocks[1], ados[2])

    def test_index_out_of_range(self):
        ados = ADOs(np.zeros(20), 5)
        with pytest.raises(IndexError) as err:
            ados[5]
        assert str(err.value) == (
            "ADO index 5 is out of range, the valid range is 0 <= idx < 5."
        )
        with pytest.raises(IndexError):
            ados[-1]
        with pytest.raises(TypeError):
            ados["0"]

    def test_from_rho(self):
        rho = np.array([[0.64, 0.1j], [-0.1j, 0.36]])
        ados = ADOs.from_rho(rho, N=4, parity=ODD)
        assert ados.N == 4
        assert ados.parity == ODD
        np.testing.assert_array_equal(get_rho(ados), rho)
        np.testing.assert_array_equal(ados.data[4:], 0)

    def test_column_vector_accepted(self):
        ados = ADOs(np.ones((8, 1)), 2)
        assert ados.data.shape == (8,)

    @pytest.mark.parametrize(["data", "N"], [
        pytest.param(np.zeros(7), 1, id="not-square"),
        pytest.param(np.zeros(20), 3, id="not-divisible"),
        pytest.param(np.zeros((4, 4)), 1, id="matrix"),
        pytest.param(np.zeros(4), 0, id="no-ados"),
    ])
    def test_invalid(self, data, N):
        with pytest.raises(ValueError):
            ADOs(data, N)

    def test_data_setter(self):
        ados = ADOs(np.zeros(8), 2)
        ados.data = np.ones(8)
        np.testing.assert_array_equal(ados.data, np.ones(8))
        with pytest.raises(ValueError):
            ados.data = np.ones(4)

    def test_read_only_attributes(self):
        ados = ADOs(np.zeros(8), 2)
        for attr in ["dim", "N", "parity"]:
            with pytest.raises(AttributeError):
                setattr(ados, attr, 1)


class TestTraceFunctional:
    def test_trace(self):
        ados = mk_ados(dim=3, N=2)
        tr = trace_functional(3, 2)
        assert tr.shape == (1, 18)
        assert (tr @ ados.data)[0] == pytest.approx(np.trace(ados[0]))


class TestHEOMSuperOp:
    def test_left_and_right(self):
        op = np.array([[1, 2], [3, 4]])
        ados = mk_ados()
        left = HEOMSuperOp(op, EVEN, ados, "L") * ados
        right = HEOMSuperOp(op, EVEN, ados, "R") * ados
        for i in range(ados.N):
            np.testing.assert_allclose(left[i], op @ ados[i])
            np.testing.assert_allclose(right[i], ados[i] @ op)

    def test_parity_product(self):
        ados = mk_ados(parity=ODD)
        result = HEOMSuperOp(np.eye(2), ODD, ados) * ados
        assert result.parity == EVEN
        result = HEOMSuperOp(np.eye(2), EVEN, ados) * ados
        assert result.parity == ODD

    def test_reference_from_dim_and_N(self):
        superop = HEOMSuperOp(np.eye(2), EVEN, (2, 3))
        assert superop.data.shape == (12, 12)
        assert repr(superop) == (
            "<HEOMSuperOp mode=L dim=2 N=3 parity=EVEN>"
        )

    def test_reference_from_matrix(self, model, quiet):
        M = BosonMatrix(model.H, 1, model.bosonic_bath(Nk=1), options=quiet)
        superop = HEOMSuperOp(model.Q, EVEN, M)
        assert superop.data.shape == M.shape

    def test_mismatched_ados(self):
        superop = HEOMSuperOp(np.eye(2), EVEN, (2, 3))
        with pytest.raises(ValueError):
            superop * mk_ados(N=2)

    def test_invalid_mode(self):
        with pytest.raises(ValueError):
            HEOMSuperOp(np.eye(2), EVEN, (2, 3), "X")

    def test_invalid_reference(self):
        with pytest.raises(TypeError):
            HEOMSuperOp(np.eye(2), EVEN, "batman")


class TestExpect:
    def test_single_ados(self):
        rho = np.array([[0.64, 0.1 + 0.2j], [0.1 - 0.2j, 0.36]])
        ados = ADOs.from_rho(rho, N=3)
        sz = np.diag([1, -1])
        assert expect(sz, ados) == pytest.approx(0.28)
        sx = np.array([[0, 1], [1, 0]])
        assert expect(sx, ados) == pytest.approx(0.2)

    def test_complex_value(self):
        rho = np.array([[0.64, 0.1 + 0.2j], [0.1 - 0.2j, 0.36]])
        ados = ADOs.from_rho(rho)
        projector = np.array([[0, 1], [0, 0]])
        value = expect(projector, ados, take_real=False)
        assert value == pytest.approx(0.1 - 0.2j)
        assert expect(projector, ados) == pytest.approx(0.1)

    def test_list_of_ados(self):
        ados_list = [
            ADOs.from_rho(np.diag([p, 1 - p]), N=2) for p in [0.1, 0.5, 0.9]
        ]
        values = expect(np.diag([1, -1]), ados_list)
        np.testing.assert_allclose(values, [-0.8, 0.0, 0.8], atol=1e-14)

    def test_superoperator_matches_plain_operator(self):
        ados = mk_ados(N=3)
        op = np.array([[0.5, 1j], [-1j, 2.0]])
        plain = expect(op, ados, take_real=False)
        superop = expect(
            HEOMSuperOp(op, EVEN, ados), ados, take_real=False,
        )
        assert superop == plain
        values = expect(
            HEOMSuperOp(op, EVEN, ados), [ados, ados], take_real=False,
        )
        np.testing.assert_array_equal(values, [plain, plain])

    def test_all_paths_agree_exactly(self):
        rng = np.random.default_rng(42)
        data = rng.normal(size=36) + 1j * rng.normal(size=36)
        ados = ADOs(data, 4)
        for _ in range(50):
            op = rng.normal(size=(3, 3)) + 1j * rng.normal(size=(3, 3))
            plain = expect(op, ados, take_real=False)
            superop = expect(
                HEOMSuperOp(op, EVEN, ados), ados, take_real=False,
            )
            listed = expect(op, [ados], take_real=False)
            assert superop == plain
            assert listed[0] == plain
            assert plain == pytest.approx(np.trace(op @ get_rho(ados)))

    def test_empty_list(self):
        with pytest.raises(ValueError):
            expect(np.eye(2), [])

    def test_mismatched_list(self):
        with pytest.raises(ValueError):
            expect(np.eye(2), [mk_ados(N=2), mk_ados(N=3)])

    def test_dimension_mismatch(self):
        with pytest.raises(ValueError):
            expect(np.eye(3), mk_ados())
