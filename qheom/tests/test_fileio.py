import uuid

import numpy as np
import pytest

import qheom
from qheom import ADOs, qload, qsave, with_suffix

# qsave _always_ appends a suffix to the file name at the time of writing, but
# to ensure that we never leak a temporary file into the user's folders, we
# simply apply these tests in a temporary directory.
pytestmark = [pytest.mark.usefixtures("in_temporary_directory")]


def _random_file_name():
    return "_" + str(uuid.uuid4())


@pytest.mark.parametrize(["filename", "expected"], [
    pytest.param("data", "data.qu", id="no-suffix"),
    pytest.param("data.qu", "data.qu", id="suffix"),
    pytest.param("data.txt", "data.txt.qu", id="other-suffix"),
])
def test_with_suffix(filename, expected):
    assert with_suffix(filename) == expected


def test_qsave_qload():
    data_in = {
        "ados": [ADOs.from_rho(np.diag([0.25, 0.75]), N=3)],
        "array": np.arange(5),
    }
    filename = _random_file_name()
    assert qsave(data_in, filename) == filename + ".qu"
    data_out = qload(filename)
    assert data_out.keys() == data_in.keys()
    np.testing.assert_array_equal(data_out["array"], data_in["array"])
    ados = data_out["ados"][0]
    assert isinstance(ados, ADOs)
    assert (ados.N, ados.parity) == (3, qheom.EVEN)
    np.testing.assert_array_equal(ados.data, data_in["ados"][0].data)


def test_qload_with_suffix():
    filename = _random_file_name()
    qsave([1, 2, 3], filename)
    assert qload(filename + ".qu") == [1, 2, 3]


def test_existing_file():
    qsave("first", "store")
    with pytest.raises(FileExistsError) as err:
        qsave("second", "store")
    assert str(err.value) == "FILE: store.qu already exists."
    assert qload("store") == "first"


def test_overwrite():
    qsave("first", "store")
    qsave("second", "store", overwrite=True)
    assert qload("store") == "second"


def test_heom_matrix(model, quiet):
    M = qheom.BosonMatrix(model.H, 2, model.bosonic_bath(Nk=1), options=quiet)
    qsave(M, "matrix")
    loaded = qload("matrix")
    assert repr(loaded) == repr(M)
    assert (loaded.data != M.data).nnz == 0
