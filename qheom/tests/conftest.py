import os
import tempfile

import numpy as np
import pytest

from qheom import DrudeLorentzPadeBath, LorentzianPadeBath


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "slow: mark a test as slow to build or solve.",
    )


@pytest.fixture
def in_temporary_directory():
    """
    Creates a temporary directory for the lifetime of the fixture and changes
    into it.  All relative paths used will be in the temporary directory, and
    everything will automatically be cleaned up at the end of the fixture's
    life.
    """
    previous_dir = os.getcwd()
    with tempfile.TemporaryDirectory() as temporary_dir:
        os.chdir(temporary_dir)
        yield
        # Change back before the directory is removed so that it is not
        # 'busy' on platforms that care.
        os.chdir(previous_dir)


class TwoLevelModel:
    """
    A two-level system coupled to Padé-expanded Drude-Lorentz (bosonic) and
    Lorentzian (fermionic) baths, shared by the matrix, steady state and
    evolution tests.
    """
    lam = 0.1450
    W = 0.6464
    T = 0.7414
    mu = 0.8787
    Nk = 5
    tier = 3

    H = np.array([
        [0.6969, 0.4364],
        [0.4364, 0.3215],
    ])
    Q = np.array([
        [0.1234, 0.1357 + 0.2468j],
        [0.1357 - 0.2468j, 0.5678],
    ])
    J = np.array([
        [0, 0.1450 - 0.7414j],
        [0.1450 + 0.7414j, 0],
    ])
    rho0 = np.array([
        [0.64, 0],
        [0, 0.36],
    ])

    def bosonic_bath(self, Nk=None):
        return DrudeLorentzPadeBath(
            self.Q, lam=self.lam, gamma=self.W, T=self.T,
            Nk=self.Nk if Nk is None else Nk,
        )

    def fermionic_bath(self, Nk=None):
        return LorentzianPadeBath(
            self.Q, gamma=self.lam, w=self.W, mu=self.mu, T=self.T,
            Nk=self.Nk if Nk is None else Nk,
        )


@pytest.fixture
def model():
    return TwoLevelModel()


@pytest.fixture
def quiet():
    """ Construction options that keep the test output clean. """
    return {"progress_bar": False}
