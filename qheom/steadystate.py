"""
Steady state of the ADOs of a HEOM matrix.
"""

import numpy as np
import scipy.sparse as sp
from scipy.sparse.linalg import splu

from .ados import ADOs
from .evolution import _initial_ados
from .integrator import make_integrator
from .logging_utils import get_logger
from .options import SolverOptions

__all__ = ["SteadyStateError", "steadystate"]

logger = get_logger(__name__)

_steadystate_options = SolverOptions({
    "method": "adams",
    "atol": 1e-8,
    "rtol": 1e-6,
    "nsteps": 2500,
    "ss_atol": 1e-8,
    "ss_rtol": 1e-6,
    "max_time": 1e5,
    "first_interval": 1.0,
}, "steadystate", """
    method : str
        ODE method used when an initial state is given.

    atol, rtol, nsteps :
        Options of the ODE integrator.

    ss_atol, ss_rtol : float
        The state is steady once ``||M rho|| <= max(ss_atol,
        ss_rtol * ||rho||)``.

    max_time : float
        Integration time after which the search fails.

    first_interval : float
        Length of the first integration interval. Each further interval is
        twice as long.
""")


class SteadyStateError(Exception):
    """
    The steady state could not be found, either because the linear system
    is singular or because the integration did not converge.
    """


def _direct(M):
    """
    Solve ``M rho = 0`` with the first equation replaced by the trace of the
    reduced density matrix being one.
    """
    dim = M.dim
    size = M.shape[0]

    b_mat = np.zeros(size, dtype=complex)
    b_mat[0] = 1.0

    L = M.data.copy().tolil()
    L[0, 0:size] = 0.0
    L = L.tocsr()
    L += sp.csr_matrix((
        np.ones(dim),
        (np.zeros(dim), [num * (dim + 1) for num in range(dim)])
    ), shape=(size, size))

    try:
        lu = splu(L.tocsc())
    except RuntimeError as err:
        raise SteadyStateError(
            f"The steady state system is singular: {err}"
        ) from err
    solution = lu.solve(b_mat)
    if not np.all(np.isfinite(solution)):
        raise SteadyStateError(
            "The steady state system is singular: the solution is not"
            " finite."
        )
    return solution


def _ode(M, ados, options):
    """
    Integrate over intervals of increasing length until the derivative of
    the ADOs vector is negligible.
    """
    data = M.data

    def rhs(t, y):
        return data @ y

    integrator = make_integrator(options["method"], rhs, options)
    integrator.set_state(0.0, ados.data)

    t = 0.0
    interval = options["first_interval"]
    while True:
        t = min(t + interval, options["max_time"])
        _, y = integrator.integrate(t, copy=True)
        residual = np.linalg.norm(data @ y)
        tol = max(options["ss_atol"], options["ss_rtol"] * np.linalg.norm(y))
        logger.debug("Steady state search: t=%g residual=%g.", t, residual)
        if residual <= tol:
            return y
        if t >= options["max_time"]:
            raise SteadyStateError(
                f"The steady state was not reached after t={t}, the"
                f" residual is {residual:g} > {tol:g}."
            )
        interval *= 2


def steadystate(M, state0=None, *, options=None):
    """
    Compute the steady state of the ADOs of ``M``.

    Without an initial state the linear system ``M rho = 0`` is solved
    directly, with the first equation replaced by the normalization of the
    reduced density matrix. With an initial state the ODE is integrated
    until the ADOs stop changing.

    Parameters
    ----------
    M : HEOMMatrix
        The HEOM Liouvillian.

    state0 : array_like or ADOs, optional
        Initial reduced density matrix or initial ADOs for the ODE search.

    options : dict, optional
        See ``steadystate._steadystate_options``.

    Returns
    -------
    ADOs
        The steady state.

    Raises
    ------
    SteadyStateError
        If the linear system is singular or the integration does not
        converge before ``max_time``.
    """
    options = _steadystate_options.merge(options)
    if state0 is None:
        logger.info("Solving steady state directly, shape %s.", M.shape)
        solution = _direct(M)
    else:
        ados = _initial_ados(M, state0)
        logger.info("Solving steady state with %s.", options["method"])
        solution = _ode(M, ados, options)
    return ADOs(solution, M.N, M.parity)
