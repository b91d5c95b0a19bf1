"""
Time evolution of the ADOs of a HEOM matrix, either by repeatedly applying a
fixed-step propagator or by integrating the ODE ``d rho / dt = M rho``.
"""

import os

import numpy as np

from .ados import ADOs, _trace_row, get_rho
from .fileio import qsave, with_suffix
from .integrator import make_integrator
from .logging_utils import get_logger
from .options import SolverOptions
from .propagator import propagator
from .superoperator import spost, spre, to_operator
from .ui.progressbar import make_progress_bar

__all__ = ["HEOMResult", "heomsolve", "heomsolve_propagator"]

logger = get_logger(__name__)

_ode_options = SolverOptions({
    "method": "adams",
    "atol": 1e-8,
    "rtol": 1e-6,
    "nsteps": 2500,
    "first_step": 0,
    "max_step": 0,
    "min_step": 0,
    "progress_bar": "text",
    "progress_kwargs": {"chunk_size": 10},
}, "heomsolve", """
    method : str {"adams", "bdf", "dop853", "lsoda"}
        ODE integration method.

    atol, rtol : float
        Absolute and relative tolerance of the ODE integrator.

    nsteps : int
        Maximum number of (internally defined) steps allowed in one
        ``tlist`` step.

    first_step, max_step, min_step : float
        Step size controls of the integrator (0 = automatic).

    progress_bar : str, bool, None or BaseProgressBar
        Progress reporting over the requested times.

    progress_kwargs : dict
        Keyword arguments passed to the progress bar.
""")

_propagator_options = SolverOptions({
    "threshold": 1e-6,
    "nonzero_tol": 1e-14,
    "progress_bar": "text",
    "progress_kwargs": {"chunk_size": 10},
}, "heomsolve_propagator", """
    threshold : float
        Truncation threshold of the Taylor series of the propagator.

    nonzero_tol : float
        Entries of the propagator smaller than this are dropped.

    progress_bar : str, bool, None or BaseProgressBar
        Progress reporting over the steps.

    progress_kwargs : dict
        Keyword arguments passed to the progress bar.
""")


class HEOMResult:
    """
    The result of a HEOM time evolution.

    Attributes
    ----------
    btier, ftier : int
        The tiers of the bosonic and fermionic hierarchies.

    times : ndarray
        The requested times.

    ados : list of ADOs
        The ADOs at every requested time, or only at the final time when
        expectation values were requested.

    expect : ndarray
        Complex array of shape ``(len(e_ops), len(times))``.

    retcode : str or None
        Return status of the ODE integration, None for the propagator.

    alg : str or None
        Name of the ODE integrator, None for the propagator.

    atol, rtol : float or None
        Tolerances of the ODE integrator, None for the propagator.
    """

    def __init__(
        self, btier, ftier, times, ados, expect,
        retcode=None, alg=None, atol=None, rtol=None,
    ):
        self.btier = btier
        self.ftier = ftier
        self.times = times
        self.ados = ados
        self.expect = expect
        self.retcode = retcode
        self.alg = alg
        self.atol = atol
        self.rtol = rtol

    @property
    def states(self):
        """ The reduced density matrices of the kept ADOs. """
        return [get_rho(ados) for ados in self.ados]

    @property
    def final_ados(self):
        return self.ados[-1] if self.ados else None

    def __repr__(self):
        out = "Solution of hierarchical EOM\n"
        out += f"(return code: {self.retcode})\n"
        out += f"btier = {self.btier}\n"
        out += f"ftier = {self.ftier}\n"
        out += f"num_states = {len(self.ados)}\n"
        out += f"num_expect = {self.expect.shape[0]}\n"
        out += f"ODE alg. : {self.alg}\n"
        out += f"atol = {self.atol}\n"
        out += f"rtol = {self.rtol}\n"
        return out


def _check_file(filename):
    """ Return the output file name, which must not exist yet. """
    if filename is None:
        return None
    filename = with_suffix(filename)
    if os.path.exists(filename):
        raise FileExistsError(f"FILE: {filename} already exists.")
    return filename


def _save(filename, ados_list):
    if filename is not None:
        logger.info("Saving %d ADOs to %s.", len(ados_list), filename)
        qsave({"ados": ados_list}, filename)


def _initial_ados(M, state0):
    """ Convert ``state0`` to ADOs compatible with ``M``. """
    if isinstance(state0, ADOs):
        ados = state0
    else:
        ados = ADOs.from_rho(
            to_operator(state0, M.dim, "initial state"), M.N, M.parity,
        )
    if ados.dim != M.dim or ados.N != M.N:
        raise ValueError(
            f"The ADOs have dim={ados.dim}, N={ados.N} but the HEOM matrix"
            f" has dim={M.dim}, N={M.N}."
        )
    if ados.parity != M.parity:
        raise ValueError(
            f"The ADOs have parity {ados.parity} but the HEOM matrix has"
            f" parity {M.parity}."
        )
    return ados


def _generate_e_ops(M, e_ops):
    """
    The rows ``Tr(op @ rho)`` as functionals of the whole ADOs vector, one
    per observable.
    """
    if e_ops is None:
        return []
    if not isinstance(e_ops, (list, tuple)):
        e_ops = [e_ops]
    return [_trace_row(op, M.dim, M.N) for op in e_ops]


def heomsolve(
    M, state0, tlist, *, e_ops=None, H_t=None, args=None, options=None,
    filename=None,
):
    """
    Evolve the ADOs by integrating ``d rho / dt = M rho``.

    Parameters
    ----------
    M : HEOMMatrix
        The HEOM Liouvillian.

    state0 : array_like or ADOs
        Initial reduced density matrix (the other ADOs start at zero) or
        initial ADOs.

    tlist : array_like
        Times at which the results are recorded. The evolution starts at
        ``tlist[0]``.

    e_ops : operator or list of operators, optional
        Observables. If given, only the final ADOs are kept.

    H_t : callable, optional
        ``H_t(t, args)`` returns a time-dependent system Hamiltonian whose
        commutator is added to every diagonal block.

    args : dict, optional
        Passed to ``H_t``.

    options : dict, optional
        See ``evolution._ode_options``.

    filename : str, optional
        The kept ADOs are saved to ``filename + ".qu"`` under the key
        ``"ados"``. The file must not exist.

    Returns
    -------
    HEOMResult
    """
    filename = _check_file(filename)
    options = _ode_options.merge(options)
    ados = _initial_ados(M, state0)

    tlist = np.asarray(tlist, dtype=float)
    if tlist.ndim != 1 or len(tlist) == 0:
        raise ValueError("tlist must be a non-empty list of times.")

    tr_e_ops = _generate_e_ops(M, e_ops)
    keep_all = not tr_e_ops
    expvals = np.zeros((len(tr_e_ops), len(tlist)), dtype=complex)

    data = M.data
    if H_t is None:
        def rhs(t, y):
            return data @ y
    else:
        args = {} if args is None else args
        N, sup_dim, dim = M.N, M.sup_dim, M.dim
        to_operator(H_t(tlist[0], args), dim, "time-dependent Hamiltonian")

        def rhs(t, y):
            H = to_operator(H_t(t, args), dim, "time-dependent Hamiltonian")
            L_t = -1j * (spre(H) - spost(H))
            out = data @ y
            out += (L_t @ y.reshape(N, sup_dim).T).T.ravel()
            return out

    integrator = make_integrator(options["method"], rhs, options)
    integrator.set_state(tlist[0], ados.data)
    logger.info(
        "Solving time evolution with %s over %d times.",
        integrator.name, len(tlist),
    )

    pbar = make_progress_bar(
        options["progress_bar"], len(tlist), **options["progress_kwargs"]
    )
    ados_list = []
    for i, t in enumerate(tlist):
        _, y = integrator.integrate(t, copy=True)
        for row, tr_op in enumerate(tr_e_ops):
            expvals[row, i] = (tr_op @ y)[0]
        if keep_all or i == len(tlist) - 1:
            ados_list.append(ADOs(y, M.N, M.parity))
        pbar.update()
    pbar.finished()

    _save(filename, ados_list)

    return HEOMResult(
        M.btier, M.ftier, tlist, ados_list, expvals,
        retcode="Success", alg=integrator.name,
        atol=integrator.options["atol"], rtol=integrator.options["rtol"],
    )


def heomsolve_propagator(
    M, state0, dt, steps, *, e_ops=None, options=None, filename=None,
):
    """
    Evolve the ADOs by repeatedly applying the propagator ``exp(M * dt)``.

    Parameters
    ----------
    M : HEOMMatrix
        The HEOM Liouvillian.

    state0 : array_like or ADOs
        Initial reduced density matrix or initial ADOs.

    dt : float
        The time step.

    steps : int
        The number of steps. Results are recorded at
        ``dt * arange(steps + 1)``.

    e_ops : operator or list of operators, optional
        Observables. If given, only the final ADOs are kept.

    options : dict, optional
        See ``evolution._propagator_options``.

    filename : str, optional
        The kept ADOs are saved to ``filename + ".qu"`` under the key
        ``"ados"``. The file must not exist.

    Returns
    -------
    HEOMResult
    """
    filename = _check_file(filename)
    options = _propagator_options.merge(options)
    ados = _initial_ados(M, state0)

    if isinstance(steps, bool) or not isinstance(steps, (int, np.integer)):
        raise TypeError("steps must be an integer.")
    if steps < 0:
        raise ValueError(f"steps must be non-negative, but {steps} was given.")

    tr_e_ops = _generate_e_ops(M, e_ops)
    keep_all = not tr_e_ops
    expvals = np.zeros((len(tr_e_ops), steps + 1), dtype=complex)

    exp_Mt = propagator(
        M, dt,
        threshold=options["threshold"], nonzero_tol=options["nonzero_tol"],
    )

    logger.info("Solving time evolution with the propagator for %d steps.",
                steps)
    pbar = make_progress_bar(
        options["progress_bar"], steps + 1, **options["progress_kwargs"]
    )
    y = ados.data.copy()
    ados_list = []
    for n in range(steps + 1):
        for row, tr_op in enumerate(tr_e_ops):
            expvals[row, n] = (tr_op @ y)[0]
        if keep_all or n == steps:
            ados_list.append(ADOs(y, M.N, M.parity))
        if n < steps:
            y = exp_Mt @ y
        pbar.update()
    pbar.finished()

    _save(filename, ados_list)

    return HEOMResult(
        M.btier, M.ftier, dt * np.arange(steps + 1), ados_list, expvals,
    )
