"""ODE integrators from scipy used to evolve the ADOs vector."""

__all__ = [
    'Integrator',
    'IntegratorException',
    'IntegratorScipyAdams',
    'IntegratorScipyBDF',
    'IntegratorScipyDop853',
    'IntegratorScipylsoda',
    'integrators',
    'make_integrator',
]

import numpy as np
from scipy.integrate import ode


class IntegratorException(Exception):
    """
    The ODE solver stopped before reaching the requested time, e.g. because
    it ran out of steps or could not meet the tolerances.
    """


class Integrator:
    """
    A ``scipy.integrate.ode`` solver for a complex state vector.

    Parameters
    ----------
    system : callable
        ``system(t, vec) -> ndarray``, the derivative of the state.

    options : dict
        Solver options. Only the keys of ``integrator_options`` are used;
        missing or ``None`` values keep their defaults.

    Class Attributes
    ----------------
    name : str
        Name reported in results.

    integrator_options : dict
        Accepted options and their defaults.

    istate_messages : dict
        Explanation of the solver's failure codes.
    """
    name = None
    integrator_options = {}
    istate_messages = {}
    # scipy integrator name and extra keyword arguments
    _backend = None
    _backend_kwargs = {}
    # Whether the backend integrates complex vectors natively. Otherwise the
    # state is passed through its float64 view.
    _complex = True

    def __init__(self, system, options):
        self.system = system
        self._options = dict(self.integrator_options)
        self.options = options
        self._is_set = False
        self._ode = ode(system if self._complex else self._real_system)
        self._ode.set_integrator(
            self._backend, **self._backend_kwargs, **self.options,
        )

    @property
    def options(self):
        return self._options

    @options.setter
    def options(self, new_options):
        for key in self.integrator_options:
            if new_options.get(key) is not None:
                self._options[key] = new_options[key]

    def _real_system(self, t, vec):
        out = self.system(t, vec.view(np.complex128))
        return np.asarray(out, dtype=np.complex128).view(np.float64)

    def set_state(self, t, state0):
        """ Restart the solver from ``state0`` at time ``t``. """
        state0 = np.array(state0, dtype=np.complex128).ravel()
        if not self._complex:
            state0 = state0.view(np.float64)
        self._ode.set_initial_value(state0, t)
        self._is_set = True

    def get_state(self, copy=True):
        """ Return ``(t, state)``. """
        if not self._is_set:
            raise IntegratorException("The initial state has not been set.")
        if not self._ode.successful():
            istate = self._ode._integrator.istate
            raise IntegratorException(self.istate_messages.get(
                istate, f"Integration failed with istate {istate}.",
            ))
        state = self._ode._y
        if not self._complex:
            state = state.view(np.complex128)
        return self._ode.t, state.copy() if copy else state

    def _claim_backend(self):
        # The odepack solvers keep one global work area; another instance
        # may have used it since our last step.
        backend = self._ode._integrator
        active = getattr(type(backend), "active_global_handle", None)
        if (
            active is not None and getattr(backend, "initialized", False)
            and backend.handle != active
        ):
            backend.reset(len(self._ode._y), False)

    def integrate(self, t, copy=True):
        """
        Advance to ``t`` (after the last time reached) and return
        ``(t, state)``. :meth:`set_state` must have been called first.
        """
        self._claim_backend()
        if t != self._ode.t:
            self._ode.integrate(t)
        return self.get_state(copy)

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.name}>"


_common_options = {
    'atol': 1e-8,
    'rtol': 1e-6,
    'nsteps': 2500,
    'first_step': 0,
    'max_step': 0,
}

_odepack_messages = {
    -1: 'Excess work done on this call. Try to increasing '
        'the nsteps parameter in the options.',
    -2: 'Tolerances too small for the machine precision.',
    -3: 'Illegal input detected.',
    -4: 'Repeated error test failures.',
    -5: 'Repeated convergence failures.',
    -6: 'An error weight became zero, set a non-zero atol.',
}


class IntegratorScipyAdams(Integrator):
    """ zvode with the Adams method, ``method="adams"``. """
    name = "scipy zvode adams"
    integrator_options = {**_common_options, 'order': 12, 'min_step': 0}
    istate_messages = _odepack_messages
    _backend = 'zvode'
    _backend_kwargs = {'method': 'adams'}


class IntegratorScipyBDF(Integrator):
    """ zvode with the BDF method for stiff problems, ``method="bdf"``. """
    name = "scipy zvode bdf"
    integrator_options = {**_common_options, 'order': 5, 'min_step': 0}
    istate_messages = _odepack_messages
    _backend = 'zvode'
    _backend_kwargs = {'method': 'bdf'}


class IntegratorScipyDop853(Integrator):
    """ Dormand-Prince 8(5,3) Runge-Kutta, ``method="dop853"``. """
    name = "scipy ode dop853"
    integrator_options = {
        **_common_options, 'ifactor': 6.0, 'dfactor': 0.3, 'beta': 0.0,
    }
    istate_messages = {
        -1: 'Inconsistent input.',
        -2: 'More steps are needed, increase nsteps in the options.',
        -3: 'The step size became too small, try larger tolerances.',
        -4: 'The problem is probably stiff, try the "bdf" method.',
    }
    _backend = 'dop853'
    _complex = False


class IntegratorScipylsoda(Integrator):
    """
    lsoda, switching automatically between Adams and BDF,
    ``method="lsoda"``.
    """
    name = "scipy lsoda"
    integrator_options = {
        **_common_options,
        'max_order_ns': 12, 'max_order_s': 5, 'min_step': 0,
    }
    istate_messages = {
        **_odepack_messages,
        -7: 'The work space was too small to finish.',
    }
    _backend = 'lsoda'
    _complex = False


integrators = {
    'adams': IntegratorScipyAdams,
    'bdf': IntegratorScipyBDF,
    'dop853': IntegratorScipyDop853,
    'lsoda': IntegratorScipylsoda,
}


def make_integrator(method, system, options):
    """
    Create the integrator registered as ``method`` for the derivative
    ``system(t, vec)``.
    """
    try:
        integrator_class = integrators[method]
    except KeyError:
        raise ValueError(
            f"Unknown ODE method {method!r}, expected one of"
            f" {list(integrators)}."
        ) from None
    return integrator_class(system, options)
