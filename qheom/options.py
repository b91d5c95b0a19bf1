__all__ = ["SolverOptions"]


class SolverOptions(dict):
    """
    Class to hold options for HEOM construction, solvers and integrators.

    The instance is a ``dict`` whose keys are restricted to those of
    ``default``. Options are passed by value: solvers copy the options they
    receive and never write back into the caller's object or the defaults.

    Parameters
    ----------
    default : dict
        Default dict, only keys in this will be accepted.
    name : str, optional
        Name of the solver or integrator that use this. Used in __repr__ only.
    doc : str, optional
        Overwrite the __doc__ of the instance.
    **kwargs :
        Values overriding the defaults.
    """
    def __init__(self, default, name="", doc="", /, **kwargs):
        self._default = default
        self.__doc__ = doc
        self._name = name
        extra_keys = kwargs.keys() - default.keys()
        if extra_keys:
            raise KeyError(f"Options {extra_keys} are not supported.")
        super().__init__(**{**self._default, **kwargs})

    def __setitem__(self, key, val):
        if key not in self._default:
            raise KeyError(f"Options {key} is not supported.")
        if val is None:
            val = self._default[key]
        super().__setitem__(key, val)

    def __delitem__(self, key):
        if key not in self._default:
            raise KeyError(f"Options {key} is not supported.")
        super().__setitem__(key, self._default[key])

    def update(self, other=(), /, **kwargs):
        for key, val in dict(other, **kwargs).items():
            self[key] = val

    def copy(self):
        return self.__class__(
            self._default,
            self._name,
            self.__doc__,
            **self
        )

    def merge(self, overrides=None, /, **kwargs):
        """
        Return a new options object where the named fields are replaced.

        Parameters
        ----------
        overrides : dict or None
            Options to override. ``None`` values are ignored so that callers
            can forward optional arguments unchanged.
        **kwargs :
            Further options to override.

        Returns
        -------
        SolverOptions
            A new instance; ``self`` is left unchanged.
        """
        new = self.copy()
        for key, val in {**(overrides or {}), **kwargs}.items():
            if val is not None:
                new[key] = val
        return new

    def __str__(self):
        lines = []
        longest = max(len(key) for key in self.keys())
        lines.append(f"Options for {self._name}:")
        for key in self.keys():
            default = "(default)" if self[key] == self._default[key] else ""
            lines.append(f"    {key:{longest}} : "
                         f"{self[key].__repr__():{70-longest}}"
                         f"{default}")
        return "\n".join(lines)

    @classmethod
    def _from_reduced(cls, default, name, doc, keys, args):
        return cls(default, name, doc, **{
            key: arg for key, arg in zip(keys, args)
        })

    def __reduce__(self):
        return (
            self._from_reduced,
            (
                self._default,
                self._name,
                self.__doc__,
                tuple(self.keys()),
                tuple(self.values())
                )
            )
