"""
Functions for storing and loading HEOM objects (matrices, ADOs, results)
to files.
"""

__all__ = ['qsave', 'qload', 'with_suffix']

import os
import pickle

SUFFIX = ".qu"


def with_suffix(filename):
    """ Return ``filename`` with the ``.qu`` suffix appended if missing. """
    filename = os.fspath(filename)
    if not filename.endswith(SUFFIX):
        filename = filename + SUFFIX
    return filename


def qsave(data, filename, overwrite=False):
    """
    Saves the given data to the file ``filename + ".qu"``.

    Parameters
    ----------
    data : picklable object
        Object to store.
    filename : str or path-like
        Name of the output file, the suffix ``.qu`` is added if missing.
    overwrite : bool, default False
        If False, an existing file raises ``FileExistsError``.

    Returns
    -------
    str
        The name of the written file.
    """
    filename = with_suffix(filename)
    mode = 'wb' if overwrite else 'xb'
    try:
        with open(filename, mode) as f:
            pickle.dump(data, f, protocol=pickle.HIGHEST_PROTOCOL)
    except FileExistsError:
        raise FileExistsError(f"FILE: {filename} already exists.") from None
    return filename


def qload(filename):
    """
    Loads data saved using :func:`qsave`.

    Parameters
    ----------
    filename : str or path-like
        Name of the file, with or without the ``.qu`` suffix.

    Returns
    -------
    object
        The stored object.
    """
    with open(with_suffix(filename), 'rb') as f:
        data = pickle.load(f)
    return data
