"""
This module contains the runtime settings for qheom: logging policy, debug
mode and the number of workers available for parallel matrix assembly.
"""
import os
import multiprocessing

__all__ = ['settings']


def available_cpu_count() -> int:
    """
    Get the number of cpus.
    It tries to only get the number available to qheom.
    """
    num_cpu = 0

    if 'QHEOM_NUM_PROCESSES' in os.environ:
        # We consider QHEOM_NUM_PROCESSES=0 as unset.
        num_cpu = int(os.environ['QHEOM_NUM_PROCESSES'])

    if num_cpu == 0 and 'SLURM_CPUS_PER_TASK' in os.environ:
        num_cpu = int(os.environ['SLURM_CPUS_PER_TASK'])

    if num_cpu == 0 and hasattr(os, 'sched_getaffinity'):
        num_cpu = len(os.sched_getaffinity(0))

    if num_cpu == 0:
        try:
            num_cpu = multiprocessing.cpu_count()
        except NotImplementedError:
            pass

    return num_cpu or 1


class Settings:
    """
    qheom's settings.
    """
    _log_policies = ("default", "basic", "stream", "null")

    def __init__(self):
        self._debug = False
        self._log_handler = "default"

    @property
    def debug(self) -> bool:
        """ Whether loggers created by qheom emit debug messages. """
        return self._debug

    @debug.setter
    def debug(self, value: bool) -> None:
        self._debug = bool(value)

    @property
    def log_handler(self) -> str:
        """
        Policy used by ``qheom.logging_utils.get_logger`` when attaching
        handlers. One of "default", "basic", "stream" or "null".
        """
        return self._log_handler

    @log_handler.setter
    def log_handler(self, policy: str) -> None:
        if policy not in self._log_policies:
            raise ValueError(
                f"Unknown log handler policy {policy!r}, expected one of"
                f" {self._log_policies}."
            )
        self._log_handler = policy

    @property
    def ipython(self) -> bool:
        """ Whether qheom is running in ipython. """
        try:
            __IPYTHON__
            return True
        except NameError:
            return False

    @property
    def num_cpus(self) -> int:
        """
        Number of cpu detected.
        Use the ``num_workers`` construction option to control how many are
        used when assembling HEOM matrices.
        """
        return available_cpu_count()

    def __str__(self) -> str:
        lines = ["qheom settings:"]
        for attr in ("debug", "log_handler", "ipython", "num_cpus"):
            lines.append(f"    {attr}: {getattr(self, attr)}")
        return '\n'.join(lines)

    def __repr__(self) -> str:
        return self.__str__()


settings = Settings()
