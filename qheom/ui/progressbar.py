__all__ = ['BaseProgressBar', 'TextProgressBar',
           'EnhancedTextProgressBar', 'TqdmProgressBar',
           'progress_bars', 'make_progress_bar']

import time
import datetime
import sys


class BaseProgressBar(object):
    """
    An abstract progress bar with some shared functionality. Used on its own
    it reports nothing, which makes it the null observer for solvers.

    Example usage:

        n_vec = linspace(0, 10, 100)
        pbar = TextProgressBar(len(n_vec))
        for n in n_vec:
            pbar.update()
            compute_with_n(n)
        pbar.finished()

    A bar instance can also be handed to a solver, which restarts it with
    ``start(iterations)`` at each of its checkpoints.
    """

    def __init__(self, iterations=0, chunk_size=10, **kwargs):
        self.start(iterations, chunk_size)

    def start(self, iterations, chunk_size=None, **kwargs):
        if chunk_size is None:
            chunk_size = getattr(self, "p_chunk_size", 10)
        self.N = float(iterations)
        self.n = 0
        self.p_chunk_size = chunk_size
        self.p_chunk = chunk_size
        self.t_start = time.time()
        self.t_done = self.t_start - 1

    def update(self):
        self.n += 1

    def total_time(self):
        return self.t_done - self.t_start

    def time_elapsed(self):
        return "%6.2fs" % (time.time() - self.t_start)

    def time_remaining_est(self, p):
        if 100 >= p > 0.0:
            t_r_est = (time.time() - self.t_start) * (100.0 - p) / p
        else:
            t_r_est = 0

        dd = datetime.datetime(1, 1, 1) + datetime.timedelta(seconds=t_r_est)
        time_string = "%02d:%02d:%02d:%02d" % \
            (dd.day - 1, dd.hour, dd.minute, dd.second)

        return time_string

    def finished(self):
        self.t_done = time.time()


class TextProgressBar(BaseProgressBar):
    """
    A simple text-based progress bar.
    """

    def update(self):
        self.n += 1
        n = self.n
        p = (n / self.N) * 100.0 if self.N else 100.0
        if p >= self.p_chunk:
            print("%4.1f%%." % p +
                  " Run time: %s." % self.time_elapsed() +
                  " Est. time left: %s" % self.time_remaining_est(p))
            sys.stdout.flush()
            self.p_chunk += self.p_chunk_size

    def finished(self):
        self.t_done = time.time()
        print("Total run time: %s" % self.time_elapsed())


class EnhancedTextProgressBar(BaseProgressBar):
    """
    An enhanced text-based progress bar.
    """

    def __init__(self, iterations=0, chunk_size=10, **kwargs):
        self.fill_char = '*'
        self.width = 25
        super().__init__(iterations, chunk_size)

    def update(self):
        self.n += 1
        n = self.n
        percent_done = int(round(n / self.N * 100.0)) if self.N else 100
        all_full = self.width - 2
        num_hashes = int(round((percent_done / 100.0) * all_full))
        prog_bar = ('[' + self.fill_char * num_hashes +
                    ' ' * (all_full - num_hashes) + ']')
        pct_place = (len(prog_bar) // 2) - len(str(percent_done))
        pct_string = '%d%%' % percent_done
        prog_bar = (prog_bar[0:pct_place] +
                    (pct_string + prog_bar[pct_place + len(pct_string):]))
        prog_bar += ' Elapsed %s / Remaining %s' % (
            self.time_elapsed().strip(),
            self.time_remaining_est(percent_done))
        print('\r', prog_bar, end='')
        sys.stdout.flush()

    def finished(self):
        self.t_done = time.time()
        print("\r", "Total run time: %s" % self.time_elapsed())


class TqdmProgressBar(BaseProgressBar):
    """
    A progress bar using tqdm module
    """

    def __init__(self, iterations=0, chunk_size=10, **kwargs):
        self._tqdm_kwargs = kwargs
        self.pbar = None
        self.start(iterations, chunk_size)

    def start(self, iterations, chunk_size=None, **kwargs):
        from tqdm.auto import tqdm
        if self.pbar is not None:
            self.pbar.close()
        self.pbar = tqdm(total=iterations, **{**self._tqdm_kwargs, **kwargs})
        self.t_start = time.time()
        self.t_done = self.t_start - 1

    def update(self):
        self.pbar.update()

    def finished(self):
        self.pbar.close()
        self.t_done = time.time()


progress_bars = {
    "Enhanced": EnhancedTextProgressBar,
    "enhanced": EnhancedTextProgressBar,
    "Text": TextProgressBar,
    "text": TextProgressBar,
    True: TextProgressBar,
    "Tqdm": TqdmProgressBar,
    "tqdm": TqdmProgressBar,
    "base": BaseProgressBar,
    "": BaseProgressBar,
    False: BaseProgressBar,
    None: BaseProgressBar,
}


def make_progress_bar(progress_bar, iterations, **kwargs):
    """
    Return a started progress bar observer.

    Parameters
    ----------
    progress_bar : str, bool, None or BaseProgressBar
        Either a key of ``progress_bars`` or an observer instance. An
        instance is restarted and returned as is.
    iterations : int
        Number of ``update`` calls expected before ``finished``.
    **kwargs :
        Passed to the progress bar, e.g. ``chunk_size``.
    """
    if isinstance(progress_bar, BaseProgressBar):
        progress_bar.start(iterations, **kwargs)
        return progress_bar
    try:
        bar_class = progress_bars[progress_bar]
    except (KeyError, TypeError):
        raise ValueError(
            f"Unknown progress bar {progress_bar!r}, expected one of"
            f" {[key for key in progress_bars if isinstance(key, str)]}"
            " or a BaseProgressBar instance."
        ) from None
    return bar_class(iterations, **kwargs)
