# utils/_timer.py
"""Context manager for timing and logging blocks of code."""

__all__ = [
    "TimedBlock",
]

import os
import time
import logging


class TimedBlock:
    r"""Context manager for timing a block of code and logging the timing.

    Messages are logged at the ``INFO`` level; exceptions raised in the block
    are logged at the ``ERROR`` level with the elapsed time and re-raised.

    Parameters
    ----------
    message : str
        Message to log / print.

    Examples
    --------
    >>> import certrb

    >>> certrb.utils.TimedBlock.verbose = True
    >>> with certrb.utils.TimedBlock("Writing offline data"):
    ...     evaluation.write_offline_data_to_files("offline_data")
    Writing offline data...done in 0.01 s.

    Set up a logfile to record messages to.

    >>> certrb.utils.TimedBlock.add_logfile("log.log")
    Logging to '/path/to/current/folder/log.log'

    Capture the time elapsed for later use.

    >>> with certrb.utils.TimedBlock("how long?") as timer:
    ...     evaluation.rb_solve(10)
    >>> timer.elapsed
    0.00012874603271484375
    """

    verbose = False
    formatter = logging.Formatter(
        fmt="%(asctime)s  %(levelname)s:\t%(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    def __init__(self, message: str = "Running code block"):
        """Store print/log message."""
        self.message = message.rstrip()
        self.__elapsed = None

    @property
    def elapsed(self):
        """Actual time (in seconds) the block took to complete."""
        return self.__elapsed

    def __enter__(self):
        """Print the message and record the current time."""
        if self.verbose:
            print(f"{self.message}...", end="", flush=True)
        self._tic = time.time()
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        """Calculate and report the elapsed time."""
        elapsed = time.time() - self._tic
        self.__elapsed = elapsed
        if exc_type:
            if self.verbose:
                print(f"{exc_type.__name__}: {exc_value}", flush=True)
            logging.error(
                f"{self.message}...({exc_type.__name__}) {exc_value} "
                f"(raised after {elapsed:.6f} s)"
            )
            return False
        if self.verbose:
            print(f"done in {elapsed:.2f} s.", flush=True)
        logging.info(f"{self.message}...done in {elapsed:.6f} s.")
        return False

    @classmethod
    def add_logfile(cls, logfile: str = "log.log") -> None:
        """Instruct :class:`TimedBlock` to log messages to the ``logfile``.

        Parameters
        ----------
        logfile : str
            File to log to.
        """
        logger = logging.getLogger()
        logpath = os.path.abspath(logfile)

        # Check that we aren't already logging to this file.
        for handler in logger.handlers:
            if (
                isinstance(handler, logging.FileHandler)
                and os.path.abspath(handler.baseFilename) == logpath
            ):
                if cls.verbose:
                    print(f"Already logging to {logpath}")
                return

        # Add a new handler for this file.
        newhandler = logging.FileHandler(logpath, "a")
        newhandler.setFormatter(cls.formatter)
        newhandler.setLevel(logging.INFO)
        logger.setLevel(logging.INFO)
        logger.addHandler(newhandler)
        if cls.verbose:
            print(f"Logging to '{logpath}'")
